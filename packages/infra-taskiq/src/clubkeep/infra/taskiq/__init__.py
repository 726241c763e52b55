"""Clubkeep Infra TaskIQ -- broker, scheduler and lifecycle for scheduled sweeps."""

from clubkeep.infra.taskiq.broker import (
    broker,
    get_broker,
    get_result_backend,
    get_scheduler,
    scheduler,
)
from clubkeep.infra.taskiq.errors import TaskIQBrokerError
from clubkeep.infra.taskiq.lifespan import lifespan_contribution
from clubkeep.infra.taskiq.settings import TaskIQSettings, get_taskiq_settings

__all__ = [
    "TaskIQBrokerError",
    "TaskIQSettings",
    "broker",
    "get_broker",
    "get_result_backend",
    "get_scheduler",
    "get_taskiq_settings",
    "lifespan_contribution",
    "scheduler",
]
