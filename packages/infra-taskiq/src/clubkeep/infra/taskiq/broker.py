"""TaskIQ broker and scheduler backed by Redis Streams.

The lifecycle sweeps are registered as scheduled tasks with cron labels and
picked up by :class:`~taskiq.schedule_sources.LabelScheduleSource`.

Usage:
    from clubkeep.infra.taskiq import broker

    @broker.task(task_name="clubkeep.example", schedule=[{"cron": "0 0 * * *"}])
    def nightly() -> None: ...

    # Start worker and scheduler (single scheduler instance only)
    # taskiq worker clubkeep.infra.taskiq.worker:broker
    # taskiq scheduler clubkeep.infra.taskiq.worker:scheduler --skip-first-run
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from taskiq import TaskiqScheduler
from taskiq.schedule_sources import LabelScheduleSource
from taskiq_redis import RedisAsyncResultBackend, RedisStreamBroker

from clubkeep.infra.taskiq.settings import get_taskiq_settings

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


@lru_cache(maxsize=1)
def get_result_backend() -> RedisAsyncResultBackend[Any]:
    settings = get_taskiq_settings()
    return RedisAsyncResultBackend(
        redis_url=settings.redis_url,
        result_ex_time=settings.result_ttl,
    )


@lru_cache(maxsize=1)
def get_broker() -> RedisStreamBroker:
    """Get or create the broker configured from TaskIQSettings."""
    settings = get_taskiq_settings()
    return RedisStreamBroker(
        url=settings.redis_url,
        queue_name=settings.queue_name,
    ).with_result_backend(get_result_backend())


@lru_cache(maxsize=1)
def get_scheduler() -> TaskiqScheduler:
    """Get or create the scheduler.

    Schedules come only from task labels, so the sweep cadence is defined
    in code and settings rather than in Redis.

    WARNING: Only run ONE scheduler instance per deployment to avoid
    duplicate sweeps.
    """
    _broker = get_broker()
    return TaskiqScheduler(broker=_broker, sources=[LabelScheduleSource(_broker)])


class _Lazy(Generic[T]):
    """Proxy that builds its target on first attribute access.

    Importing ``clubkeep.infra.taskiq`` builds nothing. The first
    ``broker.task(...)`` in a task module builds the broker from
    ``TASKIQ_*`` settings, and the decorator arguments read their own
    settings, so the environment must be final before task modules load.
    """

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory

    def __getattr__(self, name: str) -> Any:
        return getattr(self._factory(), name)


broker: RedisStreamBroker = _Lazy(get_broker)  # type: ignore[assignment]
scheduler: TaskiqScheduler = _Lazy(get_scheduler)  # type: ignore[assignment]
