"""Unit tests for clubkeep.infra.taskiq.broker."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
from taskiq import TaskiqScheduler
from taskiq.schedule_sources import LabelScheduleSource
from taskiq_redis import RedisAsyncResultBackend, RedisStreamBroker

from clubkeep.infra.taskiq.broker import (
    _Lazy,
    get_broker,
    get_result_backend,
    get_scheduler,
)
from clubkeep.infra.taskiq.settings import get_taskiq_settings

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _clear_caches() -> Iterator[None]:
    for fn in (get_taskiq_settings, get_result_backend, get_broker, get_scheduler):
        fn.cache_clear()
    yield
    for fn in (get_taskiq_settings, get_result_backend, get_broker, get_scheduler):
        fn.cache_clear()


class TestFactoryFunctions:
    @pytest.mark.unit
    def test_get_broker_returns_redis_stream_broker(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            b = get_broker()
        assert isinstance(b, RedisStreamBroker)
        assert get_broker() is b

    @pytest.mark.unit
    def test_get_result_backend_returns_redis(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            assert isinstance(get_result_backend(), RedisAsyncResultBackend)

    @pytest.mark.unit
    def test_scheduler_reads_task_labels(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            s = get_scheduler()
        assert isinstance(s, TaskiqScheduler)
        assert len(s.sources) == 1
        assert isinstance(s.sources[0], LabelScheduleSource)


class TestLazyProxy:
    @pytest.mark.unit
    def test_factory_runs_on_attribute_access_only(self) -> None:
        calls: list[int] = []

        class _Target:
            value = 42

        def _factory() -> _Target:
            calls.append(1)
            return _Target()

        proxy = _Lazy(_factory)
        assert calls == []
        assert proxy.value == 42
        assert calls == [1]
