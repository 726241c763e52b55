"""Fixtures for tests that wire the full application."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from clubkeep.domain.tenancy.settings import LifecycleSettings, get_lifecycle_settings
from clubkeep.infra.fastapi import create_app
from clubkeep.infra.fastapi.dependencies import get_clock
from clubkeep.infra.fastapi.settings import AppSettings
from clubkeep.infra.persistence.database import get_sync_session_factory
from clubkeep.infra.storage import get_object_store

if TYPE_CHECKING:
    from collections.abc import Iterator

    from fastapi import FastAPI
    from sqlalchemy import Engine
    from sqlalchemy.orm import Session, sessionmaker

# Lifespan hooks open real database, broker and logging resources.
TEST_EXCLUDE_GROUPS = frozenset({"clubkeep.lifespan"})


@pytest.fixture()
def lifecycle_settings() -> LifecycleSettings:
    return LifecycleSettings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture()
def app(
    engine: Engine,
    session_factory: sessionmaker[Session],
    clock: Any,
    object_store: Any,
    lifecycle_settings: LifecycleSettings,
) -> Iterator[FastAPI]:
    """Application assembled from installed entry points, bound to the test database."""
    application = create_app(AppSettings(), exclude_groups=TEST_EXCLUDE_GROUPS)
    application.dependency_overrides[get_sync_session_factory] = lambda: session_factory
    application.dependency_overrides[get_clock] = lambda: clock
    application.dependency_overrides[get_object_store] = lambda: object_store
    application.dependency_overrides[get_lifecycle_settings] = lambda: lifecycle_settings
    with (
        patch(
            "clubkeep.infra.fastapi.middleware.deactivated_club.get_sync_session_factory",
            return_value=session_factory,
        ),
        patch("clubkeep.infra.fastapi.health.get_sync_engine", return_value=engine),
    ):
        yield application


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"X-User-ID": "admin-1"}
