"""FastAPI providers for the club lifecycle services."""

# NOTE: Do NOT use ``from __future__ import annotations`` here.
# FastAPI resolves dependency parameters from runtime annotations.

from typing import Annotated

from fastapi import Depends

from clubkeep.domain.tenancy.deletion import PermanentDeletionOrchestrator
from clubkeep.domain.tenancy.lifecycle import ClubLifecycleService
from clubkeep.domain.tenancy.settings import LifecycleSettings, get_lifecycle_settings
from clubkeep.foundation.domain.ports import ObjectStorePort
from clubkeep.infra.fastapi.dependencies import Clock
from clubkeep.infra.persistence.database import SessionFactory
from clubkeep.infra.storage import get_object_store

Settings = Annotated[LifecycleSettings, Depends(get_lifecycle_settings)]
ObjectStore = Annotated[ObjectStorePort, Depends(get_object_store)]


def get_deletion_orchestrator(
    session_factory: SessionFactory,
    object_store: ObjectStore,
    clock: Clock,
    settings: Settings,
) -> PermanentDeletionOrchestrator:
    return PermanentDeletionOrchestrator(
        session_factory, object_store, clock, system_actor_id=settings.system_actor_id
    )


def get_lifecycle_service(
    session_factory: SessionFactory,
    clock: Clock,
    orchestrator: Annotated[PermanentDeletionOrchestrator, Depends(get_deletion_orchestrator)],
    settings: Settings,
) -> ClubLifecycleService:
    return ClubLifecycleService(session_factory, clock, orchestrator=orchestrator, settings=settings)


Lifecycle = Annotated[ClubLifecycleService, Depends(get_lifecycle_service)]
