"""FastAPI providers for the membership services."""

# NOTE: Do NOT use ``from __future__ import annotations`` here.
# FastAPI resolves dependency parameters from runtime annotations.

from typing import Annotated

from fastapi import Depends

from clubkeep.domain.membership.member_service import MemberService
from clubkeep.domain.membership.status_service import MemberStatusService
from clubkeep.infra.fastapi.dependencies import Clock
from clubkeep.infra.persistence.database import SessionFactory


def get_member_status_service(session_factory: SessionFactory, clock: Clock) -> MemberStatusService:
    return MemberStatusService(session_factory, clock)


def get_member_service(session_factory: SessionFactory, clock: Clock) -> MemberService:
    return MemberService(session_factory, clock)


StatusService = Annotated[MemberStatusService, Depends(get_member_status_service)]
Members = Annotated[MemberService, Depends(get_member_service)]
