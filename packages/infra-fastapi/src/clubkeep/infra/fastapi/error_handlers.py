"""RFC 7807 Problem Details exception handlers for FastAPI.

Translates the domain exception hierarchy into ``application/problem+json``
responses:

- ``NotFoundError`` -> 404
- ``ValidationError`` and request body validation -> 422
- ``InvalidStateTransitionError`` -> 409 with the allowed next states
- ``ConflictError`` (including ``NotEligibleError``) -> 409
- any other ``DomainError`` -> 400
- anything else -> 500 with a correlation id and no internal details

Usage:
    from clubkeep.infra.fastapi.error_handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from clubkeep.foundation.application.context import get_optional_context
from clubkeep.foundation.domain.exceptions import (
    ConflictError,
    DomainError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


class ProblemDetail(BaseModel):
    """RFC 7807 body with clubkeep extensions.

    ``error_code`` and ``context`` come from the domain exception;
    ``correlation_id`` is only set on 500 responses.
    """

    type: str = Field(examples=["/errors/not-found", "/errors/invalid-state-transition"])
    title: str
    status: int = Field(ge=400, le=599)
    detail: str
    instance: str | None = None
    error_code: str | None = Field(
        default=None, examples=["RESOURCE_NOT_FOUND", "CLUB_DEACTIVATED"]
    )
    context: dict[str, Any] | None = None
    correlation_id: str | None = None


_SENSITIVE_KEYS = frozenset({"password", "secret", "token", "api_key", "apikey", "credential"})

_SENSITIVE_PATTERNS = [
    (re.compile(r"postgresql(\+\w+)?://[^@]*@[^/\s]*"), "postgresql://[REDACTED]@[REDACTED]"),
    *(
        (re.compile(rf"{word}\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), f"{word}=[REDACTED]")
        for word in ("password", "secret", "token")
    ),
]


def _create_problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


def _get_correlation_id(request: Request) -> str:
    """Resolve the correlation ID for an error response.

    The catch-all handler runs outside the middleware stack, after the
    request context has been reset, so the ID stashed on the request state
    by the request context middleware is consulted first.
    """
    correlation_id = getattr(request.state, "correlation_id", None)
    if correlation_id:
        return str(correlation_id)
    ctx = get_optional_context()
    if ctx is not None:
        return ctx.correlation_id
    return request.headers.get("x-correlation-id") or "unknown"


def _sanitize_context(context: dict[str, Any] | None) -> dict[str, Any] | None:
    """Make an exception context safe and serializable for a response body.

    Sensitive keys are dropped, UUIDs and dates become strings, and
    connection strings or credentials inside string values are redacted.
    """
    if context is None:
        return None

    sanitized = {
        key: _sanitize_value(value)
        for key, value in context.items()
        if key.lower() not in _SENSITIVE_KEYS
    }
    return sanitized or None


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        return _redact_sensitive_strings(value)
    if isinstance(value, dict):
        return _sanitize_context(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_sanitize_value(v) for v in value]
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def _redact_sensitive_strings(text: str) -> str:
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def _domain_problem(
    request: Request,
    exc: DomainError,
    *,
    type_: str,
    title: str,
    status: int,
) -> JSONResponse:
    problem = ProblemDetail(
        type=type_,
        title=title,
        status=status,
        detail=exc.message,
        instance=str(request.url.path),
        error_code=exc.error_code,
        context=_sanitize_context(exc.context),
    )
    return _create_problem_response(problem)


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Translate NotFoundError to 404."""
    return _domain_problem(
        request, exc, type_="/errors/not-found", title="Resource Not Found", status=404
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Translate ValidationError to 422 with the offending field in the context."""
    return _domain_problem(
        request, exc, type_="/errors/validation-error", title="Validation Error", status=422
    )


async def invalid_transition_handler(
    request: Request,
    exc: InvalidStateTransitionError,
) -> JSONResponse:
    """Translate InvalidStateTransitionError to 409.

    The ``allowed`` next states travel in the context so clients can offer
    only valid follow-up actions.
    """
    return _domain_problem(
        request,
        exc,
        type_="/errors/invalid-state-transition",
        title="Invalid State Transition",
        status=409,
    )


async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """Translate ConflictError to 409 with conflict context."""
    return _domain_problem(request, exc, type_="/errors/conflict", title="Conflict", status=409)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Fallback for domain errors without a more specific handler."""
    return _domain_problem(
        request, exc, type_="/errors/domain-error", title="Bad Request", status=400
    )


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Translate FastAPI request validation failures to 422."""
    errors = [
        {
            "loc": list(error.get("loc", [])),
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    problem = ProblemDetail(
        type="/errors/request-validation-error",
        title="Request Validation Error",
        status=422,
        detail="Request validation failed",
        instance=str(request.url.path),
        error_code="REQUEST_VALIDATION_ERROR",
        context={"errors": errors},
    )
    return _create_problem_response(problem)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unhandled exceptions.

    Logs the full exception but returns a sanitized body carrying only the
    correlation ID. In debug mode the exception type and message are included.
    """
    correlation_id = _get_correlation_id(request)

    logger.exception(
        "unhandled_exception",
        extra={
            "correlation_id": correlation_id,
            "path": str(request.url.path),
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )

    if getattr(request.app, "debug", False):
        detail = f"{type(exc).__name__}: {exc}"
        context: dict[str, Any] | None = {"exception_type": type(exc).__name__}
    else:
        detail = "An internal error occurred. Please contact support with the correlation ID."
        context = None

    problem = ProblemDetail(
        type="/errors/internal-error",
        title="Internal Server Error",
        status=500,
        detail=detail,
        instance=str(request.url.path),
        error_code="INTERNAL_ERROR",
        context=context,
        correlation_id=correlation_id,
    )
    return _create_problem_response(problem)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on a FastAPI application.

    Starlette resolves handlers along the exception's MRO, so subclasses
    get their own handler even though the base class is registered too.

    Args:
        app: FastAPI application instance.
    """
    # Starlette's handler typing is narrower than the per-exception handlers.
    app.add_exception_handler(NotFoundError, not_found_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        InvalidStateTransitionError,
        invalid_transition_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(ConflictError, conflict_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        request_validation_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
