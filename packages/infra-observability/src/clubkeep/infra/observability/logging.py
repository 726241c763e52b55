"""Structured logging configuration using structlog.

Domain and infrastructure modules log through the standard library
(``logging.getLogger(__name__)`` with event-style messages and ``extra``
context). :func:`configure_logging` routes those records through structlog's
``ProcessorFormatter`` so they render exactly like native structlog events:
- JSON output for production environments
- Console output with colors for development
- Request context (club slug, actor, correlation ID) merged from contextvars
- Sensitive data redaction

Usage:
    # During application or worker startup
    from clubkeep.infra.observability.logging import configure_logging
    configure_logging()

    # In application code
    logger = logging.getLogger(__name__)
    logger.info("club_deactivated", extra={"club_id": club.id})
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, Any, Literal

import structlog
from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import MutableMapping

Processor = structlog.types.Processor

SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {
        "password",
        "token",
        "authorization",
        "secret",
        "secret_access_key",
        "access_key_id",
        "credential",
        "confirmation_name",
    }
)

REDACTED_VALUE: str = "***REDACTED***"

_HANDLER_NAME = "clubkeep"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


class LoggingSettings(BaseSettings):
    """Log level (``LOG_LEVEL``) and deployment environment (``ENVIRONMENT``).

    Example:
        >>> LoggingSettings(environment="production").use_json_logs
        True
    """

    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)

    log_level: Annotated[LogLevel, BeforeValidator(_upper)] = Field(
        default="INFO", alias="LOG_LEVEL"
    )
    environment: str = Field(default="development", alias="ENVIRONMENT")

    @property
    def use_json_logs(self) -> bool:
        return self.environment == "production"

    @property
    def log_level_int(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]


class SensitiveDataProcessor:
    """Structlog processor that redacts sensitive fields from the event dict.

    A field is redacted when its lowercased name is listed in
    ``SENSITIVE_FIELDS`` or contains ``password``, ``token`` or ``secret``.

    Example:
        >>> SensitiveDataProcessor()(None, "info", {"password": "x"})["password"]
        '***REDACTED***'
    """

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key in list(event_dict.keys()):
            if self._is_sensitive(key):
                event_dict[key] = REDACTED_VALUE
        return event_dict

    def _is_sensitive(self, key: str) -> bool:
        key_lower = key.lower()
        if key_lower in SENSITIVE_FIELDS:
            return True
        return any(part in key_lower for part in ("password", "token", "secret"))


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached LoggingSettings instance.

    Clear cache with ``get_logging_settings.cache_clear()`` for testing.
    """
    return LoggingSettings()


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Configure structlog and bridge the standard library root logger.

    Installs a single named handler on the root logger whose
    ``ProcessorFormatter`` renders both structlog events and plain
    ``logging`` records (including their ``extra`` fields). Calling it again
    replaces the handler instead of stacking a second one.

    Args:
        settings: Optional LoggingSettings instance. If not provided,
            settings are loaded from environment variables.
    """
    if settings is None:
        settings = get_logging_settings()

    renderer: Processor
    if settings.use_json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            SensitiveDataProcessor(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            *_shared_processors(),
            structlog.stdlib.ExtraAdder(),
            SensitiveDataProcessor(),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(settings.log_level_int)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, optionally bound to a module name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("deletion_sweep_started", eligible=3)
    """
    return structlog.get_logger(name) if name is not None else structlog.get_logger()
