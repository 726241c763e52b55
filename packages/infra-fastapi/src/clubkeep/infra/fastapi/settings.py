"""Settings consumed by :func:`clubkeep.infra.fastapi.create_app`."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from typing import Annotated, Any

from pydantic import BeforeValidator, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: Any) -> Any:
    """Accept ``"a, b"`` from the environment as ``["a", "b"]``."""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


CsvList = Annotated[list[str], BeforeValidator(_split_csv)]


class CORSSettings(BaseSettings):
    """CORS policy (``CORS_`` prefix).

    List fields take comma-separated strings, e.g.
    ``CORS_ALLOW_ORIGINS=https://admin.example,https://app.example``. The
    correlation header is exposed so browser clients can quote it when
    reporting a failed request.
    """

    model_config = SettingsConfigDict(env_prefix="CORS_", extra="ignore")

    allow_origins: CsvList = Field(default_factory=lambda: ["*"])
    allow_methods: CsvList = Field(default_factory=lambda: ["*"])
    allow_headers: CsvList = Field(default_factory=lambda: ["*"])
    expose_headers: CsvList = Field(default_factory=lambda: ["X-Correlation-ID"])
    allow_credentials: bool = False

    @model_validator(mode="after")
    def _reject_credentials_for_any_origin(self) -> CORSSettings:
        if self.allow_credentials and "*" in self.allow_origins:
            msg = "allow_credentials=True needs explicit origins, not '*'"
            raise ValueError(msg)
        return self


def _installed_version() -> str:
    try:
        return version("clubkeep")
    except PackageNotFoundError:
        return "0.0.0"


class AppSettings(BaseSettings):
    """Application settings (``APP_`` prefix).

    Attributes:
        exclude_groups: Entry-point groups :func:`create_app` skips, e.g.
            ``{"clubkeep.lifespan"}`` for a process without a database.
        exclude_entry_points: Entry-point names skipped in every group.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    title: str = "Clubkeep"
    version: str = Field(default_factory=_installed_version)
    description: str = "Membership and club lifecycle service"
    docs_url: str | None = "/docs"
    redoc_url: str | None = "/redoc"
    openapi_url: str | None = "/openapi.json"
    debug: bool = False
    cors: CORSSettings = Field(default_factory=CORSSettings)
    exclude_groups: frozenset[str] = frozenset()
    exclude_entry_points: frozenset[str] = frozenset()
