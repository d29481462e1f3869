"""Application configuration and environment helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

DEFAULT_DATABASE_URL = "postgresql+asyncpg://localhost:5432/portfolio"
POLYGON_BASE_URL = "https://api.polygon.io"

_ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


class AppSettings(BaseSettings):
    """Configuration options for the portfolio metrics service."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Portfolio Metrics Engine")

    db_url: str = Field(default=DEFAULT_DATABASE_URL, description="Database URL, JDBC style accepted.")
    db_user: str | None = Field(default=None)
    db_pass: str | None = Field(default=None)

    polygon_api_key: str = Field(default="", description="Polygon.io key, also the manual ingest secret.")
    polygon_base_url: str = Field(default=POLYGON_BASE_URL)
    polygon_timeout_seconds: float = Field(default=15.0, gt=0)

    ingest_ticker_limit: int = Field(default=50, gt=0)
    ingest_delay_seconds: float = Field(default=12.0, ge=0)
    price_retention_days: int = Field(default=365, gt=0)
    ingest_schedule_enabled: bool = Field(default=True)
    ingest_cron_hour: int = Field(default=6, ge=0, le=23)
    ingest_cron_minute: int = Field(default=5, ge=0, le=59)

    var_simulations: int = Field(default=10_000, gt=0)
    var_confidence: float = Field(default=0.95, gt=0.0, lt=1.0)

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="portfolio-metrics")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    @property
    def database_url(self) -> str:
        """SQLAlchemy async URL assembled from ``DB_URL``, ``DB_USER`` and ``DB_PASS``."""

        raw = self.db_url.strip()
        if raw.startswith("jdbc:"):
            raw = raw[len("jdbc:") :]
        url = make_url(raw)
        if url.drivername in _ASYNC_DRIVERS:
            url = url.set(drivername=_ASYNC_DRIVERS[url.drivername])
        if not url.drivername.startswith("sqlite"):
            if self.db_user:
                url = url.set(username=self.db_user)
            if self.db_pass:
                url = url.set(password=self.db_pass)
        return url.render_as_string(hide_password=False)

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        hidden = {"polygon_api_key", "db_pass"}
        return {k: ("***" if k in hidden and v else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> AppSettings:
    """Return cached application settings with optional overrides."""

    if overrides:
        return AppSettings(**overrides)
    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_DATABASE_URL",
    "POLYGON_BASE_URL",
    "get_settings",
]
