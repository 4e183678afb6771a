"""Application settings and configuration.

This module defines all configuration options for the HUD registry service.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SHARED_SECRET = "CHANGEME_SECRET"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="HUD Registry", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Request signing
    shared_secret: str = Field(default=DEFAULT_SHARED_SECRET, alias="SHARED_SECRET")
    sig_lenient_variants: bool = Field(default=True, alias="SIG_LENIENT_VARIANTS")
    sig_debug: bool = Field(default=False, alias="SIG_DEBUG")

    # Replay window (seconds of allowed clock drift)
    ts_drift_sec: int = Field(default=60, ge=0, alias="TS_DRIFT_SEC")

    # Fixed-window rate limiting per source address
    rate_per_min: int = Field(default=120, ge=1, alias="RATE_PER_MIN")
    scan_rate_per_min: int = Field(default=240, ge=1, alias="SCAN_RATE_PER_MIN")
    rate_window_seconds: int = Field(default=60, ge=1, alias="RATE_WINDOW_SECONDS")
    rate_max_buckets: int = Field(default=10_000, ge=1, alias="RATE_MAX_BUCKETS")
    rate_sweep_interval_seconds: int = Field(
        default=300,
        ge=1,
        alias="RATE_SWEEP_INTERVAL_SECONDS",
    )

    # Registry
    registry_backend: Literal["memory", "sql"] = Field(default="memory", alias="REGISTRY_BACKEND")
    scan_max_targets: int = Field(default=50, ge=1, alias="SCAN_MAX_TARGETS")
    default_affiliation: str = Field(default="MC Grid Wide", alias="DEFAULT_AFFILIATION")
    default_rank: str = Field(default="Prospect", alias="DEFAULT_RANK")

    # Database configuration (persisted registry variant)
    database_url: str = Field(default="sqlite:///./hud_registry.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # CORS configuration for in-world browser surfaces
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "X-Sig", "X-Auth"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def uses_default_secret(self) -> bool:
        """Return True while the shipped placeholder secret is still configured."""
        return self.shared_secret == DEFAULT_SHARED_SECRET

    @property
    def rate_limits(self) -> dict[str, int]:
        """Return per-bucket request limits keyed by limiter name."""
        return {
            "register": self.rate_per_min,
            "scan": self.scan_rate_per_min,
        }


settings = Settings()
