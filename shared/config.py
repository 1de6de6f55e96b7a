"""
Shared configuration management for the traffic proxy.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_UPSTREAM_BASE_URL = "https://trafficnz.info/service/traffic/rest/4"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias=AliasChoices("TRAFFIC_ENV", "env"))
    log_level: str = Field(default="info", validation_alias=AliasChoices("TRAFFIC_LOG_LEVEL", "log_level"))

    # Listener
    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("TRAFFIC_HOST", "host"))
    port: int = Field(default=3000, validation_alias=AliasChoices("TRAFFIC_PORT", "PORT", "port"))

    # Upstream
    upstream_base_url: str = Field(
        default=DEFAULT_UPSTREAM_BASE_URL,
        validation_alias=AliasChoices("TRAFFIC_UPSTREAM_BASE_URL", "NZTABASE", "upstream_base_url"),
    )
    request_timeout_ms: int = Field(
        default=8000,
        gt=0,
        validation_alias=AliasChoices("TRAFFIC_REQUEST_TIMEOUT_MS", "REQUESTTIMEOUTMS", "request_timeout_ms"),
    )
    concurrency: int = Field(
        default=6,
        ge=1,
        validation_alias=AliasChoices("TRAFFIC_CONCURRENCY", "CONCURRENCY", "concurrency"),
    )

    # Caching
    cache_ttl_seconds: int = Field(
        default=30,
        gt=0,
        validation_alias=AliasChoices("TRAFFIC_CACHE_TTL_SECONDS", "CACHETTL", "cache_ttl_seconds"),
    )
    stale_ttl_multiplier: int = Field(
        default=10,
        ge=1,
        validation_alias=AliasChoices("TRAFFIC_STALE_TTL_MULTIPLIER", "stale_ttl_multiplier"),
    )
    cache_sweep_interval_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("TRAFFIC_CACHE_SWEEP_INTERVAL_SECONDS", "cache_sweep_interval_seconds"),
    )

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000.0

    @property
    def stale_ttl_seconds(self) -> int:
        return self.cache_ttl_seconds * self.stale_ttl_multiplier

    @property
    def sweep_interval_seconds(self) -> float:
        """Period of the expired-entry sweep; half the fresh TTL unless configured."""
        if self.cache_sweep_interval_seconds is not None:
            return self.cache_sweep_interval_seconds
        return self.cache_ttl_seconds / 2


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
