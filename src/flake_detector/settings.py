"""
Pydantic Settings for environment configuration.

This module provides type-safe environment variable loading and validation
for the flake detector CLI.
"""

from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .types import DEFAULT_QUERIES


def _split_csv(value: object) -> object:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class InfluxDBSettings(BaseSettings):
    """Amazon Timestream for InfluxDB 3 configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    influxdb_url: str | None = Field(
        default=None,
        description="InfluxDB endpoint URL (e.g., https://xxx.timestream-influxdb3.us-east-1.on.aws:8086)",
    )
    influxdb_token: str | None = Field(default=None, description="InfluxDB authentication token")
    influxdb_org: str = Field(default="default", description="InfluxDB organization name")
    influxdb_database: str = Field(
        default="rpc-flakiness",
        description="InfluxDB database/bucket name",
    )


class FlakeDetectorSettings(BaseSettings):
    """Flake detector configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Targets
    endpoints: Annotated[list[str], NoDecode] = Field(
        default_factory=list, description="Comma-separated RPC endpoints to test"
    )
    queries: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_QUERIES),
        description="Comma-separated RPC queries to test",
    )

    # Probing parameters
    duration_secs: float = Field(default=60.0, gt=0, description="Test duration in seconds")
    concurrency: int = Field(default=10, ge=0, le=1000, description="Concurrent workers per query")
    timeout_secs: float = Field(default=5.0, gt=0, le=300, description="Request timeout in seconds")
    cooldown_ms: int = Field(
        default=100, ge=0, le=5000, description="Cooldown between requests in milliseconds"
    )
    max_workers: int = Field(default=1000, ge=1, description="Cap on concurrently active workers")
    location_id: str | None = Field(default=None, description="Deployment location identifier")

    # InfluxDB
    influxdb: InfluxDBSettings = Field(default_factory=InfluxDBSettings)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("endpoints", "queries", mode="before")
    @classmethod
    def split_comma_separated(cls, value: object) -> object:
        return _split_csv(value)
