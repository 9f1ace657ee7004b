"""Configuration models."""

from __future__ import annotations

from datetime import timedelta
from urllib.parse import urlparse

from pydantic import BaseModel, Field, SecretStr, field_validator


class RetryPolicy(BaseModel):
    """Configures retry behaviour for idempotent store reads."""

    max_retries: int = Field(default=3, ge=0)
    base_delay_seconds: float = Field(default=1.0, gt=0.0)
    max_delay_seconds: float = Field(default=60.0, gt=0.0)
    exponential_base: float = Field(default=2.0, gt=0.0)


class HousekeepingConfig(BaseModel):
    """Polling and alert thresholds for the housekeeping engine."""

    poll_interval_seconds: float = Field(default=30.0, gt=0.0)
    overdue_after_minutes: int = Field(default=120, gt=0)
    recent_completion_minutes: int = Field(default=30, gt=0)
    max_alerts: int = Field(default=10, gt=0)

    @property
    def overdue_after(self) -> timedelta:
        return timedelta(minutes=self.overdue_after_minutes)

    @property
    def recent_window(self) -> timedelta:
        return timedelta(minutes=self.recent_completion_minutes)


class GraphQLStoreConfig(BaseModel):
    """Configuration for the GraphQL task store client."""

    endpoint: str
    token: SecretStr | None = None
    timeout: float = Field(default=30.0, gt=0.0)
    headers: dict[str, str] = Field(default_factory=dict)
    read_retry: RetryPolicy | None = None

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        parsed = urlparse(v)
        if not parsed.scheme or not parsed.hostname:
            raise ValueError("endpoint must be a valid URL with scheme and host")
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"endpoint scheme must be http or https, got {parsed.scheme!r}")
        return v
