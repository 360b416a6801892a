from __future__ import annotations

import structlog
from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tripwire.circuit_breaker import CircuitBreakerConfig
from tripwire.logging import configure_structlog, get_log_level_value


def prefixed_settings_config(prefix: str) -> SettingsConfigDict:
    """Build standard Pydantic settings config for prefixed environments."""
    return SettingsConfigDict(env_prefix=prefix, case_sensitive=False)


class BreakerSettings(BaseSettings):
    """Environment-driven defaults for circuit breakers and their logging."""

    model_config = prefixed_settings_config("TRIPWIRE_")

    recovery_timeout: float = 30.0
    max_failures: int = 5
    rolling_window: float = 15.0
    trip_on_cancellation: bool = False
    group: str | None = None
    log_level: str = "INFO"

    @field_validator("group", mode="before")
    @classmethod
    def _normalize_group(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip()
            return normalized or None
        return value

    @field_validator("recovery_timeout", "rolling_window")
    @classmethod
    def _validate_non_negative_seconds(
        cls, value: float, info: ValidationInfo
    ) -> float:
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        get_log_level_value(value)
        return value.strip().upper()

    def to_config(self, name: str) -> CircuitBreakerConfig:
        """Build a breaker config named ``name`` from these settings."""
        return CircuitBreakerConfig(
            name=name,
            group=self.group,
            recovery_timeout=self.recovery_timeout,
            max_failures=self.max_failures,
            rolling_window=self.rolling_window,
            trip_on_cancellation=self.trip_on_cancellation,
        )

    def configure_logging(self) -> structlog.stdlib.BoundLogger:
        """Configure structlog at ``log_level`` and return the root logger."""
        return configure_structlog(log_level=self.log_level)
