"""
Configuration management for the TransVoucher SDK.

Handles loading configuration from environment variables and validation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import urlparse

from transvoucher.core.exceptions import ConfigurationError
from transvoucher.core.types import Environment

MIN_CREDENTIAL_LENGTH = 10

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default."""
    value = os.environ.get(name, default)
    if required and not value:
        raise ConfigurationError(f"Required environment variable {name} is not set")
    return value


def _is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class Config:
    """SDK configuration."""

    api_key: str = field(repr=False)
    api_secret: str = field(repr=False)
    environment: Environment = Environment.SANDBOX
    base_url: str | None = None
    # HTTP client timeout in seconds
    timeout: float = 30.0

    # Shared secret for webhook signatures
    webhook_secret: str | None = field(default=None, repr=False)
    # Freshness window for webhook timestamps (seconds)
    webhook_tolerance: int = 300

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        errors: dict[str, list[str]] = {}

        if not self.api_key:
            errors["api_key"] = ["API key is required"]
        elif not isinstance(self.api_key, str):
            errors["api_key"] = ["API key must be a string"]
        elif len(self.api_key.strip()) < MIN_CREDENTIAL_LENGTH:
            errors["api_key"] = ["API key format is invalid"]

        if not self.api_secret:
            errors["api_secret"] = ["API secret is required"]
        elif not isinstance(self.api_secret, str):
            errors["api_secret"] = ["API secret must be a string"]
        elif len(self.api_secret.strip()) < MIN_CREDENTIAL_LENGTH:
            errors["api_secret"] = ["API secret format is invalid"]

        if not isinstance(self.environment, Environment):
            errors["environment"] = ['Environment must be either "sandbox" or "production"']

        if self.base_url and not _is_valid_url(self.base_url):
            errors["base_url"] = ["Base URL must be a valid URL"]

        if (
            isinstance(self.timeout, bool)
            or not isinstance(self.timeout, (int, float))
            or self.timeout <= 0
        ):
            errors["timeout"] = ["Timeout must be a positive number"]

        if (
            isinstance(self.webhook_tolerance, bool)
            or not isinstance(self.webhook_tolerance, int)
            or self.webhook_tolerance <= 0
        ):
            errors["webhook_tolerance"] = ["Webhook tolerance must be a positive integer"]

        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            errors["log_level"] = [f"Log level must be one of: {', '.join(LOG_LEVELS)}"]

        if errors:
            raise ConfigurationError("Invalid configuration", details=errors)

    @property
    def resolved_base_url(self) -> str:
        """Base URL for API calls: explicit override or the environment default."""
        return (self.base_url or self.environment.base_url).rstrip("/")

    @classmethod
    def from_env(cls, **overrides: Any) -> Config:
        """Load configuration from environment variables."""
        api_key = overrides.get("api_key") or _get_env_var("TRANSVOUCHER_API_KEY", required=True)
        api_secret = overrides.get("api_secret") or _get_env_var(
            "TRANSVOUCHER_API_SECRET", required=True
        )

        env_value = overrides.get("environment") or _get_env_var(
            "TRANSVOUCHER_ENV", default="sandbox"
        )
        try:
            environment = (
                Environment.from_string(env_value) if isinstance(env_value, str) else env_value
            )
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        timeout_value = overrides.get("timeout") or _get_env_var("TRANSVOUCHER_TIMEOUT")
        tolerance_value = overrides.get("webhook_tolerance") or _get_env_var(
            "TRANSVOUCHER_WEBHOOK_TOLERANCE"
        )
        try:
            timeout = float(timeout_value) if timeout_value is not None else cls.timeout
            webhook_tolerance = (
                int(tolerance_value) if tolerance_value is not None else cls.webhook_tolerance
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid numeric configuration value: {e}") from e

        return cls(
            api_key=api_key,  # type: ignore
            api_secret=api_secret,  # type: ignore
            environment=environment,
            base_url=overrides.get("base_url") or _get_env_var("TRANSVOUCHER_BASE_URL"),
            timeout=timeout,
            webhook_secret=overrides.get("webhook_secret")
            or _get_env_var("TRANSVOUCHER_WEBHOOK_SECRET"),
            webhook_tolerance=webhook_tolerance,
            log_level=overrides.get("log_level")
            or _get_env_var("TRANSVOUCHER_LOG_LEVEL", default="INFO"),  # type: ignore
        )

    def with_updates(self, **updates: Any) -> Config:
        """Create a new Config with updated values (re-validated)."""
        return replace(self, **updates)

    def masked_api_key(self) -> str:
        """Return API key with most characters masked for safe logging."""
        if len(self.api_key) <= 8:
            return "****"
        return self.api_key[:4] + "..." + self.api_key[-4:]
