"""
TransVoucher client - entry point of the SDK.

Bundles configuration, the authenticated HTTP client, payment operations and
webhook pipelines built from the same configuration.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from transvoucher.core.config import Config
from transvoucher.core.exceptions import ConfigurationError
from transvoucher.core.http_client import HttpClient
from transvoucher.core.logging import configure_logging, get_logger
from transvoucher.core.types import Environment
from transvoucher.payments.service import PaymentService
from transvoucher.webhooks.events import EventType
from transvoucher.webhooks.freshness import FreshnessChecker
from transvoucher.webhooks.pipeline import WebhookPipeline
from transvoucher.webhooks.router import EventHandler


class TransVoucher:
    """
    Main client for the TransVoucher API.

    Example:
        >>> async with TransVoucher.sandbox("api-key-...", "api-secret-...") as tv:
        ...     payment = await tv.payments.get_transaction_status("tx_123")
        ...     print(payment.is_completed())
    """

    def __init__(
        self,
        config: Config | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **overrides: Any,
    ) -> None:
        """
        Initialize client.

        Args:
            config: Explicit configuration; loaded from the environment if None
            transport: Optional httpx transport, mainly for tests
            **overrides: Values passed to Config.from_env when config is None
        """
        self._config = config or Config.from_env(**overrides)

        configure_logging(
            level=self._config.log_level.upper(),
            secrets=(
                self._config.api_key,
                self._config.api_secret,
                self._config.webhook_secret or "",
            ),
        )
        self._logger = get_logger("client")

        self._http = HttpClient(self._config, transport=transport)
        self.payments = PaymentService(self._http)
        self._logger.debug(
            f"Client ready ({self._config.environment.value}, key {self._config.masked_api_key()})"
        )

    @classmethod
    def sandbox(cls, api_key: str, api_secret: str, **options: Any) -> TransVoucher:
        """Create a client for the sandbox environment."""
        transport = options.pop("transport", None)
        config = Config(
            api_key=api_key, api_secret=api_secret, environment=Environment.SANDBOX, **options
        )
        return cls(config, transport=transport)

    @classmethod
    def production(cls, api_key: str, api_secret: str, **options: Any) -> TransVoucher:
        """Create a client for the production environment."""
        transport = options.pop("transport", None)
        config = Config(
            api_key=api_key, api_secret=api_secret, environment=Environment.PRODUCTION, **options
        )
        return cls(config, transport=transport)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def environment(self) -> Environment:
        return self._config.environment

    @property
    def base_url(self) -> str:
        return self._http.base_url

    def is_sandbox(self) -> bool:
        return self._config.environment is Environment.SANDBOX

    def is_production(self) -> bool:
        return self._config.environment is Environment.PRODUCTION

    def webhook_pipeline(
        self,
        handlers: Mapping[EventType | str, EventHandler] | None = None,
        check_freshness: bool = False,
        secret: str | bytes | None = None,
    ) -> WebhookPipeline:
        """
        Build a webhook pipeline from this client's configuration.

        Args:
            handlers: Handlers keyed by event type
            check_freshness: Enforce config.webhook_tolerance in handle()
            secret: Override for config.webhook_secret

        Raises:
            ConfigurationError: If no webhook secret is available
        """
        secret = secret or self._config.webhook_secret
        if not secret:
            raise ConfigurationError(
                "Webhook secret is not configured (set TRANSVOUCHER_WEBHOOK_SECRET)"
            )
        freshness = (
            FreshnessChecker(tolerance_seconds=self._config.webhook_tolerance)
            if check_freshness
            else None
        )
        return WebhookPipeline(secret, handlers=handlers, freshness=freshness)

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> TransVoucher:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
