"""
Webhook processing pipeline.

raw body + signature header -> signature check -> JSON decode -> schema
validation -> VerificationResult. Dispatch and freshness are separate steps.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, NoReturn

from transvoucher.core.exceptions import (
    PayloadDecodeError,
    SchemaViolationError,
    SignatureFormatError,
    SignatureMismatchError,
    StaleEventError,
    WebhookError,
)
from transvoucher.core.logging import get_logger
from transvoucher.webhooks import signature as codec
from transvoucher.webhooks.events import (
    EventType,
    RawNotification,
    VerificationResult,
    WebhookEvent,
)
from transvoucher.webhooks.freshness import FreshnessChecker
from transvoucher.webhooks.router import EventHandler, EventRouter, HandlerTable
from transvoucher.webhooks.validator import EventValidator


class WebhookOutcome(Enum):
    """What the transport should answer the sender."""

    ACCEPTED = 200
    REJECTED = 400
    SERVER_ERROR = 500

    @property
    def status_code(self) -> int:
        return self.value

    def body(self) -> dict[str, Any]:
        """Sender-facing body. Carries no rejection detail."""
        if self is WebhookOutcome.ACCEPTED:
            return {"received": True}
        if self is WebhookOutcome.REJECTED:
            return {"error": "Invalid webhook"}
        return {"error": "Webhook processing failed"}


def _reject_constant(name: str) -> NoReturn:
    raise ValueError(f"Unsupported JSON constant: {name}")


def decode_payload(raw_body: bytes | str) -> Any:
    """
    Decode an authenticated body.

    Floats become Decimal; NaN and Infinity are rejected.

    Raises:
        PayloadDecodeError: If the body is not valid UTF-8 JSON
    """
    try:
        text = raw_body.decode("utf-8") if isinstance(raw_body, bytes) else raw_body
        return json.loads(text, parse_float=Decimal, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise PayloadDecodeError(f"Invalid JSON payload: {type(e).__name__}") from e


class WebhookPipeline:
    """
    Framework-agnostic webhook verifier.

    Authenticates raw payloads and converts them into strictly typed events.
    Does NOT handle HTTP transport - that is the application's responsibility.

    Example:
        >>> pipeline = WebhookPipeline(secret, handlers={
        ...     EventType.SUCCEEDED: credit_account,
        ... })
        >>> result = pipeline.process(request.body, request.headers["X-Signature"])
        >>> if result:
        ...     await pipeline.dispatch(result.event)
    """

    def __init__(
        self,
        secret: str | bytes,
        handlers: HandlerTable | Mapping[EventType | str, EventHandler] | None = None,
        freshness: FreshnessChecker | None = None,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            secret: Shared webhook secret
            handlers: Handlers keyed by event type, fixed from here on
            freshness: Replay-window policy used by handle(); None disables it
        """
        if not secret:
            raise ValueError("Webhook secret is required")
        self._secret = secret
        self.router = EventRouter(handlers)
        self.validator = EventValidator()
        self.freshness = freshness
        self._logger = get_logger("webhooks")

    def __repr__(self) -> str:
        return f"WebhookPipeline(handlers={self.router.handlers!r}, freshness={self.freshness!r})"

    def process(
        self, raw_body: bytes | str, signature_header: str | bytes | None
    ) -> VerificationResult:
        """
        Authenticate, decode and validate one notification.

        Expected rejections are returned, not raised.

        Args:
            raw_body: Exact request body bytes
            signature_header: Value of the signature header, if any

        Returns:
            VerificationResult holding either the event or the classified error
        """
        try:
            signature = codec.extract_signature(signature_header)
        except SignatureFormatError as e:
            return self._reject(e)

        if not codec.matches(self._secret, raw_body, signature):
            # Unauthenticated bodies are never parsed
            return self._reject(SignatureMismatchError())

        try:
            decoded = decode_payload(raw_body)
        except PayloadDecodeError as e:
            return self._reject(e)

        try:
            event = self.validator.validate(decoded)
        except SchemaViolationError as e:
            return self._reject(e)

        self._logger.debug(
            f"Verified {event.event_type.value} for transaction {event.transaction.id}"
        )
        return VerificationResult.valid(event)

    async def dispatch(self, event: WebhookEvent) -> bool:
        """Run the handler registered for the event type, if any."""
        return await self.router.dispatch(event)

    def is_recent(self, event: WebhookEvent) -> bool:
        """Freshness check using the configured checker or the 300s default."""
        checker = self.freshness or FreshnessChecker()
        return checker.check(event)

    async def handle(self, notification: RawNotification) -> WebhookOutcome:
        """
        Process and dispatch a notification in one call.

        Handler exceptions propagate; the transport should answer them with
        WebhookOutcome.SERVER_ERROR.
        """
        result = self.process(notification.body, notification.signature_header)
        if result.event is None:
            return WebhookOutcome.REJECTED

        if self.freshness is not None and not self.freshness.check(result.event):
            self._reject(StaleEventError())
            return WebhookOutcome.REJECTED

        await self.dispatch(result.event)
        return WebhookOutcome.ACCEPTED

    def _reject(self, error: WebhookError) -> VerificationResult:
        self._logger.warning(f"Webhook rejected: {error.reason}")
        return VerificationResult.invalid(error)


def create_handler(
    secret: str | bytes,
    handlers: Mapping[EventType | str, EventHandler],
) -> Callable[[bytes | str, str | None], Awaitable[WebhookEvent]]:
    """
    Build a single callable that verifies and dispatches notifications.

    The returned coroutine function raises the classified WebhookError for
    rejected notifications and returns the dispatched event otherwise.
    """
    pipeline = WebhookPipeline(secret, handlers)

    async def handle(payload: bytes | str, signature: str | bytes | None) -> WebhookEvent:
        event = pipeline.process(payload, signature).raise_for_error()
        await pipeline.dispatch(event)
        return event

    return handle
