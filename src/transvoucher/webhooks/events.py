"""
Webhook event types.

A WebhookEvent is only ever built by EventValidator; handlers never see the
raw decoded payload.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from transvoucher.core.exceptions import WebhookError

SIGNATURE_HEADERS = ("x-transvoucher-signature", "x-signature", "signature")


class EventType(str, Enum):
    """Payment lifecycle transitions reported by webhooks."""

    CREATED = "payment_intent.created"
    ATTEMPTING = "payment_intent.attempting"
    PROCESSING = "payment_intent.processing"
    SUCCEEDED = "payment_intent.succeeded"
    FAILED = "payment_intent.failed"
    CANCELLED = "payment_intent.cancelled"
    EXPIRED = "payment_intent.expired"

    @classmethod
    def values(cls) -> frozenset[str]:
        return frozenset(member.value for member in cls)


@dataclass(frozen=True)
class TransactionRecord:
    """The transaction a webhook reports on."""

    id: str
    commodity_amount: Decimal
    commodity: str
    status: str
    # Every other transaction field, as received
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WebhookEventData:
    """The ``data`` object of a webhook event."""

    transaction: TransactionRecord
    payment_link_id: Any = None
    sales_channel: dict[str, Any] | None = None
    merchant: dict[str, Any] | None = None
    payment_details: dict[str, Any] | None = None
    customer_details: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    fail_reason: Any = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WebhookEvent:
    """
    A verified and validated webhook event.

    Attributes:
        event_type: Which lifecycle transition occurred
        timestamp: ISO-8601 timestamp as sent by the processor
        data: Transaction and related records
    """

    event_type: EventType
    timestamp: str
    data: WebhookEventData

    @property
    def transaction(self) -> TransactionRecord:
        return self.data.transaction


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of WebhookPipeline.process.

    Exactly one of ``event`` and ``error`` is set.
    """

    event: WebhookEvent | None = None
    error: WebhookError | None = None

    def __post_init__(self) -> None:
        if (self.event is None) == (self.error is None):
            raise ValueError("VerificationResult needs exactly one of event or error")

    @classmethod
    def valid(cls, event: WebhookEvent) -> VerificationResult:
        return cls(event=event)

    @classmethod
    def invalid(cls, error: WebhookError) -> VerificationResult:
        return cls(error=error)

    @property
    def is_valid(self) -> bool:
        return self.event is not None

    @property
    def reason(self) -> str | None:
        """Machine-readable rejection reason, None when valid."""
        return self.error.reason if self.error is not None else None

    def raise_for_error(self) -> WebhookEvent:
        """Return the event, or raise the classified rejection."""
        if self.error is not None:
            raise self.error
        assert self.event is not None
        return self.event

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.is_valid


@dataclass(frozen=True)
class RawNotification:
    """An inbound notification exactly as the transport received it."""

    body: bytes
    signature_header: str | None = None

    @classmethod
    def from_headers(cls, body: bytes | str, headers: Mapping[str, str]) -> RawNotification:
        """
        Build from a request body and its headers.

        The signature header is looked up case-insensitively under
        ``X-TransVoucher-Signature``, ``X-Signature`` and ``Signature``,
        in that order.
        """
        lowered = {key.lower(): value for key, value in headers.items()}
        signature = None
        for name in SIGNATURE_HEADERS:
            if lowered.get(name):
                signature = lowered[name]
                break
        if isinstance(body, str):
            body = body.encode("utf-8")
        return cls(body=body, signature_header=signature)
