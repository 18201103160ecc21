"""
Type definitions for the TransVoucher SDK.

Enums and data classes for the REST side of the SDK. Webhook event types
live in transvoucher.webhooks.events.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class Environment(str, Enum):
    """TransVoucher API environments."""

    SANDBOX = "sandbox"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        value_lower = value.strip().lower()
        for member in cls:
            if member.value == value_lower:
                return member
        raise ValueError(
            f"Unknown environment: {value}. Supported: {[e.value for e in cls]}"
        )

    @property
    def base_url(self) -> str:
        subdomain = "api" if self is Environment.PRODUCTION else "api-sandbox"
        return f"https://{subdomain}.transvoucher.com/v1.0"


class PaymentStatus(str, Enum):
    """Payment status as reported by the API."""

    PENDING = "pending"  # Created, customer has not started paying
    ATTEMPTING = "attempting"  # Customer is attempting payment
    PROCESSING = "processing"  # Payment submitted, awaiting settlement
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


def _parse_dt(val: str | datetime | None) -> datetime | None:
    if val is None:
        return None
    if isinstance(val, datetime):
        return val
    if isinstance(val, str):
        try:
            return datetime.fromisoformat(val.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _parse_amount(val: Any) -> Decimal | None:
    if val is None or isinstance(val, bool):
        return None
    try:
        return Decimal(str(val))
    except (InvalidOperation, ValueError):
        return None


def api_body(fields: dict[str, Any]) -> dict[str, Any]:
    """Request body for the API: unset fields dropped, Decimal sent as a JSON number."""
    return {
        name: float(value) if isinstance(value, Decimal) else value
        for name, value in fields.items()
        if value is not None
    }


@dataclass
class CreatePaymentRequest:
    """Parameters for creating a payment."""

    amount: Decimal | int | float | None = None
    currency: str = ""
    title: str | None = None
    description: str | None = None
    reference_id: str | None = None
    multiple_use: bool | None = None
    cancel_on_first_fail: bool | None = None
    is_price_dynamic: bool | None = None
    expires_at: str | None = None  # YYYY-MM-DD
    success_url: str | None = None
    cancel_url: str | None = None
    customer_details: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to API format, dropping unset fields."""
        return api_body(self.__dict__)


@dataclass
class Payment:
    """A payment (transaction or payment link) as returned by the API."""

    id: str
    status: str
    amount: Decimal | None = None
    currency: str | None = None
    payment_url: str | None = None
    payment_link_id: str | None = None
    reference_id: str | None = None
    title: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Payment":
        payment_id = data.get("transaction_id") or data.get("id") or ""
        link_id = data.get("payment_link_id")
        return cls(
            id=str(payment_id),
            status=str(data.get("status", "")),
            amount=_parse_amount(data.get("amount")),
            currency=data.get("currency"),
            payment_url=data.get("payment_url"),
            payment_link_id=str(link_id) if link_id is not None else None,
            reference_id=data.get("reference_id"),
            title=data.get("title"),
            expires_at=_parse_dt(data.get("expires_at")),
            created_at=_parse_dt(data.get("created_at")),
            raw=data,
        )

    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING.value

    def is_attempting(self) -> bool:
        return self.status == PaymentStatus.ATTEMPTING.value

    def is_processing(self) -> bool:
        return self.status == PaymentStatus.PROCESSING.value

    def is_completed(self) -> bool:
        return self.status == PaymentStatus.COMPLETED.value

    def is_failed(self) -> bool:
        return self.status == PaymentStatus.FAILED.value

    def is_expired(self) -> bool:
        return self.status == PaymentStatus.EXPIRED.value

    def is_cancelled(self) -> bool:
        return self.status == PaymentStatus.CANCELLED.value
