"""
Structural validation of decoded webhook events.

Checks run in a fixed order and stop at the first failure, which is reported
as a single named ValidationReason.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

from transvoucher.core.exceptions import SchemaViolationError
from transvoucher.webhooks.events import (
    EventType,
    TransactionRecord,
    WebhookEvent,
    WebhookEventData,
)


class ValidationReason(str, Enum):
    """Why a decoded event was rejected."""

    NOT_AN_OBJECT = "not_an_object"
    UNKNOWN_EVENT_TYPE = "unknown_event_type"
    MISSING_TIMESTAMP = "missing_timestamp"
    MISSING_DATA = "missing_data"
    MISSING_TRANSACTION = "missing_transaction"
    INVALID_TRANSACTION_ID = "invalid_transaction_id"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_COMMODITY = "invalid_commodity"
    INVALID_STATUS = "invalid_status"

    def describe(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    ValidationReason.NOT_AN_OBJECT: "Event data must be an object",
    ValidationReason.UNKNOWN_EVENT_TYPE: "Event must have a known event type",
    ValidationReason.MISSING_TIMESTAMP: "Event must have a valid timestamp",
    ValidationReason.MISSING_DATA: "Event must have valid data",
    ValidationReason.MISSING_TRANSACTION: "Event data must have a valid transaction object",
    ValidationReason.INVALID_TRANSACTION_ID: "Transaction must have a valid ID",
    ValidationReason.INVALID_AMOUNT: "Transaction must have a valid commodity_amount",
    ValidationReason.INVALID_COMMODITY: "Transaction must have a valid commodity",
    ValidationReason.INVALID_STATUS: "Transaction must have a valid status",
}

_DATA_FIELDS = (
    "payment_link_id",
    "sales_channel",
    "merchant",
    "payment_details",
    "customer_details",
    "metadata",
    "fail_reason",
)

_TRANSACTION_FIELDS = ("id", "commodity_amount", "commodity", "status")


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _positive_amount(value: Any) -> bool:
    # bool is an int subclass but never an amount
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    if isinstance(value, Decimal) and not value.is_finite():
        return False
    return value > 0


class EventValidator:
    """
    Turns a decoded JSON structure into a WebhookEvent.

    Example:
        >>> event = EventValidator().validate(json.loads(body))
        >>> event.event_type
        <EventType.SUCCEEDED: 'payment_intent.succeeded'>
    """

    def validate(self, decoded: Any) -> WebhookEvent:
        """
        Validate a decoded event.

        Raises:
            SchemaViolationError: For the first check that fails
        """
        if not isinstance(decoded, Mapping):
            raise SchemaViolationError(ValidationReason.NOT_AN_OBJECT)

        event_name = decoded.get("event")
        if not isinstance(event_name, str) or event_name not in EventType.values():
            raise SchemaViolationError(
                ValidationReason.UNKNOWN_EVENT_TYPE,
                f"Invalid event type: {event_name!r}",
            )

        timestamp = decoded.get("timestamp")
        if not _non_empty_str(timestamp):
            raise SchemaViolationError(ValidationReason.MISSING_TIMESTAMP)

        data = decoded.get("data")
        if not isinstance(data, Mapping):
            raise SchemaViolationError(ValidationReason.MISSING_DATA)

        transaction = data.get("transaction")
        if not isinstance(transaction, Mapping):
            raise SchemaViolationError(ValidationReason.MISSING_TRANSACTION)

        if not _non_empty_str(transaction.get("id")):
            raise SchemaViolationError(ValidationReason.INVALID_TRANSACTION_ID)
        if not _positive_amount(transaction.get("commodity_amount")):
            raise SchemaViolationError(ValidationReason.INVALID_AMOUNT)
        if not _non_empty_str(transaction.get("commodity")):
            raise SchemaViolationError(ValidationReason.INVALID_COMMODITY)
        if not _non_empty_str(transaction.get("status")):
            raise SchemaViolationError(ValidationReason.INVALID_STATUS)

        return WebhookEvent(
            event_type=EventType(event_name),
            timestamp=timestamp,
            data=self._build_data(data, transaction),
        )

    def _build_data(self, data: Mapping[str, Any], transaction: Mapping[str, Any]) -> WebhookEventData:
        # Handlers get their own copies of nested values
        data = copy.deepcopy(dict(data))
        transaction = copy.deepcopy(dict(transaction))

        amount = transaction["commodity_amount"]
        record = TransactionRecord(
            id=transaction["id"],
            commodity_amount=amount if isinstance(amount, Decimal) else Decimal(str(amount)),
            commodity=transaction["commodity"],
            status=transaction["status"],
            extra={k: v for k, v in transaction.items() if k not in _TRANSACTION_FIELDS},
        )

        known = {key: data.get(key) for key in _DATA_FIELDS}
        extra = {k: v for k, v in data.items() if k != "transaction" and k not in _DATA_FIELDS}
        return WebhookEventData(transaction=record, extra=extra, **known)
