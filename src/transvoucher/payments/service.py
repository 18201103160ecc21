"""
Payment API operations.

Request validation here collects every field error before raising, unlike
webhook validation which stops at the first problem.
"""

from __future__ import annotations

import math
import re
from datetime import date
from decimal import Decimal
from typing import Any

from transvoucher.core.exceptions import ValidationError
from transvoucher.core.http_client import HttpClient
from transvoucher.core.logging import get_logger
from transvoucher.core.types import CreatePaymentRequest, Payment, api_body

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MAX_TITLE_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 1000


def _is_valid_date(value: Any) -> bool:
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    finite = value.is_finite() if isinstance(value, Decimal) else math.isfinite(value)
    return finite and value > 0


def validate_create_payment_request(data: dict[str, Any]) -> None:
    """
    Validate a payment creation body.

    Raises:
        ValidationError: With every offending field listed in ``errors``
    """
    errors: dict[str, list[str]] = {}

    is_price_dynamic = data.get("is_price_dynamic")
    if is_price_dynamic is not None and not isinstance(is_price_dynamic, bool):
        errors["is_price_dynamic"] = ["is_price_dynamic must be a boolean"]

    amount = data.get("amount")
    if is_price_dynamic is not True and amount is None:
        errors["amount"] = ["Amount is required"]
    elif amount is not None and not _is_positive_number(amount):
        errors["amount"] = ["Amount must be a positive number"]

    currency = data.get("currency")
    if not currency:
        errors["currency"] = ["Currency is required"]
    elif not isinstance(currency, str) or not currency.strip():
        errors["currency"] = ["Currency must be a valid currency code"]

    title = data.get("title")
    if title is not None and (not isinstance(title, str) or len(title) > MAX_TITLE_LENGTH):
        errors["title"] = [f"Title must be a string with maximum {MAX_TITLE_LENGTH} characters"]

    description = data.get("description")
    if description is not None and (
        not isinstance(description, str) or len(description) > MAX_DESCRIPTION_LENGTH
    ):
        errors["description"] = [
            f"Description must be a string with maximum {MAX_DESCRIPTION_LENGTH} characters"
        ]

    for flag in ("multiple_use", "cancel_on_first_fail"):
        value = data.get(flag)
        if value is not None and not isinstance(value, bool):
            errors[flag] = [f"{flag} must be a boolean"]

    expires_at = data.get("expires_at")
    if expires_at is not None and not _is_valid_date(expires_at):
        errors["expires_at"] = ["Expires at must be a valid date in YYYY-MM-DD format"]

    if errors:
        raise ValidationError("Validation failed", errors=errors)


def _unwrap(response: Any, operation: str) -> dict[str, Any]:
    if not isinstance(response, dict) or not response.get("success") or not response.get("data"):
        raise ValidationError(f"Invalid response from {operation}", response=response)
    return response["data"]


class PaymentService:
    """
    Payment creation and status lookups.

    Example:
        >>> payment = await client.payments.create(
        ...     CreatePaymentRequest(amount=Decimal("10.00"), currency="USD")
        ... )
        >>> payment.payment_url
    """

    def __init__(self, http: HttpClient) -> None:
        self._http = http
        self._logger = get_logger("payments")

    async def create(
        self, request: CreatePaymentRequest | dict[str, Any], **options: Any
    ) -> Payment:
        """
        Create a new payment.

        Raises:
            ValidationError: If the request is invalid or the response malformed
        """
        if isinstance(request, CreatePaymentRequest):
            body = request.to_api_dict()
        else:
            body = api_body(request)
        validate_create_payment_request(body)

        response = await self._http.post("/payment/create", body, **options)
        payment = Payment.from_api_response(_unwrap(response, "payment creation"))
        self._logger.info(f"Created payment {payment.id}")
        return payment

    async def get_transaction_status(self, transaction_id: str, **options: Any) -> Payment:
        """Get payment status by transaction ID."""
        if not transaction_id:
            raise ValidationError(
                "Transaction ID is required",
                errors={"transaction_id": ["Transaction ID is required"]},
            )
        response = await self._http.get(f"/payment/status/{transaction_id}", **options)
        return Payment.from_api_response(_unwrap(response, "payment status check"))

    async def get_payment_link_status(self, payment_link_id: str | int, **options: Any) -> Payment:
        """Get payment status by payment link ID."""
        if payment_link_id is None or payment_link_id == "" or isinstance(payment_link_id, bool):
            raise ValidationError(
                "Payment Link ID is required",
                errors={"payment_link_id": ["Payment Link ID is required"]},
            )
        response = await self._http.get(f"/payment-link/status/{payment_link_id}", **options)
        return Payment.from_api_response(_unwrap(response, "payment link status check"))
