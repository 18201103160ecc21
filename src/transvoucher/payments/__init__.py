"""Payments module - payment creation and status lookups."""

from transvoucher.payments.service import PaymentService, validate_create_payment_request

__all__ = ["PaymentService", "validate_create_payment_request"]
