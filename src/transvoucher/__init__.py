"""
TransVoucher - Python SDK for the TransVoucher payment processor.

Usage:
    >>> from transvoucher import TransVoucher, EventType
    >>>
    >>> client = TransVoucher()  # reads TRANSVOUCHER_* environment variables
    >>> payment = await client.payments.get_transaction_status("tx_123")
    >>>
    >>> pipeline = client.webhook_pipeline({EventType.SUCCEEDED: on_success})
    >>> result = pipeline.process(raw_body, signature_header)
    >>> if result:
    ...     await pipeline.dispatch(result.event)
"""

from transvoucher.client import TransVoucher
from transvoucher.core.config import Config
from transvoucher.core.exceptions import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    NetworkError,
    PayloadDecodeError,
    SchemaViolationError,
    SignatureFormatError,
    SignatureMismatchError,
    StaleEventError,
    TransVoucherError,
    ValidationError,
    WebhookError,
)
from transvoucher.core.logging import configure_logging
from transvoucher.core.types import CreatePaymentRequest, Environment, Payment, PaymentStatus
from transvoucher.webhooks import (
    EventRouter,
    EventType,
    EventValidator,
    FreshnessChecker,
    HandlerTable,
    RawNotification,
    Signature,
    TransactionRecord,
    ValidationReason,
    VerificationResult,
    WebhookEvent,
    WebhookEventData,
    WebhookOutcome,
    WebhookPipeline,
    create_handler,
    extract_signature,
    is_event_recent,
    sign,
    verify,
)

__version__ = "0.1.0"
__all__ = [
    # Main Client
    "TransVoucher",
    # Config
    "Config",
    "configure_logging",
    # Types
    "Environment",
    "PaymentStatus",
    "Payment",
    "CreatePaymentRequest",
    # Exceptions
    "TransVoucherError",
    "ConfigurationError",
    "ValidationError",
    "AuthenticationError",
    "ApiError",
    "NetworkError",
    "WebhookError",
    "SignatureFormatError",
    "SignatureMismatchError",
    "PayloadDecodeError",
    "SchemaViolationError",
    "StaleEventError",
    # Webhooks
    "EventType",
    "WebhookEvent",
    "WebhookEventData",
    "TransactionRecord",
    "RawNotification",
    "VerificationResult",
    "Signature",
    "sign",
    "verify",
    "extract_signature",
    "EventValidator",
    "ValidationReason",
    "FreshnessChecker",
    "is_event_recent",
    "EventRouter",
    "HandlerTable",
    "WebhookPipeline",
    "WebhookOutcome",
    "create_handler",
]
