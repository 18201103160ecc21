"""
Webhooks module - verification and dispatch of payment notifications.

- signature: HMAC-SHA256 signing, header normalisation, verification
- validator: Fail-fast schema validation into typed events
- freshness: Optional replay-window checks
- router: Event-type keyed handler dispatch
- pipeline: Orchestration of the above

Example:
    >>> from transvoucher.webhooks import EventType, WebhookPipeline
    >>>
    >>> pipeline = WebhookPipeline("whsec_...", handlers={
    ...     EventType.SUCCEEDED: on_success,
    ... })
    >>> result = pipeline.process(raw_body, signature_header)
    >>> if result:
    ...     await pipeline.dispatch(result.event)
"""

from transvoucher.webhooks.events import (
    EventType,
    RawNotification,
    TransactionRecord,
    VerificationResult,
    WebhookEvent,
    WebhookEventData,
)
from transvoucher.webhooks.freshness import FreshnessChecker, is_event_recent
from transvoucher.webhooks.pipeline import (
    WebhookOutcome,
    WebhookPipeline,
    create_handler,
    decode_payload,
)
from transvoucher.webhooks.router import EventRouter, HandlerTable
from transvoucher.webhooks.signature import (
    Signature,
    extract_signature,
    matches,
    sign,
    verify,
)
from transvoucher.webhooks.validator import EventValidator, ValidationReason

__all__ = [
    # Events
    "EventType",
    "RawNotification",
    "TransactionRecord",
    "VerificationResult",
    "WebhookEvent",
    "WebhookEventData",
    # Signatures
    "Signature",
    "sign",
    "verify",
    "extract_signature",
    "matches",
    # Validation and freshness
    "EventValidator",
    "ValidationReason",
    "FreshnessChecker",
    "is_event_recent",
    # Dispatch
    "EventRouter",
    "HandlerTable",
    # Pipeline
    "WebhookPipeline",
    "WebhookOutcome",
    "create_handler",
    "decode_payload",
]
