"""
Exception hierarchy for the TransVoucher SDK.

All SDK-specific exceptions inherit from TransVoucherError for easy catching.
Webhook rejections are modelled as exceptions too, but the webhook pipeline
returns them as values inside a VerificationResult rather than raising.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from transvoucher.webhooks.validator import ValidationReason


class TransVoucherError(Exception):
    """
    Base exception for all TransVoucher SDK errors.

    Catch this to handle any SDK-related exception.

    Example:
        >>> try:
        ...     await client.payments.create(request)
        ... except TransVoucherError as e:
        ...     print(f"TransVoucher error [{e.code}]: {e}")
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        response: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.response = response
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(TransVoucherError):
    """
    Configuration is missing or invalid.

    Raised when:
    - Required configuration values are not provided
    - Configuration values fail validation
    - A webhook handler table is built with unknown event types
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class ValidationError(TransVoucherError):
    """
    Input or response validation error.

    ``errors`` maps each offending field to a list of messages, so that all
    problems with a request are reported together.
    """

    def __init__(
        self,
        message: str,
        errors: dict[str, list[str]] | None = None,
        status_code: int | None = None,
        response: Any = None,
    ) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            status_code=status_code,
            response=response,
            details=errors,
        )
        self.errors = errors or {}


class AuthenticationError(TransVoucherError):
    """The API rejected our credentials (HTTP 401)."""

    def __init__(
        self,
        message: str = "Authentication failed",
        status_code: int | None = None,
        response: Any = None,
    ) -> None:
        super().__init__(
            message, code="AUTHENTICATION_ERROR", status_code=status_code, response=response
        )


class ApiError(TransVoucherError):
    """
    The API returned a client error.

    Raised for HTTP 400, 403, 404, 409 and 429.
    """

    def __init__(self, message: str, status_code: int | None = None, response: Any = None) -> None:
        super().__init__(message, code="API_ERROR", status_code=status_code, response=response)

    def is_rate_limited(self) -> bool:
        """Check if this is a rate limit error."""
        return self.status_code == 429


class NetworkError(TransVoucherError):
    """
    Network or transport error.

    Raised when:
    - The request could not be sent (DNS, connection refused)
    - No response was received before the timeout
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message, code="NETWORK_ERROR")
        self.url = url


# ==================== Webhook rejections ====================


class WebhookError(TransVoucherError):
    """
    Base class for classified webhook rejections.

    ``reason`` is a short, stable, machine-readable description. It is meant
    for logs and diagnostics, never for the response sent back to the sender.
    """

    reason: str = "invalid webhook"

    def __init__(self, message: str | None = None, reason: str | None = None) -> None:
        if reason is not None:
            self.reason = reason
        super().__init__(message or self.reason, code="WEBHOOK_ERROR")


class SignatureFormatError(WebhookError):
    """The signature header is absent or matches no known format."""

    reason = "malformed signature header"


class SignatureMismatchError(WebhookError):
    """The signature does not match the payload and shared secret."""

    reason = "signature mismatch"


class PayloadDecodeError(WebhookError):
    """The authenticated body is not valid JSON."""

    reason = "malformed payload"


class SchemaViolationError(WebhookError):
    """
    The decoded event failed structural validation.

    ``violation`` names the single check that failed first.
    """

    def __init__(self, violation: ValidationReason, message: str | None = None) -> None:
        super().__init__(message or violation.describe(), reason=violation.value)
        self.violation = violation


class StaleEventError(WebhookError):
    """The event timestamp falls outside the freshness window."""

    reason = "stale event"
