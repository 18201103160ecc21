"""Unit tests for exceptions module."""

import pytest

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
from transvoucher.webhooks.validator import ValidationReason


class TestTransVoucherError:
    """Tests for base exception."""

    def test_basic_error(self) -> None:
        error = TransVoucherError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.details == {}
        assert error.code is None

    def test_error_with_details(self) -> None:
        error = TransVoucherError("API failed", details={"status_code": 500})

        assert "API failed" in str(error)
        assert "Details:" in str(error)
        assert error.details["status_code"] == 500

    def test_is_catchable_as_base_type(self) -> None:
        try:
            raise ApiError("Not found", status_code=404)
        except TransVoucherError as e:
            assert e.status_code == 404


class TestApiErrors:
    def test_configuration_error(self) -> None:
        error = ConfigurationError("Invalid configuration", details={"api_key": ["required"]})
        assert error.code == "CONFIGURATION_ERROR"
        assert "api_key" in str(error)

    def test_validation_error_collects_fields(self) -> None:
        error = ValidationError(
            "Validation failed",
            errors={"amount": ["Amount is required"], "currency": ["Currency is required"]},
        )
        assert error.code == "VALIDATION_ERROR"
        assert set(error.errors) == {"amount", "currency"}

    def test_authentication_error_default_message(self) -> None:
        error = AuthenticationError(status_code=401)
        assert str(error) == "Authentication failed"
        assert error.code == "AUTHENTICATION_ERROR"

    def test_api_error_rate_limited(self) -> None:
        assert ApiError("Slow down", status_code=429).is_rate_limited()
        assert not ApiError("Missing", status_code=404).is_rate_limited()

    def test_network_error(self) -> None:
        error = NetworkError("Network error: No response received", url="/payments")
        assert error.code == "NETWORK_ERROR"
        assert error.url == "/payments"
        assert error.status_code is None


class TestWebhookErrors:
    @pytest.mark.parametrize(
        ("cls", "reason"),
        [
            (SignatureFormatError, "malformed signature header"),
            (SignatureMismatchError, "signature mismatch"),
            (PayloadDecodeError, "malformed payload"),
            (StaleEventError, "stale event"),
        ],
    )
    def test_reasons(self, cls, reason) -> None:
        error = cls()
        assert isinstance(error, WebhookError)
        assert isinstance(error, TransVoucherError)
        assert error.reason == reason
        assert str(error) == reason

    def test_message_does_not_change_reason(self) -> None:
        error = SignatureFormatError("Signature header is required")
        assert str(error) == "Signature header is required"
        assert error.reason == "malformed signature header"

    def test_schema_violation(self) -> None:
        error = SchemaViolationError(ValidationReason.MISSING_TRANSACTION)
        assert error.violation is ValidationReason.MISSING_TRANSACTION
        assert error.reason == "missing_transaction"
        assert "transaction object" in str(error)

    def test_distinct_kinds(self) -> None:
        assert not issubclass(SignatureMismatchError, SchemaViolationError)
        assert not issubclass(PayloadDecodeError, SignatureMismatchError)
