"""Tests for the webhook processing pipeline."""

import json
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from transvoucher.core.exceptions import (
    PayloadDecodeError,
    SchemaViolationError,
    SignatureFormatError,
    SignatureMismatchError,
    StaleEventError,
)
from transvoucher.webhooks import signature as codec
from transvoucher.webhooks.events import EventType, RawNotification, VerificationResult
from transvoucher.webhooks.freshness import FreshnessChecker
from transvoucher.webhooks.pipeline import (
    WebhookOutcome,
    WebhookPipeline,
    create_handler,
    decode_payload,
)
from transvoucher.webhooks.signature import sign
from transvoucher.webhooks.validator import ValidationReason

NOW = 1_704_067_200.0  # matches the sample event timestamp


def signed_header(body: bytes, secret: str = "whsec_test") -> str:
    return str(sign(secret, body))


@pytest.fixture
def pipeline(secret) -> WebhookPipeline:
    return WebhookPipeline(secret)


class TestProcess:
    def test_end_to_end_valid(self, pipeline, raw_body) -> None:
        result = pipeline.process(raw_body, signed_header(raw_body))

        assert result.is_valid
        assert bool(result) is True
        assert result.error is None
        assert result.reason is None
        assert result.event.event_type == "payment_intent.succeeded"
        assert result.event.transaction.commodity_amount == Decimal("10.5")

    def test_end_to_end_wrong_secret(self, raw_body) -> None:
        pipeline = WebhookPipeline("wrong_secret")

        result = pipeline.process(raw_body, signed_header(raw_body, "whsec_test"))

        assert not result
        assert result.event is None
        assert isinstance(result.error, SignatureMismatchError)
        assert result.reason == "signature mismatch"

    def test_v1_header_accepted(self, pipeline, raw_body) -> None:
        digest = signed_header(raw_body).removeprefix("sha256=")
        assert pipeline.process(raw_body, f"t=1704067200,v1={digest}").is_valid

    def test_str_body_accepted(self, pipeline, raw_body) -> None:
        text = raw_body.decode("utf-8")
        assert pipeline.process(text, signed_header(raw_body)).is_valid

    def test_bytes_header_accepted(self, pipeline, raw_body) -> None:
        assert pipeline.process(raw_body, signed_header(raw_body).encode("ascii")).is_valid

    def test_header_parsed_once(self, pipeline, raw_body) -> None:
        with patch.object(
            codec, "extract_signature", wraps=codec.extract_signature
        ) as extract:
            assert pipeline.process(raw_body, signed_header(raw_body)).is_valid

        extract.assert_called_once()

    @pytest.mark.parametrize("header", [None, "", "not-a-signature", b"\xff"])
    def test_malformed_header(self, pipeline, raw_body, header) -> None:
        result = pipeline.process(raw_body, header)

        assert isinstance(result.error, SignatureFormatError)
        assert result.reason == "malformed signature header"

    def test_unauthenticated_body_is_never_decoded(self, pipeline) -> None:
        body = b"{not json"
        with patch("transvoucher.webhooks.pipeline.decode_payload") as decode:
            result = pipeline.process(body, "sha256=" + "00" * 32)

        assert isinstance(result.error, SignatureMismatchError)
        decode.assert_not_called()

    @pytest.mark.parametrize(
        "body",
        [b"{not json", b"", b"\xff\xfe\x00", b'{"amount": NaN}', b"[1, Infinity]"],
    )
    def test_malformed_payload(self, pipeline, body) -> None:
        result = pipeline.process(body, signed_header(body))

        assert isinstance(result.error, PayloadDecodeError)
        assert result.reason == "malformed payload"

    def test_schema_violation_carries_specific_reason(self, pipeline, payload) -> None:
        del payload["data"]["transaction"]["commodity_amount"]
        body = json.dumps(payload).encode()

        result = pipeline.process(body, signed_header(body))

        assert isinstance(result.error, SchemaViolationError)
        assert result.error.violation is ValidationReason.INVALID_AMOUNT
        assert result.reason == "invalid_amount"

    def test_not_an_object(self, pipeline) -> None:
        body = b"[]"
        result = pipeline.process(body, signed_header(body))
        assert result.error.violation is ValidationReason.NOT_AN_OBJECT

    def test_does_not_dispatch(self, secret, raw_body) -> None:
        handler = AsyncMock()
        pipeline = WebhookPipeline(secret, handlers={EventType.SUCCEEDED: handler})

        assert pipeline.process(raw_body, signed_header(raw_body)).is_valid
        handler.assert_not_called()

    def test_does_not_check_freshness(self, secret, raw_body) -> None:
        pipeline = WebhookPipeline(secret, freshness=FreshnessChecker(clock=lambda: NOW + 86400))
        assert pipeline.process(raw_body, signed_header(raw_body)).is_valid

    def test_rejections_are_logged_without_secret(self, pipeline, raw_body, caplog) -> None:
        with caplog.at_level("WARNING", logger="transvoucher"):
            pipeline.process(raw_body, "sha256=" + "00" * 32)

        assert "signature mismatch" in caplog.text
        assert "whsec_test" not in caplog.text

    def test_secret_not_in_repr(self, pipeline) -> None:
        assert "whsec_test" not in repr(pipeline)

    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ValueError):
            WebhookPipeline("")


class TestVerificationResult:
    def test_needs_exactly_one_side(self) -> None:
        with pytest.raises(ValueError):
            VerificationResult()

    def test_raise_for_error(self, pipeline, raw_body) -> None:
        result = pipeline.process(raw_body, "sha256=" + "00" * 32)
        with pytest.raises(SignatureMismatchError):
            result.raise_for_error()

    def test_raise_for_error_returns_event(self, pipeline, raw_body) -> None:
        result = pipeline.process(raw_body, signed_header(raw_body))
        assert result.raise_for_error() is result.event


class TestDecodePayload:
    def test_floats_become_decimal(self) -> None:
        assert decode_payload(b'{"a": 0.1}') == {"a": Decimal("0.1")}

    def test_invalid(self) -> None:
        with pytest.raises(PayloadDecodeError):
            decode_payload(b"nope")


class TestDispatchAndFreshness:
    @pytest.mark.asyncio
    async def test_dispatch_separate_from_process(self, secret, raw_body) -> None:
        handler = AsyncMock()
        pipeline = WebhookPipeline(secret, handlers={"payment_intent.succeeded": handler})

        event = pipeline.process(raw_body, signed_header(raw_body)).event
        assert await pipeline.dispatch(event) is True
        handler.assert_awaited_once_with(event)

    def test_is_recent_uses_checker(self, secret, raw_body) -> None:
        fresh = WebhookPipeline(secret, freshness=FreshnessChecker(clock=lambda: NOW + 10))
        stale = WebhookPipeline(secret, freshness=FreshnessChecker(clock=lambda: NOW + 600))
        event = fresh.process(raw_body, signed_header(raw_body)).event

        assert fresh.is_recent(event) is True
        assert stale.is_recent(event) is False


class TestHandle:
    @pytest.mark.asyncio
    async def test_accepted(self, secret, raw_body) -> None:
        handler = AsyncMock()
        pipeline = WebhookPipeline(secret, handlers={EventType.SUCCEEDED: handler})
        notification = RawNotification.from_headers(
            raw_body, {"X-Signature": signed_header(raw_body)}
        )

        outcome = await pipeline.handle(notification)

        assert outcome is WebhookOutcome.ACCEPTED
        assert outcome.status_code == 200
        assert outcome.body() == {"received": True}
        handler.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_accepted_without_matching_handler(self, pipeline, raw_body) -> None:
        notification = RawNotification(raw_body, signed_header(raw_body))
        assert await pipeline.handle(notification) is WebhookOutcome.ACCEPTED

    @pytest.mark.asyncio
    async def test_rejected_with_uniform_body(self, secret, raw_body) -> None:
        handler = AsyncMock()
        pipeline = WebhookPipeline(secret, handlers={EventType.SUCCEEDED: handler})

        bad_sig = await pipeline.handle(RawNotification(raw_body, "sha256=" + "00" * 32))
        no_sig = await pipeline.handle(RawNotification(raw_body, None))

        assert bad_sig is no_sig is WebhookOutcome.REJECTED
        assert bad_sig.status_code == 400
        assert bad_sig.body() == {"error": "Invalid webhook"}
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_stale_event_rejected_when_freshness_enabled(self, secret, raw_body, caplog) -> None:
        handler = AsyncMock()
        pipeline = WebhookPipeline(
            secret,
            handlers={EventType.SUCCEEDED: handler},
            freshness=FreshnessChecker(clock=lambda: NOW + 3600),
        )

        with caplog.at_level("WARNING", logger="transvoucher"):
            outcome = await pipeline.handle(RawNotification(raw_body, signed_header(raw_body)))

        assert outcome is WebhookOutcome.REJECTED
        assert StaleEventError.reason in caplog.text
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_handler_failure_propagates(self, secret, raw_body) -> None:
        handler = AsyncMock(side_effect=KeyError("account"))
        pipeline = WebhookPipeline(secret, handlers={EventType.SUCCEEDED: handler})

        with pytest.raises(KeyError):
            await pipeline.handle(RawNotification(raw_body, signed_header(raw_body)))

    def test_server_error_outcome(self) -> None:
        assert WebhookOutcome.SERVER_ERROR.status_code == 500
        assert WebhookOutcome.SERVER_ERROR.body() == {"error": "Webhook processing failed"}


class TestRawNotification:
    @pytest.mark.parametrize(
        "name", ["X-TransVoucher-Signature", "x-signature", "Signature", "SIGNATURE"]
    )
    def test_header_lookup(self, name) -> None:
        notification = RawNotification.from_headers(b"{}", {name: "sha256=ab"})
        assert notification.signature_header == "sha256=ab"

    def test_preferred_header_order(self) -> None:
        notification = RawNotification.from_headers(
            "{}", {"Signature": "third", "X-TransVoucher-Signature": "first"}
        )
        assert notification.signature_header == "first"
        assert notification.body == b"{}"

    def test_missing_header(self) -> None:
        assert RawNotification.from_headers(b"{}", {}).signature_header is None


class TestCreateHandler:
    @pytest.mark.asyncio
    async def test_dispatches_valid_event(self, secret, raw_body) -> None:
        on_success = AsyncMock()
        handle = create_handler(secret, {EventType.SUCCEEDED: on_success})

        event = await handle(raw_body, signed_header(raw_body))

        assert event.transaction.id == "tx_1"
        on_success.assert_awaited_once_with(event)

    @pytest.mark.asyncio
    async def test_raises_classified_error(self, secret, raw_body) -> None:
        handle = create_handler(secret, {})
        with pytest.raises(SignatureMismatchError):
            await handle(raw_body, "sha256=" + "00" * 32)
        with pytest.raises(SignatureFormatError):
            await handle(raw_body, "bogus")
