import copy
import logging

import pytest

from transvoucher.core.logging import LOGGER_NAME

SECRET = "whsec_test"

SUCCEEDED_BODY = (
    b'{"event":"payment_intent.succeeded","timestamp":"2024-01-01T00:00:00Z",'
    b'"data":{"transaction":{"id":"tx_1","commodity_amount":10.5,'
    b'"commodity":"USDT","status":"completed"}}}'
)

EVENT_PAYLOAD = {
    "event": "payment_intent.succeeded",
    "timestamp": "2024-01-01T00:00:00Z",
    "data": {
        "payment_link_id": "pl_42",
        "transaction": {
            "id": "tx_1",
            "commodity_amount": 10.5,
            "commodity": "USDT",
            "status": "completed",
            "fiat_total_amount": 10.5,
            "fiat_currency": "USD",
        },
        "sales_channel": {"id": 7, "name": "web"},
        "merchant": {"id": 3, "company_name": "Acme"},
        "customer_details": {"email": "buyer@example.com"},
        "metadata": {"order_id": "o-9"},
        "webhook_version": 2,
    },
}


@pytest.fixture
def secret() -> str:
    return SECRET


@pytest.fixture
def raw_body() -> bytes:
    return SUCCEEDED_BODY


@pytest.fixture
def payload() -> dict:
    """A fresh, fully populated event payload."""
    return copy.deepcopy(EVENT_PAYLOAD)



@pytest.fixture(autouse=True)
def reset_sdk_logger():
    """Undo configure_logging() so caplog sees SDK records in every test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
