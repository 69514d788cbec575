"""
Pytest configuration and fixtures for bc_checkout tests
"""

import pytest
from unittest.mock import AsyncMock, Mock

from bc_checkout import CheckoutClient


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """
    Setup test environment variables for all tests
    """
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("OTEL_ENABLED", "false")


@pytest.fixture
def mock_transport():
    """
    Transport spy: every verb is an AsyncMock recording its calls
    """
    transport = Mock()
    transport.get = AsyncMock(return_value={"data": {}})
    transport.post = AsyncMock(return_value={"data": {}})
    transport.put = AsyncMock(return_value={"data": {}})
    transport.delete = AsyncMock(return_value=None)
    return transport


@pytest.fixture
def mock_token_issuer():
    """
    Token issuer spy returning a fixed token
    """
    issuer = Mock()
    issuer.issue_login_token = AsyncMock(return_value="issued.jwt.token")
    return issuer


@pytest.fixture
def checkout_client(mock_transport, mock_token_issuer):
    """
    CheckoutClient wired to the transport and token issuer spies
    """
    return CheckoutClient(mock_transport, token_issuer=mock_token_issuer)


@pytest.fixture
def sample_cart_data():
    """
    Sample cart response (v3 envelope) with redirect URLs included
    """
    return {
        "data": {
            "id": "cart-0001",
            "customer_id": 42,
            "channel_id": 7,
            "currency": {"code": "USD"},
            "line_items": {"physical_items": [], "digital_items": []},
            "redirect_urls": {
                "cart_url": "https://shop.example/cart.php?action=load&id=cart-0001",
                "checkout_url": "https://shop.example/checkout?step=2",
                "embedded_checkout_url": "https://shop.example/cart.php?embedded=1&id=cart-0001",
            },
        },
        "meta": {},
    }


@pytest.fixture
def guest_cart_data(sample_cart_data):
    """
    Same cart without an associated customer
    """
    data = dict(sample_cart_data["data"], customer_id=0)
    return {"data": data, "meta": {}}
