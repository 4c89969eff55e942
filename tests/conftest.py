"""
Pytest Configuration and Fixtures

Provides common fixtures and signing helpers for proxy tests.
"""

import os

# Settings are read once at import, so the environment has to be in place first
os.environ.setdefault("SHOPIFY_API_SECRET", "shhh")
os.environ.setdefault("AZURE_ENDPOINT", "https://downstream.test/api/backorder")

import hashlib
import hmac
from typing import Dict, List, Sequence, Union
from urllib.parse import urlencode

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.forwarding_service import ForwardingService

TEST_SECRET = "shhh"
TEST_ENDPOINT = "https://downstream.test/api/backorder"

ParamValues = Union[str, Sequence[str]]


def _as_lists(params: Dict[str, ParamValues]) -> Dict[str, List[str]]:
    return {
        key: [value] if isinstance(value, str) else list(value)
        for key, value in params.items()
    }


def sign_legacy(params: Dict[str, ParamValues], secret: str = TEST_SECRET) -> str:
    """Sign the way the platform does for the ``signature`` parameter"""
    segments = sorted(
        f"{key}={','.join(values)}" for key, values in _as_lists(params).items()
    )
    return hmac.new(
        secret.encode("utf-8"), "".join(segments).encode("utf-8"), hashlib.sha256
    ).hexdigest()


def sign_hmac(params: Dict[str, ParamValues], secret: str = TEST_SECRET) -> str:
    """Sign the way the platform does for the ``hmac`` parameter"""
    grouped = _as_lists(params)
    message = "&".join(f"{key}={','.join(grouped[key])}" for key in sorted(grouped))
    return hmac.new(
        secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def query_string(params: Dict[str, ParamValues]) -> str:
    return urlencode(
        [(key, value) for key, values in _as_lists(params).items() for value in values]
    )


@pytest.fixture
def test_client():
    """FastAPI test client"""
    return TestClient(app)


@pytest.fixture
def shop_params() -> Dict[str, ParamValues]:
    """Query parameters the app proxy attaches to a request"""
    return {
        "shop": "example-store.myshopify.com",
        "logged_in_customer_id": "",
        "path_prefix": "/apps/backorder",
        "timestamp": "1700000000",
    }


@pytest.fixture
def signed_url(shop_params):
    """URL for POST /backorder carrying a valid legacy signature"""
    signature = sign_legacy(shop_params)
    return f"/backorder?{query_string({**shop_params, 'signature': signature})}"


@pytest.fixture
def backorder_payload():
    return {
        "variantId": "gid://shopify/ProductVariant/4242",
        "quantity": 2,
        "email": "buyer@example.com",
    }


@pytest.fixture
def downstream_requests() -> List[httpx.Request]:
    """Requests captured by the mock downstream transport"""
    return []


@pytest.fixture
def make_forwarding_service(downstream_requests):
    """Factory for a ForwardingService backed by httpx.MockTransport"""

    def _service(status_code: int = 200, text: str = "accepted", endpoint=TEST_ENDPOINT):
        def handler(request: httpx.Request) -> httpx.Response:
            downstream_requests.append(request)
            return httpx.Response(status_code, text=text)

        return ForwardingService(
            endpoint=endpoint,
            timeout=5.0,
            transport=httpx.MockTransport(handler),
        )

    return _service
