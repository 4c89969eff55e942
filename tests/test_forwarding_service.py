"""
Test Forwarding Service

Tests downstream relaying and variant identifier extraction.
"""

import httpx
import pytest

from app.services.forwarding_service import (
    DownstreamResponse,
    ForwardingService,
    extract_variant_id,
)
from app.utils.exceptions import ConfigurationException, DownstreamException
from tests.conftest import TEST_ENDPOINT


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"variantId": "v1"}, "v1"),
        ({"variant_id": 7}, 7),
        ({"variantId": "v1", "variant_id": "v2"}, "v1"),
        ({"variantId": "", "variant_id": "v2"}, "v2"),
        ({"variantId": None}, None),
        ({"variantId": 0, "variant_id": False}, None),
        ({"variantId": float("nan")}, None),
        ({"variantId": []}, []),
        ({"variant_id": {}}, {}),
        ({}, None),
    ],
)
def test_extract_variant_id(payload, expected):
    assert extract_variant_id(payload) == expected


@pytest.mark.parametrize(
    "status_code, ok",
    [(200, True), (202, True), (299, True), (301, False), (404, False), (500, False)],
)
def test_downstream_response_ok(status_code, ok):
    assert DownstreamResponse(status_code=status_code, text="").ok is ok


@pytest.mark.asyncio
async def test_forward_posts_raw_body(make_forwarding_service, downstream_requests):
    service = make_forwarding_service(status_code=201, text="created")
    body = b'{"variantId": "v1",  "note": "spacing kept"}'

    response = await service.forward(body)

    assert response == DownstreamResponse(status_code=201, text="created")
    assert downstream_requests[0].content == body
    assert str(downstream_requests[0].url) == TEST_ENDPOINT


@pytest.mark.asyncio
async def test_forward_returns_failure_status(make_forwarding_service):
    service = make_forwarding_service(status_code=500, text="boom")

    response = await service.forward(b"{}")

    assert response.ok is False
    assert response.text == "boom"


@pytest.mark.asyncio
async def test_forward_without_endpoint():
    service = ForwardingService(endpoint=None)

    assert service.is_configured is False
    with pytest.raises(ConfigurationException):
        await service.forward(b"{}")


@pytest.mark.asyncio
async def test_forward_timeout_raises_downstream_exception():
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    service = ForwardingService(
        endpoint=TEST_ENDPOINT, timeout=0.1, transport=httpx.MockTransport(slow)
    )

    with pytest.raises(DownstreamException) as exc_info:
        await service.forward(b"{}")

    assert exc_info.value.status_code == 502
    assert exc_info.value.details == {"error_type": "ReadTimeout"}
