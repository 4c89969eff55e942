"""
Forwarding Service

Relays verified backorder payloads to the downstream function endpoint.
The request body is sent byte-for-byte as received.
"""

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from app.config import settings
from app.utils.exceptions import ConfigurationException, DownstreamException
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

VARIANT_ID_FIELDS = ("variantId", "variant_id")


@dataclass(frozen=True)
class DownstreamResponse:
    """Status and body returned by the downstream endpoint"""

    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _is_set(value: Any) -> bool:
    # Empty lists and objects count as set; null, false, 0, NaN and "" do not
    if isinstance(value, (list, dict)):
        return True
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def extract_variant_id(payload: Mapping[str, Any]) -> Optional[Any]:
    """Return the variant identifier from ``variantId`` or ``variant_id``"""
    for field in VARIANT_ID_FIELDS:
        value = payload.get(field)
        if _is_set(value):
            return value
    return None


class ForwardingService:
    """Posts backorder payloads to the configured downstream endpoint"""

    def __init__(
        self,
        endpoint: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint)

    async def forward(self, body: bytes) -> DownstreamResponse:
        """
        POST ``body`` to the downstream endpoint.

        Args:
            body: Raw JSON request body

        Returns:
            DownstreamResponse with the downstream status and text

        Raises:
            ConfigurationException: If no endpoint is configured
            DownstreamException: If the endpoint cannot be reached
        """
        if not self.endpoint:
            raise ConfigurationException(
                "Missing AZURE_ENDPOINT env var",
                details={"setting": "azure_endpoint"},
            )

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint,
                    content=body,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.RequestError as e:
            logger.error(
                "Downstream request failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            raise DownstreamException(
                "Downstream request failed",
                details={"error_type": type(e).__name__},
            ) from e

        logger.info(
            "Downstream responded",
            extra={"status_code": response.status_code},
        )

        return DownstreamResponse(status_code=response.status_code, text=response.text)


# Global forwarding service instance
forwarding_service = ForwardingService(
    endpoint=settings.azure_endpoint,
    timeout=settings.downstream_timeout,
)
