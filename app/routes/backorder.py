"""
Backorder App Proxy Endpoint

Receives backorder requests proxied by the storefront, verifies the app proxy
signature over the query string and forwards the JSON body downstream.
"""

import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from app.auth.app_proxy_signature import SignatureVerifier, group_query_items
from app.config import settings
from app.services.forwarding_service import extract_variant_id, forwarding_service
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/backorder", tags=["backorder"])

signature_verifier = SignatureVerifier(secret=settings.signing_secret)


def _error(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": error, **extra},
    )


@router.get("", response_class=PlainTextResponse)
async def backorder_status():
    """Liveness probe used by the storefront app proxy"""
    return "Backorder proxy OK. Use POST /backorder."


@router.post("")
async def create_backorder(request: Request):
    """
    Backorder endpoint.

    Rejects with 403 before any downstream call when the signature does not
    verify. Otherwise forwards the body unmodified and relays the outcome.
    """
    params = group_query_items(request.query_params.multi_items())
    result = signature_verifier.verify(params)

    if not result.accepted:
        logger.warning(
            "App proxy signature rejected",
            extra={
                "reason": result.reason.value,
                "form": result.form.value if result.form else None,
                "param_names": sorted(params),
            },
        )
        return _error(
            403, "Signature verification failed", reason=result.reason.value
        )

    logger.debug("App proxy signature verified", extra={"form": result.form.value})

    if not forwarding_service.is_configured:
        logger.error("Downstream endpoint is not configured")
        return _error(500, "Missing AZURE_ENDPOINT env var")

    body = await request.body()
    try:
        payload = json.loads(body) if body.strip() else {}
    except ValueError:
        return _error(400, "Invalid JSON body")

    if not isinstance(payload, dict):
        return _error(400, "Invalid JSON body")

    variant_id = extract_variant_id(payload)
    if variant_id is None:
        return _error(400, "variantId is required")

    downstream = await forwarding_service.forward(body)

    if not downstream.ok:
        logger.error(
            "Downstream call failed",
            extra={"variant_id": variant_id, "status_code": downstream.status_code},
        )
        return _error(
            502,
            "Azure Function call failed",
            status=downstream.status_code,
            body=downstream.text,
        )

    logger.info("Backorder forwarded", extra={"variant_id": variant_id})

    return JSONResponse(status_code=200, content={"ok": True})
