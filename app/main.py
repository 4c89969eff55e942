"""
FastAPI Application

Main application entry point for the backorder app proxy relay.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.routes import backorder, health
from app.utils.exceptions import ProxyException
from app.utils.logging_config import (
    get_logger,
    set_correlation_id,
    setup_logging,
)

# Setup logging
setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-DNS-Prefetch-Control": "off",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.
    Reports incomplete configuration at startup.
    """
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version}",
        extra={"environment": settings.environment},
    )

    missing = settings.missing_configuration()
    if missing:
        logger.warning(
            "Configuration incomplete, POST /backorder will be refused",
            extra={"missing": missing},
        )

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Verifies storefront app proxy requests and relays backorders downstream",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Tag the request with a correlation ID and write an access log line"""
    correlation_id = set_correlation_id(request.headers.get("X-Correlation-ID"))
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception as exc:
        # Rendered here so the access log and response headers still apply
        response = await general_exception_handler(request, exc)

    # Path only: the query string carries the request credential
    logger.info(
        f"{request.method} {request.url.path} {response.status_code}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            "client": request.client.host if request.client else None,
        },
    )

    response.headers["X-Correlation-ID"] = correlation_id
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)

    return response


@app.exception_handler(ProxyException)
async def proxy_exception_handler(request: Request, exc: ProxyException):
    """Handle application exceptions"""
    logger.error(
        f"Proxy exception: {exc.message}",
        extra={"error": exc.to_dict()},
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.message, "code": exc.error_code},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.error(
        f"Unexpected exception: {exc}",
        extra={"type": type(exc).__name__},
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": "An unexpected error occurred"},
    )


app.include_router(health.router)
app.include_router(backorder.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
