"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from provisioner import __version__
from provisioner.api.routes import api_router
from provisioner.core.config import get_settings
from provisioner.core.errors import ControlPlaneError, SignatureInvalid
from provisioner.core.middleware import SecurityHeadersMiddleware

logger = logging.getLogger(__name__)

_settings = get_settings()
logging.basicConfig(
    level=_settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    if not settings.billing_configured:
        logger.warning("STRIPE keys not fully configured. Billing endpoints will error.")
    logger.info(
        "Provisioner serving tenants under %s (prefix %r, max slug length %d)",
        settings.runtime_tenants_path,
        settings.tenant_prefix,
        settings.max_slug_len,
    )
    yield


app = FastAPI(
    title="Tenant Provisioner",
    version=__version__,
    description="Tenant control plane: slugs, access checks and billing-driven provisioning",
    lifespan=lifespan,
)

# ── CORS + hardening ─────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origin_list,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Stripe-Signature"],
)
app.add_middleware(SecurityHeadersMiddleware)


# ── Error rendering ──────────────────────────────────────────

@app.exception_handler(ControlPlaneError)
async def control_plane_error_handler(request: Request, exc: ControlPlaneError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s %s", request.method, request.url.path, exc, exc.context)
    elif isinstance(exc, SignatureInvalid):
        logger.warning("Webhook signature verification failed: %s", exc)
    else:
        logger.debug("%s %s rejected: %s", request.method, request.url.path, exc.code)
    return JSONResponse(
        {"ok": False, "error": exc.code},
        status_code=exc.status_code,
        headers=exc.headers or None,
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s error", request.method, request.url.path)
    return JSONResponse({"ok": False, "error": "internal"}, status_code=500)


# ── API routes ───────────────────────────────────────────────
app.include_router(api_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"ok": True}
