"""Checkout session creation with tenant metadata attached."""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from provisioner.api.deps import Billing, Codec, Config, Store
from provisioner.core.errors import ConfigurationError, MalformedInput, SlugConflict
from provisioner.core.security import is_plausible_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["billing"])


class CheckoutRequest(BaseModel):
    slug: str | None = None
    email: str | None = None


class CheckoutResponse(BaseModel):
    url: str
    id: str
    slug: str


def _require_configuration(settings) -> None:
    if not settings.stripe_secret_key:
        raise ConfigurationError(code="stripe_not_configured")
    if not settings.stripe_price_id:
        raise ConfigurationError(code="missing_STRIPE_PRICE_ID")
    if not settings.checkout_success_url or not settings.checkout_cancel_url:
        raise ConfigurationError(code="missing_checkout_urls")


# Mounted twice so it works behind the auth router's path forwarding.
@router.post("/billing/session", response_model=CheckoutResponse)
@router.post("/auth/billing/session", response_model=CheckoutResponse)
async def create_billing_session(
    settings: Config,
    codec: Codec,
    store: Store,
    billing: Billing,
    body: CheckoutRequest | None = None,
) -> CheckoutResponse:
    _require_configuration(settings)
    body = body or CheckoutRequest()

    slug = codec.sanitize(body.slug) or codec.generate()
    if not codec.is_structurally_valid(slug):
        raise MalformedInput(code="invalid_slug_format", context={"slug": slug})

    # Catch collisions before payment rather than at provisioning time.
    if store.tenant_exists(slug):
        raise SlugConflict(code="slug_taken", context={"slug": slug})
    if await billing.slug_referenced(slug):
        raise SlugConflict(code="slug_taken_billing", context={"slug": slug})

    email = body.email or ""
    session = await billing.create_checkout_session(
        price_id=settings.stripe_price_id,
        success_url=settings.checkout_success_url,
        cancel_url=settings.checkout_cancel_url,
        slug=slug,
        email=email,
        prefill_email=is_plausible_email(email),
    )
    logger.info("Checkout session %s created for slug %s", session.id, slug)
    return CheckoutResponse(url=session.url, id=session.id, slug=slug)
