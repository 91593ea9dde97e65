"""Billing gateway — Stripe customer search, checkout and webhook verification.

Every network call is bounded by ``timeout`` seconds. Customer search is a
best-effort collision check: any failure reads as "not referenced", so a
billing outage can make a taken slug look available. The access store stays
the authoritative check at provisioning time.
"""

import asyncio
import logging

import stripe
from pydantic import ValidationError

from provisioner.core.errors import (
    ConfigurationError,
    MalformedInput,
    SignatureInvalid,
    UpstreamUnavailable,
)
from provisioner.models.billing import (
    TENANT_NAME_FIELD,
    BillingCustomer,
    BillingEvent,
    CheckoutSession,
    clean_metadata,
)

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "stripe-signature"


class StripeBilling:
    def __init__(
        self,
        *,
        api_key: str,
        webhook_secret: str,
        timeout: float = 10.0,
        tolerance: int = 300,
    ) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout
        self.tolerance = tolerance

    # ── Collision authority ──────────────────────────────────

    async def slug_referenced(self, slug: str) -> bool:
        """True when a billing customer's metadata already names ``slug``."""
        if not self.api_key:
            return False
        query = f"metadata['tenant']:'{slug}' OR metadata['tenant_slug']:'{slug}'"
        try:
            result = await asyncio.wait_for(
                stripe.Customer.search_async(query=query, limit=1, api_key=self.api_key),
                timeout=self.timeout,
            )
        except Exception:
            logger.warning("Billing customer search failed for slug %s; treating as free", slug)
            return False
        return len(result.data or []) > 0

    # ── Customer lookup (webhook fallback) ───────────────────

    async def retrieve_customer(self, customer_id: str) -> BillingCustomer | None:
        """Fetch a customer's email and metadata. None when the customer is deleted."""
        try:
            customer = await asyncio.wait_for(
                stripe.Customer.retrieve_async(customer_id, api_key=self.api_key),
                timeout=self.timeout,
            )
        except (stripe.StripeError, TimeoutError) as exc:
            raise UpstreamUnavailable(
                "customer lookup failed", context={"customer": customer_id}
            ) from exc
        if customer.get("deleted"):
            return None
        return BillingCustomer(
            email=customer.get("email"),
            metadata=clean_metadata(dict(customer.get("metadata") or {})),
        )

    # ── Checkout ─────────────────────────────────────────────

    async def create_checkout_session(
        self,
        *,
        price_id: str,
        success_url: str,
        cancel_url: str,
        slug: str,
        email: str,
        prefill_email: bool,
    ) -> CheckoutSession:
        params: dict = {
            "mode": "subscription",
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "allow_promotion_codes": True,
            "automatic_tax": {"enabled": True},
            "custom_fields": [
                {
                    "key": TENANT_NAME_FIELD,
                    "label": {"type": "custom", "custom": "Project name"},
                    "type": "text",
                    "text": {"maximum_length": 64},
                }
            ],
            "metadata": {"tenant": slug, "tenant_slug": slug, "email": email},
        }
        if prefill_email:
            params["customer_email"] = email
        try:
            session = await asyncio.wait_for(
                stripe.checkout.Session.create_async(api_key=self.api_key, **params),
                timeout=self.timeout,
            )
        except (stripe.StripeError, TimeoutError) as exc:
            raise UpstreamUnavailable("checkout session creation failed") from exc
        return CheckoutSession(id=session.id, url=session.url)

    # ── Webhooks ─────────────────────────────────────────────

    def verify_event(self, payload: bytes, signature: str | None) -> BillingEvent:
        """Authenticate a webhook body, then parse it.

        Nothing in the body is looked at before the signature checks out.
        """
        if not self.webhook_secret:
            raise ConfigurationError(
                "STRIPE_WEBHOOK_SECRET is not configured", code="webhook_not_configured"
            )
        if not signature:
            raise SignatureInvalid("missing signature header")
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"), signature, self.webhook_secret, self.tolerance
            )
        except (UnicodeDecodeError, stripe.SignatureVerificationError) as exc:
            raise SignatureInvalid(str(exc)) from exc

        try:
            return BillingEvent.model_validate_json(payload)
        except ValidationError as exc:
            raise MalformedInput("unparseable event", code="invalid_event_payload") from exc
