"""Test support: ACL fixtures on disk, signed webhook payloads and fakes."""

import hashlib
import hmac
import json
import time
from pathlib import Path

import yaml

from provisioner.models.billing import BillingCustomer, CheckoutSession
from provisioner.services.billing import StripeBilling
from provisioner.services.provisioning import ActionOutput, ProvisioningRequest

WEBHOOK_SECRET = "whsec_test_secret"  # noqa: S105


def write_acl(root: Path, slug: str, **fields) -> Path:
    """Write ``<root>/<slug>/access.yml`` with sensible defaults."""
    doc = {"version": 1, "tenant": slug, "owners": [], "members": [], "roles": {}}
    doc.update(fields)
    tenant_dir = root / slug
    tenant_dir.mkdir(parents=True, exist_ok=True)
    path = tenant_dir / "access.yml"
    path.write_text(yaml.safe_dump(doc), encoding="utf-8")
    return path


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header value for ``payload``."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def event_payload(event_type: str = "checkout.session.completed", **obj) -> bytes:
    return json.dumps({
        "id": "evt_test_1",
        "type": event_type,
        "data": {"object": obj},
    }).encode()


class FakeBilling(StripeBilling):
    """Real webhook signature checks; customers and sessions kept in memory."""

    def __init__(self) -> None:
        super().__init__(api_key="sk_test_fake", webhook_secret=WEBHOOK_SECRET)
        self.referenced: set[str] = set()
        self.customers: dict[str, BillingCustomer | None] = {}
        self.sessions: list[dict] = []
        self.search_calls: list[str] = []
        self.customer_calls: list[str] = []

    async def slug_referenced(self, slug: str) -> bool:
        self.search_calls.append(slug)
        return slug in self.referenced

    async def retrieve_customer(self, customer_id: str) -> BillingCustomer | None:
        self.customer_calls.append(customer_id)
        return self.customers.get(customer_id)

    async def create_checkout_session(self, **kwargs) -> CheckoutSession:
        self.sessions.append(kwargs)
        return CheckoutSession(
            id=f"cs_test_{len(self.sessions)}",
            url="https://checkout.stripe.test/pay",
        )


class FakeProvisioningAction:
    """Follows the action contract: exclusive create of the tenant's ACL."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.calls: list[ProvisioningRequest] = []

    async def __call__(self, request: ProvisioningRequest) -> ActionOutput:
        self.calls.append(request)
        (self.root / request.slug).mkdir()
        write_acl(self.root, request.slug, owners=[request.email] if request.email else [])
        return ActionOutput(stdout=f"created {request.slug}")

