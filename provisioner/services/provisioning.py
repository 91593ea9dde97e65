"""Provisioning orchestrator — billing webhook to tenant materialization.

Flow per delivery:
  1. Verify the webhook signature (nothing else runs on failure)
  2. Ignore event types that do not provision
  3. Resolve tenant slug, email and display name, falling back to the
     billing customer's metadata when the event carries no slug
  4. Re-sanitize and re-check the slug structure
  5. Skip when the tenant already exists (idempotency guard)
  6. Run the external provisioning action

Tenant state is never stored here; it is read from the access store on every
delivery. Two concurrent deliveries for the same new tenant can both pass the
guard, so the external action must itself refuse to create a tenant twice.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Protocol

from provisioner.core.errors import ProvisioningActionError
from provisioner.models.billing import BillingCustomer, BillingEvent
from provisioner.services.access_store import AccessStore
from provisioner.services.slugs import SlugCodec

logger = logging.getLogger(__name__)

PROVISIONING_EVENT_TYPES = frozenset({
    "checkout.session.completed",
    "customer.subscription.created",
})


class ProvisioningOutcome(StrEnum):
    IGNORED = "ignored"
    SKIPPED_NO_TENANT = "skipped_no_tenant"
    SKIPPED_INVALID_SLUG = "skipped_invalid_slug"
    ALREADY_PROVISIONED = "already_provisioned"
    TRIGGERED = "triggered"


@dataclass(frozen=True)
class ProvisioningRequest:
    slug: str
    root_domain: str
    display_name: str
    email: str

    def as_args(self) -> list[str]:
        """Positional arguments for the external action."""
        return [self.slug, self.root_domain, self.display_name, self.email]


@dataclass(frozen=True)
class ActionOutput:
    stdout: str = ""
    stderr: str = ""


@dataclass(frozen=True)
class ProvisioningResult:
    outcome: ProvisioningOutcome
    tenant: str | None = None


class ProvisioningAction(Protocol):
    async def __call__(self, request: ProvisioningRequest) -> ActionOutput: ...


class BillingSource(Protocol):
    def verify_event(self, payload: bytes, signature: str | None) -> BillingEvent: ...

    async def retrieve_customer(self, customer_id: str) -> BillingCustomer | None: ...


class ScriptProvisioningAction:
    """Runs the provisioning script as ``script slug root_domain name email``."""

    def __init__(self, script: Path, timeout: float = 300.0) -> None:
        self.script = Path(script)
        self.timeout = timeout

    async def __call__(self, request: ProvisioningRequest) -> ActionOutput:
        try:
            proc = await asyncio.create_subprocess_exec(
                str(self.script),
                *request.as_args(),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=os.environ.copy(),
            )
        except OSError as exc:
            raise ProvisioningActionError(
                f"cannot start {self.script}: {exc}", context={"tenant": request.slug}
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise ProvisioningActionError(
                f"{self.script} timed out after {self.timeout}s",
                context={"tenant": request.slug},
            ) from exc

        output = ActionOutput(
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )
        if proc.returncode != 0:
            if output.stdout:
                logger.error("Provisioning stdout for %s: %s", request.slug, output.stdout)
            if output.stderr:
                logger.error("Provisioning stderr for %s: %s", request.slug, output.stderr)
            raise ProvisioningActionError(
                f"{self.script} exited with {proc.returncode}",
                context={"tenant": request.slug, "returncode": proc.returncode},
            )
        return output


class ProvisioningOrchestrator:
    def __init__(
        self,
        *,
        codec: SlugCodec,
        store: AccessStore,
        billing: BillingSource,
        action: ProvisioningAction,
        root_domain: str,
    ) -> None:
        self.codec = codec
        self.store = store
        self.billing = billing
        self.action = action
        self.root_domain = root_domain

    async def handle_delivery(self, payload: bytes, signature: str | None) -> ProvisioningResult:
        """Entry point for a raw webhook delivery."""
        event = self.billing.verify_event(payload, signature)
        return await self.handle_event(event)

    async def handle_event(self, event: BillingEvent) -> ProvisioningResult:
        if event.type not in PROVISIONING_EVENT_TYPES:
            return ProvisioningResult(ProvisioningOutcome.IGNORED)

        obj = event.data.object
        tenant = obj.tenant_slug
        email = obj.principal_email
        display_name = obj.display_name

        if not tenant and obj.customer:
            customer = await self.billing.retrieve_customer(obj.customer)
            if customer is not None:
                tenant = customer.tenant_slug
                email = email or customer.email or ""

        if not tenant:
            logger.error("No tenant in event %s metadata; cannot provision, skipped", event.id)
            return ProvisioningResult(ProvisioningOutcome.SKIPPED_NO_TENANT)

        # Metadata is user-influenced; hold it to the same rules as direct input.
        slug = self.codec.sanitize(tenant)
        if not self.codec.is_structurally_valid(slug):
            logger.error("Invalid tenant slug %r in event %s; skipped", slug, event.id)
            return ProvisioningResult(ProvisioningOutcome.SKIPPED_INVALID_SLUG, tenant=slug or None)

        if self.store.tenant_exists(slug):
            logger.info("Tenant %s already exists; skipping provisioning", slug)
            return ProvisioningResult(ProvisioningOutcome.ALREADY_PROVISIONED, tenant=slug)

        logger.info("Provisioning tenant %s for %s", slug, email or "unknown email")
        output = await self.action(
            ProvisioningRequest(
                slug=slug,
                root_domain=self.root_domain,
                display_name=display_name,
                email=email,
            )
        )
        if output.stdout:
            logger.info("Provisioning stdout for %s: %s", slug, output.stdout)
        if output.stderr:
            logger.warning("Provisioning stderr for %s: %s", slug, output.stderr)
        return ProvisioningResult(ProvisioningOutcome.TRIGGERED, tenant=slug)
