"""Provisioning orchestrator and the script-backed action."""

import logging
import stat
from pathlib import Path

import pytest

from provisioner.core.errors import ProvisioningActionError, SignatureInvalid
from provisioner.models.billing import BillingEvent
from provisioner.services.provisioning import (
    ProvisioningOrchestrator,
    ProvisioningOutcome,
    ProvisioningRequest,
    ScriptProvisioningAction,
)
from tests.support import event_payload, sign_payload, write_acl

REQUEST = ProvisioningRequest(
    slug="acme",
    root_domain="example.com",
    display_name="Acme Inc",
    email="owner@x.com",
)


def _script(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "provision-tenant.sh"
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


def _event(event_type: str = "checkout.session.completed", **obj) -> BillingEvent:
    return BillingEvent.model_validate({"id": "evt_1", "type": event_type, "data": {"object": obj}})


@pytest.fixture
def orchestrator(codec, store, billing, action) -> ProvisioningOrchestrator:
    return ProvisioningOrchestrator(
        codec=codec,
        store=store,
        billing=billing,
        action=action,
        root_domain="example.com",
    )


# ── Script action ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_script_receives_positional_args(tmp_path: Path):
    out = tmp_path / "args.txt"
    script = _script(tmp_path, f'printf "%s|" "$@" > "{out}"\necho done')

    output = await ScriptProvisioningAction(script, timeout=10)(REQUEST)

    assert out.read_text() == "acme|example.com|Acme Inc|owner@x.com|"
    assert output.stdout.strip() == "done"


@pytest.mark.asyncio
async def test_script_nonzero_exit_raises_and_logs_output(tmp_path: Path, caplog):
    script = _script(tmp_path, 'echo "creating acme"\necho "tenant exists" >&2\nexit 3')
    with caplog.at_level(logging.ERROR, logger="provisioner.services.provisioning"):
        with pytest.raises(ProvisioningActionError) as exc_info:
            await ScriptProvisioningAction(script, timeout=10)(REQUEST)
    assert exc_info.value.context["returncode"] == 3
    assert "creating acme" in caplog.text
    assert "tenant exists" in caplog.text


@pytest.mark.asyncio
async def test_missing_script_raises(tmp_path: Path):
    with pytest.raises(ProvisioningActionError):
        await ScriptProvisioningAction(tmp_path / "nope.sh")(REQUEST)


@pytest.mark.asyncio
async def test_slow_script_times_out(tmp_path: Path):
    script = _script(tmp_path, "exec sleep 5")
    with pytest.raises(ProvisioningActionError, match="timed out"):
        await ScriptProvisioningAction(script, timeout=0.2)(REQUEST)


# ── Orchestrator ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_unrelated_event_ignored(orchestrator, action):
    result = await orchestrator.handle_event(_event("invoice.paid", metadata={"tenant": "acme"}))
    assert result.outcome is ProvisioningOutcome.IGNORED
    assert action.calls == []


@pytest.mark.asyncio
async def test_existing_tenant_not_reprovisioned(orchestrator, action, tenants_root):
    write_acl(tenants_root, "acme", owners=["a@x.com"])
    result = await orchestrator.handle_event(_event(metadata={"tenant": "acme"}))
    assert result.outcome is ProvisioningOutcome.ALREADY_PROVISIONED
    assert result.tenant == "acme"
    assert action.calls == []


@pytest.mark.asyncio
async def test_metadata_slug_is_sanitized(orchestrator, action):
    result = await orchestrator.handle_event(_event(metadata={"tenant": " Acme_Co "}))
    assert result.outcome is ProvisioningOutcome.TRIGGERED
    assert result.tenant == "acmeco"
    assert action.calls[0].slug == "acmeco"


@pytest.mark.asyncio
async def test_metadata_email_used_without_customer_details(orchestrator, action):
    await orchestrator.handle_event(_event(metadata={"tenant": "acme", "email": "meta@x.com"}))
    assert action.calls[0].email == "meta@x.com"
    assert action.calls[0].display_name == ""


@pytest.mark.asyncio
async def test_customer_not_consulted_when_event_names_tenant(orchestrator, billing):
    await orchestrator.handle_event(_event(metadata={"tenant": "acme"}, customer="cus_1"))
    assert billing.customer_calls == []


@pytest.mark.asyncio
async def test_expanded_customer_object_is_looked_up(orchestrator, billing, action):
    from provisioner.models.billing import BillingCustomer

    billing.customers["cus_9"] = BillingCustomer(email=None, metadata={"tenant_slug": "globex"})
    result = await orchestrator.handle_event(_event(customer={"id": "cus_9", "object": "customer"}))
    assert result.tenant == "globex"
    assert action.calls[0].email == ""


@pytest.mark.asyncio
async def test_bad_signature_stops_before_parsing(orchestrator, action):
    payload = event_payload(metadata={"tenant": "acme"})
    with pytest.raises(SignatureInvalid):
        await orchestrator.handle_delivery(payload, sign_payload(payload, secret="whsec_wrong"))
    assert action.calls == []


@pytest.mark.asyncio
async def test_delivery_verifies_then_provisions(orchestrator, action):
    payload = event_payload(metadata={"tenant": "acme"})
    result = await orchestrator.handle_delivery(payload, sign_payload(payload))
    assert result.outcome is ProvisioningOutcome.TRIGGERED
    assert len(action.calls) == 1
