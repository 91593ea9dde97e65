"""Billing webhook receiver.

Needs the raw request body for signature verification, so it reads the body
itself instead of declaring a model. Non-actionable and already-satisfied
events are acknowledged with 200 to stop redelivery.
"""

from fastapi import APIRouter, Request

from provisioner.api.deps import Orchestrator
from provisioner.services.billing import SIGNATURE_HEADER

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def receive_stripe_event(request: Request, orchestrator: Orchestrator) -> dict:
    payload = await request.body()
    result = await orchestrator.handle_delivery(payload, request.headers.get(SIGNATURE_HEADER))
    return {"received": True, "outcome": result.outcome.value, "tenant": result.tenant}
