"""Forward-auth check consumed by the edge proxy.

Status-only contract: 200 authorized, 401 no identity, 400 host is not a
tenant host, 404 tenant has no ACL, 403 principal not a member.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from provisioner.api.deps import Gate, Host, Principal

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/check", response_class=PlainTextResponse)
def check_access(principal: Principal, host: Host, gate: Gate) -> str:
    gate.check_access(host, principal)
    return "ok"
