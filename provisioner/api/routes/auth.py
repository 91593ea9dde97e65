"""Post-login tenant resolution."""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse, RedirectResponse

from provisioner.api.deps import Config, Gate, Principal
from provisioner.core.errors import AuthenticationMissing, ControlPlaneError
from provisioner.core.security import NO_STORE_HEADERS

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", include_in_schema=False)
def whoami(principal: Principal, settings: Config) -> dict:
    """Echo the proxy-supplied identity. Only exposed when AUTH_DEBUG is on."""
    if not settings.auth_debug:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    if principal is None:
        raise AuthenticationMissing()
    return {"email": principal}


@router.get("/complete")
def complete_login(
    principal: Principal,
    gate: Gate,
    settings: Config,
    tenant: str | None = None,
    debug: str = "",
):
    """Redirect the freshly logged-in principal to one of their tenants."""
    try:
        resolution = gate.resolve_login(principal, tenant)
    except ControlPlaneError as exc:
        exc.headers.update(NO_STORE_HEADERS)
        raise

    if settings.auth_debug and debug == "1":
        return JSONResponse(
            {
                "email": resolution.email,
                "tenants": [m.model_dump() for m in resolution.memberships],
                "baseDomain": settings.tenant_root_domain,
                "tenantPrefix": settings.tenant_prefix,
            },
            headers=NO_STORE_HEADERS,
        )
    return RedirectResponse(
        resolution.redirect_url,
        status_code=status.HTTP_302_FOUND,
        headers=NO_STORE_HEADERS,
    )
