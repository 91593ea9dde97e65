"""FastAPI dependencies wiring the control-plane components.

Everything is built from the single ``Settings`` instance, so tests can swap
configuration or any component through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request

from provisioner.core.config import Settings, get_settings
from provisioner.core.security import principal_from_headers, request_host
from provisioner.services.access_store import AccessStore, FilesystemTenantRepository
from provisioner.services.allocator import SlugAllocator
from provisioner.services.billing import StripeBilling
from provisioner.services.gate import TenantGate
from provisioner.services.provisioning import (
    ProvisioningAction,
    ProvisioningOrchestrator,
    ScriptProvisioningAction,
)
from provisioner.services.slugs import SlugCodec

Config = Annotated[Settings, Depends(get_settings)]


def get_codec(settings: Config) -> SlugCodec:
    return SlugCodec(settings.max_slug_len)


def get_access_store(
    settings: Config,
    codec: Annotated[SlugCodec, Depends(get_codec)],
) -> AccessStore:
    repository = FilesystemTenantRepository(
        settings.runtime_tenants_path, settings.access_file_name
    )
    return AccessStore(repository, codec)


def get_billing(settings: Config) -> StripeBilling:
    return StripeBilling(
        api_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        timeout=settings.billing_timeout_seconds,
        tolerance=settings.webhook_tolerance_seconds,
    )


def get_provisioning_action(settings: Config) -> ProvisioningAction:
    return ScriptProvisioningAction(
        settings.provision_script_path, timeout=settings.provision_timeout_seconds
    )


Codec = Annotated[SlugCodec, Depends(get_codec)]
Store = Annotated[AccessStore, Depends(get_access_store)]
Billing = Annotated[StripeBilling, Depends(get_billing)]


def get_allocator(codec: Codec, store: Store, billing: Billing) -> SlugAllocator:
    return SlugAllocator(codec, store, billing)


def get_gate(settings: Config, codec: Codec, store: Store) -> TenantGate:
    return TenantGate(
        store,
        codec,
        root_domain=settings.tenant_root_domain,
        prefix=settings.tenant_prefix,
    )


def get_orchestrator(
    settings: Config,
    codec: Codec,
    store: Store,
    billing: Billing,
    action: Annotated[ProvisioningAction, Depends(get_provisioning_action)],
) -> ProvisioningOrchestrator:
    return ProvisioningOrchestrator(
        codec=codec,
        store=store,
        billing=billing,
        action=action,
        root_domain=settings.tenant_root_domain,
    )


def get_principal(request: Request) -> str | None:
    """Verified principal email from the trusted proxy headers, if any."""
    return principal_from_headers(request.headers)


def get_request_host(request: Request) -> str:
    return request_host(request.headers)


Allocator = Annotated[SlugAllocator, Depends(get_allocator)]
Gate = Annotated[TenantGate, Depends(get_gate)]
Orchestrator = Annotated[ProvisioningOrchestrator, Depends(get_orchestrator)]
Principal = Annotated[str | None, Depends(get_principal)]
Host = Annotated[str, Depends(get_request_host)]
