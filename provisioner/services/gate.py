"""Tenant resolution gate — post-login redirect and forward-auth checks."""

from dataclasses import dataclass

from provisioner.core.errors import (
    AuthenticationMissing,
    AuthorizationDenied,
    MalformedInput,
    TenantNotFound,
)
from provisioner.models.acl import TenantAcl, TenantMembership
from provisioner.services.access_store import AccessStore
from provisioner.services.slugs import SlugCodec


@dataclass(frozen=True)
class LoginResolution:
    email: str
    tenant: str
    redirect_url: str
    memberships: list[TenantMembership]


class TenantGate:
    """Maps hosts and principals to tenant access decisions.

    Tenant hosts look like ``<prefix><slug>.<root_domain>``.
    """

    def __init__(
        self,
        store: AccessStore,
        codec: SlugCodec,
        *,
        root_domain: str,
        prefix: str,
    ) -> None:
        self.store = store
        self.codec = codec
        self.root_domain = root_domain.lower()
        self.prefix = prefix.lower()

    def tenant_url(self, slug: str) -> str:
        return f"https://{self.prefix}{slug}.{self.root_domain}"

    def tenant_from_host(self, host: str) -> str:
        """Slug encoded in ``host``, or "" when the host is not a tenant host."""
        host = host.lower()
        suffix = f".{self.root_domain}"
        if not host.endswith(suffix):
            return ""
        label = host[: -len(suffix)]
        if not label.startswith(self.prefix):
            return ""
        return self.codec.sanitize(label[len(self.prefix):])

    def check_access(self, host: str, email: str | None) -> TenantAcl:
        """Forward-auth decision; raises on every outcome except "authorized"."""
        if not email:
            raise AuthenticationMissing()
        tenant = self.tenant_from_host(host)
        if not tenant:
            raise MalformedInput("invalid tenant host", code="invalid_tenant_host", context={"host": host})
        acl = self.store.load_tenant_acl(tenant)
        if acl is None:
            raise TenantNotFound(context={"tenant": tenant})
        if not acl.is_authorized(email):
            raise AuthorizationDenied(context={"tenant": tenant})
        return acl

    def resolve_login(self, email: str | None, requested: str | None = None) -> LoginResolution:
        """Pick the tenant to land on after login.

        The requested tenant wins when the principal belongs to it; otherwise
        the first membership found.
        """
        if not email:
            raise AuthenticationMissing()
        memberships = self.store.resolve_tenants_for_principal(email)
        if not memberships:
            raise AuthorizationDenied("no tenant access", code="no_tenant_access")

        target = memberships[0].tenant
        if requested:
            wanted = requested.lower()
            if any(m.tenant == wanted for m in memberships):
                target = wanted
        return LoginResolution(
            email=email,
            tenant=target,
            redirect_url=self.tenant_url(target),
            memberships=memberships,
        )
