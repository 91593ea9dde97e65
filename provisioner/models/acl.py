"""Tenant ACL document — one per tenant, keyed by slug."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ACL_SCHEMA_VERSION = 1


class TenantRole(StrEnum):
    OWNER = "owner"
    MEMBER = "member"


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


class TenantAcl(BaseModel):
    """Parsed access declarations for a tenant.

    ``roles`` maps email to a free-form role label. Entries whose label is not
    a non-empty string are kept (the key still grants access) but carry
    ``None`` so role resolution falls through to owners/members.
    """

    model_config = ConfigDict(frozen=True)

    tenant: str
    version: int | None = None
    owners: list[str] = Field(default_factory=list)
    members: list[str] = Field(default_factory=list)
    domains: list[str] = Field(default_factory=list)
    roles: dict[str, str | None] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, tenant: str, doc: Any) -> "TenantAcl":
        """Build from a loosely-typed YAML mapping; unknown shapes become empty."""
        if not isinstance(doc, dict):
            doc = {}
        raw_roles = doc.get("roles")
        roles: dict[str, str | None] = {}
        if isinstance(raw_roles, dict):
            for email, role in raw_roles.items():
                roles[str(email)] = role if isinstance(role, str) and role else None
        version = doc.get("version")
        return cls(
            tenant=tenant,
            version=version if isinstance(version, int) and not isinstance(version, bool) else None,
            owners=_string_list(doc.get("owners")),
            members=_string_list(doc.get("members")),
            domains=_string_list(doc.get("domains")),
            roles=roles,
        )

    def principals(self) -> set[str]:
        """Effective authorized set: owners ∪ members ∪ role keys, lowercased."""
        return (
            {e.lower() for e in self.owners}
            | {e.lower() for e in self.members}
            | {e.lower() for e in self.roles}
        )

    def is_authorized(self, email: str) -> bool:
        return email.lower() in self.principals()

    def role_for(self, email: str) -> str | None:
        """Explicit role wins, then owner, then member. None when not authorized."""
        email = email.lower()
        explicit = {k.lower(): v for k, v in self.roles.items() if v}
        if email in explicit:
            return explicit[email]
        if email in {e.lower() for e in self.owners}:
            return TenantRole.OWNER.value
        if email in self.principals():
            return TenantRole.MEMBER.value
        return None


class TenantMembership(BaseModel):
    tenant: str
    role: str
