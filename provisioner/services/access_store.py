"""Access store — per-tenant ACL documents on a directory tree.

Layout: ``<root>/<slug>/<access_file_name>``. The tree is written only by the
external provisioning action; this module never mutates it.
"""

import logging
from pathlib import Path
from typing import Protocol

import yaml

from provisioner.models.acl import TenantAcl, TenantMembership
from provisioner.services.slugs import SlugCodec

logger = logging.getLogger(__name__)


class TenantRepository(Protocol):
    """Lookup-by-slug, list-all and exists over provisioned tenants."""

    def exists(self, slug: str) -> bool: ...

    def read_document(self, slug: str) -> str | None: ...

    def list_slugs(self) -> list[str]: ...


class FilesystemTenantRepository:
    """Directory-as-database tenant repository."""

    def __init__(self, root: Path, access_file_name: str = "access.yml") -> None:
        self.root = Path(root)
        self.access_file_name = access_file_name

    def tenant_dir(self, slug: str) -> Path:
        return self.root / slug

    def access_file(self, slug: str) -> Path:
        return self.tenant_dir(slug) / self.access_file_name

    def exists(self, slug: str) -> bool:
        return bool(slug) and self.tenant_dir(slug).exists()

    def read_document(self, slug: str) -> str | None:
        path = self.access_file(slug)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def list_slugs(self) -> list[str]:
        """Tenant directory names in enumeration order (not sorted)."""
        if not self.root.is_dir():
            return []
        return [entry.name for entry in self.root.iterdir() if entry.is_dir()]


class AccessStore:
    """Reads tenant ACLs and answers membership questions."""

    def __init__(self, repository: TenantRepository, codec: SlugCodec) -> None:
        self.repository = repository
        self.codec = codec

    def tenant_exists(self, slug: str) -> bool:
        return self.repository.exists(slug)

    def load_tenant_acl(self, tenant: str) -> TenantAcl | None:
        """Load a tenant's ACL, or None when the tenant has no document.

        The slug is sanitized before touching the repository. A document that
        cannot be read or fails to parse yields an empty ACL (no principals)
        rather than None: the tenant exists, nobody is authorized.
        """
        slug = self.codec.sanitize(tenant)
        if not slug:
            return None
        try:
            text = self.repository.read_document(slug)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Unreadable ACL for tenant %s: %s", slug, exc)
            return TenantAcl.from_document(slug, {})
        if text is None:
            return None
        try:
            doc = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            logger.warning("Unparseable ACL for tenant %s: %s", slug, exc)
            doc = {}
        return TenantAcl.from_document(slug, doc)

    def resolve_tenants_for_principal(self, email: str) -> list[TenantMembership]:
        """All tenants where ``email`` is an owner, member or role key.

        Ordering follows directory enumeration; sort if you need determinism.
        Scans every tenant on each call.
        """
        email = email.lower()
        results: list[TenantMembership] = []
        for slug in self.repository.list_slugs():
            acl = self.load_tenant_acl(slug)
            if acl is None:
                continue
            role = acl.role_for(email)
            if role is not None:
                results.append(TenantMembership(tenant=acl.tenant, role=role))
        return results
