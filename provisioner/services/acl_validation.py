"""Schema and consistency checks for tenant ACL documents."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from provisioner.models.acl import ACL_SCHEMA_VERSION

logger = logging.getLogger(__name__)

TENANT_SLUG_RE = re.compile(r"^[a-z0-9-]{1,32}$")
_EMAIL_RE = re.compile(r".+@.+\..+")
_DOMAIN_RE = re.compile(r"^[a-z0-9.-]+\.[a-z]{2,}$", re.IGNORECASE)


@dataclass
class AclReport:
    """Findings for one ACL file. Warnings never fail validation."""

    path: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class TreeReport:
    root: str
    reports: list[AclReport] = field(default_factory=list)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.reports)


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def validate_acl_document(directory_slug: str, doc: Any, path: str = "") -> AclReport:
    """Check one parsed document against the ACL schema."""
    report = AclReport(path=path or directory_slug)
    if not isinstance(doc, dict):
        doc = {}

    if doc.get("version") != ACL_SCHEMA_VERSION:
        report.errors.append(f"version must be {ACL_SCHEMA_VERSION}")

    slug = str(doc.get("tenant") or "").lower()
    if not slug:
        report.errors.append("tenant is required")
    if slug != directory_slug:
        report.errors.append(f"tenant slug '{slug}' must match directory '{directory_slug}'")
    if not TENANT_SLUG_RE.match(slug):
        report.errors.append("tenant slug must match ^[a-z0-9-]{1,32}$")

    owners = _as_list(doc.get("owners"))
    members = _as_list(doc.get("members"))
    domains = _as_list(doc.get("domains"))
    raw_roles = doc.get("roles")
    roles: dict[Any, Any] = raw_roles if isinstance(raw_roles, dict) else {}

    for email in [*owners, *members, *roles]:
        if not isinstance(email, str) or not _EMAIL_RE.match(email):
            report.errors.append(f"invalid email '{email}'")

    if len(owners) != len(set(map(str, owners))):
        report.errors.append("duplicate emails in owners")
    if len(members) != len(set(map(str, members))):
        report.errors.append("duplicate emails in members")

    for email, role in roles.items():
        if not isinstance(role, str) or not role:
            report.errors.append(f"role for {email} must be a non-empty string")

    for domain in domains:
        if not isinstance(domain, str) or not _DOMAIN_RE.match(domain):
            report.errors.append(f"invalid domain '{domain}'")

    for email, role in roles.items():
        if role == "owner" and email not in owners:
            report.warnings.append(f"{email} has role 'owner' but is not listed in owners[]")
        elif email not in owners and email not in members:
            report.warnings.append(f"{email} has a role but is not listed in owners[] or members[]")

    return report


def validate_access_file(directory_slug: str, path: Path) -> AclReport:
    try:
        doc = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError) as exc:
        problem = f"unreadable file: {exc}"
    except yaml.YAMLError as exc:
        problem = f"YAML parse error: {exc}"
    else:
        return validate_acl_document(directory_slug, doc, str(path))
    report = validate_acl_document(directory_slug, {}, str(path))
    report.errors.insert(0, problem)
    return report


def validate_access_tree(root: Path, access_file_name: str = "access.yml") -> TreeReport:
    """Validate every tenant directory under ``root`` that holds an ACL file."""
    tree = TreeReport(root=str(root))
    if not root.is_dir():
        logger.info("Runtime tenants directory %s not found; skipping", root)
        tree.skipped = True
        return tree

    for entry in sorted(root.iterdir()):
        path = entry / access_file_name
        if entry.is_dir() and path.is_file():
            tree.reports.append(validate_access_file(entry.name, path))
    return tree
