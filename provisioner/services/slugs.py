"""Tenant slug codec — sanitization and structural rules.

A slug is lowercase ``[a-z0-9-]`` and no longer than the configured cap.
Sanitization only enforces the charset and length; the structural rules
(no leading/trailing dash, no ``--``) are checked separately.
"""

import re
import uuid
from enum import StrEnum

SLUG_CHARSET = "a-z0-9-"

_DISALLOWED = re.compile(r"[^a-z0-9-]")
_DASH_RUNS = re.compile(r"-{2,}")


class SlugProblem(StrEnum):
    EMPTY = "invalid_slug"
    EDGE_DASH = "invalid_slug_edge_dash"
    DOUBLE_DASH = "invalid_slug_double_dash"


class SlugCodec:
    """Pure slug rules bound to one maximum length."""

    def __init__(self, max_length: int) -> None:
        if max_length < 1:
            raise ValueError("max_length must be at least 1")
        self.max_length = max_length

    def sanitize(self, value: object) -> str:
        """Lowercase, drop characters outside the charset, truncate. Never fails."""
        text = str(value) if value else ""
        return _DISALLOWED.sub("", text.lower())[: self.max_length]

    def structural_problem(self, slug: str) -> SlugProblem | None:
        if not slug:
            return SlugProblem.EMPTY
        if slug.startswith("-") or slug.endswith("-"):
            return SlugProblem.EDGE_DASH
        if "--" in slug:
            return SlugProblem.DOUBLE_DASH
        return None

    def is_structurally_valid(self, slug: str) -> bool:
        return self.structural_problem(slug) is None

    def tidy(self, slug: str) -> str:
        """Collapse dash runs and strip edge dashes from a sanitized slug."""
        return _DASH_RUNS.sub("-", slug).strip("-")

    def with_suffix(self, base: str, suffix: int) -> str:
        """``<base>-<suffix>``, shortening ``base`` so the suffix always fits."""
        tail = f"-{suffix}"
        room = self.max_length - len(tail)
        if room < 1:
            return self.sanitize(str(suffix))
        return self.sanitize(base[:room].rstrip("-") + tail)

    def generate(self) -> str:
        """Random UUID4-derived slug, used as a guaranteed-fresh fallback."""
        return self.sanitize(str(uuid.uuid4())).strip("-")
