"""Control-plane error taxonomy.

Every error carries an HTTP status and a stable machine-readable ``code``.
The API layer renders them as ``{"ok": false, "error": code}``; the message
and context are for logs only and never reach the caller.
"""

from typing import Any


class ControlPlaneError(Exception):
    """Base exception for all control-plane errors."""

    status_code = 500
    code = "internal"

    def __init__(
        self,
        message: str = "",
        *,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message or self.code)
        if code is not None:
            self.code = code
        self.context: dict[str, Any] = context or {}
        self.headers: dict[str, str] = {}


# ── Caller identity / authorization ───────────────────────────

class AuthenticationMissing(ControlPlaneError):
    """No usable principal in the trusted identity headers."""

    status_code = 401
    code = "unauthorized"


class AuthorizationDenied(ControlPlaneError):
    """Principal is not in the tenant's authorized set."""

    status_code = 403
    code = "forbidden"


# ── Input ─────────────────────────────────────────────────────

class MalformedInput(ControlPlaneError):
    """Host, slug or payload does not have the expected shape."""

    status_code = 400
    code = "bad_request"


class TenantNotFound(ControlPlaneError):
    """The requested tenant has no ACL document."""

    status_code = 404
    code = "access_not_found"


class SlugConflict(ControlPlaneError):
    """Slug already claimed by the access store or the billing system."""

    status_code = 409
    code = "slug_taken"


class SignatureInvalid(ControlPlaneError):
    """Webhook authenticity check failed."""

    status_code = 400
    code = "invalid_signature"


# ── Operator / upstream ───────────────────────────────────────

class ConfigurationError(ControlPlaneError):
    """A required secret, price or URL is not configured."""

    status_code = 500
    code = "not_configured"


class UpstreamUnavailable(ControlPlaneError):
    """The billing system could not be reached or rejected the call."""

    status_code = 502
    code = "upstream_unavailable"


class ProvisioningActionError(ControlPlaneError):
    """The external provisioning action failed, timed out or is missing."""

    status_code = 500
    code = "provisioning_failed"
