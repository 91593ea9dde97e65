"""Security helpers: trusted identity headers and response hardening."""

import re
from collections.abc import Mapping

# Injected by the upstream authenticating proxy (oauth2-proxy style).
EMAIL_HEADER = "x-auth-request-email"
PREFERRED_USERNAME_HEADER = "x-auth-request-preferred-username"
FORWARDED_HOST_HEADER = "x-forwarded-host"

_EMAIL_RE = re.compile(r"^[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}$")

# Looser check used only to decide whether to prefill the checkout email.
_PLAUSIBLE_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}

NO_STORE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}


def principal_from_headers(headers: Mapping[str, str]) -> str | None:
    """Return the verified principal email, or None.

    The preferred-username header is only consulted when the email header is
    absent or empty. Anything that is not a well-formed email is treated as
    no principal at all, never as an error.
    """
    raw = headers.get(EMAIL_HEADER) or headers.get(PREFERRED_USERNAME_HEADER) or ""
    email = raw.strip().lower()
    if not _EMAIL_RE.match(email):
        return None
    return email


def request_host(headers: Mapping[str, str]) -> str:
    """Inbound host, preferring the proxy's forwarded host.

    Only the first value of a comma-separated list is used and any port is
    dropped.
    """
    raw = headers.get(FORWARDED_HOST_HEADER) or headers.get("host") or ""
    host = raw.split(",", 1)[0].strip().lower()
    if host.startswith("["):
        return host
    return host.rsplit(":", 1)[0] if ":" in host else host


def is_plausible_email(value: str | None) -> bool:
    return bool(value) and bool(_PLAUSIBLE_EMAIL_RE.match(value))
