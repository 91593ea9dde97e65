"""Forward-auth endpoint consumed by the edge proxy."""

import pytest
from httpx import AsyncClient

from tests.support import write_acl


def _headers(host: str, email: str | None = None, **extra: str) -> dict:
    headers = {"x-forwarded-host": host, **extra}
    if email is not None:
        headers["x-auth-request-email"] = email
    return headers


@pytest.mark.asyncio
async def test_owner_member_and_unknown_tenant(client: AsyncClient, tenants_root):
    """Owner gets 200, non-member 403, tenant without ACL 404."""
    write_acl(tenants_root, "acme", owners=["a@x.com"], members=[], roles={})

    resp = await client.get("/access/check", headers=_headers("t-acme.example.com", "a@x.com"))
    assert resp.status_code == 200
    assert resp.text == "ok"

    resp = await client.get("/access/check", headers=_headers("t-acme.example.com", "b@x.com"))
    assert resp.status_code == 403

    resp = await client.get("/access/check", headers=_headers("t-ghost.example.com", "a@x.com"))
    assert resp.status_code == 404
    assert resp.json() == {"ok": False, "error": "access_not_found"}


@pytest.mark.asyncio
async def test_missing_or_malformed_identity_is_unauthorized(client: AsyncClient, tenants_root):
    write_acl(tenants_root, "acme", owners=["a@x.com"])

    resp = await client.get("/access/check", headers=_headers("t-acme.example.com"))
    assert resp.status_code == 401

    resp = await client.get("/access/check", headers=_headers("t-acme.example.com", "not an email"))
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthorized"


@pytest.mark.asyncio
async def test_identity_checked_before_host(client: AsyncClient):
    resp = await client.get("/access/check", headers=_headers("nonsense.invalid"))
    assert resp.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("host", ["acme.example.com", "t-acme.other.com", "localhost"])
async def test_non_tenant_host_is_bad_request(client: AsyncClient, host):
    resp = await client.get("/access/check", headers=_headers(host, "a@x.com"))
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_tenant_host"


@pytest.mark.asyncio
async def test_host_header_used_without_forwarded_host(client: AsyncClient, tenants_root):
    write_acl(tenants_root, "acme", members=["a@x.com"])
    resp = await client.get(
        "/access/check",
        headers={"host": "t-acme.example.com:8443", "x-auth-request-email": "a@x.com"},
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_forwarded_host_wins_over_host(client: AsyncClient, tenants_root):
    write_acl(tenants_root, "acme", members=["a@x.com"])
    write_acl(tenants_root, "globex", members=["g@x.com"])
    resp = await client.get(
        "/access/check",
        headers={
            "host": "t-acme.example.com",
            "x-forwarded-host": "t-globex.example.com",
            "x-auth-request-email": "a@x.com",
        },
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_preferred_username_fallback_and_case_folding(client: AsyncClient, tenants_root):
    write_acl(tenants_root, "acme", members=["Mixed.Case@X.com"])
    resp = await client.get(
        "/access/check",
        headers=_headers(
            "t-acme.example.com",
            **{"x-auth-request-preferred-username": "MIXED.case@x.COM"},
        ),
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_role_only_principal_is_authorized(client: AsyncClient, tenants_root):
    write_acl(tenants_root, "acme", roles={"auditor@x.com": "auditor"})
    resp = await client.get("/access/check", headers=_headers("t-acme.example.com", "auditor@x.com"))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_security_headers_present(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["x-frame-options"] == "DENY"
    assert resp.headers["referrer-policy"] == "no-referrer"
    assert "geolocation=()" in resp.headers["permissions-policy"]


@pytest.mark.asyncio
async def test_undecodable_acl_denies_instead_of_failing(client: AsyncClient, tenants_root):
    (tenants_root / "acme").mkdir()
    (tenants_root / "acme" / "access.yml").write_bytes(b"owners: [a@x.com]\n\xff\xfe")
    resp = await client.get("/access/check", headers=_headers("t-acme.example.com", "a@x.com"))
    assert resp.status_code == 403
