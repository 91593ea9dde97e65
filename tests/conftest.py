"""Shared test fixtures: tenant tree on tmp_path and an ASGI test client."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from provisioner.api.deps import get_billing, get_provisioning_action
from provisioner.core.config import Settings, get_settings
from provisioner.main import app
from provisioner.services.access_store import AccessStore, FilesystemTenantRepository
from provisioner.services.slugs import SlugCodec
from tests.support import WEBHOOK_SECRET, FakeBilling, FakeProvisioningAction


@pytest.fixture
def tenants_root(tmp_path: Path) -> Path:
    root = tmp_path / "tenants"
    root.mkdir()
    return root


@pytest.fixture
def settings(tenants_root: Path) -> Settings:
    return Settings(
        _env_file=None,
        runtime_tenants_path=tenants_root,
        tenant_root_domain="example.com",
        tenant_prefix="t-",
        stripe_secret_key="sk_test_fake",
        stripe_webhook_secret=WEBHOOK_SECRET,
        stripe_price_id="price_123",
        checkout_success_url="https://example.com/welcome",
        checkout_cancel_url="https://example.com/pricing",
        auth_debug=False,
    )


@pytest.fixture
def codec(settings: Settings) -> SlugCodec:
    return SlugCodec(settings.max_slug_len)


@pytest.fixture
def store(tenants_root: Path, codec: SlugCodec) -> AccessStore:
    return AccessStore(FilesystemTenantRepository(tenants_root), codec)


@pytest.fixture
def billing() -> FakeBilling:
    return FakeBilling()


@pytest.fixture
def action(tenants_root: Path) -> FakeProvisioningAction:
    return FakeProvisioningAction(tenants_root)


@pytest.fixture
async def client(
    settings: Settings,
    billing: FakeBilling,
    action: FakeProvisioningAction,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with settings and external collaborators overridden."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_billing] = lambda: billing
    app.dependency_overrides[get_provisioning_action] = lambda: action

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
