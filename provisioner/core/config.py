"""Application settings loaded from environment / .env file."""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# A full tenant label is `<tenant_prefix><slug>` and must fit one DNS label.
MAX_DNS_LABEL = 63

DEFAULT_ALLOWED_ORIGINS = (
    "https://www.example.com",
    "https://example.com",
    "https://billing.example.com",
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
)

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ── Billing (Stripe) ──────────────────────────────────
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_price_id: str = ""
    checkout_success_url: str = ""
    checkout_cancel_url: str = ""
    billing_timeout_seconds: float = 10.0
    webhook_tolerance_seconds: int = 300

    # ── Tenant addressing ─────────────────────────────────
    tenant_root_domain: str = "example.com"
    tenant_prefix: str = "t-"
    tenant_slug_max_len: int | None = None

    # ── Access store / provisioning ───────────────────────
    runtime_tenants_path: Path = Path("/var/lib/anyapp-saas/tenants")
    access_file_name: str = "access.yml"
    repo_path: Path = Path("/opt/repo")
    provision_script: Path | None = None
    provision_timeout_seconds: float = 300.0

    # ── HTTP ──────────────────────────────────────────────
    allowed_origins: str = ""  # comma-separated; empty -> DEFAULT_ALLOWED_ORIGINS
    auth_debug: bool = False
    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _known_log_level(cls, value: object) -> str:
        level = str(value).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def max_slug_len(self) -> int:
        """DNS-safe slug cap, optionally lowered (never raised) by TENANT_SLUG_MAX_LEN."""
        cap = max(1, MAX_DNS_LABEL - len(self.tenant_prefix))
        if self.tenant_slug_max_len is None:
            return cap
        return max(1, min(cap, self.tenant_slug_max_len))

    @property
    def provision_script_path(self) -> Path:
        if self.provision_script is not None:
            return self.provision_script
        return self.repo_path / "scripts" / "provision-tenant.sh"

    @property
    def allowed_origin_list(self) -> list[str]:
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return origins or list(DEFAULT_ALLOWED_ORIGINS)

    @property
    def billing_configured(self) -> bool:
        return bool(self.stripe_secret_key and self.stripe_webhook_secret)


@lru_cache
def get_settings() -> Settings:
    return Settings()
