"""Typed views over billing (Stripe) payloads.

Only the fields the control plane consumes are modelled. Everything else in
the payload is ignored; odd shapes for optional fields fall back to empty
defaults instead of failing the whole event.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

TENANT_NAME_FIELD = "tenant_name"


def clean_metadata(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items() if v is not None}


def tenant_from_metadata(metadata: dict[str, str]) -> str:
    return (metadata.get("tenant") or metadata.get("tenant_slug") or "").strip()


class CustomFieldText(BaseModel):
    value: str | None = None


class CustomField(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str = ""
    type: str = ""
    text: CustomFieldText | None = None


class CustomerDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str | None = None


class BillingObject(BaseModel):
    """The ``data.object`` of a checkout session or subscription event."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)
    customer: str | None = None
    customer_details: CustomerDetails | None = None
    custom_fields: list[CustomField] = Field(default_factory=list)

    @field_validator("metadata", mode="before")
    @classmethod
    def _coerce_metadata(cls, value: Any) -> dict[str, str]:
        return clean_metadata(value)

    @field_validator("customer", mode="before")
    @classmethod
    def _customer_id(cls, value: Any) -> str | None:
        # Expanded customers arrive as objects.
        if isinstance(value, dict):
            value = value.get("id")
        return value if isinstance(value, str) and value else None

    @field_validator("customer_details", mode="before")
    @classmethod
    def _details(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("custom_fields", mode="before")
    @classmethod
    def _fields(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @property
    def tenant_slug(self) -> str:
        return tenant_from_metadata(self.metadata)

    @property
    def principal_email(self) -> str:
        if self.customer_details and self.customer_details.email:
            return self.customer_details.email
        return self.metadata.get("email", "")

    @property
    def display_name(self) -> str:
        for custom in self.custom_fields:
            if custom.key == TENANT_NAME_FIELD and custom.type == "text" and custom.text:
                return (custom.text.value or "").strip()
        return ""


class BillingEventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: BillingObject = Field(default_factory=BillingObject)

    @field_validator("object", mode="before")
    @classmethod
    def _object(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}


class BillingEvent(BaseModel):
    """A verified webhook event."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    type: str
    data: BillingEventData = Field(default_factory=BillingEventData)


@dataclass
class BillingCustomer:
    email: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def tenant_slug(self) -> str:
        return tenant_from_metadata(self.metadata)


@dataclass
class CheckoutSession:
    id: str
    url: str
