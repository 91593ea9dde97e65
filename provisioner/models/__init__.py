"""Record types shared by the services and the API layer."""

from provisioner.models.acl import ACL_SCHEMA_VERSION, TenantAcl, TenantMembership, TenantRole
from provisioner.models.billing import (
    BillingCustomer,
    BillingEvent,
    BillingObject,
    CheckoutSession,
)

__all__ = [
    "ACL_SCHEMA_VERSION",
    "BillingCustomer",
    "BillingEvent",
    "BillingObject",
    "CheckoutSession",
    "TenantAcl",
    "TenantMembership",
    "TenantRole",
]
