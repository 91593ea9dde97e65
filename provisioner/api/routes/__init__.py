"""API router aggregation."""

from fastapi import APIRouter

from provisioner.api.routes.access import router as access_router
from provisioner.api.routes.auth import router as auth_router
from provisioner.api.routes.billing import router as billing_router
from provisioner.api.routes.tenants import router as tenants_router
from provisioner.api.routes.webhooks import router as webhooks_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(access_router)
api_router.include_router(tenants_router)
api_router.include_router(billing_router)
api_router.include_router(webhooks_router)
