"""Slug suggestion and validation (read-only)."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from provisioner.api.deps import Allocator, Codec
from provisioner.services.slugs import SLUG_CHARSET

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("/suggest")
async def suggest_slug(allocator: Allocator, base: str = "") -> dict:
    return {"ok": True, "slug": await allocator.suggest(base)}


@router.get("/validate")
async def validate_slug(allocator: Allocator, codec: Codec, slug: str = ""):
    result = await allocator.validate(slug)
    if not result.ok:
        return JSONResponse({"ok": False, "error": str(result.problem)}, status_code=400)
    availability = result.availability
    return {
        "ok": True,
        "slug": result.slug,
        "available": result.available,
        "existsLocally": availability.exists_locally,
        "existsInBilling": availability.exists_in_billing,
        "maxLen": codec.max_length,
        "charset": SLUG_CHARSET,
    }
