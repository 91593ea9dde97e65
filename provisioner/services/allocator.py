"""Slug allocator — codec rules plus the two collision authorities.

A slug is taken when it exists as a tenant directory or is referenced by a
billing customer. Nothing is reserved here; between a check and the checkout
or provisioning that captures the slug there is a window another request can
race into.
"""

from dataclasses import dataclass
from typing import Protocol

from provisioner.services.access_store import AccessStore
from provisioner.services.slugs import SlugCodec, SlugProblem

MAX_SUFFIX = 99


class SlugDirectory(Protocol):
    async def slug_referenced(self, slug: str) -> bool: ...


@dataclass(frozen=True)
class SlugAvailability:
    exists_locally: bool
    exists_in_billing: bool

    @property
    def available(self) -> bool:
        return not (self.exists_locally or self.exists_in_billing)


@dataclass(frozen=True)
class SlugValidation:
    slug: str
    problem: SlugProblem | None = None
    availability: SlugAvailability | None = None

    @property
    def ok(self) -> bool:
        return self.problem is None

    @property
    def available(self) -> bool:
        return self.availability is not None and self.availability.available


class SlugAllocator:
    def __init__(self, codec: SlugCodec, store: AccessStore, billing: SlugDirectory) -> None:
        self.codec = codec
        self.store = store
        self.billing = billing

    async def check_availability(self, slug: str) -> SlugAvailability:
        return SlugAvailability(
            exists_locally=self.store.tenant_exists(slug),
            exists_in_billing=await self.billing.slug_referenced(slug),
        )

    async def is_available(self, slug: str) -> bool:
        # Local check first; it is cheap and authoritative.
        if self.store.tenant_exists(slug):
            return False
        return not await self.billing.slug_referenced(slug)

    async def suggest(self, base: object) -> str:
        """First free slug among ``base``, ``base-1`` .. ``base-99``.

        Falls back to a random slug, which is not re-checked.
        """
        slug = self.codec.tidy(self.codec.sanitize(base)) or self.codec.generate()
        if await self.is_available(slug):
            return slug
        for suffix in range(1, MAX_SUFFIX + 1):
            candidate = self.codec.with_suffix(slug, suffix)
            if candidate and await self.is_available(candidate):
                return candidate
        return self.codec.generate()

    async def validate(self, requested: object) -> SlugValidation:
        """Sanitize, check structure, then (only if well-formed) availability."""
        slug = self.codec.sanitize(requested)
        problem = self.codec.structural_problem(slug)
        if problem is not None:
            return SlugValidation(slug=slug, problem=problem)
        return SlugValidation(slug=slug, availability=await self.check_availability(slug))
