"""
Per-call collaborator snapshot.

One validation run performs at most one bulk ingredient lookup and at most
one limits lookup per jurisdiction, no matter how many checks ask. Checks
await the shared future; when the collaborator call failed, every awaiting
check sees the same exception and converts it to its own fail-closed
finding.
"""

import asyncio
from typing import Dict, Optional

from .models import BulkLookupResult, Ingredient, Recipe, RegulatoryLimits
from .providers import IngredientDataProvider, RegulatoryLimitsProvider
from .tables import ReferenceTables


class LookupSnapshot:
    """Read-only view shared by all checks of one validation run."""

    def __init__(
        self,
        recipe: Recipe,
        tables: ReferenceTables,
        ingredient_provider: IngredientDataProvider,
        limits_provider: RegulatoryLimitsProvider,
    ):
        self.recipe = recipe
        self.tables = tables
        self._ingredient_provider = ingredient_provider
        self._limits_provider = limits_provider
        self._lookup: Optional[asyncio.Future] = None
        self._limits: Dict[Optional[str], asyncio.Future] = {}

    async def lookup(self) -> BulkLookupResult:
        if self._lookup is None:
            ids = list(dict.fromkeys(self.recipe.ingredient_ids))
            self._lookup = asyncio.ensure_future(self._ingredient_provider.bulk_lookup(ids))
        return await self._lookup

    async def ingredients_by_id(self) -> Dict[str, Ingredient]:
        return (await self.lookup()).by_id()

    async def limits(self, jurisdiction: Optional[str] = None) -> RegulatoryLimits:
        key = jurisdiction.upper() if jurisdiction else None
        if key not in self._limits:
            self._limits[key] = asyncio.ensure_future(self._limits_provider.get_limits(key))
        return await self._limits[key]

    def missing_ingredients(self) -> list:
        """Missing IDs if the lookup completed successfully, else []."""
        if self._lookup is None or not self._lookup.done() or self._lookup.cancelled():
            return []
        if self._lookup.exception() is not None:
            return []
        return list(self._lookup.result().missing)
