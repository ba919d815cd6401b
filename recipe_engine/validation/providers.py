"""
Recipe Validation Collaborators

The engine never stores ingredients or regulatory limits itself. It talks
to two collaborators through these interfaces:

- IngredientDataProvider.bulk_lookup(ids)      -> BulkLookupResult
- RegulatoryLimitsProvider.get_limits(region)  -> RegulatoryLimits

In-memory implementations are provided for tests and for embedding the
engine next to a static catalog. Retry policy, caching and storage belong
to real implementations, not to the engine.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional

from .models import (
    BulkLookupResult,
    CaffeineLimits,
    DailyValues,
    Ingredient,
    RegulatoryLimits,
)
from .tables import DEFAULT_DAILY_VALUES, JURISDICTION_THRESHOLDS

logger = logging.getLogger(__name__)


class IngredientDataProvider(ABC):
    """Read-only ingredient catalog."""

    @abstractmethod
    async def bulk_lookup(self, ingredient_ids: List[str]) -> BulkLookupResult:
        """Return found ingredients plus the IDs that were not found."""


class RegulatoryLimitsProvider(ABC):
    """Read-only regulatory limits source."""

    @abstractmethod
    async def get_limits(self, jurisdiction: Optional[str] = None) -> RegulatoryLimits:
        """Return limits for a jurisdiction, or the default limits when None."""


# =============================================================================
# IN-MEMORY IMPLEMENTATIONS
# =============================================================================

class InMemoryIngredientProvider(IngredientDataProvider):
    """Catalog backed by a dict of Ingredient records keyed by ID."""

    def __init__(self, ingredients: Iterable[Ingredient] = ()):
        self._ingredients: Dict[str, Ingredient] = {i.id: i for i in ingredients}

    async def bulk_lookup(self, ingredient_ids: List[str]) -> BulkLookupResult:
        found: List[Ingredient] = []
        missing: List[str] = []
        seen = set()
        for ingredient_id in ingredient_ids:
            if ingredient_id in seen:
                continue
            seen.add(ingredient_id)
            ingredient = self._ingredients.get(ingredient_id)
            if ingredient is None:
                missing.append(ingredient_id)
            else:
                found.append(ingredient)
        logger.debug(f"bulk_lookup requested={len(seen)} found={len(found)}")
        return BulkLookupResult(ingredients=found, missing=missing)


# Conservative global defaults (EU levels)
DEFAULT_LIMITS = RegulatoryLimits(
    caffeine=CaffeineLimits(max_per_serving_mg=160, max_daily_mg=400),
    age_restriction=16,
    banned_ingredients=["ephedra", "dmaa"],
    daily_values=DailyValues(
        vitamins=dict(DEFAULT_DAILY_VALUES["vitamins"]),
        minerals=dict(DEFAULT_DAILY_VALUES["minerals"]),
    ),
)


def limits_from_thresholds(jurisdiction: str, base: RegulatoryLimits = DEFAULT_LIMITS) -> RegulatoryLimits:
    """Derive collaborator-shaped limits from the compiled jurisdiction thresholds."""
    thresholds = JURISDICTION_THRESHOLDS.get(jurisdiction.upper())
    if thresholds is None:
        return base
    return RegulatoryLimits(
        caffeine=CaffeineLimits(
            max_per_serving_mg=thresholds["caffeine"]["max_per_serving"],
            max_daily_mg=thresholds["caffeine"]["max_daily"],
        ),
        age_restriction=thresholds["age_restrictions"]["energy"],
        banned_ingredients=list(base.banned_ingredients),
        daily_values=base.daily_values,
    )


class StaticLimitsProvider(RegulatoryLimitsProvider):
    """
    Limits served from an in-process mapping.

    Jurisdictions absent from `per_jurisdiction` fall back to `default`.
    """

    def __init__(
        self,
        default: RegulatoryLimits = DEFAULT_LIMITS,
        per_jurisdiction: Optional[Mapping[str, RegulatoryLimits]] = None,
    ):
        self._default = default
        if per_jurisdiction is None:
            per_jurisdiction = {code: limits_from_thresholds(code, default) for code in JURISDICTION_THRESHOLDS}
        self._per_jurisdiction = {code.upper(): limits for code, limits in per_jurisdiction.items()}

    async def get_limits(self, jurisdiction: Optional[str] = None) -> RegulatoryLimits:
        if jurisdiction is None:
            return self._default
        return self._per_jurisdiction.get(jurisdiction.upper(), self._default)
