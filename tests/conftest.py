"""
Shared fixtures for the recipe validation suites.

Catalog densities are per 100 units of the ingredient, so e.g. 80mg of
"caffeine" carries 80mg of caffeine and 30g of "cane-sugar" carries 30g
of sugar.
"""

import pytest
from typing import List, Optional

from recipe_engine.config import EngineSettings
from recipe_engine.validation.models import (
    Ingredient,
    IngredientSafety,
    Recipe,
    RegulatoryLimits,
    BulkLookupResult,
)
from recipe_engine.validation.orchestrate import RecipeValidationEngine
from recipe_engine.validation.providers import (
    IngredientDataProvider,
    InMemoryIngredientProvider,
    RegulatoryLimitsProvider,
    StaticLimitsProvider,
)
from recipe_engine.validation.snapshot import LookupSnapshot
from recipe_engine.validation.tables import build_reference_tables


# ============================================================================
# CATALOG
# ============================================================================

def make_catalog() -> List[Ingredient]:
    return [
        Ingredient(id="caffeine", name="Caffeine Anhydrous", caffeine=100,
                   safety=IngredientSafety(max_safe_amount=400)),
        Ingredient(id="guarana", name="Guarana Extract", caffeine=4,
                   safety=IngredientSafety(max_safe_amount=5000)),
        Ingredient(id="taurine", name="Taurine", amino_acids={"taurine": 100},
                   safety=IngredientSafety(max_safe_amount=3000)),
        Ingredient(id="carbonated-water", name="Carbonated Water",
                   safety=IngredientSafety(max_safe_amount=100000)),
        Ingredient(id="natural-flavors", name="Natural Flavors",
                   safety=IngredientSafety(max_safe_amount=5000)),
        Ingredient(id="vitamin-b-complex", name="Vitamin B Complex",
                   vitamins={"vitamin-b6": 10, "vitamin-b12": 0.5}),
        Ingredient(id="vitamin-c", name="Ascorbic Acid", vitamins={"vitamin-c": 100}),
        Ingredient(id="cane-sugar", name="Cane Sugar", sugar=100, calories=400,
                   safety=IngredientSafety(max_safe_amount=10000)),
        Ingredient(id="peanut-protein", name="Peanut Protein"),
        Ingredient(id="whey-isolate", name="Whey Protein Isolate",
                   safety=IngredientSafety(cross_contamination_risk=True)),
        Ingredient(id="alcohol", name="Ethanol"),
        Ingredient(id="melatonin", name="Melatonin"),
        Ingredient(id="citric-acid", name="Citric Acid"),
        Ingredient(id="sodium-bicarbonate", name="Baking Soda"),
        Ingredient(id="ephedra", name="Ephedra",
                   safety=IngredientSafety(banned=True, eu_compliant=False)),
    ]


def make_recipe(ingredients, category: str = "energy", **overrides) -> Recipe:
    """ingredients: list of (ingredient_id, amount) or (ingredient_id, amount, unit)."""
    uses = []
    for line in ingredients:
        ingredient_id, amount = line[0], line[1]
        unit = line[2] if len(line) > 2 else "mg"
        uses.append({"ingredient_id": ingredient_id, "amount": amount, "unit": unit})
    data = {
        "id": "rcp-test",
        "name": "Test Recipe",
        "category": category,
        "ingredients": uses,
        "batch_size": 1,
        "servings": 1,
    }
    data.update(overrides)
    return Recipe(**data)


# ============================================================================
# FAILING COLLABORATORS
# ============================================================================

class FailingIngredientProvider(IngredientDataProvider):
    async def bulk_lookup(self, ingredient_ids: List[str]) -> BulkLookupResult:
        raise ConnectionError("ingredient catalog unavailable")


class FailingLimitsProvider(RegulatoryLimitsProvider):
    async def get_limits(self, jurisdiction: Optional[str] = None) -> RegulatoryLimits:
        raise ConnectionError("limits service unavailable")


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def recipe_factory():
    return make_recipe


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def catalog_by_id(catalog):
    return {ingredient.id: ingredient for ingredient in catalog}


@pytest.fixture
def tables():
    return build_reference_tables()


@pytest.fixture
def ingredient_provider(catalog):
    return InMemoryIngredientProvider(catalog)


@pytest.fixture
def limits_provider():
    return StaticLimitsProvider()


@pytest.fixture
def failing_ingredient_provider():
    return FailingIngredientProvider()


@pytest.fixture
def failing_limits_provider():
    return FailingLimitsProvider()


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def engine(ingredient_provider, limits_provider, tables, settings):
    return RecipeValidationEngine(ingredient_provider, limits_provider, tables=tables, settings=settings)


@pytest.fixture
def snapshot_for(tables, ingredient_provider, limits_provider):
    """Build a LookupSnapshot; collaborators default to the in-memory ones."""
    def _build(recipe, ingredients=None, limits=None):
        return LookupSnapshot(
            recipe,
            tables,
            ingredients or ingredient_provider,
            limits or limits_provider,
        )
    return _build
