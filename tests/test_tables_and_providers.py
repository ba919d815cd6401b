"""
Reference Tables, Collaborators and Snapshot Tests
"""

import asyncio
from typing import List

import pytest

from recipe_engine.validation.models import BulkLookupResult, Ingredient, RecipeCategory
from recipe_engine.validation.providers import (
    DEFAULT_LIMITS,
    InMemoryIngredientProvider,
    StaticLimitsProvider,
    limits_from_thresholds,
)
from recipe_engine.validation.snapshot import LookupSnapshot


class TestReferenceTables:

    def test_compatibility_is_symmetric(self, tables):
        assert tables.are_compatible("caffeine", "melatonin") is False
        assert tables.are_compatible("melatonin", "caffeine") is False
        assert tables.are_compatible("caffeine", "taurine") is True

    def test_tables_are_read_only(self, tables):
        with pytest.raises(TypeError):
            tables.allergen_sources["new-allergen"] = ("x",)
        with pytest.raises(TypeError):
            tables.jurisdiction_thresholds["EU"]["caffeine"]["max_per_serving"] = 999

    def test_thresholds_lookup_is_case_insensitive(self, tables):
        assert tables.thresholds_for("eu")["caffeine"]["max_per_serving"] == 160
        assert tables.thresholds_for("AU") is None

    def test_category_rules(self, tables):
        assert tables.rules_for(RecipeCategory.HYBRID)["caffeine_range"] == (25, 128)
        assert tables.rules_for(RecipeCategory.ENERGY)["sugar_limit"] == 30


class TestInMemoryIngredientProvider:

    def test_found_and_missing(self, ingredient_provider):
        result = asyncio.run(ingredient_provider.bulk_lookup(["caffeine", "nope", "caffeine", "taurine"]))

        assert [i.id for i in result.ingredients] == ["caffeine", "taurine"]
        assert result.missing == ["nope"]
        assert set(result.by_id()) == {"caffeine", "taurine"}


class TestStaticLimitsProvider:

    def test_jurisdiction_limits(self, limits_provider):
        us = asyncio.run(limits_provider.get_limits("us"))
        assert us.caffeine.max_per_serving_mg == 200
        assert us.banned_ingredients == DEFAULT_LIMITS.banned_ingredients

    def test_default_and_unknown(self, limits_provider):
        assert asyncio.run(limits_provider.get_limits()) == DEFAULT_LIMITS
        assert asyncio.run(limits_provider.get_limits("AU")) == DEFAULT_LIMITS

    def test_limits_from_thresholds(self):
        ca = limits_from_thresholds("CA")
        assert ca.caffeine.max_per_serving_mg == 180
        assert ca.caffeine.max_daily_mg == 400
        assert limits_from_thresholds("XX") is DEFAULT_LIMITS

    def test_explicit_mapping(self):
        provider = StaticLimitsProvider(per_jurisdiction={"eu": limits_from_thresholds("US")})
        assert asyncio.run(provider.get_limits("EU")).caffeine.max_per_serving_mg == 200


class SlowIngredientProvider(InMemoryIngredientProvider):
    def __init__(self, ingredients):
        super().__init__(ingredients)
        self.calls = 0

    async def bulk_lookup(self, ingredient_ids: List[str]) -> BulkLookupResult:
        self.calls += 1
        await asyncio.sleep(0.01)
        return await super().bulk_lookup(ingredient_ids)


class TestLookupSnapshot:

    def test_concurrent_awaits_share_one_lookup(self, recipe_factory, tables, limits_provider):
        provider = SlowIngredientProvider([Ingredient(id="caffeine", name="Caffeine", caffeine=100)])
        recipe = recipe_factory([("caffeine", 80), ("unknown", 1)])
        snapshot = LookupSnapshot(recipe, tables, provider, limits_provider)

        async def run():
            return await asyncio.gather(snapshot.lookup(), snapshot.lookup(), snapshot.ingredients_by_id())

        first, second, by_id = asyncio.run(run())
        assert provider.calls == 1
        assert first is second
        assert list(by_id) == ["caffeine"]
        assert snapshot.missing_ingredients() == ["unknown"]

    def test_missing_empty_before_lookup(self, recipe_factory, snapshot_for):
        snapshot = snapshot_for(recipe_factory([("unknown", 1)]))
        assert snapshot.missing_ingredients() == []

    def test_failed_lookup_reported_to_every_caller(self, recipe_factory, snapshot_for, failing_ingredient_provider):
        snapshot = snapshot_for(recipe_factory([("caffeine", 1)]), ingredients=failing_ingredient_provider)

        async def run():
            return await asyncio.gather(snapshot.lookup(), snapshot.lookup(), return_exceptions=True)

        results = asyncio.run(run())
        assert all(isinstance(r, ConnectionError) for r in results)
        assert snapshot.missing_ingredients() == []
