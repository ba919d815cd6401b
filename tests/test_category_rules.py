"""
Category Rules Tests

Category caffeine is the nominal, presence-based estimate: every known
caffeine source counts 50mg regardless of amount.
"""

import asyncio

from recipe_engine.validation.category import (
    IN_RANGE_SCORE,
    OUT_OF_RANGE_SCORE,
    check_category_rules,
    nominal_caffeine,
    optimal_hybrid_ratio,
    score_categories,
)
from recipe_engine.validation.models import RecipeCategory, WarningSeverity


class TestNominalCaffeine:

    def test_no_source_is_zero(self, tables):
        assert nominal_caffeine(["taurine", "carbonated-water"], tables) == 0.0

    def test_each_source_counts_fixed_amount(self, tables):
        assert nominal_caffeine(["caffeine", "guarana", "taurine"], tables) == 100.0

    def test_amount_does_not_matter(self, recipe_factory, tables):
        recipe = recipe_factory([("caffeine", 500)])
        assert nominal_caffeine(recipe.ingredient_ids, tables) == 50.0


class TestScoreCategories:

    def test_all_categories_scored(self, recipe_factory, tables):
        recipe = recipe_factory([("caffeine", 50)])
        entries = score_categories(recipe, 50, tables)
        assert [e.category for e in entries] == [RecipeCategory.CLASSIC, RecipeCategory.ENERGY, RecipeCategory.HYBRID]
        assert all(e.compatibility_score == IN_RANGE_SCORE for e in entries)

    def test_best_fit_first(self, recipe_factory, tables):
        recipe = recipe_factory([("caffeine", 50), ("guarana", 100), ("kola-nut", 100)])
        entries = score_categories(recipe, 150, tables)

        assert entries[0].category == RecipeCategory.ENERGY
        assert entries[0].compatibility_score == IN_RANGE_SCORE
        # ties keep declaration order
        assert [e.category for e in entries[1:]] == [RecipeCategory.CLASSIC, RecipeCategory.HYBRID]
        assert all(e.compatibility_score == OUT_OF_RANGE_SCORE for e in entries[1:])

    def test_caffeine_free_prefers_classic(self, recipe_factory, tables):
        recipe = recipe_factory([("carbonated-water", 250, "ml")], category="classic")
        entries = score_categories(recipe, 0, tables)
        assert entries[0].category == RecipeCategory.CLASSIC
        assert "Declared category" in entries[0].compatibility_notes

    def test_only_hybrid_has_ratio(self, recipe_factory, tables):
        recipe = recipe_factory([("caffeine", 50)])
        by_category = {e.category: e for e in score_categories(recipe, 50, tables)}

        assert by_category[RecipeCategory.CLASSIC].optimal_ratio is None
        assert by_category[RecipeCategory.HYBRID].optimal_ratio.classic == 50
        assert by_category[RecipeCategory.HYBRID].optimal_ratio.energy == 50

    def test_ratio_is_bounded(self):
        ratio = optimal_hybrid_ratio(150)
        assert ratio.classic == 0
        assert ratio.energy == 100


class TestCheckCategoryRules:

    def test_energy_without_caffeine_source(self, recipe_factory, snapshot_for):
        recipe = recipe_factory([("taurine", 1000)])
        outcome = asyncio.run(check_category_rules(snapshot_for(recipe)))

        codes = [w.code for w in outcome.warnings]
        assert codes == ["CAFFEINE_RANGE_MISMATCH", "MISSING_RECOMMENDED_INGREDIENTS"]
        missing = outcome.warnings[1]
        assert missing.severity == WarningSeverity.INFO
        assert missing.affected_ingredients == ["caffeine", "vitamin-b-complex"]

    def test_well_formed_energy_recipe(self, recipe_factory, snapshot_for):
        recipe = recipe_factory([("caffeine", 80), ("vitamin-b-complex", 10)])
        outcome = asyncio.run(check_category_rules(snapshot_for(recipe)))

        assert outcome.warnings == []
        assert outcome.extras["nominal_caffeine"] == 50
        assert len(outcome.payload) == 3

    def test_classic_with_stacked_sources_out_of_range(self, recipe_factory, snapshot_for):
        recipe = recipe_factory(
            [("caffeine", 10), ("guarana", 100), ("carbonated-water", 250, "ml"), ("natural-flavors", 1, "g")],
            category="classic",
        )
        outcome = asyncio.run(check_category_rules(snapshot_for(recipe)))
        assert [w.code for w in outcome.warnings] == ["CAFFEINE_RANGE_MISMATCH"]

    def test_does_not_need_catalog(self, recipe_factory, snapshot_for, failing_ingredient_provider):
        recipe = recipe_factory([("caffeine", 80), ("vitamin-b-complex", 10)])
        outcome = asyncio.run(check_category_rules(snapshot_for(recipe, ingredients=failing_ingredient_provider)))
        assert outcome.warnings == []
