"""
Ingredient Compatibility Tests

- missing catalog data is reported, not fatal
- pairwise incompatibility is symmetric and checked once per pair
- a fully present banned combination is a high-severity error
- a catalog-banned ingredient is critical
- collaborator failure fails closed (critical)
"""

import asyncio

from recipe_engine.validation.ingredients import (
    check_ingredient_compatibility,
    find_banned_combinations,
    find_incompatible_pairs,
)
from recipe_engine.validation.models import ErrorSeverity, ErrorType, WarningSeverity


class TestPairwiseMatrix:

    def test_incompatible_pair_found(self, tables):
        pairs = find_incompatible_pairs(["citric-acid", "sodium-bicarbonate", "taurine"], tables)
        assert pairs == [("citric-acid", "sodium-bicarbonate")]

    def test_matrix_is_symmetric(self, tables):
        pairs = find_incompatible_pairs(["sodium-bicarbonate", "citric-acid"], tables)
        assert pairs == [("sodium-bicarbonate", "citric-acid")]

    def test_duplicate_ids_counted_once(self, tables):
        pairs = find_incompatible_pairs(["caffeine", "caffeine", "melatonin"], tables)
        assert pairs == [("caffeine", "melatonin")]

    def test_compatible_recipe_has_no_pairs(self, tables):
        assert find_incompatible_pairs(["caffeine", "taurine", "carbonated-water"], tables) == []


class TestBannedCombinations:

    def test_full_combination_matches(self, tables):
        assert find_banned_combinations(["caffeine", "carbonated-water", "alcohol"], tables) == [("alcohol", "caffeine")]

    def test_partial_combination_does_not_match(self, tables):
        assert find_banned_combinations(["alcohol", "carbonated-water"], tables) == []


class TestCheckIngredientCompatibility:

    def test_missing_ingredient_data(self, recipe_factory, snapshot_for):
        recipe = recipe_factory([("caffeine", 80), ("unicorn-dust", 5)])
        outcome = asyncio.run(check_ingredient_compatibility(snapshot_for(recipe)))

        missing = [w for w in outcome.warnings if w.code == "MISSING_INGREDIENT_DATA"]
        assert len(missing) == 1
        assert missing[0].severity == WarningSeverity.WARNING
        assert missing[0].affected_ingredients == ["unicorn-dust"]
        assert outcome.errors == []

    def test_incompatibility_warning_names_both(self, recipe_factory, snapshot_for):
        recipe = recipe_factory([("caffeine", 80), ("melatonin", 3)])
        outcome = asyncio.run(check_ingredient_compatibility(snapshot_for(recipe)))

        warning = next(w for w in outcome.warnings if w.code == "INGREDIENT_INCOMPATIBILITY")
        assert warning.affected_ingredients == ["caffeine", "melatonin"]
        assert "caffeine" in warning.message and "melatonin" in warning.message

    def test_banned_combination_is_high(self, recipe_factory, snapshot_for):
        recipe = recipe_factory([("alcohol", 10, "ml"), ("caffeine", 50)])
        outcome = asyncio.run(check_ingredient_compatibility(snapshot_for(recipe)))

        assert [e.code for e in outcome.errors] == ["BANNED_COMBINATION"]
        error = outcome.errors[0]
        assert error.severity == ErrorSeverity.HIGH
        assert error.type == ErrorType.UNSAFE_COMBINATION
        assert error.regulatory_reference
        assert set(error.affected_ingredients) == {"alcohol", "caffeine"}

    def test_banned_ingredient_is_critical(self, recipe_factory, snapshot_for):
        recipe = recipe_factory([("ephedra", 10), ("carbonated-water", 250, "ml")])
        outcome = asyncio.run(check_ingredient_compatibility(snapshot_for(recipe)))

        error = next(e for e in outcome.errors if e.code == "BANNED_INGREDIENT")
        assert error.severity == ErrorSeverity.CRITICAL
        assert error.affected_ingredients == ["ephedra"]

    def test_clean_recipe_has_no_findings(self, recipe_factory, snapshot_for):
        recipe = recipe_factory([("caffeine", 80), ("taurine", 1000), ("carbonated-water", 250, "ml")])
        outcome = asyncio.run(check_ingredient_compatibility(snapshot_for(recipe)))

        assert outcome.warnings == []
        assert outcome.errors == []

    def test_collaborator_failure_fails_closed(self, recipe_factory, snapshot_for, failing_ingredient_provider):
        recipe = recipe_factory([("caffeine", 80)])
        outcome = asyncio.run(check_ingredient_compatibility(
            snapshot_for(recipe, ingredients=failing_ingredient_provider)
        ))

        assert [e.code for e in outcome.errors] == ["INGREDIENT_VALIDATION_ERROR"]
        assert outcome.errors[0].severity == ErrorSeverity.CRITICAL
        assert outcome.warnings == []
