"""
Category Rules Validator

Checks the recipe against the rule set of its declared category
(caffeine range, recommended ingredients) and scores its fit for all
three categories.

Caffeine here is the NOMINAL presence-based estimate (each known caffeine
source counts a fixed amount), not the weighted total computed by the
nutritional validator. The two figures can disagree; both are reported in
the result metadata.
"""

import logging
from typing import List

from .base import CheckFailure, CheckOutcome, failure_outcome
from .models import (
    CategoryCompatibility,
    HybridRatio,
    Recipe,
    RecipeCategory,
    ValidationWarning,
    WarningSeverity,
    WarningType,
)
from .snapshot import LookupSnapshot
from .tables import ReferenceTables

logger = logging.getLogger(__name__)

IN_RANGE_SCORE = 85
OUT_OF_RANGE_SCORE = 60


def nominal_caffeine(ingredient_ids: List[str], tables: ReferenceTables) -> float:
    """Presence-based caffeine estimate: 0 unless a known caffeine source is present."""
    sources = tables.nominal_caffeine_sources
    if not any(sources.get(ingredient_id, 0) > 0 for ingredient_id in ingredient_ids):
        return 0.0
    return float(sum(sources.get(ingredient_id, 0) for ingredient_id in ingredient_ids))


def in_caffeine_range(caffeine: float, category: RecipeCategory, tables: ReferenceTables) -> bool:
    low, high = tables.rules_for(category)["caffeine_range"]
    return low <= caffeine <= high


def optimal_hybrid_ratio(caffeine: float) -> HybridRatio:
    return HybridRatio(classic=max(0.0, 100 - caffeine), energy=min(100.0, caffeine))


def compatibility_notes(recipe: Recipe, category: RecipeCategory, caffeine: float, tables: ReferenceTables) -> List[str]:
    notes: List[str] = []
    if category == recipe.category:
        notes.append("Declared category")
    if category == RecipeCategory.HYBRID:
        notes.append("Combines characteristics of multiple beverage categories")
        notes.append("Requires careful balancing of ingredients")
    if not in_caffeine_range(caffeine, category, tables):
        low, high = tables.rules_for(category)["caffeine_range"]
        notes.append(f"Estimated caffeine {caffeine:g}mg outside {category.value} range ({low}-{high}mg)")
    return notes


def suggested_adjustments(recipe: Recipe, category: RecipeCategory, caffeine: float, tables: ReferenceTables) -> List[str]:
    adjustments: List[str] = []
    low, high = tables.rules_for(category)["caffeine_range"]
    if category == RecipeCategory.ENERGY and caffeine < low:
        adjustments.append("Add caffeine source for authentic energy drink profile")
    elif caffeine > high:
        adjustments.append(f"Reduce caffeine sources below {high}mg for a {category.value} profile")
    present = set(recipe.ingredient_ids)
    for required in tables.rules_for(category)["required_ingredients"]:
        if required not in present:
            adjustments.append(f"Add {required}")
    return adjustments


def score_categories(recipe: Recipe, caffeine: float, tables: ReferenceTables) -> List[CategoryCompatibility]:
    """Compatibility for every category, best fit first."""
    entries = []
    for category in RecipeCategory:
        score = IN_RANGE_SCORE if in_caffeine_range(caffeine, category, tables) else OUT_OF_RANGE_SCORE
        entries.append(CategoryCompatibility(
            category=category,
            compatibility_score=score,
            compatibility_notes=compatibility_notes(recipe, category, caffeine, tables),
            suggested_adjustments=suggested_adjustments(recipe, category, caffeine, tables),
            optimal_ratio=optimal_hybrid_ratio(caffeine) if category == RecipeCategory.HYBRID else None,
        ))
    # sorted() is stable: ties keep declaration order
    return sorted(entries, key=lambda entry: -entry.compatibility_score)


async def check_category_rules(snapshot: LookupSnapshot) -> CheckOutcome:
    recipe = snapshot.recipe
    tables = snapshot.tables
    outcome = CheckOutcome()

    try:
        rules = tables.rules_for(recipe.category)
        caffeine = nominal_caffeine(recipe.ingredient_ids, tables)
        outcome.extras["nominal_caffeine"] = caffeine

        if not in_caffeine_range(caffeine, recipe.category, tables):
            low, high = rules["caffeine_range"]
            outcome.warnings.append(ValidationWarning(
                type=WarningType.CATEGORY_MISMATCH,
                severity=WarningSeverity.WARNING,
                message=(
                    f"Caffeine content ({caffeine:g}mg) outside expected range "
                    f"for {recipe.category.value} ({low}-{high}mg)"
                ),
                code="CAFFEINE_RANGE_MISMATCH",
            ))

        present = set(recipe.ingredient_ids)
        missing_required = [req for req in rules["required_ingredients"] if req not in present]
        if missing_required:
            outcome.warnings.append(ValidationWarning(
                type=WarningType.CATEGORY_MISMATCH,
                severity=WarningSeverity.INFO,
                message=f"Missing recommended ingredients for {recipe.category.value}: {', '.join(missing_required)}",
                code="MISSING_RECOMMENDED_INGREDIENTS",
                suggestion="Consider adding these ingredients for authentic flavor profile",
                affected_ingredients=missing_required,
            ))

        outcome.payload = score_categories(recipe, caffeine, tables)

    except Exception as e:
        logger.error(f"Category validation failed for recipe {recipe.id}: {e}")
        failed = failure_outcome(CheckFailure.CATEGORY_VALIDATION_ERROR)
        failed.payload = []
        return failed

    return outcome
