"""
Nutritional Profile Validator

Aggregates nutrient totals as density * amount / 100 over every ingredient
the catalog returned (missing ingredients are skipped here; the ingredient
checker already reports them), then compares the result with the limits
collaborator:

- caffeine per serving > limits.caffeine.max_per_serving_mg -> EXCESSIVE_CAFFEINE_PER_SERVING
- total sugar > 50                                        -> HIGH_SUGAR_CONTENT
- caffeine with a caffeine-sensitive health condition      -> HEALTH_CONDITION_CAUTION

Internal failure marks the sub-result validated=False and emits
NUTRITIONAL_VALIDATION_ERROR.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from .base import CheckFailure, CheckOutcome, failure_outcome
from .models import (
    Ingredient,
    NutritionalValidation,
    Recipe,
    RegulatoryLimits,
    ValidationWarning,
    WarningSeverity,
    WarningType,
)
from .snapshot import LookupSnapshot
from .tables import HIGH_SUGAR_THRESHOLD, ReferenceTables

logger = logging.getLogger(__name__)


@dataclass
class NutrientTotals:
    """Weighted nutrient sums for one recipe batch."""
    caffeine: float = 0.0
    sugar: float = 0.0
    calories: float = 0.0
    vitamins: Dict[str, float] = field(default_factory=dict)
    minerals: Dict[str, float] = field(default_factory=dict)
    amino_acids: Dict[str, float] = field(default_factory=dict)


def _accumulate(target: Dict[str, float], densities: Mapping[str, float], amount: float) -> None:
    for name, density in densities.items():
        target[name] = target.get(name, 0.0) + density * amount / 100


def aggregate_nutrients(recipe: Recipe, by_id: Mapping[str, Ingredient]) -> NutrientTotals:
    totals = NutrientTotals()
    for use in recipe.ingredients:
        info = by_id.get(use.ingredient_id)
        if info is None:
            continue
        totals.caffeine += info.caffeine * use.amount / 100
        totals.sugar += info.sugar * use.amount / 100
        totals.calories += info.calories * use.amount / 100
        _accumulate(totals.vitamins, info.vitamins, use.amount)
        _accumulate(totals.minerals, info.minerals, use.amount)
        _accumulate(totals.amino_acids, info.amino_acids, use.amount)
    return totals


def daily_value_percentages(
    totals: NutrientTotals,
    limits: RegulatoryLimits,
    tables: ReferenceTables,
) -> Dict[str, float]:
    """Percent of daily value for every nutrient that has a reference."""
    vitamin_dv = limits.daily_values.vitamins or tables.default_daily_values["vitamins"]
    mineral_dv = limits.daily_values.minerals or tables.default_daily_values["minerals"]

    percentages: Dict[str, float] = {}
    for amounts, references in ((totals.vitamins, vitamin_dv), (totals.minerals, mineral_dv)):
        for name, amount in amounts.items():
            reference = references.get(name)
            if reference:
                percentages[name] = amount / reference * 100
    return percentages


def sensitive_conditions(recipe: Recipe, tables: ReferenceTables) -> List[str]:
    return [c for c in recipe.health_conditions if c in tables.caffeine_sensitive_conditions]


async def check_nutritional_profile(snapshot: LookupSnapshot) -> CheckOutcome:
    recipe = snapshot.recipe
    tables = snapshot.tables

    try:
        by_id = await snapshot.ingredients_by_id()
        limits = await snapshot.limits(recipe.user_region)

        totals = aggregate_nutrients(recipe, by_id)
        caffeine_per_serving = totals.caffeine / recipe.servings
        sugar_per_serving = totals.sugar / recipe.servings
        percentages = daily_value_percentages(totals, limits, tables)

        warnings: List[ValidationWarning] = []
        excesses: List[str] = []

        max_per_serving = limits.caffeine.max_per_serving_mg
        if caffeine_per_serving > max_per_serving:
            excesses.append("caffeine")
            warnings.append(ValidationWarning(
                type=WarningType.NUTRITIONAL_IMBALANCE,
                severity=WarningSeverity.ERROR,
                message=(
                    f"Caffeine per serving ({caffeine_per_serving:.1f}mg) "
                    f"exceeds limit ({max_per_serving:g}mg)"
                ),
                code="EXCESSIVE_CAFFEINE_PER_SERVING",
                suggestion="Reduce caffeine sources or increase servings per batch",
            ))

        if totals.sugar > HIGH_SUGAR_THRESHOLD:
            warnings.append(ValidationWarning(
                type=WarningType.NUTRITIONAL_IMBALANCE,
                severity=WarningSeverity.WARNING,
                message=f"High sugar content ({totals.sugar:.1f}g) - consider sugar-free alternatives",
                code="HIGH_SUGAR_CONTENT",
            ))

        sugar_limit = tables.rules_for(recipe.category)["sugar_limit"]
        if sugar_per_serving > sugar_limit:
            excesses.append("sugar")

        conditions = sensitive_conditions(recipe, tables)
        if totals.caffeine > 0 and conditions:
            warnings.append(ValidationWarning(
                type=WarningType.NUTRITIONAL_IMBALANCE,
                severity=WarningSeverity.WARNING,
                message=f"Caffeine-containing recipe flagged for health conditions: {', '.join(conditions)}",
                code="HEALTH_CONDITION_CAUTION",
                suggestion="Consult a healthcare professional or choose a caffeine-free variant",
            ))

        excesses.extend(sorted(name for name, pct in percentages.items() if pct > 100))

        validation = NutritionalValidation(
            total_caffeine=totals.caffeine,
            caffeine_per_serving=caffeine_per_serving,
            sugar_content=totals.sugar,
            calories=totals.calories,
            vitamins=totals.vitamins,
            minerals=totals.minerals,
            amino_acids=totals.amino_acids,
            validated=True,
            excesses=excesses,
            daily_value_percentages=percentages,
        )
        return CheckOutcome(warnings=warnings, payload=validation)

    except Exception as e:
        logger.error(f"Nutritional validation failed for recipe {recipe.id}: {e}")
        outcome = failure_outcome(CheckFailure.NUTRITIONAL_VALIDATION_ERROR)
        outcome.payload = NutritionalValidation(validated=False)
        return outcome
