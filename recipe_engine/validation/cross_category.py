"""
Cross-Category Interaction Analyzer

Hybrid recipes only; every other category gets an empty outcome.

- secondary categories: "energy" when caffeine > 25mg, "classic" when a
  soda base is present
- interaction rules: pairwise token rules (e.g. caffeine + taurine ->
  synergistic, medium); high-magnitude matches raise STRONG_INTERACTION
- safety buffer: min(480, 120 + caffeine * 2) minutes
- cumulative effects: caffeine-accumulation once caffeine > 100mg,
  bucketed against the 400mg daily threshold
"""

import logging
from typing import List, Mapping, Sequence

from .base import CheckFailure, CheckOutcome, failure_outcome
from .models import (
    CrossCategoryAssessment,
    CumulativeEffect,
    CumulativeEffectKind,
    CumulativeRiskLevel,
    InteractionEffect,
    RecipeCategory,
    RiskLevel,
    ValidationWarning,
    WarningSeverity,
    WarningType,
)
from .nutrition import aggregate_nutrients
from .snapshot import LookupSnapshot
from .tables import (
    CUMULATIVE_CAFFEINE_TRIGGER_MG,
    DAILY_CAFFEINE_THRESHOLD_MG,
    SAFETY_BUFFER_BASE_MINUTES,
    SAFETY_BUFFER_MAX_MINUTES,
    ReferenceTables,
)

logger = logging.getLogger(__name__)

ENERGY_SECONDARY_THRESHOLD_MG = 25
CLASSIC_BASE_TOKENS = ("soda", "classic", "carbonated-water", "cola")


def identify_secondary_categories(ingredient_ids: Sequence[str], total_caffeine: float) -> List[str]:
    categories: List[str] = []
    if total_caffeine > ENERGY_SECONDARY_THRESHOLD_MG:
        categories.append(RecipeCategory.ENERGY.value)
    if any(token in i for i in ingredient_ids for token in CLASSIC_BASE_TOKENS):
        categories.append(RecipeCategory.CLASSIC.value)
    return categories


def _matching(ingredient_ids: Sequence[str], tokens: Sequence[str]) -> List[str]:
    return [i for i in ingredient_ids if any(token in i for token in tokens)]


def _evaluate_rule(rule: Mapping, ingredient_ids: Sequence[str]):
    left = _matching(ingredient_ids, rule["left"])
    right = _matching(ingredient_ids, rule["right"])
    if not any(l_id != r_id for l_id in left for r_id in right):
        return None
    return InteractionEffect(
        ingredients=list(dict.fromkeys(left + right)),
        effect=rule["effect"],
        magnitude=rule["magnitude"],
        description=rule["description"],
        safety_implications=list(rule["safety_implications"]),
    )


def analyze_interactions(ingredient_ids: Sequence[str], tables: ReferenceTables) -> List[InteractionEffect]:
    unique_ids = list(dict.fromkeys(i.lower() for i in ingredient_ids))
    effects = []
    for rule in tables.interaction_rules:
        effect = _evaluate_rule(rule, unique_ids)
        if effect is not None:
            effects.append(effect)
    return effects


def safety_buffer_minutes(total_caffeine: float) -> float:
    return min(SAFETY_BUFFER_MAX_MINUTES, SAFETY_BUFFER_BASE_MINUTES + total_caffeine * 2)


def consumption_recommendations(total_caffeine: float) -> List[str]:
    recommendations = [
        "Consume slowly over 1-2 hours",
        "Monitor total caffeine intake throughout day",
        "Stay hydrated with water",
        "Avoid consumption close to bedtime",
    ]
    if total_caffeine > CUMULATIVE_CAFFEINE_TRIGGER_MG:
        recommendations.insert(0, "Consider splitting into multiple smaller servings")
    return recommendations


def assess_cumulative_effects(total_caffeine: float) -> List[CumulativeEffect]:
    if total_caffeine <= CUMULATIVE_CAFFEINE_TRIGGER_MG:
        return []
    dangerous_level = DAILY_CAFFEINE_THRESHOLD_MG * 0.75
    return [CumulativeEffect(
        effect=CumulativeEffectKind.CAFFEINE_ACCUMULATION,
        severity=RiskLevel.HIGH if total_caffeine > DAILY_CAFFEINE_THRESHOLD_MG / 2 else RiskLevel.MEDIUM,
        threshold=DAILY_CAFFEINE_THRESHOLD_MG,
        current_level=total_caffeine,
        risk_level=CumulativeRiskLevel.DANGEROUS if total_caffeine > dangerous_level else CumulativeRiskLevel.ELEVATED,
        mitigation_strategies=[
            "Limit to one serving per day",
            "Avoid other caffeine sources for 6 hours",
            "Monitor for side effects",
        ],
    )]


async def check_cross_category(snapshot: LookupSnapshot) -> CheckOutcome:
    recipe = snapshot.recipe
    if recipe.category != RecipeCategory.HYBRID:
        return CheckOutcome()

    try:
        by_id = await snapshot.ingredients_by_id()
        total_caffeine = aggregate_nutrients(recipe, by_id).caffeine
        ingredient_ids = recipe.ingredient_ids

        effects = analyze_interactions(ingredient_ids, snapshot.tables)
        assessment = CrossCategoryAssessment(
            primary_category=recipe.category,
            secondary_categories=identify_secondary_categories(ingredient_ids, total_caffeine),
            interaction_effects=effects,
            recommended_consumption_pattern=consumption_recommendations(total_caffeine),
            safety_buffer=safety_buffer_minutes(total_caffeine),
            cumulative_effects=assess_cumulative_effects(total_caffeine),
        )

        warnings: List[ValidationWarning] = []
        strong = [effect for effect in effects if effect.magnitude == RiskLevel.HIGH]
        if strong:
            affected = list(dict.fromkeys(i for effect in strong for i in effect.ingredients))
            warnings.append(ValidationWarning(
                type=WarningType.CROSS_CATEGORY,
                severity=WarningSeverity.WARNING,
                message="Strong interaction detected: " + "; ".join(
                    f"{' and '.join(effect.ingredients)} ({effect.description})" for effect in strong
                ),
                code="STRONG_INTERACTION",
                suggestion="Monitor consumption and consider reducing amounts",
                affected_ingredients=affected,
            ))

        return CheckOutcome(warnings=warnings, payload=assessment)

    except Exception as e:
        logger.error(f"Cross-category validation failed for recipe {recipe.id}: {e}")
        return failure_outcome(CheckFailure.CROSS_CATEGORY_VALIDATION_ERROR)
