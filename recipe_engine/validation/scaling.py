"""
Scaling Safety Validator

Runs only when target_batch_size is set and differs from batch_size.

scaling_factor = target_batch_size / batch_size
- factor > 10  -> LARGE_SCALING_FACTOR
- factor < 0.1 -> SMALL_SCALING_FACTOR

Per ingredient, scaled_amount = amount * factor is classified against the
ingredient's max_safe_amount (1000 when the catalog has none):
- dangerous:  scaled > 2 * max_safe
- concerning: scaled > max_safe, or scaled < amount * 0.1
- neutral:    otherwise
Any dangerous ingredient makes the batch unsafe (UNSAFE_SCALING). A failed
catalog lookup adds SCALING_VALIDATION_ERROR and the defaults apply.
"""

import logging
from typing import List, Optional

from .base import CheckFailure, CheckOutcome, failure_outcome
from .models import (
    ConcentrationChange,
    Ingredient,
    IngredientUse,
    ScalingImpact,
    ScalingValidation,
    ValidationWarning,
    WarningSeverity,
    WarningType,
)
from .snapshot import LookupSnapshot
from .tables import DEFAULT_MAX_SAFE_AMOUNT

logger = logging.getLogger(__name__)

LARGE_FACTOR = 10
SMALL_FACTOR = 0.1


def assess_scaling_impact(use: IngredientUse, scaled_amount: float, info: Optional[Ingredient]) -> ScalingImpact:
    max_safe = DEFAULT_MAX_SAFE_AMOUNT
    if info is not None and info.safety.max_safe_amount:
        max_safe = info.safety.max_safe_amount

    if scaled_amount > max_safe * 2:
        return ScalingImpact.DANGEROUS
    if scaled_amount > max_safe:
        return ScalingImpact.CONCERNING
    if scaled_amount < use.amount * SMALL_FACTOR:
        return ScalingImpact.CONCERNING
    return ScalingImpact.NEUTRAL


def needs_scaling(batch_size: float, target_batch_size: Optional[float]) -> bool:
    return target_batch_size is not None and target_batch_size != batch_size


async def check_scaling(snapshot: LookupSnapshot) -> CheckOutcome:
    recipe = snapshot.recipe
    if not needs_scaling(recipe.batch_size, recipe.target_batch_size):
        return CheckOutcome()

    try:
        factor = recipe.target_batch_size / recipe.batch_size
        warnings: List[ValidationWarning] = []
        considerations: List[str] = []
        adjustments: List[str] = []

        if factor > LARGE_FACTOR:
            warnings.append(ValidationWarning(
                type=WarningType.SCALING_CONCERN,
                severity=WarningSeverity.WARNING,
                message=f"Large scaling factor ({factor:.1f}x) may affect taste and safety",
                code="LARGE_SCALING_FACTOR",
                suggestion="Consider testing smaller batches first",
            ))
            considerations.append("Run a pilot batch before scaling to full size")

        if factor < SMALL_FACTOR:
            warnings.append(ValidationWarning(
                type=WarningType.SCALING_CONCERN,
                severity=WarningSeverity.WARNING,
                message=f"Small scaling factor ({factor:.2f}x) may lead to inaccurate measurements",
                code="SMALL_SCALING_FACTOR",
                suggestion="Use precision measuring tools for small batches",
            ))
            considerations.append("Measurement error grows as quantities shrink")

        try:
            by_id = await snapshot.ingredients_by_id()
        except Exception as e:
            # Factor warnings stand; every ingredient falls back to the default max safe amount
            logger.error(f"Scaling catalog lookup failed for recipe {recipe.id}: {e}")
            by_id = {}
            warnings.extend(failure_outcome(
                CheckFailure.SCALING_VALIDATION_ERROR, detail="ingredient safety data unavailable",
            ).warnings)

        changes: List[ConcentrationChange] = []
        unsafe: List[str] = []
        unsafe_details: List[str] = []

        for use in recipe.ingredients:
            info = by_id.get(use.ingredient_id)
            scaled_amount = use.amount * factor
            impact = assess_scaling_impact(use, scaled_amount, info)

            changes.append(ConcentrationChange(
                ingredient=use.ingredient_id,
                original_concentration=use.amount / recipe.batch_size,
                scaled_concentration=scaled_amount / recipe.target_batch_size,
                impact=impact,
            ))

            if impact == ScalingImpact.DANGEROUS:
                unsafe.append(use.ingredient_id)
                unsafe_details.append(f"{use.ingredient_id} to {scaled_amount:.2f}{use.unit}")
                adjustments.append(f"Split {use.ingredient_id} across several smaller batches")
            elif impact == ScalingImpact.CONCERNING:
                considerations.append(f"{use.ingredient_id} lands outside its usual range after scaling")

        if unsafe:
            warnings.append(ValidationWarning(
                type=WarningType.SCALING_CONCERN,
                severity=WarningSeverity.ERROR,
                message=f"Scaling {', '.join(unsafe_details)} may be unsafe",
                code="UNSAFE_SCALING",
                affected_ingredients=unsafe,
            ))

        validation = ScalingValidation(
            original_batch_size=recipe.batch_size,
            target_batch_size=recipe.target_batch_size,
            scaling_factor=factor,
            safe=not unsafe,
            concentration_changes=changes,
            safety_considerations=considerations,
            recommended_adjustments=adjustments,
        )
        return CheckOutcome(warnings=warnings, payload=validation)

    except Exception as e:
        logger.error(f"Scaling validation failed for recipe {recipe.id}: {e}")
        return failure_outcome(CheckFailure.SCALING_VALIDATION_ERROR)
