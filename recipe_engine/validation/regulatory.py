"""
Regulatory Compliance Checker

Evaluates the recipe against each target jurisdiction: the recipe's
user_region when given, otherwise the configured default set
(EU, US, CA, AU).

Per jurisdiction:
- REGULATORY_VIOLATION_<J>     (critical) total recipe caffeine above the
                               jurisdiction per-serving maximum, a
                               registered banned combination, or an
                               ingredient the limits collaborator bans
                               there
- REGULATORY_CONSIDERATION_<J> (warning)  sugar per serving, energy-drink
                               age restriction, EU compliance flags,
                               batch caffeine above the daily maximum

Jurisdictions without a threshold record are only checked for banned
combinations and against the collaborator's banned list. A jurisdiction
whose evaluation raises yields REGULATORY_VALIDATION_ERROR_<J> and the
remaining ones are still evaluated.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .base import CheckFailure, CheckOutcome, failure_outcome
from .ingredients import find_banned_combinations
from .models import (
    ErrorSeverity,
    ErrorType,
    RecipeCategory,
    ValidationError,
    ValidationWarning,
    WarningSeverity,
    WarningType,
)
from .nutrition import aggregate_nutrients
from .snapshot import LookupSnapshot

logger = logging.getLogger(__name__)

AGE_RESTRICTED_CATEGORIES = (RecipeCategory.ENERGY, RecipeCategory.HYBRID)


@dataclass
class JurisdictionCompliance:
    """Outcome for one jurisdiction."""
    jurisdiction: str
    violations: List[str] = field(default_factory=list)
    considerations: List[str] = field(default_factory=list)
    affected_ingredients: List[str] = field(default_factory=list)
    reference: str = ""

    @property
    def compliant(self) -> bool:
        return not self.violations and not self.considerations


def target_jurisdictions(user_region: Optional[str], defaults: Sequence[str]) -> List[str]:
    if user_region:
        return [user_region.upper()]
    return [code.upper() for code in defaults]


async def evaluate_jurisdiction(snapshot: LookupSnapshot, jurisdiction: str) -> JurisdictionCompliance:
    recipe = snapshot.recipe
    tables = snapshot.tables
    result = JurisdictionCompliance(jurisdiction=jurisdiction)

    lookup = await snapshot.lookup()
    limits = await snapshot.limits(jurisdiction)
    totals = aggregate_nutrients(recipe, lookup.by_id())
    caffeine_per_serving = totals.caffeine / recipe.servings
    sugar_per_serving = totals.sugar / recipe.servings

    for combo in find_banned_combinations(recipe.ingredient_ids, tables):
        result.violations.append(f"Prohibited combination: {' + '.join(combo)}")
        result.affected_ingredients.extend(i for i in combo if i not in result.affected_ingredients)

    banned = {name.lower() for name in limits.banned_ingredients}
    banned_present = [i for i in dict.fromkeys(recipe.ingredient_ids) if i.lower() in banned]
    if banned_present:
        result.violations.append(f"Ingredients not permitted in {jurisdiction}: {', '.join(banned_present)}")
        result.affected_ingredients.extend(banned_present)

    thresholds = tables.thresholds_for(jurisdiction)
    if thresholds is None:
        logger.debug(f"No threshold record for {jurisdiction}; banned-list check only")
        result.reference = f"{jurisdiction} Food Authority"
        return result

    result.reference = f"{jurisdiction} Food Safety Regulations ({thresholds['authority']})"

    max_per_serving = thresholds["caffeine"]["max_per_serving"]
    # Whole-recipe caffeine is held to the per-serving maximum
    if totals.caffeine > max_per_serving:
        result.violations.append(
            f"Caffeine content ({totals.caffeine:.1f}mg total, {caffeine_per_serving:.1f}mg per serving) "
            f"exceeds {jurisdiction} limit ({max_per_serving}mg)"
        )

    max_daily = thresholds["caffeine"]["max_daily"]
    if totals.caffeine > max_daily:
        result.considerations.append(
            f"Batch caffeine ({totals.caffeine:.1f}mg) exceeds the {jurisdiction} daily maximum ({max_daily}mg)"
        )

    sugar_max = thresholds["sugar"]["max_per_serving"]
    if sugar_per_serving > sugar_max:
        result.considerations.append(
            f"Sugar per serving ({sugar_per_serving:.1f}g) above {jurisdiction} guidance ({sugar_max}g)"
        )

    min_age = thresholds["age_restrictions"]["energy"]
    if (
        recipe.user_age is not None
        and recipe.user_age < min_age
        and recipe.category in AGE_RESTRICTED_CATEGORIES
    ):
        result.considerations.append(f"Energy beverages are restricted below age {min_age} in {jurisdiction}")

    if jurisdiction == "EU":
        non_compliant = [i.id for i in lookup.ingredients if not i.safety.eu_compliant]
        if non_compliant:
            result.considerations.append(f"Ingredients not EU-compliant: {', '.join(non_compliant)}")
            result.affected_ingredients.extend(non_compliant)

    return result


async def check_regulatory_compliance(snapshot: LookupSnapshot, default_jurisdictions: Sequence[str]) -> CheckOutcome:
    recipe = snapshot.recipe
    outcome = CheckOutcome()
    evaluated: List[JurisdictionCompliance] = []

    try:
        for jurisdiction in target_jurisdictions(recipe.user_region, default_jurisdictions):
            try:
                compliance = await evaluate_jurisdiction(snapshot, jurisdiction)
            except Exception as e:
                logger.error(f"Regulatory check for {jurisdiction} failed on recipe {recipe.id}: {e}")
                failed = failure_outcome(
                    CheckFailure.REGULATORY_VALIDATION_ERROR, code_suffix=jurisdiction, detail=jurisdiction,
                )
                outcome.errors.extend(failed.errors)
                continue

            evaluated.append(compliance)
            if compliance.violations:
                outcome.errors.append(ValidationError(
                    type=ErrorType.REGULATORY_VIOLATION,
                    severity=ErrorSeverity.CRITICAL,
                    message=f"Regulatory violation in {jurisdiction}: {'; '.join(compliance.violations)}",
                    code=f"REGULATORY_VIOLATION_{jurisdiction}",
                    regulatory_reference=compliance.reference,
                    affected_ingredients=list(compliance.affected_ingredients),
                ))
            if compliance.considerations:
                outcome.warnings.append(ValidationWarning(
                    type=WarningType.REGIONAL,
                    severity=WarningSeverity.WARNING,
                    message=f"Regulatory consideration in {jurisdiction}: {'; '.join(compliance.considerations)}",
                    code=f"REGULATORY_CONSIDERATION_{jurisdiction}",
                    suggestion="Reduce caffeine or sugar content, or divide into more servings",
                    affected_ingredients=list(compliance.affected_ingredients),
                ))

    except Exception as e:
        logger.error(f"Regulatory validation failed for recipe {recipe.id}: {e}")
        return failure_outcome(CheckFailure.REGULATORY_VALIDATION_ERROR)

    outcome.payload = evaluated
    return outcome
