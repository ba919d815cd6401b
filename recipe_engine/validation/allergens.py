"""
Allergen Assessor

Detects the 14 regulated allergen classes by substring-matching recipe
ingredient IDs against the allergen source-token table. Ingredients the
catalog flags with cross-contamination risk are attributed a second time
as "<id> (cross-contamination)" sources.

Per detected allergen: severity, labeling text and alternatives come from
fixed tables; contamination risk is derived from the sources.

User-facing findings:
- ALLERGEN_CONFLICT (error)  detected allergen is in the recipe's allergies
- ALLERGEN_PRESENT  (info)   any other detected allergen
"""

import logging
from typing import Dict, List, Optional, Set

from .base import CheckFailure, CheckOutcome, failure_outcome
from .models import (
    AllergenWarning,
    RiskLevel,
    ValidationWarning,
    WarningSeverity,
    WarningType,
)
from .snapshot import LookupSnapshot
from .tables import FACILITY_SOURCE_TOKENS, ReferenceTables

logger = logging.getLogger(__name__)

CROSS_CONTAMINATION_TAG = "(cross-contamination)"


def allergens_for_ingredient(ingredient_id: str, tables: ReferenceTables) -> List[str]:
    ingredient_id = ingredient_id.lower()
    return [
        allergen
        for allergen, sources in tables.allergen_sources.items()
        if any(source in ingredient_id for source in sources)
    ]


def allergen_severity(allergen: str, tables: ReferenceTables) -> RiskLevel:
    if allergen in tables.high_severity_allergens:
        return RiskLevel.HIGH
    if allergen in tables.medium_severity_allergens:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def regulatory_labeling(allergen: str, tables: ReferenceTables) -> List[str]:
    return list(tables.allergen_labeling.get(allergen, (f"May contain: {allergen}",)))


def cross_contamination_risk(sources: List[str]) -> RiskLevel:
    if any(token in source for source in sources for token in FACILITY_SOURCE_TOKENS):
        return RiskLevel.HIGH
    if len(sources) > 1:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _matches_allergy(allergen: str, allergies: Set[str]) -> bool:
    # "peanut" and "peanuts" both refer to the same class
    return allergen in allergies or allergen.rstrip("s") in allergies


def collect_allergen_sources(
    ingredient_ids: List[str],
    contaminated_ids: Optional[Set[str]],
    tables: ReferenceTables,
) -> Dict[str, List[str]]:
    """allergen -> sources, in recipe order."""
    sources: Dict[str, List[str]] = {}
    for ingredient_id in dict.fromkeys(ingredient_ids):
        for allergen in allergens_for_ingredient(ingredient_id, tables):
            sources.setdefault(allergen, []).append(ingredient_id)
    for ingredient_id in dict.fromkeys(ingredient_ids):
        if not contaminated_ids or ingredient_id not in contaminated_ids:
            continue
        for allergen in allergens_for_ingredient(ingredient_id, tables):
            sources.setdefault(allergen, []).append(f"{ingredient_id} {CROSS_CONTAMINATION_TAG}")
    return sources


async def check_allergens(snapshot: LookupSnapshot) -> CheckOutcome:
    recipe = snapshot.recipe
    tables = snapshot.tables
    outcome = CheckOutcome()

    try:
        contaminated_ids: Optional[Set[str]] = None
        try:
            lookup = await snapshot.lookup()
            contaminated_ids = {i.id for i in lookup.ingredients if i.safety.cross_contamination_risk}
        except Exception as e:
            # Direct matches need no catalog data; only the contamination pass is lost
            logger.error(f"Allergen contamination pass skipped for recipe {recipe.id}: {e}")
            outcome.warnings.extend(failure_outcome(
                CheckFailure.ALLERGEN_VALIDATION_ERROR, detail="cross-contamination data unavailable",
            ).warnings)

        allergies = set(recipe.allergies)
        allergen_warnings: List[AllergenWarning] = []
        conflicts: List[str] = []
        conflict_sources: List[str] = []
        present: List[str] = []
        present_sources: List[str] = []

        for allergen, sources in collect_allergen_sources(recipe.ingredient_ids, contaminated_ids, tables).items():
            allergen_warnings.append(AllergenWarning(
                allergen=allergen,
                severity=allergen_severity(allergen, tables),
                sources=sources,
                cross_contamination_risk=cross_contamination_risk(sources),
                regulatory_labeling=regulatory_labeling(allergen, tables),
                alternatives=list(tables.allergen_alternatives.get(allergen, ())),
            ))
            if _matches_allergy(allergen, allergies):
                conflicts.append(allergen)
                conflict_sources.extend(sources)
            else:
                present.append(allergen)
                present_sources.extend(sources)

        if conflicts:
            outcome.warnings.append(ValidationWarning(
                type=WarningType.ALLERGEN_CONFLICT,
                severity=WarningSeverity.ERROR,
                message=f"Recipe contains {', '.join(conflicts)} - matches user allergy profile",
                code="ALLERGEN_CONFLICT",
                suggestion="Replace the affected ingredients with allergen-free alternatives",
                affected_ingredients=conflict_sources,
            ))
        if present:
            outcome.warnings.append(ValidationWarning(
                type=WarningType.ALLERGEN_CONFLICT,
                severity=WarningSeverity.INFO,
                message=f"Contains {', '.join(present)} - review for allergen considerations",
                code="ALLERGEN_PRESENT",
                affected_ingredients=present_sources,
            ))

        outcome.payload = allergen_warnings

    except Exception as e:
        logger.error(f"Allergen validation failed for recipe {recipe.id}: {e}")
        failed = failure_outcome(CheckFailure.ALLERGEN_VALIDATION_ERROR)
        failed.payload = []
        return failed

    return outcome
