"""
Ingredient Compatibility Checker

1. Bulk lookup: IDs the catalog does not know -> MISSING_INGREDIENT_DATA
2. Pairwise matrix: every unordered ID pair -> INGREDIENT_INCOMPATIBILITY
3. Banned combinations: any fixed set fully present -> BANNED_COMBINATION
4. Catalog-banned ingredients -> BANNED_INGREDIENT

Pairwise checking is O(n^2); recipes stay under ~20 ingredients.
Collaborator failures become INGREDIENT_VALIDATION_ERROR (critical).
"""

import logging
from itertools import combinations
from typing import List, Tuple

from .base import CheckFailure, CheckOutcome, failure_outcome
from .models import (
    ErrorSeverity,
    ErrorType,
    ValidationError,
    ValidationWarning,
    WarningSeverity,
    WarningType,
)
from .snapshot import LookupSnapshot
from .tables import BANNED_COMBINATION_REFERENCE, ReferenceTables

logger = logging.getLogger(__name__)


def find_incompatible_pairs(ingredient_ids: List[str], tables: ReferenceTables) -> List[Tuple[str, str]]:
    unique_ids = list(dict.fromkeys(ingredient_ids))
    return [
        (first, second)
        for first, second in combinations(unique_ids, 2)
        if not tables.are_compatible(first, second)
    ]


def find_banned_combinations(ingredient_ids: List[str], tables: ReferenceTables) -> List[Tuple[str, ...]]:
    present = set(ingredient_ids)
    return [combo for combo in tables.banned_combinations if present.issuperset(combo)]


async def check_ingredient_compatibility(snapshot: LookupSnapshot) -> CheckOutcome:
    outcome = CheckOutcome()
    ingredient_ids = snapshot.recipe.ingredient_ids

    try:
        lookup = await snapshot.lookup()

        if lookup.missing:
            outcome.warnings.append(ValidationWarning(
                type=WarningType.INGREDIENT_COMPATIBILITY,
                severity=WarningSeverity.WARNING,
                message=f"Missing ingredient data for: {', '.join(lookup.missing)}",
                code="MISSING_INGREDIENT_DATA",
                suggestion="Verify ingredient IDs and update database",
                affected_ingredients=list(lookup.missing),
            ))

        for first, second in find_incompatible_pairs(ingredient_ids, snapshot.tables):
            outcome.warnings.append(ValidationWarning(
                type=WarningType.INGREDIENT_COMPATIBILITY,
                severity=WarningSeverity.WARNING,
                message=f"{first} and {second} may have compatibility issues",
                code="INGREDIENT_INCOMPATIBILITY",
                suggestion="Consider adjusting ratios or adding buffer ingredients",
                affected_ingredients=[first, second],
            ))

        for combo in find_banned_combinations(ingredient_ids, snapshot.tables):
            outcome.errors.append(ValidationError(
                type=ErrorType.UNSAFE_COMBINATION,
                severity=ErrorSeverity.HIGH,
                message=f"Banned ingredient combination detected: {' + '.join(combo)}",
                code="BANNED_COMBINATION",
                regulatory_reference=BANNED_COMBINATION_REFERENCE,
                affected_ingredients=list(combo),
            ))

        banned = [i.id for i in lookup.ingredients if i.safety.banned]
        if banned:
            outcome.errors.append(ValidationError(
                type=ErrorType.BANNED_INGREDIENT,
                severity=ErrorSeverity.CRITICAL,
                message=f"Banned ingredient(s) in recipe: {', '.join(banned)}",
                code="BANNED_INGREDIENT",
                regulatory_reference=BANNED_COMBINATION_REFERENCE,
                affected_ingredients=banned,
            ))

    except Exception as e:
        logger.error(f"Ingredient validation failed for recipe {snapshot.recipe.id}: {e}")
        return failure_outcome(CheckFailure.INGREDIENT_VALIDATION_ERROR)

    return outcome
