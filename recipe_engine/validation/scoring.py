"""
Scoring Model

Score starts at 100 and loses a fixed amount per merged finding:

    errors:   critical -50, high -30, medium -15
    warnings: error -20, warning -10, info -5

Bonuses: +10 when the regulatory check produced no errors, +5 when the
recipe has 3-8 ingredients. Final score is clamped to [0, 100].

valid = no critical error AND score >= 70
"""

from typing import Iterable, List, Sequence, Tuple, TypeVar

from .base import CheckOutcome
from .models import (
    VALID_SCORE_THRESHOLD,
    ErrorSeverity,
    ValidationError,
    ValidationWarning,
    WarningSeverity,
)

ERROR_PENALTIES = {
    ErrorSeverity.CRITICAL: 50,
    ErrorSeverity.HIGH: 30,
    ErrorSeverity.MEDIUM: 15,
}

WARNING_PENALTIES = {
    WarningSeverity.ERROR: 20,
    WarningSeverity.WARNING: 10,
    WarningSeverity.INFO: 5,
}

REGULATORY_BONUS = 10
INGREDIENT_COUNT_BONUS = 5
IDEAL_INGREDIENT_RANGE = (3, 8)

Finding = TypeVar("Finding", ValidationWarning, ValidationError)


def dedupe_by_code(findings: Iterable[Finding]) -> List[Finding]:
    """Keep the first finding for each code, preserving order."""
    seen = set()
    unique = []
    for finding in findings:
        if finding.code in seen:
            continue
        seen.add(finding.code)
        unique.append(finding)
    return unique


def merge_outcomes(outcomes: Sequence[CheckOutcome]) -> Tuple[List[ValidationWarning], List[ValidationError]]:
    """Concatenate in the given check order, then dedupe by code."""
    warnings = dedupe_by_code(w for outcome in outcomes for w in outcome.warnings)
    errors = dedupe_by_code(e for outcome in outcomes for e in outcome.errors)
    return warnings, errors


def calculate_score(
    warnings: Sequence[ValidationWarning],
    errors: Sequence[ValidationError],
    ingredient_count: int,
    regulatory_compliant: bool,
) -> float:
    score = 100
    for error in errors:
        score -= ERROR_PENALTIES[error.severity]
    for warning in warnings:
        score -= WARNING_PENALTIES[warning.severity]

    if regulatory_compliant:
        score += REGULATORY_BONUS
    low, high = IDEAL_INGREDIENT_RANGE
    if low <= ingredient_count <= high:
        score += INGREDIENT_COUNT_BONUS

    return float(max(0, min(100, score)))


def is_valid(errors: Sequence[ValidationError], score: float) -> bool:
    has_critical = any(error.severity == ErrorSeverity.CRITICAL for error in errors)
    return not has_critical and score >= VALID_SCORE_THRESHOLD
