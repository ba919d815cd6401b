"""
Check outcomes and fail-closed contracts.

Every check returns a CheckOutcome. A check that fails internally never
raises: it returns the finding named by its CheckFailure code instead, so
one broken check cannot abort the run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .models import (
    ErrorSeverity,
    ErrorType,
    ValidationError,
    ValidationWarning,
    WarningSeverity,
    WarningType,
)


class CheckFailure(Enum):
    INGREDIENT_VALIDATION_ERROR = "INGREDIENT_VALIDATION_ERROR"
    NUTRITIONAL_VALIDATION_ERROR = "NUTRITIONAL_VALIDATION_ERROR"
    CATEGORY_VALIDATION_ERROR = "CATEGORY_VALIDATION_ERROR"
    ALLERGEN_VALIDATION_ERROR = "ALLERGEN_VALIDATION_ERROR"
    REGULATORY_VALIDATION_ERROR = "REGULATORY_VALIDATION_ERROR"
    SCALING_VALIDATION_ERROR = "SCALING_VALIDATION_ERROR"
    CROSS_CATEGORY_VALIDATION_ERROR = "CROSS_CATEGORY_VALIDATION_ERROR"
    VALIDATION_SYSTEM_ERROR = "VALIDATION_SYSTEM_ERROR"


class ValidationEngineError(Exception):
    """Raised for misconfiguration at construction time, never from a validation call."""

    def __init__(self, message: str, failure: CheckFailure = CheckFailure.VALIDATION_SYSTEM_ERROR):
        self.failure = failure
        self.message = message
        super().__init__(f"{failure.value}: {message}")


@dataclass
class CheckOutcome:
    """Findings plus the typed sub-result of one check."""
    warnings: List[ValidationWarning] = field(default_factory=list)
    errors: List[ValidationError] = field(default_factory=list)
    payload: Optional[Any] = None
    extras: Dict[str, Any] = field(default_factory=dict)


# Fail-closed finding per check: (kind, type, severity, message)
_FAILURE_FINDINGS = {
    CheckFailure.INGREDIENT_VALIDATION_ERROR: (
        "error", ErrorType.REGULATORY_VIOLATION, ErrorSeverity.CRITICAL,
        "Unable to validate ingredient safety",
    ),
    CheckFailure.NUTRITIONAL_VALIDATION_ERROR: (
        "warning", WarningType.NUTRITIONAL_IMBALANCE, WarningSeverity.WARNING,
        "Unable to complete nutritional validation",
    ),
    CheckFailure.CATEGORY_VALIDATION_ERROR: (
        "warning", WarningType.CATEGORY_MISMATCH, WarningSeverity.WARNING,
        "Unable to validate category-specific rules",
    ),
    CheckFailure.ALLERGEN_VALIDATION_ERROR: (
        "warning", WarningType.ALLERGEN_CONFLICT, WarningSeverity.WARNING,
        "Unable to complete allergen validation",
    ),
    CheckFailure.REGULATORY_VALIDATION_ERROR: (
        "error", ErrorType.REGULATORY_VIOLATION, ErrorSeverity.CRITICAL,
        "Unable to validate regulatory compliance",
    ),
    CheckFailure.SCALING_VALIDATION_ERROR: (
        "warning", WarningType.SCALING_CONCERN, WarningSeverity.WARNING,
        "Unable to complete scaling validation",
    ),
    CheckFailure.CROSS_CATEGORY_VALIDATION_ERROR: (
        "warning", WarningType.CROSS_CATEGORY, WarningSeverity.WARNING,
        "Unable to complete cross-category assessment",
    ),
    CheckFailure.VALIDATION_SYSTEM_ERROR: (
        "error", ErrorType.REGULATORY_VIOLATION, ErrorSeverity.CRITICAL,
        "Validation system error - please try again",
    ),
}


def failure_outcome(failure: CheckFailure, code_suffix: str = "", detail: str = "") -> CheckOutcome:
    """Build the fail-closed outcome for a check."""
    kind, finding_type, severity, message = _FAILURE_FINDINGS[failure]
    code = failure.value + (f"_{code_suffix}" if code_suffix else "")
    if detail:
        message = f"{message} ({detail})"
    if kind == "error":
        return CheckOutcome(errors=[ValidationError(
            type=finding_type, severity=severity, message=message, code=code,
        )])
    return CheckOutcome(warnings=[ValidationWarning(
        type=finding_type, severity=severity, message=message, code=code,
    )])
