"""
Recipe Validation Layer

Scores a beverage recipe across seven independent checks and returns one
ValidationResult.

Design Principles:
- PURE: no I/O beyond the two injected collaborators
- FAIL-CLOSED: every failure is reported in-band, nothing is raised
- DETERMINISTIC: same input + same collaborator data -> same score and codes
"""

from .base import CheckFailure, ValidationEngineError
from .models import (
    Recipe,
    IngredientUse,
    RecipeCategory,
    Ingredient,
    IngredientSafety,
    RegulatoryLimits,
    ValidationWarning,
    ValidationError,
    ValidationResult,
)
from .orchestrate import RecipeValidationEngine, fail_closed_result
from .admin import router
from .providers import (
    IngredientDataProvider,
    RegulatoryLimitsProvider,
    InMemoryIngredientProvider,
    StaticLimitsProvider,
)
from .tables import RULESET_VERSION, ReferenceTables, build_reference_tables

__all__ = [
    # Models
    "Recipe",
    "IngredientUse",
    "RecipeCategory",
    "Ingredient",
    "IngredientSafety",
    "RegulatoryLimits",
    "ValidationWarning",
    "ValidationError",
    "ValidationResult",
    # Engine
    "RecipeValidationEngine",
    "fail_closed_result",
    "CheckFailure",
    "ValidationEngineError",
    # Collaborators
    "IngredientDataProvider",
    "RegulatoryLimitsProvider",
    "InMemoryIngredientProvider",
    "StaticLimitsProvider",
    # Tables
    "RULESET_VERSION",
    "ReferenceTables",
    "build_reference_tables",
    # Admin
    "router",
]
