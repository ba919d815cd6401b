"""
Recipe Validation Contracts

Pydantic schemas shared by every check in the validation layer:
- Recipe / IngredientUse        (caller input, immutable for one call)
- Ingredient / RegulatoryLimits (collaborator data, read-only here)
- ValidationWarning / ValidationError (closed enums for type and severity)
- Per-check sub-results and the aggregated ValidationResult

IMPORTANT: warnings and errors are deduplicated by `code` within one run,
and `valid` is true iff no error is critical AND score >= 70.
"""

from __future__ import annotations
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from recipe_engine.shared.hashing import fingerprint


VALID_SCORE_THRESHOLD = 70


# =============================================================================
# ENUMS
# =============================================================================

class RecipeCategory(str, Enum):
    CLASSIC = "classic"
    ENERGY = "energy"
    HYBRID = "hybrid"


class WarningType(str, Enum):
    INGREDIENT_COMPATIBILITY = "ingredient-compatibility"
    CATEGORY_MISMATCH = "category-mismatch"
    NUTRITIONAL_IMBALANCE = "nutritional-imbalance"
    SCALING_CONCERN = "scaling-concern"
    CROSS_CATEGORY = "cross-category"
    ALLERGEN_CONFLICT = "allergen-conflict"
    CULTURAL = "cultural"
    REGIONAL = "regional"


class WarningSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ErrorType(str, Enum):
    BANNED_INGREDIENT = "banned-ingredient"
    UNSAFE_COMBINATION = "unsafe-combination"
    REGULATORY_VIOLATION = "regulatory-violation"
    ALLERGEN_CONFLICT = "allergen-conflict"


class ErrorSeverity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ScalingImpact(str, Enum):
    BENEFICIAL = "beneficial"
    NEUTRAL = "neutral"
    CONCERNING = "concerning"
    DANGEROUS = "dangerous"


class InteractionKind(str, Enum):
    SYNERGISTIC = "synergistic"
    ADDITIVE = "additive"
    ANTAGONISTIC = "antagonistic"
    NEUTRAL = "neutral"


class CumulativeEffectKind(str, Enum):
    CAFFEINE_ACCUMULATION = "caffeine-accumulation"
    TOLERANCE_BUILDING = "tolerance-building"
    DEPENDENCY_RISK = "dependency-risk"
    HEALTH_IMPACT = "health-impact"


class CumulativeRiskLevel(str, Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    ELEVATED = "elevated"
    DANGEROUS = "dangerous"


# =============================================================================
# INPUT: RECIPE
# =============================================================================

class IngredientUse(BaseModel):
    """One line of a recipe: which ingredient and how much of it."""
    ingredient_id: str = Field(..., min_length=1, description="Catalog ingredient ID, e.g. 'caffeine'")
    amount: float = Field(..., ge=0, description="Quantity in `unit`")
    unit: str = Field(default="g", description="g, ml, mg or tsp")
    is_optional: bool = False

    class Config:
        frozen = True
        extra = "forbid"


class Recipe(BaseModel):
    """
    A proposed beverage formulation.

    Created by the caller per validation request. Never persisted or
    mutated by the engine.
    """
    id: str
    name: str
    category: RecipeCategory
    soda_type: Optional[str] = None
    ingredients: List[IngredientUse] = Field(default_factory=list)
    batch_size: float = Field(..., gt=0, description="Original batch size")
    servings: int = Field(..., gt=0, description="Servings produced by one batch")
    target_batch_size: Optional[float] = Field(default=None, gt=0)
    user_region: Optional[str] = Field(default=None, description="Jurisdiction code, e.g. 'EU'")
    user_age: Optional[int] = Field(default=None, ge=0, le=120)
    health_conditions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)

    @field_validator("user_region", mode="before")
    @classmethod
    def normalize_region(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    @field_validator("allergies", "health_conditions", mode="before")
    @classmethod
    def normalize_tags(cls, v):
        if isinstance(v, list):
            return [str(item).strip().lower() for item in v if str(item).strip()]
        return v

    @property
    def ingredient_ids(self) -> List[str]:
        return [use.ingredient_id for use in self.ingredients]

    class Config:
        frozen = True
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "id": "rcp-001",
                "name": "Citrus Charge",
                "category": "energy",
                "ingredients": [
                    {"ingredient_id": "caffeine", "amount": 80, "unit": "mg"},
                    {"ingredient_id": "taurine", "amount": 1000, "unit": "mg"},
                    {"ingredient_id": "carbonated-water", "amount": 250, "unit": "ml"},
                ],
                "batch_size": 1,
                "servings": 1,
                "user_region": "EU",
                "allergies": [],
            }
        }


# =============================================================================
# COLLABORATOR DATA
# =============================================================================

class IngredientSafety(BaseModel):
    banned: bool = False
    eu_compliant: bool = True
    max_safe_amount: Optional[float] = Field(default=None, gt=0)
    cross_contamination_risk: bool = False

    class Config:
        frozen = True


class Ingredient(BaseModel):
    """
    Catalog ingredient. Nutrient values are densities per 100 units of the
    ingredient (the unit the recipe line uses).
    """
    id: str
    name: str
    caffeine: float = 0.0
    sugar: float = 0.0
    calories: float = 0.0
    vitamins: Dict[str, float] = Field(default_factory=dict)
    minerals: Dict[str, float] = Field(default_factory=dict)
    amino_acids: Dict[str, float] = Field(default_factory=dict)
    safety: IngredientSafety = Field(default_factory=IngredientSafety)

    class Config:
        frozen = True


class BulkLookupResult(BaseModel):
    ingredients: List[Ingredient] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)

    def by_id(self) -> Dict[str, Ingredient]:
        return {ingredient.id: ingredient for ingredient in self.ingredients}

    class Config:
        frozen = True


class CaffeineLimits(BaseModel):
    max_per_serving_mg: float
    max_daily_mg: float

    class Config:
        frozen = True


class DailyValues(BaseModel):
    vitamins: Dict[str, float] = Field(default_factory=dict)
    minerals: Dict[str, float] = Field(default_factory=dict)

    class Config:
        frozen = True


class RegulatoryLimits(BaseModel):
    """Limits served by the regulatory-limits collaborator."""
    caffeine: CaffeineLimits
    age_restriction: Optional[int] = None
    banned_ingredients: List[str] = Field(default_factory=list)
    daily_values: DailyValues = Field(default_factory=DailyValues)

    class Config:
        frozen = True


# =============================================================================
# WARNINGS AND ERRORS
# =============================================================================

class ValidationWarning(BaseModel):
    """Non-blocking finding."""
    type: WarningType
    severity: WarningSeverity
    message: str
    code: str
    suggestion: Optional[str] = None
    affected_ingredients: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class ValidationError(BaseModel):
    """Blocking-relevant finding."""
    type: ErrorType
    severity: ErrorSeverity
    message: str
    code: str
    regulatory_reference: Optional[str] = None
    affected_ingredients: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


# =============================================================================
# SUB-RESULTS
# =============================================================================

class HybridRatio(BaseModel):
    classic: float
    energy: float

    class Config:
        frozen = True


class CategoryCompatibility(BaseModel):
    category: RecipeCategory
    compatibility_score: float = Field(ge=0, le=100)
    compatibility_notes: List[str] = Field(default_factory=list)
    suggested_adjustments: List[str] = Field(default_factory=list)
    optimal_ratio: Optional[HybridRatio] = None

    class Config:
        frozen = True


class AllergenWarning(BaseModel):
    allergen: str
    severity: RiskLevel
    sources: List[str]
    cross_contamination_risk: RiskLevel
    regulatory_labeling: List[str] = Field(default_factory=list)
    alternatives: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class NutritionalValidation(BaseModel):
    total_caffeine: float = 0.0
    caffeine_per_serving: float = 0.0
    sugar_content: float = 0.0
    calories: float = 0.0
    vitamins: Dict[str, float] = Field(default_factory=dict)
    minerals: Dict[str, float] = Field(default_factory=dict)
    amino_acids: Dict[str, float] = Field(default_factory=dict)
    validated: bool = True
    deficiencies: List[str] = Field(default_factory=list)
    excesses: List[str] = Field(default_factory=list)
    daily_value_percentages: Dict[str, float] = Field(default_factory=dict)

    class Config:
        frozen = True


class ConcentrationChange(BaseModel):
    ingredient: str
    original_concentration: float
    scaled_concentration: float
    impact: ScalingImpact

    class Config:
        frozen = True


class ScalingValidation(BaseModel):
    original_batch_size: float
    target_batch_size: float
    scaling_factor: float
    safe: bool = True
    concentration_changes: List[ConcentrationChange] = Field(default_factory=list)
    safety_considerations: List[str] = Field(default_factory=list)
    recommended_adjustments: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class InteractionEffect(BaseModel):
    ingredients: List[str]
    effect: InteractionKind
    magnitude: RiskLevel
    description: str
    safety_implications: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class CumulativeEffect(BaseModel):
    effect: CumulativeEffectKind
    severity: RiskLevel
    threshold: float
    current_level: float
    risk_level: CumulativeRiskLevel
    mitigation_strategies: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class CrossCategoryAssessment(BaseModel):
    primary_category: RecipeCategory
    secondary_categories: List[str] = Field(default_factory=list)
    interaction_effects: List[InteractionEffect] = Field(default_factory=list)
    recommended_consumption_pattern: List[str] = Field(default_factory=list)
    safety_buffer: float = Field(description="Minutes between consumptions of different categories")
    cumulative_effects: List[CumulativeEffect] = Field(default_factory=list)

    class Config:
        frozen = True


# =============================================================================
# AGGREGATED RESULT
# =============================================================================

class ValidationMetadata(BaseModel):
    validated_at: str
    validation_time_ms: float
    ingredient_count: int
    missing_ingredients: List[str] = Field(default_factory=list)
    engine_version: str
    ruleset_version: str
    recipe_hash: Optional[str] = Field(default=None, description="Fingerprint of the validated recipe")
    # Nominal (presence-based) and weighted caffeine can disagree; both are reported
    nominal_caffeine_mg: Optional[float] = None
    weighted_caffeine_mg: Optional[float] = None

    class Config:
        frozen = True


class ValidationResult(BaseModel):
    """Aggregated verdict returned by RecipeValidationEngine.validate_recipe."""
    valid: bool
    warnings: List[ValidationWarning] = Field(default_factory=list)
    errors: List[ValidationError] = Field(default_factory=list)
    score: float = Field(ge=0, le=100)
    category_compatibility: List[CategoryCompatibility] = Field(default_factory=list)
    allergen_warnings: List[AllergenWarning] = Field(default_factory=list)
    nutritional_validation: NutritionalValidation
    scaling_validation: Optional[ScalingValidation] = None
    cross_category_assessment: Optional[CrossCategoryAssessment] = None
    metadata: ValidationMetadata

    def warning_codes(self) -> List[str]:
        return [warning.code for warning in self.warnings]

    def error_codes(self) -> List[str]:
        return [error.code for error in self.errors]

    def compute_hash(self) -> str:
        """Fingerprint of the verdict, excluding per-call timing fields."""
        return fingerprint(self)

    class Config:
        frozen = True
