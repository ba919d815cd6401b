"""
Recipe Validation Orchestrator

Fans the seven checks out as concurrent asyncio tasks over one shared
LookupSnapshot, joins them, merges findings in a fixed order and scores
the result:

    ingredient -> nutritional -> category -> allergen -> regulatory
    -> scaling -> cross-category

Deduplication keeps the earliest check's wording for a shared code.

Checks fail closed individually. On top of that, validate_recipe has one
outer boundary: anything that still escapes (a defect, not a check
failure) produces fail_closed_result() and is never raised to the caller.

Usage:
    engine = RecipeValidationEngine(ingredient_provider, limits_provider)
    result = await engine.validate_recipe(recipe)
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from recipe_engine import __version__ as ENGINE_VERSION
from recipe_engine.config import EngineSettings, load_settings
from recipe_engine.shared.hashing import fingerprint

from .allergens import check_allergens
from .base import CheckFailure, ValidationEngineError, failure_outcome
from .category import check_category_rules
from .cross_category import check_cross_category
from .ingredients import check_ingredient_compatibility
from .models import (
    NutritionalValidation,
    Recipe,
    ValidationMetadata,
    ValidationResult,
)
from .nutrition import check_nutritional_profile
from .providers import IngredientDataProvider, RegulatoryLimitsProvider
from .regulatory import check_regulatory_compliance
from .scaling import check_scaling
from .scoring import calculate_score, is_valid, merge_outcomes
from .snapshot import LookupSnapshot
from .tables import RULESET_VERSION, ReferenceTables, build_reference_tables

logger = logging.getLogger(__name__)


def now_iso() -> str:
    """Current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def fail_closed_result(ingredient_count: int, started: float, ruleset_version: str = RULESET_VERSION) -> ValidationResult:
    """Fixed verdict for an unexpected orchestrator failure."""
    system_error = failure_outcome(CheckFailure.VALIDATION_SYSTEM_ERROR).errors
    return ValidationResult(
        valid=False,
        warnings=[],
        errors=system_error,
        score=0,
        category_compatibility=[],
        allergen_warnings=[],
        nutritional_validation=NutritionalValidation(validated=False),
        metadata=ValidationMetadata(
            validated_at=now_iso(),
            validation_time_ms=_elapsed_ms(started),
            ingredient_count=ingredient_count,
            missing_ingredients=[],
            engine_version=ENGINE_VERSION,
            ruleset_version=ruleset_version,
        ),
    )


class RecipeValidationEngine:
    """
    Entry point of the validation layer.

    Reference tables are built once here and shared read-only by every
    call, so one engine instance serves any number of concurrent
    validations.
    """

    def __init__(
        self,
        ingredient_provider: IngredientDataProvider,
        limits_provider: RegulatoryLimitsProvider,
        tables: Optional[ReferenceTables] = None,
        settings: Optional[EngineSettings] = None,
    ):
        if ingredient_provider is None or limits_provider is None:
            raise ValidationEngineError("ingredient_provider and limits_provider are required")
        self.ingredient_provider = ingredient_provider
        self.limits_provider = limits_provider
        self.tables = tables or build_reference_tables()
        self.settings = settings or load_settings()

    async def validate_recipe(self, recipe: Recipe) -> ValidationResult:
        """Validate one recipe. Never raises."""
        started = time.perf_counter()
        try:
            return await self._validate(recipe, started)
        except Exception:
            logger.exception(f"Recipe validation failed for recipe {getattr(recipe, 'id', '?')}")
            return fail_closed_result(len(getattr(recipe, "ingredients", []) or []), started, self.tables.ruleset_version)

    def validate_recipe_sync(self, recipe: Recipe) -> ValidationResult:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self.validate_recipe(recipe))

    async def _validate(self, recipe: Recipe, started: float) -> ValidationResult:
        snapshot = LookupSnapshot(recipe, self.tables, self.ingredient_provider, self.limits_provider)

        ordered = await asyncio.gather(
            check_ingredient_compatibility(snapshot),
            check_nutritional_profile(snapshot),
            check_category_rules(snapshot),
            check_allergens(snapshot),
            check_regulatory_compliance(snapshot, self.settings.default_jurisdictions),
            check_scaling(snapshot),
            check_cross_category(snapshot),
            return_exceptions=True,
        )
        for outcome in ordered:
            if isinstance(outcome, Exception):
                raise outcome

        (
            ingredient_outcome,
            nutritional_outcome,
            category_outcome,
            allergen_outcome,
            regulatory_outcome,
            scaling_outcome,
            cross_category_outcome,
        ) = ordered
        warnings, errors = merge_outcomes(ordered)

        score = calculate_score(
            warnings,
            errors,
            ingredient_count=len(recipe.ingredients),
            regulatory_compliant=not regulatory_outcome.errors,
        )

        nutrition: NutritionalValidation = nutritional_outcome.payload
        nominal = category_outcome.extras.get("nominal_caffeine")
        weighted = nutrition.total_caffeine if nutrition.validated else None
        if nominal is not None and weighted is not None and abs(nominal - weighted) > 1e-9:
            logger.debug(
                f"Recipe {recipe.id}: nominal caffeine {nominal:g}mg differs from weighted {weighted:.1f}mg"
            )

        result = ValidationResult(
            valid=is_valid(errors, score),
            warnings=warnings,
            errors=errors,
            score=score,
            category_compatibility=category_outcome.payload or [],
            allergen_warnings=allergen_outcome.payload or [],
            nutritional_validation=nutrition,
            scaling_validation=scaling_outcome.payload,
            cross_category_assessment=cross_category_outcome.payload,
            metadata=ValidationMetadata(
                validated_at=now_iso(),
                validation_time_ms=_elapsed_ms(started),
                ingredient_count=len(recipe.ingredients),
                missing_ingredients=snapshot.missing_ingredients(),
                engine_version=ENGINE_VERSION,
                ruleset_version=self.tables.ruleset_version,
                recipe_hash=fingerprint(recipe),
                nominal_caffeine_mg=nominal,
                weighted_caffeine_mg=weighted,
            ),
        )
        logger.info(
            f"Validated recipe {recipe.id}: valid={result.valid} score={score:g} "
            f"warnings={len(warnings)} errors={len(errors)}"
        )
        return result
