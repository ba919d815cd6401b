"""
Recipe Validation Engine

Rule-evaluation core for beverage formulations (classic, energy and hybrid
sodas). The engine scores a proposed recipe for ingredient compatibility,
allergen exposure, nutritional and regulatory limits, batch scaling safety
and cross-category interaction risk.

Usage:
    from recipe_engine.validation import RecipeValidationEngine

    engine = RecipeValidationEngine(ingredient_provider, limits_provider)
    result = await engine.validate_recipe(recipe)
"""

__version__ = "1.0.0"
