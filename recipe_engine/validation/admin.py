"""
Recipe Validation Admin Endpoints

Read-only inspection of the validation layer.

Security: health check is public, ruleset inspection requires
X-Admin-API-Key when ADMIN_API_KEY is set.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, HTTPException

from recipe_engine import __version__ as ENGINE_VERSION
from recipe_engine.config import load_settings

from .tables import RULESET_VERSION, build_reference_tables


router = APIRouter(
    prefix="/api/v1/recipe-validation",
    tags=["recipe-validation"],
)


def verify_admin_key(x_admin_api_key: str = Header(None, alias="X-Admin-API-Key")) -> str:
    """Verify admin API key from header."""
    expected_key = load_settings().admin_api_key

    if not expected_key:
        return "dev_mode"

    if not x_admin_api_key:
        raise HTTPException(status_code=401, detail="Missing X-Admin-API-Key header")

    if x_admin_api_key != expected_key:
        raise HTTPException(status_code=401, detail="Invalid admin API key")

    return x_admin_api_key


# Endpoints

@router.get("/health")
async def recipe_validation_health():
    """
    Health check for the recipe validation module.

    Does not require authentication.
    """
    return {
        "status": "ok",
        "module": "recipe_validation",
        "version": ENGINE_VERSION,
        "ruleset_version": RULESET_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ruleset")
async def get_ruleset(api_key: str = Depends(verify_admin_key)):
    """
    Summary of the compiled reference tables: allergen classes,
    jurisdictions, categories and rule counts.
    """
    return build_reference_tables().summary()
