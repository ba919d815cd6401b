"""
Recipe Validation Engine Settings

Environment-driven configuration. Nothing here is read per request: the
engine snapshots settings at construction time.

Environment variables:
    RECIPE_ENGINE_DEFAULT_JURISDICTIONS  comma list, default "EU,US,CA,AU"
    RECIPE_ENGINE_LOG_LEVEL              default "INFO"
    ADMIN_API_KEY                        guards the admin ruleset endpoint
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple


DEFAULT_JURISDICTIONS: Tuple[str, ...] = ("EU", "US", "CA", "AU")
DEFAULT_LOG_LEVEL = "INFO"


def _parse_jurisdictions(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return DEFAULT_JURISDICTIONS
    parsed = tuple(code.strip().upper() for code in raw.split(",") if code.strip())
    return parsed or DEFAULT_JURISDICTIONS


@dataclass(frozen=True)
class EngineSettings:
    """Settings captured once per engine instance."""
    default_jurisdictions: Tuple[str, ...] = DEFAULT_JURISDICTIONS
    log_level: str = DEFAULT_LOG_LEVEL
    admin_api_key: Optional[str] = field(default=None, repr=False)


def load_settings() -> EngineSettings:
    """Build EngineSettings from the process environment."""
    return EngineSettings(
        default_jurisdictions=_parse_jurisdictions(os.getenv("RECIPE_ENGINE_DEFAULT_JURISDICTIONS")),
        log_level=os.getenv("RECIPE_ENGINE_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        admin_api_key=os.getenv("ADMIN_API_KEY") or None,
    )


def configure_logging(settings: Optional[EngineSettings] = None) -> None:
    """Apply the configured level to the package logger."""
    settings = settings or load_settings()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.getLogger("recipe_engine").setLevel(level)
