"""
Verdict Fingerprints

Canonical JSON + sha256 for recipes and validation verdicts. Validating the
same recipe against the same collaborator data always yields the same
verdict fingerprint: per-call timing fields are left out.
"""

import hashlib
import json
from typing import Any

from pydantic import BaseModel

HASH_PREFIX = "sha256:"

# Per-call metadata, different on every run
VOLATILE_FIELDS = frozenset([
    "validated_at",
    "validation_time_ms",
])

FLOAT_DIGITS = 10


def _normalize(value: Any, drop_volatile: bool) -> Any:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if isinstance(value, dict):
        return {
            str(key): _normalize(item, drop_volatile)
            for key, item in value.items()
            if not (drop_volatile and key in VOLATILE_FIELDS)
        }
    if isinstance(value, (list, tuple)):
        return [_normalize(item, drop_volatile) for item in value]
    if isinstance(value, float):
        return round(value, FLOAT_DIGITS)
    return value


def canonical_json(value: Any, drop_volatile: bool = True) -> str:
    """Sorted-key compact JSON of a model, dict or list."""
    return json.dumps(
        _normalize(value, drop_volatile),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    )


def fingerprint(value: Any, drop_volatile: bool = True) -> str:
    """Returns "sha256:<64-char-hex>"."""
    digest = hashlib.sha256(canonical_json(value, drop_volatile).encode("utf-8")).hexdigest()
    return f"{HASH_PREFIX}{digest}"
