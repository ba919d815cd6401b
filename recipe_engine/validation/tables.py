"""
Recipe Validation Reference Tables
==================================
Fixed domain tables compiled into the engine. Built once per engine by
build_reference_tables() and never mutated afterwards, so one instance is
safe to share across any number of concurrent validation calls.

Tables:
- ALLERGEN_SOURCES        allergen class -> ingredient-ID source tokens
- INCOMPATIBLE_PAIRS      symmetric pairwise incompatibility matrix
- BANNED_COMBINATIONS     ingredient-ID sets prohibited outright
- JURISDICTION_THRESHOLDS per-jurisdiction caffeine/sugar/age limits
- CATEGORY_RULES          caffeine range, required ingredients, sugar limit
- INTERACTION_RULES       pairwise ingredient-interaction rules

Ruleset Version: 1.0.0
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from .models import InteractionKind, RecipeCategory, RiskLevel


RULESET_VERSION = "1.0.0"


# =============================================================================
# ALLERGENS
# =============================================================================

# Major allergens per FDA / EU 1169/2011 disclosure lists
ALLERGEN_SOURCES: Dict[str, List[str]] = {
    "milk": ["casein", "whey", "lactose", "milk-protein"],
    "eggs": ["albumin", "egg-white", "egg-yolk"],
    "fish": ["fish-protein", "fish-oil", "omega-3"],
    "shellfish": ["shrimp-protein", "crab-protein", "lobster-protein"],
    "tree-nuts": ["almond-protein", "walnut-protein", "hazelnut-protein", "cashew-protein", "pecan-protein"],
    "peanuts": ["peanut-protein", "peanut-oil"],
    "soy": ["soy-protein", "soy-lecithin", "soy-isoflavone"],
    "wheat": ["gluten", "wheat-protein", "wheat-starch"],
    "sesame": ["sesame-oil", "sesame-protein"],
    "sulfites": ["sodium-sulfite", "potassium-sulfite"],
    "celery": ["celery-protein", "celery-seed"],
    "mustard": ["mustard-seed", "mustard-protein"],
    "lupin": ["lupin-protein"],
    "molluscs": ["oyster-protein", "clam-protein", "mussel-protein"],
}

HIGH_SEVERITY_ALLERGENS = ("peanuts", "tree-nuts", "shellfish", "fish", "eggs", "milk")
MEDIUM_SEVERITY_ALLERGENS = ("soy", "wheat", "sesame")

ALLERGEN_LABELING: Dict[str, List[str]] = {
    "milk": ["Contains: Milk"],
    "eggs": ["Contains: Eggs"],
    "fish": ["Contains: Fish"],
    "shellfish": ["Contains: Shellfish"],
    "tree-nuts": ["Contains: Tree Nuts"],
    "peanuts": ["Contains: Peanuts"],
    "soy": ["Contains: Soy"],
    "wheat": ["Contains: Wheat"],
    "sesame": ["Contains: Sesame"],
}

ALLERGEN_ALTERNATIVES: Dict[str, List[str]] = {
    "milk": ["coconut-milk", "almond-milk", "oat-milk"],
    "eggs": ["flax-egg", "chia-egg"],
    "soy": ["pea-protein", "rice-protein"],
    "wheat": ["rice-flour", "almond-flour"],
    "peanuts": ["sunflower-seed-butter"],
    "tree-nuts": ["sunflower-seed-butter", "pumpkin-seed-butter"],
}

# Source tags that mark facility-level exposure
FACILITY_SOURCE_TOKENS = ("processing", "facility")


# =============================================================================
# COMPATIBILITY / BANNED COMBINATIONS
# =============================================================================

INCOMPATIBLE_PAIRS: List[Tuple[str, str]] = [
    ("acidic-phosphoric", "calcium-carbonate"),
    ("citric-acid", "sodium-bicarbonate"),
    ("vitamin-c", "vitamin-b12"),
    ("caffeine", "melatonin"),
    ("guarana", "kola-nut"),
    ("taurine", "artificial-sweeteners"),
]

BANNED_COMBINATIONS: List[Tuple[str, ...]] = [
    ("alcohol", "caffeine"),
    ("ephedra", "guarana"),
    ("synthetic-caffeine", "natural-caffeine"),
]

BANNED_COMBINATION_REFERENCE = "EU Food Safety Authority Guidelines"


# =============================================================================
# JURISDICTIONS
# =============================================================================

# AU has no record: only banned combinations and the collaborator banned list apply
JURISDICTION_THRESHOLDS: Dict[str, Dict[str, Any]] = {
    "EU": {
        "caffeine": {"max_per_serving": 160, "max_daily": 400},
        "sugar": {"max_per_serving": 25, "max_daily": 90},
        "age_restrictions": {"energy": 16, "alcohol": 18},
        "authority": "EFSA",
    },
    "US": {
        "caffeine": {"max_per_serving": 200, "max_daily": 400},
        "sugar": {"max_per_serving": 50, "max_daily": 125},
        "age_restrictions": {"energy": 16, "alcohol": 21},
        "authority": "FDA",
    },
    "CA": {
        "caffeine": {"max_per_serving": 180, "max_daily": 400},
        "sugar": {"max_per_serving": 25, "max_daily": 100},
        "age_restrictions": {"energy": 16, "alcohol": 19},
        "authority": "Health Canada",
    },
}


# =============================================================================
# CATEGORY RULES
# =============================================================================

CATEGORY_RULES: Dict[RecipeCategory, Dict[str, Any]] = {
    RecipeCategory.CLASSIC: {
        "caffeine_range": (0, 50),
        "required_ingredients": ("carbonated-water", "natural-flavors"),
        "sugar_limit": 40,
    },
    RecipeCategory.ENERGY: {
        "caffeine_range": (50, 160),
        "required_ingredients": ("caffeine", "vitamin-b-complex"),
        "sugar_limit": 30,
    },
    RecipeCategory.HYBRID: {
        "caffeine_range": (25, 128),
        "required_ingredients": ("carbonated-water", "caffeine"),
        "sugar_limit": 35,
    },
}

# Presence-based caffeine proxy: each listed source counts a nominal 50 mg
NOMINAL_CAFFEINE_SOURCES: Dict[str, float] = {
    "caffeine": 50,
    "guarana": 50,
    "kola-nut": 50,
    "yerba-mate": 50,
}


# =============================================================================
# INTERACTIONS
# =============================================================================

STIMULANT_TOKENS = ("caffeine", "guarana", "kola-nut", "yerba-mate", "green-tea-extract")

# Each side matches ingredient IDs by substring; sides must match distinct IDs
INTERACTION_RULES: List[Dict[str, Any]] = [
    {
        "left": STIMULANT_TOKENS,
        "right": ("taurine",),
        "effect": InteractionKind.SYNERGISTIC,
        "magnitude": RiskLevel.MEDIUM,
        "description": "Caffeine and taurine may have synergistic effects on energy",
        "safety_implications": ["Monitor total stimulant load", "Consider spacing consumption"],
    },
    {
        "left": ("caffeine",),
        "right": ("guarana", "kola-nut", "yerba-mate"),
        "effect": InteractionKind.ADDITIVE,
        "magnitude": RiskLevel.HIGH,
        "description": "Stacked caffeine sources add up to a higher stimulant dose than either alone",
        "safety_implications": ["Count every caffeine source toward the daily limit"],
    },
    {
        "left": STIMULANT_TOKENS,
        "right": ("ginseng",),
        "effect": InteractionKind.SYNERGISTIC,
        "magnitude": RiskLevel.MEDIUM,
        "description": "Ginseng may amplify the stimulant response to caffeine",
        "safety_implications": ["Watch for jitteriness or elevated heart rate"],
    },
    {
        "left": STIMULANT_TOKENS,
        "right": ("l-theanine",),
        "effect": InteractionKind.ANTAGONISTIC,
        "magnitude": RiskLevel.LOW,
        "description": "L-theanine may blunt caffeine-induced jitteriness",
        "safety_implications": [],
    },
    {
        "left": STIMULANT_TOKENS,
        "right": ("sugar", "glucose", "sucrose"),
        "effect": InteractionKind.ADDITIVE,
        "magnitude": RiskLevel.LOW,
        "description": "Sugar and caffeine combine into a short energy spike followed by a crash",
        "safety_implications": ["Pair with food to flatten the glucose curve"],
    },
]


# =============================================================================
# NUTRITION
# =============================================================================

HIGH_SUGAR_THRESHOLD = 50

# Used when the limits collaborator serves no daily values
DEFAULT_DAILY_VALUES: Dict[str, Dict[str, float]] = {
    "vitamins": {
        "vitamin-c": 90,
        "vitamin-b3": 16,
        "vitamin-b6": 1.7,
        "vitamin-b12": 0.0024,
    },
    "minerals": {
        "sodium": 2300,
        "potassium": 4700,
        "magnesium": 420,
        "calcium": 1300,
    },
}

CAFFEINE_SENSITIVE_CONDITIONS = (
    "pregnancy",
    "breastfeeding",
    "hypertension",
    "heart-condition",
    "arrhythmia",
    "anxiety",
    "insomnia",
)


# =============================================================================
# CROSS-CATEGORY
# =============================================================================

SAFETY_BUFFER_BASE_MINUTES = 120
SAFETY_BUFFER_MAX_MINUTES = 480
CUMULATIVE_CAFFEINE_TRIGGER_MG = 100
DAILY_CAFFEINE_THRESHOLD_MG = 400

DEFAULT_MAX_SAFE_AMOUNT = 1000


# =============================================================================
# IMMUTABLE BUNDLE
# =============================================================================

def _freeze_matrix(pairs: List[Tuple[str, str]]) -> Mapping[str, FrozenSet[str]]:
    """Build the symmetric incompatibility lookup."""
    matrix: Dict[str, set] = {}
    for first, second in pairs:
        matrix.setdefault(first, set()).add(second)
        matrix.setdefault(second, set()).add(first)
    return MappingProxyType({k: frozenset(v) for k, v in matrix.items()})


def _freeze(obj: Any) -> Any:
    if isinstance(obj, dict):
        return MappingProxyType({k: _freeze(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return tuple(_freeze(v) for v in obj)
    return obj


@dataclass(frozen=True)
class ReferenceTables:
    """Read-only view of every rule table the checks consult."""
    allergen_sources: Mapping[str, Tuple[str, ...]]
    allergen_labeling: Mapping[str, Tuple[str, ...]]
    allergen_alternatives: Mapping[str, Tuple[str, ...]]
    high_severity_allergens: FrozenSet[str]
    medium_severity_allergens: FrozenSet[str]
    incompatibility_matrix: Mapping[str, FrozenSet[str]]
    banned_combinations: Tuple[Tuple[str, ...], ...]
    jurisdiction_thresholds: Mapping[str, Mapping[str, Any]]
    category_rules: Mapping[RecipeCategory, Mapping[str, Any]]
    nominal_caffeine_sources: Mapping[str, float]
    interaction_rules: Tuple[Mapping[str, Any], ...]
    caffeine_sensitive_conditions: FrozenSet[str]
    default_daily_values: Mapping[str, Mapping[str, float]]
    ruleset_version: str = RULESET_VERSION

    def are_compatible(self, first: str, second: str) -> bool:
        return second not in self.incompatibility_matrix.get(first, frozenset())

    def thresholds_for(self, jurisdiction: str) -> Optional[Mapping[str, Any]]:
        return self.jurisdiction_thresholds.get(jurisdiction.upper())

    def rules_for(self, category: RecipeCategory) -> Mapping[str, Any]:
        return self.category_rules.get(category, self.category_rules[RecipeCategory.CLASSIC])

    def summary(self) -> Dict[str, Any]:
        """Counts and keys, for admin inspection."""
        return {
            "ruleset_version": self.ruleset_version,
            "allergen_classes": sorted(self.allergen_sources.keys()),
            "incompatible_ingredients": len(self.incompatibility_matrix),
            "banned_combinations": [list(combo) for combo in self.banned_combinations],
            "jurisdictions": sorted(self.jurisdiction_thresholds.keys()),
            "categories": [category.value for category in self.category_rules.keys()],
            "interaction_rules": len(self.interaction_rules),
        }


def build_reference_tables() -> ReferenceTables:
    """Build the immutable table bundle from the module-level definitions."""
    return ReferenceTables(
        allergen_sources=_freeze(ALLERGEN_SOURCES),
        allergen_labeling=_freeze(ALLERGEN_LABELING),
        allergen_alternatives=_freeze(ALLERGEN_ALTERNATIVES),
        high_severity_allergens=frozenset(HIGH_SEVERITY_ALLERGENS),
        medium_severity_allergens=frozenset(MEDIUM_SEVERITY_ALLERGENS),
        incompatibility_matrix=_freeze_matrix(INCOMPATIBLE_PAIRS),
        banned_combinations=tuple(tuple(combo) for combo in BANNED_COMBINATIONS),
        jurisdiction_thresholds=_freeze(JURISDICTION_THRESHOLDS),
        category_rules=MappingProxyType({k: _freeze(v) for k, v in CATEGORY_RULES.items()}),
        nominal_caffeine_sources=MappingProxyType(dict(NOMINAL_CAFFEINE_SOURCES)),
        interaction_rules=tuple(_freeze(rule) for rule in INTERACTION_RULES),
        caffeine_sensitive_conditions=frozenset(CAFFEINE_SENSITIVE_CONDITIONS),
        default_daily_values=_freeze(DEFAULT_DAILY_VALUES),
    )
