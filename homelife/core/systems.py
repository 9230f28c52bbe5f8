"""
System profile tables.

Every supported system type (and material / tank variant) is one row here.
The hazard math never branches on system type: adding a system means adding
a row, not touching the calculator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from homelife.core.contract import LIFESPAN_BAND_MAX_YEARS
from homelife.core.errors import UnknownSystemTypeError


class SystemType(str, Enum):
    HVAC = "hvac"
    ROOF = "roof"
    WATER_HEATER = "water_heater"
    ELECTRICAL_PANEL = "electrical_panel"
    PLUMBING = "plumbing"
    POOL = "pool"
    SOLAR = "solar"
    MINI_SPLIT = "mini_split"


_ALIASES = {
    "ac": SystemType.HVAC,
    "a/c": SystemType.HVAC,
    "air_conditioning": SystemType.HVAC,
    "electrical": SystemType.ELECTRICAL_PANEL,
    "panel": SystemType.ELECTRICAL_PANEL,
    "waterheater": SystemType.WATER_HEATER,
    "water heater": SystemType.WATER_HEATER,
    "pool_equipment": SystemType.POOL,
    "minisplit": SystemType.MINI_SPLIT,
    "mini-split": SystemType.MINI_SPLIT,
}


def parse_system_type(value: str | SystemType) -> SystemType:
    """Strict parse. Unknown values are a caller error, never a silent default."""
    if isinstance(value, SystemType):
        return value
    key = str(value or "").strip().lower()
    try:
        return SystemType(key)
    except ValueError:
        pass
    if key in _ALIASES:
        return _ALIASES[key]
    raise UnknownSystemTypeError(f"Unknown system type: {value!r}")


@dataclass(frozen=True)
class HeuristicRule:
    """
    Homes built before `built_before` are assumed to have had one replacement
    `replacement_offset_years` after construction, but never closer than
    `min_age_years` to the evaluation year.
    """
    built_before: int
    replacement_offset_years: int
    min_age_years: int


@dataclass(frozen=True)
class SystemProfile:
    system_type: SystemType
    variant: str
    display_name: str
    median_years: float
    sigma_years: float
    cost_low: int
    cost_high: int
    climate_sensitivity: float
    band_max_years: float = LIFESPAN_BAND_MAX_YEARS
    # Evaluated in order; the first rule whose built_before exceeds the
    # construction year applies. No match -> original system.
    heuristic_rules: tuple[HeuristicRule, ...] = field(default_factory=tuple)


DEFAULT_VARIANT = "standard"
UNKNOWN_VARIANT = "unknown"

_HVAC_RULES = (HeuristicRule(built_before=2006, replacement_offset_years=12, min_age_years=5),)
_WATER_HEATER_RULES = (
    HeuristicRule(built_before=1990, replacement_offset_years=18, min_age_years=5),
    HeuristicRule(built_before=2012, replacement_offset_years=12, min_age_years=3),
)

_PROFILE_ROWS: tuple[SystemProfile, ...] = (
    SystemProfile(SystemType.HVAC, DEFAULT_VARIANT, "HVAC", 13.0, 2.5, 6000, 12000, 0.18,
                  heuristic_rules=_HVAC_RULES),

    SystemProfile(SystemType.ROOF, "asphalt", "Roof", 21.5, 2.7, 12000, 20000, 0.20),
    SystemProfile(SystemType.ROOF, "tile", "Roof", 42.5, 5.9, 18000, 35000, 0.12, band_max_years=50.0),
    SystemProfile(SystemType.ROOF, "metal", "Roof", 55.0, 11.7, 20000, 45000, 0.10, band_max_years=70.0),
    SystemProfile(SystemType.ROOF, UNKNOWN_VARIANT, "Roof", 25.0, 4.0, 15000, 30000, 0.18),

    SystemProfile(SystemType.WATER_HEATER, "tank", "Water Heater", 10.0, 1.6, 1800, 3000, 0.10,
                  heuristic_rules=_WATER_HEATER_RULES),
    SystemProfile(SystemType.WATER_HEATER, "tankless", "Water Heater", 17.5, 2.0, 3500, 6000, 0.08,
                  heuristic_rules=_WATER_HEATER_RULES),
    SystemProfile(SystemType.WATER_HEATER, UNKNOWN_VARIANT, "Water Heater", 12.0, 2.0, 1800, 3500, 0.10,
                  heuristic_rules=_WATER_HEATER_RULES),

    SystemProfile(SystemType.ELECTRICAL_PANEL, DEFAULT_VARIANT, "Electrical Panel", 40.0, 8.0, 1500, 4000, 0.05,
                  band_max_years=60.0,
                  heuristic_rules=(HeuristicRule(1985, 40, 5),)),
    SystemProfile(SystemType.PLUMBING, DEFAULT_VARIANT, "Plumbing", 50.0, 10.0, 2000, 15000, 0.08,
                  band_max_years=80.0,
                  heuristic_rules=(HeuristicRule(1975, 50, 5),)),
    SystemProfile(SystemType.POOL, DEFAULT_VARIANT, "Pool Equipment", 15.0, 3.0, 3000, 8000, 0.15,
                  heuristic_rules=(HeuristicRule(2010, 15, 3),)),
    SystemProfile(SystemType.SOLAR, DEFAULT_VARIANT, "Solar", 25.0, 5.0, 15000, 35000, 0.12),
    SystemProfile(SystemType.MINI_SPLIT, DEFAULT_VARIANT, "Mini-Split", 20.0, 3.0, 1500, 5000, 0.15,
                  heuristic_rules=(HeuristicRule(2005, 18, 3),)),
)

PROFILES: dict[tuple[SystemType, str], SystemProfile] = {
    (row.system_type, row.variant): row for row in _PROFILE_ROWS
}


def get_profile(system_type: str | SystemType, variant: str | None = None) -> SystemProfile:
    """
    Look up the profile row for (system type, variant).

    Unknown / missing variants fall back to the type's "unknown" row, then to
    its standard row. An unknown system type raises.
    """
    st = parse_system_type(system_type)
    v = (variant or "").strip().lower()

    for key in (v, UNKNOWN_VARIANT, DEFAULT_VARIANT):
        row = PROFILES.get((st, key))
        if row is not None:
            return row

    raise UnknownSystemTypeError(f"No profile rows for system type: {st.value}")


# ----------------------------
# Permit keyword tables
# ----------------------------

# Terms that tie a permit description to a system type.
SYSTEM_KEYWORDS: dict[SystemType, tuple[str, ...]] = {
    SystemType.HVAC: (
        "hvac", "air condition", "a/c", "ac unit", "heat pump",
        "condenser", "air handler", "furnace", "cooling", "heating",
    ),
    SystemType.ROOF: (
        "roof", "re-roof", "reroof", "shingle", "tile roof", "metal roof",
        "roofing", "tear off", "tear-off",
    ),
    SystemType.WATER_HEATER: (
        "water heater", "hot water", "tankless", "water heat", "tank water",
    ),
    SystemType.ELECTRICAL_PANEL: (
        "electrical panel", "service panel", "main panel", "breaker panel",
        "panel upgrade", "service upgrade", "200 amp", "meter can",
    ),
    SystemType.PLUMBING: (
        "repipe", "re-pipe", "water line", "sewer line", "supply line", "drain line",
    ),
    SystemType.POOL: (
        "pool pump", "pool heater", "pool equipment", "pool filter", "spa heater",
    ),
    SystemType.SOLAR: (
        "solar", "photovoltaic", "pv system", "pv panel",
    ),
    SystemType.MINI_SPLIT: (
        "mini split", "mini-split", "ductless",
    ),
}

# Readable permit types that imply a system on their own.
PERMIT_TYPE_SYSTEMS: dict[str, SystemType] = {
    "mechanical": SystemType.HVAC,
    "roofing": SystemType.ROOF,
    "solar": SystemType.SOLAR,
}

_GENERIC_REPLACEMENT = ("replace", "replacement", "change out", "changeout", "change-out", "upgrade", "new unit")
_GENERIC_INSTALL = ("install", "installation", "new system")

REPLACEMENT_KEYWORDS: dict[SystemType, tuple[str, ...]] = {
    SystemType.HVAC: ("replace", "replacement", "change out", "changeout", "change-out", "upgrade", "new unit"),
    SystemType.ROOF: ("re-roof", "reroof", "tear off", "tear-off", "replacement", "new roof", "replace"),
    SystemType.WATER_HEATER: ("replace", "new", "install", "conversion", "upgrade"),
}

INSTALL_KEYWORDS: dict[SystemType, tuple[str, ...]] = {
    SystemType.HVAC: ("install", "new system", "conversion"),
    SystemType.ROOF: ("new roof", "install"),
    SystemType.WATER_HEATER: ("install", "new"),
}

MAINTENANCE_KEYWORDS: tuple[str, ...] = (
    "repair", "service", "maintenance", "inspection", "tune-up", "tune up",
    "patch", "leak", "recharge", "cleaning",
)


def replacement_keywords(system_type: SystemType) -> tuple[str, ...]:
    return REPLACEMENT_KEYWORDS.get(system_type, _GENERIC_REPLACEMENT)


def install_keywords(system_type: SystemType) -> tuple[str, ...]:
    return INSTALL_KEYWORDS.get(system_type, _GENERIC_INSTALL)
