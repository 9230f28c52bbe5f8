from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from homelife.core.systems import SystemType, parse_system_type

ZONE_HIGH_HEAT = "high_heat"
ZONE_COASTAL = "coastal"
ZONE_FREEZE_THAW = "freeze_thaw"
ZONE_MODERATE = "moderate"

# zone -> (climate stress index, environmental exposure index)
ZONE_INDICES: dict[str, tuple[float, float]] = {
    ZONE_HIGH_HEAT: (0.8, 0.4),
    ZONE_COASTAL: (0.6, 0.8),
    ZONE_FREEZE_THAW: (0.6, 0.5),
    ZONE_MODERATE: (0.3, 0.2),
}

ZONE_LABELS = {
    ZONE_HIGH_HEAT: "High heat & humidity zone",
    ZONE_COASTAL: "Salt air exposure zone",
    ZONE_FREEZE_THAW: "Freeze-thaw zone",
    ZONE_MODERATE: "Moderate climate zone",
}

_HIGH_HEAT_PLACES = (
    "miami", "fort lauderdale", "west palm", "tampa", "orlando",
    "phoenix", "tucson", "las vegas", "houston", "san antonio",
)
_HIGH_HEAT_STATES = ("fl", "florida", "az", "arizona")
_COASTAL_PLACES = ("beach", "coast", "key ", "island", "santa monica", "san diego", "malibu")
_FREEZE_PLACES = (
    "boston", "chicago", "minneapolis", "denver", "detroit",
    "milwaukee", "buffalo", "cleveland", "pittsburgh",
)
_FREEZE_STATES = (
    "mn", "wi", "mi", "nd", "sd", "mt", "wy", "vt", "nh", "me",
    "minnesota", "wisconsin", "michigan",
)


@dataclass(frozen=True)
class RegionContext:
    climate_zone: str = ZONE_MODERATE
    climate_stress_index: float = 0.3
    environment_index: float = 0.2

    @property
    def label(self) -> str:
        return ZONE_LABELS.get(self.climate_zone, ZONE_LABELS[ZONE_MODERATE])


@dataclass(frozen=True)
class PropertyContext:
    construction_year: int | None = None
    state: str | None = None
    city: str | None = None
    roof_material: str | None = None
    water_heater_type: str | None = None
    data_completeness: float = 0.5
    usage_index: float = 0.5
    has_usage_signal: bool = False
    maintenance_scores: Mapping[str, float] = field(default_factory=dict)

    def variant_for(self, system_type: SystemType) -> str | None:
        if system_type == SystemType.ROOF:
            return self.roof_material
        if system_type == SystemType.WATER_HEATER:
            return self.water_heater_type
        return None

    def maintenance_score(self, system_type: SystemType) -> float:
        # Absent -> no recorded maintenance.
        return float(self.maintenance_scores.get(system_type.value, 0.0))


def derive_climate_zone(state: str | None, city: str | None, lat: float | None = None) -> str:
    """City/state name heuristics, with latitude as a tiebreaker when present."""
    location = f"{city or ''} {state or ''}".lower()
    st = (state or "").strip().lower()

    if any(p in location for p in _HIGH_HEAT_PLACES) or st in _HIGH_HEAT_STATES or (lat is not None and lat < 28):
        return ZONE_HIGH_HEAT
    if any(p in location for p in _COASTAL_PLACES):
        return ZONE_COASTAL
    if any(p in location for p in _FREEZE_PLACES) or st in _FREEZE_STATES or (lat is not None and lat > 42):
        return ZONE_FREEZE_THAW
    return ZONE_MODERATE


def _opt_float(x: Any) -> float | None:
    try:
        return None if x is None else float(x)
    except (TypeError, ValueError):
        return None


def _clamp01(x: Any, default: float) -> float:
    v = _opt_float(x)
    if v is None:
        return default
    return max(0.0, min(1.0, v))


def region_context_from_home(home: Mapping[str, Any]) -> RegionContext:
    """
    Region context from a home record. Explicit index overrides on the record
    win over zone defaults.
    """
    zone = str(home.get("climate_zone") or "").strip().lower()
    if zone not in ZONE_INDICES:
        zone = derive_climate_zone(home.get("state"), home.get("city"), _opt_float(home.get("latitude")))

    stress_default, env_default = ZONE_INDICES[zone]
    return RegionContext(
        climate_zone=zone,
        climate_stress_index=_clamp01(home.get("climate_stress_index"), stress_default),
        environment_index=_clamp01(home.get("environment_index"), env_default),
    )


def property_context_from_home(
    home: Mapping[str, Any],
    maintenance_scores: Mapping[str, float] | None = None,
) -> PropertyContext:
    year = home.get("year_built", home.get("construction_year"))
    try:
        construction_year = int(year) if year is not None else None
    except (TypeError, ValueError):
        construction_year = None

    usage = _opt_float(home.get("usage_index"))

    return PropertyContext(
        construction_year=construction_year,
        state=home.get("state"),
        city=home.get("city"),
        roof_material=(str(home["roof_material"]).lower() if home.get("roof_material") else None),
        water_heater_type=(str(home["water_heater_type"]).lower() if home.get("water_heater_type") else None),
        data_completeness=_clamp01(home.get("data_completeness"), 0.5),
        usage_index=_clamp01(usage, 0.5),
        has_usage_signal=usage is not None,
        maintenance_scores={parse_system_type(k).value: _clamp01(v, 0.0) for k, v in (maintenance_scores or {}).items()},
    )
