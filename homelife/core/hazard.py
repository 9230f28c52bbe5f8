"""
Hazard / survival calculator.

Pure function from (ResolvedInstall, PropertyContext, RegionContext, as_of)
to a LifecycleWindow. No I/O, no lookups beyond the profile tables.

The failure curve assumes a constant hazard rate (exponential survival).
That is a placeholder pending real failure-rate data; the model is
injectable so a Weibull or empirical curve can replace it without
touching callers.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, Protocol

from homelife.core.authority import ResolvedInstall
from homelife.core.contract import (
    ENVIRONMENT_MULT_SPAN,
    EXHAUSTED_FAILURE_PROBABILITY,
    FAILURE_HORIZONS_MONTHS,
    FAILURE_PROBABILITY_DECIMALS,
    FAILURE_TIER_CRITICAL,
    FAILURE_TIER_HIGH,
    FAILURE_TIER_MODERATE,
    HAZARD_MODEL_VERSION,
    INSTALL_VERIFIED_BASE,
    INSTALL_VERIFIED_SPAN,
    LIFESPAN_BAND_MIN_YEARS,
    MAINTENANCE_FRESH_MONTHS,
    MAINTENANCE_MULT_BASE,
    MAINTENANCE_MULT_SPAN,
    MAINTENANCE_OVERDUE_MONTHS,
    MAINTENANCE_STALE_MONTHS,
    MULTIPLIER_MAX,
    MULTIPLIER_MIN,
    RISK_HIGH_MAX_YEARS_REMAINING,
    RISK_MODERATE_MAX_YEARS_REMAINING,
    SIGMA_UNKNOWNS_WIDENING,
    UNCERTAINTY_MEDIUM_MIN_CONFIDENCE,
    UNCERTAINTY_NARROW_MIN_CONFIDENCE,
    UNKNOWNS_MULT_BASE,
    UNKNOWNS_MULT_SPAN,
    USAGE_MULT_SPAN,
    WINDOW_CONF_BASE,
    WINDOW_CONF_COMPLETENESS,
    WINDOW_CONF_MAINTENANCE,
    WINDOW_CONF_USAGE_SIGNAL,
    WINDOW_CONF_VERIFIED,
    Z_P10_P90,
)
from homelife.core.errors import MissingInstallYearError
from homelife.core.evidence import MaintenanceEvent
from homelife.core.region import PropertyContext, RegionContext
from homelife.core.systems import SystemType, get_profile


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


UNCERTAINTY_NARROW = "narrow"
UNCERTAINTY_MEDIUM = "medium"
UNCERTAINTY_WIDE = "wide"


@dataclass(frozen=True)
class Multipliers:
    climate: float
    maintenance: float
    install: float
    usage: float
    environment: float
    unknowns: float
    raw_product: float
    combined: float


@dataclass(frozen=True)
class RiskDriver:
    factor: str
    direction: str  # "reduces" | "extends" | "widens"
    severity: str  # "high" | "medium" | "low"
    description: str


@dataclass(frozen=True)
class MonthsRemaining:
    p10: int
    p50: int
    p90: int


@dataclass(frozen=True)
class LifecycleWindow:
    system_type: SystemType
    variant: str
    display_name: str
    install_year: int
    install_source: str
    age_years: int
    effective_lifespan_years: float
    early_year: int
    likely_year: int
    late_year: int
    uncertainty: str
    failure_probability_12mo: float
    failure_probability_24mo: float
    failure_probability_36mo: float
    months_remaining: MonthsRemaining
    years_remaining_p50: float
    confidence: float
    risk: RiskLevel
    months_to_planning: int
    drivers: tuple[RiskDriver, ...]
    multipliers: Multipliers
    model_version: str = HAZARD_MODEL_VERSION

    @property
    def failure_curve(self) -> dict[int, float]:
        return {
            12: self.failure_probability_12mo,
            24: self.failure_probability_24mo,
            36: self.failure_probability_36mo,
        }


# ----------------------------
# Survival models
# ----------------------------

class SurvivalModel(Protocol):
    name: str

    def failure_probability(self, horizon_months: float, remaining_months: float) -> float:
        ...


class ExponentialSurvival:
    """
    P(fail by h) = 1 - exp(-h / remaining), constant hazard.

    Capped at EXHAUSTED_FAILURE_PROBABILITY: the model never reports certainty,
    and a system past its effective lifespan sits exactly at the cap.
    """
    name = HAZARD_MODEL_VERSION

    def failure_probability(self, horizon_months: float, remaining_months: float) -> float:
        if remaining_months <= 0:
            return EXHAUSTED_FAILURE_PROBABILITY
        p = 1.0 - math.exp(-float(horizon_months) / max(1.0, float(remaining_months)))
        p = _clamp(p, 0.0, EXHAUSTED_FAILURE_PROBABILITY)
        return round(p, FAILURE_PROBABILITY_DECIMALS)


EXPONENTIAL_SURVIVAL = ExponentialSurvival()


# ----------------------------
# Helpers
# ----------------------------

def _clamp(x: float, lo: float, hi: float) -> float:
    if math.isnan(x):
        return lo
    return max(lo, min(hi, x))


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def uncertainty_class(confidence: float) -> str:
    """Monotone: higher confidence never yields a wider class."""
    c = _clamp(float(confidence), 0.0, 1.0)
    if c >= UNCERTAINTY_NARROW_MIN_CONFIDENCE:
        return UNCERTAINTY_NARROW
    if c >= UNCERTAINTY_MEDIUM_MIN_CONFIDENCE:
        return UNCERTAINTY_MEDIUM
    return UNCERTAINTY_WIDE


def risk_level(years_remaining: float) -> RiskLevel:
    if years_remaining <= RISK_HIGH_MAX_YEARS_REMAINING:
        return RiskLevel.HIGH
    if years_remaining <= RISK_MODERATE_MAX_YEARS_REMAINING:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def failure_probability_tier(p12: float) -> str:
    if p12 >= FAILURE_TIER_CRITICAL:
        return "critical"
    if p12 >= FAILURE_TIER_HIGH:
        return "high"
    if p12 >= FAILURE_TIER_MODERATE:
        return "moderate"
    return "low"


def window_confidence(
    *,
    verified: bool,
    maintenance: float,
    completeness: float,
    has_usage_signal: bool,
) -> float:
    score = (
        WINDOW_CONF_BASE
        + WINDOW_CONF_VERIFIED * (1.0 if verified else 0.0)
        + WINDOW_CONF_MAINTENANCE * _clamp(maintenance, 0.0, 1.0)
        + WINDOW_CONF_COMPLETENESS * _clamp(completeness, 0.0, 1.0)
        + WINDOW_CONF_USAGE_SIGNAL * (1.0 if has_usage_signal else 0.0)
    )
    return round(_clamp(score, 0.0, 1.0), 2)


def compute_multipliers(
    *,
    climate_sensitivity: float,
    climate_stress: float,
    maintenance: float,
    verified: bool,
    usage: float,
    environment: float,
    completeness: float,
) -> Multipliers:
    climate = 1.0 - climate_sensitivity * _clamp(climate_stress, 0.0, 1.0)
    maint = MAINTENANCE_MULT_BASE + MAINTENANCE_MULT_SPAN * _clamp(maintenance, 0.0, 1.0)
    install = INSTALL_VERIFIED_BASE + (INSTALL_VERIFIED_SPAN if verified else 0.0)
    use = 1.0 - USAGE_MULT_SPAN * _clamp(usage, 0.0, 1.0)
    env = 1.0 - ENVIRONMENT_MULT_SPAN * _clamp(environment, 0.0, 1.0)
    unknowns = UNKNOWNS_MULT_BASE + UNKNOWNS_MULT_SPAN * _clamp(completeness, 0.0, 1.0)

    raw = climate * maint * install * use * env * unknowns
    return Multipliers(
        climate=round(climate, 4),
        maintenance=round(maint, 4),
        install=round(install, 4),
        usage=round(use, 4),
        environment=round(env, 4),
        unknowns=round(unknowns, 4),
        raw_product=round(raw, 4),
        combined=round(_clamp(raw, MULTIPLIER_MIN, MULTIPLIER_MAX), 4),
    )


def build_risk_drivers(age_years: float, lifespan_years: float, m: Multipliers) -> tuple[RiskDriver, ...]:
    drivers: list[RiskDriver] = []

    ratio = age_years / lifespan_years if lifespan_years > 0 else 0.0
    pct = _round_half_up(ratio * 100)
    if ratio > 0.8:
        drivers.append(RiskDriver(
            "age", "reduces", "high",
            f"System is {pct}% through expected lifespan ({age_years:.0f}y of {lifespan_years:.1f}y)",
        ))
    elif ratio > 0.6:
        drivers.append(RiskDriver("age", "reduces", "medium", f"System is {pct}% through expected lifespan"))
    elif ratio > 0.3:
        drivers.append(RiskDriver("age", "reduces", "low", f"System at {pct}% of lifespan - normal wear"))

    climate_pct = _round_half_up((1 - m.climate) * 100)
    if m.climate < 0.9:
        drivers.append(RiskDriver("climate", "reduces", "high", f"Harsh climate reduces lifespan by {climate_pct}%"))
    elif m.climate < 1.0:
        drivers.append(RiskDriver("climate", "reduces", "medium", f"Climate impact reduces lifespan by {climate_pct}%"))

    if m.maintenance < 0.9:
        drivers.append(RiskDriver("maintenance", "reduces", "high", "Deferred maintenance significantly accelerates wear"))
    elif m.maintenance < 0.95:
        drivers.append(RiskDriver("maintenance", "reduces", "medium", "Maintenance quality could be improved"))
    elif m.maintenance > 1.05:
        drivers.append(RiskDriver("maintenance", "extends", "low", "Recent maintenance extends expected life"))

    if m.usage < 0.95:
        drivers.append(RiskDriver("usage", "reduces", "medium", "Heavy usage shortens expected life"))
    if m.environment < 0.95:
        drivers.append(RiskDriver("environment", "reduces", "medium", "Environmental exposure accelerates wear"))
    if m.install > 1.0:
        drivers.append(RiskDriver("install", "extends", "low", "Install date verified by permit or inspection"))
    if m.unknowns < 0.95:
        drivers.append(RiskDriver("data", "widens", "medium", "Limited home data widens the estimate"))

    if not drivers:
        drivers.append(RiskDriver("baseline", "reduces", "low", "Normal wear and tear - system in good condition"))

    return tuple(drivers)


# ----------------------------
# Main entry
# ----------------------------

def compute_lifecycle_window(
    resolved: ResolvedInstall,
    property_ctx: PropertyContext,
    region_ctx: RegionContext,
    *,
    as_of: date,
    model: SurvivalModel = EXPONENTIAL_SURVIVAL,
) -> LifecycleWindow:
    """
    Replacement window + failure curve for one system.

    Missing install year falls back to the construction year; with neither,
    MissingInstallYearError. Unknown system types raise from the profile lookup.
    """
    st = resolved.system_type
    profile = get_profile(st, property_ctx.variant_for(st))

    install_year = resolved.install_year
    install_source = resolved.source
    if install_year is None:
        install_year = property_ctx.construction_year
        install_source = "construction_year"
    if install_year is None:
        raise MissingInstallYearError(f"{st.value}: no install year and no construction year available.")

    verified = resolved.is_verified
    maintenance = property_ctx.maintenance_score(st)
    completeness = _clamp(property_ctx.data_completeness, 0.0, 1.0)

    mult = compute_multipliers(
        climate_sensitivity=profile.climate_sensitivity,
        climate_stress=region_ctx.climate_stress_index,
        maintenance=maintenance,
        verified=verified,
        usage=property_ctx.usage_index,
        environment=region_ctx.environment_index,
        completeness=completeness,
    )

    l50 = profile.median_years * mult.combined
    age = max(0, as_of.year - install_year)

    sigma = profile.sigma_years * (1.0 + SIGMA_UNKNOWNS_WIDENING * (1.0 - completeness))
    l10 = _clamp(l50 - Z_P10_P90 * sigma, LIFESPAN_BAND_MIN_YEARS, profile.band_max_years)
    l90 = _clamp(l50 + Z_P10_P90 * sigma, LIFESPAN_BAND_MIN_YEARS, profile.band_max_years)
    l10 = min(l10, l50)
    l90 = max(l90, l50)

    floor_year = as_of.year
    early = max(floor_year, _round_half_up(install_year + l10))
    likely = max(floor_year, _round_half_up(install_year + l50))
    late = max(floor_year, _round_half_up(install_year + l90))

    remaining_p50 = max(0.0, l50 - age)
    months = MonthsRemaining(
        p10=_round_half_up(max(0.0, l10 - age) * 12),
        p50=_round_half_up(remaining_p50 * 12),
        p90=_round_half_up(max(0.0, l90 - age) * 12),
    )

    h12, h24, h36 = FAILURE_HORIZONS_MONTHS
    remaining_months = remaining_p50 * 12
    p12 = model.failure_probability(h12, remaining_months)
    p24 = model.failure_probability(h24, remaining_months)
    p36 = model.failure_probability(h36, remaining_months)

    confidence = window_confidence(
        verified=verified,
        maintenance=maintenance,
        completeness=completeness,
        has_usage_signal=property_ctx.has_usage_signal,
    )
    years_remaining = round(remaining_p50, 1)

    return LifecycleWindow(
        system_type=st,
        variant=profile.variant,
        display_name=profile.display_name,
        install_year=install_year,
        install_source=install_source,
        age_years=age,
        effective_lifespan_years=round(l50, 2),
        early_year=early,
        likely_year=likely,
        late_year=late,
        uncertainty=uncertainty_class(confidence),
        failure_probability_12mo=p12,
        failure_probability_24mo=p24,
        failure_probability_36mo=p36,
        months_remaining=months,
        years_remaining_p50=years_remaining,
        confidence=confidence,
        risk=risk_level(years_remaining),
        months_to_planning=months.p50,
        drivers=build_risk_drivers(age, l50, mult),
        multipliers=mult,
        model_version=getattr(model, "name", HAZARD_MODEL_VERSION),
    )


# ----------------------------
# Maintenance recency
# ----------------------------

def _months_between(earlier: date, later: date) -> float:
    return (later - earlier).days / 30.4375


def last_service(events: Iterable[MaintenanceEvent], system_type: SystemType, as_of: date) -> date | None:
    dates = [e.performed_on for e in events if e.system_type == system_type and e.performed_on <= as_of]
    return max(dates) if dates else None


def maintenance_score(events: Iterable[MaintenanceEvent], system_type: SystemType, as_of: date) -> float:
    """1.0 when serviced within a year, fading to 0.0 at three years; 0.0 when never serviced."""
    last = last_service(events, system_type, as_of)
    if last is None:
        return 0.0
    months = _months_between(last, as_of)
    if months <= MAINTENANCE_FRESH_MONTHS:
        return 1.0
    if months >= MAINTENANCE_STALE_MONTHS:
        return 0.0
    span = MAINTENANCE_STALE_MONTHS - MAINTENANCE_FRESH_MONTHS
    return round(1.0 - (months - MAINTENANCE_FRESH_MONTHS) / span, 3)


def maintenance_overdue(
    events: Iterable[MaintenanceEvent],
    system_types: Iterable[SystemType],
    as_of: date,
) -> bool:
    """Overdue = a system has a service history whose latest entry is older than the service interval."""
    evs = tuple(events)
    for st in system_types:
        last = last_service(evs, st, as_of)
        if last is not None and _months_between(last, as_of) > MAINTENANCE_OVERDUE_MONTHS:
            return True
    return False
