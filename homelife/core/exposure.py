from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import pandas as pd

from homelife.core.contract import (
    EXPOSURE_HORIZONS_YEARS,
    EXPOSURE_METHODOLOGY_NOTE,
    POSSIBLE_HIGH_WEIGHT,
    POSSIBLE_LOW_WEIGHT,
)
from homelife.core.hazard import LifecycleWindow
from homelife.core.systems import get_profile

TIER_PROBABLE = "probable"
TIER_POSSIBLE = "possible"
TIER_NONE = "none"


@dataclass(frozen=True)
class CostRange:
    low: int
    high: int


@dataclass(frozen=True)
class ExposureItem:
    window: LifecycleWindow
    cost: CostRange


@dataclass(frozen=True)
class HorizonExposure:
    years: int
    cutoff_year: int
    low: int
    high: int


@dataclass(frozen=True)
class CapitalExposure:
    horizons: tuple[HorizonExposure, ...]
    methodology_note: str = EXPOSURE_METHODOLOGY_NOTE

    def for_years(self, years: int) -> HorizonExposure:
        for h in self.horizons:
            if h.years == years:
                return h
        raise KeyError(years)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def cost_range_for(window: LifecycleWindow) -> CostRange:
    profile = get_profile(window.system_type, window.variant)
    return CostRange(low=profile.cost_low, high=profile.cost_high)


def exposure_tier(window: LifecycleWindow, cutoff_year: int) -> str:
    if window.early_year > cutoff_year:
        return TIER_NONE
    if window.likely_year <= cutoff_year:
        return TIER_PROBABLE
    return TIER_POSSIBLE


def weighted_exposure(window: LifecycleWindow, cost: CostRange, cutoff_year: int) -> CostRange:
    """
    Three discrete tiers, never interpolated:
      early > cutoff   -> 0
      likely <= cutoff -> full range ("probable")
      otherwise        -> 0.3 x low, 0.5 x high ("possible")
    """
    tier = exposure_tier(window, cutoff_year)
    if tier == TIER_NONE:
        return CostRange(0, 0)
    if tier == TIER_PROBABLE:
        return CostRange(int(cost.low), int(cost.high))
    return CostRange(
        low=_round_half_up(cost.low * POSSIBLE_LOW_WEIGHT),
        high=_round_half_up(cost.high * POSSIBLE_HIGH_WEIGHT),
    )


def exposure_at(items: Iterable[ExposureItem], cutoff_year: int) -> CostRange:
    low = 0
    high = 0
    for item in items:
        part = weighted_exposure(item.window, item.cost, cutoff_year)
        low += part.low
        high += part.high
    return CostRange(low, high)


def items_from_windows(windows: Iterable[LifecycleWindow]) -> list[ExposureItem]:
    return [ExposureItem(window=w, cost=cost_range_for(w)) for w in windows]


def capital_exposure(
    items: Sequence[ExposureItem],
    current_year: int,
    horizons: Sequence[int] = EXPOSURE_HORIZONS_YEARS,
) -> CapitalExposure:
    out = []
    for years in horizons:
        cutoff = current_year + years
        total = exposure_at(items, cutoff)
        out.append(HorizonExposure(years=years, cutoff_year=cutoff, low=total.low, high=total.high))
    return CapitalExposure(horizons=tuple(out))


def exposure_table(
    items: Sequence[ExposureItem],
    current_year: int,
    horizons: Sequence[int] = EXPOSURE_HORIZONS_YEARS,
) -> pd.DataFrame:
    """One row per system x horizon: tier and weighted contribution."""
    rows = []
    for item in items:
        w = item.window
        for years in horizons:
            cutoff = current_year + years
            part = weighted_exposure(w, item.cost, cutoff)
            rows.append(
                {
                    "system_type": w.system_type.value,
                    "horizon_years": years,
                    "cutoff_year": cutoff,
                    "early_year": w.early_year,
                    "likely_year": w.likely_year,
                    "tier": exposure_tier(w, cutoff),
                    "low": part.low,
                    "high": part.high,
                }
            )

    cols = ["system_type", "horizon_years", "cutoff_year", "early_year", "likely_year", "tier", "low", "high"]
    if not rows:
        return pd.DataFrame(columns=cols)
    return pd.DataFrame(rows, columns=cols).sort_values(["horizon_years", "system_type"]).reset_index(drop=True)
