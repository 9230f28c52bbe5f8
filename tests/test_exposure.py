from dataclasses import replace
from datetime import date

import pytest

from homelife.core.authority import resolve_install
from homelife.core.evidence import normalize_owner_statement
from homelife.core.exposure import (
    CostRange,
    ExposureItem,
    capital_exposure,
    exposure_at,
    exposure_table,
    exposure_tier,
    items_from_windows,
)
from homelife.core.hazard import compute_lifecycle_window
from homelife.core.region import PropertyContext, RegionContext

AS_OF = date(2024, 6, 1)
HVAC_COST = CostRange(6000, 12000)


@pytest.fixture
def base_window():
    resolved = resolve_install("hvac", [normalize_owner_statement("hvac", "replaced", 2016)], 1995, as_of=AS_OF)
    return compute_lifecycle_window(resolved, PropertyContext(construction_year=1995), RegionContext(), as_of=AS_OF)


def _item(window, early: int, likely: int, late: int) -> ExposureItem:
    return ExposureItem(replace(window, early_year=early, likely_year=likely, late_year=late), HVAC_COST)


def test_early_year_just_past_cutoff_contributes_nothing(base_window):
    cutoff = AS_OF.year + 3
    item = _item(base_window, cutoff + 1, cutoff + 3, cutoff + 6)
    assert exposure_tier(item.window, cutoff) == "none"
    assert exposure_at([item], cutoff) == CostRange(0, 0)


def test_likely_inside_horizon_counts_full_cost(base_window):
    item = _item(base_window, 2025, 2026, 2029)
    assert exposure_at([item], 2027) == CostRange(6000, 12000)


def test_only_early_inside_horizon_counts_weighted_cost(base_window):
    item = _item(base_window, 2026, 2029, 2032)
    assert exposure_tier(item.window, 2027) == "possible"
    assert exposure_at([item], 2027) == CostRange(1800, 6000)


def test_horizons_are_non_decreasing(base_window):
    items = [
        _item(base_window, 2026, 2029, 2032),
        _item(base_window, 2030, 2033, 2037),
        _item(base_window, 2024, 2024, 2026),
    ]
    exp = capital_exposure(items, AS_OF.year)
    lows = [h.low for h in exp.horizons]
    highs = [h.high for h in exp.horizons]
    assert [h.years for h in exp.horizons] == [3, 5, 10]
    assert lows == sorted(lows)
    assert highs == sorted(highs)
    assert all(h.low <= h.high for h in exp.horizons)

    assert exp.for_years(3) == exp.horizons[0]
    with pytest.raises(KeyError):
        exp.for_years(7)


def test_no_systems_means_no_exposure():
    exp = capital_exposure([], 2024)
    assert all(h.low == 0 and h.high == 0 for h in exp.horizons)
    assert exp.methodology_note


def test_items_take_costs_from_profile(base_window):
    (item,) = items_from_windows([base_window])
    assert item.cost == HVAC_COST


def test_exposure_table_shape(base_window):
    items = [_item(base_window, 2026, 2029, 2032)]
    df = exposure_table(items, AS_OF.year)
    assert len(df) == 3
    assert df["tier"].tolist() == ["possible", "probable", "probable"]
    assert int(df["high"].sum()) == 6000 + 12000 + 12000
