"""
Orchestration: gather inputs, then run the pure core left to right.

    evidence -> install authority -> lifecycle windows -> {exposure, narrative, copy policy}

All I/O happens in gather_home_inputs. Everything after it is pure.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol, Sequence

import pandas as pd

from homelife.core.authority import ResolvedInstall, resolve_install
from homelife.core.errors import HomeLifeError, InputFetchError
from homelife.core.exposure import CapitalExposure, capital_exposure, items_from_windows
from homelife.core.governor import CopyStyleProfile, advisor_copy_profile, profile_to_prompt_instructions
from homelife.core.hazard import (
    LifecycleWindow,
    RiskLevel,
    compute_lifecycle_window,
    maintenance_overdue,
    maintenance_score,
)
from homelife.core.ingest import HomeBundle, load_home_bundle, normalize_inputs
from homelife.core.narrative import (
    NarrativeContext,
    NarrativeResult,
    PositionStrip,
    arbitrate_narrative,
    resolve_position,
    signals_from_windows,
)
from homelife.core.outlook import home_health_score, home_verdict, systems_outlook
from homelife.core.region import (
    PropertyContext,
    RegionContext,
    property_context_from_home,
    region_context_from_home,
)
from homelife.core.systems import SystemType, parse_system_type

logger = logging.getLogger(__name__)

DEFAULT_SYSTEMS = (SystemType.HVAC, SystemType.ROOF, SystemType.WATER_HEATER)


# ----------------------------
# Record store contract
# ----------------------------

class RecordStore(Protocol):
    def fetch_home(self, home_id: str) -> dict[str, Any]: ...

    def fetch_systems(self, home_id: str) -> list[dict[str, Any]]: ...

    def fetch_permits(self, home_id: str) -> list[dict[str, Any]]: ...

    def fetch_maintenance(self, home_id: str) -> list[dict[str, Any]]: ...


class JsonFileRecordStore:
    """
    Read-only store over home bundle files.

    `root` is either a single bundle file (home_id is ignored) or a directory
    of `<home_id>.json` bundles.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _bundle(self, home_id: str) -> HomeBundle:
        path = self.root if self.root.is_file() else self.root / f"{home_id}.json"
        return load_home_bundle(path)

    def fetch_home(self, home_id: str) -> dict[str, Any]:
        return self._bundle(home_id).home

    def fetch_systems(self, home_id: str) -> list[dict[str, Any]]:
        return self._bundle(home_id).systems

    def fetch_permits(self, home_id: str) -> list[dict[str, Any]]:
        return self._bundle(home_id).permits

    def fetch_maintenance(self, home_id: str) -> list[dict[str, Any]]:
        return self._bundle(home_id).maintenance


@dataclass(frozen=True)
class HomeInputs:
    home_id: str
    home: dict[str, Any]
    systems: list[dict[str, Any]]
    permits: list[dict[str, Any]]
    maintenance: list[dict[str, Any]]


def gather_home_inputs(
    store: RecordStore,
    home_id: str,
    *,
    timeout: float | None = 10.0,
) -> HomeInputs:
    """
    Issue the four independent reads in parallel and wait for all of them.
    Any failure (or timeout) aborts with InputFetchError; there is no partial result.
    """
    fetchers: dict[str, Callable[[str], Any]] = {
        "home": store.fetch_home,
        "systems": store.fetch_systems,
        "permits": store.fetch_permits,
        "maintenance": store.fetch_maintenance,
    }

    results: dict[str, Any] = {}
    # A hung fetch must not outlast `timeout`: on failure the pool is released without waiting.
    pool = ThreadPoolExecutor(max_workers=len(fetchers), thread_name_prefix="homelife-fetch")
    try:
        futures = {name: pool.submit(fn, home_id) for name, fn in fetchers.items()}
        for name, fut in futures.items():
            try:
                results[name] = fut.result(timeout=timeout)
            except Exception as e:
                logger.error("Fetch %s failed for home %s: %s", name, home_id, e)
                raise InputFetchError(f"Failed to fetch {name} for home {home_id}: {e}") from e
    except BaseException:
        pool.shutdown(wait=False, cancel_futures=True)
        raise
    pool.shutdown(wait=True)

    logger.debug(
        "Fetched home %s: %d systems, %d permits, %d maintenance rows",
        home_id, len(results["systems"]), len(results["permits"]), len(results["maintenance"]),
    )
    return HomeInputs(
        home_id=home_id,
        home=dict(results["home"] or {}),
        systems=list(results["systems"] or []),
        permits=list(results["permits"] or []),
        maintenance=list(results["maintenance"] or []),
    )


# ----------------------------
# Evaluation
# ----------------------------

@dataclass(frozen=True)
class HomeEvaluation:
    home_id: str
    as_of: date
    property_ctx: PropertyContext
    region_ctx: RegionContext
    installs: tuple[ResolvedInstall, ...]
    windows: tuple[LifecycleWindow, ...]
    outlook: pd.DataFrame
    exposure: CapitalExposure
    narrative: NarrativeResult
    position: PositionStrip
    advisor_state: str
    copy_profile: CopyStyleProfile | None
    copy_instructions: str | None
    health_score: float
    verdict: str
    issues: list[str] = field(default_factory=list)


def _system_order(
    requested: Sequence[str | SystemType] | None,
    system_rows: Sequence[Mapping[str, Any]],
    evidence_types: Sequence[SystemType],
    issues: list[str],
) -> list[SystemType]:
    if requested:
        return list(dict.fromkeys(parse_system_type(s) for s in requested))

    found: set[SystemType] = set(evidence_types)
    for row in system_rows:
        try:
            found.add(parse_system_type(row.get("system_type") or ""))
        except HomeLifeError as e:
            issues.append(f"System row skipped: {e}")
    if not found:
        return list(DEFAULT_SYSTEMS)
    return [st for st in SystemType if st in found]


def _copy_inputs(narrative: NarrativeResult, windows: Sequence[LifecycleWindow]) -> tuple[float, RiskLevel]:
    """Confidence / risk the governor sees: the dominant system's, else the home's overall."""
    if not windows:
        return 0.0, RiskLevel.LOW
    for w in windows:
        if w.system_type.value == narrative.dominant_system:
            return w.confidence, w.risk
    order = {RiskLevel.HIGH: 0, RiskLevel.MODERATE: 1, RiskLevel.LOW: 2}
    worst = min((w.risk for w in windows), key=order.__getitem__)
    avg = sum(w.confidence for w in windows) / len(windows)
    return round(avg, 2), worst


def evaluate_home(
    inputs: HomeInputs,
    *,
    as_of: date,
    advisor_state: str = "ENGAGED",
    systems: Sequence[str | SystemType] | None = None,
    previous_confidence: Mapping[str, float] | None = None,
    strict: bool = False,
) -> HomeEvaluation:
    """
    Evaluate one home. With strict=True the first rejected input row (or a
    system that cannot be placed on a timeline) raises instead of being
    reported in `issues`.
    """
    normalized = normalize_inputs(inputs.systems, inputs.permits, inputs.maintenance)
    if strict and normalized.rejected:
        raise normalized.rejected[0]
    issues = list(normalized.issues)

    order = _system_order(systems, inputs.systems, [e.system_type for e in normalized.evidence], issues)

    scores = {st.value: maintenance_score(normalized.maintenance, st, as_of) for st in order}
    pctx = property_context_from_home(inputs.home, scores)
    rctx = region_context_from_home(inputs.home)

    installs: list[ResolvedInstall] = []
    windows: list[LifecycleWindow] = []
    for st in order:
        resolved = resolve_install(st, normalized.evidence, pctx.construction_year, as_of=as_of)
        installs.append(resolved)
        try:
            windows.append(compute_lifecycle_window(resolved, pctx, rctx, as_of=as_of))
        except HomeLifeError as e:
            if strict:
                raise
            issues.append(str(e))

    exposure = capital_exposure(items_from_windows(windows), as_of.year)

    ctx = NarrativeContext(
        systems=signals_from_windows(windows, previous_confidence),
        is_new_user=not previous_confidence,
        has_overdue_maintenance=maintenance_overdue(normalized.maintenance, order, as_of),
    )
    narrative = arbitrate_narrative(ctx)
    position = resolve_position(ctx)

    confidence, risk = _copy_inputs(narrative, windows)
    profile = advisor_copy_profile(advisor_state, confidence, risk)

    outlook = systems_outlook(windows, installs)

    logger.info(
        "Evaluated home %s as of %s: %d systems, narrative %s (%s)",
        inputs.home_id, as_of.isoformat(), len(windows), narrative.priority.value,
        narrative.dominant_system or "-",
    )

    return HomeEvaluation(
        home_id=str(inputs.home.get("home_id") or inputs.home_id),
        as_of=as_of,
        property_ctx=pctx,
        region_ctx=rctx,
        installs=tuple(installs),
        windows=tuple(windows),
        outlook=outlook,
        exposure=exposure,
        narrative=narrative,
        position=position,
        advisor_state=str(advisor_state).upper(),
        copy_profile=profile,
        copy_instructions=profile_to_prompt_instructions(profile) if profile else None,
        health_score=home_health_score(outlook),
        verdict=home_verdict(outlook),
        issues=issues,
    )


def evaluate_from_store(
    store: RecordStore,
    home_id: str,
    *,
    as_of: date,
    timeout: float | None = 10.0,
    **kwargs: Any,
) -> HomeEvaluation:
    inputs = gather_home_inputs(store, home_id, timeout=timeout)
    return evaluate_home(inputs, as_of=as_of, **kwargs)
