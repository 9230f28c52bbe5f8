"""
Narrative priority arbitration.

Resolves every system's signal into exactly one dominant narrative:

    1. URGENCY   - any system at HIGH risk
    2. PLANNING  - any system inside the planning window (< 36 months)
    3. PROGRESS  - any system whose confidence improved materially (> 0.15)
    4. STABILITY - maintenance pending, else plain reassurance

Ties inside a level go to the earliest system in input order. STABILITY is
the terminal fallback, so an empty system list is still a valid input.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping

from homelife.core.contract import (
    PLANNING_WINDOW_MONTHS,
    POSITION_DEFAULT_MONTHS,
    POSITION_HORIZON_MONTHS,
    PROGRESS_CONFIDENCE_DELTA,
)
from homelife.core.hazard import LifecycleWindow, RiskLevel


class NarrativePriority(str, Enum):
    URGENCY = "URGENCY"
    PLANNING = "PLANNING"
    PROGRESS = "PROGRESS"
    STABILITY = "STABILITY"


BRIEF_ELEVATED_RISK = "elevated_risk"
BRIEF_PLANNING = "planning_opportunity"
BRIEF_CONFIDENCE_IMPROVED = "confidence_improved"
BRIEF_NEW_USER_STABLE = "new_user_stable"
BRIEF_RETURNING_STABLE = "returning_stable"
BRIEF_MAINTENANCE_PENDING = "maintenance_pending"

SIGNAL_ELEVATED_RISK = "elevated_risk"
SIGNAL_PLANNING_WINDOW = "planning_window"
SIGNAL_MAINTENANCE_PENDING = "maintenance_pending"


@dataclass(frozen=True)
class SystemSignal:
    key: str
    display_name: str
    risk: RiskLevel
    confidence: float
    months_to_planning: int | None = None
    confidence_delta: float | None = None


@dataclass(frozen=True)
class NarrativeContext:
    systems: tuple[SystemSignal, ...] = field(default_factory=tuple)
    is_new_user: bool = False
    has_overdue_maintenance: bool = False


@dataclass(frozen=True)
class SecondarySignal:
    system_key: str | None
    kind: str
    message: str


@dataclass(frozen=True)
class RecommendedAction:
    action_label: str
    impact_label: str
    route: str
    soft_framing: str


@dataclass(frozen=True)
class NarrativeResult:
    priority: NarrativePriority
    brief_key: str
    dominant_system: str | None = None
    dominant_system_name: str | None = None
    secondary_signals: tuple[SecondarySignal, ...] = field(default_factory=tuple)
    recommended_action: RecommendedAction | None = None


@dataclass(frozen=True)
class PositionStrip:
    label: str  # Early | Mid-Life | Late
    relative_position: float
    confidence_language: str  # early | moderate | high
    source_system: str | None


def _in_planning_window(s: SystemSignal) -> bool:
    return s.months_to_planning is not None and s.months_to_planning < PLANNING_WINDOW_MONTHS


def _improved(s: SystemSignal) -> bool:
    return s.confidence_delta is not None and s.confidence_delta > PROGRESS_CONFIDENCE_DELTA


def collect_secondary(ctx: NarrativeContext, exclude_key: str | None) -> tuple[SecondarySignal, ...]:
    """Union of other systems' flags; the dominant system never repeats here."""
    out: list[SecondarySignal] = []
    for s in ctx.systems:
        if s.key == exclude_key:
            continue
        if s.risk == RiskLevel.HIGH:
            out.append(SecondarySignal(s.key, SIGNAL_ELEVATED_RISK, f"{s.display_name} at elevated risk"))
        if _in_planning_window(s):
            out.append(SecondarySignal(s.key, SIGNAL_PLANNING_WINDOW, f"{s.display_name} entering planning window"))

    if ctx.has_overdue_maintenance:
        out.append(SecondarySignal(None, SIGNAL_MAINTENANCE_PENDING, "Maintenance tasks pending"))
    return tuple(out)


def recommended_action(priority: NarrativePriority, dominant: SystemSignal | None) -> RecommendedAction | None:
    if dominant is None:
        return None
    if priority == NarrativePriority.URGENCY:
        return RecommendedAction(
            action_label="Review replacement options",
            impact_label="More flexibility",
            route=f"/chatdiy?topic=replacement-planning&system={dominant.key}",
            soft_framing="If you want to get ahead of this:",
        )
    if priority == NarrativePriority.PLANNING:
        return RecommendedAction(
            action_label=f"Confirm your {dominant.display_name.lower()} install year",
            impact_label="+8 pts accuracy",
            route=f"/system/{dominant.key}?action=confirm-install",
            soft_framing="If you want to do one thing this month:",
        )
    if priority == NarrativePriority.PROGRESS:
        return RecommendedAction(
            action_label="See what changed",
            impact_label="Updated forecast",
            route=f"/chatdiy?topic=confidence-delta&system={dominant.key}",
            soft_framing="Your forecast just got more accurate.",
        )
    return None


_LEVELS = (
    (NarrativePriority.URGENCY, BRIEF_ELEVATED_RISK, lambda s: s.risk == RiskLevel.HIGH),
    (NarrativePriority.PLANNING, BRIEF_PLANNING, _in_planning_window),
    (NarrativePriority.PROGRESS, BRIEF_CONFIDENCE_IMPROVED, _improved),
)


def arbitrate_narrative(ctx: NarrativeContext) -> NarrativeResult:
    for priority, brief, matches in _LEVELS:
        dominant = next((s for s in ctx.systems if matches(s)), None)
        if dominant is not None:
            return NarrativeResult(
                priority=priority,
                brief_key=brief,
                dominant_system=dominant.key,
                dominant_system_name=dominant.display_name,
                secondary_signals=collect_secondary(ctx, dominant.key),
                recommended_action=recommended_action(priority, dominant),
            )

    if ctx.has_overdue_maintenance:
        return NarrativeResult(
            priority=NarrativePriority.STABILITY,
            brief_key=BRIEF_MAINTENANCE_PENDING,
            recommended_action=RecommendedAction(
                action_label="View pending tasks",
                impact_label="Reduce risk",
                route="/maintenance",
                soft_framing="A few small tasks are pending:",
            ),
        )

    # Silence is the recommendation when nothing is moving.
    return NarrativeResult(
        priority=NarrativePriority.STABILITY,
        brief_key=BRIEF_NEW_USER_STABLE if ctx.is_new_user else BRIEF_RETURNING_STABLE,
    )


def signals_from_windows(
    windows: Iterable[LifecycleWindow],
    previous_confidence: Mapping[str, float] | None = None,
) -> tuple[SystemSignal, ...]:
    prev = previous_confidence or {}
    out = []
    for w in windows:
        key = w.system_type.value
        delta = None
        if key in prev and prev[key] is not None:
            delta = round(w.confidence - float(prev[key]), 4)
        out.append(
            SystemSignal(
                key=key,
                display_name=w.display_name,
                risk=w.risk,
                confidence=w.confidence,
                months_to_planning=w.months_to_planning,
                confidence_delta=delta,
            )
        )
    return tuple(out)


def _confidence_language(c: float) -> str:
    if c >= 0.7:
        return "high"
    if c >= 0.4:
        return "moderate"
    return "early"


def resolve_position(ctx: NarrativeContext) -> PositionStrip:
    """Lifecycle position of the home, driven by its most advanced system."""
    if not ctx.systems:
        return PositionStrip("Mid-Life", 0.5, _confidence_language(0.5), None)

    def months(s: SystemSignal) -> int:
        return s.months_to_planning if s.months_to_planning is not None else POSITION_DEFAULT_MONTHS

    dominant = min(ctx.systems, key=months)
    score = max(0.0, min(1.0, 1.0 - months(dominant) / POSITION_HORIZON_MONTHS))
    label = "Early" if score < 0.33 else ("Mid-Life" if score < 0.66 else "Late")

    avg = sum(s.confidence for s in ctx.systems) / len(ctx.systems)
    return PositionStrip(
        label=label,
        relative_position=round(score, 3),
        confidence_language=_confidence_language(avg),
        source_system=dominant.key,
    )
