"""
Confidence-to-copy governor.

The text layer never sees raw confidence or risk, only the style profile
returned here. The policy is auditable by reading two things: the static
state x bucket table, and the single risk overlay rule (risk moves urgency,
nothing else).
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from homelife.core.contract import CONFIDENCE_BUCKET_LOW_BELOW, CONFIDENCE_BUCKET_MEDIUM_BELOW
from homelife.core.errors import UnknownAdvisorStateError
from homelife.core.hazard import RiskLevel


class AdvisorState(str, Enum):
    PASSIVE = "PASSIVE"
    OBSERVING = "OBSERVING"
    ENGAGED = "ENGAGED"
    DECISION = "DECISION"
    EXECUTION = "EXECUTION"


class ConfidenceBucket(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# No copy may be produced in these states.
SILENT_STATES = frozenset({AdvisorState.PASSIVE, AdvisorState.OBSERVING})


@dataclass(frozen=True)
class AllowedActs:
    ask_questions: bool
    present_options: bool
    recommend_path: bool
    initiate_execution: bool


@dataclass(frozen=True)
class CopyStyleProfile:
    verbosity: str  # minimal | concise | detailed
    specificity: str  # low | medium | high
    cost_disclosure: str  # none | ranges | tight
    tone: str  # observational | analytical | procedural
    urgency: str  # none | soft | time-bound
    allowed_acts: AllowedActs


def parse_advisor_state(value: str | AdvisorState) -> AdvisorState:
    if isinstance(value, AdvisorState):
        return value
    try:
        return AdvisorState(str(value).strip().upper())
    except ValueError as e:
        raise UnknownAdvisorStateError(f"Unknown advisor state: {value!r}") from e


def confidence_bucket(confidence: float) -> ConfidenceBucket:
    """Fixed thresholds, no smoothing. NaN counts as no confidence."""
    c = float(confidence)
    if math.isnan(c) or c < CONFIDENCE_BUCKET_LOW_BELOW:
        return ConfidenceBucket.LOW
    if c < CONFIDENCE_BUCKET_MEDIUM_BELOW:
        return ConfidenceBucket.MEDIUM
    return ConfidenceBucket.HIGH


_ASK_OPTIONS = AllowedActs(ask_questions=True, present_options=True, recommend_path=False, initiate_execution=False)
_OPTIONS_RECOMMEND = AllowedActs(ask_questions=False, present_options=True, recommend_path=True, initiate_execution=False)
_EXECUTE = AllowedActs(ask_questions=False, present_options=False, recommend_path=False, initiate_execution=True)

_EXECUTION_PROFILE = CopyStyleProfile("concise", "high", "tight", "procedural", "time-bound", _EXECUTE)

BASE_PROFILES: Mapping[tuple[AdvisorState, ConfidenceBucket], CopyStyleProfile] = MappingProxyType({
    (AdvisorState.ENGAGED, ConfidenceBucket.LOW):
        CopyStyleProfile("concise", "low", "none", "observational", "none", _ASK_OPTIONS),
    (AdvisorState.ENGAGED, ConfidenceBucket.MEDIUM):
        CopyStyleProfile("concise", "medium", "none", "observational", "soft", _ASK_OPTIONS),
    (AdvisorState.ENGAGED, ConfidenceBucket.HIGH):
        CopyStyleProfile("concise", "high", "none", "observational", "soft", _OPTIONS_RECOMMEND),

    (AdvisorState.DECISION, ConfidenceBucket.LOW):
        CopyStyleProfile("detailed", "low", "none", "analytical", "none", _ASK_OPTIONS),
    (AdvisorState.DECISION, ConfidenceBucket.MEDIUM):
        CopyStyleProfile("detailed", "medium", "ranges", "analytical", "soft", _OPTIONS_RECOMMEND),
    (AdvisorState.DECISION, ConfidenceBucket.HIGH):
        CopyStyleProfile("detailed", "high", "tight", "analytical", "time-bound", _OPTIONS_RECOMMEND),

    (AdvisorState.EXECUTION, ConfidenceBucket.LOW): _EXECUTION_PROFILE,
    (AdvisorState.EXECUTION, ConfidenceBucket.MEDIUM): _EXECUTION_PROFILE,
    (AdvisorState.EXECUTION, ConfidenceBucket.HIGH): _EXECUTION_PROFILE,
})


def apply_risk_overlay(profile: CopyStyleProfile, risk: RiskLevel | str) -> CopyStyleProfile:
    """HIGH risk may loosen urgency none -> soft; LOW risk forces none. Nothing else moves."""
    r = RiskLevel(str(getattr(risk, "value", risk)).upper())
    if r == RiskLevel.HIGH and profile.urgency == "none":
        return replace(profile, urgency="soft")
    if r == RiskLevel.LOW:
        return replace(profile, urgency="none")
    return profile


def advisor_copy_profile(
    state: AdvisorState | str,
    confidence: float,
    risk: RiskLevel | str,
) -> CopyStyleProfile | None:
    """None means no copy is allowed at all."""
    st = parse_advisor_state(state)
    if st in SILENT_STATES:
        return None
    base = BASE_PROFILES[(st, confidence_bucket(confidence))]
    return apply_risk_overlay(base, risk)


_VERBOSITY = {
    "minimal": "Keep responses under 2 sentences.",
    "concise": "Keep responses to 2-3 short paragraphs. Be direct.",
    "detailed": "You may provide detailed explanations when comparing options.",
}
_SPECIFICITY = {
    "low": 'Avoid specific numbers or timeframes. Use general terms like "may", "could", "sometime".',
    "medium": 'Use moderate specificity. Ranges are acceptable (e.g., "12-24 months", "a few years").',
    "high": "Be specific with timeframes and projections when the data supports it.",
}
_COST = {
    "none": "Do NOT mention specific costs or price ranges.",
    "ranges": 'You may mention cost ranges (e.g., "$5,000-$8,000") but not exact figures.',
    "tight": "You may provide specific cost estimates when confident in the data.",
}
_TONE = {
    "observational": "Tone: Calm and observational. Frame the situation, don't solve it yet.",
    "analytical": "Tone: Analytical and supportive. Compare tradeoffs clearly.",
    "procedural": "Tone: Decisive and procedural. The user has committed - help them execute.",
}
_URGENCY = {
    "none": "Do NOT create urgency. This is about planning, not reacting.",
    "soft": 'Gentle time awareness is okay (e.g., "over the next year or two").',
    "time-bound": "Time-bound framing is appropriate when data supports specific windows.",
}

HARD_RULES = (
    'Never say "You should..." - frame as options',
    'Never use words: "urgent", "act now", "don\'t miss out", "limited time"',
    "Always reference what's visible on screen",
    "End with an invitation, not a button or CTA",
)


def profile_to_prompt_instructions(profile: CopyStyleProfile) -> str:
    """Render a profile into the instruction block handed to the text layer."""
    lines = [
        _VERBOSITY[profile.verbosity],
        _SPECIFICITY[profile.specificity],
        _COST[profile.cost_disclosure],
        _TONE[profile.tone],
        _URGENCY[profile.urgency],
    ]

    acts = profile.allowed_acts
    allowed = [
        label
        for label, on in (
            ("ask clarifying questions", acts.ask_questions),
            ("present options", acts.present_options),
            ("recommend a specific path", acts.recommend_path),
            ("initiate execution steps", acts.initiate_execution),
        )
        if on
    ]
    if allowed:
        lines.append(f"You may: {', '.join(allowed)}.")

    lines.append("")
    lines.append("HARD RULES (never violate):")
    lines.extend(f"- {rule}" for rule in HARD_RULES)
    return "\n".join(lines)
