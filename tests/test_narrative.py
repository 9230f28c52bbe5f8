from homelife.core.hazard import RiskLevel
from homelife.core.narrative import (
    NarrativeContext,
    NarrativePriority,
    SystemSignal,
    arbitrate_narrative,
    resolve_position,
)


def _sig(key, risk=RiskLevel.LOW, months=120, conf=0.5, delta=None, name=None):
    return SystemSignal(
        key=key,
        display_name=name or key.upper(),
        risk=risk,
        confidence=conf,
        months_to_planning=months,
        confidence_delta=delta,
    )


def test_urgency_dominates_and_other_flags_become_secondary():
    ctx = NarrativeContext(
        systems=(
            _sig("roof", RiskLevel.HIGH, months=6, name="Roof"),
            _sig("hvac", RiskLevel.MODERATE, months=20, name="HVAC"),
        )
    )
    res = arbitrate_narrative(ctx)

    assert res.priority == NarrativePriority.URGENCY
    assert res.dominant_system == "roof"
    assert res.brief_key == "elevated_risk"
    assert [(s.system_key, s.kind) for s in res.secondary_signals] == [("hvac", "planning_window")]
    assert all(s.system_key != "roof" for s in res.secondary_signals)
    assert res.recommended_action is not None
    assert "system=roof" in res.recommended_action.route


def test_empty_home_is_stable():
    res = arbitrate_narrative(NarrativeContext(systems=(), is_new_user=True))
    assert res.priority == NarrativePriority.STABILITY
    assert res.brief_key == "new_user_stable"
    assert res.dominant_system is None
    assert res.secondary_signals == ()
    assert res.recommended_action is None


def test_planning_window_is_strictly_under_36_months():
    res = arbitrate_narrative(NarrativeContext(systems=(_sig("hvac", months=35),)))
    assert res.priority == NarrativePriority.PLANNING
    assert res.dominant_system == "hvac"

    res = arbitrate_narrative(NarrativeContext(systems=(_sig("hvac", months=36),)))
    assert res.priority == NarrativePriority.STABILITY


def test_progress_needs_more_than_threshold():
    res = arbitrate_narrative(NarrativeContext(systems=(_sig("roof", delta=0.2),)))
    assert res.priority == NarrativePriority.PROGRESS
    assert res.brief_key == "confidence_improved"

    res = arbitrate_narrative(NarrativeContext(systems=(_sig("roof", delta=0.15),)))
    assert res.priority == NarrativePriority.STABILITY
    assert res.brief_key == "returning_stable"


def test_ties_go_to_first_system_in_input_order():
    ctx = NarrativeContext(systems=(_sig("hvac", RiskLevel.HIGH), _sig("roof", RiskLevel.HIGH)))
    res = arbitrate_narrative(ctx)
    assert res.dominant_system == "hvac"
    assert [(s.system_key, s.kind) for s in res.secondary_signals] == [("roof", "elevated_risk")]


def test_overdue_maintenance_is_stability_without_secondary():
    res = arbitrate_narrative(NarrativeContext(systems=(_sig("hvac"),), has_overdue_maintenance=True))
    assert res.priority == NarrativePriority.STABILITY
    assert res.brief_key == "maintenance_pending"
    assert res.secondary_signals == ()
    assert res.recommended_action is not None
    assert res.recommended_action.route == "/maintenance"


def test_overdue_maintenance_rides_along_as_secondary_when_something_else_leads():
    ctx = NarrativeContext(systems=(_sig("hvac", months=12),), has_overdue_maintenance=True)
    res = arbitrate_narrative(ctx)
    assert res.priority == NarrativePriority.PLANNING
    assert [s.kind for s in res.secondary_signals] == ["maintenance_pending"]


def test_position_follows_most_advanced_system():
    assert resolve_position(NarrativeContext()).label == "Mid-Life"

    ctx = NarrativeContext(systems=(_sig("roof", months=170, conf=0.9), _sig("hvac", months=10, conf=0.9)))
    pos = resolve_position(ctx)
    assert pos.source_system == "hvac"
    assert pos.label == "Late"
    assert pos.confidence_language == "high"
