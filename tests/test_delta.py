import pandas as pd

from homelife.core.delta import (
    DeltaConfig,
    compute_delta_lines,
    load_snapshot,
    previous_confidence,
    save_snapshot,
    snapshot_from_outlook,
)


def _outlook(**overrides) -> pd.DataFrame:
    data = {
        "system_type": ["hvac", "roof"],
        "display_name": ["HVAC", "Roof"],
        "confidence": [0.30, 0.55],
        "risk": ["MODERATE", "LOW"],
        "likely_year": [2027, 2036],
        "install_source": ["owner_reported", "heuristic"],
    }
    data.update(overrides)
    return pd.DataFrame(data)


def test_snapshot_from_outlook_keeps_snapshot_columns():
    snap = snapshot_from_outlook(_outlook())
    assert list(snap.columns) == ["system_type", "confidence", "risk", "likely_year", "install_source"]
    assert snap["system_type"].tolist() == ["hvac", "roof"]


def test_first_run_is_a_baseline():
    curr = snapshot_from_outlook(_outlook())
    lines = compute_delta_lines(pd.DataFrame(), curr)
    assert lines == ["Baseline created (first run). Future reports will highlight changes."]


def test_no_changes():
    snap = snapshot_from_outlook(_outlook())
    assert compute_delta_lines(snap, snap.copy()) == ["No material changes since last report."]


def test_material_changes_are_described():
    prev = snapshot_from_outlook(_outlook())
    curr = snapshot_from_outlook(
        _outlook(
            confidence=[0.60, 0.55],
            risk=["HIGH", "LOW"],
            likely_year=[2025, 2036],
            install_source=["permit_verified", "heuristic"],
        )
    )
    lines = compute_delta_lines(prev, curr)
    text = " ".join(lines)
    assert "hvac risk escalated MODERATE → HIGH." in lines
    assert "confidence improved 0.30 → 0.60" in text
    assert "likely replacement moved 2027 → 2025" in text
    assert "install source now permit_verified" in text
    assert not any(line.startswith("roof") for line in lines)


def test_confidence_threshold_is_configurable():
    prev = snapshot_from_outlook(_outlook())
    curr = snapshot_from_outlook(_outlook(confidence=[0.33, 0.55]))
    assert compute_delta_lines(prev, curr) == ["No material changes since last report."]
    lines = compute_delta_lines(prev, curr, cfg=DeltaConfig(confidence_change=0.02))
    assert any("confidence improved" in line for line in lines)


def test_snapshot_roundtrip_and_previous_confidence(tmp_path):
    p = tmp_path / "snap" / "last.csv"
    assert load_snapshot(p).empty

    save_snapshot(snapshot_from_outlook(_outlook()), p)
    loaded = load_snapshot(p)
    assert previous_confidence(loaded) == {"hvac": 0.30, "roof": 0.55}


def test_unreadable_snapshot_is_treated_as_missing(tmp_path):
    p = tmp_path / "empty.csv"
    p.write_text("", encoding="utf-8")
    assert load_snapshot(p).empty
