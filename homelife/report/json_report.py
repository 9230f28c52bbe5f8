from __future__ import annotations

import json
import math
from dataclasses import asdict, is_dataclass
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd

from homelife.core.authority import format_installed_line
from homelife.core.hazard import failure_probability_tier
from homelife.core.pipeline import HomeEvaluation


def _json_safe(x: Any) -> Any:
    """
    Convert values into strict JSON-safe Python types.

    Guarantees:
    - No NaN / Infinity (converted to None)
    - pandas/numpy NA -> None
    - numpy scalars -> python primitives
    - Enums -> their value, dates -> ISO strings, dataclasses -> dicts
    - Recurses through dict/list/tuple
    """
    if isinstance(x, Enum):
        return _json_safe(x.value)

    if is_dataclass(x) and not isinstance(x, type):
        return _json_safe(asdict(x))

    if isinstance(x, dict):
        return {str(_json_safe(k)): _json_safe(v) for k, v in x.items()}

    if isinstance(x, (list, tuple)):
        return [_json_safe(v) for v in x]

    if isinstance(x, pd.Timestamp):
        return None if pd.isna(x) else x.isoformat()

    if isinstance(x, date):
        return x.isoformat()

    try:
        if pd.isna(x):
            return None
    except (TypeError, ValueError):
        pass

    if isinstance(x, float):
        if math.isnan(x) or math.isinf(x):
            return None
        return x

    # Numpy scalars (float/int) -> python primitives
    if hasattr(x, "item") and callable(x.item):
        return _json_safe(x.item())

    if isinstance(x, (str, int, bool)) or x is None:
        return x

    return str(x)


def _system_entries(ev: HomeEvaluation) -> list[dict[str, Any]]:
    installs = {r.system_type: r for r in ev.installs}
    out = []
    for w in ev.windows:
        r = installs.get(w.system_type)
        out.append(
            {
                "system_type": w.system_type,
                "display_name": w.display_name,
                "variant": w.variant,
                "install": {
                    "year": r.install_year if r else None,
                    "month": r.install_month if r else None,
                    "source": r.source if r else None,
                    "confidence": r.confidence if r else None,
                    "replacement_status": r.replacement_status if r else None,
                    "rationale": r.rationale if r else "",
                    "installed_line": format_installed_line(r) if r else "",
                },
                "window": {
                    "early_year": w.early_year,
                    "likely_year": w.likely_year,
                    "late_year": w.late_year,
                    "uncertainty": w.uncertainty,
                    "confidence": w.confidence,
                    "risk": w.risk,
                    "age_years": w.age_years,
                    "effective_lifespan_years": w.effective_lifespan_years,
                    "years_remaining_p50": w.years_remaining_p50,
                    "months_to_planning": w.months_to_planning,
                    "months_remaining": w.months_remaining,
                    "failure_probability": {str(k): v for k, v in w.failure_curve.items()},
                    "failure_tier": failure_probability_tier(w.failure_probability_12mo),
                    "model_version": w.model_version,
                },
                "drivers": list(w.drivers),
                "multipliers": w.multipliers,
            }
        )
    return out


def build_report_payload(
    ev: HomeEvaluation,
    *,
    generated_at: str | None,
    delta_lines: list[str] | None,
    notes: list[str] | None,
    run_config: dict[str, str] | None,
) -> dict[str, Any]:
    """
    The canonical HomeLife report object.

    `meta` must remain schema-stable and NOT include extra keys.
    """
    run_config = run_config or {}
    payload: dict[str, Any] = {
        "meta": {
            "generated_at": generated_at,
            "as_of": ev.as_of,
            "decision_version": run_config.get("version"),
            "schema_version": run_config.get("schema"),
            "hazard_model": run_config.get("hazard_model"),
        },
        "home": {
            "home_id": ev.home_id,
            "construction_year": ev.property_ctx.construction_year,
            "climate_zone": ev.region_ctx.climate_zone,
            "climate_label": ev.region_ctx.label,
            "health_score": ev.health_score,
            "verdict": ev.verdict,
            "position": ev.position,
        },
        "systems": _system_entries(ev),
        "exposure": {
            "horizons": list(ev.exposure.horizons),
            "methodology_note": ev.exposure.methodology_note,
        },
        "narrative": ev.narrative,
        "copy_profile": {
            "advisor_state": ev.advisor_state,
            "profile": ev.copy_profile,
            "instructions": ev.copy_instructions,
        },
        "delta": delta_lines or [],
        "notes": notes or [],
    }
    return _json_safe(payload)


def write_json_report(
    out_path: str | Path,
    ev: HomeEvaluation,
    *,
    generated_at: str | None,
    delta_lines: list[str] | None,
    notes: list[str] | None,
    run_config: dict[str, str] | None,
) -> Path:
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)

    payload = build_report_payload(
        ev,
        generated_at=generated_at,
        delta_lines=delta_lines,
        notes=notes,
        run_config=run_config,
    )

    # STRICT JSON: no NaN allowed
    p.write_text(
        json.dumps(payload, indent=2, sort_keys=False, allow_nan=False),
        encoding="utf-8",
    )
    return p
