from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from homelife.core.authority import ResolvedInstall, format_installed_line
from homelife.core.contract import (
    ACTION_TEXT_CONFIRM,
    ACTION_TEXT_HIGH,
    ACTION_TEXT_LOW,
    ACTION_TEXT_MODERATE,
    HEALTH_PENALTY_WEIGHT,
)
from homelife.core.hazard import LifecycleWindow, RiskLevel, UNCERTAINTY_WIDE, failure_probability_tier

OUTLOOK_COLUMNS = [
    "system_type",
    "display_name",
    "installed",
    "install_year",
    "install_source",
    "install_confidence",
    "early_year",
    "likely_year",
    "late_year",
    "uncertainty",
    "p12",
    "p24",
    "p36",
    "failure_tier",
    "years_remaining",
    "months_to_planning",
    "confidence",
    "risk",
    "action",
    "top_driver",
]

RISK_ORDER = {"HIGH": 0, "MODERATE": 1, "LOW": 2}


def recommended_step(risk: RiskLevel, uncertainty: str) -> str:
    if risk == RiskLevel.HIGH:
        return ACTION_TEXT_HIGH
    if risk == RiskLevel.MODERATE:
        return ACTION_TEXT_MODERATE
    # Far out but poorly known: firming up the install year is worth more than waiting.
    if uncertainty == UNCERTAINTY_WIDE:
        return ACTION_TEXT_CONFIRM
    return ACTION_TEXT_LOW


def systems_outlook(
    windows: Sequence[LifecycleWindow],
    installs: Sequence[ResolvedInstall],
) -> pd.DataFrame:
    """One row per system, most pressing first (risk, then months to planning)."""
    if not windows:
        return pd.DataFrame(columns=OUTLOOK_COLUMNS)

    by_type = {r.system_type: r for r in installs}
    rows = []
    for w in windows:
        resolved = by_type.get(w.system_type)
        top = w.drivers[0] if w.drivers else None
        rows.append(
            {
                "system_type": w.system_type.value,
                "display_name": w.display_name,
                "installed": format_installed_line(resolved) if resolved else "",
                "install_year": w.install_year,
                "install_source": w.install_source,
                "install_confidence": resolved.confidence if resolved else None,
                "early_year": w.early_year,
                "likely_year": w.likely_year,
                "late_year": w.late_year,
                "uncertainty": w.uncertainty,
                "p12": w.failure_probability_12mo,
                "p24": w.failure_probability_24mo,
                "p36": w.failure_probability_36mo,
                "failure_tier": failure_probability_tier(w.failure_probability_12mo),
                "years_remaining": w.years_remaining_p50,
                "months_to_planning": w.months_to_planning,
                "confidence": w.confidence,
                "risk": w.risk.value,
                "action": recommended_step(w.risk, w.uncertainty),
                "top_driver": top.description if top else "",
            }
        )

    df = pd.DataFrame(rows, columns=OUTLOOK_COLUMNS)
    df["_r"] = df["risk"].map(RISK_ORDER).fillna(9)
    df = (
        df.sort_values(["_r", "months_to_planning"], ascending=[True, True], kind="stable")
          .drop(columns="_r")
          .reset_index(drop=True)
    )
    return df


def home_health_score(outlook_df: pd.DataFrame) -> float:
    if outlook_df.empty or "p12" not in outlook_df.columns:
        return 100.0

    p = pd.to_numeric(outlook_df["p12"], errors="coerce").dropna()
    if p.empty:
        return 100.0

    penalty = float(np.clip(p.mean() * HEALTH_PENALTY_WEIGHT, 0.0, HEALTH_PENALTY_WEIGHT))
    return round(100.0 - penalty, 1)


def home_verdict(outlook_df: pd.DataFrame) -> str:
    if outlook_df.empty:
        return "No home systems on record yet."

    high = outlook_df.loc[outlook_df["risk"] == "HIGH", "display_name"].tolist()
    mod = outlook_df.loc[outlook_df["risk"] == "MODERATE", "display_name"].tolist()
    low = outlook_df.loc[outlook_df["risk"] == "LOW", "display_name"].tolist()

    parts: list[str] = []
    if high:
        parts.append(f"{', '.join(high)} {'is' if len(high) == 1 else 'are'} at or past expected service life")
    if mod:
        parts.append(f"{', '.join(mod)} should be budgeted within the next few years")
    if low:
        parts.append(f"{', '.join(low)} {'has' if len(low) == 1 else 'have'} comfortable remaining life")

    return ". ".join(parts) + "."
