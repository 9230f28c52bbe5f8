from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeltaConfig:
    confidence_change: float = 0.05
    likely_year_shift: int = 1


SNAPSHOT_COLUMNS = ["system_type", "confidence", "risk", "likely_year", "install_source"]


def snapshot_from_outlook(outlook_df: pd.DataFrame) -> pd.DataFrame:
    """
    Stable per-system snapshot used to diff runs.
    Expected columns in outlook_df: system_type, confidence, risk, likely_year, install_source
    """
    if outlook_df is None or outlook_df.empty:
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)

    cols = [c for c in SNAPSHOT_COLUMNS if c in outlook_df.columns]
    out = outlook_df[cols].copy()

    out["system_type"] = out["system_type"].astype(str)
    for c in ("risk", "install_source"):
        if c in out.columns:
            out[c] = out[c].astype(str)
    for c in ("confidence", "likely_year"):
        if c in out.columns:
            out[c] = pd.to_numeric(out[c], errors="coerce")

    return out.sort_values("system_type").reset_index(drop=True)


def load_snapshot(path: str | Path) -> pd.DataFrame:
    p = Path(path)
    if not p.exists():
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)

    try:
        df = pd.read_csv(p)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        logger.warning("Ignoring unreadable snapshot %s: %s", p, e)
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)

    for c in SNAPSHOT_COLUMNS:
        if c not in df.columns:
            df[c] = pd.NA

    df = df[SNAPSHOT_COLUMNS].copy()
    df["system_type"] = df["system_type"].astype(str)
    df["confidence"] = pd.to_numeric(df["confidence"], errors="coerce")
    df["likely_year"] = pd.to_numeric(df["likely_year"], errors="coerce")
    df["risk"] = df["risk"].astype(str)
    df["install_source"] = df["install_source"].astype(str)

    return df.sort_values("system_type").reset_index(drop=True)


def save_snapshot(snapshot_df: pd.DataFrame, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    out = snapshot_df.copy()
    for c in SNAPSHOT_COLUMNS:
        if c not in out.columns:
            out[c] = pd.NA
    out[SNAPSHOT_COLUMNS].to_csv(p, index=False)
    logger.debug("Snapshot written: %s (%d systems)", p, len(out))


def previous_confidence(snapshot_df: pd.DataFrame) -> dict[str, float]:
    """system_type -> window confidence from the last run (rows without a value are skipped)."""
    if snapshot_df is None or snapshot_df.empty:
        return {}
    out: dict[str, float] = {}
    for _, row in snapshot_df.iterrows():
        c = row.get("confidence")
        if pd.notna(c):
            out[str(row["system_type"])] = float(c)
    return out


def _risk_rank(r: str) -> int:
    # Higher urgency = lower number
    order = {"HIGH": 0, "MODERATE": 1, "LOW": 2}
    return order.get(str(r).upper(), 9)


def compute_delta_lines(
    prev_snapshot: pd.DataFrame,
    curr_snapshot: pd.DataFrame,
    cfg: DeltaConfig | None = None,
    max_lines: int = 8,
) -> list[str]:
    """Plain-language lines describing what moved since the last run."""
    cfg = cfg or DeltaConfig()

    prev = prev_snapshot.copy()
    curr = curr_snapshot.copy()

    if curr.empty and prev.empty:
        return ["No home systems on record yet."]

    if prev.empty and not curr.empty:
        return ["Baseline created (first run). Future reports will highlight changes."]

    prev_i = prev.set_index("system_type", drop=False)
    curr_i = curr.set_index("system_type", drop=False)

    systems = sorted(set(prev_i.index.tolist()) | set(curr_i.index.tolist()))
    lines: list[str] = []

    for st in systems:
        was = prev_i.loc[st] if st in prev_i.index else None
        now = curr_i.loc[st] if st in curr_i.index else None

        if was is None and now is not None:
            lines.append(f"{st} added to the outlook (risk {now['risk']}).")
            continue

        if now is None and was is not None:
            lines.append(f"{st} no longer tracked.")
            continue

        was_risk = str(was["risk"])
        now_risk = str(now["risk"])
        if _risk_rank(now_risk) < _risk_rank(was_risk):
            lines.append(f"{st} risk escalated {was_risk} → {now_risk}.")
        elif _risk_rank(now_risk) > _risk_rank(was_risk):
            lines.append(f"{st} risk reduced {was_risk} → {now_risk}.")

        was_c = was["confidence"]
        now_c = now["confidence"]
        if pd.notna(was_c) and pd.notna(now_c):
            change = float(now_c) - float(was_c)
            if abs(change) >= cfg.confidence_change:
                verb = "improved" if change > 0 else "dropped"
                lines.append(f"{st} forecast confidence {verb} {float(was_c):.2f} → {float(now_c):.2f}.")

        was_y = was["likely_year"]
        now_y = now["likely_year"]
        if pd.notna(was_y) and pd.notna(now_y):
            shift = int(now_y) - int(was_y)
            if abs(shift) >= cfg.likely_year_shift:
                lines.append(f"{st} likely replacement moved {int(was_y)} → {int(now_y)}.")

        was_s = str(was["install_source"])
        now_s = str(now["install_source"])
        if was_s != now_s and "nan" not in (was_s, now_s):
            lines.append(f"{st} install source now {now_s} (was {was_s}).")

        if len(lines) >= max_lines:
            break

    if not lines:
        return ["No material changes since last report."]

    return lines[:max_lines]
