from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

import pandas as pd

from homelife.core.errors import HomeLifeError
from homelife.core.evidence import (
    EvidenceRecord,
    MaintenanceEvent,
    normalize_maintenance_event,
    normalize_permit,
    normalize_system_record,
)

logger = logging.getLogger(__name__)

PERMIT_REQUIRED_COLUMNS = ["description"]
PERMIT_DATE_COLUMNS = ["date_finaled", "final_date", "date_issued", "issue_date", "approval_date"]


@dataclass(frozen=True)
class IngestResult:
    df: pd.DataFrame
    issues: list[str]


@dataclass(frozen=True)
class HomeBundle:
    home: dict[str, Any]
    systems: list[dict[str, Any]] = field(default_factory=list)
    permits: list[dict[str, Any]] = field(default_factory=list)
    maintenance: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class NormalizedInputs:
    evidence: tuple[EvidenceRecord, ...]
    maintenance: tuple[MaintenanceEvent, ...]
    rejected: tuple[HomeLifeError, ...]
    issues: list[str]


def load_permits_csv(path: str | Path) -> IngestResult:
    """
    Load a permit export CSV.

    Expected columns: description, plus at least one of
    date_finaled, final_date, date_issued, issue_date, approval_date.
    """
    path = Path(path)
    issues: list[str] = []

    if not path.exists():
        return IngestResult(df=pd.DataFrame(), issues=[f"File not found: {path}"])

    df = pd.read_csv(path, dtype=str, keep_default_na=False)

    missing = [c for c in PERMIT_REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        issues.append(f"Missing required columns: {missing}")
        return IngestResult(df=pd.DataFrame(), issues=issues)

    date_cols = [c for c in PERMIT_DATE_COLUMNS if c in df.columns]
    if not date_cols:
        issues.append(f"No permit date columns present (expected one of {PERMIT_DATE_COLUMNS})")
        return IngestResult(df=pd.DataFrame(), issues=issues)

    df["description"] = df["description"].astype(str).str.strip()
    empty = int((df["description"] == "").sum())
    if empty:
        issues.append(f"{empty} permit rows have an empty description")
    df = df[df["description"] != ""].copy()

    return IngestResult(df=df.reset_index(drop=True), issues=issues)


def _records(x: Any, label: str) -> list[dict[str, Any]]:
    if x is None:
        return []
    if not isinstance(x, list) or not all(isinstance(i, dict) for i in x):
        raise ValueError(f"'{label}' must be a list of objects")
    return list(x)


def load_home_bundle(path: str | Path) -> HomeBundle:
    """
    Read one home bundle:
      {"home": {...}, "systems": [...], "permits": [...], "maintenance": [...]}

    An optional "permits_csv" key (relative to the bundle) adds permit rows
    from a CSV export.
    """
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not isinstance(data.get("home"), dict):
        raise ValueError(f"Home bundle must be an object with a 'home' object: {p}")

    permits = _records(data.get("permits"), "permits")
    csv_ref = data.get("permits_csv")
    if csv_ref:
        result = load_permits_csv(p.parent / str(csv_ref))
        for msg in result.issues:
            logger.warning("permits_csv: %s", msg)
        if not result.df.empty:
            permits.extend(result.df.to_dict(orient="records"))

    return HomeBundle(
        home=dict(data["home"]),
        systems=_records(data.get("systems"), "systems"),
        permits=permits,
        maintenance=_records(data.get("maintenance"), "maintenance"),
    )


def normalize_inputs(
    systems: Sequence[Mapping[str, Any]],
    permits: Sequence[Mapping[str, Any]],
    maintenance: Sequence[Mapping[str, Any]],
) -> NormalizedInputs:
    """
    Normalize every raw row. Rows that fail validation are kept out of the
    evidence set and returned in `rejected` with a matching issue line; the
    caller decides whether rejection is fatal.
    """
    evidence: list[EvidenceRecord] = []
    events: list[MaintenanceEvent] = []
    rejected: list[HomeLifeError] = []
    issues: list[str] = []

    for i, raw in enumerate(permits):
        try:
            evidence.extend(normalize_permit(raw))
        except HomeLifeError as e:
            rejected.append(e)
            issues.append(f"Permit row {i} rejected: {e}")

    for i, row in enumerate(systems):
        try:
            rec = normalize_system_record(row)
        except HomeLifeError as e:
            rejected.append(e)
            issues.append(f"System row {i} rejected: {e}")
            continue
        if rec is not None:
            evidence.append(rec)

    dateless = 0
    for i, raw in enumerate(maintenance):
        try:
            ev = normalize_maintenance_event(raw)
        except HomeLifeError as e:
            rejected.append(e)
            issues.append(f"Maintenance row {i} rejected: {e}")
            continue
        if ev is None:
            dateless += 1
        else:
            events.append(ev)
    if dateless:
        issues.append(f"{dateless} maintenance rows have no date and were ignored")

    logger.info(
        "Normalized %d evidence records, %d maintenance events (%d rejected)",
        len(evidence), len(events), len(rejected),
    )
    return NormalizedInputs(
        evidence=tuple(evidence),
        maintenance=tuple(events),
        rejected=tuple(rejected),
        issues=issues,
    )
