"""
Evidence normalizers.

Raw permit / inspection / owner-statement rows arrive in whatever shape the
source produced. Everything is converted here, at the boundary, into the
fixed EvidenceRecord shape. Nothing downstream looks at raw rows.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Mapping

import pandas as pd

from homelife.core.errors import MissingPermitDateError, VagueInstallStatementError
from homelife.core.systems import (
    MAINTENANCE_KEYWORDS,
    PERMIT_TYPE_SYSTEMS,
    SYSTEM_KEYWORDS,
    SystemType,
    install_keywords,
    parse_system_type,
    replacement_keywords,
)

CLASS_INSTALL = "install"
CLASS_REPLACEMENT = "replacement"
CLASS_MAINTENANCE = "maintenance"
CLASS_UNCLASSIFIED = "unclassified"

PROVENANCE_PERMIT = "permit"
PROVENANCE_OWNER = "owner_statement"
PROVENANCE_INSPECTION = "inspection"

BASIS_FINALIZED = "finalized"
BASIS_ISSUED = "issued"
BASIS_APPROVED = "approved"
BASIS_STATED = "stated"

# Lower rank = more authoritative date field.
DATE_BASIS_RANK = {
    BASIS_FINALIZED: 0,
    BASIS_ISSUED: 1,
    BASIS_APPROVED: 2,
    BASIS_STATED: 3,
}


@dataclass(frozen=True)
class EvidenceRecord:
    system_type: SystemType
    classification: str
    effective_date: date
    description: str
    provenance: str
    date_basis: str = BASIS_STATED
    month_known: bool = True
    reference: str | None = None
    valuation: float | None = None

    @property
    def year(self) -> int:
        return self.effective_date.year


@dataclass(frozen=True)
class NormalizedPermit:
    """Source-independent permit row. `source` is informational only."""
    permit_number: str | None
    permit_type: str | None
    work_class: str | None
    description: str | None
    status: str | None
    date_finaled: date | None
    date_issued: date | None
    approval_date: date | None
    valuation: float | None
    source: str = "generic"
    system_tags: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MaintenanceEvent:
    system_type: SystemType
    performed_on: date
    description: str = ""


# ----------------------------
# Helpers
# ----------------------------

_EPOCH_MS = re.compile(r"^\d{13}$")
_YYYYMMDD = re.compile(r"^\d{8}$")


def parse_date(value: Any) -> date | None:
    """
    Parse ISO strings, YYYYMMDD strings and epoch milliseconds.
    Anything unparseable is None (caller decides whether that is fatal).
    """
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass

    s = str(value).strip()
    if not s:
        return None

    if _YYYYMMDD.match(s):
        ts = pd.to_datetime(s, format="%Y%m%d", errors="coerce")
    elif isinstance(value, (int, float)) or _EPOCH_MS.match(s):
        ts = pd.to_datetime(int(float(s)), unit="ms", errors="coerce")
    else:
        ts = pd.to_datetime(s, errors="coerce")

    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    """First non-empty value among keys (case-insensitive fallback)."""
    for k in keys:
        for kk in (k, k.lower()):
            v = raw.get(kk)
            if v is not None and str(v).strip() != "":
                return v
    return None


def _opt_str(x: Any) -> str | None:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def _opt_float(x: Any) -> float | None:
    if x is None:
        return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return None if pd.isna(v) else v


# Keywords match at a word start and may carry an inflection ("replaced",
# "installation", "reroofing"); other trailing letters ("solarium") do not match.
_INFLECTION = r"(?:s|es|d|ed|ing|ment|ments|ation|ations)?"


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    for kw in keywords:
        if re.search(rf"(?<![a-z0-9]){re.escape(kw)}{_INFLECTION}(?![a-z0-9])", text):
            return True
    return False


# ----------------------------
# Source adapters
# ----------------------------

MIAMI_DADE_TYPE_MAP = {
    "MECH": "Mechanical",
    "BLDG": "Building",
    "ELEC": "Electrical",
    "PLUM": "Plumbing",
    "ROOF": "Roofing",
    "DEMO": "Demolition",
    "FIRE": "Fire",
}


def from_miami_dade(raw: Mapping[str, Any]) -> NormalizedPermit:
    """Miami-Dade ArcGIS rows: DESC1..DESC10, TYPE code, epoch ISSUDATE, YYYYMMDD finals."""
    desc_parts = [_opt_str(_first(raw, f"DESC{i}")) for i in range(1, 11)]
    description = " ".join(p for p in desc_parts if p) or None

    raw_type = _opt_str(_first(raw, "TYPE"))
    permit_type = MIAMI_DADE_TYPE_MAP.get(raw_type or "", raw_type)

    return NormalizedPermit(
        permit_number=_opt_str(_first(raw, "PROCNUM", "ID")),
        permit_type=permit_type,
        work_class=_opt_str(_first(raw, "WORKCLASS")),
        description=description,
        status=_opt_str(_first(raw, "STATDESC", "STATUS")),
        date_finaled=parse_date(_first(raw, "LSTINSDT", "BLDCMPDT")),
        date_issued=parse_date(_first(raw, "ISSUDATE")),
        approval_date=parse_date(_first(raw, "LSTAPPRDT")),
        valuation=_opt_float(_first(raw, "PROJVAL")),
        source="miami_dade",
    )


def from_shovels(raw: Mapping[str, Any]) -> NormalizedPermit:
    # No separate approval date in this feed.
    return NormalizedPermit(
        permit_number=_opt_str(raw.get("number")),
        permit_type=_opt_str(raw.get("type")),
        work_class=None,
        description=_opt_str(raw.get("description")),
        status=_opt_str(raw.get("status")),
        date_finaled=parse_date(raw.get("final_date")),
        date_issued=parse_date(raw.get("issue_date")),
        approval_date=None,
        valuation=_opt_float(raw.get("job_value")),
        source="shovels",
    )


def from_generic(raw: Mapping[str, Any]) -> NormalizedPermit:
    tags = raw.get("system_tags") or ()
    if isinstance(tags, str):
        tags = [t for t in re.split(r"[,\s]+", tags) if t]
    return NormalizedPermit(
        permit_number=_opt_str(_first(raw, "permit_number", "number")),
        permit_type=_opt_str(raw.get("permit_type")),
        work_class=_opt_str(raw.get("work_class")),
        description=_opt_str(raw.get("description")),
        status=_opt_str(raw.get("status")),
        date_finaled=parse_date(_first(raw, "date_finaled", "final_date")),
        date_issued=parse_date(_first(raw, "date_issued", "issue_date")),
        approval_date=parse_date(raw.get("approval_date")),
        valuation=_opt_float(_first(raw, "valuation", "job_value")),
        source=_opt_str(raw.get("source")) or "generic",
        system_tags=tuple(str(t).strip().lower() for t in tags),
    )


PERMIT_ADAPTERS: dict[str, Callable[[Mapping[str, Any]], NormalizedPermit]] = {
    "miami_dade": from_miami_dade,
    "shovels": from_shovels,
    "generic": from_generic,
    "manual": from_generic,
}


def coerce_permit(raw: Mapping[str, Any] | NormalizedPermit, source: str | None = None) -> NormalizedPermit:
    if isinstance(raw, NormalizedPermit):
        return raw
    key = (source or _opt_str(raw.get("source")) or "generic").lower()
    adapter = PERMIT_ADAPTERS.get(key, from_generic)
    return adapter(raw)


# ----------------------------
# Classification
# ----------------------------

def permit_text(permit: NormalizedPermit) -> str:
    parts = [permit.description, permit.work_class]
    return " ".join(p for p in parts if p).lower()


def match_system_types(permit: NormalizedPermit) -> list[SystemType]:
    """System types a permit speaks about, in SystemType declaration order."""
    text = permit_text(permit)
    hits: set[SystemType] = set()

    for st, kws in SYSTEM_KEYWORDS.items():
        if text and _contains_any(text, kws):
            hits.add(st)

    ptype = (permit.permit_type or "").strip().lower()
    if ptype in PERMIT_TYPE_SYSTEMS:
        hits.add(PERMIT_TYPE_SYSTEMS[ptype])

    for tag in permit.system_tags:
        try:
            hits.add(parse_system_type(tag))
        except ValueError:
            continue

    return [st for st in SystemType if st in hits]


def classify_permit_text(system_type: SystemType, text: str) -> str:
    """Replacement wins over install, install over maintenance."""
    t = (text or "").lower()
    if _contains_any(t, replacement_keywords(system_type)):
        return CLASS_REPLACEMENT
    if _contains_any(t, install_keywords(system_type)):
        return CLASS_INSTALL
    if _contains_any(t, MAINTENANCE_KEYWORDS):
        return CLASS_MAINTENANCE
    return CLASS_UNCLASSIFIED


def authoritative_date(permit: NormalizedPermit) -> tuple[date, str] | None:
    candidates = (
        (permit.date_finaled, BASIS_FINALIZED),
        (permit.date_issued, BASIS_ISSUED),
        (permit.approval_date, BASIS_APPROVED),
    )
    for d, basis in candidates:
        if d is not None:
            return d, basis
    return None


def normalize_permit(
    raw: Mapping[str, Any] | NormalizedPermit,
    *,
    source: str | None = None,
) -> tuple[EvidenceRecord, ...]:
    """
    One EvidenceRecord per system type the permit matches.

    A permit that matches nothing yields (). A permit that matches a system
    but carries no usable date raises MissingPermitDateError.
    """
    permit = coerce_permit(raw, source)
    systems = match_system_types(permit)
    if not systems:
        return ()

    dated = authoritative_date(permit)
    if dated is None:
        ref = permit.permit_number or "<no number>"
        raise MissingPermitDateError(
            f"Permit {ref} matches {', '.join(s.value for s in systems)} but has no usable date field."
        )
    effective, basis = dated

    text = permit_text(permit)
    return tuple(
        EvidenceRecord(
            system_type=st,
            classification=classify_permit_text(st, text),
            effective_date=effective,
            description=permit.description or "",
            provenance=PROVENANCE_PERMIT,
            date_basis=basis,
            month_known=True,
            reference=permit.permit_number,
            valuation=permit.valuation,
        )
        for st in systems
    )


# ----------------------------
# Statements
# ----------------------------

REPLACEMENT_STATUSES = ("original", "replaced", "unknown")


def _coerce_year(x: Any) -> int | None:
    if x is None or (isinstance(x, str) and not x.strip()):
        return None
    try:
        y = int(float(x))
    except (TypeError, ValueError):
        return None
    return y if 1800 <= y <= 2200 else None


def _coerce_month(x: Any) -> int | None:
    if x is None:
        return None
    try:
        m = int(float(x))
    except (TypeError, ValueError):
        return None
    return m if 1 <= m <= 12 else None


def normalize_owner_statement(
    system_type: str | SystemType,
    replacement_status: str,
    install_year: Any = None,
    *,
    install_month: Any = None,
    construction_year: Any = None,
    provenance: str = PROVENANCE_OWNER,
    description: str = "",
) -> EvidenceRecord:
    """
    Turn an explicit statement ("replaced in 2016", "original to the house")
    into evidence.

    Statements without a specific year are rejected with
    VagueInstallStatementError; the caller has to ask again.
    """
    st = parse_system_type(system_type)
    status = (replacement_status or "unknown").strip().lower()
    if status not in REPLACEMENT_STATUSES:
        raise VagueInstallStatementError(f"Unrecognized replacement status: {replacement_status!r}")

    year = _coerce_year(install_year)
    month = _coerce_month(install_month)

    if status == "original":
        year = year or _coerce_year(construction_year)
        classification = CLASS_INSTALL
    elif status == "replaced":
        classification = CLASS_REPLACEMENT
    else:
        classification = CLASS_UNCLASSIFIED

    if year is None:
        raise VagueInstallStatementError(
            f"{st.value}: statement '{status}' has no specific install year."
        )

    return EvidenceRecord(
        system_type=st,
        classification=classification,
        effective_date=date(year, month or 1, 1),
        description=description or f"{provenance.replace('_', ' ')}: {status}",
        provenance=provenance,
        date_basis=BASIS_STATED,
        month_known=month is not None,
    )


def normalize_inspection(
    system_type: str | SystemType,
    install_year: Any,
    *,
    install_month: Any = None,
    replacement_status: str = "unknown",
    description: str = "",
) -> EvidenceRecord:
    return normalize_owner_statement(
        system_type,
        replacement_status,
        install_year,
        install_month=install_month,
        provenance=PROVENANCE_INSPECTION,
        description=description or "inspection report",
    )


# Stored install_source tag -> statement provenance. Permit and heuristic rows
# are re-derived from permits / construction year on every evaluation.
_STORED_SOURCE_PROVENANCE = {
    "owner_reported": PROVENANCE_OWNER,
    "user": PROVENANCE_OWNER,
    "inspection": PROVENANCE_INSPECTION,
}


def normalize_system_record(row: Mapping[str, Any]) -> EvidenceRecord | None:
    """Evidence from a stored per-system row, or None when the row is not a statement."""
    source = str(row.get("install_source") or "").strip().lower()
    provenance = _STORED_SOURCE_PROVENANCE.get(source)
    if provenance is None:
        return None
    return normalize_owner_statement(
        row.get("system_type") or "",
        str(row.get("replacement_status") or "unknown"),
        row.get("install_year"),
        install_month=row.get("install_month"),
        provenance=provenance,
        description=str(row.get("notes") or ""),
    )


def normalize_maintenance_event(raw: Mapping[str, Any]) -> MaintenanceEvent | None:
    """Dateless events carry no recency signal and are dropped (None)."""
    st = parse_system_type(raw.get("system_type") or "")
    when = parse_date(_first(raw, "performed_on", "date", "completed_at"))
    if when is None:
        return None
    return MaintenanceEvent(
        system_type=st,
        performed_on=when,
        description=str(raw.get("description") or raw.get("title") or ""),
    )
