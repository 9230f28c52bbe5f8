"""
Install authority resolution.

Precedence is an ordered chain of strategies. Each strategy either returns a
ResolvedInstall or None ("no opinion"); the first opinion wins. Conflicting
dates are never blended.

    permit (0.80-0.95) > explicit statement (0.55-0.60) > construction-year heuristic (0.30)
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Sequence

from homelife.core.contract import (
    HEURISTIC_CONFIDENCE,
    INSPECTION_CONFIDENCE,
    ORIGINAL_INSTALL_TOLERANCE_YEARS,
    OWNER_REPORTED_CONFIDENCE,
    PERMIT_BASE_CONFIDENCE,
    PERMIT_BOOST_INSTALL,
    PERMIT_BOOST_REPLACEMENT,
    PERMIT_BOOST_UNCLASSIFIED,
    PERMIT_CONFIDENCE_CAP,
    STATEMENT_CONFIDENCE_CAP,
    STATEMENT_MONTH_BONUS,
)
from homelife.core.evidence import (
    CLASS_INSTALL,
    CLASS_REPLACEMENT,
    CLASS_UNCLASSIFIED,
    DATE_BASIS_RANK,
    PROVENANCE_INSPECTION,
    PROVENANCE_OWNER,
    PROVENANCE_PERMIT,
    EvidenceRecord,
)
from homelife.core.systems import SystemType, get_profile, parse_system_type

SOURCE_PERMIT = "permit_verified"
SOURCE_INSPECTION = "inspection"
SOURCE_OWNER = "owner_reported"
SOURCE_HEURISTIC = "heuristic"

STATUS_ORIGINAL = "original"
STATUS_REPLACED = "replaced"
STATUS_UNKNOWN = "unknown"

# Higher = more authoritative.
SOURCE_AUTHORITY = {
    SOURCE_PERMIT: 4,
    SOURCE_INSPECTION: 3,
    SOURCE_OWNER: 2,
    SOURCE_HEURISTIC: 1,
}

PERMIT_CLASS_BOOST = {
    CLASS_INSTALL: PERMIT_BOOST_INSTALL,
    CLASS_REPLACEMENT: PERMIT_BOOST_REPLACEMENT,
    CLASS_UNCLASSIFIED: PERMIT_BOOST_UNCLASSIFIED,
}

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass(frozen=True)
class ResolvedInstall:
    system_type: SystemType
    install_year: int | None
    source: str
    confidence: float
    replacement_status: str
    rationale: str
    install_month: int | None = None
    reference: str | None = None

    @property
    def is_verified(self) -> bool:
        return self.source in (SOURCE_PERMIT, SOURCE_INSPECTION)


def score_install_confidence(
    source: str,
    *,
    has_month: bool = False,
    permit_classification: str = CLASS_UNCLASSIFIED,
) -> float:
    """Confidence for an install source. Monotone in source authority."""
    if source == SOURCE_PERMIT:
        boost = PERMIT_CLASS_BOOST.get(permit_classification, PERMIT_BOOST_UNCLASSIFIED)
        return round(min(PERMIT_CONFIDENCE_CAP, PERMIT_BASE_CONFIDENCE + boost), 2)
    if source in (SOURCE_INSPECTION, SOURCE_OWNER):
        base = INSPECTION_CONFIDENCE if source == SOURCE_INSPECTION else OWNER_REPORTED_CONFIDENCE
        bonus = STATEMENT_MONTH_BONUS if has_month else 0.0
        return round(min(STATEMENT_CONFIDENCE_CAP, base + bonus), 2)
    if source == SOURCE_HEURISTIC:
        return HEURISTIC_CONFIDENCE
    return 0.0


# ----------------------------
# Strategies
# ----------------------------

Strategy = Callable[[SystemType, Sequence[EvidenceRecord], "int | None", date], "ResolvedInstall | None"]


def _status_from_install_year(year: int, construction_year: int | None, fallback: str) -> str:
    if construction_year is not None and abs(year - construction_year) <= ORIGINAL_INSTALL_TOLERANCE_YEARS:
        return STATUS_ORIGINAL
    return fallback


def resolve_from_permits(
    system_type: SystemType,
    evidence: Sequence[EvidenceRecord],
    construction_year: int | None,
    as_of: date,
) -> ResolvedInstall | None:
    qualifying = [
        e for e in evidence
        if e.system_type == system_type
        and e.provenance == PROVENANCE_PERMIT
        and e.classification in PERMIT_CLASS_BOOST
        and e.effective_date <= as_of
    ]
    if not qualifying:
        return None

    # Most authoritative date field first, then most recent.
    best = sorted(
        qualifying,
        key=lambda e: (DATE_BASIS_RANK.get(e.date_basis, 9), -e.effective_date.toordinal()),
    )[0]

    if best.classification == CLASS_REPLACEMENT:
        status = STATUS_REPLACED
    elif best.classification == CLASS_INSTALL:
        status = _status_from_install_year(best.year, construction_year, STATUS_REPLACED)
    else:
        status = _status_from_install_year(best.year, construction_year, STATUS_UNKNOWN)

    ref = best.reference or "without number"
    rationale = (
        f"Permit {ref} ({best.classification}, {best.date_basis} {best.effective_date.isoformat()}) "
        f"selected from {len(qualifying)} qualifying permit(s)."
    )
    return ResolvedInstall(
        system_type=system_type,
        install_year=best.year,
        source=SOURCE_PERMIT,
        confidence=score_install_confidence(SOURCE_PERMIT, permit_classification=best.classification),
        replacement_status=status,
        rationale=rationale,
        install_month=best.effective_date.month,
        reference=best.reference,
    )


_STATEMENT_SOURCES = {
    PROVENANCE_INSPECTION: SOURCE_INSPECTION,
    PROVENANCE_OWNER: SOURCE_OWNER,
}

_STATEMENT_STATUS = {
    CLASS_INSTALL: STATUS_ORIGINAL,
    CLASS_REPLACEMENT: STATUS_REPLACED,
}


def resolve_from_statements(
    system_type: SystemType,
    evidence: Sequence[EvidenceRecord],
    construction_year: int | None,
    as_of: date,
) -> ResolvedInstall | None:
    statements = [
        e for e in evidence
        if e.system_type == system_type
        and e.provenance in _STATEMENT_SOURCES
        and e.effective_date <= as_of
    ]
    if not statements:
        return None

    best = sorted(
        statements,
        key=lambda e: (-SOURCE_AUTHORITY[_STATEMENT_SOURCES[e.provenance]], -e.effective_date.toordinal()),
    )[0]
    source = _STATEMENT_SOURCES[best.provenance]

    return ResolvedInstall(
        system_type=system_type,
        install_year=best.year,
        source=source,
        confidence=score_install_confidence(source, has_month=best.month_known),
        replacement_status=_STATEMENT_STATUS.get(best.classification, STATUS_UNKNOWN),
        rationale=f"{source.replace('_', ' ').capitalize()} install year {best.year}.",
        install_month=best.effective_date.month if best.month_known else None,
    )


def resolve_from_heuristic(
    system_type: SystemType,
    evidence: Sequence[EvidenceRecord],
    construction_year: int | None,
    as_of: date,
) -> ResolvedInstall:
    if construction_year is None:
        return ResolvedInstall(
            system_type=system_type,
            install_year=None,
            source=SOURCE_HEURISTIC,
            confidence=0.0,
            replacement_status=STATUS_UNKNOWN,
            rationale="No install evidence and no construction year on record.",
        )

    profile = get_profile(system_type)
    for rule in profile.heuristic_rules:
        if construction_year < rule.built_before:
            year = min(construction_year + rule.replacement_offset_years, as_of.year - rule.min_age_years)
            year = max(year, construction_year)
            rationale = (
                f"Estimated from {construction_year} construction: assumes one replacement "
                f"~{rule.replacement_offset_years}y after build."
            )
            break
    else:
        year = construction_year
        rationale = f"Estimated from {construction_year} construction: assumes original system."

    return ResolvedInstall(
        system_type=system_type,
        install_year=year,
        source=SOURCE_HEURISTIC,
        confidence=score_install_confidence(SOURCE_HEURISTIC),
        replacement_status=STATUS_UNKNOWN,
        rationale=rationale,
    )


INSTALL_AUTHORITY_CHAIN: tuple[Strategy, ...] = (
    resolve_from_permits,
    resolve_from_statements,
    resolve_from_heuristic,
)


def resolve_install(
    system_type: str | SystemType,
    evidence: Iterable[EvidenceRecord],
    construction_year: int | None,
    *,
    as_of: date,
    chain: Sequence[Strategy] = INSTALL_AUTHORITY_CHAIN,
) -> ResolvedInstall:
    """Exactly one ResolvedInstall per (home, system type), recomputed per call."""
    st = parse_system_type(system_type)
    records = tuple(evidence)
    for strategy in chain:
        resolved = strategy(st, records, construction_year, as_of)
        if resolved is not None:
            return resolved
    raise RuntimeError(f"Install authority chain produced no opinion for {st.value}")


# ----------------------------
# Presentation
# ----------------------------

def format_installed_line(resolved: ResolvedInstall) -> str:
    if resolved.install_year is None:
        return "Install year unknown"

    when = str(resolved.install_year)
    if resolved.install_month:
        when = f"{_MONTHS[resolved.install_month - 1]} {resolved.install_year}"

    if resolved.source == SOURCE_PERMIT:
        return f"Installed {when} (permit verified)"
    if resolved.source == SOURCE_INSPECTION:
        return f"Installed {when} (inspection)"
    if resolved.source == SOURCE_OWNER:
        return f"Installed {when} (owner reported)"
    return f"Estimated install ~{resolved.install_year} (based on home age)"

