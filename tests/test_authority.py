from datetime import date

import pytest

from homelife.core.authority import (
    SOURCE_HEURISTIC,
    SOURCE_INSPECTION,
    SOURCE_OWNER,
    SOURCE_PERMIT,
    STATUS_ORIGINAL,
    STATUS_REPLACED,
    STATUS_UNKNOWN,
    format_installed_line,
    resolve_install,
    score_install_confidence,
)
from homelife.core.evidence import normalize_inspection, normalize_owner_statement, normalize_permit
from homelife.core.systems import SystemType

AS_OF = date(2024, 6, 1)


def _hvac_permit(final_date: str | None = None, issue_date: str | None = None, number: str = "M-1",
                 description: str = "CHANGEOUT A/C SYSTEM"):
    raw = {"permit_number": number, "permit_type": "mechanical", "description": description}
    if final_date:
        raw["final_date"] = final_date
    if issue_date:
        raw["issue_date"] = issue_date
    return normalize_permit(raw)


def test_permit_outranks_owner_statement():
    evidence = (*_hvac_permit(final_date="2019-04-10"), normalize_owner_statement("hvac", "replaced", 2015))
    r = resolve_install("hvac", evidence, 1995, as_of=AS_OF)

    assert r.source == SOURCE_PERMIT
    assert r.install_year == 2019
    assert r.install_month == 4
    assert r.confidence == pytest.approx(0.90)
    assert r.replacement_status == STATUS_REPLACED
    assert r.is_verified
    assert "M-1" in r.rationale


def test_install_permit_near_construction_is_original():
    evidence = _hvac_permit(final_date="2001-03-01", description="Install new system heat pump")
    r = resolve_install(SystemType.HVAC, evidence, 2000, as_of=AS_OF)
    assert r.confidence == pytest.approx(0.95)
    assert r.replacement_status == STATUS_ORIGINAL


def test_finalized_permit_beats_more_recent_issued_only_permit():
    evidence = (
        *_hvac_permit(final_date="2015-08-01", number="A"),
        *_hvac_permit(issue_date="2018-02-01", number="B"),
    )
    r = resolve_install("hvac", evidence, 1995, as_of=AS_OF)
    assert r.reference == "A"
    assert r.install_year == 2015


def test_permits_after_evaluation_date_are_ignored():
    evidence = _hvac_permit(final_date="2025-01-15")
    r = resolve_install("hvac", evidence, 1995, as_of=AS_OF)
    assert r.source == SOURCE_HEURISTIC


def test_maintenance_only_permits_do_not_set_install_year():
    evidence = _hvac_permit(final_date="2022-01-15", description="Repair refrigerant leak on condenser")
    r = resolve_install("hvac", evidence, 1995, as_of=AS_OF)
    assert r.source == SOURCE_HEURISTIC


def test_statement_confidence_and_month_bonus():
    r = resolve_install("hvac", [normalize_owner_statement("hvac", "replaced", 2016)], 1995, as_of=AS_OF)
    assert r.source == SOURCE_OWNER
    assert r.confidence == pytest.approx(0.55)
    assert r.install_month is None

    r = resolve_install(
        "hvac", [normalize_owner_statement("hvac", "replaced", 2016, install_month=5)], 1995, as_of=AS_OF
    )
    assert r.confidence == pytest.approx(0.60)
    assert r.install_month == 5


def test_inspection_outranks_owner_statement():
    evidence = [
        normalize_owner_statement("roof", "replaced", 2018),
        normalize_inspection("roof", 2012, replacement_status="replaced"),
    ]
    r = resolve_install("roof", evidence, 1995, as_of=AS_OF)
    assert r.source == SOURCE_INSPECTION
    assert r.install_year == 2012
    assert r.confidence == pytest.approx(0.60)


def test_heuristic_assumes_one_replacement_for_older_homes():
    r = resolve_install("hvac", [], 1990, as_of=AS_OF)
    assert r.source == SOURCE_HEURISTIC
    assert r.install_year == 2002
    assert r.confidence == pytest.approx(0.30)
    assert r.replacement_status == STATUS_UNKNOWN


def test_heuristic_without_rule_assumes_original():
    r = resolve_install("roof", [], 2010, as_of=AS_OF)
    assert r.install_year == 2010
    assert r.replacement_status == STATUS_UNKNOWN


def test_no_evidence_and_no_construction_year():
    r = resolve_install("roof", [], None, as_of=AS_OF)
    assert r.install_year is None
    assert r.confidence == 0.0
    assert format_installed_line(r) == "Install year unknown"


def test_confidence_is_monotone_in_source_authority():
    permit = min(
        score_install_confidence(SOURCE_PERMIT, permit_classification=c)
        for c in ("install", "replacement", "unclassified")
    )
    inspection = score_install_confidence(SOURCE_INSPECTION)
    owner = score_install_confidence(SOURCE_OWNER, has_month=True)
    heuristic = score_install_confidence(SOURCE_HEURISTIC)
    assert permit > inspection >= owner > heuristic


def test_resolution_is_deterministic():
    evidence = (*_hvac_permit(final_date="2019-04-10"), normalize_owner_statement("hvac", "replaced", 2015))
    assert resolve_install("hvac", evidence, 1995, as_of=AS_OF) == resolve_install(
        "hvac", tuple(reversed(evidence)), 1995, as_of=AS_OF
    )


def test_installed_line_wording():
    permit = resolve_install("hvac", _hvac_permit(final_date="2019-04-10"), 1995, as_of=AS_OF)
    assert format_installed_line(permit) == "Installed Apr 2019 (permit verified)"

    heuristic = resolve_install("roof", [], 2010, as_of=AS_OF)
    assert format_installed_line(heuristic) == "Estimated install ~2010 (based on home age)"



@pytest.mark.parametrize(
    "description, confidence, status",
    [
        ("HVAC replacement", 0.90, STATUS_REPLACED),
        ("Replaced AC unit and condenser", 0.90, STATUS_REPLACED),
        ("Installed new heat pump", 0.95, STATUS_REPLACED),
    ],
)
def test_inflected_permit_wording_keeps_its_classification(description, confidence, status):
    r = resolve_install("hvac", _hvac_permit(final_date="2019-05-01", description=description), 1995, as_of=AS_OF)
    assert r.source == SOURCE_PERMIT
    assert r.confidence == pytest.approx(confidence)
    assert r.replacement_status == status


def test_statement_dated_after_as_of_is_ignored():
    evidence = (
        normalize_owner_statement("hvac", "replaced", 2030),
        normalize_owner_statement("hvac", "replaced", 2014),
    )
    r = resolve_install("hvac", evidence, 1995, as_of=AS_OF)
    assert r.source == SOURCE_OWNER
    assert r.install_year == 2014

    only_future = resolve_install("hvac", evidence[:1], 1995, as_of=AS_OF)
    assert only_future.source == SOURCE_HEURISTIC
