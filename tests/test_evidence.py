from datetime import date

import pytest

from homelife.core.errors import MissingPermitDateError, UnknownSystemTypeError, VagueInstallStatementError
from homelife.core.evidence import (
    BASIS_FINALIZED,
    BASIS_ISSUED,
    CLASS_INSTALL,
    CLASS_MAINTENANCE,
    CLASS_REPLACEMENT,
    PROVENANCE_OWNER,
    PROVENANCE_PERMIT,
    classify_permit_text,
    normalize_maintenance_event,
    normalize_owner_statement,
    normalize_permit,
    normalize_system_record,
    parse_date,
)
from homelife.core.systems import SystemType, parse_system_type


def test_parse_date_accepts_source_formats():
    assert parse_date("2019-03-15") == date(2019, 3, 15)
    assert parse_date("20190315") == date(2019, 3, 15)
    assert parse_date(20190315) == date(2019, 3, 15)
    assert parse_date(1552608000000) == date(2019, 3, 15)
    assert parse_date("1552608000000") == date(2019, 3, 15)


@pytest.mark.parametrize("value", [None, "", "   ", "not a date", float("nan")])
def test_parse_date_unparseable_is_none(value):
    assert parse_date(value) is None


def test_parse_system_type_aliases_and_unknown():
    assert parse_system_type("A/C") == SystemType.HVAC
    assert parse_system_type("Water Heater") == SystemType.WATER_HEATER
    with pytest.raises(UnknownSystemTypeError):
        parse_system_type("hot tub")


def test_permit_prefers_finalized_date():
    recs = normalize_permit(
        {
            "permit_number": "M-1",
            "permit_type": "mechanical",
            "description": "CHANGEOUT A/C SYSTEM",
            "issue_date": "2016-04-02",
            "final_date": "2016-05-10",
        }
    )
    assert len(recs) == 1
    rec = recs[0]
    assert rec.system_type == SystemType.HVAC
    assert rec.provenance == PROVENANCE_PERMIT
    assert rec.classification == CLASS_REPLACEMENT
    assert rec.effective_date == date(2016, 5, 10)
    assert rec.date_basis == BASIS_FINALIZED
    assert rec.reference == "M-1"


def test_permit_without_final_uses_issue_date():
    (rec,) = normalize_permit({"description": "Replace 50 gal water heater", "issue_date": "2021-02-03"})
    assert rec.system_type == SystemType.WATER_HEATER
    assert rec.date_basis == BASIS_ISSUED
    assert rec.effective_date == date(2021, 2, 3)


def test_permit_matching_several_systems_yields_one_record_each():
    recs = normalize_permit({"description": "Reroof and install solar PV system", "final_date": "2020-07-01"})
    assert [r.system_type for r in recs] == [SystemType.ROOF, SystemType.SOLAR]
    by_type = {r.system_type: r for r in recs}
    assert by_type[SystemType.ROOF].classification == CLASS_REPLACEMENT
    assert by_type[SystemType.SOLAR].classification == CLASS_INSTALL
    assert len({r.effective_date for r in recs}) == 1


def test_permit_matching_nothing_is_empty():
    assert normalize_permit({"description": "Fence and gate", "issue_date": "2020-01-01"}) == ()
    # keyword matching is word-bounded: "solarium" is not solar
    assert normalize_permit({"description": "Solarium addition", "issue_date": "2020-01-01"}) == ()


def test_permit_without_any_date_is_rejected():
    with pytest.raises(MissingPermitDateError):
        normalize_permit({"permit_number": "R-9", "description": "Re-roof tear off"})


def test_miami_dade_adapter_reads_native_fields():
    (rec,) = normalize_permit(
        {
            "source": "miami_dade",
            "PROCNUM": "2019-123",
            "TYPE": "MECH",
            "DESC1": "A/C CHANGEOUT",
            "ISSUDATE": 1552608000000,
            "LSTINSDT": "20190410",
        }
    )
    assert rec.system_type == SystemType.HVAC
    assert rec.effective_date == date(2019, 4, 10)
    assert rec.date_basis == BASIS_FINALIZED
    assert rec.reference == "2019-123"


def test_classification_precedence():
    assert classify_permit_text(SystemType.HVAC, "install new unit, replace condenser") == CLASS_REPLACEMENT
    assert classify_permit_text(SystemType.HVAC, "install heat pump") == CLASS_INSTALL
    assert classify_permit_text(SystemType.HVAC, "repair leak on condenser") == CLASS_MAINTENANCE


@pytest.mark.parametrize(
    "description, system_type, classification",
    [
        ("HVAC replacement", SystemType.HVAC, CLASS_REPLACEMENT),
        ("Replaced AC unit and condenser", SystemType.HVAC, CLASS_REPLACEMENT),
        ("Installed new heat pump", SystemType.HVAC, CLASS_INSTALL),
        ("REROOFING SFR", SystemType.ROOF, CLASS_REPLACEMENT),
        ("Serviced furnace", SystemType.HVAC, CLASS_MAINTENANCE),
    ],
)
def test_inflected_permit_wording_is_classified(description, system_type, classification):
    (rec,) = normalize_permit({"description": description, "final_date": "2019-05-01"})
    assert rec.system_type == system_type
    assert rec.classification == classification


def test_owner_statement_with_year():
    rec = normalize_owner_statement("hvac", "replaced", 2016)
    assert rec.provenance == PROVENANCE_OWNER
    assert rec.classification == CLASS_REPLACEMENT
    assert rec.year == 2016
    assert rec.month_known is False


def test_original_statement_falls_back_to_construction_year():
    rec = normalize_owner_statement("roof", "original", None, construction_year=1998)
    assert rec.classification == CLASS_INSTALL
    assert rec.year == 1998


@pytest.mark.parametrize(
    "status,year",
    [("replaced", None), ("unknown", ""), ("sometime", 2010)],
)
def test_vague_statements_are_rejected(status, year):
    with pytest.raises(VagueInstallStatementError):
        normalize_owner_statement("hvac", status, year)


def test_stored_rows_only_statements_become_evidence():
    assert normalize_system_record({"system_type": "hvac", "install_source": "permit_verified", "install_year": 2016}) is None
    assert normalize_system_record({"system_type": "hvac", "install_source": "heuristic", "install_year": 2008}) is None

    rec = normalize_system_record(
        {"system_type": "hvac", "install_source": "owner_reported", "replacement_status": "replaced",
         "install_year": 2014, "install_month": 6}
    )
    assert rec is not None
    assert rec.effective_date == date(2014, 6, 1)
    assert rec.month_known is True


def test_maintenance_event_normalization():
    ev = normalize_maintenance_event({"system_type": "hvac", "performed_on": "2024-01-15"})
    assert ev is not None
    assert ev.performed_on == date(2024, 1, 15)

    assert normalize_maintenance_event({"system_type": "hvac", "description": "filter"}) is None

    with pytest.raises(UnknownSystemTypeError):
        normalize_maintenance_event({"system_type": "sauna", "performed_on": "2024-01-15"})
