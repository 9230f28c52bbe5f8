import json
from datetime import date
from pathlib import Path

import pytest

from homelife.core.region import PropertyContext, RegionContext, region_context_from_home


@pytest.fixture
def as_of() -> date:
    return date(2024, 6, 1)


@pytest.fixture
def moderate_region() -> RegionContext:
    return region_context_from_home({"climate_zone": "moderate"})


@pytest.fixture
def property_ctx() -> PropertyContext:
    return PropertyContext(construction_year=1995)


@pytest.fixture
def home_bundle() -> dict:
    """
    A small but complete home bundle:
      - HVAC replaced under a finalized permit (plus a stale owner statement)
      - roof: original, owner reported
      - water heater: no evidence at all (heuristic)
    """
    return {
        "home": {
            "home_id": "home-1",
            "city": "Raleigh",
            "state": "NC",
            "year_built": 1995,
            "roof_material": "asphalt",
            "water_heater_type": "tank",
            "data_completeness": 0.6,
        },
        "systems": [
            {"system_type": "hvac", "install_source": "owner_reported",
             "replacement_status": "replaced", "install_year": 2012},
            {"system_type": "roof", "install_source": "owner_reported",
             "replacement_status": "original", "install_year": 1995},
            {"system_type": "water_heater", "install_source": "heuristic", "install_year": 2008},
        ],
        "permits": [
            {"source": "generic", "permit_number": "M-2016-0042", "permit_type": "mechanical",
             "description": "CHANGEOUT A/C SYSTEM SAME LOCATION", "issue_date": "2016-04-02",
             "final_date": "2016-05-10", "valuation": 9800},
        ],
        "maintenance": [
            {"system_type": "hvac", "performed_on": "2024-01-15", "description": "Annual service"},
        ],
    }


@pytest.fixture
def bundle_path(tmp_path: Path, home_bundle: dict) -> Path:
    p = tmp_path / "home-1.json"
    p.write_text(json.dumps(home_bundle), encoding="utf-8")
    return p
