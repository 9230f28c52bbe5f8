from __future__ import annotations

import json
from pathlib import Path

import pytest

from homelife.tools import validate_json as vj

# Minimal schema that requires the fields we care about for this test.
MINIMAL_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["meta", "home", "systems", "notes"],
    "properties": {
        "meta": {
            "type": "object",
            "required": ["schema_version"],
            "properties": {"schema_version": {"type": "string"}},
        },
        "home": {"type": "object"},
        "systems": {"type": "array"},
        "notes": {"type": "array"},
    },
    "additionalProperties": True,
}


def _write_json(path: Path, obj: dict) -> None:
    path.write_text(json.dumps(obj, indent=2, allow_nan=False), encoding="utf-8")


def _report(schema_version: str) -> dict:
    return {"meta": {"schema_version": schema_version}, "home": {}, "systems": [], "notes": []}


def test_validate_json_accepts_matching_schema_version(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(vj, "_load_schema_text", lambda: json.dumps(MINIMAL_SCHEMA))

    p = tmp_path / "report.json"
    _write_json(p, _report(vj.EXPECTED_SCHEMA_VERSION))

    result = vj.validate_json(p)
    assert result.ok is True
    assert result.schema_version == vj.EXPECTED_SCHEMA_VERSION
    assert result.systems == 0


def test_validate_json_rejects_mismatched_schema_version(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(vj, "_load_schema_text", lambda: json.dumps(MINIMAL_SCHEMA))

    p = tmp_path / "report.json"
    _write_json(p, _report("v999"))

    with pytest.raises(vj.SchemaVersionMismatch):
        vj.validate_json(p)


def test_validate_json_requires_meta_schema_version(tmp_path: Path) -> None:
    p = tmp_path / "report.json"
    _write_json(p, {"meta": {}, "home": {}, "systems": [], "notes": []})

    with pytest.raises(vj.SchemaVersionMismatch, match="schema_version"):
        vj.validate_json(p)
