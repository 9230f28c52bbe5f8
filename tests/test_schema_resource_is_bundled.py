from __future__ import annotations

import importlib.resources as resources
import json

from homelife.schema_constants import SCHEMA_RESOURCE_NAME, SCHEMA_RESOURCE_PACKAGE, SCHEMA_VERSION


def test_schema_resource_is_bundled_and_readable() -> None:
    """
    Proves the JSON schema is actually shipped inside the package and readable via
    importlib.resources (works in editable installs AND wheels).
    """
    txt = (
        resources.files(SCHEMA_RESOURCE_PACKAGE)
        .joinpath(SCHEMA_RESOURCE_NAME)
        .read_text(encoding="utf-8")
    )
    assert len(txt) > 50
    schema = json.loads(txt)
    assert "$schema" in schema
    assert SCHEMA_VERSION in SCHEMA_RESOURCE_NAME
    assert set(schema["required"]) >= {"meta", "home", "systems", "exposure", "narrative"}
