from argparse import Namespace
from pathlib import Path

from homelife.core.config import HomeLifeConfig, load_config, merge_config


def test_missing_config_returns_defaults(tmp_path: Path):
    assert load_config(None) == HomeLifeConfig()
    assert load_config(tmp_path / "nope.toml") == HomeLifeConfig()


def test_simple_style_config(tmp_path: Path):
    p = tmp_path / "homelife.toml"
    p.write_text(
        """
[homelife]
input = "data/my_home.json"
as_of = "2024-06-01"
advisor_state = "decision"
systems = ["HVAC", "roof"]
confidence_change = 0.1
""",
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.input == "data/my_home.json"
    assert cfg.as_of == "2024-06-01"
    assert cfg.advisor_state == "DECISION"
    assert cfg.systems == ("hvac", "roof")
    assert cfg.confidence_change == 0.1
    assert cfg.out == HomeLifeConfig().out


def test_structured_style_config(tmp_path: Path):
    p = tmp_path / "homelife.toml"
    p.write_text(
        """
[meta]
schema_version = "2.0"

[evaluation]
advisor_state = "EXECUTION"
systems = "hvac, water_heater"

[delta]
confidence_change = "not-a-number"

[io]
fetch_timeout = 2.5
""",
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.schema_version == "2.0"
    assert cfg.advisor_state == "EXECUTION"
    assert cfg.systems == ("hvac", "water_heater")
    assert cfg.confidence_change == 0.05
    assert cfg.fetch_timeout == 2.5


def test_cli_values_override_file_values():
    base = HomeLifeConfig(input="a.json", advisor_state="ENGAGED", systems=("roof",))
    merged = merge_config(base, {"input": "b.json", "advisor_state": "passive", "systems": "hvac"})
    assert merged.input == "b.json"
    assert merged.advisor_state == "PASSIVE"
    assert merged.systems == ("hvac",)

    untouched = merge_config(base, Namespace(input=None, out="", systems=None))
    assert untouched == base
