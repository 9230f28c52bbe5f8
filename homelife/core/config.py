from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib  # py3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore


# ----------------------------
# Primary config object
# ----------------------------

@dataclass(frozen=True)
class HomeLifeConfig:
    """
    Single, flattened config object used by the CLI/runtime.

    Supports the simple style:
      [homelife]
      input, out, snapshot, json_out, as_of, advisor_state, systems, confidence_change

    Also supports structured style:
      [meta], [evaluation], [delta], [io]
    """
    schema_version: str = "1.0"

    # IO
    input: str = "data/home.json"
    out: str = "outputs/homelife_report.pdf"
    snapshot: str = "outputs/last_snapshot.csv"
    json_out: str = "outputs/homelife_report.json"

    # evaluation knobs
    as_of: str | None = None
    advisor_state: str = "ENGAGED"
    systems: tuple[str, ...] = ()

    # delta / io knobs
    confidence_change: float = 0.05
    fetch_timeout: float = 10.0


# ----------------------------
# Helpers
# ----------------------------

def _as_dict(x: Any) -> dict[str, Any]:
    return x if isinstance(x, dict) else {}


def _get(d: dict[str, Any], key: str, default: Any) -> Any:
    return d.get(key, default) if isinstance(d, dict) else default


def _coerce_float(x: Any, default: float) -> float:
    try:
        return float(x)
    except (TypeError, ValueError):
        return default


def _coerce_str(x: Any, default: str) -> str:
    if x is None:
        return default
    s = str(x)
    return s if s.strip() else default


def _coerce_opt_str(x: Any) -> str | None:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def _coerce_str_tuple(x: Any) -> tuple[str, ...]:
    if x is None:
        return ()
    if isinstance(x, str):
        items = x.split(",")
    elif isinstance(x, (list, tuple)):
        items = [str(i) for i in x]
    else:
        return ()
    return tuple(i.strip().lower() for i in items if i and i.strip())


# ----------------------------
# Load + merge
# ----------------------------

def load_config(path: str | Path | None) -> HomeLifeConfig:
    """
    Load TOML config. If missing/None, returns safe defaults.
    Never raises for missing file (config is optional).
    """
    if not path:
        return HomeLifeConfig()

    p = Path(path)
    if not p.exists():
        return HomeLifeConfig()

    data = tomllib.loads(p.read_text(encoding="utf-8"))

    hl = _as_dict(data.get("homelife", {}))

    meta = _as_dict(data.get("meta", {}))
    evaluation = _as_dict(data.get("evaluation", {}))
    delta = _as_dict(data.get("delta", {}))
    io = _as_dict(data.get("io", {}))

    d = HomeLifeConfig()
    return HomeLifeConfig(
        schema_version=_coerce_str(_get(meta, "schema_version", d.schema_version), d.schema_version),
        input=_coerce_str(_get(hl, "input", d.input), d.input),
        out=_coerce_str(_get(hl, "out", d.out), d.out),
        snapshot=_coerce_str(_get(hl, "snapshot", d.snapshot), d.snapshot),
        json_out=_coerce_str(_get(hl, "json_out", d.json_out), d.json_out),
        as_of=_coerce_opt_str(_get(hl, "as_of", _get(evaluation, "as_of", None))),
        advisor_state=_coerce_str(
            _get(hl, "advisor_state", _get(evaluation, "advisor_state", d.advisor_state)), d.advisor_state
        ).upper(),
        systems=_coerce_str_tuple(_get(hl, "systems", _get(evaluation, "systems", None))),
        confidence_change=_coerce_float(
            _get(hl, "confidence_change", _get(delta, "confidence_change", d.confidence_change)),
            d.confidence_change,
        ),
        fetch_timeout=_coerce_float(_get(io, "fetch_timeout", d.fetch_timeout), d.fetch_timeout),
    )


def merge_config(cfg: HomeLifeConfig, args: Any) -> HomeLifeConfig:
    """
    Merge CLI args over file config.
    `args` may be an argparse Namespace or a plain dict of explicit values.
    Only applies fields if the arg exists AND is not None/empty.
    """
    def raw(name: str) -> Any:
        if isinstance(args, dict):
            return args.get(name)
        return getattr(args, name, None)

    def pick_str(name: str, cur: str) -> str:
        v = raw(name)
        if v is not None and str(v).strip():
            return str(v).strip()
        return cur

    def pick_opt_str(name: str, cur: str | None) -> str | None:
        v = raw(name)
        if v is None:
            return cur
        return str(v).strip() or cur

    def pick_float(name: str, cur: float) -> float:
        v = raw(name)
        return cur if v is None else _coerce_float(v, cur)

    def pick_tuple(name: str, cur: tuple[str, ...]) -> tuple[str, ...]:
        v = _coerce_str_tuple(raw(name))
        return v or cur

    return HomeLifeConfig(
        schema_version=cfg.schema_version,
        input=pick_str("input", cfg.input),
        out=pick_str("out", cfg.out),
        snapshot=pick_str("snapshot", cfg.snapshot),
        json_out=pick_str("json_out", cfg.json_out),

        as_of=pick_opt_str("as_of", cfg.as_of),
        advisor_state=pick_str("advisor_state", cfg.advisor_state).upper(),
        systems=pick_tuple("systems", cfg.systems),

        confidence_change=pick_float("confidence_change", cfg.confidence_change),
        fetch_timeout=pick_float("fetch_timeout", cfg.fetch_timeout),
    )
