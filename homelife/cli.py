from __future__ import annotations

import argparse
import logging
from datetime import date, datetime
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

from homelife.core.config import load_config, merge_config
from homelife.core.contract import HAZARD_MODEL_VERSION
from homelife.core.delta import (
    DeltaConfig,
    compute_delta_lines,
    load_snapshot,
    previous_confidence,
    save_snapshot,
    snapshot_from_outlook,
)
from homelife.core.errors import HomeLifeError
from homelife.core.pipeline import JsonFileRecordStore, evaluate_from_store
from homelife.report.json_report import write_json_report
from homelife.report.pdf_report import write_pdf_report
from homelife.schema_constants import SCHEMA_VERSION

try:
    HOMELIFE_PACKAGE_VERSION = version("homelife")
except PackageNotFoundError:
    HOMELIFE_PACKAGE_VERSION = "dev"

# Keep naming explicit: decision engine version vs package version.
HOMELIFE_DECISION_VERSION = HOMELIFE_PACKAGE_VERSION

logger = logging.getLogger(__name__)


def _console_safe(s: str) -> str:
    """
    Windows PowerShell can choke on certain Unicode chars (e.g., arrows).
    Keep console output ASCII-safe while leaving PDF output untouched.
    """
    return (
        str(s)
        .replace("→", "->")
        .replace("–", "-")
        .replace("—", "-")
        .replace("•", "-")
        .replace("·", "|")
    )


def _require_existing_file(path: Path, label: str) -> None:
    if not path.exists():
        raise FileNotFoundError(f"{label} not found: {path}")
    if path.is_dir():
        raise IsADirectoryError(f"{label} is a directory, expected a file: {path}")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="homelife", description="HomeLife — home system lifecycle & capital outlook")

    p.add_argument("--input", default=None, help="Path to home bundle JSON (defaults from config or built-in)")
    p.add_argument("--out", default=None, help="Output PDF path (defaults from config or built-in)")
    p.add_argument("--snapshot", default=None, help="Snapshot CSV path for change tracking (defaults from config or built-in)")
    p.add_argument("--config", default=None, help="Path to config TOML (optional)")

    p.add_argument("--as-of", dest="as_of", default=None, help="Evaluation date YYYY-MM-DD (default: today)")
    p.add_argument("--advisor-state", dest="advisor_state", default=None,
                   help="PASSIVE | OBSERVING | ENGAGED | DECISION | EXECUTION")
    p.add_argument("--systems", default=None, help="Comma-separated system types to evaluate (default: all found)")
    p.add_argument("--confidence-change", dest="confidence_change", type=float, default=None,
                   help="Delta trigger: confidence change")
    p.add_argument("--strict", action="store_true", help="Fail on the first rejected input row")
    p.add_argument("--log-level", dest="log_level", default="WARNING", help="Logging level (default: WARNING)")

    p.add_argument(
        "--json-out",
        "--json",
        dest="json_out",
        default=None,
        help="Optional JSON report output path",
    )

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    _setup_logging(args.log_level)

    file_cfg = load_config(args.config)

    # Only keys the user actually provided override the file config.
    cli_explicit: dict[str, Any] = {}
    for name in ("input", "out", "snapshot", "json_out", "as_of", "advisor_state", "systems", "confidence_change"):
        v = getattr(args, name, None)
        if v is not None:
            cli_explicit[name] = v

    cfg = merge_config(file_cfg, cli_explicit)

    data_path = Path(cfg.input)
    out_pdf = Path(cfg.out)
    snapshot_path = Path(cfg.snapshot)
    json_out_path = Path(cfg.json_out) if cfg.json_out else None

    # ---- Fail fast: missing input should be explicit ----
    try:
        _require_existing_file(data_path, "Input bundle")
    except (FileNotFoundError, IsADirectoryError) as e:
        print(f"ERROR: {e}")
        return 2

    try:
        as_of = date.fromisoformat(cfg.as_of) if cfg.as_of else date.today()
    except ValueError:
        print(f"ERROR: invalid --as-of date (expected YYYY-MM-DD): {cfg.as_of}")
        return 2

    out_pdf.parent.mkdir(parents=True, exist_ok=True)
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    if json_out_path is not None:
        json_out_path.parent.mkdir(parents=True, exist_ok=True)

    prev_snap = load_snapshot(snapshot_path)

    try:
        ev = evaluate_from_store(
            JsonFileRecordStore(data_path),
            data_path.stem,
            as_of=as_of,
            timeout=cfg.fetch_timeout,
            advisor_state=cfg.advisor_state,
            systems=cfg.systems or None,
            previous_confidence=previous_confidence(prev_snap),
            strict=args.strict,
        )
    except HomeLifeError as e:
        print(f"ERROR: {_console_safe(str(e))}")
        return 2

    curr_snap = snapshot_from_outlook(ev.outlook)
    delta_lines = compute_delta_lines(prev_snap, curr_snap, cfg=DeltaConfig(confidence_change=cfg.confidence_change))

    # Save snapshot AFTER computing delta (so "prev" truly means last run)
    save_snapshot(curr_snap, snapshot_path)

    generated_at = datetime.now().strftime("%Y-%m-%d %H:%M")
    run_config = {
        "config": str(args.config or ""),
        "schema": SCHEMA_VERSION,
        "hazard_model": HAZARD_MODEL_VERSION,
        "advisor_state": ev.advisor_state,
        "version": HOMELIFE_DECISION_VERSION,
    }

    write_pdf_report(
        out_path=out_pdf,
        ev=ev,
        delta_lines=delta_lines,
        generated_at=generated_at,
        notes=ev.issues,
        run_config=run_config,
    )

    if json_out_path:
        write_json_report(
            json_out_path,
            ev,
            generated_at=generated_at,
            delta_lines=delta_lines,
            notes=ev.issues,
            run_config=run_config,
        )

    logger.info("Reports written for home %s", ev.home_id)

    # Prints only at main
    print(f"Report generated: {out_pdf.resolve()}")
    print(f"Snapshot saved:  {snapshot_path.resolve()}")
    print(f"Home Verdict:    {_console_safe(ev.verdict)}")
    print(f"Focus:           {ev.narrative.priority.value} | {ev.narrative.dominant_system_name or '-'}")
    print(f"Health Score:    {ev.health_score}")

    for h in ev.exposure.horizons:
        print(f"Exposure {h.years:>2}y:    ${h.low:,} - ${h.high:,}")

    if delta_lines:
        print("Key Changes:")
        for d in delta_lines:
            print(f" - {_console_safe(d)}")

    if ev.issues:
        print("Data Notes:")
        for n in ev.issues:
            print(f" - {_console_safe(n)}")

    if json_out_path:
        print(f"JSON saved:      {json_out_path.resolve()}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
