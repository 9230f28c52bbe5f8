from __future__ import annotations

import argparse
import json
import random
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path

# ----------------------------
# Profile catalog
# ----------------------------

CITIES = [
    ("Miami", "FL"),
    ("Tampa", "FL"),
    ("Phoenix", "AZ"),
    ("Minneapolis", "MN"),
    ("San Diego", "CA"),
    ("Raleigh", "NC"),
]

PERMIT_TEXT = {
    "hvac": "CHANGEOUT A/C SYSTEM SAME LOCATION 3 TON",
    "roof": "REROOF ASPHALT SHINGLE TEAR OFF",
    "water_heater": "REPLACE 50 GAL WATER HEATER",
}

PERMIT_TYPE = {"hvac": "mechanical", "roof": "roofing", "water_heater": "plumbing"}


@dataclass(frozen=True)
class AgeProfile:
    # age range (years) of each system relative to as_of
    age_lo: int
    age_hi: int
    permit_rate: float        # chance a replaced system has a finalized permit
    owner_rate: float         # chance the owner reported an install year
    service_rate: float       # chance of a maintenance visit in the last year


PROFILE_PRESETS: dict[str, AgeProfile] = {
    "healthy": AgeProfile(age_lo=1, age_hi=6, permit_rate=0.8, owner_rate=0.5, service_rate=0.9),
    "aging": AgeProfile(age_lo=12, age_hi=22, permit_rate=0.2, owner_rate=0.6, service_rate=0.2),
    "mixed": AgeProfile(age_lo=2, age_hi=20, permit_rate=0.5, owner_rate=0.5, service_rate=0.5),
}


# ----------------------------
# Helpers
# ----------------------------

def parse_day(s: str) -> date:
    return date.fromisoformat(s)


def _iso(d: date) -> str:
    return d.isoformat()


def _random_day(rng: random.Random, year: int) -> date:
    return date(year, 1, 1) + timedelta(days=rng.randrange(0, 365))


def make_home(rng: random.Random, as_of: date, profile: AgeProfile) -> dict:
    city, state = rng.choice(CITIES)
    year_built = as_of.year - rng.randint(max(profile.age_hi, 8), max(profile.age_hi, 8) + 25)
    return {
        "home_id": f"home-{rng.randrange(1000, 9999)}",
        "city": city,
        "state": state,
        "year_built": year_built,
        "roof_material": rng.choice(["asphalt", "tile", "metal"]),
        "water_heater_type": rng.choice(["tank", "tankless"]),
        "data_completeness": round(rng.uniform(0.3, 0.9), 2),
    }


def make_system_evidence(
    rng: random.Random,
    system_type: str,
    as_of: date,
    home: dict,
    profile: AgeProfile,
) -> tuple[list[dict], list[dict]]:
    """Return (system rows, permit rows) for one system."""
    install_year = max(as_of.year - rng.randint(profile.age_lo, profile.age_hi), int(home["year_built"]))
    replaced = install_year > int(home["year_built"])

    systems: list[dict] = []
    permits: list[dict] = []

    if replaced and rng.random() < profile.permit_rate:
        issued = _random_day(rng, install_year)
        permits.append(
            {
                "source": "generic",
                "permit_number": f"P{install_year}-{rng.randrange(10000, 99999)}",
                "permit_type": PERMIT_TYPE[system_type],
                "description": PERMIT_TEXT[system_type],
                "status": "Finaled",
                "issue_date": _iso(issued),
                "final_date": _iso(min(issued + timedelta(days=rng.randint(5, 40)), as_of)),
                "valuation": rng.randrange(4000, 25000, 500),
            }
        )
    elif rng.random() < profile.owner_rate:
        # Owners round: sometimes off by a year from the true install.
        stated = install_year + rng.choice([0, 0, 0, -1, 1])
        systems.append(
            {
                "system_type": system_type,
                "install_source": "owner_reported",
                "replacement_status": "replaced" if replaced else "original",
                "install_year": min(stated, as_of.year) if replaced else int(home["year_built"]),
            }
        )

    return systems, permits


def make_maintenance(rng: random.Random, system_type: str, as_of: date, profile: AgeProfile) -> list[dict]:
    if rng.random() >= profile.service_rate:
        return []
    performed = as_of - timedelta(days=rng.randint(20, 330))
    return [{"system_type": system_type, "performed_on": _iso(performed), "description": "Annual service"}]


def generate_bundle(
    out_path: Path,
    as_of: date,
    systems: list[str],
    seed: int | None,
    profile: str,
    print_summary: bool,
) -> dict:
    if profile not in PROFILE_PRESETS:
        raise ValueError(f"Unknown profile: {profile}")

    rng = random.Random(seed)
    preset = PROFILE_PRESETS[profile]

    if profile == "mixed":
        # each system draws its own profile
        picks = {s: PROFILE_PRESETS[rng.choice(["healthy", "aging"])] for s in systems}
    else:
        picks = {s: preset for s in systems}

    home = make_home(rng, as_of, preset)
    bundle: dict = {"home": home, "systems": [], "permits": [], "maintenance": []}

    for s in systems:
        rows, permits = make_system_evidence(rng, s, as_of, home, picks[s])
        bundle["systems"].extend(rows)
        bundle["permits"].extend(permits)
        bundle["maintenance"].extend(make_maintenance(rng, s, as_of, picks[s]))

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(bundle, indent=2), encoding="utf-8")

    if print_summary:
        print(f"Wrote {out_path}")
        print(f"Home: {home['home_id']} ({home['city']}, {home['state']}, built {home['year_built']})")
        print(
            f"Systems: {len(systems)} | Permits: {len(bundle['permits'])} | "
            f"Owner rows: {len(bundle['systems'])} | Maintenance: {len(bundle['maintenance'])}"
        )
        print(f"Profile: {profile} | Seed: {seed}")

    return bundle


# ----------------------------
# CLI
# ----------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Generate a synthetic home bundle (home, systems, permits, maintenance) for HomeLife demos."
    )
    p.add_argument("--out", default="data/home.json",
                   help="Output bundle path (default: data/home.json)")
    p.add_argument("--as-of", default="2026-01-01",
                   help="Reference date the bundle is generated against (YYYY-MM-DD)")
    p.add_argument("--systems", default="hvac,roof,water_heater",
                   help="Comma-separated system types")
    p.add_argument("--seed", type=int, default=None,
                   help="Random seed for reproducible output")
    p.add_argument("--profile", choices=sorted(PROFILE_PRESETS), default="mixed",
                   help="Age profile for the generated systems")
    p.add_argument("--print-summary", action="store_true",
                   help="Print a short summary after writing")
    return p


def main() -> None:
    args = build_parser().parse_args()

    systems = [s.strip().lower() for s in str(args.systems).split(",") if s.strip()]
    if not systems:
        raise SystemExit("--systems cannot be empty")
    unknown = [s for s in systems if s not in PERMIT_TEXT]
    if unknown:
        raise SystemExit(f"--systems: unsupported for generation: {unknown}")

    generate_bundle(
        out_path=Path(args.out),
        as_of=parse_day(args.as_of),
        systems=systems,
        seed=args.seed,
        profile=args.profile,
        print_summary=args.print_summary,
    )


if __name__ == "__main__":
    main()
