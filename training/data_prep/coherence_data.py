#!/usr/bin/env python3
"""Population data preparation for the salary coherence model.

Cleans a raw salary export into the ``location,total_xp,compensation``
layout the backend reads, or generates a synthetic population when no
export is available (5 locations, 0-20 years, compensation linear in
experience plus a per-location offset).

Usage:
    python training/data_prep/coherence_data.py --synthetic 500
    python training/data_prep/coherence_data.py --raw exports/salaries.csv
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)

OUTPUT_PATH = Path(__file__).resolve().parent.parent / "data" / "coherence" / "population.csv"

SYNTHETIC_LOCATIONS = ["Paris", "Lyon", "Nantes", "Bordeaux", "Lille"]
BASE_COMPENSATION = 32000.0
PER_YEAR = 2500.0
PER_LOCATION = 4000.0


def generate_synthetic(n: int = 500, seed: int = 42, noise: float = 0.05) -> pd.DataFrame:
    """Synthetic population with a known linear structure."""
    rng = np.random.default_rng(seed)
    loc_idx = rng.integers(0, len(SYNTHETIC_LOCATIONS), size=n)
    xp = rng.uniform(0, 20, size=n).round(1)
    comp = BASE_COMPENSATION + PER_YEAR * xp + PER_LOCATION * loc_idx
    comp = comp * (1 + rng.normal(0, noise, size=n))
    return pd.DataFrame({
        "location": [SYNTHETIC_LOCATIONS[i] for i in loc_idx],
        "total_xp": xp,
        "compensation": comp.round(0),
    })


def clean_export(df: pd.DataFrame) -> pd.DataFrame:
    """Keep the three model columns, drop unusable rows."""
    df = df.rename(columns={"city": "location", "years_of_experience": "total_xp"})
    missing = {"location", "total_xp", "compensation"} - set(df.columns)
    if missing:
        raise ValueError(f"Export is missing columns: {sorted(missing)}")

    before = len(df)
    df = df[["location", "total_xp", "compensation"]].copy()
    df["location"] = df["location"].fillna("").astype(str).str.strip()
    df["total_xp"] = pd.to_numeric(df["total_xp"], errors="coerce")
    df["compensation"] = pd.to_numeric(df["compensation"], errors="coerce")
    df = df.dropna(subset=["compensation"])
    df = df[(df["compensation"] > 0) & ~(df["total_xp"] < 0)]
    logger.info("Kept %d / %d rows.", len(df), before)
    return df


def main() -> None:
    parser = argparse.ArgumentParser(description="Prepare the coherence population CSV")
    parser.add_argument("--raw", help="Raw salary export (CSV)")
    parser.add_argument("--synthetic", type=int, default=0, help="Generate N synthetic rows")
    parser.add_argument("--output", default=str(OUTPUT_PATH))
    args = parser.parse_args()

    if args.raw:
        df = clean_export(pd.read_csv(args.raw))
    elif args.synthetic:
        df = generate_synthetic(args.synthetic)
    else:
        parser.error("pass --raw or --synthetic")

    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)
    logger.info("Wrote %d rows to %s", len(df), out)


if __name__ == "__main__":
    main()
