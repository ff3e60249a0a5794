"""Population sources: where the observed compensation records come from.

The engine only needs ``list_all_compensation_records()``; it is called on
every (re)training and must reflect the population at call time.
"""

import logging
from pathlib import Path
from typing import Iterable, Protocol

import pandas as pd

from models.schemas.compensation_record import CompensationRecord

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["location", "total_xp", "compensation"]


class PopulationSource(Protocol):
    async def list_all_compensation_records(self) -> list[CompensationRecord]: ...


class InMemoryPopulation:
    def __init__(self, records: Iterable[CompensationRecord] = ()) -> None:
        self._records: list[CompensationRecord] = list(records)

    async def list_all_compensation_records(self) -> list[CompensationRecord]:
        return list(self._records)

    async def add_record(self, record: CompensationRecord) -> CompensationRecord:
        self._records.append(record)
        return record


class CsvPopulation:
    """Reads ``location,total_xp,compensation`` rows, re-read on every call."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def list_all_compensation_records(self) -> list[CompensationRecord]:
        return records_from_frame(pd.read_csv(self.path))

    async def add_record(self, record: CompensationRecord) -> CompensationRecord:
        row = pd.DataFrame([record.model_dump()], columns=CSV_COLUMNS)
        row.to_csv(self.path, mode="a", header=not self.path.exists(), index=False)
        return record


def records_from_frame(df: pd.DataFrame) -> list[CompensationRecord]:
    """Convert a salary DataFrame to records, dropping rows without compensation."""
    missing = {"compensation"} - set(df.columns)
    if missing:
        raise ValueError(f"Population is missing columns: {sorted(missing)}")

    df = df.dropna(subset=["compensation"])
    dropped = (df["compensation"] < 0).sum()
    if dropped:
        logger.warning("Dropping %d rows with negative compensation", dropped)
    df = df[df["compensation"] >= 0]

    records: list[CompensationRecord] = []
    for row in df.itertuples(index=False):
        location = getattr(row, "location", None)
        total_xp = getattr(row, "total_xp", None)
        records.append(CompensationRecord(
            location=str(location) if isinstance(location, str) and location else None,
            total_xp=float(total_xp) if total_xp is not None and not pd.isna(total_xp) else None,
            compensation=float(row.compensation),
        ))
    return records


def get_population_source(csv_path: str = "") -> PopulationSource:
    if csv_path:
        logger.info("Using CSV population at %s", csv_path)
        return CsvPopulation(csv_path)
    logger.info("Using in-memory population")
    return InMemoryPopulation()
