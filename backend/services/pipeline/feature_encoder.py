"""Feature encoding for the compensation regression model.

A profile is encoded as ``one_hot(location) ++ [normalized(total_xp)]``.
The vocabulary and ranges are learned from the training population and
travel inside the model snapshot; they are never global.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from models.schemas.compensation_record import CompensationRecord

FALLBACK_LOCATION = "other"


@dataclass(frozen=True)
class NormalizationRange:
    """Per-feature (min, max) learned at training time."""
    min: float = 0.0
    max: float = 1.0

    def as_tuple(self) -> tuple[float, float]:
        return (self.min, self.max)


@dataclass(frozen=True)
class LocationVocabulary:
    """Ordered location vocabulary. Index 0 is always the fallback entry."""
    locations: tuple[str, ...] = (FALLBACK_LOCATION,)

    def __post_init__(self) -> None:
        if not self.locations or self.locations[0] != FALLBACK_LOCATION:
            raise ValueError("vocabulary must start with the fallback location")

    def __len__(self) -> int:
        return len(self.locations)

    def index_of(self, location: str | None) -> int:
        """Vocabulary index of a location; unknown or empty maps to fallback."""
        if not location:
            return 0
        try:
            return self.locations.index(location)
        except ValueError:
            return 0


def build_vocabulary(records: Iterable[CompensationRecord]) -> LocationVocabulary:
    """Fallback first, then non-empty locations in discovery order."""
    seen: dict[str, None] = {}
    for r in records:
        if r.location and r.location != FALLBACK_LOCATION:
            seen.setdefault(r.location, None)
    return LocationVocabulary((FALLBACK_LOCATION, *seen))


def make_range(values: Sequence[float]) -> NormalizationRange:
    """Min/max range; zero-width ranges are widened by one unit."""
    if len(values) == 0:
        return NormalizationRange(0.0, 1.0)
    lo = float(min(values))
    hi = float(max(values))
    if lo == hi:
        return NormalizationRange(lo, lo + 1.0)
    return NormalizationRange(lo, hi)


def normalize(value: float, rng: NormalizationRange) -> float:
    """Map value into [0, 1]; out-of-range values saturate."""
    if rng.max == rng.min:
        return 0.0
    z = (value - rng.min) / (rng.max - rng.min)
    return max(0.0, min(1.0, z))


def denormalize(value: float, rng: NormalizationRange) -> float:
    return value * (rng.max - rng.min) + rng.min


def one_hot(index: int, size: int) -> np.ndarray:
    vec = np.zeros(size, dtype=np.float32)
    vec[index] = 1.0
    return vec


def encode(
    location: str | None,
    total_xp: float | None,
    vocabulary: LocationVocabulary,
    xp_range: NormalizationRange,
) -> np.ndarray:
    """Encode one profile as a float32 vector of length ``len(vocabulary) + 1``."""
    loc = one_hot(vocabulary.index_of(location), len(vocabulary))
    xp = normalize(total_xp if total_xp is not None else 0.0, xp_range)
    return np.append(loc, np.float32(xp))


def encode_batch(
    records: Sequence[CompensationRecord],
    vocabulary: LocationVocabulary,
    xp_range: NormalizationRange,
) -> np.ndarray:
    if not records:
        return np.zeros((0, len(vocabulary) + 1), dtype=np.float32)
    return np.stack([encode(r.location, r.total_xp, vocabulary, xp_range) for r in records])


def encode_targets(
    records: Sequence[CompensationRecord],
    output_range: NormalizationRange,
) -> np.ndarray:
    return np.array(
        [[normalize(r.compensation, output_range)] for r in records],
        dtype=np.float32,
    ).reshape(-1, 1)
