"""Descriptive statistics over score and compensation distributions.

All helpers accept plain sequences or NumPy arrays and return Python
scalars. Empty inputs yield 0 rather than NaN.
"""

import math
from collections import defaultdict
from typing import Iterable, Sequence

import numpy as np

from models.schemas.compensation_record import CompensationRecord

COMMON_PERCENTILES = (10, 25, 50, 75, 90)


def clamp01(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def round_half_up(value: float, ndigits: int = 0) -> float | int:
    """Round with halves going up (2.5 -> 3, -2.5 -> -2), unlike ``round``."""
    factor = 10 ** ndigits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if ndigits == 0 else rounded


def calculate_mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def calculate_std(values: Sequence[float], mean: float | None = None) -> float:
    """Population standard deviation (divides by n)."""
    if len(values) == 0:
        return 0.0
    if mean is None:
        mean = calculate_mean(values)
    arr = np.asarray(values, dtype=np.float64)
    return float(math.sqrt(np.mean((arr - mean) ** 2)))


def calculate_median(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    s = sorted(values)
    mid = len(s) // 2
    if len(s) % 2:
        return float(s[mid])
    return (s[mid - 1] + s[mid]) / 2


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Linear interpolation between order statistics.

    ``index = (n - 1) * p / 100``; when the upper rank falls past the end,
    the last element is returned.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    index = (n - 1) * (p / 100)
    lower = math.floor(index)
    upper = lower + 1
    weight = index - lower
    if upper >= n:
        return float(sorted_values[min(lower, n - 1)])
    return float(sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight)


def calculate_quartiles(values: Sequence[float]) -> list[float]:
    s = sorted(values)
    return [percentile(s, 25), percentile(s, 50), percentile(s, 75)]


def calculate_common_percentiles(values: Sequence[float]) -> dict[str, float]:
    s = sorted(values)
    return {f"p{p}": percentile(s, p) for p in COMMON_PERCENTILES}


def get_percentile_rank(values: Sequence[float], value: float) -> int:
    """Share of values strictly below ``value``, as a rounded percentage."""
    if len(values) == 0:
        return 0
    below = sum(1 for v in values if v < value)
    return round_half_up(below / len(values) * 100)


def build_histogram(values: Iterable[float], num_buckets: int = 10) -> list[dict]:
    """Equal-width buckets over [0, 1]; 1.0 lands in the last bucket."""
    buckets = [0] * num_buckets
    for v in values:
        idx = min(math.floor(clamp01(v) * num_buckets), num_buckets - 1)
        buckets[idx] += 1
    return [
        {"range": f"{i / num_buckets:.1f}-{(i + 1) / num_buckets:.1f}", "count": count}
        for i, count in enumerate(buckets)
    ]


def _group_by_experience(records: Iterable[CompensationRecord]) -> dict[int, list[float]]:
    grouped: dict[int, list[float]] = defaultdict(list)
    for r in records:
        xp = math.floor(r.total_xp or 0)  # completed years
        grouped[xp].append(r.compensation)
    return grouped


def average_by_experience(records: Iterable[CompensationRecord]) -> list[dict]:
    grouped = _group_by_experience(records)
    return [
        {"xp": xp, "average": round_half_up(calculate_mean(comps))}
        for xp, comps in sorted(grouped.items())
    ]


def median_by_experience(records: Iterable[CompensationRecord]) -> list[dict]:
    grouped = _group_by_experience(records)
    return [
        {"xp": xp, "median": round_half_up(calculate_median(comps))}
        for xp, comps in sorted(grouped.items())
    ]
