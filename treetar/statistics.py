"""Basic statistical properties: mean, standard deviation and MAD."""

from __future__ import annotations

import math
from collections.abc import Sequence


def _float_sum(values) -> float:
    total = 0.0
    for v in values:
        total += v
    return total


def mean(data: Sequence[int]) -> float | None:
    """Arithmetic mean, or None for empty data."""
    if not data:
        return None
    return float(sum(data)) / len(data)


def std_deviation(data: Sequence[int]) -> float | None:
    """Population standard deviation, or None for empty data."""
    data_mean = mean(data)
    if data_mean is None:
        return None
    variance = _float_sum((data_mean - float(v)) ** 2 for v in data) / len(data)
    return math.sqrt(variance)


def _middle(values: Sequence) -> float:
    half = len(values) // 2
    if len(values) % 2 == 1:
        return float(values[half])
    return 0.5 * (values[half - 1] + values[half])


def median_absolute_deviation(data: Sequence[int]) -> tuple[float, float] | None:
    """Return ``(median, MAD)``; ``data`` is assumed to be sorted already."""
    if not data:
        return None
    median_data = _middle(data)
    deviations = sorted(abs(float(v) - median_data) for v in data)
    return median_data, _middle(deviations)