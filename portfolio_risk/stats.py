"""Population statistics shared by every risk calculator."""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

ReturnSeries = Union[Sequence[float], np.ndarray]


def as_array(series: ReturnSeries) -> np.ndarray:
    """Return a float copy of *series* so callers never mutate the input."""
    return np.array(series, dtype=float)


def mean(series: ReturnSeries) -> float:
    """Arithmetic mean, 0 for an empty series."""
    arr = as_array(series)
    if arr.size == 0:
        return 0.0
    return float(arr.mean())


def variance(series: ReturnSeries) -> float:
    """Population variance (divisor N), 0 for an empty or singleton series."""
    arr = as_array(series)
    if arr.size < 2:
        return 0.0
    mu = mean(arr)
    return float(np.mean((arr - mu) ** 2))


def stddev(series: ReturnSeries) -> float:
    """Population standard deviation."""
    return float(np.sqrt(variance(series)))
