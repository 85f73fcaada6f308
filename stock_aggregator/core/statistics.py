"""Sample statistics over equal-length numeric sequences.

Degenerate input (empty, too short, mismatched lengths, zero variance) yields a
neutral ``0.0`` rather than an error or a NaN. Deviations are computed on values
divided by their largest magnitude, so finite input near the float limit cannot
overflow an intermediate sum or square.
"""

import math
from typing import Sequence


def _rescaled(values: Sequence[float]) -> tuple[float, list[float]]:
    """Return the largest magnitude and the values divided by it (all in [-1, 1])."""

    scale = max(abs(value) for value in values)
    if scale == 0.0 or not math.isfinite(scale):
        return scale, list(values)
    return scale, [value / scale for value in values]


def mean(values: Sequence[float]) -> float:
    """Return the arithmetic mean, or 0.0 for an empty sequence."""

    if not values:
        return 0.0
    try:
        return math.fsum(values) / len(values)
    except OverflowError:
        scale, scaled = _rescaled(values)
        return scale * (math.fsum(scaled) / len(scaled))


def _centred_cross_sum(xs: Sequence[float], ys: Sequence[float]) -> float:
    x_mean = mean(xs)
    y_mean = mean(ys)
    return math.fsum((x - x_mean) * (y - y_mean) for x, y in zip(xs, ys))


def sample_covariance(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Return the N-1 sample covariance, or 0.0 when it is undefined."""

    n = len(xs)
    if n < 2 or n != len(ys):
        return 0.0

    x_scale, x_scaled = _rescaled(xs)
    y_scale, y_scaled = _rescaled(ys)
    if x_scale == 0.0 or y_scale == 0.0:
        return 0.0

    # multiply one factor at a time: a zero covariance stays 0.0 instead of 0 * inf
    return ((_centred_cross_sum(x_scaled, y_scaled) / (n - 1)) * x_scale) * y_scale


def sample_standard_deviation(values: Sequence[float]) -> float:
    """Return the N-1 sample standard deviation, or 0.0 for fewer than two values."""

    n = len(values)
    if n <= 1:
        return 0.0

    first = values[0]
    if all(value == first for value in values):
        return 0.0

    scale, scaled = _rescaled(values)
    return scale * math.sqrt(_centred_cross_sum(scaled, scaled) / (n - 1))


def pearson_correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Return the Pearson coefficient clamped to [-1, 1].

    Returns 0.0 when either series is constant, the inputs are shorter than two
    values or of different lengths, or the result is not a finite number.
    """

    if len(xs) <= 1 or len(xs) != len(ys):
        return 0.0

    # the coefficient is scale-free, so it is computed on rescaled values only
    x_scale, x_scaled = _rescaled(xs)
    y_scale, y_scaled = _rescaled(ys)
    if not (math.isfinite(x_scale) and math.isfinite(y_scale)):
        return 0.0

    x_std = sample_standard_deviation(x_scaled)
    y_std = sample_standard_deviation(y_scaled)
    if x_std == 0.0 or y_std == 0.0:
        return 0.0

    coefficient = sample_covariance(x_scaled, y_scaled) / (x_std * y_std)
    if not math.isfinite(coefficient):
        return 0.0
    return max(-1.0, min(1.0, coefficient))
