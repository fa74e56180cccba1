"""
Distribution sampling over numeric spans.

Shared by the continuous and date generators; dates are sampled as
integer day numbers.
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from ..config import Distribution
from ..exceptions import ConstraintViolationError
from ..parsing.notation import Interval

# Gompertz shape (eta) and rate (b) over the normalized position
GOMPERTZ_SHAPE = 0.1
GOMPERTZ_RATE = 0.01

# Width used in place of an infinite bound
OPEN_SPAN = 100.0


def gompertz_draws(rng: np.random.Generator, n: int) -> np.ndarray:
    """Inverse-transform Gompertz draws, unbounded above."""
    u = rng.uniform(0.0, 1.0, n)
    return (1.0 / GOMPERTZ_RATE) * np.log(1.0 - (GOMPERTZ_RATE / GOMPERTZ_SHAPE) * np.log(1.0 - u))


def gompertz_positions(rng: np.random.Generator, n: int) -> np.ndarray:
    """Positions in [0, 1] with hazard increasing toward 1."""
    return np.clip(gompertz_draws(rng, n), 0.0, 1.0)


def gompertz_rescaled(rng: np.random.Generator, lo: float, hi: float, n: int) -> np.ndarray:
    """
    Gompertz draws divided by their maximum and mapped onto [lo, hi].

    Follow-up offsets use this rather than the clipped positions: the
    largest draw lands on ``hi`` and the rest keep their relative spread.
    """
    draws = gompertz_draws(rng, n)
    if n == 0 or draws.max() <= 0:
        return np.full(n, lo)
    return lo + draws / draws.max() * (hi - lo)


def span_bounds(interval: Interval, integer: bool) -> Tuple[float, float]:
    """
    Closed sampling bounds of an interval.

    Raises:
        ConstraintViolationError: if no value survives the inclusivity
            adjustment, e.g. ``(1,2)`` sampled as integers.
    """
    lo, hi = interval.numeric_bounds()
    if integer:
        if math.isfinite(lo):
            lo = math.ceil(lo) if interval.lower_inclusive else math.floor(lo) + 1
        if math.isfinite(hi):
            hi = math.floor(hi) if interval.upper_inclusive else math.ceil(hi) - 1
    else:
        if not interval.lower_inclusive and math.isfinite(lo):
            lo = float(np.nextafter(lo, np.inf))
        if not interval.upper_inclusive and math.isfinite(hi):
            hi = float(np.nextafter(hi, -np.inf))

    if lo > hi:
        raise ConstraintViolationError(
            f"Interval {interval.text!r} contains no {'integer ' if integer else ''}values to sample",
            parameter="interval",
            details={"expression": interval.text},
        )

    if math.isinf(lo) and math.isinf(hi):
        lo, hi = -OPEN_SPAN / 2, OPEN_SPAN / 2
    elif math.isinf(lo):
        lo = hi - OPEN_SPAN
    elif math.isinf(hi):
        hi = lo + OPEN_SPAN
    return float(lo), float(hi)


def sample_span(
    rng: np.random.Generator,
    lo: float,
    hi: float,
    n: int,
    distribution: Distribution = Distribution.UNIFORM,
    integer: bool = False,
    mean: Optional[float] = None,
    sd: Optional[float] = None,
    rate: Optional[float] = None,
) -> np.ndarray:
    """Draw ``n`` values in the closed span [lo, hi]."""
    span = hi - lo
    if distribution == Distribution.UNIFORM:
        if integer:
            return rng.integers(int(lo), int(hi) + 1, size=n).astype(float)
        return rng.uniform(lo, hi, n) if span > 0 else np.full(n, lo)

    if distribution == Distribution.GOMPERTZ:
        values = lo + gompertz_positions(rng, n) * span
    elif distribution == Distribution.EXPONENTIAL:
        if rate is None or rate <= 0:
            rate = 1.0 / (span / 3.0) if span > 0 else 1.0
        values = lo + np.minimum(rng.exponential(1.0 / rate, n), span)
    elif distribution == Distribution.NORMAL:
        centre = mean if mean is not None else lo + span / 2.0
        spread = sd if sd is not None else span / 6.0
        values = np.clip(rng.normal(centre, max(spread, 0.0), n), lo, hi)
    else:
        raise ValueError(f"Unsupported distribution: {distribution}")

    if integer:
        values = np.clip(np.round(values), lo, hi)
    return values


def sample_intervals(
    rng: np.random.Generator,
    intervals: Sequence[Interval],
    n: int,
    distribution: Distribution = Distribution.UNIFORM,
    integer: bool = False,
    **params,
) -> np.ndarray:
    """Draw from one or more intervals, choosing each row's interval by width."""
    bounds = [span_bounds(i, integer) for i in intervals]
    if len(bounds) == 1:
        lo, hi = bounds[0]
        return sample_span(rng, lo, hi, n, distribution, integer, **params)

    widths = np.array([hi - lo for lo, hi in bounds], dtype=float)
    weights = widths / widths.sum() if widths.sum() > 0 else np.full(len(bounds), 1.0 / len(bounds))
    which = rng.choice(len(bounds), size=n, p=weights)
    values = np.empty(n, dtype=float)
    for index, (lo, hi) in enumerate(bounds):
        rows = which == index
        values[rows] = sample_span(rng, lo, hi, int(rows.sum()), distribution, integer, **params)
    return values
