"""
Garbage (out-of-range) value injection.

Low garbage is applied first, then high garbage on the remaining rows, so
the two sets never overlap. Only rows that are neither true-NA nor
missing-code rows are eligible. Injected values are rounded for
integer-like outputs but never clipped.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from ..config import GarbageSpec
from .base import row_count
from .sampling import sample_span, span_bounds

logger = logging.getLogger(__name__)


def apply_garbage(
    values: np.ndarray,
    eligible: np.ndarray,
    rng: np.random.Generator,
    low: Optional[GarbageSpec] = None,
    high: Optional[GarbageSpec] = None,
    integer: bool = False,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Overwrite a fraction of eligible rows with out-of-range values.

    Args:
        values: Float values (day numbers for dates); not modified.
        eligible: Rows that may receive garbage.
        rng: Random stream of the calling generator.
        low: Below-range garbage request.
        high: Above-range garbage request.
        integer: Round injected values.

    Returns:
        Tuple of (new values, garbage mask).
    """
    out = np.array(values, dtype=float, copy=True)
    garbage = np.zeros(len(out), dtype=bool)
    n = len(out)

    for side, spec in (("garbage_low", low), ("garbage_high", high)):
        if spec is None:
            continue
        spec.validate(side)
        available = np.flatnonzero(eligible & ~garbage)
        count = min(row_count(n, spec.proportion), len(available))
        if count < row_count(n, spec.proportion):
            logger.warning("%s capped at %d rows: not enough eligible rows", side, count)
        if count == 0:
            continue
        rows = rng.choice(available, size=count, replace=False)
        lo, hi = span_bounds(spec.interval, integer)
        out[rows] = sample_span(rng, lo, hi, count, integer=integer)
        garbage[rows] = True

    return out, garbage
