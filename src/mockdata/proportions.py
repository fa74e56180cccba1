"""
Proportion Resolver

Derives a probability vector over a category set. Priority:
explicit caller proportions, then metadata proportions, then uniform.
"""

import logging
from typing import Any, Hashable, Mapping, Optional, Sequence, Union

import numpy as np

from .exceptions import ProportionCoverageError

logger = logging.getLogger(__name__)

PROPORTION_TOLERANCE = 0.01

ExplicitProportions = Union[Mapping[Any, float], Sequence[float]]


def normalize_key(key: Any) -> Hashable:
    """Category key as a code string: 1, 1.0 and "1" all map to "1"."""
    if isinstance(key, bool):
        return str(key)
    if isinstance(key, (int, np.integer)):
        return str(int(key))
    if isinstance(key, (float, np.floating)) and float(key).is_integer():
        return str(int(key))
    if isinstance(key, str):
        return key.strip()
    return key


def _check_total(
    weights: np.ndarray,
    source: str,
    tolerance: float,
    variable: Optional[str],
) -> np.ndarray:
    if np.any(weights < 0) or not np.all(np.isfinite(weights)):
        raise ProportionCoverageError(
            f"{source} proportions must be finite and non-negative",
            variable=variable,
            details={"source": source},
        )
    total = float(weights.sum())
    if abs(total - 1.0) > tolerance:
        raise ProportionCoverageError(
            f"{source} proportions sum to {total:.4f}, beyond tolerance {tolerance} of 1",
            variable=variable,
            details={"source": source, "total": total},
        )
    if not np.isclose(total, 1.0):
        logger.warning("Renormalizing %s proportions of %r from %.4f", source, variable, total)
    return weights / total


def resolve_proportions(
    categories: Sequence[Hashable],
    explicit: Optional[ExplicitProportions] = None,
    metadata: Optional[Mapping[Hashable, float]] = None,
    tolerance: float = PROPORTION_TOLERANCE,
    variable: Optional[str] = None,
) -> np.ndarray:
    """
    Probability vector aligned with ``categories``.

    Args:
        categories: Ordered category set.
        explicit: Caller proportions, a mapping that must cover every
            category, or a sequence of the same length.
        metadata: Per-category proportions summed from the details table.
            Categories without an entry count as 0.
        tolerance: Allowed deviation of the total from 1 before failing.
        variable: Variable name for error context.

    Raises:
        ProportionCoverageError: on missing categories or a total beyond tolerance.
    """
    n_categories = len(categories)
    if n_categories == 0:
        raise ProportionCoverageError("No categories to assign proportions to", variable=variable)

    if explicit is not None:
        if isinstance(explicit, Mapping):
            given = {normalize_key(k): float(v) for k, v in explicit.items()}
            keys = [normalize_key(c) for c in categories]
            absent = [str(c) for c, k in zip(categories, keys) if k not in given]
            if absent:
                raise ProportionCoverageError(
                    f"Explicit proportions omit categories: {absent}",
                    variable=variable,
                    missing_categories=absent,
                )
            unknown = sorted(str(k) for k in set(given) - set(keys))
            if unknown:
                raise ProportionCoverageError(
                    f"Explicit proportions name unknown categories: {unknown}",
                    variable=variable,
                    details={"unknown_categories": unknown},
                )
            weights = np.array([given[k] for k in keys], dtype=float)
        else:
            weights = np.asarray(list(explicit), dtype=float)
            if len(weights) != n_categories:
                raise ProportionCoverageError(
                    f"Expected {n_categories} explicit proportions, got {len(weights)}",
                    variable=variable,
                )
        return _check_total(weights, "explicit", tolerance, variable)

    if metadata:
        weights = np.array([float(metadata.get(c, 0.0)) for c in categories], dtype=float)
        return _check_total(weights, "metadata", tolerance, variable)

    return np.full(n_categories, 1.0 / n_categories)
