"""
Output type coercion.

Maps a declared ``rType`` tag onto a closed set of value kinds and builds
the pandas representation for each. Missing values are always pandas NA
(or NaN/NaT for float and date kinds), never a sentinel string.
"""

import logging
from enum import Enum
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .config import VariableType

logger = logging.getLogger(__name__)


class ValueKind(str, Enum):
    """In-memory representation of a generated column."""

    INTEGER = "integer"
    DOUBLE = "double"
    CATEGORY = "factor"
    ORDINAL = "ordered"
    STRING = "character"
    BOOLEAN = "logical"
    DATE = "date"


TAG_ALIASES: Dict[str, ValueKind] = {
    "integer": ValueKind.INTEGER,
    "int": ValueKind.INTEGER,
    "double": ValueKind.DOUBLE,
    "numeric": ValueKind.DOUBLE,
    "float": ValueKind.DOUBLE,
    "factor": ValueKind.CATEGORY,
    "ordered": ValueKind.ORDINAL,
    "ordinal": ValueKind.ORDINAL,
    "character": ValueKind.STRING,
    "string": ValueKind.STRING,
    "logical": ValueKind.BOOLEAN,
    "boolean": ValueKind.BOOLEAN,
    "date": ValueKind.DATE,
}

DEFAULT_KIND = {
    VariableType.CATEGORICAL: ValueKind.CATEGORY,
    VariableType.CONTINUOUS: ValueKind.DOUBLE,
    VariableType.DATE: ValueKind.DATE,
}

ALLOWED_KINDS = {
    VariableType.CATEGORICAL: {
        ValueKind.CATEGORY,
        ValueKind.ORDINAL,
        ValueKind.STRING,
        ValueKind.BOOLEAN,
        ValueKind.INTEGER,
        ValueKind.DOUBLE,
    },
    VariableType.CONTINUOUS: {ValueKind.DOUBLE, ValueKind.INTEGER},
    VariableType.DATE: {ValueKind.DATE},
}

TRUE_TOKENS = {"1", "true", "t", "yes", "y"}
FALSE_TOKENS = {"0", "false", "f", "no", "n"}


def resolve_value_kind(tag: Optional[str], variable_type: VariableType, variable: str = "") -> ValueKind:
    """Value kind for a declared tag, falling back to the type default with a warning."""
    default = DEFAULT_KIND[variable_type]
    if tag is None or not str(tag).strip():
        return default
    kind = TAG_ALIASES.get(str(tag).strip().lower())
    if kind is None or kind not in ALLOWED_KINDS[variable_type]:
        logger.warning(
            "Unrecognized rType %r for %s variable %r, using %s",
            tag,
            variable_type.value,
            variable,
            default.value,
        )
        return default
    return kind


def _numeric_codes(values: Sequence[Optional[str]]) -> np.ndarray:
    out = np.full(len(values), np.nan)
    for i, value in enumerate(values):
        if value is not None:
            out[i] = float(value)
    return out


def codes_are_numeric(codes: Sequence[str]) -> bool:
    try:
        [float(c) for c in codes]
    except ValueError:
        return False
    return True


def coerce_codes(
    values: Sequence[Optional[str]],
    kind: ValueKind,
    categories: Sequence[str],
    variable: str = "",
) -> pd.Series:
    """
    Build a categorical column from code strings (None = missing).

    Code strings stay canonical: labels never replace them.
    """
    if kind in (ValueKind.INTEGER, ValueKind.DOUBLE) and not codes_are_numeric(categories):
        logger.warning("Codes of %r are not numeric, using factor", variable)
        kind = ValueKind.CATEGORY

    if kind == ValueKind.INTEGER:
        return pd.Series(pd.array(np.round(_numeric_codes(values)), dtype="Int64"), name=variable)
    if kind == ValueKind.DOUBLE:
        return pd.Series(_numeric_codes(values), dtype="float64", name=variable)
    if kind == ValueKind.STRING:
        return pd.Series(pd.array(list(values), dtype="string"), name=variable)
    if kind == ValueKind.BOOLEAN:
        flags = []
        for value in values:
            token = None if value is None else value.lower()
            flags.append(True if token in TRUE_TOKENS else False if token in FALSE_TOKENS else None)
        return pd.Series(pd.array(flags, dtype="boolean"), name=variable)

    dtype = pd.CategoricalDtype(categories=list(categories), ordered=kind == ValueKind.ORDINAL)
    return pd.Series(pd.Categorical(list(values), dtype=dtype), name=variable)


def coerce_numeric(values: np.ndarray, kind: ValueKind, variable: str = "") -> pd.Series:
    """Build a continuous column from floats (NaN = missing)."""
    if kind == ValueKind.INTEGER:
        return pd.Series(pd.array(np.round(values), dtype="Int64"), name=variable)
    return pd.Series(np.asarray(values, dtype="float64"), name=variable)
