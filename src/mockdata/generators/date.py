"""
Date Generator.

Dates are sampled as integer day numbers (days since 1970-01-01) and only
encoded at the end, so every source format decodes to the same calendar
dates for a given seed.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..coercion import ValueKind, resolve_value_kind
from ..config import (
    DetailRule,
    Distribution,
    GarbageSpec,
    SourceFormat,
    VariableDescriptor,
    VariableType,
    parse_distribution,
)
from ..exceptions import ConstraintViolationError
from ..parsing.notation import DomainType, Interval
from ..rules.classifier import classify_rules
from .base import BaseGenerator, GeneratedColumn, GeneratorConfig, row_count
from .garbage import apply_garbage
from .sampling import sample_intervals, span_bounds

# SAS dates count days from 1960-01-01
SAS_EPOCH_OFFSET = 3653

# Invalid dates fall 1 to 5 years outside the valid period
INVALID_OFFSET_DAYS = (365, 5 * 365)


# =============================================================================
# ENCODING
# =============================================================================


def encode_dates(days: np.ndarray, source_format: SourceFormat, name: Optional[str] = None) -> pd.Series:
    """
    Encode day numbers (NaN = missing) in a source format.

    analysis: datetime64 values
    csv: ISO-8601 strings
    sas: integer days since 1960-01-01
    """
    source_format = SourceFormat(source_format)
    days = np.asarray(days, dtype=float)
    if source_format == SourceFormat.SAS:
        return pd.Series(pd.array(days + SAS_EPOCH_OFFSET, dtype="Int64"), name=name)

    dates = pd.Series(pd.to_datetime(days, unit="D", origin="unix"), name=name).astype("datetime64[ns]")
    if source_format == SourceFormat.CSV:
        return dates.dt.strftime("%Y-%m-%d").astype("string")
    return dates


def decode_dates(values: pd.Series, source_format: SourceFormat) -> pd.Series:
    """Decode an encoded date column back to datetime64."""
    source_format = SourceFormat(source_format)
    if source_format == SourceFormat.SAS:
        return pd.Series(
            pd.to_datetime(values.astype("float64") - SAS_EPOCH_OFFSET, unit="D", origin="unix"),
            name=values.name,
        ).astype("datetime64[ns]")
    if source_format == SourceFormat.CSV:
        return pd.to_datetime(values, format="%Y-%m-%d").astype("datetime64[ns]")
    return pd.to_datetime(values).astype("datetime64[ns]")


def dates_to_days(values: pd.Series, source_format: SourceFormat) -> np.ndarray:
    """Day numbers of an encoded date column, NaN where missing."""
    decoded = decode_dates(values, source_format)
    return ((decoded - pd.Timestamp("1970-01-01")) / pd.Timedelta(days=1)).to_numpy(dtype=float, na_value=np.nan)


def date_intervals(
    variable: str,
    rules: Sequence[DetailRule],
    window: Optional[str] = None,
) -> List[Interval]:
    """Valid date intervals declared for a variable in a window."""
    selected = [r for r in rules if r.variable == variable and r.applies_to(window)]
    category_set = classify_rules(variable, selected, expand_valid_intervals=False, window=window)
    return category_set.intervals_of(DomainType.DATE)


def period_bounds(intervals: Sequence[Interval]) -> Tuple[float, float]:
    """First and last valid day across intervals."""
    bounds = [span_bounds(i, integer=True) for i in intervals]
    return min(lo for lo, _ in bounds), max(hi for _, hi in bounds)


# =============================================================================
# GENERATOR
# =============================================================================


@dataclass
class DateConfig(GeneratorConfig):
    """Configuration for date generation."""

    distribution: Optional[Distribution] = None
    prop_na: Optional[float] = None
    prop_invalid: Optional[float] = None
    source_format: SourceFormat = SourceFormat.ANALYSIS
    invalid_offset_days: Tuple[int, int] = INVALID_OFFSET_DAYS
    garbage_low: Optional[GarbageSpec] = None
    garbage_high: Optional[GarbageSpec] = None

    def validate(self) -> None:
        super().validate()
        for parameter in ("prop_na", "prop_invalid"):
            value = getattr(self, parameter)
            if value is not None and not 0.0 <= value <= 1.0:
                raise ConstraintViolationError(f"{parameter} must be in [0, 1], got {value}", parameter=parameter)
        if (self.prop_na or 0.0) + (self.prop_invalid or 0.0) > 1.0 + 1e-9:
            raise ConstraintViolationError(
                f"prop_na ({self.prop_na}) + prop_invalid ({self.prop_invalid}) exceeds 1",
                parameter="prop_invalid",
            )
        try:
            self.source_format = SourceFormat(self.source_format)
        except ValueError:
            raise ConstraintViolationError(
                f"Unknown source_format {self.source_format!r}",
                parameter="source_format",
            )
        self.distribution = parse_distribution(self.distribution)


class DateGenerator(BaseGenerator):
    """
    Generator for date variables.

    Supports uniform, gompertz (mass toward the end of the period) and
    exponential (mass toward the start) sampling, true NA values, and
    invalid dates outside the period split between before and after.
    """

    config: DateConfig

    def __init__(
        self,
        variable: VariableDescriptor,
        rules: Sequence[DetailRule],
        config: Optional[DateConfig] = None,
    ):
        super().__init__(variable, rules, config or DateConfig())

    @property
    def entity_type(self) -> str:
        return "date"

    def _invalid_days(self, rows: np.ndarray, start: float, end: float) -> np.ndarray:
        """Day numbers for invalid rows: the first half before start, the rest after end."""
        n_invalid = len(rows)
        n_before = n_invalid // 2
        low, high = self.config.invalid_offset_days
        offsets = self._rng.integers(low, high + 1, size=n_invalid).astype(float)
        days = np.empty(n_invalid, dtype=float)
        days[:n_before] = start - offsets[:n_before]
        days[n_before:] = end + offsets[n_before:]
        return days

    def generate(self) -> Optional[GeneratedColumn]:
        """Generate the date column, or None if no date range resolves."""
        self.config.validate()
        name = self.variable.name
        n = self.n

        intervals = date_intervals(name, self.rules, self.config.window)
        if not intervals:
            self._log("no valid date range")
            return None

        # warns on tags a date column cannot carry
        resolve_value_kind(self.variable.rtype, VariableType.DATE, name)
        distribution = self.config.distribution or self.variable.distribution or Distribution.UNIFORM
        try:
            days = sample_intervals(self._rng, intervals, n, distribution, integer=True)
        except ConstraintViolationError as e:
            raise e.with_context(name, self.config.window)

        na_mask = self._pick_rows(row_count(n, self.config.prop_na), np.ones(n, dtype=bool))
        days[na_mask] = np.nan

        invalid_mask = self._pick_rows(row_count(n, self.config.prop_invalid), ~na_mask)
        invalid_rows = self._rng.permutation(np.flatnonzero(invalid_mask))
        start, end = period_bounds(intervals)
        days[invalid_rows] = self._invalid_days(invalid_rows, start, end)

        days, garbage_mask = apply_garbage(
            days,
            ~na_mask & ~invalid_mask,
            self._rng,
            self.config.garbage_low or self.variable.garbage_low,
            self.config.garbage_high or self.variable.garbage_high,
            integer=True,
        )

        self._log(f"{distribution.value}, {int(na_mask.sum())} NA, {int(invalid_mask.sum())} invalid")
        return GeneratedColumn(
            name=self.column_name,
            values=encode_dates(days, self.config.source_format, self.column_name),
            kind=ValueKind.DATE,
            na_mask=na_mask,
            missing_code_mask=np.zeros(n, dtype=bool),
            garbage_mask=invalid_mask | garbage_mask,
            metadata={
                "distribution": distribution.value,
                "source_format": self.config.source_format.value,
                "ranges": [i.text for i in intervals],
                "window": self.config.window,
            },
        )


def generate_date(
    variable: VariableDescriptor,
    rules: Sequence[DetailRule],
    window: Optional[str],
    n: int,
    seed: int,
    distribution: Optional[Distribution] = None,
    prop_na: Optional[float] = None,
    prop_invalid: Optional[float] = None,
    source_format: SourceFormat = SourceFormat.ANALYSIS,
    **options,
) -> Optional[GeneratedColumn]:
    """Generate one date column; None signals a coverage gap."""
    config = DateConfig(
        seed=seed,
        n_records=n,
        window=window,
        distribution=distribution,
        prop_na=prop_na,
        prop_invalid=prop_invalid,
        source_format=source_format,
        **options,
    )
    return DateGenerator(variable, rules, config).generate()
