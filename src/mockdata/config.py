"""
Mock Data Configuration

Data model shared by the generators:
- Enumerations for variable types, distributions and output encodings
- VariableDescriptor: one row of the variables table
- DetailRule: one row of the variable-details table
- GarbageSpec: an out-of-range injection request
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from .exceptions import ConstraintViolationError
from .parsing.notation import Interval, Rule, parse_interval, parse_selector


# =============================================================================
# ENUMS
# =============================================================================


class VariableType(str, Enum):
    """Declared variable types."""

    CATEGORICAL = "categorical"
    CONTINUOUS = "continuous"
    DATE = "date"
    SURVIVAL = "survival"
    DERIVED = "derived"


class Distribution(str, Enum):
    """Sampling distributions for continuous and date values."""

    UNIFORM = "uniform"
    NORMAL = "normal"
    EXPONENTIAL = "exponential"
    GOMPERTZ = "gompertz"


class SourceFormat(str, Enum):
    """Encodings a date column can be emitted in."""

    ANALYSIS = "analysis"
    CSV = "csv"
    SAS = "sas"


class MissingKind(str, Enum):
    """Sub-kinds of missing codes."""

    NOT_APPLICABLE = "NA::a"
    NO_RESPONSE = "NA::b"


DISTRIBUTIONS = [d.value for d in Distribution]

DEFAULT_FOLLOWUP_MIN = 365
DEFAULT_FOLLOWUP_MAX = 3650


# =============================================================================
# CELL HELPERS
# =============================================================================


def clean_cell(value: Any) -> Optional[str]:
    """Normalize a metadata cell to a stripped string, or None when blank/NA."""
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
    text = str(value).strip()
    if text in ("", "N/A", "nan", "NaN", "<NA>"):
        return None
    return text


def float_cell(value: Any) -> Optional[float]:
    text = clean_cell(value)
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def split_cell(value: Any) -> Tuple[str, ...]:
    """Comma-separated membership cell as a tuple of trimmed entries."""
    text = clean_cell(value)
    if text is None:
        return ()
    return tuple(part.strip() for part in text.split(",") if part.strip())


def parse_distribution(value: Any) -> Optional[Distribution]:
    if isinstance(value, Distribution):
        return value
    text = clean_cell(value)
    if text is None:
        return None
    try:
        return Distribution(text.lower())
    except ValueError:
        raise ConstraintViolationError(
            f"Unknown distribution {text!r}. Must be one of: {DISTRIBUTIONS}",
            parameter="distribution",
        )


# =============================================================================
# GARBAGE
# =============================================================================


@dataclass(frozen=True)
class GarbageSpec:
    """Fraction of rows to overwrite with values drawn from an out-of-range interval."""

    proportion: float
    range: str

    @property
    def interval(self) -> Interval:
        return parse_interval(self.range)

    def validate(self, side: str = "garbage") -> None:
        if not 0.0 <= self.proportion <= 1.0:
            raise ConstraintViolationError(
                f"{side} proportion must be in [0, 1], got {self.proportion}",
                parameter=f"{side}_prop",
            )
        parse_interval(self.range)

    @classmethod
    def from_cells(cls, proportion: Any, range_text: Any) -> Optional["GarbageSpec"]:
        prop = float_cell(proportion)
        text = clean_cell(range_text)
        if prop is None or text is None or prop == 0:
            return None
        return cls(prop, text)


# =============================================================================
# METADATA ROWS
# =============================================================================


def _window_match(windows: Tuple[str, ...], window: Optional[str]) -> bool:
    return not windows or window is None or window in windows


@dataclass(frozen=True)
class VariableDescriptor:
    """One generated column as declared in the variables table."""

    name: str
    variable_type: Optional[VariableType]
    type_tag: str = ""
    rtype: Optional[str] = None
    windows: Tuple[str, ...] = ()
    roles: Tuple[str, ...] = ()
    variable_start: Optional[str] = None
    distribution: Optional[Distribution] = None
    followup_min: Optional[int] = None
    followup_max: Optional[int] = None
    event_prop: Optional[float] = None
    mean: Optional[float] = None
    sd: Optional[float] = None
    rate: Optional[float] = None
    garbage_low: Optional[GarbageSpec] = None
    garbage_high: Optional[GarbageSpec] = None

    def applies_to(self, window: Optional[str]) -> bool:
        return _window_match(self.windows, window)

    @property
    def is_derived(self) -> bool:
        return self.variable_type == VariableType.DERIVED or "derived" in self.roles

    @property
    def is_enabled(self) -> bool:
        return "enabled" in self.roles

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "VariableDescriptor":
        """Build a descriptor from a variables-table row."""
        roles = tuple(r.lower() for r in split_cell(row.get("role")))
        tag = (clean_cell(row.get("variableType")) or "").lower()
        # any role mentioning a date (index-date, outcome-date) marks a date column
        date_role = any("date" in role for role in roles)
        if tag == "date" or (date_role and tag not in ("derived", "survival")):
            variable_type = VariableType.DATE
        else:
            try:
                variable_type = VariableType(tag)
            except ValueError:
                variable_type = None

        followup_min = float_cell(row.get("followup_min"))
        followup_max = float_cell(row.get("followup_max"))

        return cls(
            name=clean_cell(row.get("variable")) or "",
            variable_type=variable_type,
            type_tag=tag,
            rtype=clean_cell(row.get("rType")),
            windows=split_cell(row.get("databaseStart")),
            roles=roles,
            variable_start=clean_cell(row.get("variableStart")),
            distribution=parse_distribution(row.get("distribution")),
            followup_min=int(followup_min) if followup_min is not None else None,
            followup_max=int(followup_max) if followup_max is not None else None,
            event_prop=float_cell(row.get("event_prop")),
            mean=float_cell(row.get("mean")),
            sd=float_cell(row.get("sd")),
            rate=float_cell(row.get("rate")),
            garbage_low=GarbageSpec.from_cells(row.get("garbage_low_prop"), row.get("garbage_low_range")),
            garbage_high=GarbageSpec.from_cells(row.get("garbage_high_prop"), row.get("garbage_high_range")),
        )


@dataclass(frozen=True)
class DetailRule:
    """One selector -> classification row of the variable-details table."""

    variable: str
    rec_start: str
    rec_end: Optional[str] = None
    cat_label: Optional[str] = None
    proportion: Optional[float] = None
    windows: Tuple[str, ...] = ()

    def applies_to(self, window: Optional[str]) -> bool:
        return _window_match(self.windows, window)

    def parse(self) -> Rule:
        return parse_selector(self.rec_start)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DetailRule":
        return cls(
            variable=clean_cell(row.get("variable")) or "",
            rec_start=clean_cell(row.get("recStart")) or "",
            rec_end=clean_cell(row.get("recEnd")),
            cat_label=clean_cell(row.get("catLabel")),
            proportion=float_cell(row.get("proportion")),
            windows=split_cell(row.get("databaseStart")),
        )
