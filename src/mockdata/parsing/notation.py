"""
Selector notation parser.

Turns the textual selectors found in the ``recStart`` column of a
variable-details table into typed rule objects:

    "[18,100]"                  -> Interval (integer domain)
    "(0,1.5]"                   -> Interval (continuous domain)
    "[2001-01-01,2017-03-31]"   -> Interval (date domain)
    "[01JAN2001, 31MAR2017]"    -> Interval (date domain)
    "996"                       -> Scalar
    "else"                      -> ElseFallback
    "NA::a", "copy"             -> SpecialCode
    "Func::f", "DerivedVar::[]" -> FunctionRef
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np

from ..exceptions import ParseError


class DomainType(str, Enum):
    """Domain of an interval's bounds."""

    INTEGER = "integer"
    CONTINUOUS = "continuous"
    DATE = "date"


ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
SAS_DATE = re.compile(r"^\d{1,2}[A-Za-z]{3}\d{4}$")
SPECIAL_CODES = ("NA::a", "NA::b", "copy")
_SCALAR = re.compile(r"^[^\s,\[\]()]+$")

Bound = Union[int, float, date]


@dataclass(frozen=True)
class Interval:
    """A bounded range with per-side inclusivity."""

    lower: Bound
    upper: Bound
    lower_inclusive: bool = True
    upper_inclusive: bool = True
    domain: DomainType = DomainType.INTEGER
    text: str = ""

    @property
    def is_integer(self) -> bool:
        return self.domain == DomainType.INTEGER

    @property
    def is_date(self) -> bool:
        return self.domain == DomainType.DATE

    def numeric_bounds(self) -> Tuple[float, float]:
        """Bounds as floats; dates become days since the Unix epoch."""
        if self.is_date:
            return float(date_to_days(self.lower)), float(date_to_days(self.upper))
        return float(self.lower), float(self.upper)

    def integer_bounds(self) -> Tuple[int, int]:
        """Smallest and largest integers inside the interval."""
        lo, hi = self.numeric_bounds()
        first = math.ceil(lo) if math.isfinite(lo) else lo
        last = math.floor(hi) if math.isfinite(hi) else hi
        if not self.lower_inclusive and first == lo:
            first += 1
        if not self.upper_inclusive and last == hi:
            last -= 1
        return first, last

    def expand(self) -> List[int]:
        """All integers in the interval, honouring inclusivity."""
        if self.domain != DomainType.INTEGER:
            raise ParseError(f"Cannot enumerate a {self.domain.value} interval", expression=self.text)
        first, last = self.integer_bounds()
        return list(range(int(first), int(last) + 1))

    def width(self) -> float:
        lo, hi = self.numeric_bounds()
        return hi - lo

    def contains(self, values: np.ndarray) -> np.ndarray:
        """Boolean mask of values inside the interval. NaN is never inside."""
        values = np.asarray(values, dtype=float)
        lo, hi = self.numeric_bounds()
        with np.errstate(invalid="ignore"):
            above = values >= lo if self.lower_inclusive else values > lo
            below = values <= hi if self.upper_inclusive else values < hi
        return above & below


@dataclass(frozen=True)
class Scalar:
    """A single literal code such as ``996`` or ``M``."""

    value: str

    @property
    def numeric(self) -> Optional[float]:
        try:
            return float(self.value)
        except ValueError:
            return None


@dataclass(frozen=True)
class ElseFallback:
    """The catch-all selector. Never an emittable value."""

    text: str = "else"


@dataclass(frozen=True)
class SpecialCode:
    """``NA::a``, ``NA::b`` or ``copy`` used as a selector."""

    code: str


@dataclass(frozen=True)
class FunctionRef:
    """``Func::name`` or ``DerivedVar::[...]``; marks derived variables."""

    kind: str
    target: str


Rule = Union[Scalar, Interval, ElseFallback, SpecialCode, FunctionRef]


def date_to_days(value: date) -> int:
    """Days since 1970-01-01."""
    return int(np.datetime64(value, "D").astype(np.int64))


def days_to_date(days: int) -> date:
    return (np.datetime64(0, "D") + np.timedelta64(int(days), "D")).astype(object)


def parse_date(token: str) -> Optional[date]:
    """Parse an ISO (2001-01-01) or SAS date9 (01JAN2001) token."""
    token = token.strip()
    try:
        if ISO_DATE.match(token):
            return datetime.strptime(token, "%Y-%m-%d").date()
        if SAS_DATE.match(token):
            return datetime.strptime(token.upper(), "%d%b%Y").date()
    except ValueError:
        return None
    return None


def _parse_number(token: str) -> Optional[float]:
    lowered = token.lower()
    if lowered in ("inf", "+inf"):
        return math.inf
    if lowered == "-inf":
        return -math.inf
    try:
        value = float(token)
    except ValueError:
        return None
    if math.isnan(value):
        return None
    return value


def parse_interval(text: Optional[str]) -> Interval:
    """
    Parse bracket notation into an Interval.

    Integer domain when both bounds are finite, integral and inclusive;
    continuous otherwise; date when both bounds are date tokens.

    Raises:
        ParseError: on anything that is not a two-bound bracketed range.
    """
    if text is None:
        raise ParseError("Empty interval expression", expression=text)
    clean = str(text).strip()
    if not clean:
        raise ParseError("Empty interval expression", expression=text)
    if clean[0] not in "[(" or clean[-1] not in "])":
        raise ParseError(f"Interval must be enclosed in brackets: {clean!r}", expression=clean)

    parts = clean[1:-1].split(",")
    if len(parts) != 2:
        raise ParseError(f"Interval needs exactly two bounds: {clean!r}", expression=clean)
    lower_text, upper_text = parts[0].strip(), parts[1].strip()
    if not lower_text or not upper_text:
        raise ParseError(f"Interval bound is empty: {clean!r}", expression=clean)

    lower_inclusive = clean[0] == "["
    upper_inclusive = clean[-1] == "]"

    lower_date, upper_date = parse_date(lower_text), parse_date(upper_text)
    if lower_date is not None and upper_date is not None:
        interval = Interval(lower_date, upper_date, lower_inclusive, upper_inclusive, DomainType.DATE, clean)
    else:
        lower, upper = _parse_number(lower_text), _parse_number(upper_text)
        if lower is None or upper is None:
            raise ParseError(f"Interval bounds are neither numbers nor dates: {clean!r}", expression=clean)
        integral = all(math.isfinite(v) and v == math.floor(v) for v in (lower, upper))
        if integral and lower_inclusive and upper_inclusive:
            interval = Interval(int(lower), int(upper), True, True, DomainType.INTEGER, clean)
        else:
            interval = Interval(lower, upper, lower_inclusive, upper_inclusive, DomainType.CONTINUOUS, clean)

    lo, hi = interval.numeric_bounds()
    if lo > hi or (lo == hi and not (lower_inclusive and upper_inclusive)):
        raise ParseError(f"Interval is empty: {clean!r}", expression=clean)
    return interval


def parse_selector(text: Optional[str]) -> Rule:
    """Parse any recStart selector into its Rule variant."""
    if text is None or not str(text).strip():
        raise ParseError("Empty selector", expression=text)
    clean = str(text).strip()

    if clean == "else":
        return ElseFallback(clean)
    if clean in SPECIAL_CODES:
        return SpecialCode(clean)
    if clean.startswith("Func::"):
        return FunctionRef("Func", clean[len("Func::"):])
    if clean.startswith("DerivedVar::"):
        return FunctionRef("DerivedVar", clean[len("DerivedVar::"):])
    if clean[0] in "[(":
        return parse_interval(clean)
    if _SCALAR.match(clean) and "::" not in clean:
        return Scalar(clean)
    raise ParseError(f"Unrecognized selector: {clean!r}", expression=clean)
