"""
Rule Classifier

Splits a variable's detail rules into valid and missing categories.

Rows whose classification target (recEnd) carries ``NA::a`` or ``NA::b``
are missing codes; every other target, including ``copy``, is valid. The
``else`` row is kept as a fallback and never enumerated as a code.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import DetailRule, MissingKind
from ..exceptions import ClassificationAmbiguityError, ParseError
from ..parsing.notation import DomainType, ElseFallback, Interval, Scalar

logger = logging.getLogger(__name__)

# Conventional survey non-response codes
MISSING_LOOKING_CODES = frozenset({6, 7, 8, 9, 96, 97, 98, 99})


@dataclass(frozen=True)
class ElseRule:
    """The catch-all row of a variable."""

    missing: bool
    missing_kind: Optional[MissingKind]
    label: Optional[str]
    proportion: Optional[float]


@dataclass(frozen=True)
class ClassifiedCategorySet:
    """
    Valid and missing categories of one variable.

    ``valid`` and ``missing`` map code strings to labels. Intervals that
    cannot be enumerated (continuous and date domains, or integer domains
    when the variable keeps ranges as bounds) stay in ``valid_intervals``.
    """

    variable: str
    valid: Dict[str, Optional[str]] = field(default_factory=dict)
    missing: Dict[str, Optional[str]] = field(default_factory=dict)
    missing_kinds: Dict[str, MissingKind] = field(default_factory=dict)
    valid_intervals: Tuple[Interval, ...] = ()
    proportions: Dict[str, float] = field(default_factory=dict)
    else_rule: Optional[ElseRule] = None
    rejected: Tuple[str, ...] = ()

    @property
    def codes(self) -> List[str]:
        return list(self.valid) + list(self.missing)

    @property
    def is_empty(self) -> bool:
        return not self.valid and not self.missing and not self.valid_intervals

    def intervals_of(self, domain: DomainType) -> List[Interval]:
        if domain == DomainType.DATE:
            return [i for i in self.valid_intervals if i.is_date]
        return [i for i in self.valid_intervals if not i.is_date]


def _missing_kind(rec_end: Optional[str]) -> Optional[MissingKind]:
    if rec_end is None:
        return None
    if "NA::a" in rec_end:
        return MissingKind.NOT_APPLICABLE
    if "NA::" in rec_end or rec_end == "NA":
        return MissingKind.NO_RESPONSE
    return None


def _looks_missing(selector) -> bool:
    if isinstance(selector, Scalar):
        number = selector.numeric
        return number is not None and number in MISSING_LOOKING_CODES
    if isinstance(selector, Interval) and selector.is_integer:
        return selector.lower in MISSING_LOOKING_CODES
    return False


def classify_rules(
    variable: str,
    rules: Sequence[DetailRule],
    expand_valid_intervals: bool = True,
    window: Optional[str] = None,
) -> ClassifiedCategorySet:
    """
    Classify a variable's rules into a ClassifiedCategorySet.

    Args:
        variable: Variable name (used in errors and logs).
        rules: Detail rules already filtered to one applicability window.
        expand_valid_intervals: Expand integer-domain valid intervals into
            discrete codes (categorical variables). Missing-code intervals
            are always expanded.
        window: Applicability window, for error context.

    Raises:
        ClassificationAmbiguityError: if the partition cannot be decided.
    """
    parsed = []
    rejected = []
    for rule in rules:
        try:
            parsed.append((rule, rule.parse()))
        except ParseError as e:
            e.with_context(variable, window)
            logger.warning("Skipping unparseable selector for %r: %s", variable, e.message)
            rejected.append(rule.rec_start)

    has_classification = any(rule.rec_end is not None for rule, _ in parsed)
    if not has_classification:
        suspicious = [rule.rec_start for rule, sel in parsed if _looks_missing(sel)]
        if suspicious:
            raise ClassificationAmbiguityError(
                f"Variable {variable!r} has codes that look like missing codes "
                f"but no classification column (recEnd)",
                variable=variable,
                codes=suspicious,
                details={"window": window},
            )

    valid: Dict[str, Optional[str]] = {}
    missing: Dict[str, Optional[str]] = {}
    kinds: Dict[str, MissingKind] = {}
    intervals: List[Interval] = []
    proportions: Dict[str, float] = {}
    else_rule: Optional[ElseRule] = None

    def add(code: str, rule: DetailRule, kind: Optional[MissingKind], share: Optional[float]) -> None:
        target = missing if kind is not None else valid
        target.setdefault(code, rule.cat_label)
        if kind is not None:
            kinds[code] = kind
        if share is not None:
            proportions[code] = proportions.get(code, 0.0) + share

    for rule, selector in parsed:
        kind = _missing_kind(rule.rec_end)

        if isinstance(selector, ElseFallback):
            if else_rule is not None:
                raise ClassificationAmbiguityError(
                    f"Variable {variable!r} has more than one else row",
                    variable=variable,
                    details={"window": window},
                )
            else_rule = ElseRule(kind is not None, kind, rule.cat_label, rule.proportion)
        elif isinstance(selector, Scalar):
            add(selector.value, rule, kind, rule.proportion)
        elif isinstance(selector, Interval):
            if selector.is_integer and (kind is not None or expand_valid_intervals):
                values = selector.expand()
                share = rule.proportion / len(values) if rule.proportion is not None and values else None
                for value in values:
                    add(str(value), rule, kind, share)
            elif kind is None:
                intervals.append(selector)
            else:
                logger.warning("Ignoring non-integer missing range %r for %r", rule.rec_start, variable)
        # SpecialCode and FunctionRef selectors never produce emittable values

    overlap = sorted(set(valid) & set(missing))
    if overlap:
        raise ClassificationAmbiguityError(
            f"Variable {variable!r} classifies codes as both valid and missing",
            variable=variable,
            codes=overlap,
            details={"window": window},
        )

    return ClassifiedCategorySet(
        variable=variable,
        valid=valid,
        missing=missing,
        missing_kinds=kinds,
        valid_intervals=tuple(intervals),
        proportions=proportions,
        else_rule=else_rule,
        rejected=tuple(rejected),
    )


def classify_codes(
    variable: str,
    rules: Sequence[DetailRule],
    missing: bool = False,
) -> List[str]:
    """Discrete codes of one class: valid (default) or missing."""
    category_set = classify_rules(variable, rules)
    return list(category_set.missing if missing else category_set.valid)
