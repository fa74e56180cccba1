"""
Continuous Generator.

Draws values inside a variable's valid range, then overlays missing codes,
true NA values and garbage, in that order, on disjoint rows.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from ..coercion import ValueKind, coerce_numeric, resolve_value_kind
from ..config import (
    DetailRule,
    Distribution,
    GarbageSpec,
    VariableDescriptor,
    VariableType,
    parse_distribution,
)
from ..exceptions import ConstraintViolationError
from ..parsing.notation import DomainType
from ..rules.classifier import classify_rules
from .base import BaseGenerator, GeneratedColumn, GeneratorConfig, row_count
from .garbage import apply_garbage
from .sampling import sample_intervals


@dataclass
class ContinuousConfig(GeneratorConfig):
    """Configuration for continuous generation."""

    distribution: Optional[Distribution] = None
    prop_na: Optional[float] = None
    garbage_low: Optional[GarbageSpec] = None
    garbage_high: Optional[GarbageSpec] = None

    def validate(self) -> None:
        super().validate()
        if self.prop_na is not None and not 0.0 <= self.prop_na <= 1.0:
            raise ConstraintViolationError(f"prop_na must be in [0, 1], got {self.prop_na}", parameter="prop_na")
        self.distribution = parse_distribution(self.distribution)
        for side, spec in (("garbage_low", self.garbage_low), ("garbage_high", self.garbage_high)):
            if spec is not None:
                spec.validate(side)


class ContinuousGenerator(BaseGenerator):
    """Generator for continuous variables."""

    config: ContinuousConfig

    def __init__(
        self,
        variable: VariableDescriptor,
        rules: Sequence[DetailRule],
        config: Optional[ContinuousConfig] = None,
    ):
        super().__init__(variable, rules, config or ContinuousConfig())

    @property
    def entity_type(self) -> str:
        return "continuous"

    def _missing_shares(self, proportions: Dict[str, float], missing: Dict[str, Optional[str]]) -> Dict[str, float]:
        shares = {}
        for code in missing:
            share = proportions.get(code)
            if not share:
                continue
            try:
                float(code)
            except ValueError:
                self._log(f"skipping non-numeric missing code {code!r}")
                continue
            shares[code] = share
        return shares

    def generate(self) -> Optional[GeneratedColumn]:
        """Generate the continuous column, or None if no valid range resolves."""
        self.config.validate()
        name = self.variable.name
        n = self.n

        category_set = classify_rules(name, self.rules, expand_valid_intervals=False, window=self.config.window)
        intervals = category_set.intervals_of(DomainType.CONTINUOUS)
        if not intervals:
            self._log("no valid range")
            return None

        shares = self._missing_shares(category_set.proportions, category_set.missing)
        prop_na = self.config.prop_na or 0.0
        if sum(shares.values()) + prop_na > 1.0 + 1e-9:
            raise ConstraintViolationError(
                f"Missing-code proportions plus prop_na exceed 1 for {name!r}",
                parameter="prop_na",
                details=self._context(),
            )

        kind = resolve_value_kind(self.variable.rtype, VariableType.CONTINUOUS, name)
        integer = kind == ValueKind.INTEGER
        distribution = self.config.distribution or self.variable.distribution or Distribution.UNIFORM

        try:
            values = sample_intervals(
                self._rng,
                intervals,
                n,
                distribution,
                integer=integer,
                mean=self.variable.mean,
                sd=self.variable.sd,
                rate=self.variable.rate,
            )
        except ConstraintViolationError as e:
            raise e.with_context(name, self.config.window)

        missing_code_mask = np.zeros(n, dtype=bool)
        for code, share in shares.items():
            rows = self._pick_rows(row_count(n, share), ~missing_code_mask)
            values[rows] = float(code)
            missing_code_mask |= rows

        na_mask = self._pick_rows(row_count(n, prop_na), ~missing_code_mask)
        values[na_mask] = np.nan

        values, garbage_mask = apply_garbage(
            values,
            ~na_mask & ~missing_code_mask,
            self._rng,
            self.config.garbage_low or self.variable.garbage_low,
            self.config.garbage_high or self.variable.garbage_high,
            integer=integer,
        )

        self._log(
            f"{distribution.value} over {[i.text for i in intervals]}, "
            f"{int(na_mask.sum())} NA, {int(garbage_mask.sum())} garbage"
        )
        return GeneratedColumn(
            name=self.column_name,
            values=coerce_numeric(values, kind, self.column_name),
            kind=kind,
            na_mask=na_mask,
            missing_code_mask=missing_code_mask,
            garbage_mask=garbage_mask,
            metadata={
                "distribution": distribution.value,
                "ranges": [i.text for i in intervals],
                "missing_codes": list(shares),
                "window": self.config.window,
            },
        )


def generate_continuous(
    variable: VariableDescriptor,
    rules: Sequence[DetailRule],
    window: Optional[str],
    n: int,
    seed: int,
    distribution: Optional[Distribution] = None,
    prop_na: Optional[float] = None,
    garbage_low: Optional[GarbageSpec] = None,
    garbage_high: Optional[GarbageSpec] = None,
    **options,
) -> Optional[GeneratedColumn]:
    """Generate one continuous column; None signals a coverage gap."""
    config = ContinuousConfig(
        seed=seed,
        n_records=n,
        window=window,
        distribution=distribution,
        prop_na=prop_na,
        garbage_low=garbage_low,
        garbage_high=garbage_high,
        **options,
    )
    return ContinuousGenerator(variable, rules, config).generate()
