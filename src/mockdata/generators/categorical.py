"""
Categorical Generator.

Samples valid and missing category codes from a variable's detail rules.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..coercion import codes_are_numeric, coerce_codes, resolve_value_kind
from ..config import DetailRule, GarbageSpec, VariableDescriptor, VariableType
from ..proportions import PROPORTION_TOLERANCE, ExplicitProportions, resolve_proportions
from ..rules.classifier import classify_rules
from .base import BaseGenerator, GeneratedColumn, GeneratorConfig
from .garbage import apply_garbage

logger = logging.getLogger(__name__)

# Slot holding the else row's share; drawn rows become true missing values
_ELSE_SLOT = ("else-fallback",)


@dataclass
class CategoricalConfig(GeneratorConfig):
    """Configuration for categorical generation."""

    proportions: Optional[ExplicitProportions] = None
    proportion_tolerance: float = PROPORTION_TOLERANCE
    garbage_low: Optional[GarbageSpec] = None
    garbage_high: Optional[GarbageSpec] = None


class CategoricalGenerator(BaseGenerator):
    """
    Generator for categorical variables.

    Proportions come from the caller first, then the details table's
    proportion column, then a uniform split over valid and missing codes.
    An else row with a proportion contributes true missing values.
    """

    config: CategoricalConfig

    def __init__(
        self,
        variable: VariableDescriptor,
        rules: Sequence[DetailRule],
        config: Optional[CategoricalConfig] = None,
    ):
        super().__init__(variable, rules, config or CategoricalConfig())

    @property
    def entity_type(self) -> str:
        return "categorical"

    def generate(self) -> Optional[GeneratedColumn]:
        """Generate the categorical column, or None if no categories resolve."""
        self.config.validate()
        name = self.variable.name
        window = self.config.window

        category_set = classify_rules(name, self.rules, expand_valid_intervals=True, window=window)
        if category_set.valid_intervals:
            logger.warning(
                "Ignoring non-enumerable ranges of categorical %r: %s",
                name,
                [i.text for i in category_set.valid_intervals],
            )
        categories = category_set.codes
        if not categories:
            self._log("no resolvable categories")
            return None

        slots = list(categories)
        metadata = dict(category_set.proportions)
        else_rule = category_set.else_rule
        if self.config.proportions is None and else_rule is not None and else_rule.proportion:
            slots.append(_ELSE_SLOT)
            metadata[_ELSE_SLOT] = else_rule.proportion

        probabilities = resolve_proportions(
            slots,
            explicit=self.config.proportions,
            metadata=metadata or None,
            tolerance=self.config.proportion_tolerance,
            variable=name,
        )

        drawn = self._random_choice(slots, self.n, probabilities)
        codes = [None if slots[i] is _ELSE_SLOT else slots[i] for i in drawn]
        na_mask = np.array([c is None for c in codes], dtype=bool)
        missing_code_mask = np.array([c in category_set.missing for c in codes], dtype=bool)
        garbage_mask = np.zeros(self.n, dtype=bool)

        kind = resolve_value_kind(self.variable.rtype, VariableType.CATEGORICAL, name)
        output_categories = list(categories)
        low = self.config.garbage_low or self.variable.garbage_low
        high = self.config.garbage_high or self.variable.garbage_high
        if (low or high) and codes_are_numeric(categories):
            numeric = np.array([np.nan if c is None else float(c) for c in codes])
            numeric, garbage_mask = apply_garbage(
                numeric, ~na_mask & ~missing_code_mask, self._rng, low, high, integer=True
            )
            for row in np.flatnonzero(garbage_mask):
                codes[row] = str(int(numeric[row]))
            extra = sorted({codes[row] for row in np.flatnonzero(garbage_mask)} - set(categories), key=float)
            output_categories.extend(extra)
        elif low or high:
            logger.warning("Garbage requested for non-numeric categorical %r, skipping", name)

        self._log(f"{len(category_set.valid)} valid, {len(category_set.missing)} missing codes")
        return GeneratedColumn(
            name=self.column_name,
            values=coerce_codes(codes, kind, output_categories, self.column_name),
            kind=kind,
            na_mask=na_mask,
            missing_code_mask=missing_code_mask,
            garbage_mask=garbage_mask,
            metadata={
                "valid_codes": list(category_set.valid),
                "missing_codes": list(category_set.missing),
                "proportions": {
                    ("NA(else)" if s is _ELSE_SLOT else s): float(p) for s, p in zip(slots, probabilities)
                },
                "window": window,
            },
        )


def generate_categorical(
    variable: VariableDescriptor,
    rules: Sequence[DetailRule],
    window: Optional[str],
    n: int,
    seed: int,
    explicit_proportions: Optional[ExplicitProportions] = None,
    **options,
) -> Optional[GeneratedColumn]:
    """Generate one categorical column; None signals a coverage gap."""
    config = CategoricalConfig(
        seed=seed,
        n_records=n,
        window=window,
        proportions=explicit_proportions,
        **options,
    )
    return CategoricalGenerator(variable, rules, config).generate()
