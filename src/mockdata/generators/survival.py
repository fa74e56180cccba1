"""
Survival/Temporal Generator.

Generates an entry date plus up to four dependent event dates for each
individual in one pass, so the columns stay correlated:

1. entry drawn uniformly from the entry variable's declared period
2. each configured event occurs with probability event_prop, at an offset
   in [followup_min, followup_max] days after entry
3. death at or before the primary event censors the event
4. candidates strictly after the administrative censor date are censored

High-side garbage declared for an event column is applied last, after the
ordering checks, to realized dates only.

EventGenerator covers the batch case: one event column anchored on an
entry column that was already generated.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..coercion import ValueKind
from ..config import (
    DEFAULT_FOLLOWUP_MAX,
    DEFAULT_FOLLOWUP_MIN,
    DetailRule,
    Distribution,
    GarbageSpec,
    SourceFormat,
    VariableDescriptor,
    VariableType,
    parse_distribution,
)
from ..exceptions import ConstraintViolationError
from ..validation.schemas import build_survival_schema
from .base import BaseGenerator, GeneratedColumn, GeneratorConfig
from .date import date_intervals, encode_dates, period_bounds
from .garbage import apply_garbage
from .sampling import gompertz_rescaled, sample_intervals, sample_span

EVENT_SLOTS = ("event", "death", "ltfu", "admin_censor")


@dataclass
class EventSpec:
    """Timing parameters of one dependent date column."""

    variable: str
    followup_min: int = DEFAULT_FOLLOWUP_MIN
    followup_max: int = DEFAULT_FOLLOWUP_MAX
    event_prop: float = 1.0
    distribution: Distribution = Distribution.UNIFORM
    garbage_high: Optional[GarbageSpec] = None

    def validate(self, slot: str) -> None:
        if not self.variable:
            raise ConstraintViolationError(f"{slot} has no variable name", parameter=f"{slot}_var")
        if self.followup_min < 0:
            raise ConstraintViolationError(
                f"{slot} followup_min must be >= 0, got {self.followup_min}",
                parameter="followup_min",
                details={"variable": self.variable},
            )
        if self.followup_min > self.followup_max:
            raise ConstraintViolationError(
                f"{slot} followup_min ({self.followup_min}) exceeds followup_max ({self.followup_max})",
                parameter="followup_min",
                details={"variable": self.variable},
            )
        if not 0.0 <= self.event_prop <= 1.0:
            raise ConstraintViolationError(
                f"{slot} event_prop must be in [0, 1], got {self.event_prop}",
                parameter="event_prop",
                details={"variable": self.variable},
            )
        if self.garbage_high is not None:
            self.garbage_high.validate("garbage_high")
        self.distribution = parse_distribution(self.distribution) or Distribution.UNIFORM

    @classmethod
    def from_descriptor(
        cls,
        descriptor: VariableDescriptor,
        followup_min: int = DEFAULT_FOLLOWUP_MIN,
        followup_max: int = DEFAULT_FOLLOWUP_MAX,
    ) -> "EventSpec":
        """Timing from a variables-table row, with defaults for blank cells."""
        return cls(
            variable=descriptor.name,
            followup_min=descriptor.followup_min if descriptor.followup_min is not None else followup_min,
            followup_max=descriptor.followup_max if descriptor.followup_max is not None else followup_max,
            event_prop=descriptor.event_prop if descriptor.event_prop is not None else 1.0,
            distribution=descriptor.distribution or Distribution.UNIFORM,
            garbage_high=descriptor.garbage_high,
        )


EventArg = Union[EventSpec, str, None]


def _as_spec(value: EventArg) -> Optional[EventSpec]:
    if value is None or isinstance(value, EventSpec):
        return value
    return EventSpec(variable=value)


def followup_offsets(rng: np.random.Generator, spec: EventSpec, n: int) -> np.ndarray:
    """Whole-day offsets after entry in [followup_min, followup_max]."""
    lo, hi = float(spec.followup_min), float(spec.followup_max)
    if spec.distribution == Distribution.GOMPERTZ:
        return np.round(gompertz_rescaled(rng, lo, hi, n))
    return sample_span(rng, lo, hi, n, spec.distribution, integer=True)


def event_days(
    rng: np.random.Generator,
    entry: np.ndarray,
    spec: EventSpec,
    rules: Sequence[DetailRule],
    window: Optional[str],
) -> np.ndarray:
    """
    Candidate day numbers for one event; NaN where the event does not occur.

    Rows with a missing entry get no event. Candidates after the end of the
    event variable's own declared period (when it has one) are censored.
    """
    n = len(entry)
    occurs = rng.uniform(0.0, 1.0, n) < spec.event_prop
    days = entry + followup_offsets(rng, spec, n)
    days[~occurs] = np.nan

    declared = date_intervals(spec.variable, rules, window)
    if declared:
        _, end = period_bounds(declared)
        days[days > end] = np.nan
    return days


@dataclass
class SurvivalConfig(GeneratorConfig):
    """Configuration for survival generation."""

    entry_var: Optional[str] = None
    event: Optional[EventSpec] = None
    death: Optional[EventSpec] = None
    ltfu: Optional[EventSpec] = None
    admin_censor: Optional[EventSpec] = None
    source_format: SourceFormat = SourceFormat.ANALYSIS
    validate_output: bool = True

    def slots(self) -> List[Tuple[str, EventSpec]]:
        """Configured event slots in processing order."""
        return [(slot, getattr(self, slot)) for slot in EVENT_SLOTS if getattr(self, slot) is not None]

    def validate(self) -> None:
        super().validate()
        if not self.entry_var:
            raise ConstraintViolationError("Survival generation requires entry_var", parameter="entry_var")
        if not self.window:
            raise ConstraintViolationError(
                "Survival generation requires an applicability window",
                parameter="window",
                details={"variable": self.entry_var},
            )
        names = [self.entry_var]
        for slot, spec in self.slots():
            spec.validate(slot)
            names.append(spec.variable)
        if len(set(names)) != len(names):
            raise ConstraintViolationError(f"Survival columns must be distinct: {names}", parameter="variables")
        try:
            self.source_format = SourceFormat(self.source_format)
        except ValueError:
            raise ConstraintViolationError(
                f"Unknown source_format {self.source_format!r}",
                parameter="source_format",
            )


class SurvivalGenerator(BaseGenerator):
    """Generator for entry and event date columns of one cohort."""

    config: SurvivalConfig

    def __init__(self, rules: Sequence[DetailRule], config: SurvivalConfig):
        entry = VariableDescriptor(name=config.entry_var or "", variable_type=VariableType.DATE)
        super().__init__(entry, rules, config)
        self._all_rules = list(rules)
        self.garbage_masks: Dict[str, np.ndarray] = {}

    @property
    def entity_type(self) -> str:
        return "survival"

    def generate(self) -> pd.DataFrame:
        """
        Generate the survival table.

        Returns:
            DataFrame with the entry column plus one column per configured
            event slot, encoded in the configured source format. Rows holding
            injected garbage are listed per column in ``garbage_masks``.

        Raises:
            ConstraintViolationError: on missing or inconsistent parameters.
        """
        self.config.validate()
        entry_var = self.config.entry_var
        window = self.config.window

        entry_intervals = date_intervals(entry_var, self._all_rules, window)
        if not entry_intervals:
            raise ConstraintViolationError(
                f"Entry variable {entry_var!r} has no date range for window {window!r}",
                parameter="entry_var",
                details=self._context(),
            )
        entry = sample_intervals(self._rng, entry_intervals, self.n, Distribution.UNIFORM, integer=True)

        candidates: Dict[str, np.ndarray] = {}
        for slot, spec in self.config.slots():
            candidates[slot] = event_days(self._rng, entry, spec, self._all_rules, window)

        if "event" in candidates and "death" in candidates:
            event, death = candidates["event"], candidates["death"]
            event[~np.isnan(death) & (death <= event)] = np.nan

        if "admin_censor" in candidates:
            censor = candidates["admin_censor"]
            for slot in ("event", "death", "ltfu"):
                if slot in candidates:
                    days = candidates[slot]
                    days[~np.isnan(censor) & (days > censor)] = np.nan

        specs = dict(self.config.slots())
        columns = {entry_var: entry}
        for slot, days in candidates.items():
            columns[specs[slot].variable] = days

        if self.config.validate_output:
            analysis = pd.DataFrame(
                {name: encode_dates(days, SourceFormat.ANALYSIS) for name, days in columns.items()}
            )
            schema = build_survival_schema(
                entry_var,
                [spec.variable for _, spec in self.config.slots()],
                event=specs["event"].variable if "event" in specs else None,
                death=specs["death"].variable if "death" in specs else None,
            )
            schema.validate(analysis)

        self.garbage_masks = {}
        for slot, spec in specs.items():
            if spec.garbage_high is None:
                continue
            days, mask = apply_garbage(
                columns[spec.variable],
                ~np.isnan(columns[spec.variable]),
                self._rng,
                high=spec.garbage_high,
                integer=True,
            )
            columns[spec.variable] = days
            self.garbage_masks[spec.variable] = mask

        self._log(
            ", ".join(f"{slot}: {int(np.isnan(days).sum())} NA" for slot, days in candidates.items())
            or "entry only"
        )
        return pd.DataFrame(
            {name: encode_dates(days, self.config.source_format, name) for name, days in columns.items()}
        )


def generate_survival(
    entry_var: Optional[str],
    rules: Sequence[DetailRule],
    window: Optional[str],
    n: int,
    seed: int,
    event: EventArg = None,
    death: EventArg = None,
    ltfu: EventArg = None,
    admin_censor: EventArg = None,
    source_format: SourceFormat = SourceFormat.ANALYSIS,
    **options,
) -> pd.DataFrame:
    """
    Generate a survival table.

    Event arguments take an EventSpec, or a bare variable name for default
    timing. Omitted slots produce no column.
    """
    config = SurvivalConfig(
        seed=seed,
        n_records=n,
        window=window,
        entry_var=entry_var,
        event=_as_spec(event),
        death=_as_spec(death),
        ltfu=_as_spec(ltfu),
        admin_censor=_as_spec(admin_censor),
        source_format=source_format,
        **options,
    )
    return SurvivalGenerator(rules, config).generate()


# =============================================================================
# ANCHORED EVENT (batch runs)
# =============================================================================


@dataclass
class EventConfig(GeneratorConfig):
    """Configuration for one event column anchored on existing entry dates."""

    event: Optional[EventSpec] = None
    entry_var: Optional[str] = None
    source_format: SourceFormat = SourceFormat.ANALYSIS

    def validate(self) -> None:
        super().validate()
        if self.event is None:
            raise ConstraintViolationError("Event generation requires an EventSpec", parameter="event")
        if not self.entry_var:
            raise ConstraintViolationError(
                "Event generation requires entry_var",
                parameter="entry_var",
                details={"variable": self.event.variable},
            )
        self.event.validate("event")
        try:
            self.source_format = SourceFormat(self.source_format)
        except ValueError:
            raise ConstraintViolationError(
                f"Unknown source_format {self.source_format!r}",
                parameter="source_format",
            )


class EventGenerator(BaseGenerator):
    """
    Generator for a single survival variable in a batch run.

    The entry dates come from the batch's entry column as day numbers, NaN
    where the entry is missing or invalid; those rows get no event.
    """

    config: EventConfig

    def __init__(
        self,
        variable: VariableDescriptor,
        rules: Sequence[DetailRule],
        config: EventConfig,
        entry_days: np.ndarray,
    ):
        super().__init__(variable, rules, config)
        self.entry_days = np.asarray(entry_days, dtype=float)

    @property
    def entity_type(self) -> str:
        return "survival"

    def generate(self) -> Optional[GeneratedColumn]:
        self.config.validate()
        spec = self.config.event
        if len(self.entry_days) != self.n:
            raise ConstraintViolationError(
                f"Entry column has {len(self.entry_days)} rows, expected {self.n}",
                parameter="entry_var",
                details=self._context(),
            )

        days = event_days(self._rng, self.entry_days, spec, self.rules, self.config.window)
        na_mask = np.isnan(days)
        days, garbage_mask = apply_garbage(days, ~na_mask, self._rng, high=spec.garbage_high, integer=True)

        self._log(f"anchored on {self.config.entry_var}, {int(na_mask.sum())} NA")
        return GeneratedColumn(
            name=self.column_name,
            values=encode_dates(days, self.config.source_format, self.column_name),
            kind=ValueKind.DATE,
            na_mask=na_mask,
            missing_code_mask=np.zeros(self.n, dtype=bool),
            garbage_mask=garbage_mask,
            metadata={
                "entry_var": self.config.entry_var,
                "distribution": spec.distribution.value,
                "followup": [spec.followup_min, spec.followup_max],
                "event_prop": spec.event_prop,
                "source_format": self.config.source_format.value,
                "window": self.config.window,
            },
        )
