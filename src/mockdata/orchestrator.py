"""
Batch orchestration.

Generates every enabled, non-derived variable of a window into one table.
Each variable draws from its own seed derived from the batch seed and the
variable name, so the output does not depend on table order.

Survival variables are generated after every other column, anchored on the
date variable that carries the entry role.
"""

import logging
import time
import zlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .coercion import ValueKind
from .config import DetailRule, SourceFormat, VariableDescriptor, VariableType
from .exceptions import ConstraintViolationError, CoverageGap, MockDataError
from .generators.base import BaseGenerator, GeneratedColumn
from .generators.categorical import CategoricalConfig, CategoricalGenerator
from .generators.continuous import ContinuousConfig, ContinuousGenerator
from .generators.date import DateConfig, DateGenerator, dates_to_days
from .generators.survival import EventConfig, EventGenerator
from .logging_config import clear_generation_context, set_generation_context
from .metadata import descriptors_from_frame, enabled_variables, rules_from_frame, window_variables
from .settings import MockDataSettings, load_settings
from .validation.schemas import validate_dataframe

logger = logging.getLogger(__name__)


@dataclass
class MockDataResult:
    """Result of a batch run."""

    data: pd.DataFrame
    window: str
    columns: Dict[str, GeneratedColumn] = field(default_factory=dict)
    coverage_gaps: List[CoverageGap] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    generation_time: float = 0.0

    @property
    def is_complete(self) -> bool:
        """True when every applicable variable produced a column."""
        return not self.coverage_gaps


def variable_seed(seed: int, variable: str) -> int:
    """Seed for one variable, independent of generation order."""
    sequence = np.random.SeedSequence([seed, zlib.crc32(variable.encode("utf-8"))])
    return int(sequence.generate_state(1)[0])


def _validate_tables(variables: pd.DataFrame, details: pd.DataFrame) -> None:
    for frame, table_name in ((variables, "variables"), (details, "variable_details")):
        is_valid, errors = validate_dataframe(frame, table_name)
        if not is_valid:
            raise ConstraintViolationError(
                f"{table_name} table failed schema validation",
                parameter=table_name,
                details={"failure_cases": errors.failure_cases.head(20).to_dict(orient="records")},
            )


def _value_generator(
    variable: VariableDescriptor,
    raw: str,
    rules: Sequence[DetailRule],
    seed: int,
    n: int,
    window: str,
    source_format: SourceFormat,
    settings: MockDataSettings,
) -> Optional[BaseGenerator]:
    """Generator for a categorical, continuous or date variable; None for other types."""
    var_seed = variable_seed(seed, variable.name)
    if variable.variable_type == VariableType.CATEGORICAL:
        return CategoricalGenerator(
            variable,
            rules,
            CategoricalConfig(
                seed=var_seed,
                n_records=n,
                window=window,
                column_name=raw,
                proportion_tolerance=settings.proportion_tolerance,
            ),
        )
    if variable.variable_type == VariableType.CONTINUOUS:
        return ContinuousGenerator(
            variable,
            rules,
            ContinuousConfig(
                seed=var_seed,
                n_records=n,
                window=window,
                column_name=raw,
                distribution=variable.distribution or settings.default_distribution,
            ),
        )
    if variable.variable_type == VariableType.DATE:
        return DateGenerator(
            variable,
            rules,
            DateConfig(
                seed=var_seed,
                n_records=n,
                window=window,
                column_name=raw,
                distribution=variable.distribution or settings.default_distribution,
                source_format=source_format,
                invalid_offset_days=settings.invalid_offset_days,
            ),
        )
    return None


def _entry_days(
    selected: Sequence[Tuple[VariableDescriptor, Optional[str]]],
    result: MockDataResult,
    entry_role: str,
    source_format: SourceFormat,
) -> Optional[Tuple[str, np.ndarray]]:
    """Name and day numbers of the generated entry column; NaN where not a valid date."""
    for variable, raw in selected:
        if entry_role not in variable.roles or raw not in result.columns:
            continue
        column = result.columns[raw]
        if column.kind != ValueKind.DATE:
            continue
        days = dates_to_days(column.values, source_format)
        days[~column.valid_mask] = np.nan
        return variable.name, days
    return None


def _run(generator: BaseGenerator, variable: VariableDescriptor, raw: str, result: MockDataResult) -> None:
    try:
        column = generator.generate_timed()
    except MockDataError as e:
        e.with_context(variable.name, result.window)
        raise

    if column is None:
        result.coverage_gaps.append(CoverageGap(variable.name, result.window, "no resolvable categories or range"))
        return
    result.columns[raw] = column


def create_mock_data(
    variables: pd.DataFrame,
    details: pd.DataFrame,
    window: str,
    n: Optional[int] = None,
    seed: Optional[int] = None,
    source_format: Optional[SourceFormat] = None,
    settings: Optional[MockDataSettings] = None,
    validate_metadata: bool = True,
) -> MockDataResult:
    """
    Generate all applicable variables of one window.

    Args:
        variables: Variables table.
        details: Variable-details table.
        window: Applicability window (database/cycle identifier).
        n: Rows to generate. Defaults to settings.default_n.
        seed: Batch seed. Defaults to settings.default_seed.
        source_format: Encoding of date columns. Defaults to settings.source_format.
        settings: Generation defaults. Loaded from config/mockdata.yaml if not given.
        validate_metadata: Validate both tables with their pandera schemas first.

    Returns:
        MockDataResult with the column-bound table and any coverage gaps.

    Raises:
        MockDataError: parse, classification, proportion and constraint
            errors propagate with variable and window context.
    """
    if not window:
        raise ConstraintViolationError("create_mock_data requires an applicability window", parameter="window")

    settings = settings or load_settings()
    n = settings.default_n if n is None else n
    seed = settings.default_seed if seed is None else seed
    source_format = SourceFormat(source_format or settings.source_format)

    if validate_metadata:
        _validate_tables(variables, details)

    start_time = time.time()
    descriptors = descriptors_from_frame(variables)
    rules = rules_from_frame(details)
    enabled = enabled_variables(descriptors, rules)
    enabled_names = {v.name for v in enabled}
    result = MockDataResult(
        data=pd.DataFrame(index=pd.RangeIndex(n)),
        window=window,
        skipped=[v.name for v in descriptors if v.name not in enabled_names],
    )

    selected = window_variables(enabled, window)
    survival: List[Tuple[VariableDescriptor, str]] = []
    try:
        for variable, raw in selected:
            set_generation_context(window=window, variable=variable.name)

            if raw is None:
                result.coverage_gaps.append(
                    CoverageGap(variable.name, window, "variableStart does not resolve for window")
                )
                continue
            if raw in result.columns:
                result.coverage_gaps.append(CoverageGap(variable.name, window, f"{raw} already generated"))
                continue
            if variable.variable_type == VariableType.SURVIVAL:
                survival.append((variable, raw))
                continue

            generator = _value_generator(variable, raw, rules, seed, n, window, source_format, settings)
            if generator is None:
                result.coverage_gaps.append(
                    CoverageGap(variable.name, window, f"unsupported variable type {variable.type_tag!r}")
                )
                continue
            _run(generator, variable, raw, result)

        entry = _entry_days(selected, result, settings.entry_role, source_format) if survival else None
        for variable, raw in survival:
            set_generation_context(window=window, variable=variable.name)

            if raw in result.columns:
                result.coverage_gaps.append(CoverageGap(variable.name, window, f"{raw} already generated"))
                continue
            if entry is None:
                result.coverage_gaps.append(
                    CoverageGap(variable.name, window, f"no generated date variable with role {settings.entry_role!r}")
                )
                continue

            entry_var, entry_days = entry
            generator = EventGenerator(
                variable,
                rules,
                EventConfig(
                    seed=variable_seed(seed, variable.name),
                    n_records=n,
                    window=window,
                    column_name=raw,
                    event=settings.event_spec(variable),
                    entry_var=entry_var,
                    source_format=source_format,
                ),
                entry_days=entry_days,
            )
            _run(generator, variable, raw, result)
    finally:
        clear_generation_context()

    for gap in result.coverage_gaps:
        logger.warning("Coverage gap for %r in %r: %s", gap.variable, gap.window, gap.reason)

    if result.columns:
        result.data = pd.concat([c.values.rename(name) for name, c in result.columns.items()], axis=1)
    result.generation_time = time.time() - start_time
    logger.info(
        "Generated %d columns x %d rows for %r (%d gaps, %d skipped)",
        len(result.columns),
        n,
        window,
        len(result.coverage_gaps),
        len(result.skipped),
    )
    return result
