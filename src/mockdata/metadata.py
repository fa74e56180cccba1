"""
Metadata table helpers.

Converts the variables and variable-details tables into descriptors and
rules, and selects what applies to an applicability window.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .config import DetailRule, VariableDescriptor
from .parsing.identifiers import resolve_variable_start

logger = logging.getLogger(__name__)


def descriptors_from_frame(variables: pd.DataFrame) -> List[VariableDescriptor]:
    """One descriptor per variables-table row, in table order."""
    return [VariableDescriptor.from_row(row) for row in variables.to_dict(orient="records")]


def rules_from_frame(details: pd.DataFrame) -> List[DetailRule]:
    """One rule per variable-details row, in table order."""
    return [DetailRule.from_row(row) for row in details.to_dict(orient="records")]


def details_for_variable(
    rules: Sequence[DetailRule],
    variable: str,
    window: Optional[str] = None,
) -> List[DetailRule]:
    """
    Rules of one variable for one window.

    Window membership is exact: ``cycle1`` does not match ``cycle1_meds``.
    Rules with no windows apply everywhere.
    """
    return [r for r in rules if r.variable == variable and r.applies_to(window)]


def identify_derived_variables(
    variables: Sequence[VariableDescriptor],
    rules: Sequence[DetailRule],
) -> List[str]:
    """Variables declared derived, or whose rules use DerivedVar:: / Func::."""
    derived = [v.name for v in variables if v.is_derived]
    for rule in rules:
        if rule.rec_start.startswith("DerivedVar::") or (rule.rec_end or "").startswith("Func::"):
            if rule.variable not in derived:
                derived.append(rule.variable)
    return derived


def enabled_variables(
    variables: Sequence[VariableDescriptor],
    rules: Sequence[DetailRule],
) -> List[VariableDescriptor]:
    """
    Variables to generate: role contains ``enabled`` and not derived.

    When no variable carries a role at all, every non-derived variable is
    treated as enabled.
    """
    derived = set(identify_derived_variables(variables, rules))
    has_roles = any(v.roles for v in variables)
    selected = [v for v in variables if v.name not in derived and (v.is_enabled or not has_roles)]
    if derived:
        logger.debug("Excluding derived variables: %s", sorted(derived))
    return selected


def window_variables(
    variables: Sequence[VariableDescriptor],
    window: str,
) -> List[Tuple[VariableDescriptor, Optional[str]]]:
    """
    Variables applicable to a window with their raw names.

    A variable without ``variableStart`` uses its own name; one whose
    ``variableStart`` does not resolve for the window gets None.
    """
    selected = []
    for variable in variables:
        if not variable.applies_to(window):
            continue
        if variable.variable_start is None:
            raw = variable.name
        else:
            raw = resolve_variable_start(variable.variable_start, window)
        selected.append((variable, raw))
    return selected


def raw_variables(
    variables: Sequence[VariableDescriptor],
    window: str,
) -> Dict[str, List[str]]:
    """Unique raw names for a window mapped to the variables that use them."""
    grouped: Dict[str, List[str]] = OrderedDict()
    for variable, raw in window_variables(variables, window):
        if raw is not None:
            grouped.setdefault(raw, []).append(variable.name)
    return dict(grouped)
