"""Selector notation and raw variable name parsing."""

from .identifiers import derived_dependencies, resolve_variable_start
from .notation import (
    DomainType,
    ElseFallback,
    FunctionRef,
    Interval,
    Rule,
    Scalar,
    SpecialCode,
    parse_interval,
    parse_selector,
)

__all__ = [
    "DomainType",
    "ElseFallback",
    "FunctionRef",
    "Interval",
    "Rule",
    "Scalar",
    "SpecialCode",
    "parse_interval",
    "parse_selector",
    "derived_dependencies",
    "resolve_variable_start",
]
