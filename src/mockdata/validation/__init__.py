"""Pandera schemas for metadata tables and survival output."""

from .schemas import (
    SCHEMA_REGISTRY,
    VariableDetailsSchema,
    VariablesSchema,
    build_survival_schema,
    validate_dataframe,
)

__all__ = [
    "SCHEMA_REGISTRY",
    "VariableDetailsSchema",
    "VariablesSchema",
    "build_survival_schema",
    "validate_dataframe",
]
