"""
Pandera Schema Definitions for Mock Data.

Validates the metadata tables at the boundary and the ordering
constraints of generated survival tables.
"""

from typing import Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd
import pandera.pandas as pa
from pandera import Check, Column, DataFrameSchema


# =============================================================================
# VARIABLES TABLE SCHEMA
# =============================================================================

PROPORTION_CHECK = Check.in_range(0.0, 1.0)

VariablesSchema = DataFrameSchema(
    columns={
        "variable": Column(
            str,
            Check.str_length(min_value=1),
            nullable=False,
            description="Harmonized variable name",
        ),
        "variableType": Column(
            str,
            nullable=True,
            description="categorical / continuous / date / survival / derived",
        ),
        "role": Column(str, nullable=True, required=False, description="Comma-separated roles"),
        "rType": Column(str, nullable=True, required=False, description="Output type tag"),
        "databaseStart": Column(str, nullable=True, required=False, description="Applicability windows"),
        "event_prop": Column(float, PROPORTION_CHECK, nullable=True, required=False),
        "followup_min": Column(float, Check.ge(0), nullable=True, required=False),
        "followup_max": Column(float, Check.ge(0), nullable=True, required=False),
        "garbage_low_prop": Column(float, PROPORTION_CHECK, nullable=True, required=False),
        "garbage_high_prop": Column(float, PROPORTION_CHECK, nullable=True, required=False),
    },
    strict=False,  # Allow extra columns
    coerce=True,
    name="VariablesSchema",
    description="Schema for the variables metadata table",
)


# =============================================================================
# VARIABLE DETAILS TABLE SCHEMA
# =============================================================================

VariableDetailsSchema = DataFrameSchema(
    columns={
        "variable": Column(
            str,
            Check.str_length(min_value=1),
            nullable=False,
            description="Harmonized variable name",
        ),
        "recStart": Column(str, nullable=True, description="Selector expression"),
        "recEnd": Column(str, nullable=True, required=False, description="Classification target"),
        "catLabel": Column(str, nullable=True, required=False, description="Category label"),
        "databaseStart": Column(str, nullable=True, required=False, description="Applicability windows"),
        "proportion": Column(float, PROPORTION_CHECK, nullable=True, required=False),
    },
    strict=False,
    coerce=True,
    name="VariableDetailsSchema",
    description="Schema for the variable-details metadata table",
)


# =============================================================================
# SURVIVAL SCHEMA
# =============================================================================


def build_survival_schema(
    entry: str,
    event_columns: Sequence[str],
    event: Optional[str] = None,
    death: Optional[str] = None,
) -> DataFrameSchema:
    """
    Schema for one survival table.

    Every non-missing event date is on or after entry; a retained primary
    event is on or before death.
    """
    columns = {entry: Column(nullable=False, description="Entry date")}
    checks: List[Check] = []
    for name in event_columns:
        columns[name] = Column(nullable=True)
        checks.append(
            Check(
                lambda df, c=name: df[c].isna() | (df[c] >= df[entry]),
                error=f"{name} precedes {entry}",
            )
        )
    if event is not None and death is not None:
        checks.append(
            Check(
                lambda df: df[event].isna() | df[death].isna() | (df[death] >= df[event]),
                error=f"{death} precedes {event}",
            )
        )
    return DataFrameSchema(columns=columns, checks=checks, strict=True, name="SurvivalSchema")


# =============================================================================
# SCHEMA REGISTRY
# =============================================================================

SCHEMA_REGISTRY: Dict[str, DataFrameSchema] = {
    "variables": VariablesSchema,
    "variable_details": VariableDetailsSchema,
}


def validate_dataframe(
    df: pd.DataFrame,
    table_name: str,
    lazy: bool = True,
) -> Tuple[bool, Optional[Union[pa.errors.SchemaErrors, pa.errors.SchemaError]]]:
    """
    Validate a DataFrame against its schema.

    Args:
        df: DataFrame to validate
        table_name: Name of the table (must be in SCHEMA_REGISTRY)
        lazy: If True, collect all errors; if False, fail fast

    Returns:
        Tuple of (is_valid, errors). errors is SchemaErrors when lazy,
        the first SchemaError otherwise.
    """
    if table_name not in SCHEMA_REGISTRY:
        raise ValueError(f"Unknown table: {table_name}. Available: {list(SCHEMA_REGISTRY.keys())}")

    schema = SCHEMA_REGISTRY[table_name]

    try:
        schema.validate(df, lazy=lazy)
        return True, None
    except (pa.errors.SchemaErrors, pa.errors.SchemaError) as e:
        return False, e
