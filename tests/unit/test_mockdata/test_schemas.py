"""Tests for metadata table schemas."""

import pandas as pd
import pandera.pandas as pa
import pytest

from src.mockdata.validation.schemas import SCHEMA_REGISTRY, validate_dataframe


class TestMetadataSchemas:
    """Test the variables and variable-details schemas."""

    def test_registry(self):
        assert set(SCHEMA_REGISTRY) == {"variables", "variable_details"}

    def test_valid_tables(self, variables_df, details_df):
        assert validate_dataframe(variables_df, "variables") == (True, None)
        assert validate_dataframe(details_df, "variable_details") == (True, None)

    def test_missing_required_column(self, details_df):
        is_valid, errors = validate_dataframe(details_df.drop(columns=["recStart"]), "variable_details")
        assert not is_valid
        assert errors is not None

    def test_proportion_out_of_range(self, details_df):
        details = details_df.copy()
        details.loc[0, "proportion"] = 1.5
        is_valid, errors = validate_dataframe(details, "variable_details")
        assert not is_valid
        assert len(errors.failure_cases) >= 1

    def test_fail_fast_returns_first_error(self, details_df):
        details = details_df.copy()
        details.loc[0, "proportion"] = 1.5
        is_valid, error = validate_dataframe(details, "variable_details", lazy=False)
        assert not is_valid
        assert isinstance(error, pa.errors.SchemaError)

    def test_empty_variable_name(self):
        variables = pd.DataFrame({"variable": [""], "variableType": ["categorical"]})
        is_valid, _ = validate_dataframe(variables, "variables")
        assert not is_valid

    def test_unknown_table(self, variables_df):
        with pytest.raises(ValueError):
            validate_dataframe(variables_df, "nope")
