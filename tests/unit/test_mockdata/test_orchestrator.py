"""Tests for batch generation across a window."""

import pandas as pd
import pytest

from src.mockdata.config import SourceFormat
from src.mockdata.exceptions import ConstraintViolationError, ProportionCoverageError
from src.mockdata.orchestrator import MockDataResult, create_mock_data, variable_seed
from src.mockdata.settings import MockDataSettings


class TestCreateMockData:
    """Test suite for create_mock_data."""

    def test_generates_enabled_columns(self, variables_df, details_df, settings):
        result = create_mock_data(variables_df, details_df, "cycle1", n=200, seed=1, settings=settings)
        assert isinstance(result, MockDataResult)
        assert list(result.data.columns) == ["SMK_01", "DHH_AGE", "INT_DATE"]
        assert len(result.data) == 200
        assert result.is_complete
        assert set(result.skipped) == {"bmi_cat", "income"}

    def test_window_selects_raw_names(self, variables_df, details_df, settings):
        result = create_mock_data(variables_df, details_df, "cycle2", n=50, seed=1, settings=settings)
        assert list(result.data.columns) == ["SMKA_01", "DHH_AGE"]

    def test_continuous_column_carries_missing_codes_and_garbage(self, variables_df, details_df, settings):
        result = create_mock_data(variables_df, details_df, "cycle1", n=1_000, seed=1, settings=settings)
        age = result.columns["DHH_AGE"]
        assert age.values.dtype == "Int64"
        assert age.missing_code_mask.sum() == 20
        assert age.garbage_mask.sum() == 30
        assert age.values[age.valid_mask].between(18, 100).all()

    def test_deterministic(self, variables_df, details_df, settings):
        a = create_mock_data(variables_df, details_df, "cycle1", n=100, seed=3, settings=settings)
        b = create_mock_data(variables_df, details_df, "cycle1", n=100, seed=3, settings=settings)
        pd.testing.assert_frame_equal(a.data, b.data)

    def test_column_independent_of_table_order(self, variables_df, details_df, settings):
        forward = create_mock_data(variables_df, details_df, "cycle1", n=100, seed=3, settings=settings)
        reversed_vars = variables_df.iloc[::-1].reset_index(drop=True)
        backward = create_mock_data(reversed_vars, details_df, "cycle1", n=100, seed=3, settings=settings)
        pd.testing.assert_series_equal(forward.data["SMK_01"], backward.data["SMK_01"])

    def test_date_source_format(self, variables_df, details_df, settings):
        result = create_mock_data(
            variables_df, details_df, "cycle1", n=20, seed=1, source_format=SourceFormat.SAS, settings=settings
        )
        assert result.data["INT_DATE"].dtype == "Int64"

    def test_settings_defaults(self, variables_df, details_df):
        settings = MockDataSettings(default_n=30, default_seed=5)
        result = create_mock_data(variables_df, details_df, "cycle1", settings=settings)
        assert len(result.data) == 30

    def test_unresolved_raw_name_is_coverage_gap(self, variables_df, details_df, settings):
        variables_df.loc[0, "variableStart"] = "cycle2::SMKA_01"
        result = create_mock_data(variables_df, details_df, "cycle1", n=20, seed=1, settings=settings)
        assert not result.is_complete
        assert result.coverage_gaps[0].variable == "smoking"
        assert "SMK_01" not in result.data.columns

    def test_variable_without_rules_is_coverage_gap(self, variables_df, details_df, settings, caplog):
        details = details_df[details_df["variable"] != "age"]
        result = create_mock_data(variables_df, details, "cycle1", n=20, seed=1, settings=settings)
        gaps = {gap.variable: gap.reason for gap in result.coverage_gaps}
        assert "age" in gaps
        assert "Coverage gap" in caplog.text

    def test_errors_carry_context(self, variables_df, details_df, settings):
        details = details_df.copy()
        details.loc[details["recStart"] == "1", "proportion"] = 0.9
        with pytest.raises(ProportionCoverageError) as exc_info:
            create_mock_data(variables_df, details, "cycle1", n=20, seed=1, settings=settings)
        assert exc_info.value.details["variable"] == "smoking"
        assert exc_info.value.details["window"] == "cycle1"

    def test_requires_window(self, variables_df, details_df, settings):
        with pytest.raises(ConstraintViolationError):
            create_mock_data(variables_df, details_df, "", settings=settings)

    def test_invalid_metadata_table(self, details_df, settings):
        variables = pd.DataFrame({"variable": ["x"], "variableType": ["categorical"], "event_prop": [1.5]})
        with pytest.raises(ConstraintViolationError) as exc_info:
            create_mock_data(variables, details_df, "cycle1", n=5, settings=settings)
        assert exc_info.value.parameter == "variables"


@pytest.fixture
def cohort_variables():
    return pd.DataFrame(
        [
            {
                "variable": "entry_date",
                "variableType": "Continuous",
                "role": "enabled, index-date",
                "databaseStart": "cycle1",
            },
            {
                "variable": "death_date",
                "variableType": "Survival",
                "role": "enabled, outcome-date",
                "databaseStart": "cycle1",
                "followup_min": 30.0,
                "followup_max": 900.0,
                "event_prop": 0.4,
            },
        ]
    )


@pytest.fixture
def cohort_details():
    return pd.DataFrame(
        [
            {"variable": "entry_date", "recStart": "[2001-01-01,2005-12-31]", "recEnd": "copy"},
            {"variable": "death_date", "recStart": "[2001-01-01,2017-03-31]", "recEnd": "copy"},
        ]
    )


class TestSurvivalVariables:
    """Test date roles and survival variables in batch runs."""

    def test_date_role_generates_date_column(self, cohort_variables, cohort_details, settings):
        result = create_mock_data(cohort_variables.iloc[:1], cohort_details, "cycle1", n=50, seed=1, settings=settings)
        assert result.is_complete
        entry = result.data["entry_date"]
        assert entry.between(pd.Timestamp("2001-01-01"), pd.Timestamp("2005-12-31")).all()

    def test_survival_anchored_on_entry(self, cohort_variables, cohort_details, settings):
        result = create_mock_data(cohort_variables, cohort_details, "cycle1", n=2_000, seed=1, settings=settings)
        assert result.is_complete
        assert list(result.data.columns) == ["entry_date", "death_date"]

        death = result.data["death_date"]
        assert death.notna().mean() == pytest.approx(0.4, abs=0.04)
        gap = (death - result.data["entry_date"]).dt.days.dropna()
        assert gap.between(30, 900).all()
        assert result.columns["death_date"].metadata["entry_var"] == "entry_date"

    def test_survival_independent_of_table_order(self, cohort_variables, cohort_details, settings):
        forward = create_mock_data(cohort_variables, cohort_details, "cycle1", n=100, seed=4, settings=settings)
        reversed_vars = cohort_variables.iloc[::-1].reset_index(drop=True)
        backward = create_mock_data(reversed_vars, cohort_details, "cycle1", n=100, seed=4, settings=settings)
        pd.testing.assert_frame_equal(forward.data, backward.data[["entry_date", "death_date"]])

    def test_survival_sas_encoding(self, cohort_variables, cohort_details, settings):
        result = create_mock_data(
            cohort_variables, cohort_details, "cycle1", n=100, seed=2, source_format=SourceFormat.SAS, settings=settings
        )
        gap = result.data["death_date"] - result.data["entry_date"]
        assert gap.dropna().between(30, 900).all()

    def test_survival_without_entry_is_coverage_gap(self, cohort_variables, cohort_details, settings):
        cohort_variables.loc[0, "role"] = "enabled, date"
        result = create_mock_data(cohort_variables, cohort_details, "cycle1", n=20, seed=1, settings=settings)
        gaps = {gap.variable: gap.reason for gap in result.coverage_gaps}
        assert "index-date" in gaps["death_date"]
        assert list(result.data.columns) == ["entry_date"]

    def test_entry_role_from_settings(self, cohort_variables, cohort_details):
        cohort_variables.loc[0, "role"] = "enabled, cohort-entry-date"
        settings = MockDataSettings(entry_role="cohort-entry-date")
        result = create_mock_data(cohort_variables, cohort_details, "cycle1", n=20, seed=1, settings=settings)
        assert result.is_complete


class TestVariableSeed:
    """Test per-variable seed derivation."""

    def test_stable(self):
        assert variable_seed(42, "smoking") == variable_seed(42, "smoking")

    def test_differs_by_variable_and_seed(self):
        assert variable_seed(42, "smoking") != variable_seed(42, "age")
        assert variable_seed(42, "smoking") != variable_seed(43, "smoking")
