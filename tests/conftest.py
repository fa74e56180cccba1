"""Root conftest.py - shared metadata fixtures for mock data tests.

Provides small variables / variable-details tables covering each variable
type, plus the matching descriptor and rule objects.
"""

from __future__ import annotations

from typing import List

import pandas as pd
import pytest

from src.mockdata.config import DetailRule, VariableDescriptor, VariableType
from src.mockdata.metadata import descriptors_from_frame, rules_from_frame
from src.mockdata.settings import MockDataSettings

# ============================================================================
# METADATA TABLES
# ============================================================================


@pytest.fixture
def variables_df() -> pd.DataFrame:
    """Variables table with one variable of each type plus a derived one."""
    return pd.DataFrame(
        [
            {
                "variable": "smoking",
                "variableType": "Categorical",
                "role": "enabled",
                "rType": "factor",
                "databaseStart": "cycle1, cycle2",
                "variableStart": "cycle1::SMK_01, cycle2::SMKA_01, [SMK_01]",
            },
            {
                "variable": "age",
                "variableType": "Continuous",
                "role": "enabled",
                "rType": "integer",
                "databaseStart": "cycle1, cycle2",
                "variableStart": "[DHH_AGE]",
                "garbage_high_prop": 0.03,
                "garbage_high_range": "[150,200]",
            },
            {
                "variable": "interview_date",
                "variableType": "Continuous",
                "role": "enabled, date",
                "databaseStart": "cycle1",
                "variableStart": "[INT_DATE]",
            },
            {
                "variable": "bmi_cat",
                "variableType": "Derived",
                "role": "derived, enabled",
                "databaseStart": "cycle1",
                "variableStart": "DerivedVar::[HWTGHTM, HWTGWTK]",
            },
            {
                "variable": "income",
                "variableType": "Continuous",
                "role": "",
                "databaseStart": "cycle1",
                "variableStart": "[INCOME]",
            },
        ]
    )


@pytest.fixture
def details_df() -> pd.DataFrame:
    """Variable-details table matching variables_df."""
    rows = [
        ("smoking", "1", "1", "Daily", 0.3, "cycle1, cycle2"),
        ("smoking", "2", "2", "Occasional", 0.5, "cycle1, cycle2"),
        ("smoking", "3", "3", "Never", 0.15, "cycle1, cycle2"),
        ("smoking", "996", "NA::a", "Valid skip", 0.01, "cycle1, cycle2"),
        ("smoking", "[997,999]", "NA::b", "Don't know / refusal / not stated", 0.04, "cycle1, cycle2"),
        ("age", "[18,100]", "copy", "Age", None, "cycle1, cycle2"),
        ("age", "999", "NA::b", "Not stated", 0.02, "cycle1, cycle2"),
        ("interview_date", "[2001-01-01,2017-03-31]", "copy", "Interview date", None, "cycle1"),
        ("bmi_cat", "DerivedVar::[HWTGHTM, HWTGWTK]", "Func::bmi_fun", "BMI", None, "cycle1"),
        ("income", "[0,100000]", "copy", "Income", None, "cycle1"),
    ]
    return pd.DataFrame(rows, columns=["variable", "recStart", "recEnd", "catLabel", "proportion", "databaseStart"])


@pytest.fixture
def descriptors(variables_df) -> List[VariableDescriptor]:
    return descriptors_from_frame(variables_df)


@pytest.fixture
def rules(details_df) -> List[DetailRule]:
    return rules_from_frame(details_df)


@pytest.fixture
def settings() -> MockDataSettings:
    """Default settings, independent of any file on disk."""
    return MockDataSettings()


# ============================================================================
# SINGLE-VARIABLE HELPERS
# ============================================================================


def make_rules(variable: str, rows) -> List[DetailRule]:
    """Build rules from (recStart, recEnd, proportion) tuples."""
    return [
        DetailRule(variable=variable, rec_start=start, rec_end=end, cat_label=None, proportion=prop)
        for start, end, prop in rows
    ]


@pytest.fixture
def categorical_var() -> VariableDescriptor:
    return VariableDescriptor(name="smoking", variable_type=VariableType.CATEGORICAL)


@pytest.fixture
def continuous_var() -> VariableDescriptor:
    return VariableDescriptor(name="age", variable_type=VariableType.CONTINUOUS)


@pytest.fixture
def date_var() -> VariableDescriptor:
    return VariableDescriptor(name="interview_date", variable_type=VariableType.DATE)


@pytest.fixture
def smoking_rules() -> List[DetailRule]:
    """Codes 1, 2, 3 valid; 996 valid skip; 997-999 non-response."""
    return make_rules(
        "smoking",
        [
            ("1", "1", None),
            ("2", "2", None),
            ("3", "3", None),
            ("996", "NA::a", None),
            ("997", "NA::b", None),
            ("998", "NA::b", None),
            ("999", "NA::b", None),
        ],
    )


@pytest.fixture
def age_rules() -> List[DetailRule]:
    return make_rules("age", [("[18,100]", "copy", None)])


@pytest.fixture
def date_rules() -> List[DetailRule]:
    return make_rules("interview_date", [("[2001-01-01,2017-03-31]", "copy", None)])
