"""
Mock Data Generation Module

Generates synthetic survey data from variable metadata so harmonization
pipelines can be developed without access to the real data.

Key Features:
- Selector notation parsing ([a,b], (a,b], dates, else)
- Valid/missing code classification
- Categorical, continuous and date generators
- Survival tables with competing-risk and censoring rules
- Seeded, order-independent batch generation
"""

from .config import DetailRule, Distribution, SourceFormat, VariableDescriptor, VariableType
from .exceptions import (
    ClassificationAmbiguityError,
    ConstraintViolationError,
    CoverageGap,
    MockDataError,
    ParseError,
    ProportionCoverageError,
)
from .orchestrator import MockDataResult, create_mock_data

__all__ = [
    "DetailRule",
    "Distribution",
    "SourceFormat",
    "VariableDescriptor",
    "VariableType",
    "MockDataError",
    "ParseError",
    "ClassificationAmbiguityError",
    "ProportionCoverageError",
    "ConstraintViolationError",
    "CoverageGap",
    "MockDataResult",
    "create_mock_data",
]

__version__ = "1.0.0"
