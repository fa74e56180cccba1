"""
Mock Data Generators

Variable generators:
- CategoricalGenerator: valid and missing category codes
- ContinuousGenerator: ranged numeric values with missing codes and garbage
- DateGenerator: dates with NA, invalid dates and source encodings
- SurvivalGenerator: entry plus correlated event dates
- EventGenerator: one event column anchored on existing entry dates
"""

from .base import BaseGenerator, GeneratedColumn, GeneratorConfig
from .categorical import CategoricalConfig, CategoricalGenerator, generate_categorical
from .continuous import ContinuousConfig, ContinuousGenerator, generate_continuous
from .date import DateConfig, DateGenerator, decode_dates, encode_dates, generate_date
from .survival import (
    EventConfig,
    EventGenerator,
    EventSpec,
    SurvivalConfig,
    SurvivalGenerator,
    generate_survival,
)

__all__ = [
    # Base classes
    "BaseGenerator",
    "GeneratedColumn",
    "GeneratorConfig",
    # Variable generators
    "CategoricalConfig",
    "CategoricalGenerator",
    "generate_categorical",
    "ContinuousConfig",
    "ContinuousGenerator",
    "generate_continuous",
    "DateConfig",
    "DateGenerator",
    "decode_dates",
    "encode_dates",
    "generate_date",
    "EventConfig",
    "EventGenerator",
    "EventSpec",
    "SurvivalConfig",
    "SurvivalGenerator",
    "generate_survival",
]
