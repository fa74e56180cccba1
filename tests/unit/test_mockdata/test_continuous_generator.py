"""Tests for ContinuousGenerator."""

import numpy as np
import pandas as pd
import pytest

from src.mockdata.config import Distribution, GarbageSpec, VariableDescriptor, VariableType
from src.mockdata.exceptions import ConstraintViolationError
from src.mockdata.generators.continuous import ContinuousConfig, ContinuousGenerator, generate_continuous
from src.mockdata.generators.garbage import apply_garbage
from src.mockdata.generators.sampling import gompertz_positions, gompertz_rescaled, sample_span, span_bounds
from src.mockdata.parsing.notation import parse_interval
from tests.conftest import make_rules


class TestContinuousGenerator:
    """Test suite for ContinuousGenerator."""

    def test_values_within_range(self, continuous_var, age_rules):
        column = generate_continuous(continuous_var, age_rules, None, n=1_000, seed=1)
        assert column.values.between(18, 100).all()
        assert column.values.dtype == np.float64

    def test_integer_rtype(self, age_rules):
        variable = VariableDescriptor(name="age", variable_type=VariableType.CONTINUOUS, rtype="integer")
        column = generate_continuous(variable, age_rules, None, n=500, seed=1)
        assert column.values.dtype == "Int64"
        assert column.values.min() >= 18
        assert column.values.max() <= 100

    def test_half_open_interval(self, continuous_var):
        rules = make_rules("age", [("(0,1]", "copy", None)])
        column = generate_continuous(continuous_var, rules, None, n=2_000, seed=1)
        assert (column.values > 0).all()
        assert (column.values <= 1).all()

    def test_prop_na_exact_count(self, continuous_var, age_rules):
        column = generate_continuous(continuous_var, age_rules, None, n=1_000, seed=2, prop_na=0.05)
        assert column.na_mask.sum() == 50
        assert column.values.isna().sum() == 50

    def test_missing_codes_from_metadata(self, continuous_var):
        rules = make_rules("age", [("[18,100]", "copy", None), ("999", "NA::b", 0.02)])
        column = generate_continuous(continuous_var, rules, None, n=1_000, seed=3, prop_na=0.1)
        assert column.missing_code_mask.sum() == 20
        assert (column.values[column.missing_code_mask] == 999).all()
        assert not (column.na_mask & column.missing_code_mask).any()
        assert column.na_mask.sum() == 100

    def test_missing_share_plus_prop_na_over_one(self, continuous_var):
        rules = make_rules("age", [("[18,100]", "copy", None), ("999", "NA::b", 0.6)])
        with pytest.raises(ConstraintViolationError):
            generate_continuous(continuous_var, rules, None, n=10, seed=1, prop_na=0.5)

    def test_invalid_prop_na(self, continuous_var, age_rules):
        with pytest.raises(ConstraintViolationError):
            generate_continuous(continuous_var, age_rules, None, n=10, seed=1, prop_na=1.5)

    def test_unknown_distribution(self, continuous_var, age_rules):
        with pytest.raises(ConstraintViolationError):
            generate_continuous(continuous_var, age_rules, None, n=10, seed=1, distribution="cauchy")

    def test_no_range_returns_none(self, continuous_var):
        rules = make_rules("age", [("999", "NA::b", None)])
        assert generate_continuous(continuous_var, rules, None, n=10, seed=1) is None

    def test_deterministic(self, continuous_var, age_rules):
        a = generate_continuous(continuous_var, age_rules, None, n=100, seed=9, prop_na=0.1)
        b = generate_continuous(continuous_var, age_rules, None, n=100, seed=9, prop_na=0.1)
        pd.testing.assert_series_equal(a.values, b.values)

    def test_multiple_intervals(self, continuous_var):
        rules = make_rules("age", [("[0,10]", "copy", None), ("[90,100]", "copy", None)])
        column = generate_continuous(continuous_var, rules, None, n=1_000, seed=4)
        values = column.values
        assert ((values <= 10) | (values >= 90)).all()
        assert (values <= 10).any() and (values >= 90).any()

    def test_interval_without_integers(self):
        variable = VariableDescriptor(name="x", variable_type=VariableType.CONTINUOUS, rtype="integer")
        rules = make_rules("x", [("(1,2)", "copy", None)])
        with pytest.raises(ConstraintViolationError) as exc_info:
            generate_continuous(variable, rules, "cycle1", n=10, seed=1)
        assert exc_info.value.details["expression"] == "(1,2)"
        assert exc_info.value.details["variable"] == "x"
        assert exc_info.value.details["window"] == "cycle1"

    def test_entity_type(self, continuous_var, age_rules):
        generator = ContinuousGenerator(continuous_var, age_rules, ContinuousConfig(n_records=5))
        assert generator.entity_type == "continuous"


class TestContinuousDistributions:
    """Test distribution shapes."""

    @pytest.mark.parametrize("distribution", list(Distribution))
    def test_all_distributions_stay_in_range(self, continuous_var, age_rules, distribution):
        column = generate_continuous(continuous_var, age_rules, None, n=1_000, seed=1, distribution=distribution)
        assert column.values.between(18, 100).all()
        assert column.metadata["distribution"] == distribution.value

    def test_normal_centres_on_midpoint(self, continuous_var, age_rules):
        column = generate_continuous(continuous_var, age_rules, None, n=5_000, seed=1, distribution="normal")
        assert column.values.mean() == pytest.approx(59, abs=1.5)

    def test_normal_uses_declared_mean(self, age_rules):
        variable = VariableDescriptor(name="age", variable_type=VariableType.CONTINUOUS, mean=30.0, sd=5.0)
        column = generate_continuous(variable, age_rules, None, n=5_000, seed=1, distribution="normal")
        assert column.values.mean() == pytest.approx(30, abs=1.0)

    def test_exponential_skews_low(self, continuous_var, age_rules):
        column = generate_continuous(continuous_var, age_rules, None, n=5_000, seed=1, distribution="exponential")
        assert column.values.median() < 59


class TestGarbage:
    """Test garbage injection."""

    def test_garbage_high_outside_range(self, continuous_var, age_rules):
        column = generate_continuous(
            continuous_var, age_rules, None, n=1_000, seed=1, garbage_high=GarbageSpec(0.03, "[150,200]")
        )
        assert column.garbage_mask.sum() == 30
        garbage = column.values[column.garbage_mask]
        assert garbage.between(150, 200).all()
        assert column.values[column.valid_mask].between(18, 100).all()

    def test_garbage_from_descriptor(self, age_rules):
        variable = VariableDescriptor(
            name="age",
            variable_type=VariableType.CONTINUOUS,
            garbage_low=GarbageSpec(0.02, "[-10,-1]"),
        )
        column = generate_continuous(variable, age_rules, None, n=1_000, seed=1)
        assert column.garbage_mask.sum() == 20
        assert (column.values[column.garbage_mask] < 0).all()

    def test_garbage_avoids_na_and_missing_rows(self, continuous_var):
        rules = make_rules("age", [("[18,100]", "copy", None), ("999", "NA::b", 0.1)])
        column = generate_continuous(
            continuous_var,
            rules,
            None,
            n=1_000,
            seed=1,
            prop_na=0.1,
            garbage_low=GarbageSpec(0.05, "[0,5]"),
            garbage_high=GarbageSpec(0.05, "[150,200]"),
        )
        assert column.garbage_mask.sum() == 100
        assert not (column.garbage_mask & (column.na_mask | column.missing_code_mask)).any()

    def test_low_and_high_never_overlap(self):
        rng = np.random.default_rng(0)
        values = np.full(100, 50.0)
        out, mask = apply_garbage(
            values,
            np.ones(100, dtype=bool),
            rng,
            low=GarbageSpec(0.6, "[0,5]"),
            high=GarbageSpec(0.6, "[150,200]"),
        )
        assert mask.sum() == 100
        assert (out <= 5).sum() == 60
        assert (out >= 150).sum() == 40

    def test_invalid_garbage_proportion(self, continuous_var, age_rules):
        with pytest.raises(ConstraintViolationError):
            generate_continuous(continuous_var, age_rules, None, n=10, seed=1, garbage_high=GarbageSpec(1.5, "[150,200]"))


class TestSampling:
    """Test sampling helpers."""

    def test_span_bounds_integer(self):
        assert span_bounds(parse_interval("[18,100]"), integer=True) == (18.0, 100.0)

    def test_span_bounds_open_integer(self):
        assert span_bounds(parse_interval("(0,10)"), integer=True) == (1.0, 9.0)

    def test_span_bounds_infinite(self):
        assert span_bounds(parse_interval("[0,inf)"), integer=False) == (0.0, 100.0)

    def test_gompertz_positions_in_unit_interval(self):
        positions = gompertz_positions(np.random.default_rng(0), 1_000)
        assert ((positions >= 0) & (positions <= 1)).all()

    def test_degenerate_span(self):
        values = sample_span(np.random.default_rng(0), 5.0, 5.0, 10)
        assert (values == 5.0).all()

    def test_span_bounds_empty_integer_interval(self):
        with pytest.raises(ConstraintViolationError):
            span_bounds(parse_interval("(1,2)"), integer=True)

    def test_span_bounds_open_continuous_interval(self):
        lo, hi = span_bounds(parse_interval("(1,2)"), integer=False)
        assert 1.0 < lo < hi < 2.0

    def test_gompertz_rescaled_spans_range(self):
        values = gompertz_rescaled(np.random.default_rng(0), 365.0, 3650.0, 2_000)
        assert values.max() == pytest.approx(3650.0)
        assert values.min() >= 365.0
        assert (values == 3650.0).sum() == 1
        assert np.quantile(values, 0.05) < 1000
