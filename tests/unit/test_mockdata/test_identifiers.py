"""Tests for raw variable name resolution."""

import pytest

from src.mockdata.parsing.identifiers import derived_dependencies, resolve_variable_start


class TestResolveVariableStart:
    """Test variableStart resolution per window."""

    EXPRESSION = "cycle1::SMK_01, cycle2::SMKA_01, [SMK_01]"

    def test_qualified_match(self):
        assert resolve_variable_start(self.EXPRESSION, "cycle2") == "SMKA_01"

    def test_fallback_when_window_absent(self):
        assert resolve_variable_start(self.EXPRESSION, "cycle3") == "SMK_01"

    def test_qualified_wins_over_fallback_order(self):
        assert resolve_variable_start("[GEN_01], cycle1::GEN_A", "cycle1") == "GEN_A"

    def test_window_match_is_exact(self):
        assert resolve_variable_start("cycle1_meds::MED_01", "cycle1") is None

    def test_first_fallback_used(self):
        assert resolve_variable_start("[A], [B]", "cycle1") == "A"

    def test_plain_name(self):
        assert resolve_variable_start("DHH_SEX", "cycle1") == "DHH_SEX"

    @pytest.mark.parametrize(
        "expression",
        [None, "", "DerivedVar::[HWTGHTM, HWTGWTK]", "Func::bmi_fun", "cycle2::X"],
    )
    def test_unresolvable(self, expression):
        assert resolve_variable_start(expression, "cycle1") is None


class TestDerivedDependencies:
    """Test DerivedVar dependency extraction."""

    def test_bracketed_list(self):
        assert derived_dependencies("DerivedVar::[HWTGHTM, HWTGWTK]") == ["HWTGHTM", "HWTGWTK"]

    def test_not_derived(self):
        assert derived_dependencies("[SMK_01]") == []
        assert derived_dependencies(None) == []
