"""Tests for scope filter compilation and CEL helpers."""
from __future__ import annotations

import pytest

from ampel_mapper.models.source import Dimensions
from ampel_mapper.transform.scope import (
    DEFAULT_SCOPE_COMPILER,
    REGION_CODES,
    ScopeCompiler,
    combine_expressions,
    quote,
    quote_list,
    scope_filter_to_cel,
)


def make_dimensions(**kwargs) -> Dimensions:
    return Dimensions(**kwargs)


class TestScopeCompiler:
    """Tests for dimension normalization and clause generation."""

    def test_empty_dimensions(self):
        assert scope_filter_to_cel(make_dimensions()) == ""

    def test_technology_is_kebab_cased(self):
        result = scope_filter_to_cel(make_dimensions(technologies=["Cloud Computing", "Web App"]))
        assert result == 'subject.type in ["cloud-computing", "web-app"]'

    def test_regions_use_code_table(self):
        result = scope_filter_to_cel(make_dimensions(geopolitical=["United States", "Brazil"]))
        assert result == 'subject.annotations.region in ["us", "brazil"]'

    def test_sensitivity_is_lower_cased(self):
        result = scope_filter_to_cel(make_dimensions(sensitivity=["Confidential"]))
        assert result == 'subject.annotations.classification in ["confidential"]'

    def test_groups_are_unchanged(self):
        result = scope_filter_to_cel(make_dimensions(groups=["Platform Team"]))
        assert result == 'subject.annotations.group in ["Platform Team"]'

    def test_clauses_joined_in_fixed_order(self):
        result = scope_filter_to_cel(make_dimensions(
            groups=["g"],
            sensitivity=["High"],
            geopolitical=["Canada"],
            technologies=["API"],
        ))
        assert result == (
            'subject.type in ["api"]'
            ' && subject.annotations.region in ["ca"]'
            ' && subject.annotations.classification in ["high"]'
            ' && subject.annotations.group in ["g"]'
        )

    def test_with_regions_extends_table(self):
        compiler = DEFAULT_SCOPE_COMPILER.with_regions({"Germany": "de"})

        assert compiler.normalize_region("germany") == "de"
        assert compiler.normalize_region("United Kingdom") == "uk"
        assert DEFAULT_SCOPE_COMPILER.normalize_region("Germany") == "germany"

    def test_with_no_regions_returns_same_compiler(self):
        assert DEFAULT_SCOPE_COMPILER.with_regions({}) is DEFAULT_SCOPE_COMPILER

    def test_custom_table_replaces_defaults(self):
        compiler = ScopeCompiler({"atlantis": "at"})
        assert compiler.compile(make_dimensions(geopolitical=["Atlantis", "Canada"])) == (
            'subject.annotations.region in ["at", "canada"]'
        )

    def test_region_table_is_read_only(self):
        with pytest.raises(TypeError):
            REGION_CODES["mars"] = "mr"


class TestQuoting:
    """Tests for CEL string quoting."""

    def test_quote_plain(self):
        assert quote("abc") == '"abc"'

    def test_quote_escapes(self):
        assert quote('a"b\\c') == '"a\\"b\\\\c"'

    def test_quote_list(self):
        assert quote_list(["a", "b", "c"]) == '"a", "b", "c"'


class TestCombineExpressions:
    """Tests for joining expressions."""

    def test_empty(self):
        assert combine_expressions([], "&&") == ""

    def test_single_expression_unchanged(self):
        assert combine_expressions(["a == 1"], "&&") == "a == 1"

    def test_logical_operands_are_parenthesized(self):
        assert combine_expressions(["a", "b || c"], "&&") == "(a) && (b || c)"
        assert combine_expressions(["a", "b"], "||") == "(a) || (b)"

    def test_other_operators_are_joined_plainly(self):
        assert combine_expressions(["a", "b"], "+") == "a + b"
