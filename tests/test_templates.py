"""Tests for the expression template library."""
from __future__ import annotations

import pytest

from ampel_mapper.transform.templates import (
    BUILTIN_TEMPLATES,
    DEFAULT_LIBRARY,
    TemplateLibrary,
    instantiate,
    parse_template,
)
from ampel_mapper.utils.error_handler import TemplateError


class TestParseTemplate:
    """Tests for template parsing."""

    def test_placeholders_in_order_without_duplicates(self):
        template = parse_template("t", "{b} == {a} || {b} != {c-list}")
        assert template.placeholders == ("b", "a", "c-list")

    def test_hyphenated_names(self):
        assert parse_template("t", "x == {builder-id}").placeholders == ("builder-id",)

    def test_no_placeholders(self):
        assert parse_template("t", "true").placeholders == ()

    @pytest.mark.parametrize("source", [
        "x == {builder-id",
        "x == builder-id}",
        "x == {}",
        "x == {0}",
        "x == {name!r}",
        "x == {name:>10}",
        "x == {name.attr}",
        "x == {name[0]}",
    ])
    def test_malformed_templates(self, source):
        with pytest.raises(TemplateError) as exc_info:
            parse_template("broken", source)
        assert exc_info.value.template_name == "broken"

    def test_escaped_braces_are_literal(self):
        template = parse_template("t", "{{literal}} == {value}")
        assert template.render({"value": "1"}) == "{literal} == 1"


class TestRender:
    """Tests for placeholder substitution."""

    def test_substitutes_and_trims(self):
        assert instantiate("t", "  a == {x} \n", {"x": '"b"'}) == 'a == "b"'

    def test_missing_value_raises(self):
        with pytest.raises(TemplateError, match="builder-id"):
            instantiate("provenance-builder", BUILTIN_TEMPLATES["provenance-builder"], {})

    def test_extra_values_are_ignored(self):
        assert instantiate("t", "a == {x}", {"x": "1", "y": "2"}) == "a == 1"

    def test_same_placeholder_twice(self):
        assert instantiate("t", "{x} == {x}", {"x": "v"}) == "v == v"


class TestBuiltinTemplates:
    """Tests for the built-in catalog."""

    def test_catalog_names(self):
        assert set(BUILTIN_TEMPLATES) == {
            "provenance-builder",
            "provenance-materials",
            "provenance-buildtype",
            "vuln-no-critical",
            "vuln-threshold",
            "vuln-scanner",
            "sbom-present",
            "sbom-spdx",
            "sbom-cyclonedx",
            "generic-predicate-type",
            "generic-field-equals",
            "generic-field-in",
        }

    @pytest.mark.parametrize("name", sorted(BUILTIN_TEMPLATES))
    def test_every_builtin_parses(self, name):
        parse_template(name, BUILTIN_TEMPLATES[name])

    def test_builtins_are_read_only(self):
        with pytest.raises(TypeError):
            BUILTIN_TEMPLATES["vuln-no-critical"] = "true"


class TestTemplateLibrary:
    """Tests for the immutable template library."""

    def test_default_library_holds_builtins(self):
        assert dict(DEFAULT_LIBRARY) == dict(BUILTIN_TEMPLATES)

    def test_overrides_return_new_library(self):
        library = DEFAULT_LIBRARY.with_overrides({"vuln-no-critical": "true", "custom": "false"})

        assert library["vuln-no-critical"] == "true"
        assert library["custom"] == "false"
        assert library["vuln-scanner"] == BUILTIN_TEMPLATES["vuln-scanner"]
        assert DEFAULT_LIBRARY["vuln-no-critical"] == BUILTIN_TEMPLATES["vuln-no-critical"]
        assert "custom" not in DEFAULT_LIBRARY

    def test_empty_overrides_keep_library(self):
        assert DEFAULT_LIBRARY.with_overrides({}) is DEFAULT_LIBRARY
        assert DEFAULT_LIBRARY.with_overrides(None) is DEFAULT_LIBRARY

    def test_library_is_not_mutable(self):
        with pytest.raises(TypeError):
            DEFAULT_LIBRARY["custom"] = "true"

    def test_source_mapping_is_copied(self):
        source = {"a": "true"}
        library = TemplateLibrary(source)
        source["a"] = "false"
        assert library["a"] == "true"

    def test_parse_by_name(self):
        assert DEFAULT_LIBRARY.parse("vuln-scanner").placeholders == ("scanner",)
