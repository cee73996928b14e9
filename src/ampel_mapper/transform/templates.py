"""Expression template library.

A closed catalog of named, parameterized CEL expressions. Placeholders
are `{name}` where name is a parameter id (hyphens allowed); `{{` and
`}}` produce literal braces. There is no control flow: instantiation is
plain named substitution followed by whitespace trimming.
"""
from __future__ import annotations

import re
import string
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Optional

from ampel_mapper.models.shared import (
    CYCLONEDX_BOM,
    IN_TOTO_STATEMENT_V01,
    SLSA_PROVENANCE_V1,
    SPDX_DOCUMENT,
)
from ampel_mapper.utils.error_handler import TemplateError

_PLACEHOLDER_NAME = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_-]*$")

_PROVENANCE = f'attestation.predicateType == "{SLSA_PROVENANCE_V1}"'
_STATEMENT = f'attestation.predicateType == "{IN_TOTO_STATEMENT_V01}"'
_SCAN_SUMMARY = "attestation.predicate.scanner.result.summary"

BUILTIN_TEMPLATES: Mapping[str, str] = MappingProxyType({
    # SLSA provenance
    "provenance-builder": (
        _PROVENANCE + " && attestation.predicate.runDetails.builder.id == {builder-id}"
    ),
    "provenance-materials": (
        _PROVENANCE
        + ' && attestation.predicate.buildDefinition.resolvedDependencies'
        + '.all(m, m.digest.sha256 != "")'
    ),
    "provenance-buildtype": (
        _PROVENANCE + " && attestation.predicate.buildDefinition.buildType == {build-type}"
    ),

    # Vulnerability scans
    "vuln-no-critical": _STATEMENT + f" && {_SCAN_SUMMARY}.critical == 0",
    "vuln-threshold": (
        _STATEMENT
        + f" && {_SCAN_SUMMARY}.critical == 0"
        + f" && {_SCAN_SUMMARY}.high < int({{max-high}})"
    ),
    "vuln-scanner": _STATEMENT + " && attestation.predicate.scanner.vendor == {scanner}",

    # SBOM
    "sbom-present": (
        f'attestation.predicateType == "{SPDX_DOCUMENT}"'
        f' || attestation.predicateType == "{CYCLONEDX_BOM}"'
    ),
    "sbom-spdx": f'attestation.predicateType == "{SPDX_DOCUMENT}"',
    "sbom-cyclonedx": f'attestation.predicateType == "{CYCLONEDX_BOM}"',

    # Generic, parameter driven
    "generic-predicate-type": "attestation.predicateType == {predicate-type}",
    "generic-field-equals": "attestation.predicate[{field-path}] == {expected-value}",
    "generic-field-in": "attestation.predicate[{field-path}] in [{allowed-values-list}]",
})


@dataclass(frozen=True)
class ExpressionTemplate:
    """A parsed template: alternating literal text and placeholder names."""
    name: str
    source: str
    segments: tuple[tuple[str, Optional[str]], ...]

    @property
    def placeholders(self) -> tuple[str, ...]:
        names: list[str] = []
        for _, placeholder in self.segments:
            if placeholder is not None and placeholder not in names:
                names.append(placeholder)
        return tuple(names)

    def render(self, values: Mapping[str, str]) -> str:
        """Substitute every placeholder; a missing value is a TemplateError."""
        parts: list[str] = []
        for literal, placeholder in self.segments:
            parts.append(literal)
            if placeholder is None:
                continue
            if placeholder not in values:
                raise TemplateError(self.name, f"no value for placeholder '{placeholder}'")
            parts.append(str(values[placeholder]))
        return "".join(parts).strip()


def parse_template(name: str, source: str) -> ExpressionTemplate:
    """Parse a template string, rejecting anything beyond named placeholders."""
    try:
        parsed = list(string.Formatter().parse(source))
    except ValueError as e:
        raise TemplateError(name, "malformed template", cause=e) from e

    segments: list[tuple[str, Optional[str]]] = []
    for literal, field_name, format_spec, conversion in parsed:
        if field_name is None:
            segments.append((literal, None))
            continue
        if conversion is not None or format_spec:
            raise TemplateError(name, f"placeholder '{field_name}' uses a conversion or format spec")
        if not _PLACEHOLDER_NAME.match(field_name) or field_name.isdigit():
            raise TemplateError(name, f"invalid placeholder name '{field_name}'")
        segments.append((literal, field_name))

    return ExpressionTemplate(name=name, source=source, segments=tuple(segments))


def instantiate(name: str, source: str, values: Mapping[str, str]) -> str:
    """Parse and render in one step."""
    return parse_template(name, source).render(values)


@dataclass(frozen=True)
class TemplateLibrary(Mapping):
    """Read-only mapping of template name to template string."""
    templates: Mapping[str, str] = field(default_factory=lambda: BUILTIN_TEMPLATES)

    def __post_init__(self) -> None:
        object.__setattr__(self, "templates", MappingProxyType(dict(self.templates)))

    def __getitem__(self, name: str) -> str:
        return self.templates[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.templates)

    def __len__(self) -> int:
        return len(self.templates)

    def with_overrides(self, overrides: Optional[Mapping[str, str]]) -> TemplateLibrary:
        """New library with `overrides` layered on top; this one is unchanged."""
        if not overrides:
            return self
        merged = dict(self.templates)
        merged.update(overrides)
        return TemplateLibrary(merged)

    def parse(self, name: str) -> ExpressionTemplate:
        return parse_template(name, self.templates[name])


DEFAULT_LIBRARY = TemplateLibrary()
