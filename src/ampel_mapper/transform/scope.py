"""Compile policy scope dimensions into CEL subject filters."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Optional

from ampel_mapper.models.source import Dimensions

TECHNOLOGY_FIELD = "subject.type"
REGION_FIELD = "subject.annotations.region"
SENSITIVITY_FIELD = "subject.annotations.classification"
GROUP_FIELD = "subject.annotations.group"

REGION_CODES: Mapping[str, str] = MappingProxyType({
    "united states": "us",
    "european union": "eu",
    "canada": "ca",
    "united kingdom": "uk",
    "california": "us-ca",
})


def quote(value: str) -> str:
    """Double-quote a value as a CEL string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def quote_list(values: Iterable[str]) -> str:
    """Quote each value and comma-join, ready for use inside `[...]`."""
    return ", ".join(quote(v) for v in values)


def combine_expressions(expressions: list[str], operator: str) -> str:
    """Join expressions with `operator`, parenthesizing operands of && and ||."""
    if not expressions:
        return ""
    if len(expressions) == 1:
        return expressions[0]
    if operator in ("&&", "||"):
        return f" {operator} ".join(f"({expr})" for expr in expressions)
    return f" {operator} ".join(expressions)


def normalize_technology(value: str) -> str:
    return value.lower().replace(" ", "-")


def normalize_sensitivity(value: str) -> str:
    return value.lower()


def normalize_group(value: str) -> str:
    return value


@dataclass(frozen=True)
class ScopeCompiler:
    """Turns applies-to dimensions into a single boolean filter expression."""
    region_codes: Mapping[str, str] = field(default_factory=lambda: REGION_CODES)

    def __post_init__(self) -> None:
        object.__setattr__(self, "region_codes", MappingProxyType(dict(self.region_codes)))

    def with_regions(self, extra: Optional[Mapping[str, str]]) -> ScopeCompiler:
        if not extra:
            return self
        merged = dict(self.region_codes)
        merged.update({name.lower(): code for name, code in extra.items()})
        return ScopeCompiler(merged)

    def normalize_region(self, value: str) -> str:
        lowered = value.lower()
        return self.region_codes.get(lowered, lowered)

    def compile(self, dimensions: Dimensions) -> str:
        """Return `field in [...]` clauses joined by &&, or "" if every list is empty."""
        dimension_specs: list[tuple[str, list[str], Callable[[str], str]]] = [
            (TECHNOLOGY_FIELD, dimensions.technologies, normalize_technology),
            (REGION_FIELD, dimensions.geopolitical, self.normalize_region),
            (SENSITIVITY_FIELD, dimensions.sensitivity, normalize_sensitivity),
            (GROUP_FIELD, dimensions.groups, normalize_group),
        ]

        clauses = []
        for target_field, values, normalize in dimension_specs:
            if not values:
                continue
            clauses.append(f"{target_field} in [{quote_list(normalize(v) for v in values)}]")

        return " && ".join(clauses)


DEFAULT_SCOPE_COMPILER = ScopeCompiler()


def scope_filter_to_cel(dimensions: Dimensions, compiler: ScopeCompiler = DEFAULT_SCOPE_COMPILER) -> str:
    return compiler.compile(dimensions)
