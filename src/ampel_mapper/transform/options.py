"""Options for single-policy and policy-set transformation."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

from ampel_mapper.models.catalog import Catalog
from ampel_mapper.models.shared import DEFAULT_RULE, DEFAULT_RUNTIME, AssertMode, EnforceMode
from ampel_mapper.models.target import PolicyMeta
from ampel_mapper.transform.attestation import DEFAULT_RULES, AttestationRules
from ampel_mapper.transform.scope import DEFAULT_SCOPE_COMPILER, ScopeCompiler
from ampel_mapper.transform.templates import DEFAULT_LIBRARY, TemplateLibrary


def rule_to_assert_mode(rule: str) -> str:
    """Map an overall rule to an assertion mode.

    "AND"/"OR" (any case) are taken as-is; otherwise a rule mentioning
    "any" means OR and everything else means AND.
    """
    normalized = rule.strip().upper()
    if normalized in (AssertMode.AND.value, AssertMode.OR.value):
        return normalized
    if "any" in rule.lower():
        return AssertMode.OR.value
    return AssertMode.AND.value


@dataclass(frozen=True)
class TransformOptions:
    """Knobs for mapping one source policy.

    Attributes:
        catalog: Control catalog for titles and control references.
        templates: Named template overrides layered over the built-ins.
        default_attestation_types: Predicate filter used when a tenet infers none.
        include_scope_filters: Wrap every expression in the compiled scope filter.
        default_rule: Overall rule; decides the assertion mode.
        enforce: Optional "ON"/"OFF" enforcement mode.
        runtime: Expression runtime stamped on the policy and every tenet.
    """
    catalog: Optional[Catalog] = None
    templates: Mapping[str, str] = field(default_factory=dict)
    default_attestation_types: tuple[str, ...] = ()
    include_scope_filters: bool = False
    default_rule: str = DEFAULT_RULE
    enforce: Optional[str] = None
    runtime: str = DEFAULT_RUNTIME
    base_library: TemplateLibrary = DEFAULT_LIBRARY
    scope_compiler: ScopeCompiler = DEFAULT_SCOPE_COMPILER
    attestation_rules: AttestationRules = DEFAULT_RULES

    def __post_init__(self) -> None:
        object.__setattr__(self, "default_attestation_types", tuple(self.default_attestation_types))
        if not self.default_rule:
            object.__setattr__(self, "default_rule", DEFAULT_RULE)
        if not self.runtime:
            object.__setattr__(self, "runtime", DEFAULT_RUNTIME)
        if self.enforce:
            object.__setattr__(self, "enforce", EnforceMode(self.enforce.upper()).value)

    @property
    def assert_mode(self) -> str:
        return rule_to_assert_mode(self.default_rule)

    def template_library(self) -> TemplateLibrary:
        return self.base_library.with_overrides(self.templates)


@dataclass(frozen=True)
class PolicySetOptions:
    """Options for building a policy set.

    `meta` maps a policy id (source id, or derived id for imports) to a
    metadata block that replaces the generated one.
    """
    name: str = ""
    description: str = ""
    version: str = ""
    meta: Mapping[str, PolicyMeta] = field(default_factory=dict)
    transform: TransformOptions = field(default_factory=TransformOptions)
