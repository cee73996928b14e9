"""CEL expression generation for evaluation methods.

Template selection is an ordered list of rules evaluated against the
lower-cased evidence text. A rule fires when the text contains one of
its category keywords and one of its qualifier keywords (a rule with no
qualifiers fires on the category alone). The first rule to fire wins.
When no rule fires, the evaluation method type picks a generic template.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional

from ampel_mapper.models.shared import LIST_SUFFIX, MethodType
from ampel_mapper.models.source import EvaluationMethod
from ampel_mapper.transform.attestation import (
    DEFAULT_RULES,
    AttestationRules,
    infer_attestation_type,
)
from ampel_mapper.transform.scope import quote
from ampel_mapper.transform.templates import DEFAULT_LIBRARY, parse_template
from ampel_mapper.utils.error_handler import TemplateError

PREDICATE_TYPE_PARAM = "predicate-type"

_PROVENANCE = ("slsa", "provenance")
_VULNERABILITY = ("vulnerabilit", "cve")
_SBOM = ("sbom", "software bill of materials")


@dataclass(frozen=True)
class TemplateRule:
    template: str
    category: tuple[str, ...]
    qualifiers: tuple[str, ...] = ()

    def matches(self, lowered: str) -> bool:
        if not any(kw in lowered for kw in self.category):
            return False
        if not self.qualifiers:
            return True
        return any(kw in lowered for kw in self.qualifiers)


# Order is the tie-break: provenance before vulnerability before SBOM
TEMPLATE_RULES: tuple[TemplateRule, ...] = (
    TemplateRule("provenance-builder", _PROVENANCE, ("builder",)),
    TemplateRule("provenance-materials", _PROVENANCE, ("material",)),
    TemplateRule("provenance-buildtype", _PROVENANCE, ("buildtype", "build type")),
    TemplateRule("vuln-no-critical", _VULNERABILITY, ("critical",)),
    TemplateRule("vuln-threshold", _VULNERABILITY, ("threshold",)),
    TemplateRule("vuln-scanner", _VULNERABILITY, ("scanner",)),
    TemplateRule("sbom-spdx", _SBOM, ("spdx",)),
    TemplateRule("sbom-cyclonedx", _SBOM, ("cyclonedx",)),
    TemplateRule("sbom-present", _SBOM),
)

METHOD_TYPE_TEMPLATES: Mapping[str, str] = MappingProxyType({
    MethodType.AUTOMATED.value: "generic-field-equals",
    MethodType.GATE.value: "generic-predicate-type",
    MethodType.BEHAVIORAL.value: "generic-field-equals",
    MethodType.AUTOREMEDIATION.value: "generic-field-equals",
})


@dataclass(frozen=True)
class TemplateSelection:
    name: str
    from_method_type: bool = False


def context_reference(param_id: str) -> str:
    """CEL reference to a runtime context value."""
    return f'context["{param_id}"]'


def basic_expression(predicate_type: str, evidence: str) -> str:
    """Fallback when no usable template exists. Never empty."""
    if predicate_type:
        return f"attestation.predicateType == {quote(predicate_type)}"
    return f"true /* verification logic required for: {evidence} */"


@dataclass(frozen=True)
class ExpressionGenerator:
    templates: Mapping[str, str] = DEFAULT_LIBRARY
    template_rules: tuple[TemplateRule, ...] = TEMPLATE_RULES
    method_templates: Mapping[str, str] = field(default_factory=lambda: METHOD_TYPE_TEMPLATES)
    attestation_rules: AttestationRules = DEFAULT_RULES

    def select_template(self, evidence: str, method_type: str) -> Optional[TemplateSelection]:
        lowered = evidence.lower()
        for rule in self.template_rules:
            if rule.matches(lowered):
                return TemplateSelection(rule.template)

        name = self.method_templates.get(method_type)
        if name:
            return TemplateSelection(name, from_method_type=True)
        return None

    def generate(
        self,
        method: EvaluationMethod,
        evidence: str,
        params: Mapping[str, str],
    ) -> tuple[str, list[str]]:
        """Return (expression, predicate types). Raises TemplateError on a bad template."""
        predicate_type = infer_attestation_type(evidence, self.attestation_rules)
        predicate_types = [predicate_type] if predicate_type else []

        values = dict(params)
        if predicate_type and PREDICATE_TYPE_PARAM not in values:
            values[PREDICATE_TYPE_PARAM] = quote(predicate_type)

        selection = self.select_template(evidence, method.type)
        if selection is None or selection.name not in self.templates:
            return basic_expression(predicate_type, evidence), predicate_types

        template = parse_template(selection.name, self.templates[selection.name])

        if selection.from_method_type:
            # Generic templates only apply when the plan supplies their parameters
            if any(p not in values for p in template.placeholders):
                return basic_expression(predicate_type, evidence), predicate_types
            return template.render(values), predicate_types

        for placeholder in template.placeholders:
            if placeholder in values:
                continue
            if placeholder.endswith(LIST_SUFFIX):
                raise TemplateError(
                    selection.name, f"no values supplied for list placeholder '{placeholder}'"
                )
            values[placeholder] = context_reference(placeholder)

        return template.render(values), predicate_types


def generate_expression(
    method: EvaluationMethod,
    evidence: str,
    params: Mapping[str, str],
    templates: Mapping[str, str] = DEFAULT_LIBRARY,
) -> tuple[str, list[str]]:
    """Generate an expression with the default rules and the given template set."""
    return ExpressionGenerator(templates=templates).generate(method, evidence, params)
