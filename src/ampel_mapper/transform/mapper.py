"""Structural mapping from a source governance policy to a verification policy.

Each automatable evaluation method of each assessment plan becomes one
tenet. Tenet ids are `{requirement-id}-{plan-id}-{ordinal}` where the
ordinal counts automatable methods only. Everything here is a pure
function over in-memory records.
"""
from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Optional

from ampel_mapper.models.shared import (
    AUTOMATABLE_METHOD_TYPES,
    CONTEXT_TYPE_STRING,
    LIST_SUFFIX,
)
from ampel_mapper.models.source import AssessmentPlan, EvaluationMethod, Parameter, SourcePolicy
from ampel_mapper.models.target import ContextValue, Output, PolicyMeta, PredicateSpec, TargetPolicy, Tenet
from ampel_mapper.transform.enrichment import (
    CatalogEnrichment,
    collect_control_references,
    enrich_tenet_title,
    lookup_requirement,
)
from ampel_mapper.transform.expression import ExpressionGenerator, context_reference
from ampel_mapper.transform.options import TransformOptions
from ampel_mapper.transform.scope import combine_expressions, quote_list
from ampel_mapper.utils.error_handler import MapperError, MappingError, PolicyValidationError

TITLE_MAX_LENGTH = 80

_INTEGER = re.compile(r"[+-]?[0-9]+")


def best_effort_major_version(version: str) -> int:
    """Major component of a dotted version; 0 when it is not an integer.

    Lossy by intent: minor and patch components are discarded.
    """
    head = (version or "").split(".", 1)[0]
    if not _INTEGER.fullmatch(head):
        return 0
    return int(head)


def is_automated_method(method_type: str) -> bool:
    return method_type in AUTOMATABLE_METHOD_TYPES


def build_context_value(param: Parameter) -> ContextValue:
    if param.accepted_values:
        first = param.accepted_values[0]
        return ContextValue(
            type=CONTEXT_TYPE_STRING,
            required=False,
            value=first,
            default=first,
            description=param.context_description or None,
        )
    return ContextValue(
        type=CONTEXT_TYPE_STRING,
        required=True,
        value=None,
        default=None,
        description=param.context_description or None,
    )


def build_context(plans: Iterable[AssessmentPlan]) -> dict[str, ContextValue]:
    """Union of parameter ids across plans; the first occurrence of an id wins."""
    context: dict[str, ContextValue] = {}
    for plan in plans:
        for param in plan.parameters:
            if param.id in context:
                continue
            context[param.id] = build_context_value(param)
    return context


def build_parameter_references(parameters: Iterable[Parameter]) -> dict[str, str]:
    """Placeholder values for one plan.

    Every parameter maps to its context reference; a parameter with more
    than one accepted value also gets `<id>-list` holding the quoted values.
    """
    references: dict[str, str] = {}
    for param in parameters:
        references[param.id] = context_reference(param.id)
        if len(param.accepted_values) > 1:
            references[param.id + LIST_SUFFIX] = quote_list(param.accepted_values)
    return references


def build_outputs(parameters: Iterable[Parameter]) -> dict[str, Output]:
    """Output bindings exposing each parameter that has accepted values."""
    return {
        param.id: Output(code=context_reference(param.id))
        for param in parameters
        if param.accepted_values
    }


def get_tenet_title(
    method: EvaluationMethod,
    evidence: str,
    enrichment: Optional[CatalogEnrichment] = None,
) -> str:
    if method.description:
        return method.description

    default = _evidence_title(evidence) or f"{method.type} verification"
    return enrich_tenet_title(enrichment, default)


def _evidence_title(evidence: str) -> str:
    title = (evidence or "").strip()
    if len(title) > TITLE_MAX_LENGTH:
        return title[:TITLE_MAX_LENGTH - 3] + "..."
    return title


def assessment_plan_to_tenets(
    plan: AssessmentPlan,
    source: SourcePolicy,
    options: TransformOptions,
    generator: Optional[ExpressionGenerator] = None,
    enrichment: Optional[CatalogEnrichment] = None,
) -> list[Tenet]:
    """Tenets for one plan. Generation failures surface as MappingError."""
    if generator is None:
        generator = ExpressionGenerator(
            templates=options.template_library(),
            attestation_rules=options.attestation_rules,
        )

    scope_filter = ""
    if options.include_scope_filters:
        scope_filter = options.scope_compiler.compile(source.scope.in_)

    params = build_parameter_references(plan.parameters)
    outputs = build_outputs(plan.parameters)
    evidence = plan.evidence_requirements

    tenets: list[Tenet] = []
    ordinal = 0
    for method in plan.evaluation_methods:
        if not is_automated_method(method.type):
            continue

        try:
            code, predicate_types = generator.generate(method, evidence, params)
        except MapperError as e:
            raise MappingError(
                f"plan '{plan.id}' (requirement '{plan.requirement_id}') method {ordinal}",
                "expression generation failed",
                cause=e,
            ) from e

        if scope_filter:
            code = combine_expressions([scope_filter, code], "&&")

        types = predicate_types or list(options.default_attestation_types)
        tenets.append(Tenet(
            id=f"{plan.requirement_id}-{plan.id}-{ordinal}",
            runtime=options.runtime,
            title=get_tenet_title(method, evidence, enrichment),
            code=code,
            predicates=PredicateSpec(types=types) if types else None,
            outputs=dict(outputs),
        ))
        ordinal += 1

    return tenets


def from_policy(source: SourcePolicy, options: Optional[TransformOptions] = None) -> TargetPolicy:
    """Map a source policy to a validated verification policy.

    Raises:
        MappingError: a plan could not be mapped or the result failed validation.
    """
    options = options or TransformOptions()
    generator = ExpressionGenerator(
        templates=options.template_library(),
        attestation_rules=options.attestation_rules,
    )

    tenets: list[Tenet] = []
    enrichments: list[Optional[CatalogEnrichment]] = []
    for plan in source.assessment_plans:
        enrichment = lookup_requirement(options.catalog, plan.requirement_id)
        enrichments.append(enrichment)
        tenets.extend(assessment_plan_to_tenets(plan, source, options, generator, enrichment))

    target = TargetPolicy(
        id=source.id,
        meta=PolicyMeta(
            runtime=options.runtime,
            description=source.metadata.description,
            assert_mode=options.assert_mode,
            version=best_effort_major_version(source.metadata.version),
            enforce=options.enforce,
            controls=collect_control_references(enrichments),
        ),
        context=build_context(source.assessment_plans),
        tenets=tenets,
    )

    try:
        target.validate_structure()
    except PolicyValidationError as e:
        raise MappingError(f"policy '{source.id}'", "generated policy failed validation", cause=e) from e

    return target
