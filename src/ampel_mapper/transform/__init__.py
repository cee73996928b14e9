"""Core transformation: pure functions over in-memory records.

- attestation.py: predicate-type inference from evidence text
- templates.py: built-in expression templates and the template library
- scope.py: scope dimensions to subject filters
- expression.py: template selection and expression generation
- enrichment.py: catalog lookups for titles and control references
- mapper.py: source policy to verification policy
- policyset.py: policy-set output modes
- merge.py: reconciliation with a stored policy
"""
from ampel_mapper.transform.attestation import (
    AttestationRules,
    AttestationTypeInference,
    infer_attestation_type,
    infer_attestation_types,
)
from ampel_mapper.transform.enrichment import CatalogEnrichment, lookup_requirement
from ampel_mapper.transform.expression import ExpressionGenerator, generate_expression
from ampel_mapper.transform.mapper import (
    assessment_plan_to_tenets,
    best_effort_major_version,
    build_context,
    build_outputs,
    build_parameter_references,
    from_policy,
)
from ampel_mapper.transform.merge import merge_policy
from ampel_mapper.transform.options import PolicySetOptions, TransformOptions, rule_to_assert_mode
from ampel_mapper.transform.policyset import (
    extract_policy_id_from_reference,
    from_policies,
    from_policy_with_imports,
)
from ampel_mapper.transform.scope import ScopeCompiler, combine_expressions, scope_filter_to_cel
from ampel_mapper.transform.templates import DEFAULT_LIBRARY, TemplateLibrary, parse_template

__all__ = [
    "AttestationRules",
    "AttestationTypeInference",
    "CatalogEnrichment",
    "DEFAULT_LIBRARY",
    "ExpressionGenerator",
    "PolicySetOptions",
    "ScopeCompiler",
    "TemplateLibrary",
    "TransformOptions",
    "assessment_plan_to_tenets",
    "best_effort_major_version",
    "build_context",
    "build_outputs",
    "build_parameter_references",
    "combine_expressions",
    "extract_policy_id_from_reference",
    "from_policies",
    "from_policy",
    "from_policy_with_imports",
    "generate_expression",
    "infer_attestation_type",
    "infer_attestation_types",
    "lookup_requirement",
    "merge_policy",
    "parse_template",
    "rule_to_assert_mode",
    "scope_filter_to_cel",
]
