"""Typed records for the policy mapper.

- source.py: the governance policy as loaded from its document
- catalog.py: optional control catalog used for enrichment
- target.py: verification policies, policy sets and merge statistics
- shared.py: enums and constants used on both sides
"""
from ampel_mapper.models.catalog import (
    AssessmentRequirement,
    Catalog,
    Control,
    Family,
)
from ampel_mapper.models.shared import (
    AUTOMATABLE_METHOD_TYPES,
    AssertMode,
    EnforceMode,
    MethodType,
)
from ampel_mapper.models.source import (
    Adherence,
    AssessmentPlan,
    Dimensions,
    EvaluationMethod,
    Imports,
    Metadata,
    Parameter,
    Scope,
    SourcePolicy,
)
from ampel_mapper.models.target import (
    ContextValue,
    ControlReference,
    MergeStats,
    Output,
    PolicyLocation,
    PolicyMeta,
    PolicySet,
    PolicySetMeta,
    PolicySource,
    PredicateSpec,
    TargetPolicy,
    Tenet,
)

__all__ = [
    # Source
    "Adherence",
    "AssessmentPlan",
    "Dimensions",
    "EvaluationMethod",
    "Imports",
    "Metadata",
    "Parameter",
    "Scope",
    "SourcePolicy",
    # Catalog
    "AssessmentRequirement",
    "Catalog",
    "Control",
    "Family",
    # Target
    "ContextValue",
    "ControlReference",
    "MergeStats",
    "Output",
    "PolicyLocation",
    "PolicyMeta",
    "PolicySet",
    "PolicySetMeta",
    "PolicySource",
    "PredicateSpec",
    "TargetPolicy",
    "Tenet",
    # Shared
    "AUTOMATABLE_METHOD_TYPES",
    "AssertMode",
    "EnforceMode",
    "MethodType",
]
