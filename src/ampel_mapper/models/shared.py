"""Shared model definitions for the policy mapper.

Canonical enums and constants used by both the source and target
sides of the transformation.

Usage:
    from ampel_mapper.models.shared import MethodType, AssertMode, SLSA_PROVENANCE_V1
"""
from __future__ import annotations

from enum import Enum


class MethodType(str, Enum):
    """Evaluation method classification tags found on assessment plans.

    Only the automatable tags produce tenets; everything else
    (including MANUAL) is skipped by the mapper.
    """
    AUTOMATED = "automated"
    GATE = "gate"
    BEHAVIORAL = "behavioral"
    AUTOREMEDIATION = "autoremediation"
    MANUAL = "manual"


class AssertMode(str, Enum):
    """How tenet results combine into a policy verdict."""
    AND = "AND"
    OR = "OR"


class EnforceMode(str, Enum):
    """Policy enforcement switch understood by the downstream engine."""
    ON = "ON"
    OFF = "OFF"


# Case-sensitive, exact-match set of method types that can be automated
AUTOMATABLE_METHOD_TYPES: frozenset[str] = frozenset({
    MethodType.AUTOMATED.value,
    MethodType.GATE.value,
    MethodType.BEHAVIORAL.value,
    MethodType.AUTOREMEDIATION.value,
})

# Well-known predicate types
SLSA_PROVENANCE_V1 = "https://slsa.dev/provenance/v1"
IN_TOTO_STATEMENT_V01 = "https://in-toto.io/Statement/v0.1"
IN_TOTO_STATEMENT_V1 = "https://in-toto.io/Statement/v1"
SPDX_DOCUMENT = "https://spdx.dev/Document"
CYCLONEDX_BOM = "https://cyclonedx.org/bom"

# Expression runtime stamped on generated policies and tenets
DEFAULT_RUNTIME = "cel@v14.0"

# Default overall rule: every tenet must pass
DEFAULT_RULE = "all(tenets)"

# Type tag for context values mapped from source parameters
CONTEXT_TYPE_STRING = "string"

# Suffix for the pre-quoted multi-value parameter placeholder
LIST_SUFFIX = "-list"
