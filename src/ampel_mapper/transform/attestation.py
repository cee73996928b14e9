"""Attestation predicate-type inference from free-text evidence.

Classification is keyword based and order sensitive: rules are tried
top to bottom and the first rule whose keywords appear in the
lower-cased text decides the predicate type.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ampel_mapper.models.shared import (
    IN_TOTO_STATEMENT_V01,
    IN_TOTO_STATEMENT_V1,
    SLSA_PROVENANCE_V1,
)
from ampel_mapper.models.source import SourcePolicy


@dataclass(frozen=True)
class KeywordRule:
    """Maps any of `keywords` (substring match on lower-cased text) to `result`."""
    name: str
    keywords: tuple[str, ...]
    result: str

    def matches(self, lowered: str) -> bool:
        return any(kw in lowered for kw in self.keywords)


PREDICATE_TYPE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        name="slsa-provenance",
        keywords=("slsa", "provenance", "builder", "build provenance"),
        result=SLSA_PROVENANCE_V1,
    ),
    KeywordRule(
        name="vulnerability-scan",
        keywords=("vulnerabilit", "cve", "security scan", "vuln scan"),
        result=IN_TOTO_STATEMENT_V01,
    ),
    KeywordRule(
        name="in-toto-attestation",
        keywords=("in-toto", "attestation"),
        result=IN_TOTO_STATEMENT_V01,
    ),
)

# Policy-level flags use a slightly wider vocabulary
PROVENANCE_KEYWORDS: tuple[str, ...] = (
    "slsa", "provenance", "builder", "build provenance", "build attestation",
)
VULN_SCAN_KEYWORDS: tuple[str, ...] = (
    "vulnerabilit", "cve", "security scan", "vuln scan",
)

STANDARD_PREDICATE_TYPES: tuple[str, ...] = (
    SLSA_PROVENANCE_V1,
    IN_TOTO_STATEMENT_V01,
    IN_TOTO_STATEMENT_V1,
)


@dataclass(frozen=True)
class AttestationRules:
    """Immutable inference configuration; swap in a custom one for tests or callers."""
    predicate_rules: tuple[KeywordRule, ...] = PREDICATE_TYPE_RULES
    provenance_keywords: tuple[str, ...] = PROVENANCE_KEYWORDS
    vuln_scan_keywords: tuple[str, ...] = VULN_SCAN_KEYWORDS
    standard_types: tuple[str, ...] = STANDARD_PREDICATE_TYPES

    def is_standard_type(self, url: str) -> bool:
        return any(std in url for std in self.standard_types)


DEFAULT_RULES = AttestationRules()


@dataclass
class AttestationTypeInference:
    """Which attestation types a whole policy needs."""
    requires_provenance: bool = False
    requires_vuln_scan: bool = False
    custom_types: list[str] = field(default_factory=list)

    def all_types(self) -> list[str]:
        types = []
        if self.requires_provenance:
            types.append(SLSA_PROVENANCE_V1)
        if self.requires_vuln_scan:
            types.append(IN_TOTO_STATEMENT_V01)
        types.extend(self.custom_types)
        return types

    def to_dict(self) -> dict:
        return {
            "requires_provenance": self.requires_provenance,
            "requires_vuln_scan": self.requires_vuln_scan,
            "custom_types": list(self.custom_types),
            "all_types": self.all_types(),
        }


def match_rule(text: str, rules: Iterable[KeywordRule]) -> Optional[KeywordRule]:
    """Return the first rule matching `text`, or None."""
    lowered = text.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule
    return None


def infer_attestation_type(evidence: str, rules: AttestationRules = DEFAULT_RULES) -> str:
    """Infer a single predicate type from an evidence description; "" if unknown."""
    rule = match_rule(evidence, rules.predicate_rules)
    return rule.result if rule else ""


def infer_attestation_types(
    policy: SourcePolicy,
    rules: AttestationRules = DEFAULT_RULES,
) -> AttestationTypeInference:
    """Walk every plan's evidence and every top-level method description."""
    inference = AttestationTypeInference()

    for plan in policy.adherence.assessment_plans:
        if plan.evidence_requirements:
            _analyze_text(plan.evidence_requirements, inference, rules)

    for method in policy.adherence.evaluation_methods:
        if method.description:
            _analyze_text(method.description, inference, rules)

    return inference


def _analyze_text(text: str, inference: AttestationTypeInference, rules: AttestationRules) -> None:
    lowered = text.lower()

    if any(kw in lowered for kw in rules.provenance_keywords):
        inference.requires_provenance = True

    if any(kw in lowered for kw in rules.vuln_scan_keywords):
        inference.requires_vuln_scan = True

    if "https://" not in text:
        return

    for token in text.split():
        if not token.startswith("https://"):
            continue
        if rules.is_standard_type(token):
            continue
        if token not in inference.custom_types:
            inference.custom_types.append(token)
