"""Source governance policy records.

These mirror the layer-3 policy document: metadata, scope, imports and
the adherence block with its assessment plans. Document keys are
kebab-case; Python attributes are snake_case and either form is
accepted on input.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SourceRecord(BaseModel):
    """Shared base: frozen, tolerant of unknown keys, populated by alias or name."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Actor(SourceRecord):
    id: str = ""
    name: str = ""


class Metadata(SourceRecord):
    id: str = ""
    version: str = ""
    description: str = ""
    author: Optional[Actor] = None

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_text(cls, value):
        # YAML reads `version: 2.0` as a float
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class Dimensions(SourceRecord):
    """Applies-to dimensions of a policy scope."""
    technologies: List[str] = Field(default_factory=list)
    geopolitical: List[str] = Field(default_factory=list)
    sensitivity: List[str] = Field(default_factory=list)
    groups: List[str] = Field(default_factory=list)


class Scope(SourceRecord):
    in_: Dimensions = Field(default_factory=Dimensions, alias="in")
    out: Dimensions = Field(default_factory=Dimensions)


class Imports(SourceRecord):
    policies: List[str] = Field(default_factory=list)
    catalogs: List[str] = Field(default_factory=list)


def _scalar_text(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


class Parameter(SourceRecord):
    """A plan parameter. Empty accepted_values means runtime-supplied."""
    id: str
    label: str = ""
    description: str = ""
    accepted_values: List[str] = Field(default_factory=list, alias="accepted-values")

    @field_validator("accepted_values", mode="before")
    @classmethod
    def _values_as_text(cls, value):
        if isinstance(value, list):
            return [_scalar_text(v) for v in value]
        return value

    @property
    def context_description(self) -> str:
        return self.description or self.label


class EvaluationMethod(SourceRecord):
    type: str = ""
    description: str = ""


class AssessmentPlan(SourceRecord):
    id: str = ""
    requirement_id: str = Field(default="", alias="requirement-id")
    frequency: str = ""
    evidence_requirements: str = Field(default="", alias="evidence-requirements")
    parameters: List[Parameter] = Field(default_factory=list)
    evaluation_methods: List[EvaluationMethod] = Field(
        default_factory=list, alias="evaluation-methods"
    )


class Adherence(SourceRecord):
    assessment_plans: List[AssessmentPlan] = Field(default_factory=list, alias="assessment-plans")
    evaluation_methods: List[EvaluationMethod] = Field(
        default_factory=list, alias="evaluation-methods"
    )


class SourcePolicy(SourceRecord):
    """A governance policy as loaded from its document. Never mutated."""
    title: str = ""
    metadata: Metadata = Field(default_factory=Metadata)
    scope: Scope = Field(default_factory=Scope)
    imports: Imports = Field(default_factory=Imports)
    adherence: Adherence = Field(default_factory=Adherence)

    @property
    def id(self) -> str:
        return self.metadata.id

    @property
    def assessment_plans(self) -> List[AssessmentPlan]:
        return self.adherence.assessment_plans
