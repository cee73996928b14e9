"""Control catalog records used for optional title/control enrichment."""
from __future__ import annotations

from typing import List

from pydantic import Field

from ampel_mapper.models.source import Metadata, SourceRecord


class Family(SourceRecord):
    id: str = ""
    title: str = ""
    description: str = ""


class AssessmentRequirement(SourceRecord):
    id: str = ""
    text: str = ""


class Control(SourceRecord):
    id: str = ""
    title: str = ""
    objective: str = ""
    family: str = ""
    assessment_requirements: List[AssessmentRequirement] = Field(
        default_factory=list, alias="assessment-requirements"
    )


class Catalog(SourceRecord):
    title: str = ""
    metadata: Metadata = Field(default_factory=Metadata)
    families: List[Family] = Field(default_factory=list)
    controls: List[Control] = Field(default_factory=list)
