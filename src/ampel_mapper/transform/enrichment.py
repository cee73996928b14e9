"""Catalog lookups that enrich tenet titles and policy control references."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ampel_mapper.models.catalog import AssessmentRequirement, Catalog, Control, Family
from ampel_mapper.models.target import ControlReference


@dataclass(frozen=True)
class CatalogEnrichment:
    """Resolved control, requirement and family for one requirement id."""
    control: Control
    requirement: AssessmentRequirement
    family: Optional[Family] = None


def lookup_requirement(catalog: Optional[Catalog], requirement_id: str) -> Optional[CatalogEnrichment]:
    """Find the control holding `requirement_id`; None without a catalog or match."""
    if catalog is None or not requirement_id:
        return None

    for control in catalog.controls:
        for requirement in control.assessment_requirements:
            if requirement.id != requirement_id:
                continue
            family = next((f for f in catalog.families if f.id == control.family), None)
            return CatalogEnrichment(control=control, requirement=requirement, family=family)

    return None


def enrich_tenet_title(enrichment: Optional[CatalogEnrichment], default_title: str) -> str:
    """Requirement text, then control title, then `default_title`."""
    if enrichment is None:
        return default_title
    if enrichment.requirement.text:
        return enrichment.requirement.text
    if enrichment.control.title:
        return enrichment.control.title
    return default_title


def create_control_reference(enrichment: Optional[CatalogEnrichment]) -> Optional[ControlReference]:
    if enrichment is None:
        return None

    framework = class_ = ""
    if enrichment.family is not None:
        framework = enrichment.family.title
        class_ = enrichment.family.id

    return ControlReference(
        id=enrichment.control.id,
        title=enrichment.control.title,
        framework=framework,
        class_=class_,
    )


def collect_control_references(
    enrichments: Iterable[Optional[CatalogEnrichment]],
) -> list[ControlReference]:
    """One reference per control id, in first-seen order."""
    references: dict[str, ControlReference] = {}
    for enrichment in enrichments:
        if enrichment is None or enrichment.control.id in references:
            continue
        references[enrichment.control.id] = create_control_reference(enrichment)
    return list(references.values())
