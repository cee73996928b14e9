"""Verification policy records produced by the mapper.

Field names match the JSON emitted for the downstream policy engine.
Records are frozen; the merge engine builds new records instead of
editing stored ones.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ampel_mapper.models.shared import DEFAULT_RUNTIME
from ampel_mapper.utils.error_handler import PolicyValidationError


class TargetRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with empty optional fields omitted."""
        return prune_empty(self.model_dump(mode="json", by_alias=True))


class ControlReference(TargetRecord):
    id: str = ""
    title: str = ""
    framework: str = ""
    class_: str = Field(default="", alias="class")


class PolicyMeta(TargetRecord):
    runtime: str = DEFAULT_RUNTIME
    description: str = ""
    assert_mode: str = "AND"
    version: int = 0
    enforce: Optional[str] = None
    controls: List[ControlReference] = Field(default_factory=list)


class ContextValue(TargetRecord):
    type: str = "string"
    required: Optional[bool] = None
    value: Optional[Any] = None
    default: Optional[Any] = None
    description: Optional[str] = None


class PredicateSpec(TargetRecord):
    types: List[str] = Field(default_factory=list)
    limit: Optional[int] = None


class Output(TargetRecord):
    code: str = ""
    value: Optional[Any] = None


class Tenet(TargetRecord):
    id: str = ""
    runtime: str = DEFAULT_RUNTIME
    title: str = ""
    code: str = ""
    predicates: Optional[PredicateSpec] = None
    outputs: Dict[str, Output] = Field(default_factory=dict)


class PolicyLocation(TargetRecord):
    uri: str = ""


class PolicySource(TargetRecord):
    """Where an external (non-inlined) policy lives."""
    id: str = ""
    location: PolicyLocation = Field(default_factory=PolicyLocation)


class TargetPolicy(TargetRecord):
    id: str = ""
    source: Optional[PolicySource] = None
    meta: Optional[PolicyMeta] = None
    context: Dict[str, ContextValue] = Field(default_factory=dict)
    tenets: List[Tenet] = Field(default_factory=list)

    @property
    def is_reference(self) -> bool:
        return self.source is not None

    def tenet_ids(self) -> list[str]:
        return [tenet.id for tenet in self.tenets]

    def validate_structure(self) -> None:
        """Raise PolicyValidationError if the policy cannot be evaluated."""
        if not self.tenets:
            raise PolicyValidationError("tenets", "policy has no tenets")

        seen: set[str] = set()
        for i, tenet in enumerate(self.tenets):
            if not tenet.id.strip():
                raise PolicyValidationError(f"tenets[{i}].id", "tenet has no id")
            if not tenet.code.strip():
                raise PolicyValidationError(
                    f"tenets[{i}].code", f"tenet '{tenet.id}' has no expression"
                )
            if tenet.id in seen:
                raise PolicyValidationError(
                    f"tenets[{i}].id", f"duplicate tenet id '{tenet.id}'"
                )
            seen.add(tenet.id)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TargetPolicy:
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, text: str) -> TargetPolicy:
        return cls.model_validate_json(text)


class PolicySetMeta(TargetRecord):
    runtime: str = DEFAULT_RUNTIME
    description: str = ""
    version: int = 0
    enforce: Optional[str] = None
    controls: List[ControlReference] = Field(default_factory=list)


class PolicySet(TargetRecord):
    id: str = ""
    meta: Optional[PolicySetMeta] = None
    policies: List[TargetPolicy] = Field(default_factory=list)

    def validate_structure(self) -> None:
        if not self.policies:
            raise PolicyValidationError("policies", "policy set has no policies")

        for i, policy in enumerate(self.policies):
            if policy.is_reference:
                if not policy.source.location.uri.strip():
                    raise PolicyValidationError(
                        f"policies[{i}].source.location.uri",
                        f"external policy '{policy.id}' has no location",
                    )
                continue
            try:
                policy.validate_structure()
            except PolicyValidationError as e:
                raise PolicyValidationError(
                    f"policies[{i}].{e.field_path}",
                    f"inline policy '{policy.id}' is invalid",
                    cause=e,
                ) from e

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


@dataclass
class MergeStats:
    """Counters from one reconciliation call."""
    tenets_preserved: int = 0
    tenets_added: int = 0
    tenets_removed: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def prune_empty(value: Any) -> Any:
    """Drop None, empty strings and empty containers; keep bools and numbers."""
    if isinstance(value, dict):
        pruned = {}
        for key, item in value.items():
            item = prune_empty(item)
            if _is_empty(item):
                continue
            pruned[key] = item
        return pruned
    if isinstance(value, list):
        return [prune_empty(item) for item in value]
    return value


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, dict)) and not value:
        return True
    return False
