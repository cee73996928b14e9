"""Policy-set output: several inline policies, or one policy plus its imports."""
from __future__ import annotations

import posixpath
from collections.abc import Sequence
from typing import Optional

from ampel_mapper.models.source import SourcePolicy
from ampel_mapper.models.target import (
    PolicyLocation,
    PolicySet,
    PolicySetMeta,
    PolicySource,
    TargetPolicy,
)
from ampel_mapper.transform.mapper import best_effort_major_version, from_policy
from ampel_mapper.transform.options import PolicySetOptions
from ampel_mapper.utils.error_handler import MappingError, PolicyValidationError


def extract_policy_id_from_reference(reference: str) -> str:
    """Derive an id from an import reference.

    `git+https://host/repo#path/to/policy.json` gives `policy`; a
    reference without `#` is used whole.
    """
    if "#" not in reference:
        return reference
    fragment_path = reference.rsplit("#", 1)[1]
    base = posixpath.basename(fragment_path)
    stem, _ = posixpath.splitext(base)
    return stem or base


def _inline(policy: TargetPolicy, options: PolicySetOptions, key: str) -> TargetPolicy:
    meta = options.meta.get(key)
    if meta is None:
        return policy
    return policy.model_copy(update={"meta": meta})


def _set_meta(options: PolicySetOptions, description: str, version: str) -> PolicySetMeta:
    return PolicySetMeta(
        runtime=options.transform.runtime,
        description=description,
        version=best_effort_major_version(version),
        enforce=options.transform.enforce,
    )


def _validated(policy_set: PolicySet) -> PolicySet:
    try:
        policy_set.validate_structure()
    except PolicyValidationError as e:
        raise MappingError(
            f"policy set '{policy_set.id}'", "generated policy set failed validation", cause=e
        ) from e
    return policy_set


def from_policies(
    sources: Sequence[SourcePolicy],
    options: Optional[PolicySetOptions] = None,
) -> PolicySet:
    """Map every source policy and inline them in one set."""
    options = options or PolicySetOptions()
    if not sources:
        raise MappingError("policy set", "at least one policy is required")

    policies = []
    for source in sources:
        try:
            target = from_policy(source, options.transform)
        except MappingError as e:
            raise MappingError(f"policy '{source.id}'", "conversion failed", cause=e) from e
        policies.append(_inline(target, options, source.id))

    policy_set = PolicySet(
        id=options.name,
        meta=_set_meta(options, options.description, options.version),
        policies=policies,
    )
    return _validated(policy_set)


def from_policy_with_imports(
    source: SourcePolicy,
    options: Optional[PolicySetOptions] = None,
) -> PolicySet:
    """Inline the main policy and reference each imported policy externally."""
    options = options or PolicySetOptions()

    target = from_policy(source, options.transform)
    policies = [_inline(target, options, source.id)]

    for reference in source.imports.policies:
        policy_id = extract_policy_id_from_reference(reference)
        policies.append(TargetPolicy(
            id=policy_id,
            source=PolicySource(location=PolicyLocation(uri=reference)),
            meta=options.meta.get(policy_id),
        ))

    policy_set = PolicySet(
        id=options.name or f"{source.id}-set",
        meta=_set_meta(
            options,
            options.description or source.metadata.description,
            options.version or source.metadata.version,
        ),
        policies=policies,
    )
    return _validated(policy_set)
