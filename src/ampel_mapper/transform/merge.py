"""Reconcile a freshly generated policy with a previously stored one.

This is a two-way merge keyed by tenet id, not a three-way merge: there
is no common ancestor, so a hand edit and a source-driven change to the
same tenet are indistinguishable and the stored expression always wins.
A preserved expression is not re-checked against the regenerated
predicate filter.
"""
from __future__ import annotations

from ampel_mapper.models.target import MergeStats, TargetPolicy, Tenet
from ampel_mapper.utils.error_handler import MergeValidationError, PolicyValidationError


def merge_tenet(existing: Tenet, generated: Tenet) -> Tenet:
    """Generated tenet with the stored expression and outputs."""
    return generated.model_copy(update={
        "code": existing.code,
        "outputs": dict(existing.outputs),
    })


def merge_policy(existing: TargetPolicy, generated: TargetPolicy) -> tuple[TargetPolicy, MergeStats]:
    """Merge `generated` over `existing`; neither input is modified.

    Id, meta and context come from `generated`. Tenets follow the
    generated order; ones that also exist keep their stored code and
    outputs. Stored tenets missing from `generated` are dropped.

    Raises:
        MergeValidationError: the merged policy failed validation.
    """
    stats = MergeStats()
    stored = {tenet.id: tenet for tenet in existing.tenets}

    tenets: list[Tenet] = []
    for tenet in generated.tenets:
        previous = stored.get(tenet.id)
        if previous is None:
            tenets.append(tenet)
            stats.tenets_added += 1
        else:
            tenets.append(merge_tenet(previous, tenet))
            stats.tenets_preserved += 1

    generated_ids = set(generated.tenet_ids())
    stats.tenets_removed = sum(1 for tenet_id in stored if tenet_id not in generated_ids)

    merged = generated.model_copy(update={"tenets": tenets})
    try:
        merged.validate_structure()
    except PolicyValidationError as e:
        raise MergeValidationError(e) from e

    return merged, stats
