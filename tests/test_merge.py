"""Tests for reconciling generated policies with stored ones."""
from __future__ import annotations

import pytest

from ampel_mapper.models.target import (
    ContextValue,
    Output,
    PolicyMeta,
    PredicateSpec,
    TargetPolicy,
    Tenet,
)
from ampel_mapper.transform.merge import merge_policy
from ampel_mapper.utils.error_handler import MergeValidationError, PolicyValidationError


def make_tenet(tenet_id: str, code: str = "true", title: str = "", **kwargs) -> Tenet:
    return Tenet(id=tenet_id, code=code, title=title or f"Tenet {tenet_id}", **kwargs)


def make_policy(tenets: list[Tenet], description: str = "policy", version: int = 1) -> TargetPolicy:
    return TargetPolicy(
        id="POL-1",
        meta=PolicyMeta(description=description, version=version),
        context={"p": ContextValue(required=False, default="a", value="a")},
        tenets=tenets,
    )


class TestMergeProperties:
    """Tests for the reconciliation invariants."""

    def test_idempotence(self):
        policy = make_policy([
            make_tenet("a", outputs={"o": Output(code="context.p")}),
            make_tenet("b", predicates=PredicateSpec(types=["https://x"])),
        ])

        merged, stats = merge_policy(policy, policy.model_copy(deep=True))

        assert merged.to_dict() == policy.to_dict()
        assert stats.to_dict() == {"tenets_preserved": 2, "tenets_added": 0, "tenets_removed": 0}

    def test_preserves_stored_expression(self):
        existing = make_policy([make_tenet("a", code="hand.edited == true")])
        generated = make_policy([make_tenet("a", code="generated == true")])

        merged, _ = merge_policy(existing, generated)

        assert merged.tenets[0].code == "hand.edited == true"

    def test_preserves_stored_outputs(self):
        existing = make_policy([make_tenet("a", outputs={"result": Output(code="x.y")})])
        generated = make_policy([make_tenet("a")])

        merged, _ = merge_policy(existing, generated)

        assert merged.tenets[0].outputs == {"result": Output(code="x.y")}

    def test_stored_outputs_beat_generated_outputs(self):
        existing = make_policy([make_tenet("a", outputs={"builder-id": Output(code="subject.builder")})])
        generated = make_policy([make_tenet("a", outputs={
            "builder-id": Output(code='context["builder-id"]'),
            "reviewers": Output(code='context["reviewers"]'),
        })])

        merged, _ = merge_policy(existing, generated)

        assert merged.tenets[0].outputs == {"builder-id": Output(code="subject.builder")}

    def test_generated_outputs_used_for_new_tenets(self):
        generated = make_policy([make_tenet("b", outputs={"p": Output(code='context["p"]')})])

        merged, _ = merge_policy(make_policy([make_tenet("a")]), generated)

        assert merged.tenets[0].outputs == {"p": Output(code='context["p"]')}

    def test_other_fields_come_from_generated(self):
        existing = make_policy(
            [make_tenet("a", code="old", title="Old title", runtime="cel@v1")],
            description="old meta",
            version=1,
        )
        generated = make_policy(
            [make_tenet("a", code="new", title="New title", predicates=PredicateSpec(types=["https://n"]))],
            description="new meta",
            version=2,
        )

        merged, _ = merge_policy(existing, generated)
        tenet = merged.tenets[0]

        assert tenet.title == "New title"
        assert tenet.runtime == "cel@v14.0"
        assert tenet.predicates.types == ["https://n"]
        assert merged.meta.description == "new meta"
        assert merged.meta.version == 2
        assert merged.context == generated.context

    def test_added_and_removed(self):
        existing = make_policy([make_tenet("a"), make_tenet("b"), make_tenet("c")])
        generated = make_policy([make_tenet("d"), make_tenet("b"), make_tenet("e"), make_tenet("a")])

        merged, stats = merge_policy(existing, generated)

        assert merged.tenet_ids() == ["d", "b", "e", "a"]
        assert stats.tenets_added == 2
        assert stats.tenets_removed == 1
        assert stats.tenets_preserved == 2

    def test_disjoint_sets(self):
        merged, stats = merge_policy(
            make_policy([make_tenet("x")]),
            make_policy([make_tenet("y")]),
        )
        assert merged.tenet_ids() == ["y"]
        assert (stats.tenets_preserved, stats.tenets_added, stats.tenets_removed) == (0, 1, 1)

    def test_inputs_are_not_modified(self):
        existing = make_policy([make_tenet("a", code="stored")])
        generated = make_policy([make_tenet("a", code="fresh"), make_tenet("b")])
        existing_before = existing.to_dict()
        generated_before = generated.to_dict()

        merge_policy(existing, generated)

        assert existing.to_dict() == existing_before
        assert generated.to_dict() == generated_before


class TestMergeValidation:
    """Tests for merge validation failures."""

    def test_invalid_merge_raises(self):
        existing = make_policy([make_tenet("a", code="ok")])
        generated = make_policy([make_tenet("b", code="   ")])

        with pytest.raises(MergeValidationError) as exc_info:
            merge_policy(existing, generated)

        assert isinstance(exc_info.value.cause, PolicyValidationError)
        assert exc_info.value.cause.field_path == "tenets[0].code"

    def test_empty_generated_policy_raises(self):
        with pytest.raises(MergeValidationError):
            merge_policy(make_policy([make_tenet("a")]), make_policy([]))

    def test_stored_code_repairs_blank_generated_code(self):
        existing = make_policy([make_tenet("a", code="stored")])
        generated = make_policy([make_tenet("a", code="")])

        merged, _ = merge_policy(existing, generated)

        assert merged.tenets[0].code == "stored"
