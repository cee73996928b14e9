"""Tests for policy-set output."""
from __future__ import annotations

from typing import Optional

import pytest

from ampel_mapper.models.source import SourcePolicy
from ampel_mapper.models.target import (
    PolicyLocation,
    PolicyMeta,
    PolicySet,
    PolicySource,
    TargetPolicy,
    Tenet,
)
from ampel_mapper.transform.options import PolicySetOptions, TransformOptions
from ampel_mapper.transform.policyset import (
    extract_policy_id_from_reference,
    from_policies,
    from_policy_with_imports,
)
from ampel_mapper.utils.error_handler import MappingError, PolicyValidationError


def make_source(
    policy_id: str = "POL-1",
    version: str = "3.1.0",
    imports: Optional[list[str]] = None,
    method_type: str = "automated",
) -> SourcePolicy:
    return SourcePolicy.model_validate({
        "metadata": {"id": policy_id, "version": version, "description": f"{policy_id} description"},
        "imports": {"policies": imports or []},
        "adherence": {
            "assessment-plans": [{
                "id": "plan-1",
                "requirement-id": "REQ-1",
                "evidence-requirements": "SLSA provenance with builder",
                "evaluation-methods": [{"type": method_type}],
            }],
        },
    })


class TestExtractPolicyId:
    """Tests for deriving ids from import references."""

    @pytest.mark.parametrize("reference, expected", [
        ("git+https://github.com/org/repo#path/to/policy.json", "policy"),
        ("https://host/x#a/b#nested/base.yaml", "base"),
        ("https://host/repo#no-extension", "no-extension"),
        ("https://host/policies/plain", "https://host/policies/plain"),
        ("local-policy", "local-policy"),
    ])
    def test_reference(self, reference, expected):
        assert extract_policy_id_from_reference(reference) == expected


class TestFromPolicies:
    """Tests for inlining several policies."""

    def test_empty_list_fails(self):
        with pytest.raises(MappingError):
            from_policies([])

    def test_policies_are_inlined_in_order(self):
        options = PolicySetOptions(name="bundle", description="All policies", version="4.2")

        policy_set = from_policies([make_source("A"), make_source("B")], options)

        assert policy_set.id == "bundle"
        assert policy_set.meta.description == "All policies"
        assert policy_set.meta.version == 4
        assert [p.id for p in policy_set.policies] == ["A", "B"]
        assert all(not p.is_reference for p in policy_set.policies)
        assert policy_set.policies[0].tenet_ids() == ["REQ-1-plan-1-0"]

    def test_shared_transform_options(self):
        options = PolicySetOptions(transform=TransformOptions(default_rule="any(tenets)", enforce="OFF"))

        policy_set = from_policies([make_source("A"), make_source("B")], options)

        assert [p.meta.assert_mode for p in policy_set.policies] == ["OR", "OR"]
        assert policy_set.meta.enforce == "OFF"

    def test_meta_override_by_policy_id(self):
        override = PolicyMeta(description="Overridden", enforce="ON")
        options = PolicySetOptions(meta={"B": override})

        policy_set = from_policies([make_source("A"), make_source("B")], options)

        assert policy_set.policies[0].meta.description == "A description"
        assert policy_set.policies[1].meta == override

    def test_failing_policy_names_the_policy(self):
        with pytest.raises(MappingError) as exc_info:
            from_policies([make_source("A"), make_source("BAD", method_type="manual")])
        assert "BAD" in exc_info.value.context


class TestFromPolicyWithImports:
    """Tests for one inline policy plus external references."""

    def test_defaults_from_source(self):
        policy_set = from_policy_with_imports(make_source())

        assert policy_set.id == "POL-1-set"
        assert policy_set.meta.description == "POL-1 description"
        assert policy_set.meta.version == 3
        assert [p.id for p in policy_set.policies] == ["POL-1"]

    def test_options_override_defaults(self):
        options = PolicySetOptions(name="custom", description="Custom", version="7")

        policy_set = from_policy_with_imports(make_source(), options)

        assert (policy_set.id, policy_set.meta.description, policy_set.meta.version) == ("custom", "Custom", 7)

    def test_imports_become_references(self):
        imports = [
            "git+https://github.com/org/policies#base/osps-baseline.json",
            "https://example.com/extra",
        ]

        policy_set = from_policy_with_imports(make_source(imports=imports))
        main, baseline, extra = policy_set.policies

        assert not main.is_reference
        assert baseline.is_reference
        assert baseline.id == "osps-baseline"
        assert baseline.source.location.uri == imports[0]
        assert baseline.tenets == []
        assert extra.id == "https://example.com/extra"
        assert baseline.to_dict() == {"id": "osps-baseline", "source": {"location": {"uri": imports[0]}}}

    def test_meta_override_for_main_and_import(self):
        options = PolicySetOptions(meta={
            "POL-1": PolicyMeta(description="main"),
            "osps-baseline": PolicyMeta(enforce="ON"),
        })

        policy_set = from_policy_with_imports(
            make_source(imports=["git+https://h/r#p/osps-baseline.json"]), options
        )

        assert policy_set.policies[0].meta.description == "main"
        assert policy_set.policies[1].meta.enforce == "ON"

    def test_policy_set_json(self):
        policy_set = from_policy_with_imports(make_source(imports=["https://h/r#x.json"]))
        data = PolicySet.model_validate_json(policy_set.to_json())
        assert data.policies[1].source.location.uri == "https://h/r#x.json"


class TestPolicySetValidation:
    """Tests for policy-set structural validation."""

    def test_empty_set(self):
        with pytest.raises(PolicyValidationError) as exc_info:
            PolicySet(id="s").validate_structure()
        assert exc_info.value.field_path == "policies"

    def test_reference_needs_uri(self):
        policy_set = PolicySet(id="s", policies=[
            TargetPolicy(id="ext", source=PolicySource(location=PolicyLocation(uri=" "))),
        ])

        with pytest.raises(PolicyValidationError) as exc_info:
            policy_set.validate_structure()
        assert exc_info.value.field_path == "policies[0].source.location.uri"

    def test_inline_policy_errors_are_prefixed(self):
        policy_set = PolicySet(id="s", policies=[
            TargetPolicy(id="ok", tenets=[Tenet(id="t", code="true")]),
            TargetPolicy(id="bad", tenets=[Tenet(id="t", code="")]),
        ])

        with pytest.raises(PolicyValidationError) as exc_info:
            policy_set.validate_structure()
        assert exc_info.value.field_path == "policies[1].tenets[0].code"
