"""Map governance policies to attestation verification policies."""
from ampel_mapper.models import SourcePolicy, TargetPolicy, PolicySet
from ampel_mapper.transform import (
    PolicySetOptions,
    TransformOptions,
    from_policies,
    from_policy,
    from_policy_with_imports,
    merge_policy,
)

__version__ = "0.1.0"

__all__ = [
    "PolicySet",
    "PolicySetOptions",
    "SourcePolicy",
    "TargetPolicy",
    "TransformOptions",
    "from_policies",
    "from_policy",
    "from_policy_with_imports",
    "merge_policy",
]
