"""Document loaders for source policies, catalogs and template overrides."""
from ampel_mapper.parsers.policy_parser import load_catalog, load_source_policy, load_templates

__all__ = ["load_catalog", "load_source_policy", "load_templates"]
