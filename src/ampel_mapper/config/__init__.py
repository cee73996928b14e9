"""Configuration for the policy mapper."""
from ampel_mapper.config.loader import ConfigLoader, get_config

__all__ = ["ConfigLoader", "get_config"]
