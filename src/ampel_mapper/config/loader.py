"""Configuration loader for the policy mapper.

Provides centralized access to mapping defaults, scope tables and
output settings.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from ampel_mapper.models.shared import DEFAULT_RULE, DEFAULT_RUNTIME

logger = structlog.get_logger(__name__)

CONFIG_FILE = Path(__file__).parent / "mapper_config.yaml"

OUTPUT_DIR_ENV = "AMPEL_MAPPER_OUTPUT_DIR"
WORKSPACE_ENV = "AMPEL_MAPPER_WORKSPACE"
LOG_LEVEL_ENV = "AMPEL_MAPPER_LOG_LEVEL"


class ConfigLoader:
    """Loads and provides access to mapper configuration."""

    _instance: Optional[ConfigLoader] = None
    _config: Optional[dict[str, Any]] = None

    def __new__(cls) -> ConfigLoader:
        """Singleton pattern - ensure only one config instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._config is None:
            self._load_config()

    def _load_config(self) -> None:
        if CONFIG_FILE.exists():
            with open(CONFIG_FILE) as f:
                self._config = yaml.safe_load(f) or {}
            logger.debug("config_loaded", path=str(CONFIG_FILE))
        else:
            logger.warning("config_file_not_found", path=str(CONFIG_FILE))
            self._config = {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key.

        Examples:
            config.get("mapping.default_rule")
            config.get("scope.region_codes")
            config.get("nonexistent.key", default=100)
        """
        if not self._config:
            return default

        value = self._config
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def get_section(self, section: str) -> dict[str, Any]:
        return self.get(section, default={})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._config = None
        self._load_config()


_config = ConfigLoader()


def get_config() -> ConfigLoader:
    """Get the global config instance."""
    return _config


def get_default_rule() -> str:
    return _config.get("mapping.default_rule", DEFAULT_RULE)


def get_runtime() -> str:
    return _config.get("mapping.runtime", DEFAULT_RUNTIME)


def get_default_attestation_types() -> list[str]:
    return list(_config.get("mapping.default_attestation_types", default=[]))


def get_include_scope_filters() -> bool:
    return bool(_config.get("mapping.include_scope_filters", False))


def get_region_codes() -> dict[str, str]:
    """Extra region name -> code entries (names lower-cased)."""
    codes = _config.get("scope.region_codes", default={})
    return {str(name).lower(): str(code) for name, code in codes.items()}


def get_output_dir() -> Path:
    """Output directory; AMPEL_MAPPER_OUTPUT_DIR wins over the config file."""
    return Path(os.environ.get(OUTPUT_DIR_ENV) or _config.get("output.dir", "."))


def get_workspace_dir() -> Optional[Path]:
    """Workspace from AMPEL_MAPPER_WORKSPACE, if set."""
    value = os.environ.get(WORKSPACE_ENV)
    return Path(value) if value else None


def get_log_level() -> str:
    return (os.environ.get(LOG_LEVEL_ENV) or _config.get("logging.level", "INFO")).upper()
