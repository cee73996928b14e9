"""Load source documents from YAML (or JSON, which YAML accepts)."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Union

import structlog
import yaml
from pydantic import ValidationError

from ampel_mapper.models.catalog import Catalog
from ampel_mapper.models.source import SourcePolicy
from ampel_mapper.utils.error_handler import DocumentLoadError

logger = structlog.get_logger(__name__)


def _read_mapping(path: Union[str, Path]) -> dict[str, Any]:
    path = Path(path)
    if not path.is_file():
        raise DocumentLoadError(path, "file does not exist")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except UnicodeDecodeError as e:
        raise DocumentLoadError(path, f"not valid UTF-8: {e}") from e
    except yaml.YAMLError as e:
        raise DocumentLoadError(path, f"invalid YAML: {e}") from e
    except OSError as e:
        raise DocumentLoadError(path, str(e)) from e

    if not isinstance(data, dict):
        raise DocumentLoadError(path, f"expected a mapping at the top level, got {type(data).__name__}")
    return data


def load_source_policy(path: Union[str, Path]) -> SourcePolicy:
    """Load a governance policy document."""
    data = _read_mapping(path)
    try:
        policy = SourcePolicy.model_validate(data)
    except ValidationError as e:
        raise DocumentLoadError(path, f"not a valid policy: {e}") from e

    logger.info(
        "source_policy_loaded",
        path=str(path),
        policy_id=policy.id,
        plans=len(policy.assessment_plans),
    )
    return policy


def load_catalog(path: Union[str, Path]) -> Catalog:
    """Load a control catalog."""
    data = _read_mapping(path)
    try:
        catalog = Catalog.model_validate(data)
    except ValidationError as e:
        raise DocumentLoadError(path, f"not a valid catalog: {e}") from e

    logger.info("catalog_loaded", path=str(path), controls=len(catalog.controls))
    return catalog


def load_templates(path: Union[str, Path]) -> dict[str, str]:
    """Load template overrides: a mapping of template name to template string."""
    data = _read_mapping(path)
    templates: dict[str, str] = {}
    for name, source in data.items():
        if not isinstance(source, str):
            raise DocumentLoadError(path, f"template '{name}' must be a string")
        templates[str(name)] = source

    logger.info("templates_loaded", path=str(path), names=sorted(templates))
    return templates
