"""Error types and workspace persistence."""
from ampel_mapper.utils.error_handler import (
    DocumentLoadError,
    MapperError,
    MappingError,
    MergeValidationError,
    PolicyNotFoundError,
    PolicyParseError,
    PolicyValidationError,
    TemplateError,
    WorkspaceError,
    exit_with_error,
)

__all__ = [
    "DocumentLoadError",
    "MapperError",
    "MappingError",
    "MergeValidationError",
    "PolicyNotFoundError",
    "PolicyParseError",
    "PolicyValidationError",
    "TemplateError",
    "WorkspaceError",
    "exit_with_error",
]
