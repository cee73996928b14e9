"""Error types for policy mapping with user-friendly messages."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Union

import structlog

logger = structlog.get_logger(__name__)


class MapperError(Exception):
    """Base class for mapper errors with user-friendly messaging."""

    def __init__(self, error_type: str, message: str, details: str = ""):
        self.error_type = error_type
        self.message = message
        self.details = details
        super().__init__(self.message if not details else f"{message}: {details}")

    def get_user_message(self) -> str:
        """Return a user-friendly error message."""
        msg = f"\nError: {self.message}"
        if self.details:
            msg += f"\n   Details: {self.details}"
        return msg


class PolicyValidationError(MapperError):
    """A generated or merged policy is structurally incomplete."""

    def __init__(self, field_path: str, message: str, cause: Optional[Exception] = None):
        self.field_path = field_path
        self.cause = cause
        details = f"{field_path}: {message}"
        if cause is not None:
            details += f" ({cause})"
        super().__init__(
            error_type="VALIDATION",
            message="Policy validation failed",
            details=details,
        )


class TemplateError(MapperError):
    """A named expression template is malformed or cannot be instantiated."""

    def __init__(self, template_name: str, message: str, cause: Optional[Exception] = None):
        self.template_name = template_name
        self.cause = cause
        details = f"template '{template_name}': {message}"
        if cause is not None:
            details += f" ({cause})"
        super().__init__(
            error_type="TEMPLATE",
            message="Expression template could not be instantiated",
            details=details,
        )


class MappingError(MapperError):
    """A sub-step of the policy mapping failed for an identifiable source record."""

    def __init__(self, context: str, message: str, cause: Optional[Exception] = None):
        self.context = context
        self.cause = cause
        details = f"{context}: {message}"
        if cause is not None:
            details += f": {cause}"
        super().__init__(
            error_type="MAPPING",
            message="Policy mapping failed",
            details=details,
        )


class MergeValidationError(MapperError):
    """The reconciled policy failed validation."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(
            error_type="MERGE_VALIDATION",
            message="Merged policy validation failed",
            details=str(cause),
        )


class DocumentLoadError(MapperError):
    """A source policy, catalog or template file could not be read or parsed."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = str(path)
        super().__init__(
            error_type="DOCUMENT_LOAD",
            message=f"Failed to load {self.path}",
            details=message,
        )


class PolicyNotFoundError(MapperError):
    """No stored policy exists at the expected location."""

    def __init__(self, path: Union[str, Path]):
        self.path = str(path)
        super().__init__(
            error_type="POLICY_NOT_FOUND",
            message="Policy file not found",
            details=self.path,
        )


class PolicyParseError(MapperError):
    """A stored policy exists but could not be parsed."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = str(path)
        super().__init__(
            error_type="POLICY_PARSE",
            message=f"Failed to parse stored policy {self.path} (try --force-overwrite to regenerate)",
            details=message,
        )


class WorkspaceError(MapperError):
    """Writing to the policy workspace failed."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = str(path)
        super().__init__(
            error_type="WORKSPACE",
            message=f"Workspace operation failed for {self.path}",
            details=message,
        )


def exit_with_error(error: MapperError, context: str = "") -> int:
    """Log error and return a non-zero exit code with a user-friendly message."""
    logger.error(
        "mapper_failed",
        error_type=error.error_type,
        message=error.message,
        details=error.details,
        context=context,
    )

    print(error.get_user_message(), file=sys.stderr)

    if isinstance(error, PolicyParseError):
        print("\nNext steps:", file=sys.stderr)
        print("   1. Fix the stored policy JSON by hand, or", file=sys.stderr)
        print("   2. Re-run with --force-overwrite to discard manual edits", file=sys.stderr)

    print("", file=sys.stderr)
    return 1
