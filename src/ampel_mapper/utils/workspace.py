"""Directory of stored verification policies, one JSON file per policy id."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Union

import structlog
from pydantic import ValidationError

from ampel_mapper.models.target import PolicySet, TargetPolicy
from ampel_mapper.utils.error_handler import PolicyNotFoundError, PolicyParseError, WorkspaceError

logger = structlog.get_logger(__name__)

POLICY_FILE_MODE = 0o600
_UNSAFE_CHARS = ("/", "\\", ":")


def sanitize_policy_id(policy_id: str) -> str:
    """Replace path separators and colons with hyphens."""
    for char in _UNSAFE_CHARS:
        policy_id = policy_id.replace(char, "-")
    return policy_id


def read_policy_file(path: Union[str, Path]) -> TargetPolicy:
    """Load a stored policy.

    Raises:
        PolicyNotFoundError: nothing at `path`.
        PolicyParseError: the file is not a valid policy document.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise PolicyNotFoundError(path) from e
    except UnicodeDecodeError as e:
        raise PolicyParseError(path, f"not valid UTF-8: {e}") from e
    except OSError as e:
        raise PolicyParseError(path, f"could not read file: {e}") from e

    try:
        policy = TargetPolicy.from_json(text)
    except ValidationError as e:
        raise PolicyParseError(path, str(e)) from e

    logger.debug("policy_loaded", path=str(path), tenets=len(policy.tenets))
    return policy


def write_policy_file(path: Union[str, Path], record: Union[TargetPolicy, PolicySet]) -> Path:
    """Write `record` as indented JSON, readable and writable by the owner only."""
    path = Path(path)
    # Serialize before opening so a failure leaves the stored file intact
    text = record.to_json() + "\n"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, POLICY_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.chmod(path, POLICY_FILE_MODE)
    except OSError as e:
        raise WorkspaceError(path, str(e)) from e

    logger.info("policy_written", path=str(path), policy_id=record.id)
    return path


class Workspace:
    """Stored policies addressed by policy id."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(self.path, f"failed to create workspace directory: {e}") from e

    def get_policy_path(self, policy_id: str) -> Path:
        return self.path / f"{sanitize_policy_id(policy_id)}.json"

    def policy_exists(self, policy_id: str) -> bool:
        return self.get_policy_path(policy_id).exists()

    def load_policy(self, policy_id: str) -> TargetPolicy:
        return read_policy_file(self.get_policy_path(policy_id))

    def save_policy(self, policy_id: str, record: Union[TargetPolicy, PolicySet]) -> Path:
        return write_policy_file(self.get_policy_path(policy_id), record)
