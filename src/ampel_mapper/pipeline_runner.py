"""Pipeline runner utilities for CLI commands.

Resolves input and output locations, reconciles with stored policies in
workspace mode, and logs each step with a bracketed prefix.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from ampel_mapper.models.target import MergeStats, PolicySet, TargetPolicy
from ampel_mapper.transform.merge import merge_policy
from ampel_mapper.utils.error_handler import DocumentLoadError
from ampel_mapper.utils.workspace import Workspace, read_policy_file, write_policy_file

logger = logging.getLogger(__name__)


class PipelineRunner:
    """Common conversion orchestration utilities."""

    def __init__(
        self,
        input_path: Union[str, Path],
        output_path: str = "",
        output_dir: Union[str, Path] = ".",
        workspace: Optional[Workspace] = None,
    ):
        self.input_path = Path(input_path)
        self.output_path = output_path
        self.output_dir = Path(output_dir)
        self.workspace = workspace

        if not self.input_path.exists():
            raise DocumentLoadError(self.input_path, "input file not found")

    def resolve_output(self, policy_id: str) -> Path:
        """Where the record for `policy_id` is written.

        In workspace mode a relative --output lives inside the workspace
        and the default is the workspace file for the policy id. Otherwise
        the default is `<input-stem>.json` in the output directory.
        """
        if self.workspace is not None:
            if self.output_path:
                path = Path(self.output_path)
                return path if path.is_absolute() else self.workspace.path / path
            return self.workspace.get_policy_path(policy_id)

        if self.output_path:
            return Path(self.output_path)
        return self.output_dir / f"{self.input_path.stem}.json"

    def log_plan(self, steps: list[str]) -> None:
        logger.info("[plan] %s", steps[0] if steps else "Pipeline")
        for step in steps[1:]:
            logger.info("[plan] - %s", step)

    def log_run(self, **kwargs) -> None:
        params = " ".join(f"{k}={v}" for k, v in kwargs.items())
        logger.info("[run] input=%s %s", str(self.input_path), params)

    def log_step(self, step_name: str, **kwargs) -> None:
        """Log a pipeline step with optional metrics."""
        if kwargs:
            metrics = " ".join(f"{k}={v}" for k, v in kwargs.items())
            logger.info("[%s] %s", step_name, metrics)
        else:
            logger.info("[%s] started", step_name)

    def reconcile(
        self,
        generated: TargetPolicy,
        output_file: Path,
        force_overwrite: bool = False,
    ) -> tuple[TargetPolicy, Optional[MergeStats]]:
        """Merge `generated` with the policy stored at `output_file`, if any.

        Returns the record to write and the merge stats (None when nothing
        was merged). A failed merge raises before anything is written.
        """
        if force_overwrite:
            self.log_step("merge", skipped="force-overwrite")
            return generated, None
        if not output_file.exists():
            self.log_step("merge", skipped="no-existing-policy")
            return generated, None

        existing = read_policy_file(output_file)
        merged, stats = merge_policy(existing, generated)
        self.log_step("merge", **stats.to_dict())
        return merged, stats

    def write_output(self, record: Union[TargetPolicy, PolicySet], output_file: Path) -> Path:
        written = write_policy_file(output_file, record)
        logger.info("[output] wrote=%s", str(written))
        return written


def create_runner(
    input_path: Union[str, Path],
    output_path: str = "",
    output_dir: Union[str, Path] = ".",
    workspace_path: Union[str, Path, None] = None,
) -> PipelineRunner:
    """Factory function to create a PipelineRunner; opens the workspace if given."""
    workspace = Workspace(workspace_path) if workspace_path else None
    return PipelineRunner(
        input_path=input_path,
        output_path=output_path,
        output_dir=output_dir,
        workspace=workspace,
    )
