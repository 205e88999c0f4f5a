"""Pre-flight validation before any branch is touched.

Checks the git-tfs installation, the TFS association of the destination,
that source and destination differ, and that both branches track a remote.
Nothing here mutates the repository.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from tfs_merge.core.config import MergeConfig, load_config
from tfs_merge.core.git_ops import (
    GitCommandError,
    get_current_branch,
    get_git_dir,
    get_repo_root,
    get_upstream,
)
from tfs_merge.core.git_tfs import is_git_tfs_available, resolve_tfs_remote
from tfs_merge.merge.state import BranchRef, MergeContext

__all__ = [
    "Anomaly",
    "PreflightIssue",
    "PreflightResult",
    "run_preflight",
]

logger = logging.getLogger(__name__)


@dataclass
class PreflightIssue:
    """Single fatal precondition failure with optional remediation command."""

    code: str
    message: str
    remediation: str
    command: str | None = None


@dataclass
class Anomaly:
    """Unusual but allowed situation that needs operator confirmation."""

    code: str
    message: str


@dataclass
class PreflightResult:
    """Result envelope for preflight checks."""

    repo_root: Path | None = None
    context: MergeContext | None = None
    errors: list[PreflightIssue] = field(default_factory=list)
    anomalies: list[Anomaly] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors and self.context is not None

    @property
    def first_error(self) -> PreflightIssue | None:
        return self.errors[0] if self.errors else None


def run_preflight(
    destination: str,
    cwd: Path | None = None,
    config: MergeConfig | None = None,
    delete_branch: bool = True,
) -> PreflightResult:
    """Validate prerequisites and resolve the run context.

    Args:
        destination: Branch to merge into; must be bound to a TFS path
        cwd: Directory inside the repository (current directory when None)
        config: Preloaded configuration; loaded from disk when None
        delete_branch: Whether the run ends by deleting the source branch

    Returns:
        PreflightResult with a MergeContext when every check passed

    Raises:
        ConfigError: If a configuration file is invalid
    """
    result = PreflightResult()

    try:
        repo_root = get_repo_root(cwd)
        git_dir = get_git_dir(repo_root)
    except GitCommandError as exc:
        result.errors.append(
            PreflightIssue(
                code="NOT_A_GIT_REPOSITORY",
                message=f"Git repository check failed: {exc.result.first_error_line() or exc}",
                remediation="Run git-tfs-merge from inside the git-tfs clone.",
                command="git status",
            )
        )
        return result
    result.repo_root = repo_root

    if config is None:
        config = load_config(repo_root)

    if not is_git_tfs_available(config.git_tfs_executable):
        result.errors.append(
            PreflightIssue(
                code="GIT_TFS_NOT_FOUND",
                message=f"{config.git_tfs_executable} was not found on PATH.",
                remediation="Install git-tfs and make sure its directory is on PATH.",
                command=f"{config.git_tfs_executable} --version",
            )
        )

    tfs_remote = resolve_tfs_remote(repo_root, destination, config)
    if tfs_remote is None:
        remote_id = config.tfs_remote_id(destination)
        result.errors.append(
            PreflightIssue(
                code="NO_TFS_REMOTE",
                message=f"Branch '{destination}' has no TFS remote (tfs-remote.{remote_id}.repository is not set).",
                remediation="Bind the branch to a TFS path with git-tfs, or map it in .tfsmerge/config.yaml under tfs_remotes.",
                command="git config --get-regexp '^tfs-remote\\.'",
            )
        )

    source_name = get_current_branch(repo_root)
    if source_name is None:
        result.errors.append(
            PreflightIssue(
                code="DETACHED_HEAD",
                message="HEAD is detached; check out the branch to merge first.",
                remediation="Switch to the source branch.",
                command="git checkout <source-branch>",
            )
        )
        return result

    if source_name == destination:
        result.errors.append(
            PreflightIssue(
                code="SAME_BRANCH",
                message=f"Source and destination are the same branch ('{destination}').",
                remediation="Check out the topic branch you want to merge into the destination.",
                command="git checkout <source-branch>",
            )
        )
        return result

    source_upstream = get_upstream(repo_root, source_name)
    if source_upstream is None:
        result.errors.append(
            PreflightIssue(
                code="SOURCE_NOT_TRACKED",
                message=f"Branch '{source_name}' has no upstream branch.",
                remediation="Push the source branch and set its upstream.",
                command=f"git push -u origin {shlex.quote(source_name)}",
            )
        )

    destination_upstream = get_upstream(repo_root, destination)
    if destination_upstream is None:
        result.errors.append(
            PreflightIssue(
                code="DESTINATION_NOT_TRACKED",
                message=f"Branch '{destination}' does not exist locally or has no upstream branch.",
                remediation="Create the destination as a tracking branch of its remote counterpart.",
                command=f"git branch --track {shlex.quote(destination)} origin/{shlex.quote(destination)}",
            )
        )

    if result.errors:
        return result

    source = BranchRef(name=source_name, upstream=source_upstream)
    dest = BranchRef(name=destination, upstream=destination_upstream)
    if not source.name_matches_upstream:
        result.anomalies.append(
            Anomaly(
                code="NAME_MISMATCH",
                message=f"Local branch '{source.name}' tracks '{source.upstream.ref}', which has a different name.",
            )
        )
    if config.is_protected(destination):
        result.anomalies.append(
            Anomaly(
                code="PROTECTED_DESTINATION",
                message=f"Destination '{destination}' is a protected branch.",
            )
        )

    result.context = MergeContext(
        repo_root=repo_root,
        git_dir=git_dir,
        source=source,
        destination=dest,
        tfs_remote=tfs_remote,
        config=config,
        delete_branch=delete_branch,
    )
    logger.debug(
        "Preflight passed: %s -> %s (tfs-remote %s at %s)",
        source.name,
        destination,
        tfs_remote.remote_id,
        tfs_remote.repository,
    )
    return result
