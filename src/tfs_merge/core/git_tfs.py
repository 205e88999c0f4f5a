"""git-tfs bridge: tool detection, remote lookup and command vectors."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from tfs_merge.core.config import MergeConfig
from tfs_merge.core.git_ops import get_config

__all__ = [
    "TfsRemote",
    "is_git_tfs_available",
    "pull_rebase_command",
    "rcheckin_command",
    "resolve_tfs_remote",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TfsRemote:
    """A git-tfs remote and the TFS server path it is bound to."""

    remote_id: str
    repository: str


def is_git_tfs_available(executable: str = "git-tfs") -> bool:
    """Return True when the git-tfs executable can be found on PATH."""
    return shutil.which(executable) is not None


def resolve_tfs_remote(repo_root: Path, branch: str, config: MergeConfig) -> TfsRemote | None:
    """Look up the TFS path bound to ``branch``.

    git-tfs records the TFS path of each remote as
    ``tfs-remote.<id>.repository``.
    """
    remote_id = config.tfs_remote_id(branch)
    repository = get_config(repo_root, f"tfs-remote.{remote_id}.repository")
    if not repository:
        logger.debug("No tfs-remote.%s.repository configured for %s", remote_id, branch)
        return None
    return TfsRemote(remote_id=remote_id, repository=repository)


def _base_command(executable: str) -> list[str]:
    # The default install is reached through git's subcommand lookup.
    if executable == "git-tfs":
        return ["git", "tfs"]
    return [executable]


def pull_rebase_command(remote_id: str, executable: str = "git-tfs") -> list[str]:
    """Fetch new changesets from TFS and rebase the current branch onto them."""
    return [*_base_command(executable), "pull", "-r", "-i", remote_id]


def rcheckin_command(remote_id: str, executable: str = "git-tfs") -> list[str]:
    """Check in each commit of the current branch as its own changeset."""
    return [*_base_command(executable), "rcheckin", "-i", remote_id]
