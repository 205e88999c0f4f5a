"""Run context and outcome types shared by preflight, executor and CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from tfs_merge.core.config import MergeConfig
from tfs_merge.core.git_ops import Upstream
from tfs_merge.core.git_tfs import TfsRemote

__all__ = [
    "BranchRef",
    "MergeContext",
    "MergeOutcome",
    "MergeResult",
    "STEP_LABELS",
    "CleanupWarning",
]

# Ordered workflow steps as (key, label); the executor walks them in order.
STEP_LABELS: list[tuple[str, str]] = [
    ("validate", "Validate prerequisites"),
    ("confirm", "Confirm anomalies"),
    ("sync", "Sync destination with its upstream"),
    ("tfs-pull", "Pull changesets from TFS"),
    ("push", "Push synchronized destination"),
    ("rebase", "Rebase source onto destination"),
    ("checkin", "Check in commits to TFS"),
    ("resync", "Resync destination from TFS"),
    ("push-resync", "Push resynced destination"),
    ("cleanup", "Delete source branch"),
]


class MergeOutcome(str, Enum):
    """Terminal state of a run."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


@dataclass(frozen=True)
class BranchRef:
    """A local branch and the remote branch it tracks."""

    name: str
    upstream: Upstream

    @property
    def name_matches_upstream(self) -> bool:
        return self.upstream.branch == self.name


@dataclass
class MergeContext:
    """Everything the ten workflow steps need, resolved once at startup."""

    repo_root: Path
    git_dir: Path
    source: BranchRef
    destination: BranchRef
    tfs_remote: TfsRemote
    config: MergeConfig
    delete_branch: bool = True


@dataclass
class CleanupWarning:
    """A cleanup command that failed and the command to finish it by hand."""

    message: str
    command: str


@dataclass
class MergeResult:
    """Result of one workflow run."""

    outcome: MergeOutcome = MergeOutcome.FAILURE
    failed_step: str | None = None
    error: str | None = None
    rebase_conflict: bool = False
    recovery_commands: list[str] = field(default_factory=list)
    warnings: list[CleanupWarning] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome is MergeOutcome.SUCCESS

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1
