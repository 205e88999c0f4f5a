"""Core merge execution logic.

Runs the workflow steps after preflight and confirmation: sync the
destination with its remote and with TFS, rebase the source onto it, check
the source commits in to TFS, resync the destination and delete the source
branch. Steps run strictly in order and each one gates the next.
"""

from __future__ import annotations

import logging
from typing import Sequence

from rich.markup import escape

from tfs_merge.cli import StepTracker
from tfs_merge.cli.helpers import console
from tfs_merge.core.git_ops import (
    CommandRunner,
    format_command,
    has_notes_refs,
    is_rebase_in_progress,
    run_command,
)
from tfs_merge.core.git_tfs import pull_rebase_command, rcheckin_command
from tfs_merge.merge.recovery import (
    REBASE_IN_PROGRESS_MESSAGE,
    delete_local_branch_command,
    delete_remote_branch_command,
    push_destination_commands,
    recovery_after_push_failure,
    recovery_after_resync_failure,
)
from tfs_merge.merge.state import CleanupWarning, MergeContext, MergeOutcome, MergeResult

__all__ = ["execute_tfs_merge", "MergeExecutionError"]

logger = logging.getLogger(__name__)


class MergeExecutionError(Exception):
    """A workflow command failed or left a rebase in progress."""

    def __init__(self, step: str, message: str, rebase_conflict: bool = False):
        super().__init__(message)
        self.step = step
        self.rebase_conflict = rebase_conflict


class _Workflow:
    """Runs commands for one step at a time and reports into the tracker."""

    def __init__(self, ctx: MergeContext, tracker: StepTracker, runner: CommandRunner):
        self.ctx = ctx
        self.tracker = tracker
        self.runner = runner
        self.step = ""

    def start(self, step: str, detail: str = "") -> None:
        self.step = step
        self.tracker.start(step, detail)
        logger.info("Step %s started", step)

    def complete(self, detail: str = "") -> None:
        self.tracker.complete(self.step, detail)
        logger.info("Step %s done", self.step)

    def run(self, cmd: Sequence[str]) -> None:
        """Run a command with output going to the terminal; raise on failure."""
        line = format_command(cmd)
        console.print(f"[cyan]$ {escape(line)}[/cyan]", highlight=False)
        result = self.runner(cmd, cwd=self.ctx.repo_root, capture=False)
        if not result.ok:
            detail = result.first_error_line() or f"exit code {result.returncode}"
            raise MergeExecutionError(self.step, f"'{line}' failed ({detail})")

    def run_rebase(self, cmd: Sequence[str]) -> None:
        """Run a rebase-class command and stop when it leaves a rebase behind."""
        try:
            self.run(cmd)
        except MergeExecutionError:
            if is_rebase_in_progress(self.ctx.git_dir):
                raise MergeExecutionError(self.step, REBASE_IN_PROGRESS_MESSAGE, rebase_conflict=True) from None
            raise
        if is_rebase_in_progress(self.ctx.git_dir):
            raise MergeExecutionError(self.step, REBASE_IN_PROGRESS_MESSAGE, rebase_conflict=True)

    def push_destination(self) -> None:
        include_notes = self.ctx.config.push_notes and has_notes_refs(self.ctx.repo_root, self.runner)
        for cmd in push_destination_commands(self.ctx, include_notes):
            self.run(cmd)

    def fail(self, result: MergeResult, exc: MergeExecutionError, outcome: MergeOutcome) -> MergeResult:
        self.tracker.error(exc.step, "rebase in progress" if exc.rebase_conflict else "failed")
        logger.error("Step %s failed: %s", exc.step, exc)
        result.outcome = outcome
        result.failed_step = exc.step
        result.error = str(exc)
        result.rebase_conflict = exc.rebase_conflict
        return result


def execute_tfs_merge(
    ctx: MergeContext,
    tracker: StepTracker,
    runner: CommandRunner = run_command,
) -> MergeResult:
    """Execute the merge-and-checkin sequence for a validated context.

    Args:
        ctx: Context resolved by preflight (and confirmed by the operator)
        tracker: StepTracker for progress display
        runner: Command runner; tests substitute a scripted fake

    Returns:
        MergeResult whose outcome is FAILURE for a failure up to and
        including the TFS check-in, PARTIAL for a failure while resyncing
        the destination afterwards, SUCCESS otherwise
    """
    result = MergeResult()
    flow = _Workflow(ctx, tracker, runner)
    source = ctx.source.name
    destination = ctx.destination.name
    dest_upstream = ctx.destination.upstream
    source_upstream = ctx.source.upstream
    remote_id = ctx.tfs_remote.remote_id
    git_tfs = ctx.config.git_tfs_executable

    try:
        flow.start("sync")
        flow.run(["git", "checkout", destination])
        flow.run(["git", "fetch", dest_upstream.remote])
        flow.run_rebase(["git", "rebase", dest_upstream.ref])
        flow.complete(f"rebased onto {dest_upstream.ref}")

        flow.start("tfs-pull")
        flow.run_rebase(pull_rebase_command(remote_id, git_tfs))
        flow.complete(ctx.tfs_remote.repository)

        flow.start("push")
        flow.push_destination()
        flow.complete(f"{dest_upstream.remote}/{dest_upstream.branch}")

        flow.start("rebase")
        flow.run(["git", "checkout", source])
        flow.run_rebase(["git", "rebase", destination])
        flow.run(["git", "push", "--force", source_upstream.remote, f"{source}:{source_upstream.branch}"])
        flow.complete(f"{source} onto {destination}")

        flow.start("checkin")
        flow.run(rcheckin_command(remote_id, git_tfs))
        flow.complete(f"checked in to {ctx.tfs_remote.repository}")
    except MergeExecutionError as exc:
        return flow.fail(result, exc, MergeOutcome.FAILURE)

    # The changesets are in TFS from here on; failures only need manual follow-up.
    try:
        flow.start("resync")
        try:
            flow.run(["git", "checkout", destination])
        except MergeExecutionError:
            result.recovery_commands.append(format_command(["git", "checkout", destination]))
            raise
        flow.run_rebase(pull_rebase_command(remote_id, git_tfs))
        flow.complete()
    except MergeExecutionError as exc:
        result.recovery_commands.extend(recovery_after_resync_failure(ctx, rebase_conflict=exc.rebase_conflict))
        return flow.fail(result, exc, MergeOutcome.PARTIAL)

    try:
        flow.start("push-resync")
        flow.push_destination()
        flow.complete()
    except MergeExecutionError as exc:
        result.recovery_commands.extend(recovery_after_push_failure(ctx))
        return flow.fail(result, exc, MergeOutcome.PARTIAL)

    if ctx.delete_branch:
        _cleanup(ctx, tracker, runner, result)
    else:
        tracker.skip("cleanup", "--keep-branch")

    result.outcome = MergeOutcome.SUCCESS
    return result


def _cleanup(ctx: MergeContext, tracker: StepTracker, runner: CommandRunner, result: MergeResult) -> None:
    """Delete the source branch locally and on its remote; failures only warn."""
    tracker.start("cleanup")
    commands = [
        (["git", "checkout", ctx.destination.name], f"Could not switch back to {ctx.destination.name}"),
        (delete_local_branch_command(ctx), f"Could not delete local branch {ctx.source.name}"),
        (delete_remote_branch_command(ctx), f"Could not delete remote branch {ctx.source.upstream.ref}"),
    ]
    for cmd, message in commands:
        line = format_command(cmd)
        console.print(f"[cyan]$ {escape(line)}[/cyan]", highlight=False)
        outcome = runner(cmd, cwd=ctx.repo_root, capture=True)
        if not outcome.ok:
            detail = outcome.first_error_line()
            logger.warning("%s: %s", message, detail or f"exit code {outcome.returncode}")
            result.warnings.append(
                CleanupWarning(message=f"{message}: {detail}" if detail else message, command=line)
            )

    if result.warnings:
        tracker.warn("cleanup", f"{len(result.warnings)} command(s) failed")
    else:
        tracker.complete("cleanup", f"deleted {ctx.source.name} and {ctx.source.upstream.ref}")
