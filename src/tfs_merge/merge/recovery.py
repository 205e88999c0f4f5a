"""Copy-pasteable commands for finishing a run by hand."""

from __future__ import annotations

from tfs_merge.core.git_ops import format_command
from tfs_merge.core.git_tfs import pull_rebase_command
from tfs_merge.merge.state import MergeContext

__all__ = [
    "REBASE_CONTINUE_COMMAND",
    "REBASE_IN_PROGRESS_MESSAGE",
    "RESYNC_CONFLICT_MESSAGE",
    "delete_local_branch_command",
    "delete_remote_branch_command",
    "push_destination_commands",
    "recovery_after_push_failure",
    "recovery_after_resync_failure",
]

REBASE_IN_PROGRESS_MESSAGE = (
    "A rebase is in progress and needs manual resolution. "
    "Resolve the conflicts and run 'git rebase --continue', "
    "or run 'git rebase --abort', then start git-tfs-merge again."
)

RESYNC_CONFLICT_MESSAGE = (
    "The TFS pull stopped on conflicts. Resolve them and stage the files; "
    "the first command below continues that rebase."
)

REBASE_CONTINUE_COMMAND = "git rebase --continue"

NOTES_REFSPEC = "refs/notes/*:refs/notes/*"


def push_destination_commands(ctx: MergeContext, include_notes: bool) -> list[list[str]]:
    upstream = ctx.destination.upstream
    commands = [["git", "push", upstream.remote, f"{ctx.destination.name}:{upstream.branch}"]]
    if include_notes:
        commands.append(["git", "push", upstream.remote, NOTES_REFSPEC])
    return commands


def delete_local_branch_command(ctx: MergeContext) -> list[str]:
    return ["git", "branch", "-D", ctx.source.name]


def delete_remote_branch_command(ctx: MergeContext) -> list[str]:
    upstream = ctx.source.upstream
    return ["git", "push", upstream.remote, "--delete", upstream.branch]


def _cleanup_commands(ctx: MergeContext) -> list[str]:
    if not ctx.delete_branch:
        return []
    return [
        format_command(delete_local_branch_command(ctx)),
        format_command(delete_remote_branch_command(ctx)),
    ]


def _push_line(ctx: MergeContext) -> str:
    return " && ".join(format_command(cmd) for cmd in push_destination_commands(ctx, ctx.config.push_notes))


def recovery_after_resync_failure(ctx: MergeContext, rebase_conflict: bool = False) -> list[str]:
    """Commands left to run when the TFS pull after check-in fails.

    The destination is already checked out at that point. When the pull
    stopped on conflicts its rebase is still pending, so finishing that
    rebase replaces the pull.
    """
    if rebase_conflict:
        first = REBASE_CONTINUE_COMMAND
    else:
        first = format_command(pull_rebase_command(ctx.tfs_remote.remote_id, ctx.config.git_tfs_executable))
    return [first, _push_line(ctx), *_cleanup_commands(ctx)]


def recovery_after_push_failure(ctx: MergeContext) -> list[str]:
    """Commands left to run when pushing the resynced destination fails."""
    return [_push_line(ctx), *_cleanup_commands(ctx)]
