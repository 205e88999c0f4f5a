"""Merge command implementation.

Rebases the current branch onto a TFS-bound destination branch, checks its
commits in to TFS through git-tfs and deletes the branch afterwards.
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.markup import escape

from tfs_merge.cli import StepTracker, confirm_or_cancel
from tfs_merge.cli.helpers import configure_logging, console
from tfs_merge.core.config import ConfigError, load_config
from tfs_merge.core.git_ops import GitCommandError, get_repo_root
from tfs_merge.merge.executor import execute_tfs_merge
from tfs_merge.merge.preflight import PreflightResult, run_preflight
from tfs_merge.merge.recovery import REBASE_IN_PROGRESS_MESSAGE, RESYNC_CONFLICT_MESSAGE
from tfs_merge.merge.state import STEP_LABELS, MergeOutcome, MergeResult

STEP_NAMES = dict(STEP_LABELS)

HELP_EPILOG = """
\b
EXAMPLES:
  git checkout feature/x && git-tfs-merge develop
  git-tfs-merge main --yes

\b
CONFIGURATION:
  .tfsmerge/config.yaml in the repository and config.yaml in the user
  configuration directory (override with TFS_MERGE_HOME).
"""


def _show_help(ctx: typer.Context, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    typer.echo(ctx.get_help())
    raise typer.Exit(1)


def _build_tracker(destination: str) -> StepTracker:
    tracker = StepTracker(f"Merge into {destination} and check in to TFS")
    for key, label in STEP_LABELS:
        tracker.add(key, label)
    return tracker


def _print_preflight_errors(preflight: PreflightResult) -> None:
    for issue in preflight.errors:
        console.print(f"[red]Error:[/red] {escape(issue.message)}")
        console.print(f"  {escape(issue.remediation)}")
        if issue.command:
            console.print(f"  [dim]$ {escape(issue.command)}[/dim]", highlight=False)


def _report_result(result: MergeResult, tracker: StepTracker) -> None:
    console.print()
    console.print(tracker.render())
    console.print()

    step = escape(STEP_NAMES.get(result.failed_step or "", "merge"))

    if result.outcome is MergeOutcome.FAILURE:
        if result.rebase_conflict:
            console.print(f"[red]Rebase stopped ({step}):[/red] {escape(REBASE_IN_PROGRESS_MESSAGE)}")
        else:
            console.print(f"[red]Error ({step}):[/red] {escape(result.error or 'merge failed')}")
        console.print("Nothing was checked in to TFS. Fix the problem and run the command again.")
        return

    if result.outcome is MergeOutcome.PARTIAL:
        console.print(
            "[yellow]Warning:[/yellow] The changesets are already checked in to TFS, "
            "but finishing the destination branch failed."
        )
        console.print(f"[yellow]Cause ({step}):[/yellow] {escape(result.error or 'unknown')}")
        if result.rebase_conflict:
            console.print(escape(RESYNC_CONFLICT_MESSAGE))
        console.print("Run these commands to finish by hand:")
        for line in result.recovery_commands:
            console.print(f"  {escape(line)}", highlight=False)
        return

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning.message)}")
        console.print(f"  Run manually: {escape(warning.command)}", highlight=False)
    console.print("[green]✓[/green] Merge and TFS check-in completed.")


def merge(
    ctx: typer.Context,
    destination: Optional[str] = typer.Argument(
        None,
        help="Destination branch, bound to a TFS path through git-tfs",
        show_default=False,
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to every confirmation prompt"),
    delete_branch: bool = typer.Option(
        True, "--delete-branch/--keep-branch", help="Delete the source branch locally and remotely after check-in"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every git and git-tfs command"),
    show_help: bool = typer.Option(
        False,
        "-h",
        "-help",
        "--help",
        is_eager=True,
        callback=_show_help,
        help="Show this message and exit.",
    ),
) -> None:
    """Rebase the current branch onto DESTINATION and check it in to TFS.

    Syncs DESTINATION with its remote and with TFS, rebases the current
    branch onto it, replays each commit as a TFS changeset with
    'git tfs rcheckin', then deletes the current branch locally and remotely.
    """
    if destination is None:
        console.print(escape(ctx.get_usage()))
        console.print("[red]Error:[/red] Missing destination branch.")
        raise typer.Exit(1)

    try:
        repo_root = get_repo_root()
    except GitCommandError:
        repo_root = None

    try:
        config = load_config(repo_root)
        configure_logging(verbose, config.log_level)
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    tracker = _build_tracker(destination)

    tracker.start("validate")
    preflight = run_preflight(destination, config=config, delete_branch=delete_branch)
    if not preflight.passed:
        tracker.error("validate", preflight.first_error.code if preflight.first_error else "failed")
        console.print(tracker.render())
        console.print()
        _print_preflight_errors(preflight)
        raise typer.Exit(1)
    context = preflight.context
    tracker.complete("validate", f"{context.source.name} -> {destination} ({context.tfs_remote.repository})")

    tracker.start("confirm")
    if not preflight.anomalies:
        tracker.complete("confirm", "nothing to confirm")
    elif yes:
        tracker.complete("confirm", "--yes")
    else:
        for anomaly in preflight.anomalies:
            if not confirm_or_cancel(anomaly.message, console=console):
                tracker.skip("confirm", "cancelled")
                console.print("[yellow]Cancelled.[/yellow] No changes were made.")
                raise typer.Exit(1)
        tracker.complete("confirm", "confirmed")

    result = execute_tfs_merge(context, tracker)
    _report_result(result, tracker)
    if result.exit_code:
        raise typer.Exit(result.exit_code)


__all__ = ["merge"]
