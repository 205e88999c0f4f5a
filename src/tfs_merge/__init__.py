"""git-tfs-merge: rebase a topic branch onto a TFS-bound branch and check it in.

Usage:
    git-tfs-merge <destination-branch>
    git tfs-merge <destination-branch>
"""

from __future__ import annotations

import typer

from tfs_merge.cli.commands import HELP_EPILOG, merge

__version__ = "1.0.0"

app = typer.Typer(
    name="git-tfs-merge",
    help="Merge the current branch into a TFS-bound branch through git-tfs",
    add_completion=False,
)

app.command(
    name="merge",
    epilog=HELP_EPILOG,
    context_settings={"help_option_names": []},
)(merge)


def main():
    app()


__all__ = ["app", "main", "__version__"]
