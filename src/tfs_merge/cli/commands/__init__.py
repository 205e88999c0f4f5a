"""CLI command modules for git-tfs-merge."""

from .merge import HELP_EPILOG, merge

__all__ = ["HELP_EPILOG", "merge"]
