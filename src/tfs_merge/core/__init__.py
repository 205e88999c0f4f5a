"""Core git, git-tfs and configuration helpers."""

from .config import ConfigError, MergeConfig, load_config
from .git_ops import CommandResult, GitCommandError, Upstream, format_command, run_command
from .git_tfs import TfsRemote, is_git_tfs_available

__all__ = [
    "CommandResult",
    "ConfigError",
    "GitCommandError",
    "MergeConfig",
    "TfsRemote",
    "Upstream",
    "format_command",
    "is_git_tfs_available",
    "load_config",
    "run_command",
]
