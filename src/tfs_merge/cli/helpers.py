"""Shared console and logging setup for the CLI."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from tfs_merge.core.config import VALID_LOG_LEVELS, ConfigError

LOG_LEVEL_ENV_VAR = "TFS_MERGE_LOG_LEVEL"

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


def configure_logging(verbose: bool = False, default_level: str = "WARNING") -> None:
    """Route package logging to stderr through Rich.

    ``--verbose`` forces DEBUG; otherwise ``TFS_MERGE_LOG_LEVEL`` and then the
    configured default apply.

    Raises:
        ConfigError: If ``TFS_MERGE_LOG_LEVEL`` is not a level name
    """
    if verbose:
        level_name = "DEBUG"
    elif env_level := os.environ.get(LOG_LEVEL_ENV_VAR):
        level_name = env_level.strip().upper()
        if level_name not in VALID_LOG_LEVELS:
            valid = ", ".join(VALID_LOG_LEVELS)
            raise ConfigError(f"Invalid {LOG_LEVEL_ENV_VAR}: {env_level} (valid: {valid})")
    else:
        level_name = default_level.upper()
    level = logging.getLevelName(level_name)

    package_logger = logging.getLogger("tfs_merge")
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    handler = RichHandler(console=err_console, show_path=verbose, rich_tracebacks=True, markup=False)
    handler.setLevel(level)
    package_logger.addHandler(handler)
    package_logger.propagate = False


__all__ = ["LOG_LEVEL_ENV_VAR", "configure_logging", "console", "err_console"]
