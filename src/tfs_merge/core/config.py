"""Layered configuration for git-tfs-merge.

Settings are read from YAML files and merged key by key, later layers
overriding earlier ones:

1. Built-in defaults
2. ``config.yaml`` in the user configuration directory
3. ``.tfsmerge/config.yaml`` in the repository root
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

__all__ = [
    "ConfigError",
    "MergeConfig",
    "get_user_config_dir",
    "load_config",
]

logger = logging.getLogger(__name__)

APP_NAME = "git-tfs-merge"
HOME_ENV_VAR = "TFS_MERGE_HOME"
REPO_CONFIG_DIR = ".tfsmerge"
CONFIG_FILENAME = "config.yaml"

DEFAULT_PROTECTED_BRANCHES = ("master", "main")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be parsed or validated."""


@dataclass
class MergeConfig:
    """Resolved settings for one run.

    Attributes:
        protected_branches: Destinations that require explicit confirmation
        tfs_remotes: Branch name to git-tfs remote id overrides
        git_tfs_executable: Name or path of the git-tfs executable
        push_notes: Push refs/notes/* together with the destination branch
        log_level: Default logging level when --verbose is not given
        sources: Files that contributed to this configuration
    """

    protected_branches: list[str] = field(default_factory=lambda: list(DEFAULT_PROTECTED_BRANCHES))
    tfs_remotes: dict[str, str] = field(default_factory=dict)
    git_tfs_executable: str = "git-tfs"
    push_notes: bool = True
    log_level: str = "WARNING"
    sources: list[Path] = field(default_factory=list)

    def tfs_remote_id(self, branch: str) -> str:
        """git-tfs remote id bound to ``branch``; the branch name by default."""
        return self.tfs_remotes.get(branch, branch)

    def is_protected(self, branch: str) -> bool:
        return branch in self.protected_branches


def get_user_config_dir() -> Path:
    """Return the user-level configuration directory.

    ``TFS_MERGE_HOME`` wins when set, otherwise the platform default.
    """
    if env_home := os.environ.get(HOME_ENV_VAR):
        return Path(env_home)
    return Path(user_config_dir(APP_NAME))


def _read_yaml(config_file: Path) -> dict[str, Any]:
    yaml = YAML(typ="safe")
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.load(f) or {}
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config in {config_file}: expected a mapping at the top level")
    return data


def _apply(config: MergeConfig, data: dict[str, Any], source: Path) -> None:
    if "protected_branches" in data:
        value = data["protected_branches"]
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ConfigError(f"Invalid protected_branches in {source}: expected a list of branch names")
        config.protected_branches = list(value)

    if "tfs_remotes" in data:
        value = data["tfs_remotes"] or {}
        if not isinstance(value, dict):
            raise ConfigError(f"Invalid tfs_remotes in {source}: expected a mapping of branch to remote id")
        config.tfs_remotes.update({str(k): str(v) for k, v in value.items()})

    if "git_tfs_executable" in data:
        value = data["git_tfs_executable"]
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"Invalid git_tfs_executable in {source}: expected a non-empty string")
        config.git_tfs_executable = value.strip()

    if "push_notes" in data:
        value = data["push_notes"]
        if not isinstance(value, bool):
            raise ConfigError(f"Invalid push_notes in {source}: expected true or false")
        config.push_notes = value

    if "log_level" in data:
        value = str(data["log_level"]).upper()
        if value not in VALID_LOG_LEVELS:
            valid = ", ".join(VALID_LOG_LEVELS)
            raise ConfigError(f"Invalid log_level in {source}: {data['log_level']} (valid: {valid})")
        config.log_level = value

    unknown = sorted(set(data) - {"protected_branches", "tfs_remotes", "git_tfs_executable", "push_notes", "log_level"})
    if unknown:
        logger.warning("Ignoring unknown config key(s) in %s: %s", source, ", ".join(unknown))

    config.sources.append(source)


def load_config(repo_root: Path | None = None) -> MergeConfig:
    """Load and merge the user and repository configuration files.

    Args:
        repo_root: Repository root; the repository layer is skipped when None

    Returns:
        MergeConfig with defaults for anything left unset

    Raises:
        ConfigError: If a file is not valid YAML or holds a bad value
    """
    config = MergeConfig()
    candidates = [get_user_config_dir() / CONFIG_FILENAME]
    if repo_root is not None:
        candidates.append(repo_root / REPO_CONFIG_DIR / CONFIG_FILENAME)

    for config_file in candidates:
        if not config_file.is_file():
            logger.debug("No config file at %s", config_file)
            continue
        _apply(config, _read_yaml(config_file), config_file)
        logger.debug("Loaded config from %s", config_file)

    return config
