from __future__ import annotations

from pathlib import Path

import pytest

from tfs_merge.core.config import MergeConfig
from tfs_merge.core.git_ops import Upstream
from tfs_merge.core.git_tfs import TfsRemote
from tfs_merge.merge.state import BranchRef, MergeContext


@pytest.fixture()
def git_dir(tmp_path: Path) -> Path:
    path = tmp_path / ".git"
    path.mkdir()
    return path


@pytest.fixture()
def merge_context(tmp_path: Path, git_dir: Path) -> MergeContext:
    return MergeContext(
        repo_root=tmp_path,
        git_dir=git_dir,
        source=BranchRef("feature/x", Upstream("origin", "feature/x")),
        destination=BranchRef("develop", Upstream("origin", "develop")),
        tfs_remote=TfsRemote(remote_id="develop", repository="$/Project/Develop"),
        config=MergeConfig(push_notes=False),
    )
