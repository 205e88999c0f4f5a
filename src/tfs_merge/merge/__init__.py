"""Merge subpackage for git-tfs-merge.

This package holds the workflow that merges a topic branch into a
TFS-bound branch through git-tfs.

Modules:
    state: Run context and outcome types
    preflight: Validation before any branch is touched
    recovery: Manual recovery commands for partial success
    executor: Step-by-step workflow execution
"""

from __future__ import annotations

__all__: list[str] = []
