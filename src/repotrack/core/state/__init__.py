"""
Repository state tracking.

Snapshots of a repo checkout, the change sets computed between them, and
the per-build history used to find a baseline.

Example:
    >>> from repotrack.core.state import RepositorySnapshot, NoBaseline
    >>> changes = current.diff(previous)
    >>> if isinstance(changes, NoBaseline):
    ...     print("No baseline, skipping changelog")
"""

from repotrack.core.state.changes import (
    Changes,
    ChangeSet,
    NoBaseline,
    parse_ignore_list,
    should_ignore_changes,
)
from repotrack.core.state.history import HistoryStoreError, SnapshotHistory
from repotrack.core.state.models import BuildRecord, HistoryFile, ProjectRecord
from repotrack.core.state.snapshot import MANIFEST_PROJECT_PATH, RepositorySnapshot

__all__ = [
    "MANIFEST_PROJECT_PATH",
    "RepositorySnapshot",
    "ChangeSet",
    "Changes",
    "NoBaseline",
    "parse_ignore_list",
    "should_ignore_changes",
    "SnapshotHistory",
    "HistoryStoreError",
    "BuildRecord",
    "HistoryFile",
    "ProjectRecord",
]
