"""
Snapshot history store for reading/writing .repotrack/history.json.

Keeps one RepositorySnapshot per build so that later builds (and polls)
can find the state to diff against.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from repotrack.core.manifest.models import ProjectPool
from repotrack.core.state.models import BuildRecord, HistoryFile, ProjectRecord
from repotrack.core.state.snapshot import RepositorySnapshot

logger = logging.getLogger(__name__)


class HistoryStoreError(Exception):
    """Error from snapshot history operations."""

    pass


class SnapshotHistory:
    """
    Store for per-build repository snapshots.

    Example:
        >>> history = SnapshotHistory(Path(".repotrack"))
        >>> history.record(42, snapshot)
        >>> previous = history.find_last_state("main", before=43)
    """

    HISTORY_FILE = "history.json"

    def __init__(self, state_dir: Path, pool: ProjectPool | None = None) -> None:
        """
        Initialize the store.

        Args:
            state_dir: Directory holding history.json
            pool: Optional pool used when restoring project entries
        """
        self.state_dir = state_dir
        self.pool = pool
        self._file_path = state_dir / self.HISTORY_FILE

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _read_file(self) -> HistoryFile:
        if not self._file_path.exists():
            return HistoryFile()
        try:
            return HistoryFile.model_validate_json(self._file_path.read_text())
        except (ValidationError, ValueError) as e:
            raise HistoryStoreError(f"Failed to parse {self._file_path}: {e}") from e
        except OSError as e:
            raise HistoryStoreError(f"Failed to read {self._file_path}: {e}") from e

    def _write_file(self, content: HistoryFile) -> None:
        """Write history atomically via a temp file."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        temp_path = self._file_path.with_suffix(".tmp")
        try:
            temp_path.write_text(content.model_dump_json(indent=2))
            temp_path.replace(self._file_path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def _to_snapshot(self, record: BuildRecord) -> RepositorySnapshot:
        projects = {p.path: p.to_entry(self.pool) for p in record.projects}
        return RepositorySnapshot(record.manifest_text, record.manifest_branch, projects)

    def record(self, build_number: int, snapshot: RepositorySnapshot) -> None:
        """
        Store the snapshot for a build, replacing any earlier record for it.

        Args:
            build_number: Build the snapshot belongs to
            snapshot: State captured by that build
        """
        content = self._read_file()
        builds = [b for b in content.builds if b.build_number != build_number]
        builds.append(
            BuildRecord(
                build_number=build_number,
                manifest_branch=snapshot.manifest_branch,
                manifest_text=snapshot.manifest_text,
                projects=[ProjectRecord.from_entry(e) for e in snapshot],
            )
        )
        builds.sort(key=lambda b: b.build_number)
        self._write_file(HistoryFile(builds=builds))
        logger.debug("Recorded %d projects for build %d", len(snapshot), build_number)

    def get(self, build_number: int) -> RepositorySnapshot | None:
        """Return the snapshot recorded for a build, if any."""
        for record in self._read_file().builds:
            if record.build_number == build_number:
                return self._to_snapshot(record)
        return None

    def builds(self) -> list[BuildRecord]:
        """All build records in ascending build order."""
        return sorted(self._read_file().builds, key=lambda b: b.build_number)

    def latest_build_number(self) -> int | None:
        builds = self.builds()
        return builds[-1].build_number if builds else None

    def find_last_state(
        self,
        manifest_branch: str | None,
        before: int | None = None,
    ) -> RepositorySnapshot | None:
        """
        Find the most recent snapshot taken on ``manifest_branch``.

        Walks back through recorded builds, newest first, skipping builds
        made from a different manifest branch.

        Args:
            manifest_branch: Branch to match (None matches only None)
            before: Only consider builds numbered below this

        Returns:
            The matching snapshot, or None if no build matches
        """
        for record in reversed(self.builds()):
            if before is not None and record.build_number >= before:
                continue
            if record.manifest_branch == manifest_branch:
                return self._to_snapshot(record)
        return None
