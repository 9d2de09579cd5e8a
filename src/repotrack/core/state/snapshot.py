"""
Repository snapshots.

A RepositorySnapshot records the state of a repo checkout for one build:
every project's revision and clone URL, plus the manifest repository
itself. Snapshots are compared across builds to decide whether anything
changed and to work out which projects need changelog coverage.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType

from repotrack.core.manifest.models import ProjectEntry, ProjectPool, make_entry
from repotrack.core.manifest.parser import ManifestError, ManifestParser
from repotrack.core.state.changes import Changes, ChangeSet, NoBaseline

logger = logging.getLogger(__name__)

# Key of the synthetic entry tracking the manifest repository's own revision
MANIFEST_PROJECT_PATH = ".repo/manifests.git"


class RepositorySnapshot:
    """
    Immutable state of a repo checkout at one point in time.

    Equality covers the manifest branch and the project entries. The raw
    manifest text is kept for reference but is not compared, so a manifest
    that is only reformatted does not count as a change.

    Example:
        >>> current = RepositorySnapshot.from_manifest(
        ...     manifest_text, head_sha, "https://android.googlesource.com/platform/manifest", "main"
        ... )
        >>> changes = current.diff(previous)
        >>> for entry in changes:
        ...     print(entry.path, entry.revision)
    """

    __slots__ = ("_manifest_text", "_manifest_branch", "_projects")

    def __init__(
        self,
        manifest_text: str,
        manifest_branch: str | None,
        projects: Mapping[str, ProjectEntry] | None = None,
    ) -> None:
        """
        Initialize a snapshot from already-resolved project entries.

        Most callers want from_manifest() instead.

        Args:
            manifest_text: Raw manifest XML
            manifest_branch: Branch of the manifest repository, or None
            projects: Mapping of checkout path to entry

        Raises:
            ValueError: If a project has an empty path
        """
        items = dict(projects or {})
        if "" in items:
            raise ValueError("Project path must not be empty")
        self._manifest_text = manifest_text
        self._manifest_branch = manifest_branch
        self._projects: dict[str, ProjectEntry] = {path: items[path] for path in sorted(items)}

    @classmethod
    def from_manifest(
        cls,
        manifest_text: str,
        manifest_revision: str,
        manifest_url: str,
        manifest_branch: str | None,
        *,
        pool: ProjectPool | None = None,
        parser: ManifestParser | None = None,
    ) -> RepositorySnapshot:
        """
        Build a snapshot from static manifest text.

        The manifest repository is added as an extra project keyed by
        MANIFEST_PROJECT_PATH. If the manifest cannot be parsed the snapshot
        has no projects at all; no exception escapes.

        Args:
            manifest_text: Output of ``repo manifest -o - -r``
            manifest_revision: HEAD of the manifest repository
            manifest_url: Clone URL of the manifest repository
            manifest_branch: Manifest branch the checkout was made from
            pool: Optional pool for sharing ProjectEntry instances
            parser: Parser to use (defaults to a new ManifestParser on ``pool``)

        Returns:
            New RepositorySnapshot
        """
        parser = parser or ManifestParser(pool=pool)
        try:
            projects = parser.parse(manifest_text)
        except ManifestError as e:
            logger.error("Error - %s", e)
            return cls(manifest_text, manifest_branch, {})

        projects[MANIFEST_PROJECT_PATH] = make_entry(
            pool,
            MANIFEST_PROJECT_PATH,
            MANIFEST_PROJECT_PATH,
            manifest_revision,
            manifest_url,
        )
        logger.debug("Manifest at revision: %s", manifest_revision)
        return cls(manifest_text, manifest_branch, projects)

    @property
    def manifest_text(self) -> str:
        return self._manifest_text

    @property
    def manifest_branch(self) -> str | None:
        return self._manifest_branch

    @property
    def projects(self) -> Mapping[str, ProjectEntry]:
        """Read-only mapping of path to entry, in ascending path order."""
        return MappingProxyType(self._projects)

    def __iter__(self) -> Iterator[ProjectEntry]:
        return iter(self._projects.values())

    def __len__(self) -> int:
        return len(self._projects)

    def get_project(self, path: str) -> ProjectEntry | None:
        """Return the entry checked out at ``path``, if any."""
        return self._projects.get(path)

    def get_revision(self, path: str) -> str | None:
        """Return the revision of the project at ``path``, if any."""
        entry = self._projects.get(path)
        return entry.revision if entry is not None else None

    def diff(self, previous: RepositorySnapshot | None) -> ChangeSet:
        """
        Work out which projects changed since ``previous``.

        Args:
            previous: Snapshot of an earlier build, or None if unknown

        Returns:
            NoBaseline if ``previous`` is None, otherwise Changes holding,
            in order: for each current path (ascending) the previous entry
            of a changed project or a revision-less copy of a new project,
            then the entries of removed projects (ascending path).
        """
        if previous is None:
            logger.debug("Everything is new")
            return NoBaseline()

        remaining = dict(previous.projects)
        changes: list[ProjectEntry] = []

        for path, current in self._projects.items():
            old = remaining.pop(path, None)
            if old is None:
                logger.debug("New project: %s", path)
                changes.append(current.without_revision())
            elif old != current:
                changes.append(old)

        changes.extend(remaining[path] for path in sorted(remaining))
        return Changes(tuple(changes))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepositorySnapshot):
            return NotImplemented
        return (
            self._manifest_branch == other._manifest_branch
            and self._projects == other._projects
        )

    def __hash__(self) -> int:
        return hash((self._manifest_branch, frozenset(self._projects.items())))

    def __repr__(self) -> str:
        return (
            f"RepositorySnapshot(manifest_branch={self._manifest_branch!r}, "
            f"projects={len(self._projects)})"
        )
