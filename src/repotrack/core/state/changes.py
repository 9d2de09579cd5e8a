"""
Change sets produced by diffing two repository snapshots.

A diff either has no baseline to compare against (NoBaseline) or yields an
ordered list of project entries that need changelog coverage (Changes).
An empty Changes means nothing changed; it is never used to stand for a
missing baseline.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Union

from repotrack.core.manifest.models import ProjectEntry


@dataclass(frozen=True)
class NoBaseline:
    """
    No previous state was available, so everything is new.

    Callers should skip changelog generation rather than treat this as
    "zero changes".
    """

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class Changes:
    """
    Ordered project entries that changed between two snapshots.

    Each entry is one of:
    - the previous entry of a project whose state changed
    - a copy of a newly added project with ``revision=None``
    - the previous entry of a project that was removed
    """

    entries: tuple[ProjectEntry, ...] = ()

    def __iter__(self) -> Iterator[ProjectEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    @property
    def server_paths(self) -> list[str]:
        return [entry.server_path for entry in self.entries]


ChangeSet = Union[NoBaseline, Changes]

_IGNORE_SEPARATORS = re.compile(r"[\s,]+")


def parse_ignore_list(text: str | None) -> frozenset[str]:
    """
    Split an ignore-projects setting into server-path tokens.

    Args:
        text: Whitespace and/or comma delimited project names

    Returns:
        Set of non-empty tokens

    Example:
        >>> sorted(parse_ignore_list("platform/a, platform/b platform/c"))
        ['platform/a', 'platform/b', 'platform/c']
    """
    if not text:
        return frozenset()
    return frozenset(token for token in _IGNORE_SEPARATORS.split(text) if token)


def should_ignore_changes(change_set: ChangeSet, ignored: Iterable[str]) -> bool:
    """
    Decide whether a change set consists only of ignored projects.

    The decision covers the whole batch: if any changed project is not in
    ``ignored``, none of the changes are ignorable.

    Args:
        change_set: Result of RepositorySnapshot.diff()
        ignored: Server paths whose changes should not trigger a build

    Returns:
        True if every changed project is ignored, False otherwise (including
        when there is no baseline, no change, or no ignore list)
    """
    if isinstance(change_set, NoBaseline):
        return False

    ignored_set = frozenset(ignored)
    if not change_set or not ignored_set:
        return False

    return all(entry.server_path in ignored_set for entry in change_set)
