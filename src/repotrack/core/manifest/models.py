"""
Data models for manifest projects.

A ProjectEntry records the checkout coordinates of a single project listed
in a repo manifest. Entries are value objects; a ProjectPool can be handed
to the parser so that identical entries held by many snapshots share one
instance.
"""

from __future__ import annotations

import threading
import weakref
from dataclasses import dataclass


@dataclass(frozen=True)
class ProjectEntry:
    """
    Checkout coordinates of one project in a manifest.

    Attributes:
        path: Checkout-relative directory (unique within a snapshot)
        server_path: Project name on the remote side
        revision: Pinned commit, or None for a project with no prior state
        full_repository_uri: Resolved clone URL ("" when unresolvable)
    """

    path: str
    server_path: str
    revision: str | None
    full_repository_uri: str = ""

    def without_revision(self) -> ProjectEntry:
        """Return a copy of this entry with no revision."""
        return ProjectEntry(
            path=self.path,
            server_path=self.server_path,
            revision=None,
            full_repository_uri=self.full_repository_uri,
        )


class ProjectPool:
    """
    Interning pool for ProjectEntry instances.

    Identical field tuples map to a single shared instance. Entries are
    weakly held, so an entry disappears from the pool once no snapshot
    references it. Safe to share between threads.

    Example:
        >>> pool = ProjectPool()
        >>> a = pool.intern("art", "platform/art", "abc123", "")
        >>> b = pool.intern("art", "platform/art", "abc123", "")
        >>> a is b
        True
    """

    def __init__(self) -> None:
        self._entries: weakref.WeakValueDictionary[
            tuple[str, str, str | None, str], ProjectEntry
        ] = weakref.WeakValueDictionary()
        self._lock = threading.Lock()

    def intern(
        self,
        path: str,
        server_path: str,
        revision: str | None,
        full_repository_uri: str = "",
    ) -> ProjectEntry:
        """
        Return the shared entry for these fields, creating it if needed.

        Args:
            path: Checkout-relative directory
            server_path: Project name on the remote side
            revision: Pinned commit or None
            full_repository_uri: Resolved clone URL

        Returns:
            A ProjectEntry equal to one built from the same fields
        """
        key = (path, server_path, revision, full_repository_uri)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = ProjectEntry(*key)
                self._entries[key] = entry
            return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def make_entry(
    pool: ProjectPool | None,
    path: str,
    server_path: str,
    revision: str | None,
    full_repository_uri: str = "",
) -> ProjectEntry:
    """Build an entry through ``pool`` when one is given."""
    if pool is None:
        return ProjectEntry(path, server_path, revision, full_repository_uri)
    return pool.intern(path, server_path, revision, full_repository_uri)
