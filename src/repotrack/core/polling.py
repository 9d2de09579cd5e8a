"""
Build-trigger decisions.

Compares the state of a fresh checkout against the last recorded state on
the same manifest branch and decides whether a build is needed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from repotrack.core.manifest.models import ProjectPool
from repotrack.core.state.changes import Changes, parse_ignore_list, should_ignore_changes
from repotrack.core.state.history import SnapshotHistory
from repotrack.core.state.snapshot import RepositorySnapshot
from repotrack.core.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)


class PollingChange(str, Enum):
    """Outcome of a poll."""

    NONE = "none"
    SIGNIFICANT = "significant"
    INCOMPARABLE = "incomparable"
    BUILD_NOW = "build_now"

    @property
    def needs_build(self) -> bool:
        return self is not PollingChange.NONE


@dataclass(frozen=True)
class PollingResult:
    """Baseline and current state compared by a poll, with the verdict."""

    change: PollingChange
    baseline: RepositorySnapshot | None = None
    current: RepositorySnapshot | None = None


def compare_states(
    current: RepositorySnapshot,
    baseline: RepositorySnapshot,
    ignored: Iterable[str] = (),
) -> PollingChange:
    """
    Decide whether the difference between two snapshots warrants a build.

    Args:
        current: State just checked out
        baseline: State of the last build on the same branch
        ignored: Server paths whose changes alone never trigger a build

    Returns:
        PollingChange.NONE or PollingChange.SIGNIFICANT
    """
    if current == baseline:
        return PollingChange.NONE
    change_set = current.diff(baseline)
    if isinstance(change_set, Changes) and should_ignore_changes(change_set, ignored):
        logger.info("Only ignored projects changed: %s", ", ".join(change_set.server_paths))
        return PollingChange.NONE
    return PollingChange.SIGNIFICANT


class Poller:
    """
    Checks whether the remote state moved since the last build.

    Example:
        >>> poller = Poller(orchestrator, history, ignore_projects="platform/docs")
        >>> result = poller.poll()
        >>> if result.change.needs_build:
        ...     trigger_build()
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        history: SnapshotHistory,
        *,
        ignore_projects: str | None = None,
        pool: ProjectPool | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.history = history
        self.ignored = parse_ignore_list(ignore_projects)
        self.pool = pool

    @property
    def manifest_branch(self) -> str | None:
        return self.orchestrator.config.manifest_branch

    def poll(self, baseline: RepositorySnapshot | None = None) -> PollingResult:
        """
        Check out the latest state and compare it with ``baseline``.

        Without a baseline the last recorded state on the current manifest
        branch is used; if there is none a build is requested right away.
        A failed checkout is reported as INCOMPARABLE so the build runs and
        logs the failure.

        Args:
            baseline: State to compare against, if already known

        Returns:
            PollingResult with the verdict
        """
        if baseline is None:
            baseline = self.history.find_last_state(self.manifest_branch)
            if baseline is None:
                return PollingResult(PollingChange.BUILD_NOW)

        result = self.orchestrator.checkout()
        if not result.success:
            logger.warning("Checkout failed during polling: %s", result.message)
            return PollingResult(PollingChange.INCOMPARABLE, baseline, baseline)

        current = self.orchestrator.capture_snapshot(self.manifest_branch, pool=self.pool)
        change = compare_states(current, baseline, self.ignored)
        return PollingResult(change, baseline, current)
