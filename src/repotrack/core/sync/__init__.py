"""
Repo checkout orchestration.

Example:
    >>> from repotrack.core.sync import SyncOrchestrator
    >>> orchestrator = SyncOrchestrator(config.checkout, Path("."))
    >>> result = orchestrator.checkout()
    >>> print(result.summary())
"""

from repotrack.core.sync.models import CheckoutResult, SyncPhase
from repotrack.core.sync.orchestrator import LocalManifestError, SyncOrchestrator
from repotrack.core.sync.runner import COMMAND_NOT_FOUND, ProcessRunner, SubprocessRunner

__all__ = [
    "SyncOrchestrator",
    "LocalManifestError",
    "CheckoutResult",
    "SyncPhase",
    "ProcessRunner",
    "SubprocessRunner",
    "COMMAND_NOT_FOUND",
]
