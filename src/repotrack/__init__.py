"""
repotrack - state tracking for repo checkouts

Parses static repo manifests into comparable snapshots and works out which
projects changed between two builds.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from repotrack.core.manifest import ManifestParser, ProjectEntry, ProjectPool
from repotrack.core.state import Changes, NoBaseline, RepositorySnapshot

__all__ = [
    "Changes",
    "ManifestParser",
    "NoBaseline",
    "ProjectEntry",
    "ProjectPool",
    "RepositorySnapshot",
    "__version__",
]
