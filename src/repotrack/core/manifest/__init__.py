"""
Repo manifest parsing.

Example:
    >>> from repotrack.core.manifest import ManifestParser, ProjectPool
    >>> parser = ManifestParser(pool=ProjectPool())
    >>> projects = parser.parse(manifest_text)
"""

from .models import ProjectEntry, ProjectPool
from .parser import MalformedManifestError, ManifestError, ManifestParser

__all__ = [
    "ProjectEntry",
    "ProjectPool",
    "ManifestParser",
    "ManifestError",
    "MalformedManifestError",
]
