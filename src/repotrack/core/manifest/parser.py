"""
Repo manifest parser.

Turns the static manifest XML produced by ``repo manifest -o - -r`` into a
mapping of checkout path to ProjectEntry, resolving each project's fetch
URL from the manifest's ``<remote>`` and ``<default>`` elements.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from repotrack.core.manifest.models import ProjectEntry, ProjectPool, make_entry

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Base exception for manifest parsing."""

    pass


class MalformedManifestError(ManifestError):
    """Raised when manifest text is not well-formed XML or has the wrong root."""

    pass


def _attr(element: ET.Element, name: str) -> str | None:
    """Read an attribute, trimmed, with blank values treated as missing."""
    value = element.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


class ManifestParser:
    """
    Parser for repo manifest documents.

    Parsing is all-or-nothing: either every project is read or a
    ManifestError is raised. Projects whose remote cannot be resolved are
    still returned with an empty URL; a message for each one is kept in
    ``warnings``.

    Example:
        >>> parser = ManifestParser()
        >>> projects = parser.parse(manifest_text)
        >>> projects["build/make"].revision
        'f3c2...'
    """

    ROOT_TAG = "manifest"

    def __init__(self, pool: ProjectPool | None = None) -> None:
        """
        Initialize the parser.

        Args:
            pool: Optional pool used to share identical ProjectEntry instances
        """
        self.pool = pool
        self.warnings: list[str] = []

    def parse(self, text: str) -> dict[str, ProjectEntry]:
        """
        Parse manifest text into a mapping of path to ProjectEntry.

        Args:
            text: Manifest XML

        Returns:
            Dict keyed by checkout path

        Raises:
            MalformedManifestError: If the XML is invalid or the root
                element is not ``<manifest>``
        """
        self.warnings = []

        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise MalformedManifestError(f"Invalid manifest XML: {e}") from e

        if root.tag != self.ROOT_TAG:
            raise MalformedManifestError(
                f"Malformed manifest: root element is <{root.tag}>, expected <{self.ROOT_TAG}>"
            )

        remotes = self._parse_remotes(root)
        defaults = self._parse_defaults(root)

        projects: dict[str, ProjectEntry] = {}
        for element in root.iter("project"):
            server_path = _attr(element, "name")
            revision = _attr(element, "revision")
            # `repo manifest -o` drops path when it equals the name
            path = _attr(element, "path") or server_path

            if path is None or server_path is None or revision is None:
                continue

            uri = self._resolve_uri(element, server_path, remotes, defaults)
            projects[path] = make_entry(self.pool, path, server_path, revision, uri)
            logger.debug("Added a project: %s at revision: %s", path, revision)

        return projects

    def _parse_remotes(self, root: ET.Element) -> dict[str, str]:
        """Map remote name to its fetch prefix."""
        remotes: dict[str, str] = {}
        for element in root.iter("remote"):
            name = _attr(element, "name")
            if name is None:
                logger.debug("Skipping <remote> without a name")
                continue
            remotes[name] = (element.get("fetch") or "").strip()
        return remotes

    def _parse_defaults(self, root: ET.Element) -> dict[str, str]:
        """Attributes of the first <default> element; later ones are ignored."""
        element = next(root.iter("default"), None)
        if element is None:
            return {}
        return dict(element.attrib)

    def _resolve_uri(
        self,
        element: ET.Element,
        server_path: str,
        remotes: dict[str, str],
        defaults: dict[str, str],
    ) -> str:
        """Build ``<fetch>/<name>.git`` for a project, or "" if unresolvable."""
        remote = _attr(element, "remote")

        if remote is None:
            default_remote = (defaults.get("remote") or "").strip()
            if not default_remote:
                return self._unresolvable(server_path, "no remote and no default remote")
            # A default naming a declared remote uses that remote's fetch;
            # anything else is taken as the fetch prefix itself.
            base = remotes.get(default_remote, default_remote)
        else:
            if remote not in remotes:
                return self._unresolvable(server_path, f"cannot find remote '{remote}'")
            base = remotes[remote]

        return f"{base}/{server_path}.git"

    def _unresolvable(self, server_path: str, reason: str) -> str:
        message = f"Failed to configure URI for {server_path}: {reason}"
        logger.warning(message)
        self.warnings.append(message)
        return ""
