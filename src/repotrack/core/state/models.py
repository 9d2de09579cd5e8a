"""
Persisted models for snapshot history.

Defines Pydantic models for the records stored in ``.repotrack/history.json``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from repotrack.core.manifest.models import ProjectEntry, ProjectPool, make_entry


class ProjectRecord(BaseModel):
    """Serialized form of a ProjectEntry."""

    path: str = Field(min_length=1)
    server_path: str
    revision: str | None = None
    full_repository_uri: str = ""

    @classmethod
    def from_entry(cls, entry: ProjectEntry) -> ProjectRecord:
        return cls(
            path=entry.path,
            server_path=entry.server_path,
            revision=entry.revision,
            full_repository_uri=entry.full_repository_uri,
        )

    def to_entry(self, pool: ProjectPool | None = None) -> ProjectEntry:
        return make_entry(
            pool, self.path, self.server_path, self.revision, self.full_repository_uri
        )


class BuildRecord(BaseModel):
    """
    Repository state recorded for one build.

    Example:
        >>> record = BuildRecord(build_number=12, manifest_branch="main")
        >>> record.model_dump_json(indent=2)
    """

    build_number: int = Field(ge=0, description="Build this state belongs to")

    manifest_branch: str | None = Field(
        default=None,
        description="Manifest branch the checkout was made from",
    )

    manifest_text: str = Field(
        default="",
        description="Static manifest XML captured after sync",
    )

    projects: list[ProjectRecord] = Field(
        default_factory=list,
        description="Project entries in ascending path order",
    )

    recorded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the state was recorded",
    )


class HistoryFile(BaseModel):
    """Top-level structure of history.json."""

    builds: list[BuildRecord] = Field(default_factory=list)
