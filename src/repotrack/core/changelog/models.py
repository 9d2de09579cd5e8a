"""
Changelog data models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class EditType(str, Enum):
    """How a commit touched a file."""

    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


class ModifiedFile(BaseModel):
    """A file touched by a commit, relative to its project."""

    path: str
    edit_type: EditType = EditType.EDIT


class ChangeLogEntry(BaseModel):
    """
    One commit in one project, between the previous build and this one.

    Example:
        >>> entry = ChangeLogEntry(
        ...     path="build/make",
        ...     server_path="platform/build",
        ...     revision="4f2a...",
        ...     message="Fix product copy files",
        ... )
    """

    path: str = Field(description="Checkout path of the project")
    server_path: str = Field(description="Project name on the server")
    revision: str = Field(description="Commit SHA")
    author: str = Field(default="")
    email: str = Field(default="")
    date: datetime | None = Field(default=None)
    message: str = Field(default="")
    files: list[ModifiedFile] = Field(default_factory=list)

    @property
    def affected_paths(self) -> list[str]:
        return [f.path for f in self.files]


class ChangeLog(BaseModel):
    """Top-level structure of a saved changelog file."""

    entries: list[ChangeLogEntry] = Field(default_factory=list)
