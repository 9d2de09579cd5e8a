"""
Changelog collection for changed projects.
"""

from .collector import collect_changelog, load_changelog, project_dir, save_changelog
from .models import ChangeLog, ChangeLogEntry, EditType, ModifiedFile

__all__ = [
    "ChangeLog",
    "ChangeLogEntry",
    "EditType",
    "ModifiedFile",
    "collect_changelog",
    "load_changelog",
    "project_dir",
    "save_changelog",
]
