"""
Changelog collection.

Walks the commits of every project in a change set, from the revision
recorded by the previous build up to the revision of the current one.
"""

from __future__ import annotations

import logging
from pathlib import Path

from git import NULL_TREE, Commit, GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from repotrack.core.changelog.models import ChangeLog, ChangeLogEntry, EditType, ModifiedFile
from repotrack.core.manifest.models import ProjectEntry
from repotrack.core.state.changes import ChangeSet, NoBaseline
from repotrack.core.state.snapshot import MANIFEST_PROJECT_PATH, RepositorySnapshot

logger = logging.getLogger(__name__)

MANIFEST_CHECKOUT = ".repo/manifests"


def project_dir(repo_dir: Path, path: str) -> Path:
    """Working copy of the project checked out at ``path``."""
    if path == MANIFEST_PROJECT_PATH:
        return repo_dir / MANIFEST_CHECKOUT
    return repo_dir / path


def _modified_files(commit: Commit) -> list[ModifiedFile]:
    if commit.parents:
        diffs = commit.parents[0].diff(commit)
    else:
        diffs = commit.diff(NULL_TREE, R=True)

    files: list[ModifiedFile] = []
    for d in diffs:
        if d.new_file:
            files.append(ModifiedFile(path=d.b_path or "", edit_type=EditType.ADD))
        elif d.deleted_file:
            files.append(ModifiedFile(path=d.a_path or "", edit_type=EditType.DELETE))
        else:
            files.append(ModifiedFile(path=d.b_path or d.a_path or "", edit_type=EditType.EDIT))
    return sorted(files, key=lambda f: f.path)


def _project_commits(
    old: ProjectEntry,
    new: ProjectEntry,
    directory: Path,
) -> list[ChangeLogEntry]:
    rev_range = new.revision or "HEAD"
    if old.revision is not None:
        rev_range = f"{old.revision}..{rev_range}"

    try:
        repo = Repo(directory)
        commits = list(repo.iter_commits(rev_range))
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        logger.warning("No git repository for %s at %s: %s", new.path, directory, e)
        return []
    except (GitCommandError, ValueError) as e:
        logger.warning("Failed to read history of %s (%s): %s", new.path, rev_range, e)
        return []

    return [
        ChangeLogEntry(
            path=new.path,
            server_path=new.server_path,
            revision=commit.hexsha,
            author=commit.author.name or "",
            email=commit.author.email or "",
            date=commit.authored_datetime,
            message=str(commit.message).strip(),
            files=_modified_files(commit),
        )
        for commit in commits
    ]


def collect_changelog(
    change_set: ChangeSet,
    repo_dir: Path,
    current: RepositorySnapshot,
    show_all_changes: bool = False,
) -> list[ChangeLogEntry]:
    """
    List the commits behind a change set.

    Args:
        change_set: Result of ``current.diff(previous)``
        repo_dir: Root of the repo checkout
        current: Snapshot of the checkout after sync
        show_all_changes: Include the whole history of newly added projects

    Returns:
        Changelog entries grouped by project in change-set order, newest
        commit first within a project. Empty when there is no baseline.
    """
    if isinstance(change_set, NoBaseline):
        return []

    entries: list[ChangeLogEntry] = []
    for old in change_set:
        new = current.get_project(old.path)
        if new is None:
            # Removed from the manifest
            continue
        if old.revision is None and not show_all_changes:
            continue
        entries.extend(_project_commits(old, new, project_dir(repo_dir, old.path)))
    return entries


def save_changelog(entries: list[ChangeLogEntry], path: Path) -> None:
    """Write changelog entries to ``path`` as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(ChangeLog(entries=entries).model_dump_json(indent=2))


def load_changelog(path: Path) -> list[ChangeLogEntry]:
    """Read changelog entries written by save_changelog()."""
    if not path.exists():
        return []
    return ChangeLog.model_validate_json(path.read_text()).entries
