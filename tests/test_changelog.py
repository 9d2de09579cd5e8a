"""
Tests for changelog collection.

Uses real temporary git repositories laid out like a repo checkout.
"""

from pathlib import Path

import pytest

from repotrack.core.changelog import (
    EditType,
    collect_changelog,
    load_changelog,
    project_dir,
    save_changelog,
)
from repotrack.core.manifest import ProjectEntry
from repotrack.core.state import MANIFEST_PROJECT_PATH, Changes, NoBaseline, RepositorySnapshot


def _state(*entries: ProjectEntry) -> RepositorySnapshot:
    return RepositorySnapshot("", "main", {e.path: e for e in entries})


@pytest.fixture
def checkout(tmp_path: Path, git_repo: Path) -> Path:
    """A repo checkout root with one project at project/a."""
    root = tmp_path / "checkout"
    root.mkdir()
    git_repo.rename(root / "project-a")
    return root


class TestCollectChangelog:
    """Tests for collect_changelog()."""

    def test_commits_between_revisions(self, checkout: Path, commit_file, head_of) -> None:
        """Commits after the old revision up to the new one are listed."""
        repo = checkout / "project-a"
        old = head_of(repo)
        first = commit_file(repo, "src/main.c", "int main;\n", "Add main")
        second = commit_file(repo, "README.md", "# Changed\n", "Update readme")

        previous = _state(ProjectEntry("project-a", "proj/a", old))
        current = _state(ProjectEntry("project-a", "proj/a", second))

        entries = collect_changelog(current.diff(previous), checkout, current)

        assert [e.revision for e in entries] == [second, first]
        assert entries[0].message == "Update readme"
        assert entries[0].author == "Test User"
        assert entries[0].email == "test@example.com"
        assert entries[0].files[0].path == "README.md"
        assert entries[0].files[0].edit_type is EditType.EDIT
        assert entries[1].files[0].edit_type is EditType.ADD
        assert entries[1].path == "project-a"
        assert entries[1].server_path == "proj/a"

    def test_deleted_file(self, checkout: Path, commit_file, head_of) -> None:
        """A removed file is reported as a delete."""
        repo = checkout / "project-a"
        commit_file(repo, "tmp.txt", "x\n", "Add tmp")
        old = head_of(repo)
        (repo / "tmp.txt").unlink()
        new = commit_file(repo, "keep.txt", "y\n", "Remove tmp")

        previous = _state(ProjectEntry("project-a", "proj/a", old))
        current = _state(ProjectEntry("project-a", "proj/a", new))

        entries = collect_changelog(current.diff(previous), checkout, current)

        kinds = {f.path: f.edit_type for f in entries[0].files}
        assert kinds == {"keep.txt": EditType.ADD, "tmp.txt": EditType.DELETE}

    def test_no_baseline_is_empty(self, checkout: Path, head_of) -> None:
        """Nothing is collected without a baseline."""
        current = _state(ProjectEntry("project-a", "proj/a", head_of(checkout / "project-a")))

        assert collect_changelog(NoBaseline(), checkout, current) == []

    def test_new_project_skipped_by_default(self, checkout: Path, head_of) -> None:
        """A newly added project has no changelog unless show_all_changes."""
        current = _state(ProjectEntry("project-a", "proj/a", head_of(checkout / "project-a")))
        change_set = current.diff(_state())

        assert collect_changelog(change_set, checkout, current) == []

    def test_new_project_full_history(self, checkout: Path, commit_file) -> None:
        """With show_all_changes a new project lists its whole history."""
        new = commit_file(checkout / "project-a", "a.txt", "a\n", "Second")
        current = _state(ProjectEntry("project-a", "proj/a", new))

        entries = collect_changelog(
            current.diff(_state()), checkout, current, show_all_changes=True
        )

        assert [e.message for e in entries] == ["Second", "Initial commit"]

    def test_removed_project_skipped(self, checkout: Path, head_of) -> None:
        """Projects no longer in the manifest produce no entries."""
        previous = _state(ProjectEntry("gone", "proj/gone", "1" * 40))

        assert collect_changelog(_state().diff(previous), checkout, _state()) == []

    def test_missing_repository_skipped(self, checkout: Path) -> None:
        """A project without a working copy is skipped."""
        change_set = Changes((ProjectEntry("missing", "proj/missing", "1" * 40),))
        current = _state(ProjectEntry("missing", "proj/missing", "2" * 40))

        assert collect_changelog(change_set, checkout, current) == []

    def test_unknown_revision_skipped(self, checkout: Path, head_of) -> None:
        """An old revision the repository does not have is skipped."""
        repo = checkout / "project-a"
        change_set = Changes((ProjectEntry("project-a", "proj/a", "0123456789" * 4),))
        current = _state(ProjectEntry("project-a", "proj/a", head_of(repo)))

        assert collect_changelog(change_set, checkout, current) == []


class TestHelpers:
    """Tests for path mapping and persistence."""

    def test_manifest_project_dir(self, tmp_path: Path) -> None:
        """The manifest entry maps to .repo/manifests."""
        assert project_dir(tmp_path, MANIFEST_PROJECT_PATH) == tmp_path / ".repo" / "manifests"
        assert project_dir(tmp_path, "build/make") == tmp_path / "build" / "make"

    def test_save_and_load(self, checkout: Path, commit_file, head_of, tmp_path: Path) -> None:
        """Saved changelogs load back equal."""
        repo = checkout / "project-a"
        old = head_of(repo)
        new = commit_file(repo, "x.txt", "x\n", "Add x")
        previous = _state(ProjectEntry("project-a", "proj/a", old))
        current = _state(ProjectEntry("project-a", "proj/a", new))
        entries = collect_changelog(current.diff(previous), checkout, current)
        target = tmp_path / "out" / "changelog.json"

        save_changelog(entries, target)

        assert load_changelog(target) == entries

    def test_load_missing(self, tmp_path: Path) -> None:
        """A missing changelog file loads as empty."""
        assert load_changelog(tmp_path / "nope.json") == []
