"""
Pytest configuration and shared fixtures.

Provides sample manifests, checkout configs, a scripted process runner for
orchestrator tests, and temporary git repositories.
"""

import subprocess
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, TextIO

import pytest

from repotrack.core.config import CheckoutConfig, clear_cache

# ==============================================================================
# Sample Manifests
# ==============================================================================

SAMPLE_MANIFEST = """<?xml version="1.0" encoding="UTF-8"?>
<manifest>
  <remote name="aosp" fetch="https://android.googlesource.com" />
  <remote name="github" fetch="https://github.com/example" />
  <default remote="aosp" revision="main" sync-j="4" />

  <project path="build/make" name="platform/build"
           revision="1111111111111111111111111111111111111111" />
  <project name="platform/art"
           revision="2222222222222222222222222222222222222222" />
  <project path="external/tool" name="tool" remote="github"
           revision="3333333333333333333333333333333333333333" />
</manifest>
"""

# Same projects as SAMPLE_MANIFEST, reordered and reformatted
SAMPLE_MANIFEST_REFORMATTED = """<manifest>
<project revision="3333333333333333333333333333333333333333" remote="github" name="tool" path="external/tool"/>
<project revision="2222222222222222222222222222222222222222" name="platform/art"/>
<project revision="1111111111111111111111111111111111111111" name="platform/build" path="build/make"/>
<default sync-j="4" revision="main" remote="aosp"/>
<remote fetch="https://github.com/example" name="github"/>
<remote fetch="https://android.googlesource.com" name="aosp"/>
</manifest>"""

MANIFEST_HEAD = "abcdefabcdefabcdefabcdefabcdefabcdefabcd"
MANIFEST_URL = "https://android.googlesource.com/platform/manifest"


@pytest.fixture
def sample_manifest() -> str:
    """A static manifest with three projects on two remotes."""
    return SAMPLE_MANIFEST


@pytest.fixture
def reformatted_manifest() -> str:
    """SAMPLE_MANIFEST with different element order and whitespace."""
    return SAMPLE_MANIFEST_REFORMATTED


# ==============================================================================
# Config Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def clean_config_cache():
    """Make every test load configuration from scratch."""
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def checkout_config() -> CheckoutConfig:
    """Minimal checkout settings."""
    return CheckoutConfig(manifest_url=MANIFEST_URL, manifest_branch="main")


# ==============================================================================
# Process Runner
# ==============================================================================


class FakeRunner:
    """
    Scripted ProcessRunner.

    Exit codes are given per subcommand ("init", "sync", "forall",
    "manifest", "rev-parse") as a list consumed in order; the last code
    repeats. Unlisted subcommands succeed.
    """

    def __init__(
        self,
        exit_codes: Mapping[str, list[int]] | None = None,
        manifest_text: str = "",
        head: str = "",
    ) -> None:
        self.exit_codes = {k: list(v) for k, v in (exit_codes or {}).items()}
        self.manifest_text = manifest_text
        self.head = head
        self.calls: list[tuple[list[str], Path, dict[str, str]]] = []

    @staticmethod
    def subcommand(args: Sequence[str]) -> str:
        rest = [a for a in args[1:] if a != "--trace"]
        return rest[0] if rest else ""

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> int:
        cmd = list(args)
        self.calls.append((cmd, cwd, dict(env or {})))
        key = self.subcommand(cmd)

        codes = self.exit_codes.get(key)
        code = 0
        if codes:
            code = codes.pop(0) if len(codes) > 1 else codes[0]

        if stdout is not None:
            if key == "manifest":
                stdout.write(self.manifest_text)
            elif key == "rev-parse":
                stdout.write(self.head + "\n")
        return code

    @property
    def subcommands(self) -> list[str]:
        return [self.subcommand(cmd) for cmd, _, _ in self.calls]

    def commands_for(self, key: str) -> list[list[str]]:
        return [cmd for cmd, _, _ in self.calls if self.subcommand(cmd) == key]


@pytest.fixture
def make_runner() -> Callable[..., FakeRunner]:
    """Factory for scripted process runners."""

    def _make(**kwargs: Any) -> FakeRunner:
        return FakeRunner(**kwargs)

    return _make


# ==============================================================================
# Git Fixtures
# ==============================================================================


def _git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with an initial commit."""
    repo = tmp_path / "repo"
    repo.mkdir()

    _git(repo, "init")
    _git(repo, "config", "user.email", "test@example.com")
    _git(repo, "config", "user.name", "Test User")

    (repo / "README.md").write_text("# Test Repo\n")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "-m", "Initial commit")

    return repo


@pytest.fixture
def commit_file() -> Callable[..., str]:
    """Return a helper that writes a file, commits it and returns the SHA."""

    def _commit(repo: Path, name: str, content: str, message: str) -> str:
        target = repo / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        _git(repo, "add", "-A")
        _git(repo, "commit", "-m", message)
        return _git(repo, "rev-parse", "HEAD")

    return _commit


@pytest.fixture
def head_of() -> Callable[[Path], str]:
    """Return a helper that reads HEAD of a repository."""

    def _head(repo: Path) -> str:
        return _git(repo, "rev-parse", "HEAD")

    return _head
