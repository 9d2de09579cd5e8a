"""
Build parameters from .env files.

CI jobs often pass REPOTRACK_* settings (manifest branch, job count, ignore
list) through a .env file next to .repotrack.json instead of the job's
environment. Files are read in this order, later files winning:

    ~/.config/repotrack/.env < <project>/.env < <project>/.env.local

Only REPOTRACK_* keys are taken, and a key already set in the process
environment is never replaced.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

ENV_PREFIX = "REPOTRACK_"


def get_env_file_paths(project_dir: Path | None = None) -> list[Path]:
    """Candidate .env files for a project, lowest precedence first."""
    if project_dir is None:
        project_dir = Path.cwd()
    return [
        get_xdg_config_home() / "repotrack" / ".env",
        project_dir / ".env",
        project_dir / ".env.local",
    ]


def read_env_files(paths: Iterable[Path], prefix: str = ENV_PREFIX) -> dict[str, str]:
    """
    Merge the ``prefix`` keys of several .env files.

    Missing files are skipped. Keys without a value are ignored.

    Args:
        paths: Files in increasing precedence
        prefix: Only keys starting with this are kept

    Returns:
        Merged key/value pairs
    """
    values: dict[str, str] = {}
    for path in paths:
        if not path.exists():
            continue
        for key, value in dotenv_values(path).items():
            if value is None or not key.startswith(prefix):
                continue
            values[key] = value
    return values


def load_layered_env(
    project_dir: Path | None = None,
    *,
    paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Export REPOTRACK_* values from .env files into ``os.environ``.

    Must run before load_config() so apply_env_overrides() sees the values.

    Args:
        project_dir: Directory holding the project .env files (defaults to cwd)
        paths: Explicit files to read instead of get_env_file_paths()

    Returns:
        The values that were exported
    """
    if paths is None:
        paths = get_env_file_paths(project_dir)

    exported: dict[str, str] = {}
    for key, value in read_env_files(paths).items():
        if key in os.environ:
            logger.debug("%s is set in the environment, ignoring .env value", key)
            continue
        os.environ[key] = value
        exported[key] = value
    return exported
