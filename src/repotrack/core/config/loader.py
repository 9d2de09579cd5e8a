"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import RepoTrackConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per session
_config_cache: RepoTrackConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/repotrack/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "repotrack" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to .repotrack.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".repotrack.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested
    dicts are merged, not replaced.

    Example:
        >>> base = {"a": 1, "b": {"x": 10, "y": 20}}
        >>> override = {"b": {"y": 30, "z": 40}, "c": 3}
        >>> deep_merge(base, override)
        {'a': 1, 'b': {'x': 10, 'y': 30, 'z': 40}, 'c': 3}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        REPOTRACK_EXECUTABLE - overrides checkout.executable
        REPOTRACK_JOBS - overrides checkout.jobs
        REPOTRACK_MANIFEST_BRANCH - overrides checkout.manifest_branch
        REPOTRACK_IGNORE_PROJECTS - overrides polling.ignore_projects

    Checkout overrides only apply when a checkout section is configured.

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()
    checkout = result.get("checkout")

    if isinstance(checkout, dict):
        checkout = dict(checkout)

        if executable := os.environ.get("REPOTRACK_EXECUTABLE"):
            checkout["executable"] = executable

        if jobs_str := os.environ.get("REPOTRACK_JOBS"):
            try:
                jobs = int(jobs_str)
                if jobs < 0:
                    logger.warning("REPOTRACK_JOBS must be >= 0, got %d, ignoring", jobs)
                else:
                    checkout["jobs"] = jobs
            except ValueError:
                logger.warning("Invalid REPOTRACK_JOBS value '%s', ignoring", jobs_str)

        if branch := os.environ.get("REPOTRACK_MANIFEST_BRANCH"):
            checkout["manifest_branch"] = branch

        result["checkout"] = checkout

    if ignore := os.environ.get("REPOTRACK_IGNORE_PROJECTS"):
        polling = dict(result.get("polling") or {})
        polling["ignore_projects"] = ignore
        result["polling"] = polling

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded default configuration."""
    return {
        "polling": {"ignore_projects": None, "show_all_changes": False},
        "state_dir": ".repotrack",
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> RepoTrackConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (REPOTRACK_*)
        2. Project config (.repotrack.json)
        3. User config (~/.config/repotrack/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .repotrack.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated RepoTrackConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = RepoTrackConfig(**merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
