"""
Configuration data models for repotrack.

These models define the structure of .repotrack.json and
~/.config/repotrack/config.json files, with validation and type safety
via Pydantic.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CheckoutConfig(BaseModel):
    """
    How to materialize a repo checkout.

    Mirrors the options passed to ``repo init`` and ``repo sync``.
    """
    model_config = ConfigDict(extra="forbid")

    manifest_url: str = Field(
        min_length=1,
        description="URL of the manifest repository (repo init -u)"
    )
    manifest_branch: Optional[str] = Field(
        default=None,
        description="Manifest branch or revision (repo init -b)"
    )
    manifest_file: Optional[str] = Field(
        default=None,
        description="Manifest file within the manifest repository (repo init -m)"
    )
    manifest_group: Optional[str] = Field(
        default=None,
        description="Only check out projects in these groups (repo init -g)"
    )
    mirror_dir: Optional[str] = Field(
        default=None,
        description="Local mirror to use as a reference (repo init --reference)"
    )
    repo_url: Optional[str] = Field(
        default=None,
        description="Alternate location of the repo tool itself (repo init --repo-url)"
    )
    jobs: int = Field(
        default=0,
        ge=0,
        description="Parallel sync jobs; 0 leaves the choice to repo"
    )
    depth: int = Field(
        default=0,
        ge=0,
        description="Shallow clone depth; 0 means full history"
    )
    local_manifest: Optional[str] = Field(
        default=None,
        description="Inline XML or URL installed as .repo/local_manifest.xml"
    )
    destination_dir: Optional[str] = Field(
        default=None,
        description="Subdirectory of the workspace holding the checkout"
    )
    current_branch: bool = Field(
        default=False,
        description="Fetch only the current manifest branch (repo sync -c)"
    )
    reset_first: bool = Field(
        default=False,
        description="Run 'git reset --hard' in every project before syncing"
    )
    quiet: bool = Field(
        default=False,
        description="Pass -q to repo sync"
    )
    trace: bool = Field(
        default=False,
        description="Pass --trace to repo"
    )
    executable: str = Field(
        default="repo",
        min_length=1,
        description="repo executable to run"
    )

    @field_validator(
        "manifest_branch",
        "manifest_file",
        "manifest_group",
        "mirror_dir",
        "repo_url",
        "local_manifest",
        "destination_dir",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty or whitespace-only strings as unset."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class PollingConfig(BaseModel):
    """
    Build-trigger and changelog settings.
    """
    ignore_projects: Optional[str] = Field(
        default=None,
        description="Whitespace/comma separated server paths whose changes never trigger a build"
    )
    show_all_changes: bool = Field(
        default=False,
        description="List the full history of newly added projects in the changelog"
    )


class RepoTrackConfig(BaseModel):
    """
    Top-level configuration.

    Example:
        >>> config = RepoTrackConfig(
        ...     checkout={"manifest_url": "https://android.googlesource.com/platform/manifest"}
        ... )
        >>> config.checkout.executable
        'repo'
    """
    checkout: Optional[CheckoutConfig] = Field(
        default=None,
        description="Checkout settings; required by checkout and poll"
    )
    polling: PollingConfig = Field(default_factory=PollingConfig)
    state_dir: str = Field(
        default=".repotrack",
        description="Directory (relative to the project) holding snapshot history"
    )
