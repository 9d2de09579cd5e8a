"""
Repo checkout orchestration.

Drives the external ``repo`` tool through init and sync, resetting and
retrying once when a sync fails, then reads back the static manifest and
the manifest repository's HEAD so a RepositorySnapshot can be built.

The sequence is:

    init -> [pre-sync reset] -> sync -> success
                                     \\-> forced reset -> sync retry -> success | failure
"""

from __future__ import annotations

import io
import logging
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import TextIO

import httpx

from repotrack.core.config.models import CheckoutConfig
from repotrack.core.manifest.models import ProjectPool
from repotrack.core.state.snapshot import RepositorySnapshot
from repotrack.core.sync.models import CheckoutResult, SyncPhase
from repotrack.core.sync.runner import ProcessRunner, SubprocessRunner

logger = logging.getLogger(__name__)


class LocalManifestError(Exception):
    """Raised when the configured local manifest cannot be installed."""

    pass


class SyncOrchestrator:
    """
    Runs repo init/sync in a workspace and captures the resulting state.

    Example:
        >>> orchestrator = SyncOrchestrator(config, Path("/work/aosp"))
        >>> result = orchestrator.checkout()
        >>> if result.success:
        ...     snapshot = orchestrator.capture_snapshot(config.manifest_branch)
    """

    RESET_COMMAND = "git reset --hard"
    LOCAL_MANIFEST = ".repo/local_manifest.xml"
    MANIFEST_CHECKOUT = ".repo/manifests"

    def __init__(
        self,
        config: CheckoutConfig,
        workspace: Path,
        *,
        runner: ProcessRunner | None = None,
        env: Mapping[str, str] | None = None,
        output: TextIO | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config: Checkout settings
            workspace: Build workspace; the checkout lives in
                ``workspace / config.destination_dir`` when that is set
            runner: Process runner (defaults to SubprocessRunner)
            env: Extra environment for every command
            output: Stream receiving command output (the build log)
        """
        self.config = config
        self.workspace = workspace
        self.runner = runner or SubprocessRunner()
        self.env = dict(env or {})
        self.output = output

    @property
    def repo_dir(self) -> Path:
        """Directory holding the repo client."""
        if self.config.destination_dir:
            return self.workspace / self.config.destination_dir
        return self.workspace

    def _repo(self, *args: str, trace: bool = False) -> list[str]:
        cmd = [self.config.executable]
        if trace and self.config.trace:
            cmd.append("--trace")
        cmd.extend(args)
        return cmd

    def _run(
        self,
        cmd: list[str],
        *,
        cwd: Path | None = None,
        stdout: TextIO | None = None,
    ) -> int:
        logger.debug("Running: %s", " ".join(cmd))
        return self.runner.run(
            cmd,
            cwd=cwd or self.repo_dir,
            env=self.env,
            stdout=stdout if stdout is not None else self.output,
            stderr=self.output,
        )

    def init_command(self) -> list[str]:
        """Build the ``repo init`` command line."""
        config = self.config
        cmd = self._repo("init", "-u", config.manifest_url, trace=True)
        if config.manifest_branch:
            cmd.extend(["-b", config.manifest_branch])
        if config.manifest_file:
            cmd.extend(["-m", config.manifest_file])
        if config.mirror_dir:
            cmd.append(f"--reference={config.mirror_dir}")
        if config.repo_url:
            cmd.append(f"--repo-url={config.repo_url}")
            cmd.append("--no-repo-verify")
        if config.manifest_group:
            cmd.extend(["-g", config.manifest_group])
        if config.depth != 0:
            cmd.append(f"--depth={config.depth}")
        return cmd

    def sync_command(self) -> list[str]:
        """Build the ``repo sync`` command line."""
        cmd = self._repo("sync", "-d", trace=True)
        if self.config.current_branch:
            cmd.append("-c")
        if self.config.quiet:
            cmd.append("-q")
        if self.config.jobs > 0:
            cmd.append(f"--jobs={self.config.jobs}")
        return cmd

    def init(self) -> bool:
        """Run ``repo init``. Returns False on a non-zero exit."""
        logger.info("Checking out code in: %s", self.repo_dir)
        self.repo_dir.mkdir(parents=True, exist_ok=True)
        return self._run(self.init_command()) == 0

    def install_local_manifest(self) -> None:
        """
        Replace .repo/local_manifest.xml with the configured one.

        Any existing local manifest is removed. Inline XML (starting with
        ``<?xml``) is written as-is; anything else is treated as a URL.

        Raises:
            LocalManifestError: If the manifest cannot be downloaded or written
        """
        target = self.repo_dir / self.LOCAL_MANIFEST
        target.unlink(missing_ok=True)

        local_manifest = self.config.local_manifest
        if not local_manifest:
            return

        if local_manifest.startswith("<?xml"):
            content = local_manifest
        else:
            try:
                response = httpx.get(local_manifest, timeout=30.0, follow_redirects=True)
                response.raise_for_status()
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                raise LocalManifestError(
                    f"Failed to fetch local manifest from {local_manifest}: {e}"
                ) from e
            content = response.text

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        except OSError as e:
            raise LocalManifestError(f"Failed to write {target}: {e}") from e

    def reset_all(self) -> int:
        """Reset every project to a clean HEAD. Returns the exit code."""
        return self._run(self._repo("forall", "-c", self.RESET_COMMAND))

    def sync(self) -> int:
        """Run ``repo sync``. Returns the exit code."""
        logger.debug("Syncing out code in: %s", self.repo_dir)
        return self._run(self.sync_command())

    def checkout(self) -> CheckoutResult:
        """
        Materialize the checkout.

        A failed init aborts immediately. A failed pre-sync reset is only
        logged. A failed sync is followed by a forced reset and exactly one
        more sync attempt.

        Returns:
            CheckoutResult describing the phases run and the outcome
        """
        started_at = datetime.now()
        phases: list[SyncPhase] = []

        def finish(success: bool, message: str) -> CheckoutResult:
            return CheckoutResult(
                success=success,
                phases=phases,
                message=message,
                started_at=started_at,
                completed_at=datetime.now(),
            )

        phases.append(SyncPhase.INIT)
        if not self.init():
            return finish(False, "repo init failed")

        try:
            self.install_local_manifest()
        except LocalManifestError as e:
            logger.error("%s", e)
            return finish(False, str(e))

        if self.config.reset_first:
            phases.append(SyncPhase.PRE_RESET)
            if self.reset_all() != 0:
                logger.warning("Failed to reset first.")

        phases.append(SyncPhase.SYNC)
        if self.sync() == 0:
            return finish(True, "")

        logger.warning("Sync failed. Resetting repository")
        phases.append(SyncPhase.FORCE_RESET)
        self.reset_all()

        phases.append(SyncPhase.SYNC_RETRY)
        if self.sync() == 0:
            return finish(True, "")

        return finish(False, "repo sync failed after reset and retry")

    def get_static_manifest(self) -> str:
        """
        Capture the static manifest (``repo manifest -o - -r``).

        A failed command is logged and whatever was printed is returned.
        """
        buffer = io.StringIO()
        code = self._run(self._repo("manifest", "-o", "-", "-r"), stdout=buffer)
        text = buffer.getvalue()
        if code != 0:
            logger.warning("repo manifest exited with %d", code)
        elif not text.strip():
            logger.warning("repo manifest printed nothing")
        logger.debug("Static manifest:\n%s", text)
        return text

    def get_manifest_revision(self) -> str:
        """
        Capture HEAD of the manifest repository checkout.

        A failed command is logged and yields a blank or partial value.
        """
        buffer = io.StringIO()
        code = self._run(
            ["git", "rev-parse", "HEAD"],
            cwd=self.repo_dir / self.MANIFEST_CHECKOUT,
            stdout=buffer,
        )
        revision = buffer.getvalue().strip()
        if code != 0 or not revision:
            logger.warning("Could not read manifest revision (exit %d)", code)
        return revision

    def capture_snapshot(
        self,
        manifest_branch: str | None,
        *,
        pool: ProjectPool | None = None,
    ) -> RepositorySnapshot:
        """
        Build a snapshot of the current checkout.

        Args:
            manifest_branch: Branch recorded in the snapshot
            pool: Optional pool for sharing ProjectEntry instances

        Returns:
            Snapshot of the checkout; empty if the manifest could not be read
        """
        return RepositorySnapshot.from_manifest(
            self.get_static_manifest(),
            self.get_manifest_revision(),
            self.config.manifest_url,
            manifest_branch,
            pool=pool,
        )
