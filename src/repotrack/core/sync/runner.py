"""
Process execution for repo and git invocations.

The orchestrator only relies on exit codes (0 = success) and captured
text, so tests can substitute any object implementing ProcessRunner.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Protocol, TextIO, runtime_checkable

logger = logging.getLogger(__name__)

# Exit code reported when a command cannot be started at all
COMMAND_NOT_FOUND = 127


@runtime_checkable
class ProcessRunner(Protocol):
    """
    Protocol for running an external command to completion.
    """

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> int:
        """
        Run a command and wait for it.

        Args:
            args: Command name followed by its arguments
            cwd: Working directory
            env: Variables added to (or replacing) the inherited environment
            stdout: Where to write the command's standard output
            stderr: Where to write the command's standard error

        Returns:
            Exit code; non-zero (including a killed process) is a failure
        """
        ...


def _copy_lines(source: Iterable[str], destination: TextIO | None) -> None:
    for line in source:
        if destination is not None:
            destination.write(line)
            destination.flush()


class SubprocessRunner:
    """
    ProcessRunner backed by subprocess.Popen.

    Output is copied to the destinations line by line while the command
    runs, so a long ``repo sync`` shows progress in the build log. Bytes
    that are not valid UTF-8 are replaced rather than raising. When stdout
    and stderr go to the same stream they are merged in the order printed.
    """

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
        full_env = {**os.environ, **env} if env else None
        merged = stderr is stdout

        logger.debug("Running command in %s: %s", cwd, " ".join(cmd))

        try:
            process = subprocess.Popen(
                cmd,
                cwd=cwd,
                env=full_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merged else subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
                bufsize=1,  # Line buffered
            )
        except OSError as e:
            # Missing executable or working directory
            logger.warning("Failed to run %s: %s", cmd[0], e)
            if stderr is not None:
                stderr.write(f"{e}\n")
            return COMMAND_NOT_FOUND

        # Drain stderr on its own thread so neither pipe can fill up and block
        stderr_reader: threading.Thread | None = None
        if process.stderr is not None:
            stderr_reader = threading.Thread(
                target=_copy_lines, args=(process.stderr, stderr), daemon=True
            )
            stderr_reader.start()

        if process.stdout is not None:
            _copy_lines(process.stdout, stdout)

        returncode = process.wait()
        if stderr_reader is not None:
            stderr_reader.join()
        for pipe in (process.stdout, process.stderr):
            if pipe is not None:
                pipe.close()
        return returncode
