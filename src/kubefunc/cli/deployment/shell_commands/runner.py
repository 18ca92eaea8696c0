"""Subprocess execution for the deployment tools.

docker, dotnet and kubectl are all driven through CommandRunner, which turns
every outcome (including a tool that is not installed) into a CommandResult
so the deployer can report tool failures uniformly.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult

# Exit status shells use for "command not found"
EXIT_NOT_FOUND = 127


def _not_installed(cmd: Sequence[str], error: OSError) -> CommandResult:
    logger.debug("{} is not available: {}", cmd[0], error)
    return CommandResult(
        success=False,
        stderr=f"{cmd[0]} not found on PATH ({error})",
        returncode=EXIT_NOT_FOUND,
    )


class CommandRunner:
    """Runs tool commands from the function app project directory.

    Attributes:
        project_root: Default working directory for every command
    """

    def __init__(self, project_root: Path) -> None:
        self.project_root = project_root

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = True,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            cmd: Executable and arguments
            cwd: Working directory, project_root when omitted
            capture_output: Collect stdout/stderr instead of passing them
                            through to the terminal

        Returns:
            CommandResult; a missing executable yields returncode 127
        """
        logger.debug("$ {}", " ".join(cmd))
        try:
            completed = subprocess.run(
                list(cmd),
                cwd=cwd or self.project_root,
                capture_output=capture_output,
                text=True,
            )
        except FileNotFoundError as e:
            return _not_installed(cmd, e)

        if completed.returncode:
            logger.debug("{} failed with exit code {}", cmd[0], completed.returncode)
        return CommandResult(
            success=completed.returncode == 0,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            returncode=completed.returncode,
        )

    def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Run a long command, handing each output line to on_output.

        stderr is merged into stdout, so the returned result carries the
        whole transcript in ``stdout``. Blank lines are dropped.
        """
        logger.debug("$ {} (streaming)", " ".join(cmd))
        env = {**os.environ, "PYTHONUNBUFFERED": "1"}

        try:
            process = subprocess.Popen(
                list(cmd),
                cwd=cwd or self.project_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
                env=env,
            )
        except FileNotFoundError as e:
            return _not_installed(cmd, e)

        transcript: list[str] = []
        if process.stdout:
            for raw in iter(process.stdout.readline, ""):
                line = raw.rstrip("\n")
                if not line:
                    continue
                transcript.append(line)
                if on_output:
                    on_output(line)
        process.wait()
        returncode = process.returncode

        return CommandResult(
            success=returncode == 0,
            stdout="\n".join(transcript),
            returncode=returncode or 0,
        )
