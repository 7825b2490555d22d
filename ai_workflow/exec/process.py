"""
Process execution for command steps and context commands.
Runs shell command strings and captures stdout, stderr, and exit code.
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Exit code reported when a command exceeds its timeout
TIMEOUT_EXIT_CODE = 124


@dataclass
class CommandResult:
    """Captured result of a shell command."""
    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int = 0
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class ProcessRunner:
    """
    Runs shell commands in the workspace.

    Commands are shell strings (pipes, redirections and globbing are
    honoured), so they run through the system shell.
    """

    def __init__(self, workspace: Optional[Path] = None, env: Optional[Dict[str, str]] = None):
        """
        Initialize process runner.

        Args:
            workspace: Working directory for commands (default: current directory)
            env: Environment for child processes (default: inherited)
        """
        self.workspace = Path(workspace) if workspace else Path.cwd()
        self.env = env

    def run(self, command: str, timeout_sec: Optional[float] = None) -> CommandResult:
        """
        Run a command and capture its output.

        Never raises for command failures: a command that cannot be started
        reports exit code 1 with the error text as stderr, and a timeout
        reports exit code 124.

        Args:
            command: Shell command string
            timeout_sec: Optional timeout in seconds

        Returns:
            CommandResult with captured output
        """
        start_time = time.time()
        logger.debug(f"Running command: {command}")

        try:
            result = subprocess.run(
                command,
                shell=True,
                cwd=str(self.workspace),
                env=self.env,
                capture_output=True,
                timeout=timeout_sec,
            )
            stdout = self._decode(result.stdout)
            stderr = self._decode(result.stderr)
            exit_code = result.returncode
            timed_out = False

        except subprocess.TimeoutExpired as e:
            stdout = self._decode(e.stdout)
            stderr = self._decode(e.stderr) or f"Command timed out after {timeout_sec} seconds"
            exit_code = TIMEOUT_EXIT_CODE
            timed_out = True

        except OSError as e:
            stdout = ""
            stderr = str(e)
            exit_code = 1
            timed_out = False

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"Command exited with code {exit_code} in {duration_ms}ms")

        return CommandResult(
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            duration_ms=duration_ms,
            timed_out=timed_out,
        )

    @staticmethod
    def _decode(data) -> str:
        if data is None:
            return ""
        if isinstance(data, bytes):
            return data.decode('utf-8', errors='replace')
        return data
