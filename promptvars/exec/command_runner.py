"""
Command runner for !command sources.

Runs ``<shell> -c <command>`` and polls for completion at a fixed interval
until the timeout deadline. On breach the whole process group is killed.
"""

import logging
import os
import signal
import subprocess
import tempfile
import time
from dataclasses import dataclass
from typing import Optional

from ..config import ExecutionEnvironment
from ..exceptions import CommandTimeoutError, SpawnError


logger = logging.getLogger(__name__)


DEFAULT_POLL_MS = 50


@dataclass
class CommandResult:
    """Result of a command that ran to completion."""
    command: str
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int
    poll_count: int

    @property
    def warning(self) -> Optional[str]:
        """Warning for a non-zero exit; the output is still valid."""
        if self.exit_code == 0:
            return None
        return f"Command '{self.command}' exited with status {self.exit_code}"


def decode_output(data: bytes) -> str:
    """Decode captured output, replacing undecodable bytes."""
    return data.decode('utf-8', errors='replace')


class CommandRunner:
    """
    Executes shell commands with a wall-clock bound.

    stdout and stderr are spooled to temporary files, not pipes, and read
    back once the child has exited.
    """

    def __init__(self, poll_ms: int = DEFAULT_POLL_MS):
        """
        Initialize command runner.

        Args:
            poll_ms: Interval between process status checks in milliseconds
        """
        self.poll_ms = poll_ms

    def run(self, command: str, timeout_secs: float, environment: ExecutionEnvironment) -> CommandResult:
        """
        Run a command and wait for it, at most timeout_secs.

        Args:
            command: Command line passed to the shell with -c
            timeout_secs: Wall-clock bound in seconds
            environment: Shell and working directory to use

        Returns:
            CommandResult, whatever the exit status

        Raises:
            SpawnError: If the shell could not be started
            CommandTimeoutError: If the deadline passed; the process is killed
        """
        argv = [environment.shell, "-c", command]
        logger.debug(f"Spawning {argv} in {environment.cwd}")

        with tempfile.TemporaryFile() as stdout_file, tempfile.TemporaryFile() as stderr_file:
            start_time = time.time()
            try:
                process = subprocess.Popen(
                    argv,
                    cwd=str(environment.cwd),
                    env=environment.env,
                    stdin=subprocess.DEVNULL,
                    stdout=stdout_file,
                    stderr=stderr_file,
                    start_new_session=True,
                )
            except OSError as e:
                raise SpawnError(command, environment.shell, e)

            poll_count = 0
            poll_interval_sec = self.poll_ms / 1000.0
            deadline = start_time + timeout_secs
            exit_code = None

            while True:
                poll_count += 1
                exit_code = process.poll()
                if exit_code is not None:
                    break

                now = time.time()
                if now >= deadline:
                    self._kill(process)
                    logger.warning(f"Command '{command}' timed out after {timeout_secs}s, killed")
                    raise CommandTimeoutError(command, timeout_secs)

                time.sleep(min(poll_interval_sec, deadline - now))

            duration_ms = int((time.time() - start_time) * 1000)

            stdout_file.seek(0)
            stderr_file.seek(0)
            stdout = decode_output(stdout_file.read())
            stderr = decode_output(stderr_file.read())

        if stderr:
            logger.debug(f"Command '{command}' stderr: {stderr.rstrip()}")

        result = CommandResult(
            command=command,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            duration_ms=duration_ms,
            poll_count=poll_count,
        )
        if result.warning:
            logger.warning(result.warning)
        return result

    def _kill(self, process: subprocess.Popen):
        """Kill the process group, then reap the shell."""
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            process.kill()
        process.wait()
