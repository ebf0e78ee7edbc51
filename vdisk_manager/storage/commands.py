"""External command execution with loguru debug logging."""

from __future__ import annotations

import shutil
import subprocess
from typing import Optional, Sequence

from vdisk_manager.logging import LoggerFactory


log = LoggerFactory.for_commands()
output_log = log.bind(tags=["command", "command-output"])

COMMAND_ERRORS = (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError)

_default_timeout: Optional[float] = None


def configure_command_helpers(timeout: Optional[float] = None) -> None:
    """Set the timeout applied when run_command() is not given one."""
    global _default_timeout
    _default_timeout = timeout


def run_command(
    command: Sequence[str],
    check: bool = True,
    log_output: bool = True,
    log_command: bool = True,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """Run ``command`` without a shell and capture its text output.

    Raises:
        subprocess.CalledProcessError: non-zero exit with ``check=True``
        FileNotFoundError: the binary is not installed
        subprocess.TimeoutExpired: ``timeout`` elapsed
    """
    command = list(command)
    if timeout is None:
        timeout = _default_timeout
    if log_command:
        log.debug(f"Running command: {' '.join(command)}")
    try:
        result = subprocess.run(
            command, check=check, text=True, capture_output=True, timeout=timeout
        )
    except subprocess.CalledProcessError as error:
        log.debug(f"Command failed: {' '.join(command)} (rc={error.returncode})")
        if error.stdout:
            output_log.trace(f"stdout: {error.stdout.strip()}")
        if error.stderr:
            output_log.debug(f"stderr: {error.stderr.strip()}")
        raise
    if result.stdout and (log_output or result.returncode != 0):
        output_log.trace(f"stdout: {result.stdout.strip()}")
    if result.stderr and (log_output or result.returncode != 0):
        output_log.debug(f"stderr: {result.stderr.strip()}")
    if log_command:
        log.debug(f"Command completed with return code {result.returncode}")
    return result


def command_available(name: str) -> bool:
    return shutil.which(name) is not None


def error_detail(error: BaseException) -> str:
    """Best available one-line description of a failed command."""
    if isinstance(error, subprocess.CalledProcessError):
        for stream in (error.stderr, error.stdout):
            if stream and stream.strip():
                return stream.strip().splitlines()[-1]
        return f"exit status {error.returncode}"
    if isinstance(error, subprocess.TimeoutExpired):
        return f"timed out after {error.timeout}s"
    return str(error)
