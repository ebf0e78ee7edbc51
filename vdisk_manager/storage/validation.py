"""Argument and environment validation for provisioning runs.

All validation functions raise specific exceptions from the exceptions module
rather than returning boolean values, so the caller can stop before touching
the filesystem.

Disk sizes:
    A size is an integer with an optional binary unit suffix. ``K``, ``M``,
    ``G`` and ``T`` may be followed by ``B`` or ``iB`` and are
    case-insensitive. A bare number is taken as MiB. Images are allocated in
    1 MiB blocks, so the result must be a positive whole number of MiB.

Example:
    >>> parse_disk_size("10G")
    10737418240
    >>> parse_disk_size("500M")
    524288000
"""

import os
import re
from pathlib import Path

from .commands import command_available
from .exceptions import (
    InvalidSizeError,
    MissingCommandError,
    PrivilegeError,
    UsageError,
)


MIB = 1024**2

_UNIT_MULTIPLIERS = {
    "K": 1024,
    "M": MIB,
    "G": 1024**3,
    "T": 1024**4,
}

_SIZE_PATTERN = re.compile(r"^(?P<number>\d+)\s*(?:(?P<unit>[KMGT])(?:I?B)?)?$")

REQUIRED_COMMANDS = ("dd", "mkfs.ext4", "fsck", "mount")


def parse_disk_size(value) -> int:
    """Convert a size like ``10G`` or ``500M`` to bytes.

    Raises:
        InvalidSizeError: If the value is empty, malformed, zero, or not a
            whole number of MiB
    """
    text = str(value or "").strip()
    if not text:
        raise InvalidSizeError(text, "size is empty")

    match = _SIZE_PATTERN.match(text.upper())
    if not match:
        raise InvalidSizeError(text, "expected a number with an optional K, M, G or T suffix")

    unit = match.group("unit") or "M"
    size_bytes = int(match.group("number")) * _UNIT_MULTIPLIERS[unit]

    if size_bytes <= 0:
        raise InvalidSizeError(text, "size must be greater than zero")
    if size_bytes % MIB:
        raise InvalidSizeError(text, "size must be a whole number of MiB")

    return size_bytes


def validate_disk_count(value) -> int:
    """Validate the number of disks to provision.

    Raises:
        UsageError: If value is not a positive integer
    """
    text = str(value if value is not None else "").strip()
    if not text.isdigit() or int(text) < 1:
        raise UsageError(f"Number of disks must be a positive integer, got {value!r}")
    return int(text)


def validate_base_path(value, option: str = "path") -> Path:
    """Validate an image base, mount base or fstab path.

    Raises:
        UsageError: If the path is empty or relative
    """
    text = str(value or "").strip()
    if not text:
        raise UsageError(f"The {option} path cannot be empty")
    path = Path(text)
    if not path.is_absolute():
        raise UsageError(f"The {option} path must be absolute, got {text!r}")
    return path


def validate_running_as_root() -> None:
    """Validate that the effective user is root.

    Raises:
        PrivilegeError: If not running as root
    """
    euid = os.geteuid()
    if euid != 0:
        raise PrivilegeError(euid)


def validate_command_timeout(value):
    """Validate the ``command_timeout_seconds`` setting.

    Returns:
        The timeout in seconds, or None to wait forever

    Raises:
        UsageError: If value is not a positive number
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise UsageError(f"Command timeout must be a number of seconds, got {value!r}")
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise UsageError(
            f"Command timeout must be a number of seconds, got {value!r}"
        ) from None
    if not timeout > 0:
        raise UsageError(f"Command timeout must be greater than zero, got {value!r}")
    return timeout


def validate_required_commands(commands=REQUIRED_COMMANDS) -> None:
    """Validate that every external tool a run needs is on PATH.

    Raises:
        MissingCommandError: Listing every missing command
    """
    missing = [name for name in commands if not command_available(name)]
    if missing:
        raise MissingCommandError(missing)
