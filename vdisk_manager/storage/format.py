"""Filesystem creation and read-only consistency checks for disk images.

Operations:
    - make_filesystem(): Create an ext4 filesystem on an image file
    - check_filesystem(): Run ``fsck -n`` and report whether it is clean

Implementation Details:
    - ``mkfs.ext4 -F`` is used so mke2fs never stops to ask for confirmation
      when the target is a regular file rather than a block device
    - ``fsck -n`` opens the filesystem read-only and answers "no" to every
      question, so a check can never modify an image
    - The check is best-effort: a missing binary or non-zero exit status is
      reported as "not clean" instead of raising
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from vdisk_manager.domain.models import FILESYSTEM_TYPE
from vdisk_manager.logging import LoggerFactory
from vdisk_manager.storage.commands import COMMAND_ERRORS, error_detail, run_command
from vdisk_manager.storage.exceptions import FormatOperationError


log = LoggerFactory.for_storage()

CLEAN_MARKER = re.compile(r"\bclean\b")


def _mkfs_command(image_path: str, fstype: str, label: Optional[str]) -> list[str]:
    fstype = fstype.lower()
    if fstype != FILESYSTEM_TYPE:
        raise FormatOperationError(image_path, fstype, "unsupported filesystem type")
    command = [f"mkfs.{fstype}", "-F"]
    if label:
        command.extend(["-L", label])
    command.append(image_path)
    return command


def make_filesystem(
    image_path: Path | str,
    fstype: str = FILESYSTEM_TYPE,
    label: Optional[str] = None,
) -> None:
    """Create a filesystem on ``image_path``.

    Args:
        image_path: Image file to format
        fstype: Filesystem type (only ext4 is supported)
        label: Optional volume label

    Raises:
        FormatOperationError: If the filesystem type is unsupported or mkfs fails
    """
    image_path = str(image_path)
    command = _mkfs_command(image_path, fstype, label)
    log.debug(f"Formatting {image_path} as {fstype}")
    try:
        run_command(command)
    except COMMAND_ERRORS as error:
        raise FormatOperationError(image_path, fstype, error_detail(error)) from error


def check_filesystem(image_path: Path | str) -> bool:
    """Return True when ``fsck -n`` reports the filesystem as clean.

    "cleanly" (as in "was not cleanly unmounted") does not count.
    """
    image_path = str(image_path)
    try:
        result = run_command(["fsck", "-n", image_path], check=False)
    except COMMAND_ERRORS as error:
        log.debug(f"fsck could not run on {image_path}: {error}")
        return False

    output = f"{result.stdout or ''}\n{result.stderr or ''}"
    return CLEAN_MARKER.search(output) is not None
