"""Mount point creation and loop mounting of disk images.

Functions:
    - ensure_directory(): Create a directory (and parents) if missing
    - ensure_base_directories(): Create the image and mount base directories
    - is_mounted(): Whether a directory is an active mount point
    - mount_image(): Loop-mount an image file on a directory
    - mount_all(): Re-apply the mount table with ``mount -a``

All commands are run with argument lists, never through a shell.
"""

import os
from pathlib import Path
from typing import Union

from vdisk_manager.logging import LoggerFactory
from vdisk_manager.storage.commands import COMMAND_ERRORS, error_detail, run_command
from vdisk_manager.storage.exceptions import (
    DirectoryCreationError,
    MountAllError,
    MountOperationError,
)


log = LoggerFactory.for_storage()

PathLike = Union[str, Path]


def ensure_directory(path: PathLike) -> bool:
    """Create ``path`` if it does not exist.

    Returns:
        True if the directory was created, False if it already existed

    Raises:
        DirectoryCreationError: If the path exists as a non-directory or
            cannot be created
    """
    path = Path(path)
    if path.is_dir():
        return False
    if path.exists():
        raise DirectoryCreationError(str(path), "path exists and is not a directory")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise DirectoryCreationError(str(path), error.strerror or str(error)) from error
    log.debug(f"Created directory {path}")
    return True


def ensure_mount_point(mount_point: PathLike) -> bool:
    """Create a disk's mount point directory. See ensure_directory()."""
    return ensure_directory(mount_point)


def ensure_base_directories(*paths: PathLike) -> None:
    """Create every base directory in ``paths``.

    Raises:
        DirectoryCreationError: On the first directory that cannot be created
    """
    for path in paths:
        ensure_directory(path)


def is_mounted(mount_point: PathLike) -> bool:
    return os.path.ismount(str(mount_point))


def mount_image(image_path: PathLike, mount_point: PathLike) -> None:
    """Loop-mount ``image_path`` on ``mount_point``.

    Raises:
        MountOperationError: If mount fails
    """
    image_path = str(image_path)
    mount_point = str(mount_point)
    try:
        run_command(["mount", "-o", "loop", image_path, mount_point])
    except COMMAND_ERRORS as error:
        raise MountOperationError(image_path, mount_point, error_detail(error)) from error


def mount_all() -> None:
    """Mount every filesystem listed in the mount table.

    Raises:
        MountAllError: If ``mount -a`` fails
    """
    try:
        run_command(["mount", "-a"])
    except COMMAND_ERRORS as error:
        raise MountAllError(error_detail(error)) from error
