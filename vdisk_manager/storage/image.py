"""Sparse disk image allocation."""

from __future__ import annotations

from pathlib import Path

from vdisk_manager.logging import LoggerFactory
from vdisk_manager.storage.commands import COMMAND_ERRORS, error_detail, run_command
from vdisk_manager.storage.exceptions import ImageCreationError


log = LoggerFactory.for_storage()

BLOCK_SIZE = 1024**2


def image_exists(image_path: Path | str) -> bool:
    return Path(image_path).is_file()


def create_image(image_path: Path | str, size_bytes: int) -> None:
    """Allocate a sparse image of ``size_bytes`` with dd.

    No data is written (``count=0``); seeking past the end sets the file
    length, so allocation is instant regardless of size.

    Raises:
        ImageCreationError: If size is not a positive multiple of 1 MiB or dd fails
    """
    image_path = str(image_path)
    if size_bytes <= 0 or size_bytes % BLOCK_SIZE:
        raise ImageCreationError(
            image_path, f"size {size_bytes} is not a positive multiple of 1 MiB"
        )

    blocks = size_bytes // BLOCK_SIZE
    command = [
        "dd",
        "if=/dev/zero",
        f"of={image_path}",
        "bs=1M",
        "count=0",
        f"seek={blocks}",
    ]
    log.debug(f"Allocating {blocks} MiB for {image_path}")
    try:
        run_command(command)
    except COMMAND_ERRORS as error:
        raise ImageCreationError(image_path, error_detail(error)) from error
