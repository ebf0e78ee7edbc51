"""Provision loopback-mounted virtual disks.

Each disk index runs the same idempotent sequence, fully completing before
the next index starts:

    1. allocate and format the image       (skipped if the image exists)
    2. create the mount point              (skipped if the directory exists)
    3. read-only filesystem check          (warning only, never fatal)
    4. loop-mount the image                (skipped if already mounted)
    5. append the mount table entry        (skipped if the image is listed)

After the last disk the mount table is re-applied with ``mount -a``. Any
StorageError stops the run immediately; nothing is retried or rolled back.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from loguru import Logger

from vdisk_manager.domain.models import (
    FILESYSTEM_TYPE,
    ProvisionReport,
    ProvisionResult,
    StepOutcome,
    VirtualDisk,
)
from vdisk_manager.logging import LoggerFactory, operation_context
from vdisk_manager.storage import fstab, image, mount
from vdisk_manager.storage import format as filesystem


def _provision_image(disk: VirtualDisk, log: Logger) -> StepOutcome:
    if image.image_exists(disk.image_path):
        log.warning(f"Image {disk.image_path} already exists, skipping creation")
        return StepOutcome.SKIPPED

    log.info(f"Creating disk image {disk.image_path} ({disk.size_mib} MiB)")
    image.create_image(disk.image_path, disk.size_bytes)

    log.info(f"Creating {FILESYSTEM_TYPE} filesystem on {disk.image_path}")
    filesystem.make_filesystem(disk.image_path, FILESYSTEM_TYPE)
    return StepOutcome.PERFORMED


def _provision_mount_point(disk: VirtualDisk, log: Logger) -> StepOutcome:
    if mount.ensure_mount_point(disk.mount_point):
        log.info(f"Created mount point {disk.mount_point}")
        return StepOutcome.PERFORMED
    log.info(f"Mount point already exists: {disk.mount_point}")
    return StepOutcome.SKIPPED


def _check_filesystem(disk: VirtualDisk, log: Logger) -> StepOutcome:
    log.info(f"Checking filesystem on {disk.image_path}")
    if filesystem.check_filesystem(disk.image_path):
        log.info(f"Filesystem on {disk.image_path} is clean")
        return StepOutcome.PERFORMED
    log.warning(
        f"Filesystem on {disk.image_path} may be damaged, attempting to mount anyway"
    )
    return StepOutcome.WARNED


def _provision_mount(disk: VirtualDisk, log: Logger) -> StepOutcome:
    if mount.is_mounted(disk.mount_point):
        log.info(f"{disk.mount_point} is already mounted")
        return StepOutcome.SKIPPED
    log.info(f"Mounting {disk.image_path} on {disk.mount_point}")
    mount.mount_image(disk.image_path, disk.mount_point)
    return StepOutcome.PERFORMED


def _provision_fstab_entry(
    disk: VirtualDisk, fstab_path: Path, log: Logger
) -> StepOutcome:
    if fstab.has_entry_for(fstab_path, disk.image_path):
        log.warning(f"{fstab_path} already has an entry for {disk.image_path}")
        return StepOutcome.SKIPPED
    entry = disk.fstab_entry()
    log.info(f"Adding {fstab_path} entry: {entry.to_line()}")
    fstab.append_entry(fstab_path, entry)
    return StepOutcome.PERFORMED


def provision_disk(
    disk: VirtualDisk,
    fstab_path: Path | str,
    log: Optional[Logger] = None,
) -> ProvisionResult:
    """Bring one disk to the provisioned state.

    Raises:
        StorageError: If image creation, formatting, mount point creation,
            mounting or the fstab update fails
    """
    log = (log or LoggerFactory.for_provision()).bind(disk=disk.name)
    fstab_path = Path(fstab_path)

    result = ProvisionResult(disk=disk)
    result.image = _provision_image(disk, log)
    result.mount_point = _provision_mount_point(disk, log)
    result.fsck = _check_filesystem(disk, log)
    result.mount = _provision_mount(disk, log)
    result.fstab = _provision_fstab_entry(disk, fstab_path, log)
    return result


def plan_disks(
    count: int,
    size_bytes: int,
    image_base: Path | str,
    mount_base: Path | str,
) -> list[VirtualDisk]:
    return [
        VirtualDisk.for_index(index, image_base, mount_base, size_bytes)
        for index in range(1, count + 1)
    ]


def provision_disks(
    count: int,
    size_bytes: int,
    image_base: Path | str,
    mount_base: Path | str,
    fstab_path: Path | str,
) -> ProvisionReport:
    """Provision disks 1..count, then re-apply the mount table.

    Raises:
        StorageError: On the first fatal failure; later disks are not touched
    """
    report = ProvisionReport()
    with operation_context(
        "provision",
        count=count,
        size_bytes=size_bytes,
        image_base=str(image_base),
        mount_base=str(mount_base),
    ) as log:
        log.info("Checking base directories")
        mount.ensure_base_directories(image_base, mount_base)
        log.info(f"Base directories ready: {image_base} and {mount_base}")

        for disk in plan_disks(count, size_bytes, image_base, mount_base):
            log.info(f"Processing {disk.name} ({disk.index}/{count})")
            report.results.append(provision_disk(disk, fstab_path, log))

        log.info(f"Applying mount table {fstab_path}")
        mount.mount_all()
        report.mount_all_applied = True
        log.info("Mount table applied")

    return report
