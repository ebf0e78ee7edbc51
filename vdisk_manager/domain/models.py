"""Domain model for virtual disk provisioning.

Paths are derived deterministically from a base directory and a 1-based disk
index, so re-running with the same arguments always targets the same files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


FILESYSTEM_TYPE = "ext4"
MOUNT_OPTIONS = "loop,defaults"
DISK_NAME_PREFIX = "virtual_disk"
IMAGE_SUFFIX = ".img"

MIB = 1024**2


# ==============================================================================
# Mount Table
# ==============================================================================


@dataclass(frozen=True)
class FstabEntry:
    """One line of the mount table."""

    device: str
    mount_point: str
    fstype: str = FILESYSTEM_TYPE
    options: str = MOUNT_OPTIONS
    dump: int = 0
    fsck_pass: int = 2

    def to_line(self) -> str:
        """Render as ``<device> <mount_point> <fstype> <options> <dump> <pass>``."""
        return (
            f"{self.device} {self.mount_point} {self.fstype} "
            f"{self.options} {self.dump} {self.fsck_pass}"
        )

    @classmethod
    def parse(cls, line: str) -> Optional[FstabEntry]:
        """Parse a mount table line.

        Returns None for blank lines and comments. Missing trailing fields
        take the fstab(5) defaults.

        Raises:
            ValueError: If the line has fewer than two fields
        """
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return None

        fields = stripped.split()
        if len(fields) < 2:
            raise ValueError(f"Malformed fstab line: {line!r}")

        def _int_field(position: int) -> int:
            if len(fields) <= position:
                return 0
            try:
                return int(fields[position])
            except ValueError:
                return 0

        return cls(
            device=fields[0],
            mount_point=fields[1],
            fstype=fields[2] if len(fields) > 2 else "auto",
            options=fields[3] if len(fields) > 3 else "defaults",
            dump=_int_field(4),
            fsck_pass=_int_field(5),
        )


# ==============================================================================
# Virtual Disk
# ==============================================================================


@dataclass(frozen=True)
class VirtualDisk:
    """A loopback disk image and the directory it is mounted on."""

    index: int
    image_path: Path
    mount_point: Path
    size_bytes: int

    @property
    def name(self) -> str:
        """e.g., virtual_disk3"""
        return f"{DISK_NAME_PREFIX}{self.index}"

    @property
    def size_mib(self) -> int:
        return self.size_bytes // MIB

    @classmethod
    def for_index(
        cls,
        index: int,
        image_base: Path | str,
        mount_base: Path | str,
        size_bytes: int,
    ) -> VirtualDisk:
        """Build the disk for ``index`` under the given base directories.

        Raises:
            ValueError: If index is not a positive integer
        """
        if index < 1:
            raise ValueError(f"Disk index must be >= 1, got {index}")
        name = f"{DISK_NAME_PREFIX}{index}"
        return cls(
            index=index,
            image_path=Path(image_base) / f"{name}{IMAGE_SUFFIX}",
            mount_point=Path(mount_base) / name,
            size_bytes=size_bytes,
        )

    def fstab_entry(self) -> FstabEntry:
        return FstabEntry(device=str(self.image_path), mount_point=str(self.mount_point))


# ==============================================================================
# Results
# ==============================================================================


class StepOutcome(Enum):
    """What a single idempotent step did."""

    PERFORMED = "performed"
    SKIPPED = "skipped"  # already in the desired state
    WARNED = "warned"  # non-fatal problem


@dataclass
class ProvisionResult:
    """Per-disk record of what the provisioning sequence did."""

    disk: VirtualDisk
    image: StepOutcome = StepOutcome.SKIPPED
    mount_point: StepOutcome = StepOutcome.SKIPPED
    fsck: StepOutcome = StepOutcome.PERFORMED
    mount: StepOutcome = StepOutcome.SKIPPED
    fstab: StepOutcome = StepOutcome.SKIPPED

    @property
    def changed(self) -> bool:
        return StepOutcome.PERFORMED in (
            self.image,
            self.mount_point,
            self.mount,
            self.fstab,
        )


@dataclass
class ProvisionReport:
    """Outcome of a whole run."""

    results: list[ProvisionResult] = field(default_factory=list)
    mount_all_applied: bool = False

    @property
    def created_images(self) -> list[VirtualDisk]:
        return [r.disk for r in self.results if r.image is StepOutcome.PERFORMED]

    @property
    def dirty_filesystems(self) -> list[VirtualDisk]:
        return [r.disk for r in self.results if r.fsck is StepOutcome.WARNED]

    @property
    def changed(self) -> bool:
        return any(result.changed for result in self.results)
