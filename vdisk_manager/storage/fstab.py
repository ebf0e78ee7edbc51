"""Mount table (fstab) reading and append-only updates."""

from __future__ import annotations

from pathlib import Path

from vdisk_manager.domain.models import FstabEntry
from vdisk_manager.logging import LoggerFactory
from vdisk_manager.storage.exceptions import FstabReadError, FstabUpdateError


log = LoggerFactory.for_storage()


def read_entries(fstab_path: Path | str) -> list[FstabEntry]:
    """Parse the mount table, skipping comments and malformed lines.

    A missing file is treated as an empty table.

    Raises:
        FstabReadError: If the file exists but cannot be read
    """
    fstab_path = Path(fstab_path)
    try:
        lines = fstab_path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return []
    except (OSError, UnicodeDecodeError) as error:
        raise FstabReadError(str(fstab_path), str(error)) from error

    entries = []
    for number, line in enumerate(lines, start=1):
        try:
            entry = FstabEntry.parse(line)
        except ValueError:
            log.debug(f"Ignoring malformed line {number} in {fstab_path}: {line!r}")
            continue
        if entry is not None:
            entries.append(entry)
    return entries


def has_entry_for(fstab_path: Path | str, device: Path | str) -> bool:
    """Whether any entry in the mount table uses ``device`` as its source."""
    device = str(device)
    return any(entry.device == device for entry in read_entries(fstab_path))


def append_entry(fstab_path: Path | str, entry: FstabEntry) -> None:
    """Append ``entry`` as a new line at the end of the mount table.

    Raises:
        FstabUpdateError: If the file cannot be read or written
    """
    fstab_path = Path(fstab_path)
    line = entry.to_line()
    try:
        needs_newline = False
        if fstab_path.exists() and fstab_path.stat().st_size > 0:
            with open(fstab_path, "rb") as handle:
                handle.seek(-1, 2)
                needs_newline = handle.read(1) != b"\n"
        with open(fstab_path, "a", encoding="utf-8") as handle:
            if needs_newline:
                handle.write("\n")
            handle.write(f"{line}\n")
    except OSError as error:
        raise FstabUpdateError(str(fstab_path), error.strerror or str(error)) from error
