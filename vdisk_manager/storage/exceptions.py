"""Custom exceptions for virtual disk provisioning.

Every failure that must abort a provisioning run derives from ProvisionError,
so the command line entry point can map the whole family to exit status 1.
Soft problems (an image or fstab line that already exists, a filesystem check
that does not report clean) are logged as warnings and never raised.

Exception Hierarchy:
    ProvisionError (base)
        ├── UsageError
        ├── InvalidSizeError (also ValueError)
        ├── PrivilegeError
        ├── MissingCommandError
        └── StorageError
            ├── DirectoryCreationError
            ├── ImageError
            │   └── ImageCreationError
            ├── FormatError
            │   └── FormatOperationError
            ├── MountError
            │   ├── MountOperationError
            │   └── MountAllError
            └── FstabError
                ├── FstabReadError
                └── FstabUpdateError

Usage:
    from vdisk_manager.storage.exceptions import ImageCreationError

    if result.returncode != 0:
        raise ImageCreationError(image_path, result.stderr)
"""


class ProvisionError(Exception):
    """Base exception for all fatal provisioning failures."""



class UsageError(ProvisionError):
    """Command line arguments are missing or invalid."""



class InvalidSizeError(UsageError, ValueError):
    """A disk size string could not be parsed."""

    def __init__(self, value: str, reason: str = ""):
        self.value = value
        self.reason = reason
        msg = f"Invalid disk size: {value!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class PrivilegeError(ProvisionError):
    """The process is not running with root privileges."""

    def __init__(self, euid: int):
        self.euid = euid
        super().__init__(
            f"This command must be run as root or with sudo (effective uid {euid})"
        )


class MissingCommandError(ProvisionError):
    """Required system tools are not installed."""

    def __init__(self, commands):
        self.commands = list(commands)
        super().__init__(f"Required commands not found: {', '.join(self.commands)}")


class StorageError(ProvisionError):
    """Base exception for filesystem side effects."""



def _with_detail(message: str, detail: str) -> str:
    detail = (detail or "").strip()
    if detail:
        return f"{message}: {detail}"
    return message


class DirectoryCreationError(StorageError):
    """A base directory or mount point could not be created."""

    def __init__(self, path: str, detail: str = ""):
        self.path = path
        self.detail = detail
        super().__init__(_with_detail(f"Failed to create directory {path}", detail))


class ImageError(StorageError):
    """Base exception for image file errors."""



class ImageCreationError(ImageError):
    """Allocating the image file failed."""

    def __init__(self, image_path: str, detail: str = ""):
        self.image_path = image_path
        self.detail = detail
        super().__init__(_with_detail(f"Failed to create image {image_path}", detail))


class FormatError(StorageError):
    """Base exception for filesystem creation errors."""



class FormatOperationError(FormatError):
    """mkfs failed on an image."""

    def __init__(self, image_path: str, fstype: str = "ext4", detail: str = ""):
        self.image_path = image_path
        self.fstype = fstype
        self.detail = detail
        super().__init__(
            _with_detail(
                f"Failed to create {fstype} filesystem on {image_path}", detail
            )
        )


class MountError(StorageError):
    """Base exception for mount-related errors."""



class MountOperationError(MountError):
    """Loop-mounting an image failed."""

    def __init__(self, image_path: str, mount_point: str, detail: str = ""):
        self.image_path = image_path
        self.mount_point = mount_point
        self.detail = detail
        super().__init__(
            _with_detail(f"Failed to mount {image_path} on {mount_point}", detail)
        )


class MountAllError(MountError):
    """Re-applying the mount table with mount -a failed."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(_with_detail("Failed to apply the mount table", detail))


class FstabError(StorageError):
    """Base exception for mount table errors."""



class FstabUpdateError(FstabError):
    """Appending an entry to the mount table failed."""

    def __init__(self, fstab_path: str, detail: str = ""):
        self.fstab_path = fstab_path
        self.detail = detail
        super().__init__(_with_detail(f"Failed to update {fstab_path}", detail))


class FstabReadError(FstabError):
    """The mount table exists but cannot be read."""

    def __init__(self, fstab_path: str, detail: str = ""):
        self.fstab_path = fstab_path
        self.detail = detail
        super().__init__(_with_detail(f"Failed to read {fstab_path}", detail))
