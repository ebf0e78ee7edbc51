"""
Pytest configuration and shared fixtures for vdisk-manager tests.

No test runs a real dd, mkfs, fsck or mount: subprocess.run is always mocked
and every file the code touches lives under pytest's tmp_path.
"""

import subprocess
from pathlib import Path
from typing import Callable, List
from unittest.mock import Mock

import pytest

from vdisk_manager.config import settings
from vdisk_manager.domain.models import VirtualDisk
from vdisk_manager.storage import commands


MIB = 1024**2


# ==============================================================================
# Command Fixtures
# ==============================================================================


@pytest.fixture
def mock_subprocess_run(mocker):
    """
    Fixture providing a mock for subprocess.run.

    Returns:
        Mock object for subprocess.run
    """
    return mocker.patch("subprocess.run")


@pytest.fixture
def completed_process() -> Callable[..., Mock]:
    """
    Fixture providing a factory for subprocess.CompletedProcess-like mocks.

    Returns:
        Callable building a Mock with returncode, stdout and stderr.
    """

    def _make(returncode: int = 0, stdout: str = "", stderr: str = "") -> Mock:
        return Mock(returncode=returncode, stdout=stdout, stderr=stderr)

    return _make


@pytest.fixture
def called_process_error() -> Callable[..., subprocess.CalledProcessError]:
    """Fixture providing a factory for CalledProcessError instances."""

    def _make(
        command: List[str], returncode: int = 1, stderr: str = "", stdout: str = ""
    ) -> subprocess.CalledProcessError:
        return subprocess.CalledProcessError(
            returncode, command, output=stdout, stderr=stderr
        )

    return _make


# ==============================================================================
# Filesystem Fixtures
# ==============================================================================


@pytest.fixture
def image_base(tmp_path) -> Path:
    """Fixture providing a temporary image base directory (not yet created)."""
    return tmp_path / "srv" / "images"


@pytest.fixture
def mount_base(tmp_path) -> Path:
    """Fixture providing a temporary mount base directory (not yet created)."""
    return tmp_path / "mnt" / "disks"


@pytest.fixture
def fstab_file(tmp_path) -> Path:
    """
    Fixture providing a temporary mount table with a typical root entry.

    Returns:
        Path to the fstab file.
    """
    path = tmp_path / "etc" / "fstab"
    path.parent.mkdir(parents=True)
    path.write_text(
        "# /etc/fstab: static file system information.\n"
        "UUID=deadbeef-1234 / ext4 errors=remount-ro 0 1\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def sample_disk(image_base, mount_base) -> VirtualDisk:
    """Fixture providing disk 1 of a 10 MiB set under the temporary bases."""
    return VirtualDisk.for_index(1, image_base, mount_base, 10 * MIB)


# ==============================================================================
# Global State
# ==============================================================================


@pytest.fixture(autouse=True)
def reset_global_state():
    """
    Auto-use fixture that resets module-level state between tests.

    Settings are reset to the defaults so a settings file on the machine
    running the tests cannot leak in.
    """
    settings.settings_store.values = dict(settings.DEFAULT_SETTINGS)
    commands.configure_command_helpers()
    yield
    settings.settings_store.values = dict(settings.DEFAULT_SETTINGS)
    commands.configure_command_helpers()
