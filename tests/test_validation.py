"""Tests for argument and environment validation."""

from pathlib import Path
from unittest.mock import patch

import pytest

from vdisk_manager.storage.exceptions import (
    InvalidSizeError,
    MissingCommandError,
    PrivilegeError,
    UsageError,
)
from vdisk_manager.storage.validation import (
    parse_disk_size,
    REQUIRED_COMMANDS,
    validate_base_path,
    validate_command_timeout,
    validate_disk_count,
    validate_required_commands,
    validate_running_as_root,
)


MIB = 1024**2
GIB = 1024**3


class TestParseDiskSize:
    """Tests for parse_disk_size()."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("10G", 10 * GIB),
            ("500M", 500 * MIB),
            ("1T", 1024 * GIB),
            ("2048K", 2 * MIB),
            ("10g", 10 * GIB),
            ("10GB", 10 * GIB),
            ("10GiB", 10 * GIB),
            ("512mib", 512 * MIB),
            (" 1G ", GIB),
            ("1 G", GIB),
        ],
    )
    def test_units(self, text, expected):
        assert parse_disk_size(text) == expected

    def test_bare_number_is_mib(self):
        """A bare number matches dd bs=1M block counts."""
        assert parse_disk_size("100") == 100 * MIB

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty(self, text):
        with pytest.raises(InvalidSizeError, match="empty"):
            parse_disk_size(text)

    @pytest.mark.parametrize("text", ["10X", "G", "1.5G", "-1G", "10 GB extra", "ten"])
    def test_malformed(self, text):
        with pytest.raises(InvalidSizeError):
            parse_disk_size(text)

    def test_zero(self):
        with pytest.raises(InvalidSizeError, match="greater than zero"):
            parse_disk_size("0G")

    def test_not_whole_mib(self):
        with pytest.raises(InvalidSizeError, match="whole number of MiB"):
            parse_disk_size("1500K")

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            parse_disk_size("nope")


class TestValidateDiskCount:
    """Tests for validate_disk_count()."""

    def test_valid(self):
        assert validate_disk_count("3") == 3
        assert validate_disk_count(" 12 ") == 12
        assert validate_disk_count(1) == 1

    @pytest.mark.parametrize("value", ["0", "-2", "abc", "1.5", "", None])
    def test_invalid(self, value):
        with pytest.raises(UsageError, match="positive integer"):
            validate_disk_count(value)


class TestValidateBasePath:
    """Tests for validate_base_path()."""

    def test_absolute_path(self):
        assert validate_base_path("/srv/moosefs") == Path("/srv/moosefs")

    def test_accepts_path_objects(self):
        assert validate_base_path(Path("/mnt/x"), "mount") == Path("/mnt/x")

    def test_relative_path_rejected(self):
        with pytest.raises(UsageError, match="mount path must be absolute"):
            validate_base_path("disks", "mount")

    def test_empty_rejected(self):
        with pytest.raises(UsageError, match="cannot be empty"):
            validate_base_path("", "image")


class TestValidateRunningAsRoot:
    """Tests for validate_running_as_root()."""

    @patch("os.geteuid", return_value=0)
    def test_root(self, mock_geteuid):
        validate_running_as_root()
        mock_geteuid.assert_called_once()

    @patch("os.geteuid", return_value=1000)
    def test_non_root(self, mock_geteuid):
        with pytest.raises(PrivilegeError) as excinfo:
            validate_running_as_root()
        assert excinfo.value.euid == 1000


class TestValidateCommandTimeout:
    """Tests for validate_command_timeout()."""

    def test_none_waits_forever(self):
        assert validate_command_timeout(None) is None

    @pytest.mark.parametrize("value,expected", [(30, 30.0), ("30", 30.0), (2.5, 2.5)])
    def test_numbers(self, value, expected):
        assert validate_command_timeout(value) == expected

    @pytest.mark.parametrize("value", ["30s", "", [30], {"seconds": 30}, True])
    def test_not_a_number(self, value):
        with pytest.raises(UsageError, match="number of seconds"):
            validate_command_timeout(value)

    @pytest.mark.parametrize("value", [0, -1, "0"])
    def test_not_positive(self, value):
        with pytest.raises(UsageError, match="greater than zero"):
            validate_command_timeout(value)


class TestValidateRequiredCommands:
    """Tests for validate_required_commands()."""

    @patch("shutil.which", return_value="/usr/bin/tool")
    def test_all_present(self, mock_which):
        validate_required_commands()

        assert [c.args[0] for c in mock_which.call_args_list] == list(REQUIRED_COMMANDS)

    def test_lists_every_missing_command(self):
        def which(name):
            return None if name in ("dd", "fsck") else f"/sbin/{name}"

        with patch("shutil.which", side_effect=which):
            with pytest.raises(MissingCommandError) as excinfo:
                validate_required_commands()

        assert excinfo.value.commands == ["dd", "fsck"]
        assert "dd, fsck" in str(excinfo.value)
