import argparse
from pathlib import Path

from vdisk_manager.__version__ import __version__
from vdisk_manager.config import settings
from vdisk_manager.logging import LoggerFactory, add_file_sinks, setup_logging
from vdisk_manager.services.provisioning import provision_disks
from vdisk_manager.storage.commands import configure_command_helpers
from vdisk_manager.storage.exceptions import ProvisionError, UsageError
from vdisk_manager.storage.validation import (
    parse_disk_size,
    validate_base_path,
    validate_command_timeout,
    validate_disk_count,
    validate_required_commands,
    validate_running_as_root,
)


EXIT_SUCCESS = 0
EXIT_FAILURE = 1

log = LoggerFactory.for_system()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vdisk-manager",
        description="Create, format and mount loopback virtual disk images.",
    )
    parser.add_argument(
        "-n", "--number", help="Number of virtual disks to create"
    )
    parser.add_argument(
        "-s", "--size", help="Size of each virtual disk (e.g. 10G, 500M)"
    )
    parser.add_argument(
        "-p",
        "--path",
        help=(
            "Base directory for disk images "
            f"(default: {settings.DEFAULT_IMAGE_BASE_PATH})"
        ),
    )
    parser.add_argument(
        "-m",
        "--mount",
        help=(
            "Base directory for mount points "
            f"(default: {settings.DEFAULT_MOUNT_BASE_PATH})"
        ),
    )
    parser.add_argument(
        "--fstab",
        help=f"Mount table to update (default: {settings.DEFAULT_FSTAB_PATH})",
    )
    parser.add_argument(
        "-d", "--debug", action="store_true", help="Enable verbose debug output"
    )
    parser.add_argument(
        "--trace", action="store_true", help="Also log raw command output"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only log warnings and errors"
    )
    parser.add_argument("--log-dir", type=Path, help="Directory for log files")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def _resolve_log_dir(args):
    if args.log_dir is not None:
        return args.log_dir
    configured = settings.get_setting("log_dir")
    return Path(configured) if configured else None


def main(argv=None) -> int:
    parser = build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except SystemExit as exit_request:
        # argparse exits 2 on a usage error; -h and --version exit 0
        if not exit_request.code:
            raise
        return EXIT_FAILURE

    setup_logging(
        debug=args.debug, trace=args.trace, quiet=args.quiet, file_logging=False
    )

    if unknown:
        log.warning(f"Ignoring unrecognized arguments: {' '.join(unknown)}")

    if not args.number or not args.size:
        log.error("The --number and --size options are required")
        parser.print_help()
        return EXIT_FAILURE

    try:
        count = validate_disk_count(args.number)
        size_bytes = parse_disk_size(args.size)
        image_base = validate_base_path(
            args.path or settings.get_path("image_base_path"), "image"
        )
        mount_base = validate_base_path(
            args.mount or settings.get_path("mount_base_path"), "mount"
        )
        fstab_path = validate_base_path(
            args.fstab or settings.get_path("fstab_path"), "fstab"
        )
        timeout = validate_command_timeout(
            settings.get_setting("command_timeout_seconds")
        )
    except UsageError as error:
        log.error(str(error))
        parser.print_help()
        return EXIT_FAILURE

    try:
        validate_running_as_root()
        validate_required_commands()
        configure_command_helpers(timeout=timeout)
        add_file_sinks(_resolve_log_dir(args), debug=args.debug, trace=args.trace)
        report = provision_disks(count, size_bytes, image_base, mount_base, fstab_path)
    except ProvisionError as error:
        log.error(str(error))
        return EXIT_FAILURE

    if report.dirty_filesystems:
        names = ", ".join(disk.name for disk in report.dirty_filesystems)
        log.warning(f"Filesystem check did not report clean for: {names}")
    if not report.changed:
        log.info("All disks were already provisioned")
    log.success(f"Provisioned {len(report.results)} virtual disk(s)")
    return EXIT_SUCCESS
