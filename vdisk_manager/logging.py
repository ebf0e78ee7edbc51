from __future__ import annotations

import os
import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

DEFAULT_LOG_DIR = Path(
    os.environ.get(
        "VDISK_MANAGER_LOG_DIR",
        Path.home() / ".local" / "state" / "vdisk-manager" / "logs",
    )
)


def _should_log_command_output(record) -> bool:
    """Keep raw command stdout/stderr dumps out of the console unless tracing."""
    tags = record["extra"].get("tags", [])

    if record["level"].no >= logger.level("WARNING").no:
        return True

    if "command-output" in tags:
        return record["level"].no <= logger.level("TRACE").no

    return True


def setup_logging(
    *,
    debug: bool = False,
    trace: bool = False,
    log_dir: Path | None = None,
    quiet: bool = False,
    file_logging: bool = True,
) -> Logger:
    """
    Setup console and file logging for a provisioning run.

    Log Files:
    - operations.log: INFO+ events (7 day retention)
    - debug.log: DEBUG+ events when --debug is enabled (3 day retention)

    Args:
        debug: Enable DEBUG level logging
        trace: Enable TRACE level logging, including raw command output
        log_dir: Custom log directory (defaults to ~/.local/state/vdisk-manager/logs)
        quiet: Only log warnings and errors to the console
        file_logging: Add the file sinks now; pass False to defer until
            add_file_sinks() is called
    """
    logger.remove()
    logger.configure(extra={"job_id": "-", "tags": [], "source": "APP"})

    if trace:
        console_level = "TRACE"
    elif debug:
        console_level = "DEBUG"
    elif quiet:
        console_level = "WARNING"
    else:
        console_level = "INFO"

    # SINK 1: Console (stderr)
    logger.add(
        sys.stderr,
        level=console_level,
        backtrace=False,
        diagnose=False,
        filter=_should_log_command_output,
        colorize=True,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[source]: <10}</cyan> | "
            "{message}"
        ),
    )

    if file_logging:
        add_file_sinks(log_dir, debug=debug, trace=trace)

    return logger


def add_file_sinks(
    log_dir: Path | None = None,
    *,
    debug: bool = False,
    trace: bool = False,
) -> bool:
    """
    Add the rotating file sinks under ``log_dir``.

    Returns:
        False if the directory could not be created and only the console
        sink is active
    """
    log_dir = log_dir or DEFAULT_LOG_DIR
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        logger.warning(f"File logging disabled, cannot create {log_dir}: {error}")
        return False

    # SINK 2: Operations Log
    logger.add(
        log_dir / "operations.log",
        level="INFO",
        rotation="5 MB",
        retention="7 days",
        compression="zip",
        backtrace=False,
        diagnose=False,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{extra[source]: <10} | "
            "{extra[job_id]: <18} | "
            "{message}"
        ),
    )

    # SINK 3: Debug Log
    if debug or trace:
        logger.add(
            log_dir / "debug.log",
            level="TRACE" if trace else "DEBUG",
            rotation="10 MB",
            retention="3 days",
            compression="zip",
            backtrace=True,
            diagnose=True,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[source]: <10} | "
                "{extra[job_id]: <18} | "
                "{extra[tags]} | "
                "{message}"
            ),
        )

    return True


def get_logger(
    *,
    job_id: str | None = None,
    tags: Iterable[str] | None = None,
    source: str | None = None,
) -> Logger:
    """
    Get a logger with bound context.

    Args:
        job_id: Job identifier for tracking operations
        tags: Tags for filtering (e.g., ["fstab", "storage"])
        source: Source component (e.g., "provision", "storage")

    Returns:
        Logger with bound context
    """
    extras: dict[str, object] = {}
    if job_id is not None:
        extras["job_id"] = job_id
    if tags is not None:
        extras["tags"] = list(tags)
    if source is not None:
        extras["source"] = source
    return logger.bind(**extras)


@contextmanager
def operation_context(operation: str, **details):
    """
    Context manager for tracking an operation with automatic timing.

    Logs operation start, completion and failure with the elapsed time.
    Exceptions are re-raised unchanged.

    Example:
        with operation_context("provision", count=4, size="10G") as log:
            log.info("Processing disk 1")
    """
    job_id = f"{operation}-{uuid.uuid4().hex[:8]}"

    with logger.contextualize(job_id=job_id, operation=operation, **details):
        start_time = time.time()
        log = logger.bind(source=operation, job_id=job_id, tags=[operation])

        log.info(f"{operation.capitalize()} started")

        try:
            yield log
            duration = time.time() - start_time
            log.success(
                f"{operation.capitalize()} completed in {duration:.2f}s",
                duration_seconds=round(duration, 2),
            )
        except Exception as e:
            duration = time.time() - start_time
            log.error(
                f"{operation.capitalize()} failed after {duration:.2f}s: {e}",
                error_type=type(e).__name__,
                duration_seconds=round(duration, 2),
            )
            raise


class LoggerFactory:
    """Domain-specific loggers with pre-bound source and tags."""

    @staticmethod
    def for_provision(job_id: str | None = None) -> Logger:
        """Logger for the per-disk provisioning sequence."""
        if job_id is None:
            job_id = f"provision-{uuid.uuid4().hex[:8]}"
        return logger.bind(
            job_id=job_id, source="provision", tags=["provision", "storage"]
        )

    @staticmethod
    def for_storage() -> Logger:
        """Logger for image, filesystem, mount and fstab helpers."""
        return logger.bind(source="storage", tags=["storage"])

    @staticmethod
    def for_commands() -> Logger:
        """Logger for external command execution."""
        return logger.bind(source="command", tags=["command"])

    @staticmethod
    def for_system() -> Logger:
        """Logger for startup, configuration and shutdown."""
        return logger.bind(source="system", tags=["system"])
