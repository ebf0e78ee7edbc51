"""Domain models for virtual disk provisioning."""

from __future__ import annotations

from .models import (
    FILESYSTEM_TYPE,
    FstabEntry,
    ProvisionReport,
    ProvisionResult,
    StepOutcome,
    VirtualDisk,
)


__all__ = [
    "FILESYSTEM_TYPE",
    "FstabEntry",
    "ProvisionReport",
    "ProvisionResult",
    "StepOutcome",
    "VirtualDisk",
]
