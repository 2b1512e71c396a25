"""Domain models for disk images, partitions, and mounts."""

from __future__ import annotations

from .models import (
    UNKNOWN,
    DiskImage,
    MountEntry,
    MountProbeResult,
    MountResult,
    PartitionEntry,
)


__all__ = [
    "UNKNOWN",
    "DiskImage",
    "MountEntry",
    "MountProbeResult",
    "MountResult",
    "PartitionEntry",
]
