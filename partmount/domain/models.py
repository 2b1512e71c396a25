"""Domain model for disk images, their partitions, and mount state.

These objects are built once per run from external tool output and are
never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


UNKNOWN = "unknown"


# ==============================================================================
# Partition Table Domain
# ==============================================================================


@dataclass(frozen=True)
class PartitionEntry:
    """One row of a disk image's partition table.

    The index is assigned by parse order, starting at 1. It is never read
    from the tool output.
    """

    index: int
    start_sector: int
    end_sector: int
    sector_count: int
    size_label: str  # display only, e.g. "512M"
    type_description: str  # e.g. "Linux filesystem"
    display_alias: str

    def offset_bytes(self, block_size_bytes: int) -> int:
        """Byte offset of the first sector within the image."""
        return self.start_sector * block_size_bytes


@dataclass(frozen=True)
class DiskImage:
    """A raw disk image and its parsed partition table.

    Header fields that were missing from the tool output keep their
    "unknown" values. An image without partitions is still valid.
    """

    path: Path
    display_name: str
    block_size_bytes: Optional[int] = None  # None means unknown
    label_kind: str = UNKNOWN  # e.g. "dos", "gpt"
    disk_identifier: str = UNKNOWN
    partitions: tuple[PartitionEntry, ...] = ()

    @property
    def block_size_known(self) -> bool:
        return self.block_size_bytes is not None

    @property
    def is_empty(self) -> bool:
        return not self.partitions


def format_partition_alias(display_name: str, type_description: str, index: int) -> str:
    """Format a human-readable partition alias.

    Returns: e.g., "disk.img p2 (Linux)"
    """
    return f"{display_name} p{index} ({type_description})"


# ==============================================================================
# Mount Domain
# ==============================================================================


@dataclass(frozen=True)
class MountEntry:
    """One line of the system mount listing: `source on target ...`."""

    source: str
    target: str


@dataclass(frozen=True)
class MountProbeResult:
    """Where a backing file is currently mounted, relative to a target."""

    image_path: Path
    mountpoint: Path
    destinations: tuple[Path, ...] = ()

    @property
    def already_mounted(self) -> bool:
        return self.mountpoint in self.destinations

    @property
    def other_destinations(self) -> tuple[Path, ...]:
        return tuple(dest for dest in self.destinations if dest != self.mountpoint)


@dataclass(frozen=True)
class MountResult:
    """A completed loop mount."""

    partition: PartitionEntry
    mountpoint: Path
    offset: int
    command: tuple[str, ...]
    notes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def message(self) -> str:
        return f"Mounted {self.partition.display_alias} at {self.mountpoint}"
