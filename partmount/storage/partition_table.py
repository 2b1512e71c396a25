"""Partition table extraction and parsing for raw disk images.

This module handles reading the partition table of an image file:
- Running fdisk with a fixed column projection against the image
- Parsing fdisk's header block (sector size, disklabel type, identifier)
- Parsing the partition rows that follow the column header
- Looking up a partition by its 1-based selector

fdisk output is human-oriented text. Everything that depends on its layout
lives in parse_partition_table(), so a machine-readable source can replace
it without touching the mount code.

Example fdisk output:
    Disk disk.img: 7.4 GiB, 7948206080 bytes, 15523840 sectors
    Units: sectors of 1 * 512 = 512 bytes
    Sector size (logical/physical): 512 bytes / 512 bytes
    I/O size (minimum/optimal): 512 bytes / 512 bytes
    Disklabel type: dos
    Disk identifier: 0x3a6b1cf2

      Start      End  Sectors  Size Type
       8192   532479   524288  256M W95 FAT32 (LBA)
     532480 15523839 14991360  7.1G Linux
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from partmount.config.settings import ToolEnvironment
from partmount.domain.models import (
    UNKNOWN,
    DiskImage,
    PartitionEntry,
    format_partition_alias,
)
from partmount.logging import LoggerFactory

from .commands import run_command
from .exceptions import CommandTimeoutError, TableUnreadableError

COLUMNS = ("Start", "End", "Sectors", "Size", "Type")

SECTOR_SIZE_PATTERN = re.compile(r"^Sector size \(logical/physical\):\s*(\d+)\s*bytes")
DISKLABEL_PATTERN = re.compile(r"^Disklabel type:\s*(\S+)")
DISK_IDENTIFIER_PATTERN = re.compile(r"^Disk identifier:\s*(\S+)")
COLUMN_HEADER_PATTERN = re.compile(
    r"^" + r"\s+".join(re.escape(column) for column in COLUMNS) + r"\s*$"
)
NUMBER_PATTERN = re.compile(r"[0-9]+")

log = LoggerFactory.for_table()


def build_fdisk_command(image_path: Path) -> list[str]:
    return [
        "fdisk",
        "--list",
        "--color=never",
        "--output",
        ",".join(COLUMNS),
        str(image_path),
    ]


def list_partition_table(
    image_path: Path, environment: Optional[ToolEnvironment] = None
) -> str:
    """Run fdisk against an image file and return its raw output.

    Raises:
        TableUnreadableError: If fdisk cannot be executed or times out
    """
    command = build_fdisk_command(image_path)
    try:
        result = run_command(command, environment)
    except (OSError, CommandTimeoutError) as error:
        raise TableUnreadableError(image_path, str(error)) from error
    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        if not (result.stdout or "").strip():
            raise TableUnreadableError(image_path, stderr or "fdisk produced no output")
        log.warning(
            f"fdisk exited with code {result.returncode} for {image_path}: {stderr}"
        )
    return result.stdout or ""


def _parse_partition_row(line: str) -> Optional[tuple[int, int, int, str, str]]:
    fields = line.split(maxsplit=len(COLUMNS) - 1)
    if len(fields) != len(COLUMNS):
        return None
    start, end, sectors, size_label, type_description = fields
    if not all(NUMBER_PATTERN.fullmatch(value) for value in (start, end, sectors)):
        return None
    start_sector, end_sector = int(start), int(end)
    if start_sector > end_sector:
        return None
    return start_sector, end_sector, int(sectors), size_label, type_description.strip()


def parse_partition_table(text: str, image_path: Path) -> DiskImage:
    """Parse fdisk output into a DiskImage.

    Header fields may appear in any order before the column header row.
    After it, every line with exactly the expected columns becomes a
    partition; anything else is skipped without consuming an index.

    Raises:
        TableUnreadableError: If the output is empty
    """
    image_path = Path(image_path)
    if not text or not text.strip():
        raise TableUnreadableError(image_path, "fdisk produced no output")

    display_name = image_path.name
    block_size: Optional[int] = None
    label_kind = UNKNOWN
    disk_identifier = UNKNOWN
    partitions: list[PartitionEntry] = []
    in_table = False

    for raw_line in text.splitlines():
        if not in_table:
            line = raw_line.lstrip()
            match = SECTOR_SIZE_PATTERN.match(line)
            if match:
                size = int(match.group(1))
                block_size = size if size >= 1 else None
                continue
            match = DISKLABEL_PATTERN.match(line)
            if match:
                label_kind = match.group(1)
                continue
            match = DISK_IDENTIFIER_PATTERN.match(line)
            if match:
                disk_identifier = match.group(1)
                continue
            if COLUMN_HEADER_PATTERN.match(line):
                in_table = True
            continue

        row = _parse_partition_row(raw_line)
        if row is None:
            if raw_line.strip():
                log.trace(f"Skipping non-partition line: {raw_line.strip()}")
            continue
        start_sector, end_sector, sector_count, size_label, type_description = row
        index = len(partitions) + 1
        partitions.append(
            PartitionEntry(
                index=index,
                start_sector=start_sector,
                end_sector=end_sector,
                sector_count=sector_count,
                size_label=size_label,
                type_description=type_description,
                display_alias=format_partition_alias(
                    display_name, type_description, index
                ),
            )
        )

    if block_size is None:
        log.warning(f"Sector size not reported for {display_name}")
    log.info(
        f"Read {display_name}: label={label_kind} id={disk_identifier} "
        f"sector_size={block_size if block_size is not None else UNKNOWN} "
        f"partitions={len(partitions)}"
    )
    return DiskImage(
        path=image_path,
        display_name=display_name,
        block_size_bytes=block_size,
        label_kind=label_kind,
        disk_identifier=disk_identifier,
        partitions=tuple(partitions),
    )


def read_disk_image(
    image_path: Path, environment: Optional[ToolEnvironment] = None
) -> DiskImage:
    """Extract and parse the partition table of an image file."""
    image_path = Path(image_path).resolve()
    return parse_partition_table(list_partition_table(image_path, environment), image_path)


def find_partition(image: DiskImage, selector) -> Optional[PartitionEntry]:
    """Return the partition whose index matches selector, or None.

    The selector must be a non-negative integer literal; any other value
    (signed, fractional, empty, non-string) matches nothing.
    """
    if not isinstance(selector, str) or not NUMBER_PATTERN.fullmatch(selector):
        return None
    wanted = int(selector)
    for partition in image.partitions:
        if partition.index == wanted:
            return partition
    return None
