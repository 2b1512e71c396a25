"""Text rendering of disk images and their partitions."""

from __future__ import annotations

from typing import Optional

from partmount.domain.models import UNKNOWN, DiskImage, PartitionEntry

ROW_FORMAT = "{:>3}  {:>12}  {:>12}  {:>12}  {:>15}  {:>6}  {}"
HEADER = ROW_FORMAT.format("#", "Start", "End", "Sectors", "Offset", "Size", "Type")


def format_partition(entry: PartitionEntry, block_size: Optional[int]) -> str:
    offset = entry.offset_bytes(block_size) if block_size else "-"
    return ROW_FORMAT.format(
        entry.index,
        entry.start_sector,
        entry.end_sector,
        entry.sector_count,
        offset,
        entry.size_label,
        entry.type_description,
    )


def format_disk_image(image: DiskImage) -> list[str]:
    """Format an image summary followed by its partition table.

    Returns:
        Lines ready to print, e.g.
        ["Image: disk.img (/srv/disk.img)", "Disklabel type: dos", ...]
    """
    sector_size = (
        f"{image.block_size_bytes} bytes" if image.block_size_known else UNKNOWN
    )
    lines = [
        f"Image: {image.display_name} ({image.path})",
        f"Disklabel type: {image.label_kind}",
        f"Disk identifier: {image.disk_identifier}",
        f"Sector size: {sector_size}",
    ]
    if image.is_empty:
        lines.append("No partitions found.")
        return lines
    lines.append(f"Partitions: {len(image.partitions)}")
    lines.append("")
    lines.append(HEADER.rstrip())
    for entry in image.partitions:
        lines.append(format_partition(entry, image.block_size_bytes))
    return lines
