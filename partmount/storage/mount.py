"""Loop mounting of disk image partitions.

This module mounts a single partition of a raw image file by handing
mount(8) a loop device offset, so the image never has to be split or copied.

Mount State:
    Before mounting, the system mount listing (`mount` with no arguments,
    one `source on target type fstype (options)` line per mount) is checked
    for the backing file:

    1. Already mounted at the requested mountpoint -> AlreadyMountedError,
       mount is never invoked
    2. Mounted somewhere else -> mount proceeds, each other target is noted
       (several partitions of one image can be mounted side by side)
    3. Not mounted -> mount proceeds

    The check is advisory, not a lock. Another process can mount the same
    pair between the check and the mount; mount(8) then reports the
    conflict itself. If the listing cannot be read at all, nothing is
    treated as mounted.

Privileges:
    When not running as root, the mount command is prefixed with the
    privilege helper (sudo, doas) found by the caller. Without a helper the
    mount is still attempted and mount(8) enforces privileges itself.

Example:
    >>> image = read_disk_image(Path("disk.img"))
    >>> partition = find_partition(image, "2")
    >>> result = mount_partition(image, partition, Path("/mnt/rootfs"), helper="/usr/bin/sudo")
    >>> print(result.message)
    Mounted disk.img p2 (Linux) at /mnt/rootfs
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Optional, Sequence

from partmount.config.settings import ToolEnvironment
from partmount.domain.models import (
    DiskImage,
    MountEntry,
    MountProbeResult,
    MountResult,
    PartitionEntry,
)
from partmount.logging import LoggerFactory, operation_context

from .commands import run_command
from .exceptions import (
    AlreadyMountedError,
    CommandTimeoutError,
    MountFailedError,
    OffsetUnknownError,
)

SYS_BLOCK_PATH = Path("/sys/block")
LOOP_DEVICE_PREFIX = "/dev/loop"

log = LoggerFactory.for_mount()


def canonical_path(path) -> Path:
    """Resolve symlinks and strip trailing separators."""
    return Path(path).resolve()


def _loop_backing_file(source: str) -> Optional[str]:
    # Current util-linux lists loop mounts by device, not by backing file.
    if not source.startswith(LOOP_DEVICE_PREFIX):
        return None
    backing_file = SYS_BLOCK_PATH / Path(source).name / "loop" / "backing_file"
    try:
        value = backing_file.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    if value.endswith(" (deleted)"):
        value = value[: -len(" (deleted)")]
    return value or None


def read_mount_table(environment: Optional[ToolEnvironment] = None) -> str:
    """Return the system mount listing, or "" if it cannot be obtained."""
    try:
        result = run_command(["mount"], environment, log_output=False)
    except (OSError, CommandTimeoutError) as error:
        log.debug(f"Mount listing unavailable: {error}")
        return ""
    if result.returncode != 0:
        log.debug(f"Mount listing failed with return code {result.returncode}")
        return ""
    return result.stdout or ""


def parse_mount_table(text: str) -> list[MountEntry]:
    """Parse `source on target ...` lines into mount entries."""
    entries = []
    for line in (text or "").splitlines():
        fields = line.split()
        if len(fields) < 3 or fields[1] != "on":
            continue
        source = _loop_backing_file(fields[0]) or fields[0]
        entries.append(MountEntry(source=source, target=fields[2]))
    return entries


def probe_mounts(
    image_path,
    mountpoint,
    mount_table: Optional[str] = None,
    environment: Optional[ToolEnvironment] = None,
) -> MountProbeResult:
    """Find every target the backing file is currently mounted at."""
    image_path = canonical_path(image_path)
    mountpoint = canonical_path(mountpoint)
    if mount_table is None:
        mount_table = read_mount_table(environment)
    destinations = []
    for entry in parse_mount_table(mount_table):
        if entry.source != str(image_path):
            continue
        destination = canonical_path(entry.target)
        if destination not in destinations:
            destinations.append(destination)
    return MountProbeResult(
        image_path=image_path,
        mountpoint=mountpoint,
        destinations=tuple(destinations),
    )


def compute_offset(start_sector: int, block_size_bytes: Optional[int]) -> int:
    """Byte offset of a partition inside its image.

    Raises:
        ValueError: If the block size is unknown or not positive
    """
    if block_size_bytes is None or block_size_bytes < 1:
        raise ValueError(f"Invalid block size: {block_size_bytes}")
    return start_sector * block_size_bytes


def privilege_prefix(helper: Optional[str], euid: Optional[int] = None) -> list[str]:
    """Command prefix needed to run mount with root privileges."""
    if euid is None:
        euid = os.geteuid()
    if euid == 0:
        return []
    if helper:
        return [helper]
    log.warning("Not running as root and no privilege helper found; mount may fail")
    return []


def build_mount_command(
    image_path: Path,
    mountpoint: Path,
    offset: int,
    prefix: Sequence[str] = (),
    read_only: bool = False,
) -> list[str]:
    options = ["loop"]
    if read_only:
        options.append("ro")
    options.append(f"offset={offset}")
    return [
        *prefix,
        "mount",
        "-o",
        ",".join(options),
        str(image_path),
        str(mountpoint),
    ]


def mount_partition(
    image: DiskImage,
    partition: PartitionEntry,
    mountpoint,
    *,
    helper: Optional[str] = None,
    environment: Optional[ToolEnvironment] = None,
    read_only: bool = False,
    mount_table: Optional[str] = None,
    euid: Optional[int] = None,
) -> MountResult:
    """Loop mount one partition of an image at mountpoint.

    Args:
        image: Parsed disk image
        partition: Partition of image to mount
        mountpoint: Existing directory to mount at
        helper: Privilege helper path (sudo, doas) or None
        environment: Tool environment for the mount invocation
        read_only: Mount with the ro option
        mount_table: Mount listing text; read from the system when None
        euid: Effective user id; os.geteuid() when None

    Returns:
        MountResult describing the mount

    Raises:
        AlreadyMountedError: If the image is already mounted at mountpoint
        OffsetUnknownError: If the image's sector size is unknown
        MountFailedError: If mount exits non-zero
        CommandTimeoutError: If mount does not finish in time
    """
    image_path = canonical_path(image.path)
    mountpoint = canonical_path(mountpoint)

    with operation_context(
        "mount", image=str(image_path), partition=partition.index
    ) as op_log:
        probe = probe_mounts(image_path, mountpoint, mount_table, environment)
        if probe.already_mounted:
            raise AlreadyMountedError(image_path, mountpoint)

        notes = []
        for destination in probe.other_destinations:
            note = f"Note: {image.display_name} is also mounted at {destination}"
            op_log.info(note)
            notes.append(note)

        if not image.block_size_known:
            raise OffsetUnknownError(image_path)
        offset = compute_offset(partition.start_sector, image.block_size_bytes)

        command = build_mount_command(
            image_path,
            mountpoint,
            offset,
            prefix=privilege_prefix(helper, euid),
            read_only=read_only,
        )
        op_log.debug(f"Mounting {partition.display_alias}: {shlex.join(command)}")
        result = run_command(command, environment)
        if result.returncode != 0:
            raise MountFailedError(command, result.returncode, result.stderr)

        return MountResult(
            partition=partition,
            mountpoint=mountpoint,
            offset=offset,
            command=tuple(command),
            notes=tuple(notes),
        )
