"""
Pytest configuration and shared fixtures for partmount tests.

This module provides sample fdisk and mount output plus helpers for faking
subprocess results.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest

from partmount.domain.models import DiskImage, PartitionEntry


# ==============================================================================
# fdisk Output Fixtures
# ==============================================================================

FDISK_DOS_OUTPUT = """\
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

FDISK_GPT_OUTPUT = """\
Disk disk.img: 2 GiB, 2147483648 bytes, 4194304 sectors
Units: sectors of 1 * 512 = 512 bytes
Sector size (logical/physical): 512 bytes / 512 bytes
I/O size (minimum/optimal): 512 bytes / 512 bytes
Disklabel type: gpt
Disk identifier: 8F3D2A6C-5B1E-4C7A-9D2F-1E0B3C4D5E6F

  Start     End Sectors  Size Type
   2048 1050623 1048576  512M EFI System
1050624 3147775 2097152    1G Linux filesystem
3147776 4192255 1044480  510M Linux swap
"""

FDISK_EMPTY_TABLE_OUTPUT = """\
Disk blank.img: 64 MiB, 67108864 bytes, 131072 sectors
Units: sectors of 1 * 512 = 512 bytes
Sector size (logical/physical): 512 bytes / 512 bytes
I/O size (minimum/optimal): 512 bytes / 512 bytes
Disklabel type: dos
Disk identifier: 0x00000000

Start End Sectors Size Type
"""


@pytest.fixture
def fdisk_dos_output() -> str:
    """Two-partition MBR image as printed by fdisk."""
    return FDISK_DOS_OUTPUT


@pytest.fixture
def fdisk_gpt_output() -> str:
    """Three-partition GPT image as printed by fdisk."""
    return FDISK_GPT_OUTPUT


@pytest.fixture
def fdisk_empty_table_output() -> str:
    """Valid header and column row without any partitions."""
    return FDISK_EMPTY_TABLE_OUTPUT


# ==============================================================================
# Mount Listing Fixtures
# ==============================================================================


@pytest.fixture
def mount_listing() -> str:
    """System mount listing without any image mounts."""
    return (
        "proc on /proc type proc (rw,nosuid,nodev,noexec,relatime)\n"
        "sysfs on /sys type sysfs (rw,nosuid,nodev,noexec,relatime)\n"
        "/dev/nvme0n1p2 on / type ext4 (rw,relatime)\n"
        "/dev/nvme0n1p1 on /boot/efi type vfat (rw,relatime,fmask=0077)\n"
    )


# ==============================================================================
# Domain Fixtures
# ==============================================================================


@pytest.fixture
def linux_image() -> DiskImage:
    """Image with a single Linux partition starting at sector 2048."""
    partition = PartitionEntry(
        index=1,
        start_sector=2048,
        end_sector=206847,
        sector_count=204800,
        size_label="100M",
        type_description="Linux",
        display_alias="disk.img p1 (Linux)",
    )
    return DiskImage(
        path=Path("/images/disk.img"),
        display_name="disk.img",
        block_size_bytes=512,
        label_kind="dos",
        disk_identifier="0x1234abcd",
        partitions=(partition,),
    )


# ==============================================================================
# Subprocess Fixtures
# ==============================================================================


@pytest.fixture
def command_result():
    """Factory for fake subprocess.CompletedProcess results."""

    def make(returncode=0, stdout="", stderr="") -> Mock:
        return Mock(returncode=returncode, stdout=stdout, stderr=stderr)

    return make


@pytest.fixture
def mock_run_command(mocker) -> Mock:
    """Patch the command runner used by partition table extraction."""
    return mocker.patch("partmount.storage.partition_table.run_command")


@pytest.fixture
def mock_mount_run_command(mocker) -> Mock:
    """Patch the command runner used by mount operations."""
    return mocker.patch("partmount.storage.mount.run_command")
