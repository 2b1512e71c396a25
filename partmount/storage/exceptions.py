"""Custom exceptions for partition table and mount operations.

This module defines a hierarchy of exceptions so that each failure can be
handled and reported on its own, while the CLI maps them onto process exit
codes through the ``exit_code`` attribute.

Exception Hierarchy:
    PartmountError (base, exit code 1)
        ├── DependencyMissingError
        ├── InputInvalidError
        │   ├── ImageNotFoundError
        │   ├── MountpointNotFoundError
        │   └── PartitionNotFoundError
        ├── PartitionTableError
        │   └── TableUnreadableError
        ├── CommandTimeoutError
        └── MountError (exit code 32)
            ├── AlreadyMountedError
            ├── OffsetUnknownError
            └── MountFailedError (exit code of mount itself)

Exit code 32 is mount(8)'s "mount failure" code. AlreadyMountedError and
OffsetUnknownError reuse it so scripts see the same signal whichever layer
detected the problem; inside Python the classes stay distinct.

Usage:
    from partmount.storage.exceptions import AlreadyMountedError

    if probe.already_mounted:
        raise AlreadyMountedError(image_path, mountpoint)
"""

import shlex
from typing import Iterable, Optional, Sequence

MOUNT_FAILURE_EXIT_CODE = 32


class PartmountError(Exception):
    """Base exception for all partmount operations."""

    exit_code = 1


class DependencyMissingError(PartmountError):
    """A required external tool is not installed."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"Required tool not found: {tool}")


class InputInvalidError(PartmountError):
    """Base exception for invalid caller input."""



class ImageNotFoundError(InputInvalidError):
    """Image file does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Image file not found: {path}")


class MountpointNotFoundError(InputInvalidError):
    """Mountpoint directory does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Mountpoint directory not found: {path}")


class PartitionNotFoundError(InputInvalidError):
    """Partition selector matches no partition of the image."""

    def __init__(self, selector: str, image_name: str, available: Iterable[int] = ()):
        self.selector = selector
        self.image_name = image_name
        self.available = list(available)
        msg = f"Partition {selector!r} not found in {image_name}"
        if self.available:
            msg += f" (available: {', '.join(str(i) for i in self.available)})"
        else:
            msg += " (image has no partitions)"
        super().__init__(msg)


class PartitionTableError(PartmountError):
    """Base exception for partition table errors."""



class TableUnreadableError(PartitionTableError):
    """Partition listing tool produced no usable output."""

    def __init__(self, image_path, reason: str = ""):
        self.image_path = image_path
        self.reason = reason
        msg = f"Could not read partition table of {image_path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class CommandTimeoutError(PartmountError):
    """External command did not finish within the configured timeout."""

    def __init__(self, command: Sequence[str], timeout: float):
        self.command = list(command)
        self.timeout = timeout
        super().__init__(
            f"Command timed out after {timeout:g}s: {shlex.join(self.command)}"
        )


class MountError(PartmountError):
    """Base exception for mount-related errors."""

    exit_code = MOUNT_FAILURE_EXIT_CODE


class AlreadyMountedError(MountError):
    """Image is already mounted at the requested mountpoint."""

    def __init__(self, image_path, mountpoint):
        self.image_path = image_path
        self.mountpoint = mountpoint
        super().__init__(f"{image_path} is already mounted at {mountpoint}")


class OffsetUnknownError(MountError):
    """Sector size is unknown, so no byte offset can be computed."""

    def __init__(self, image_path):
        self.image_path = image_path
        super().__init__(
            f"Cannot compute partition offset for {image_path}: sector size unknown"
        )


class MountFailedError(MountError):
    """mount returned a non-zero exit code."""

    def __init__(
        self, command: Sequence[str], exit_code: int, stderr: Optional[str] = None
    ):
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = (stderr or "").strip()
        msg = f"Mount failed with exit code {exit_code}: {shlex.join(self.command)}"
        if self.stderr:
            msg += f" ({self.stderr})"
        super().__init__(msg)
