"""List the partitions of a raw disk image and loop-mount one of them."""

from .__version__ import __version__

__all__ = ["__version__"]
