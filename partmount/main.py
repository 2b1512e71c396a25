import argparse
import sys
from pathlib import Path

from partmount.config import settings
from partmount.logging import LoggerFactory, setup_logging
from partmount.storage.commands import find_privilege_helper, require_tools
from partmount.storage.exceptions import (
    ImageNotFoundError,
    MountpointNotFoundError,
    PartitionNotFoundError,
    PartmountError,
)
from partmount.storage.mount import mount_partition
from partmount.storage.partition_table import find_partition, read_disk_image
from partmount.ui.listing import format_disk_image

USAGE = """\
%(prog)s [options] IMAGE                        list the partitions of IMAGE
       %(prog)s [options] IMAGE PARTITION MOUNTPOINT  loop mount partition PARTITION at MOUNTPOINT"""

EPILOG = """\
PARTITION is the 1-based number shown in the listing.

exit codes:
  0   success
  1   missing tool, invalid input or unreadable partition table
  32  already mounted at MOUNTPOINT, or sector size unknown
  *   any other exit code is passed through from mount"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="partmount",
        usage=USAGE,
        description="List the partitions of a raw disk image or loop mount one of them.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--trace", action="store_true", help="Log every line of tool output")
    parser.add_argument(
        "-r",
        "--read-only",
        action="store_true",
        default=None,
        help="Mount the partition read-only",
    )
    parser.add_argument("arguments", nargs="*", metavar="ARG", help=argparse.SUPPRESS)
    return parser


def positional_arguments(argv, known, unknown) -> list:
    """Put tokens argparse did not recognize back among the positionals, in order.

    A selector such as `-x` is a partition that does not exist, not an option.
    """
    pending = list(known) + list(unknown)
    ordered = []
    for token in argv:
        if token in pending:
            pending.remove(token)
            ordered.append(token)
    return ordered + pending


def list_image(image_path: Path, environment: settings.ToolEnvironment) -> int:
    image = read_disk_image(image_path, environment)
    for line in format_disk_image(image):
        print(line)
    return 0


def mount_image(
    image_path: Path,
    selector: str,
    mountpoint: Path,
    environment: settings.ToolEnvironment,
    read_only: bool,
) -> int:
    image = read_disk_image(image_path, environment)
    partition = find_partition(image, selector)
    if partition is None:
        raise PartitionNotFoundError(
            selector, image.display_name, [entry.index for entry in image.partitions]
        )
    if not mountpoint.is_dir():
        raise MountpointNotFoundError(mountpoint)
    helper = find_privilege_helper(settings.get_privilege_helpers())
    result = mount_partition(
        image,
        partition,
        mountpoint,
        helper=helper,
        environment=environment,
        read_only=read_only,
    )
    for note in result.notes:
        print(note)
    print(result.message)
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]
    args, unknown = parser.parse_known_args(argv)
    args.arguments = positional_arguments(argv, args.arguments, unknown)
    if len(args.arguments) not in (1, 3):
        parser.print_help()
        return 0

    setup_logging(debug=args.debug, trace=args.trace)
    log = LoggerFactory.for_system()
    environment = settings.tool_environment()
    read_only = args.read_only if args.read_only is not None else settings.get_bool("mount_read_only")

    try:
        require_tools()
        image_path = Path(args.arguments[0])
        if not image_path.is_file():
            raise ImageNotFoundError(image_path)
        if len(args.arguments) == 1:
            return list_image(image_path, environment)
        selector, mountpoint = args.arguments[1], Path(args.arguments[2])
        return mount_image(image_path, selector, mountpoint, environment, read_only)
    except PartmountError as error:
        log.debug(f"{type(error).__name__}: {error}")
        print(f"Error: {error}", file=sys.stderr)
        return error.exit_code if error.exit_code > 0 else 1


if __name__ == "__main__":
    sys.exit(main())
