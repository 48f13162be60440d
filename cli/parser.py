"""Command-line argument parser."""

import argparse
from importlib.metadata import PackageNotFoundError, version

from cli.constants import DESCRIPTION, EPILOG, PROG
from cli.models import CommandRequest, DownloadCommand, UploadCommand
from common.constants import DEFAULT_CONCURRENCY
from transfer.registry import parse_registry, split_credentials


class ParseError(Exception):
    """Raised when command-line arguments are invalid."""

    pass


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise ParseError(message)


def _package_version() -> str:
    try:
        return version(PROG)
    except PackageNotFoundError:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG,
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-u", "--username",
        required=True,
        metavar="USERNAME[:PASSWORD]",
        help="Username (required) and password (optional), separated by a colon. "
             "The password is prompted for when omitted.",
    )
    parser.add_argument(
        "-p", "--path",
        required=True,
        help="File to upload, directory to upload with --dir, or destination directory with --pull.",
    )
    parser.add_argument(
        "-r", "--registry",
        required=True,
        help="Registry URL, optionally with ?version=VERSION (defaults to latest).",
    )
    parser.add_argument(
        "-c", "--concurrency",
        type=int,
        help=f"Number of parts uploaded in parallel (default {DEFAULT_CONCURRENCY}, "
             "or the configured value).",
    )
    parser.add_argument(
        "-d", "--dir",
        action="store_true",
        dest="directory",
        help="Upload every file under --path, recursively.",
    )
    parser.add_argument(
        "--pull",
        action="store_true",
        help="Download the artifacts listed under --registry into --path.",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        metavar="MIB",
        help="Default part size in MiB. Grows automatically for very large files.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print debug logging to the console.",
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> CommandRequest:
    """Parse command-line arguments into a CommandRequest object.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])

    Returns:
        UploadCommand or DownloadCommand

    Raises:
        ParseError: If the arguments are invalid
    """
    args = build_parser().parse_args(argv)

    username, password = split_credentials(args.username)
    if not username:
        raise ParseError("username must not be empty")

    try:
        parse_registry(args.registry)
    except ValueError as e:
        raise ParseError(str(e))

    if args.concurrency is not None and args.concurrency < 1:
        raise ParseError(f"concurrency must be at least 1, got {args.concurrency}")

    if args.pull and args.directory:
        raise ParseError("--pull and --dir cannot be combined")

    if args.pull:
        return DownloadCommand(
            username=username,
            password=password,
            path=args.path,
            registry=args.registry,
            concurrency=args.concurrency,
            debug=args.debug,
        )

    chunk_size = None
    if args.chunk_size is not None:
        if args.chunk_size < 1:
            raise ParseError(f"chunk size must be at least 1 MiB, got {args.chunk_size}")
        chunk_size = args.chunk_size * 1024 * 1024

    return UploadCommand(
        username=username,
        password=password,
        path=args.path,
        registry=args.registry,
        concurrency=args.concurrency,
        directory=args.directory,
        chunk_size=chunk_size,
        debug=args.debug,
    )
