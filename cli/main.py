"""CLI entry point."""

import asyncio
import sys

from cli.commands import handle_download, handle_upload
from cli.config import Config
from cli.constants import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_OK, GREEN, RED, RESET, YELLOW
from cli.models import CommandRequest, DownloadCommand
from cli.parser import ParseError, build_parser, parse_args
from cli.utils import prompt_password
from common.constants import APP_NAME
from common.logging_config import get_logger, setup_logging, shutdown_logging
from transfer.registry import make_authorization

logger = get_logger(APP_NAME)


def run(cmd: CommandRequest, config: Config) -> int:
    """
    Execute a parsed command and return the process exit status.

    Every failure inside the engine arrives here as a result or an
    exception; this is the only place that decides the exit status.
    """
    password = cmd.password
    if password is None:
        try:
            password = prompt_password()
        except (KeyboardInterrupt, EOFError):
            password = ''
        if not password:
            print(f"{RED}No password given, aborting.{RESET}", file=sys.stderr)
            return EXIT_FAILURE

    authorization = make_authorization(cmd.username, password)
    handler = handle_download if isinstance(cmd, DownloadCommand) else handle_upload

    try:
        result = asyncio.run(handler(cmd, config, authorization))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        print(f"\n{YELLOW}Interrupted. Re-run the same command to resume.{RESET}", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        print(f"\n{RED}Unexpected error: {e}{RESET}", file=sys.stderr)
        return EXIT_FAILURE

    if result.success:
        logger.info(result.message)
        print(f"\n{GREEN}{result.message}{RESET}")
        return EXIT_OK

    print(f"\n{RED}{result.message}{RESET}", file=sys.stderr)
    return EXIT_FAILURE


def main(argv: list[str] | None = None) -> None:
    """Entry point for CLI."""
    try:
        cmd = parse_args(argv)
    except ParseError as e:
        build_parser().print_usage(sys.stderr)
        print(f"{RED}Error: {e}{RESET}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    config = Config()
    log_level = 'DEBUG' if cmd.debug else None
    try:
        setup_logging(APP_NAME, log_level=log_level, log_dir=config.get_log_dir())
    except OSError as e:
        setup_logging(APP_NAME, log_level=log_level)
        logger.warning(f"File logging disabled: {e}")

    logger.info(f"{APP_NAME} starting: {cmd.command} {cmd.path} -> {cmd.registry}")
    try:
        exit_code = run(cmd, config)
    finally:
        logger.info(f"{APP_NAME} exiting")
        shutdown_logging(APP_NAME)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
