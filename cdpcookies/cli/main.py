"""
Main CLI entry point for cdp-cookies.

Usage:
    python -m cdpcookies.cli.main <subcommand> [options]

Subcommands:
    pages   - List open tabs, extensions and workers
    version - Show browser metadata
    cookies - Dump, clear or load browser cookies
"""

import argparse
import logging
import sys
from typing import List, Optional

from cdpcookies.config import Configuration, DEFAULT_CONFIG_FILE
from cdpcookies.exceptions import CDPError, CDPUsageError
from cdpcookies.logging_setup import setup_logging

logger = logging.getLogger(__name__)


class ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises CDPUsageError instead of exiting with status 2."""

    def error(self, message):
        raise CDPUsageError(message, usage=self.format_usage())


def create_parent_parser() -> argparse.ArgumentParser:
    """
    Create parent parser with global options shared across all subcommands.

    Every option defaults to None so unset flags do not override
    environment variables or the config file.
    """
    parent = ArgumentParser(add_help=False)

    # Connection options
    parent.add_argument(
        "-p",
        "--port",
        dest="chrome_port",
        type=int,
        help="Browser remote debugging port (required unless set in env/config)",
    )
    parent.add_argument(
        "--host",
        dest="chrome_host",
        help="Debug endpoint host (default: localhost)",
    )
    parent.add_argument(
        "--timeout",
        type=float,
        help="Deadline in seconds for each network call (default: 30.0)",
    )
    parent.add_argument(
        "--no-timeout",
        action="store_true",
        help="Wait indefinitely for the browser to answer",
    )
    parent.add_argument(
        "--max-size",
        type=int,
        help="Maximum WebSocket response size in bytes (default: 2097152)",
    )

    # Logging options
    parent.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: warning)",
    )
    parent.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log output format on stderr (default: text)",
    )

    verbosity_group = parent.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress non-essential output (only show results)",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug output",
    )

    return parent


def create_main_parser(parent: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Create main parser with all subcommands."""
    parser = ArgumentParser(
        prog="cdp-cookies",
        description="View tabs, extensions and cookies of a Chromium-based browser "
        "through its remote debugging port",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List open tabs and extensions whose title or URL contains "bank"
  cdp-cookies pages -p 9222 --grep bank

  # Dump cookies in the browser-extension export format
  cdp-cookies cookies dump -p 9222 --format modified > cookies.json

  # Replace all cookies with the ones from a file
  cdp-cookies cookies load -p 9222 --clear cookies.json

For more information on subcommands, run: cdp-cookies <subcommand> --help
        """,
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        title="subcommands",
        description="Available operations",
        required=True,
    )

    from . import pages_cmd, version_cmd, cookies_cmd

    pages_cmd.register_subcommand(subparsers, parent)
    version_cmd.register_subcommand(subparsers, parent)
    cookies_cmd.register_subcommand(subparsers, parent)

    return parser


def load_configuration(args: argparse.Namespace) -> Configuration:
    """
    Resolve configuration with precedence: CLI > env > file > defaults.
    """
    config = Configuration()
    config.load_from_file(DEFAULT_CONFIG_FILE)
    config.load_from_env()

    config.merge(
        chrome_host=getattr(args, "chrome_host", None),
        chrome_port=getattr(args, "chrome_port", None),
        timeout=getattr(args, "timeout", None),
        max_size=getattr(args, "max_size", None),
        log_level=getattr(args, "log_level", None),
        log_format=getattr(args, "log_format", None),
    )

    if getattr(args, "no_timeout", False):
        config.timeout = None

    if getattr(args, "quiet", False):
        config.log_level = "ERROR"
    elif getattr(args, "verbose", False):
        config.log_level = "DEBUG"

    return config


def report_error(error: CDPError) -> None:
    """Print an error and its recovery hint to stderr."""
    if isinstance(error, CDPUsageError) and error.usage:
        print(error.usage.rstrip(), file=sys.stderr)
    print(f"Error: {error}", file=sys.stderr)
    if error.details.get("recovery"):
        print(f"Recovery hint: {error.details['recovery']}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for CLI.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for any fatal error)
    """
    parent = create_parent_parser()
    parser = create_main_parser(parent)

    try:
        args = parser.parse_args(argv)
    except CDPUsageError as e:
        report_error(e)
        return 1

    config = load_configuration(args)

    setup_logging(
        format_type=config.log_format,
        level=config.log_level.upper() if isinstance(config.log_level, str) else None,
        quiet=getattr(args, "quiet", False),
        verbose=getattr(args, "verbose", False),
    )
    logger.debug(f"Resolved {config!r}")

    # Attach config to args for subcommands to access
    args.config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT
    except CDPError as e:
        if config.log_level.upper() == "DEBUG":
            raise  # Re-raise for full traceback in debug mode
        report_error(e)
        return 1
    except Exception as e:
        if config.log_level.upper() == "DEBUG":
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
