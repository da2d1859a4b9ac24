"""
Pages subcommand for target discovery.

Lists open tabs, installed extensions and workers reported by /json.
"""

import argparse
import json
from typing import List

from . import create_session
from ..session import Target


def format_targets(targets: List[Target]) -> str:
    """Render targets as labeled blocks separated by blank lines."""
    blocks = []
    for target in targets:
        blocks.append(
            f"Title: {target.title}\n"
            f"Type: {target.type}\n"
            f"URL: {target.url}\n"
            f"WebSocket Debugger URL: {target.webSocketDebuggerUrl}\n\n"
        )
    return "".join(blocks)


def pages_handler(args: argparse.Namespace) -> int:
    """
    Handle 'pages' command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    session = create_session(args)
    targets = session.list_targets(target_type=args.type, grep=args.grep)

    if args.format == "json":
        print(json.dumps([target.to_dict() for target in targets], indent=2))
    else:
        print(format_targets(targets), end="")

    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """Register 'pages' subcommand."""
    pages_parser = subparsers.add_parser(
        "pages",
        parents=[parent],
        help="List open tabs, extensions and workers",
        description="Discover debuggable targets via the /json endpoint",
        epilog="""
Examples:
  # List all targets
  cdp-cookies pages -p 9222

  # Only targets whose title or URL contains "mail"
  cdp-cookies pages -p 9222 --grep mail

  # Only extension service workers, as JSON
  cdp-cookies pages -p 9222 --type service_worker --format json
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    pages_parser.add_argument(
        "-g",
        "--grep",
        help="Only show targets whose title or URL contains this text (case-sensitive)",
    )
    pages_parser.add_argument(
        "--type",
        help="Only show targets of this type (page, background_page, service_worker, ...)",
    )
    pages_parser.add_argument(
        "-f",
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    pages_parser.set_defaults(func=pages_handler)
