"""Version subcommand: print browser metadata from /json/version."""

import argparse
import json

from . import create_session


def version_handler(args: argparse.Namespace) -> int:
    session = create_session(args)
    version = session.get_version()

    if args.format == "json":
        print(json.dumps(version.to_dict(), indent=2))
    else:
        for key, value in version.to_dict().items():
            print(f"{key}: {value}")

    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """Register 'version' subcommand."""
    version_parser = subparsers.add_parser(
        "version",
        parents=[parent],
        help="Show browser metadata",
        description="Show browser, protocol and engine versions and the "
        "browser-level WebSocket debugger URL",
    )

    version_parser.add_argument(
        "-f",
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    version_parser.set_defaults(func=version_handler)
