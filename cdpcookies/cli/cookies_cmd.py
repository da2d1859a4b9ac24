"""
Cookies subcommand: dump, clear and load browser cookies.

Each action performs one WebSocket exchange (two for 'load --clear').
"""

import argparse
import asyncio
import logging
import sys

from . import create_session
from ..cookies import OUTPUT_FORMATS, load_cookie_file, render_cookies

logger = logging.getLogger(__name__)

# --source choice -> (connection scope, CDP method)
COOKIE_SOURCES = {
    "storage": ("browser", "Storage.getCookies"),
    "network": ("target", "Network.getAllCookies"),
}


async def dump_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'cookies dump' command (async implementation).

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    session = create_session(args)

    scope, method = COOKIE_SOURCES[args.source]
    if scope == "browser":
        conn = session.connect_to_browser()
    else:
        conn = session.connect_to_target(session.first_target())

    async with conn:
        response = await conn.exchange(method)

    if args.format == "raw" and args.grep:
        logger.warning("--grep is not applied to raw output")

    output = render_cookies(response, args.format, args.grep)

    if args.format == "human":
        sys.stdout.write(output)
    else:
        print(output)

    return 0


def dump_handler(args: argparse.Namespace) -> int:
    """Synchronous wrapper for dump_handler_async."""
    return asyncio.run(dump_handler_async(args))


async def clear_handler_async(args: argparse.Namespace) -> int:
    session = create_session(args)
    target = session.first_target()

    async with session.connect_to_target(target) as conn:
        await conn.exchange("Network.clearBrowserCookies")

    if not args.quiet:
        print("Cleared browser cookies", file=sys.stderr)
    return 0


def clear_handler(args: argparse.Namespace) -> int:
    """Synchronous wrapper for clear_handler_async."""
    return asyncio.run(clear_handler_async(args))


async def load_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'cookies load' command (async implementation).

    The file is read and validated before any network access.
    """
    cookies = load_cookie_file(args.file)

    session = create_session(args)
    target = session.first_target()

    if args.clear:
        async with session.connect_to_target(target) as conn:
            await conn.exchange("Network.clearBrowserCookies")
        logger.info("Cleared browser cookies before loading")

    async with session.connect_to_target(target) as conn:
        await conn.exchange("Network.setCookies", {"cookies": cookies})

    if not args.quiet:
        print(f"Loaded {len(cookies)} cookies from {args.file}", file=sys.stderr)
    return 0


def load_handler(args: argparse.Namespace) -> int:
    """Synchronous wrapper for load_handler_async."""
    return asyncio.run(load_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'cookies' subcommand with dump, clear and load actions.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    cookies_parser = subparsers.add_parser(
        "cookies",
        help="Dump, clear or load browser cookies",
        description="Read and modify browser cookies over the DevTools WebSocket",
        epilog="""
Examples:
  # Human-readable dump of cookies for a domain
  cdp-cookies cookies dump -p 9222 --grep example.com

  # Dump in the browser's own JSON, unfiltered
  cdp-cookies cookies dump -p 9222 --format raw

  # Dump in extension export format (expirationDate ten years out)
  cdp-cookies cookies dump -p 9222 --format modified > cookies.json

  # Clear every cookie
  cdp-cookies cookies clear -p 9222

  # Clear, then load cookies from a file
  cdp-cookies cookies load -p 9222 --clear cookies.json
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    actions = cookies_parser.add_subparsers(
        dest="action",
        title="actions",
        required=True,
    )

    dump_parser = actions.add_parser(
        "dump",
        parents=[parent],
        help="Print cookies",
        description="Print cookies as human-readable blocks, raw protocol JSON "
        "or extension-export JSON",
    )
    dump_parser.add_argument(
        "-f",
        "--format",
        choices=list(OUTPUT_FORMATS),
        default="human",
        help="Output format (default: human); raw ignores --grep",
    )
    dump_parser.add_argument(
        "-g",
        "--grep",
        help="Only show cookies whose name or domain contains this text (case-sensitive)",
    )
    dump_parser.add_argument(
        "--source",
        choices=sorted(COOKIE_SOURCES),
        default="storage",
        help="storage: Storage.getCookies on the browser session (default); "
        "network: Network.getAllCookies on the first target",
    )
    dump_parser.set_defaults(func=dump_handler)

    clear_parser = actions.add_parser(
        "clear",
        parents=[parent],
        help="Delete all browser cookies",
        description="Send Network.clearBrowserCookies to the first target",
    )
    clear_parser.set_defaults(func=clear_handler)

    load_parser = actions.add_parser(
        "load",
        parents=[parent],
        help="Import cookies from a JSON file",
        description="Send the cookies in FILE (a JSON array in Network.setCookies "
        "shape) to the browser. Output of 'dump --format modified' carries "
        "'expirationDate', which Network.setCookies ignores, so such cookies "
        "load as session cookies",
    )
    load_parser.add_argument("file", help="Path to the JSON cookie file")
    load_parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear all cookies before loading",
    )
    load_parser.set_defaults(func=load_handler)
