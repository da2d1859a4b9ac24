"""Command-line interface for cdp-cookies."""

import argparse

from ..exceptions import CDPUsageError
from ..session import CDPSession


def create_session(args: argparse.Namespace) -> CDPSession:
    """
    Build a CDPSession from the resolved configuration attached by main().

    Raises:
        CDPUsageError: If the port is missing or out of range
    """
    config = args.config
    if config.chrome_port is None:
        raise CDPUsageError(
            "debug port is required",
            details={"recovery": "Pass -p/--port or set CDP_COOKIES_PORT"},
        )

    try:
        return CDPSession(
            chrome_host=config.chrome_host,
            chrome_port=config.chrome_port,
            timeout=config.timeout,
            max_size=config.max_size,
        )
    except ValueError as e:
        raise CDPUsageError(str(e)) from e
