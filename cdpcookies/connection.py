"""CDP WebSocket connection management.

Provides CDPConnection for a single request/response exchange with a
Chrome DevTools Protocol target. One command is sent, one frame is read,
and the connection is discarded.
"""

import asyncio
import enum
import json
import logging
from typing import Any, Dict, List, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed

from .exceptions import (
    ConnectionFailedError,
    ConnectionClosedError,
    CDPDecodeError,
    CDPTimeoutError,
    CommandFailedError,
    InvalidCommandError,
)
from .logging_setup import log_with_context

logger = logging.getLogger(__name__)

# Chrome rejects WebSocket upgrades from origins outside --remote-allow-origins
DEFAULT_ORIGIN = "http://localhost/"

# Only one command is ever in flight per connection
COMMAND_ID = 1

# RFC 6455 close code for a frame exceeding max_size
CLOSE_MESSAGE_TOO_BIG = 1009


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    AWAITING_RESPONSE = "awaiting_response"
    CLOSED = "closed"


class CDPResponse:
    """
    Decoded response envelope for one command.

    Attributes:
        id: Command id echoed by the browser
        result: Contents of the "result" field (empty dict for mutating commands)
        raw: Response frame text exactly as received
    """

    def __init__(self, raw: str, envelope: Dict[str, Any]):
        self.raw = raw
        self.id = envelope.get("id")
        self.result: Dict[str, Any] = envelope.get("result") or {}

    @property
    def cookies(self) -> List[Dict[str, Any]]:
        """Raw cookie records from a Storage.getCookies/Network.getAllCookies result."""
        cookies = self.result.get("cookies", [])
        if not isinstance(cookies, list) or not all(
            isinstance(c, dict) for c in cookies
        ):
            raise CDPDecodeError(
                "Response field 'cookies' is not a list of objects",
                source="websocket",
            )
        return cookies

    def __repr__(self):
        return f"CDPResponse(id={self.id!r}, result_keys={sorted(self.result)!r})"


def build_command(method: str, params: Optional[dict] = None) -> str:
    """Serialize a command envelope; "params" is omitted when not given."""
    envelope: Dict[str, Any] = {"id": COMMAND_ID, "method": method}
    if params is not None:
        envelope["params"] = params
    return json.dumps(envelope)


def decode_response(raw: Union[str, bytes], method: str) -> CDPResponse:
    """
    Decode one response frame and check it answers the command just sent.

    Raises:
        CDPDecodeError: If the frame is not a JSON object or its id does not match
        CommandFailedError: If the browser returned an error object
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CDPDecodeError(
                f"Response frame is not valid UTF-8: {e}", source="websocket"
            ) from e

    try:
        envelope = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CDPDecodeError(
            f"Invalid JSON response for {method}: {e}", source="websocket"
        ) from e

    if not isinstance(envelope, dict):
        raise CDPDecodeError(
            f"Response for {method} is not a JSON object", source="websocket"
        )

    if envelope.get("id") != COMMAND_ID:
        raise CDPDecodeError(
            f"Response id does not match request for {method}",
            source="websocket",
            details={"expected_id": COMMAND_ID, "received_id": envelope.get("id")},
        )

    if "error" in envelope:
        error = envelope["error"] if isinstance(envelope["error"], dict) else {}
        raise CommandFailedError(
            error.get("message", "Unknown CDP error"),
            method=method,
            error_code=error.get("code"),
            details={"error": envelope["error"]},
        )

    if not isinstance(envelope.get("result", {}), dict):
        raise CDPDecodeError(
            f"Response field 'result' for {method} is not an object",
            source="websocket",
        )

    return CDPResponse(raw, envelope)


class CDPConnection:
    """Manages one WebSocket exchange with a Chrome DevTools Protocol endpoint.

    Lifecycle: DISCONNECTED → CONNECTING → CONNECTED → AWAITING_RESPONSE → CLOSED.
    A connection carries exactly one command; open a new one for the next.

    Usage:
        async with CDPConnection(ws_url) as conn:
            result = await conn.execute_command("Storage.getCookies")

    Attributes:
        ws_url: WebSocket debugger URL
        timeout: Deadline in seconds for dial and receive (None blocks forever)
        max_size: Maximum WebSocket message size in bytes
        origin: Origin header sent with the handshake
    """

    def __init__(
        self,
        ws_url: str,
        *,
        timeout: Optional[float] = 30.0,
        max_size: int = 2_097_152,  # 2MB default buffer
        origin: str = DEFAULT_ORIGIN,
    ):
        if not ws_url.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URL: {ws_url}")

        self.ws_url = ws_url
        self.timeout = timeout
        self.max_size = max_size
        self.origin = origin

        self._ws = None
        self.state = ConnectionState.DISCONNECTED

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and self.state in (
            ConnectionState.CONNECTED,
            ConnectionState.AWAITING_RESPONSE,
        )

    async def connect(self) -> None:
        """Dial the WebSocket URL.

        Raises:
            CDPTimeoutError: If the handshake does not finish within timeout
            ConnectionFailedError: If the dial or handshake fails
        """
        if self.state is not ConnectionState.DISCONNECTED:
            raise InvalidCommandError(
                f"Cannot connect from state {self.state.value}",
                details={"url": self.ws_url},
            )

        self.state = ConnectionState.CONNECTING
        log_with_context(logger, logging.INFO, "Connecting", ws_url=self.ws_url)
        try:
            self._ws = await websockets.connect(
                self.ws_url,
                origin=self.origin,
                max_size=self.max_size,
                open_timeout=self.timeout,
            )
        except (asyncio.TimeoutError, TimeoutError) as e:
            self.state = ConnectionState.CLOSED
            raise CDPTimeoutError(
                f"Timed out connecting to {self.ws_url}",
                timeout=self.timeout,
                details={"url": self.ws_url},
            ) from e
        except Exception as e:
            self.state = ConnectionState.CLOSED
            raise ConnectionFailedError(
                f"Failed to connect to {self.ws_url}: {e}",
                details={
                    "url": self.ws_url,
                    "recovery": "Check the target is still open and the port is correct",
                },
            ) from e

        self.state = ConnectionState.CONNECTED
        logger.info("CDP connection established")

    async def disconnect(self) -> None:
        """Close the WebSocket; safe to call more than once."""
        self.state = ConnectionState.CLOSED
        if self._ws is None:
            return

        ws, self._ws = self._ws, None
        try:
            await ws.close()
        except Exception as e:
            logger.warning(f"Error closing WebSocket: {e}")
        logger.debug("CDP connection closed")

    async def __aenter__(self) -> "CDPConnection":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    async def exchange(self, method: str, params: Optional[dict] = None) -> CDPResponse:
        """Send one command and read exactly one response frame.

        Args:
            method: CDP method name (e.g., "Storage.getCookies")
            params: Method parameters, omitted from the envelope when None

        Returns:
            CDPResponse with the raw frame and decoded result

        Raises:
            InvalidCommandError: If the connection is not in CONNECTED state
            ConnectionClosedError: If the peer closes before responding
            CDPTimeoutError: If no frame arrives within timeout
            CDPDecodeError: If the frame is malformed, oversized or mismatched
            CommandFailedError: If the browser returns an error response
        """
        if self.state is not ConnectionState.CONNECTED or self._ws is None:
            raise InvalidCommandError(
                f"Cannot send {method}: connection is {self.state.value}",
                method=method,
            )

        message = build_command(method, params)
        self.state = ConnectionState.AWAITING_RESPONSE

        try:
            await self._ws.send(message)
            log_with_context(
                logger, logging.DEBUG, "Sent command", id=COMMAND_ID, method=method
            )
            raw = await asyncio.wait_for(self._ws.recv(), timeout=self.timeout)
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise CDPTimeoutError(
                "Command timed out", command_method=method, timeout=self.timeout
            ) from e
        except ConnectionClosed as e:
            sent_code = getattr(getattr(e, "sent", None), "code", None)
            if sent_code == CLOSE_MESSAGE_TOO_BIG:
                raise CDPDecodeError(
                    f"Response for {method} exceeds max_size",
                    source="websocket",
                    details={"max_size": self.max_size},
                ) from e
            raise ConnectionClosedError(
                f"Connection closed before response to {method}: {e}",
                details={"url": self.ws_url},
            ) from e
        finally:
            await self.disconnect()

        logger.debug(f"Received {len(raw)} characters for {method}")
        return decode_response(raw, method)

    async def execute_command(self, method: str, params: Optional[dict] = None) -> dict:
        """Execute a CDP command and return the "result" field of its response."""
        response = await self.exchange(method, params)
        return response.result

