"""Exception hierarchy for CDP cookie operations.

All exceptions inherit from CDPError. Library code raises them; only the CLI
layer decides whether an error ends the process.

Taxonomy:
- Transport: CDPConnectionError and subclasses (HTTP/WebSocket failures, timeouts)
- Decode: CDPDecodeError (malformed JSON, unexpected shape, protocol mismatch)
- Command: CDPCommandError and subclasses (error responses, misuse of a session)
- User input: CDPUsageError (missing flags, unreadable import file)
"""

from typing import Optional


class CDPError(Exception):
    """Base exception for all CDP-related errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(
                f"{k}={v}" for k, v in self.details.items() if k != "recovery"
            )
            if details_str:
                return f"{self.message} ({details_str})"
        return self.message


class CDPConnectionError(CDPError):
    """Transport failures on the HTTP discovery endpoint or WebSocket channel."""

    pass


class EndpointUnreachableError(CDPConnectionError):
    """HTTP discovery endpoint could not be reached.

    Common causes: wrong port, browser not started with --remote-debugging-port.
    """

    pass


class ConnectionFailedError(CDPConnectionError):
    """WebSocket dial or handshake failed.

    Common causes: target closed, stale debugger URL, origin rejected.
    """

    pass


class ConnectionClosedError(CDPConnectionError):
    """WebSocket closed before the response frame arrived."""

    pass


class CDPTimeoutError(CDPConnectionError):
    """Blocking call did not complete within the caller's deadline."""

    def __init__(
        self,
        message: str,
        command_method: Optional[str] = None,
        timeout: Optional[float] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.command_method = command_method
        self.timeout = timeout

    def __str__(self):
        if self.command_method and self.timeout:
            return f"Command '{self.command_method}' timed out after {self.timeout}s"
        return super().__str__()


class CDPDecodeError(CDPError):
    """Response could not be decoded into the expected shape.

    Raised for malformed JSON, non-2xx HTTP status, wrong top-level types,
    oversized frames and response ids that do not match the request.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.source = source


class CDPCommandError(CDPError):
    """Command execution failures."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        error_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.method = method
        self.error_code = error_code


class CommandFailedError(CDPCommandError):
    """Browser answered the command with an error object.

    Example: Network.setCookies with a cookie missing both url and domain.
    """

    pass


class InvalidCommandError(CDPCommandError):
    """Command cannot be sent in the connection's current state.

    Example: a second exchange on a session that already received its response.
    """

    pass


class CDPTargetNotFoundError(CDPError):
    """Target discovery found nothing usable.

    Example: no targets at all when a tab-level command needs one.
    """

    def __init__(
        self,
        message: str,
        target_id: Optional[str] = None,
        url_pattern: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.target_id = target_id
        self.url_pattern = url_pattern

    def __str__(self):
        if self.target_id:
            return f"Target not found: {self.target_id}"
        if self.url_pattern:
            return f"No target matching URL pattern: {self.url_pattern}"
        return super().__str__()


class CDPUsageError(CDPError):
    """Invalid or missing user input caught at the dispatch layer.

    Attributes:
        usage: Usage line of the parser that rejected the input, if any
    """

    def __init__(
        self,
        message: str,
        usage: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.usage = usage
