"""
CDP session management for target and browser discovery.

Queries the browser's debug HTTP endpoint (/json, /json/version) and builds
CDPConnection objects for the WebSocket URLs it advertises.
"""

import json
import socket
import urllib.request
import urllib.error
from typing import List, Optional, Dict, Any

from .connection import CDPConnection
from .exceptions import (
    CDPDecodeError,
    CDPError,
    CDPTargetNotFoundError,
    CDPTimeoutError,
    EndpointUnreachableError,
)


class Target:
    """
    Represents a debuggable browser target (tab, extension, service worker).

    Attributes:
        id: Unique target ID
        type: Target type ("page", "background_page", "service_worker", ...)
        title: Page title or worker name
        url: Target URL
        webSocketDebuggerUrl: CDP WebSocket URL for this target
        description: Additional metadata
        devtoolsFrontendUrl: DevTools UI URL
        faviconUrl: Page favicon URL
    """

    def __init__(self, target_data: Dict[str, Any]):
        """
        Initialize Target from one entry of the /json response.

        Missing or null keys become empty strings; the endpoint omits
        webSocketDebuggerUrl for targets that already have a client attached.
        """
        self.id = target_data.get("id") or ""
        self.type = target_data.get("type") or ""
        self.title = target_data.get("title") or ""
        self.url = target_data.get("url") or ""
        self.webSocketDebuggerUrl = target_data.get("webSocketDebuggerUrl") or ""
        self.description = target_data.get("description") or ""
        self.devtoolsFrontendUrl = target_data.get("devtoolsFrontendUrl") or ""
        self.faviconUrl = target_data.get("faviconUrl") or ""

    def matches(self, grep: Optional[str]) -> bool:
        """True if grep is empty or a case-sensitive substring of title or URL."""
        if not grep:
            return True
        return grep in self.title or grep in self.url

    def to_dict(self) -> Dict[str, Any]:
        """Convert target to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "url": self.url,
            "webSocketDebuggerUrl": self.webSocketDebuggerUrl,
            "description": self.description,
            "devtoolsFrontendUrl": self.devtoolsFrontendUrl,
            "faviconUrl": self.faviconUrl,
        }

    def __repr__(self):
        return f"Target(id={self.id!r}, type={self.type!r}, url={self.url!r})"


class BrowserVersion:
    """
    Browser metadata from /json/version.

    The WebSocket URL here addresses the browser-level session, which is
    where storage-wide commands such as Storage.getCookies are sent.
    """

    # attribute name -> key in the /json/version payload
    FIELDS = {
        "browser": "Browser",
        "protocolVersion": "Protocol-Version",
        "userAgent": "User-Agent",
        "v8Version": "V8-Version",
        "webkitVersion": "WebKit-Version",
        "webSocketDebuggerUrl": "webSocketDebuggerUrl",
    }

    def __init__(self, version_data: Dict[str, Any]):
        for attr, key in self.FIELDS.items():
            setattr(self, attr, version_data.get(key) or "")

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the endpoint's key names."""
        return {key: getattr(self, attr) for attr, key in self.FIELDS.items()}

    def __repr__(self):
        return f"BrowserVersion(browser={self.browser!r}, protocol={self.protocolVersion!r})"


class CDPSession:
    """
    Session manager for discovering targets and creating CDP connections.

    Usage:
        session = CDPSession("localhost", 9222)
        targets = session.list_targets(grep="bank")
        conn = session.connect_to_browser()

    Attributes:
        chrome_host: Debug endpoint host (default: "localhost")
        chrome_port: Remote debugging port
        timeout: Deadline for HTTP and WebSocket calls in seconds (None blocks forever)
        max_size: Maximum WebSocket message size passed to connections
    """

    def __init__(
        self,
        chrome_host: str = "localhost",
        chrome_port: int = 9222,
        timeout: Optional[float] = 30.0,
        max_size: int = 2_097_152,
    ):
        """
        Raises:
            ValueError: If chrome_port is out of range
        """
        if not 1 <= chrome_port <= 65535:
            raise ValueError(f"chrome_port must be 1-65535, got {chrome_port}")

        self.chrome_host = chrome_host
        self.chrome_port = chrome_port
        self.timeout = timeout
        self.max_size = max_size

    @property
    def base_url(self) -> str:
        return f"http://{self.chrome_host}:{self.chrome_port}"

    def _fetch_json(self, path: str) -> Any:
        """
        GET a discovery endpoint and decode its JSON body.

        Raises:
            CDPDecodeError: On non-2xx status or malformed JSON
            CDPTimeoutError: If the endpoint does not answer within timeout
            EndpointUnreachableError: If the endpoint cannot be reached
        """
        endpoint_url = f"{self.base_url}{path}"

        try:
            with urllib.request.urlopen(endpoint_url, timeout=self.timeout) as response:
                body = response.read()
        except urllib.error.HTTPError as e:
            raise CDPDecodeError(
                f"Unexpected HTTP status {e.code} from {endpoint_url}",
                source=endpoint_url,
                details={"status": e.code},
            ) from e
        except urllib.error.URLError as e:
            if isinstance(e.reason, (socket.timeout, TimeoutError)):
                raise CDPTimeoutError(
                    f"Timed out waiting for {endpoint_url}", timeout=self.timeout
                ) from e
            raise EndpointUnreachableError(
                f"Failed to connect to Chrome at {endpoint_url}: {e.reason}",
                details={
                    "chrome_host": self.chrome_host,
                    "chrome_port": self.chrome_port,
                    "recovery": "Ensure the browser is running with --remote-debugging-port",
                },
            ) from e
        except (socket.timeout, TimeoutError) as e:
            raise CDPTimeoutError(
                f"Timed out reading {endpoint_url}", timeout=self.timeout
            ) from e
        except OSError as e:
            raise EndpointUnreachableError(
                f"Failed to read from {endpoint_url}: {e}",
                details={"chrome_host": self.chrome_host, "chrome_port": self.chrome_port},
            ) from e

        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CDPDecodeError(
                f"Invalid JSON response from Chrome endpoint: {e}",
                source=endpoint_url,
            ) from e

    def list_targets(
        self,
        target_type: Optional[str] = None,
        grep: Optional[str] = None,
    ) -> List[Target]:
        """
        Fetch targets from /json in server order with optional filtering.

        Args:
            target_type: Keep only targets of this type ("page", "service_worker", ...)
            grep: Keep only targets whose title or URL contains this substring
                  (case-sensitive)

        Returns:
            List of Target objects matching filters (possibly empty)

        Raises:
            CDPError: If the endpoint is unreachable or returns invalid data
        """
        targets_data = self._fetch_json("/json")

        if not isinstance(targets_data, list) or not all(
            isinstance(item, dict) for item in targets_data
        ):
            raise CDPDecodeError(
                "Expected a JSON array of targets from /json",
                source=f"{self.base_url}/json",
            )

        targets = [Target(data) for data in targets_data]

        if target_type:
            targets = [t for t in targets if t.type == target_type]

        if grep:
            targets = [t for t in targets if t.matches(grep)]

        return targets

    def get_version(self) -> BrowserVersion:
        """
        Fetch browser metadata from /json/version.

        Raises:
            CDPError: If the endpoint is unreachable or returns invalid data
        """
        version_data = self._fetch_json("/json/version")

        if not isinstance(version_data, dict):
            raise CDPDecodeError(
                "Expected a JSON object from /json/version",
                source=f"{self.base_url}/json/version",
            )

        return BrowserVersion(version_data)

    def first_target(self) -> Target:
        """
        First target listed by /json, used for tab-level Network commands.

        Raises:
            CDPTargetNotFoundError: If the browser reports no targets
        """
        targets = self.list_targets()

        if not targets:
            raise CDPTargetNotFoundError(
                "No targets found",
                details={
                    "chrome_host": self.chrome_host,
                    "chrome_port": self.chrome_port,
                    "recovery": "Open a tab in the browser",
                },
            )

        return targets[0]

    def connect_to_target(self, target: Target) -> CDPConnection:
        """
        Create CDPConnection for given target (not yet connected).

        Raises:
            CDPError: If the target has no WebSocket URL
        """
        if not target.webSocketDebuggerUrl:
            raise CDPError(
                f"Target {target.id} has no WebSocket debugger URL",
                details={
                    "target": target.id,
                    "recovery": "Close other DevTools clients attached to this target",
                },
            )

        return CDPConnection(
            target.webSocketDebuggerUrl, timeout=self.timeout, max_size=self.max_size
        )

    def connect_to_browser(self) -> CDPConnection:
        """
        Create CDPConnection for the browser-level session (not yet connected).

        Raises:
            CDPError: If /json/version fails or carries no WebSocket URL
        """
        version = self.get_version()

        if not version.webSocketDebuggerUrl:
            raise CDPDecodeError(
                "Browser version data has no WebSocket debugger URL",
                source=f"{self.base_url}/json/version",
            )

        return CDPConnection(
            version.webSocketDebuggerUrl, timeout=self.timeout, max_size=self.max_size
        )
