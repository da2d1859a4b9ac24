"""
Cookie model and output transforms.

Three output formats are supported for a cookie dump:
- raw: the response frame exactly as the browser sent it (no filtering)
- human: labeled plain-text blocks, one per cookie
- modified: JSON array of LightCookie objects with a far-future
  expirationDate, the browser-extension cookie export shape
"""

import json
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .connection import CDPResponse
from .exceptions import CDPDecodeError, CDPUsageError

OUTPUT_FORMATS = ("human", "raw", "modified")

# Ten 365-day years
LIGHT_COOKIE_LIFETIME = 10 * 365 * 24 * 60 * 60


class Cookie:
    """
    Protocol cookie record.

    Every field is optional; absent or null strings read as "", numbers as 0
    and flags as False. The full record, including fields not modelled
    here, is kept in ``data`` and returned unchanged by ``to_dict()``.
    """

    def __init__(self, cookie_data: Dict[str, Any]):
        self.data = dict(cookie_data)
        self.name = cookie_data.get("name") or ""
        self.value = cookie_data.get("value") or ""
        self.domain = cookie_data.get("domain") or ""
        self.path = cookie_data.get("path") or ""
        self.expires = float(cookie_data.get("expires") or 0)
        self.size = int(cookie_data.get("size") or 0)
        self.httpOnly = bool(cookie_data.get("httpOnly"))
        self.secure = bool(cookie_data.get("secure"))
        self.session = bool(cookie_data.get("session"))
        self.sameSite = cookie_data.get("sameSite") or ""
        self.priority = cookie_data.get("priority") or ""

    def matches(self, grep: Optional[str]) -> bool:
        """True if grep is empty or a case-sensitive substring of name or domain."""
        if not grep:
            return True
        return grep in self.name or grep in self.domain

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.data)

    def __repr__(self):
        return f"Cookie(name={self.name!r}, domain={self.domain!r})"


class LightCookie:
    """Reduced cookie with a rewritten expiry, in extension export shape."""

    def __init__(self, name: str, value: str, domain: str, path: str, expiration_date: float):
        self.name = name
        self.value = value
        self.domain = domain
        self.path = path
        self.expirationDate = expiration_date

    @classmethod
    def from_cookie(cls, cookie: Cookie, now: Optional[float] = None) -> "LightCookie":
        """Project a Cookie, setting the expiry to now + 10 years in whole seconds."""
        if now is None:
            now = time.time()
        return cls(
            name=cookie.name,
            value=cookie.value,
            domain=cookie.domain,
            path=cookie.path,
            expiration_date=float(int(now) + LIGHT_COOKIE_LIFETIME),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "expirationDate": self.expirationDate,
        }


def decode_cookies(records: Iterable[Dict[str, Any]]) -> List[Cookie]:
    return [Cookie(record) for record in records]


def filter_cookies(cookies: Iterable[Cookie], grep: Optional[str] = None) -> List[Cookie]:
    """Keep cookies whose name or domain contains grep, in input order."""
    return [cookie for cookie in cookies if cookie.matches(grep)]


def _flag(value: bool) -> str:
    return "true" if value else "false"


def format_human(cookies: Iterable[Cookie]) -> str:
    """
    Render cookies as labeled blocks separated by blank lines.

    Example:
        name: SID
        value: abc
        ...
        priority: Medium
    """
    blocks = []
    for cookie in cookies:
        lines = [
            f"name: {cookie.name}",
            f"value: {cookie.value}",
            f"domain: {cookie.domain}",
            f"path: {cookie.path}",
            f"expires: {cookie.expires:f}",
            f"size: {cookie.size}",
            f"httpOnly: {_flag(cookie.httpOnly)}",
            f"secure: {_flag(cookie.secure)}",
            f"session: {_flag(cookie.session)}",
            f"sameSite: {cookie.sameSite}",
            f"priority: {cookie.priority}",
        ]
        blocks.append("\n".join(lines) + "\n\n")
    return "".join(blocks)


def format_modified(cookies: Iterable[Cookie], now: Optional[float] = None) -> str:
    """Render cookies as a compact JSON array of LightCookie objects."""
    if now is None:
        now = time.time()
    light_cookies = [LightCookie.from_cookie(cookie, now=now).to_dict() for cookie in cookies]
    return json.dumps(light_cookies, separators=(",", ":"))


def render_cookies(
    response: CDPResponse,
    output_format: str = "human",
    grep: Optional[str] = None,
    now: Optional[float] = None,
) -> str:
    """
    Shape a cookie-returning response for output.

    ``raw`` returns the frame verbatim and does not apply ``grep``.

    Raises:
        CDPUsageError: If output_format is unknown
        CDPDecodeError: If the response has no usable cookie list
    """
    if output_format not in OUTPUT_FORMATS:
        raise CDPUsageError(
            f"Unknown cookie format: {output_format}",
            details={"choices": "|".join(OUTPUT_FORMATS)},
        )

    if output_format == "raw":
        return response.raw

    cookies = filter_cookies(decode_cookies(response.cookies), grep)

    if output_format == "modified":
        return format_modified(cookies, now=now)
    return format_human(cookies)


def load_cookie_file(path: str) -> List[Dict[str, Any]]:
    """
    Read a cookie import file: a JSON array in Network.setCookies shape.

    The file is parsed and later re-serialised into the command, not spliced
    byte for byte: duplicate keys collapse to the last value, and Python's
    json module also accepts NaN/Infinity tokens.

    Raises:
        CDPUsageError: If the file cannot be read
        CDPDecodeError: If it is not valid JSON or not an array of objects
    """
    file_path = Path(path).expanduser()

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise CDPUsageError(
            f"Cannot read cookie file {file_path}: {e.strerror or e}",
            details={"path": str(file_path)},
        ) from e
    except UnicodeDecodeError as e:
        raise CDPDecodeError(
            f"Cookie file {file_path} is not UTF-8 text: {e}", source=str(file_path)
        ) from e

    try:
        cookies = json.loads(content)
    except json.JSONDecodeError as e:
        raise CDPDecodeError(
            f"Invalid JSON in cookie file {file_path}: {e}", source=str(file_path)
        ) from e

    if not isinstance(cookies, list) or not all(isinstance(c, dict) for c in cookies):
        raise CDPDecodeError(
            f"Cookie file {file_path} must contain a JSON array of cookie objects",
            source=str(file_path),
        )

    return cookies
