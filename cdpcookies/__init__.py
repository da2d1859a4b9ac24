"""Chrome DevTools Protocol cookie client.

This package provides:
- CDPSession: Target and browser-version discovery over the HTTP debug endpoint
- CDPConnection: Single request/response exchange over the WebSocket channel
- Cookie transforms: human, raw and modified (extension export) projections
- CLI: list pages, dump, clear and load cookies
"""

__version__ = "0.1.0"
