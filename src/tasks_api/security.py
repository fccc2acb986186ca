"""
API key gate.

Every request must carry an ``X-Api-Key`` header equal to the configured secret,
except requests for the root path and the interactive documentation.
"""

import logging

from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Api-Key"
DOCS_ROOT = "/swagger"
UNAUTHORIZED_MESSAGE = "Unauthorized: Invalid or Missing API Key."


def is_public_path(path: str, docs_root: str = DOCS_ROOT) -> bool:
    """Return True for ``/`` and for the docs root or any path beneath it."""
    if path == "/":
        return True
    lowered = path.lower()
    root = docs_root.lower().rstrip("/")
    return lowered == root or lowered.startswith(root + "/")


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Reject requests lacking a matching API key with a plain-text 401."""

    def __init__(self, app, api_key: str, docs_root: str = DOCS_ROOT):
        super().__init__(app)
        self.api_key = api_key
        self.docs_root = docs_root

    async def dispatch(self, request: Request, call_next):
        if is_public_path(request.url.path, self.docs_root):
            return await call_next(request)

        presented = request.headers.get(API_KEY_HEADER)
        if presented is None or presented != self.api_key:
            logger.warning(f"Rejected {request.method} {request.url.path}: invalid or missing API key")
            return PlainTextResponse(UNAUTHORIZED_MESSAGE, status_code=401)

        return await call_next(request)
