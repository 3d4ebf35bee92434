"""
Admin Token Authentication

Write and refresh operations are gated by a single shared secret,
configured via ADMIN_TOKEN and sent by callers in the X-Admin-Token
header. The comparison is exact and constant-time. When no secret is
configured every admin request is refused.

Protected routes: POST /data, POST /social-refresh
Everything else is public. CORS preflight (OPTIONS) is never gated.
"""

from __future__ import annotations

import hashlib
import hmac
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from clubsite.errors import Unauthorized

logger = logging.getLogger("clubsite.auth")

ADMIN_HEADER = "X-Admin-Token"

PROTECTED_ROUTES = {
    ("POST", "/data"),
    ("POST", "/social-refresh"),
}


class AdminGuard:
    """Exact-match check of a caller token against the configured secret."""

    def __init__(self, secret: str | None):
        self._secret_hash = hashlib.sha256(secret.encode()).digest() if secret else None
        if self._secret_hash is None:
            logger.warning("ADMIN_TOKEN not set — all admin writes will be refused.")

    @property
    def configured(self) -> bool:
        return self._secret_hash is not None

    def is_valid(self, token: str | None) -> bool:
        if self._secret_hash is None or not token:
            return False
        token_hash = hashlib.sha256(token.encode()).digest()
        return hmac.compare_digest(token_hash, self._secret_hash)

    def verify(self, token: str | None) -> None:
        if not self.is_valid(token):
            raise Unauthorized("Unauthorized")


class AdminTokenAuth(BaseHTTPMiddleware):
    """Rejects protected routes with 401 before the handler reads the body."""

    def __init__(self, app, guard: AdminGuard):
        super().__init__(app)
        self.guard = guard

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)

        if (request.method, request.url.path) not in PROTECTED_ROUTES:
            return await call_next(request)

        if not self.guard.is_valid(request.headers.get(ADMIN_HEADER)):
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Admin auth failed for {request.url.path} from {client}")
            return JSONResponse(status_code=401, content={"error": "Unauthorized"})

        return await call_next(request)
