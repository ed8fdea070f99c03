"""Shared-secret gate for the admin surface.

Requests are classified into two tiers:

- **Public**: every `GET`/`HEAD`/`OPTIONS` request outside the admin prefixes.
- **Admin**: any mutating request (`POST`, `PUT`, `PATCH`, `DELETE`) and any
  request under an admin prefix.

Admin requests must carry `x-admin-token: <ADMIN_TOKEN>`. When `ADMIN_TOKEN` is
unset every admin request is refused. Refusals answer `404 {"error": "not_found"}`
so the admin surface is not advertised.

Configuration via environment variables:

- `ADMIN_TOKEN`: the shared secret.
- `ADMIN_PREFIXES`: comma-separated path prefixes that are admin for every
  method. Default: `/api/admin`
"""
from __future__ import annotations

import logging
import os
import secrets
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

ADMIN_TOKEN_HEADER = "x-admin-token"

_DEFAULT_ADMIN_PREFIXES = ("/api/admin",)
_READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def _parse_prefixes(env_var: str, defaults: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return defaults
    return tuple(p.strip() for p in raw.split(",") if p.strip())


class AdminTokenMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        admin_token: str | None = None,
        admin_prefixes: tuple[str, ...] | None = None,
    ):
        super().__init__(app)
        self.admin_token = admin_token or None
        self.admin_prefixes = admin_prefixes or _parse_prefixes(
            "ADMIN_PREFIXES", _DEFAULT_ADMIN_PREFIXES
        )

    async def dispatch(self, request: Request, call_next: Callable):
        if not self._is_admin(request):
            return await call_next(request)

        if not self._check_token(request):
            return JSONResponse(status_code=404, content={"error": "not_found"})

        return await call_next(request)

    def _is_admin(self, request: Request) -> bool:
        if request.method.upper() not in _READ_METHODS:
            return True
        path = request.url.path
        return any(path.startswith(p) for p in self.admin_prefixes)

    def _check_token(self, request: Request) -> bool:
        if not self.admin_token:
            return False
        token = request.headers.get(ADMIN_TOKEN_HEADER, "")
        return secrets.compare_digest(token.encode(), self.admin_token.encode())


def configure_auth(app, admin_token: str | None = None) -> None:
    """Install the admin gate. Without a token every admin route answers 404."""
    if admin_token is None:
        admin_token = os.getenv("ADMIN_TOKEN", "").strip()

    app.add_middleware(AdminTokenMiddleware, admin_token=admin_token or None)
    if admin_token:
        logger.info("admin token auth enabled")
    else:
        logger.info("admin routes disabled (ADMIN_TOKEN not set)")
