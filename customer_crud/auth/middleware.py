"""
HTTP Basic authentication middleware.

Runs before routing, so unauthenticated requests are rejected before any
path parameter or body is parsed.
"""

import logging
from typing import Callable

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from customer_crud.auth.dependencies import (
    CredentialVerifier,
    parse_basic_credentials,
    unauthorized_error,
)
from customer_crud.observability.logging import set_user

logger = logging.getLogger(__name__)


class BasicAuthMiddleware(BaseHTTPMiddleware):
    """
    Enforce HTTP Basic authentication on every path under `protected_prefix`.

    Usage:
        app.add_middleware(
            BasicAuthMiddleware,
            verify=configured_credentials(login, password_hash),
            protected_prefix="/customers",
        )

    On success the login is attached to request.state.user and bound into
    the logging context.
    """

    def __init__(self, app: ASGIApp, verify: CredentialVerifier, protected_prefix: str):
        super().__init__(app)
        self.verify = verify
        self.protected_prefix = protected_prefix.rstrip("/")

    def is_protected(self, path: str) -> bool:
        return path == self.protected_prefix or path.startswith(self.protected_prefix + "/")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.is_protected(request.url.path):
            return await call_next(request)

        try:
            login, password = parse_basic_credentials(request.headers.get("authorization"))
            if not await self.verify(login, password):
                logger.warning(f"Basic authentication failed for login: {login}")
                raise unauthorized_error("Unauthorized")
        except HTTPException as e:
            return JSONResponse(
                status_code=e.status_code,
                content={"detail": e.detail},
                headers=e.headers,
            )

        request.state.user = login
        set_user(login)
        return await call_next(request)
