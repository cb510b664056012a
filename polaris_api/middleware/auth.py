"""Authentication middleware for session tokens and the admin API key."""

import logging
from collections.abc import Callable

import bcrypt
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from ..config import settings
from ..errors import AppError, AuthenticationError, PermissionDeniedError, TokenError
from ..models import ErrorResponse
from ..telemetry import TelemetryEvents, bind_openid, record_error_code, track_event

logger = logging.getLogger(__name__)


def error_response(request: Request, error: AppError) -> JSONResponse:
    """Render an AppError as the JSON error envelope, noting its code for telemetry."""
    record_error_code(request, int(error.code))
    body = ErrorResponse(code=int(error.code), message=error.message)
    return JSONResponse(status_code=error.http_status, content=body.model_dump())


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware for authenticating requests.

    - Public paths pass through untouched.
    - ``/admin/*`` requires the admin API key header, checked against a
      bcrypt hash.
    - Everything else requires ``Authorization: Bearer <token>``, verified
      by the ``SessionTokenIssuer`` on ``app.state``.

    Sets ``request.state.openid`` for bearer-authenticated requests.
    """

    # Paths that don't require authentication
    PUBLIC_PATHS = [
        "/",
        "/health",
        "/version",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/auth/wechat-login",
        "/auth/app-version",
    ]

    PUBLIC_PREFIXES = ["/uploads/"]

    ADMIN_PREFIX = "/admin"

    def _is_public(self, path: str) -> bool:
        return path in self.PUBLIC_PATHS or any(
            path.startswith(prefix) for prefix in self.PUBLIC_PREFIXES
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request through authentication."""
        path = request.url.path

        if request.method == "OPTIONS" or self._is_public(path):
            return await call_next(request)

        try:
            if path == self.ADMIN_PREFIX or path.startswith(self.ADMIN_PREFIX + "/"):
                self._verify_admin_key(request)
                request.state.is_admin = True
            else:
                openid = self._verify_bearer(request)
                request.state.openid = openid
                bind_openid(openid)
        except AppError as e:
            return error_response(request, e)

        return await call_next(request)

    def _verify_admin_key(self, request: Request) -> None:
        """Check the admin key header against the configured bcrypt hash.

        Raises:
            PermissionDeniedError: admin access not configured, key missing or wrong
        """
        key_hash = settings.admin_api_key_hash
        if not key_hash:
            logger.warning("Admin request rejected: no admin key configured")
            track_event(TelemetryEvents.ADMIN_KEY_REJECTED, {"reason": "not_configured"})
            raise PermissionDeniedError("admin access is not configured")

        api_key = request.headers.get(settings.admin_api_key_header)
        if not api_key:
            track_event(TelemetryEvents.ADMIN_KEY_REJECTED, {"reason": "missing"})
            raise PermissionDeniedError(f"missing {settings.admin_api_key_header} header")

        try:
            valid = bcrypt.checkpw(api_key.encode(), key_hash.encode())
        except ValueError:
            logger.error("Configured admin key hash is not a valid bcrypt hash")
            valid = False

        if not valid:
            track_event(TelemetryEvents.ADMIN_KEY_REJECTED, {"reason": "invalid"})
            raise PermissionDeniedError("invalid admin key")

    def _verify_bearer(self, request: Request) -> str:
        """Verify the bearer token and return its openid.

        Raises:
            AuthenticationError: header missing or not a bearer token
            TokenError: token rejected by the issuer
        """
        auth_header = request.headers.get("Authorization", "")
        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("missing or invalid Authorization header")

        issuer = request.app.state.token_issuer
        try:
            return issuer.verify(token.strip())
        except TokenError as e:
            logger.debug(f"Token rejected: {type(e).__name__}")
            track_event(TelemetryEvents.TOKEN_REJECTED, {"reason": type(e).__name__})
            raise
