"""Authentication middleware for FastAPI."""

import logging
from typing import Any, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from japavel.auth.jwt_service import JWTError, JWTService

logger = logging.getLogger(__name__)

DEFAULT_SKIP_PATHS = ("/docs", "/openapi.json", "/redoc")


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that extracts the JWT from the Authorization header.

    The middleware:
    1. Extracts Bearer token from Authorization header
    2. Decodes and validates the JWT
    3. Sets request.state.user to the claims, with "id" taken from "sub"

    If no token is present or token is invalid, request.state.user is None.
    The middleware does NOT reject unauthenticated requests. Install it
    outside TenantMiddleware so the "jwt" strategy and membership lookup
    can see the user.
    """

    def __init__(self, app, jwt_service: JWTService, skip_paths: Iterable[str] = DEFAULT_SKIP_PATHS):
        """Initialize middleware with JWT service.

        Args:
            app: The ASGI application
            jwt_service: JWT service for token validation
            skip_paths: Path prefixes that bypass token processing
        """
        super().__init__(app)
        self._jwt_service = jwt_service
        self._skip_paths = tuple(skip_paths)

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process the request and extract authentication info."""
        request.state.user = None

        if request.url.path.startswith(self._skip_paths):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header[7:]  # Remove "Bearer " prefix
            try:
                claims = self._jwt_service.decode_token(token)
                request.state.user = {**claims, "id": claims["sub"]}
            except JWTError as exc:
                # Invalid token - leave the request unauthenticated
                logger.warning("Rejected bearer token: %s", exc)

        return await call_next(request)


def get_request_user(request: Request) -> dict[str, Any] | None:
    """Get the authenticated user from the request state.

    Returns:
        The token claims plus "id" if authenticated, None otherwise
    """
    return getattr(request.state, "user", None)
