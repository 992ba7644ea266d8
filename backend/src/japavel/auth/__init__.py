"""Authentication module for Japavel."""

from japavel.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
)
from japavel.auth.middleware import AuthMiddleware, get_request_user

__all__ = [
    "AuthMiddleware",
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "TokenExpiredError",
    "get_request_user",
]
