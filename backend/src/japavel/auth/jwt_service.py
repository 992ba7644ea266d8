"""JWT validation for requests entering a tenant-aware application."""

from __future__ import annotations

import os
from typing import Any

import jwt


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid or malformed."""

    pass


class JWTService:
    """Validates bearer tokens issued by the host application's auth server.

    Only decoding happens here; issuing tokens is the auth server's job.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        """Initialize the JWT service.

        Args:
            secret_key: Key the tokens are signed with
            algorithm: JWT algorithm (default HS256)
        """
        self._secret_key = secret_key
        self._algorithm = algorithm

    @classmethod
    def from_env(cls) -> JWTService:
        """Create from JAPAVEL_JWT_SECRET and JAPAVEL_JWT_ALGORITHM.

        Raises:
            RuntimeError: If JAPAVEL_JWT_SECRET is not set
        """
        secret = os.environ.get("JAPAVEL_JWT_SECRET")
        if not secret:
            raise RuntimeError("JAPAVEL_JWT_SECRET must be set to validate tokens")
        return cls(secret, algorithm=os.environ.get("JAPAVEL_JWT_ALGORITHM", "HS256"))

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode and validate a JWT token.

        Args:
            token: The JWT token string

        Returns:
            The token claims

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid, malformed or has no subject
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        if not payload.get("sub"):
            raise InvalidTokenError("Invalid token: missing subject")
        return payload
