"""
JWT creation and verification.

Tokens carry the user id in ``sub`` plus ``iat``/``exp`` claims and are
signed with ``config.jwt_secret`` (env var: ``JWT_SECRET``).
"""

from __future__ import annotations

import time

import jwt


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpiredError(TokenError):
    """Signature is valid but ``exp`` has passed."""


class TokenInvalidError(TokenError):
    """Bad signature, malformed token or unusable payload."""


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens."""

    def __init__(self, secret: str, expiry_seconds: int = 86400, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self.expiry_seconds = expiry_seconds
        self.algorithm = algorithm

    def issue(self, subject_id: int) -> str:
        """Create a signed token for ``subject_id``."""
        now = int(time.time())
        payload = {
            "sub": str(subject_id),
            "iat": now,
            "exp": now + self.expiry_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """
        Verify ``token`` and return the subject id.

        Raises ``TokenExpiredError`` or ``TokenInvalidError``.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalidError(str(exc)) from exc

        try:
            return int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise TokenInvalidError("subject is not a user id") from exc
