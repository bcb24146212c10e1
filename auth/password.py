"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic
salting and configurable work factor.  bcrypt only reads the first
72 bytes of its input; longer passwords are refused at validation time
(see ``auth.schemas``) and never reach ``hash_password``.
"""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt (auto-salted, work factor 12 unless overridden)."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a bcrypt hash.

    Passwords over ``MAX_PASSWORD_BYTES`` cannot have been stored, so they
    never match (older bcrypt releases would silently truncate them).
    """
    try:
        candidate = password.encode()
        if len(candidate) > MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(candidate, password_hash.encode())
    except (ValueError, TypeError, AttributeError):
        return False
