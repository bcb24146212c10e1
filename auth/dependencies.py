"""
FastAPI dependencies for authentication.

Provides ``get_user_repository``, ``get_token_service`` and the two
access-control gates used across protected routes:

* ``get_current_user``: rejects the request with 401 unless a valid bearer
  token for an existing user is presented.
* ``get_optional_user``: same checks, but never rejects; yields ``None``
  for anonymous callers.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import AuthenticationFailure, InternalFailure
from auth.tokens import TokenExpiredError, TokenInvalidError, TokenService
from database.repository import UserRecord, UserRepository
from database.session import get_db_session

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "Bearer "


async def get_user_repository(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[UserRepository, None]:
    """Yield a repository bound to the request's DB session."""
    yield UserRepository(session)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def _extract_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthenticationFailure("Access token required", reason="missing_credential")
    if not authorization.startswith(_BEARER_PREFIX):
        raise AuthenticationFailure(
            "Invalid token format. Use: Bearer <token>", reason="malformed_credential"
        )
    token = authorization[len(_BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationFailure("Token not provided", reason="missing_credential")
    return token


async def _resolve_user(
    authorization: Optional[str],
    tokens: TokenService,
    users: UserRepository,
) -> UserRecord:
    token = _extract_token(authorization)

    try:
        user_id = tokens.verify(token)
    except TokenExpiredError:
        raise AuthenticationFailure("Token expired", reason="expired")
    except TokenInvalidError:
        raise AuthenticationFailure("Invalid token", reason="invalid")

    try:
        user = await users.find_by_id(user_id)
    except SQLAlchemyError as exc:
        logger.exception("User lookup failed while authenticating user_id=%s", user_id)
        raise InternalFailure() from exc

    if user is None:
        raise AuthenticationFailure("User not found", reason="subject_missing")
    return user


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
    tokens: TokenService = Depends(get_token_service),
    users: UserRepository = Depends(get_user_repository),
) -> UserRecord:
    """
    Extract and verify the Bearer token from the Authorization header and
    return the authenticated user, also attached as ``request.state.user``.
    """
    try:
        user = await _resolve_user(authorization, tokens, users)
    except AuthenticationFailure as exc:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.reason)
        raise
    request.state.user = user
    return user


async def get_optional_user(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
    tokens: TokenService = Depends(get_token_service),
    users: UserRepository = Depends(get_user_repository),
) -> Optional[UserRecord]:
    """Like ``get_current_user`` but returns ``None`` instead of rejecting."""
    try:
        user = await _resolve_user(authorization, tokens, users)
    except AuthenticationFailure as exc:
        if authorization:
            logger.debug("Ignoring optional credential: %s", exc.reason)
        return None
    except InternalFailure:
        return None
    request.state.user = user
    return user
