"""
Auth API routes: register, login, logout, profile, token verification.

Route prefix: /api/auth
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError

from auth.dependencies import (
    get_current_user,
    get_optional_user,
    get_token_service,
    get_user_repository,
)
from auth.errors import (
    AuthenticationFailure,
    ConflictFailure,
    InternalFailure,
    NotFoundFailure,
    ValidationFailure,
)
from auth.password import hash_password, verify_password
from auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    public_user,
)
from auth.tokens import TokenService
from database.repository import DuplicateEmailError, UserPatch, UserRecord, UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


async def _hash(request: Request, password: str) -> str:
    rounds = request.app.state.settings.bcrypt_rounds
    try:
        return await run_in_threadpool(hash_password, password, rounds)
    except ValueError as exc:
        logger.exception("Password hashing failed")
        raise InternalFailure() from exc


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    req: RegisterRequest,
    request: Request,
    users: UserRepository = Depends(get_user_repository),
) -> Dict[str, Any]:
    """Register a new user. No token is issued; the client logs in next."""
    try:
        if await users.find_by_email(req.email) is not None:
            raise ConflictFailure()

        password_hash = await _hash(request, req.password)
        user = await users.create(
            email=req.email,
            given_names=req.given_names,
            surname=req.surname,
            password_hash=password_hash,
        )
        await users.commit()
    except DuplicateEmailError:
        # Lost a race with a concurrent registration for the same email.
        raise ConflictFailure()
    except SQLAlchemyError as exc:
        logger.exception("Registration failed for %s", req.email)
        raise InternalFailure() from exc

    logger.info("Registered user %s (%s)", user.email, user.id)
    return {
        "success": True,
        "message": "User registered successfully",
        "user": public_user(user),
    }


@router.post("/login")
async def login(
    req: LoginRequest,
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Login with email + password."""
    try:
        user = await users.find_by_email(req.email)
    except SQLAlchemyError as exc:
        logger.exception("Login lookup failed for %s", req.email)
        raise InternalFailure() from exc

    if user is None or not await run_in_threadpool(verify_password, req.password, user.password_hash):
        logger.warning("Failed login attempt for %s", req.email)
        raise AuthenticationFailure("Invalid credentials", reason="invalid_credentials")

    token = tokens.issue(user.id)
    logger.info("Login: %s (%s)", user.email, user.id)

    return {
        "success": True,
        "message": "Login successful",
        "token": token,
        "user": public_user(user),
    }


@router.post("/logout")
async def logout(
    user: Optional[UserRecord] = Depends(get_optional_user),
) -> Dict[str, Any]:
    """
    Stateless logout. There is no server-side session to end; an issued
    token stays valid until it expires, the client simply discards it.
    """
    if user is not None:
        logger.info("Logout: %s (%s)", user.email, user.id)
    return {"success": True, "message": "Logout successful"}


@router.get("/profile")
async def get_profile(
    current: UserRecord = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> Dict[str, Any]:
    """Return the authenticated user's profile, re-read from the store."""
    try:
        user = await users.find_by_id(current.id)
    except SQLAlchemyError as exc:
        logger.exception("Profile lookup failed for user %s", current.id)
        raise InternalFailure() from exc

    if user is None:
        raise NotFoundFailure()
    return {
        "success": True,
        "message": "Profile retrieved",
        "user": public_user(user),
    }


@router.put("/profile")
async def update_profile(
    req: UpdateProfileRequest,
    current: UserRecord = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> Dict[str, Any]:
    """Change any of email, given names and surname."""
    patch = UserPatch(email=req.email, given_names=req.given_names, surname=req.surname)
    try:
        if req.email is not None and req.email != current.email:
            owner = await users.find_by_email(req.email)
            if owner is not None and owner.id != current.id:
                raise ConflictFailure()
        user = await users.update(current.id, patch)
        await users.commit()
    except DuplicateEmailError:
        raise ConflictFailure()
    except SQLAlchemyError as exc:
        logger.exception("Profile update failed for user %s", current.id)
        raise InternalFailure() from exc

    if user is None:
        raise NotFoundFailure()
    logger.info("Profile updated for user %s", user.id)
    return {
        "success": True,
        "message": "Profile updated",
        "user": public_user(user),
    }


@router.put("/password")
async def change_password(
    req: ChangePasswordRequest,
    request: Request,
    current: UserRecord = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> Dict[str, Any]:
    """Replace the password after checking the current one."""
    if not await run_in_threadpool(verify_password, req.current_password, current.password_hash):
        raise ValidationFailure(["Current password is incorrect"])

    password_hash = await _hash(request, req.new_password)
    try:
        user = await users.update(current.id, UserPatch(password_hash=password_hash))
        await users.commit()
    except SQLAlchemyError as exc:
        logger.exception("Password change failed for user %s", current.id)
        raise InternalFailure() from exc

    if user is None:
        raise NotFoundFailure()
    logger.info("Password changed for user %s", user.id)
    return {"success": True, "message": "Password updated"}


@router.get("/verify")
async def verify(
    current: UserRecord = Depends(get_current_user),
) -> Dict[str, Any]:
    """Confirm the presented token is valid and return its user."""
    return {
        "success": True,
        "message": "Token valid",
        "user": public_user(current),
    }
