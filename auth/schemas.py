"""
Request / response schemas for the auth routes.

Bodies use camelCase keys on the wire (``givenNames``) and snake_case in
Python.  Validators raise ``PydanticCustomError`` so that the message text is
exactly what ends up in the ``errors`` list of a 400 response.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from auth.password import MAX_PASSWORD_BYTES

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
EMAIL_MAX_LENGTH = 255
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 8

FIELD_LABELS = {
    "email": "Email",
    "givenNames": "Given names",
    "surname": "Surname",
    "password": "Password",
    "currentPassword": "Current password",
    "newPassword": "New password",
    "confirmPassword": "Password confirmation",
}

REQUIRED_MESSAGES = {
    "givenNames": "Given names are required",
}


def _fail_on(kind: str, messages: List[str]) -> None:
    # ctx carries every broken rule; the handler expands it into ``errors``
    if messages:
        raise PydanticCustomError(kind, messages[0], {"messages": messages})


def _check_email(value: str) -> str:
    value = value.strip().lower()
    problems = []
    if not _EMAIL_RE.match(value):
        problems.append("Email must be a valid address")
    if len(value) > EMAIL_MAX_LENGTH:
        problems.append("Email must not exceed 255 characters")
    _fail_on("email_rules", problems)
    return value


def _check_name(value: str, label: str, required_message: str) -> str:
    value = unicodedata.normalize("NFC", value).strip()
    if not value:
        raise PydanticCustomError("name_required", required_message)
    problems = []
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        problems.append(f"{label} must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters")
    if not all(ch.isalpha() or ch.isspace() for ch in value):
        problems.append(f"{label} may only contain letters and spaces")
    _fail_on("name_rules", problems)
    return value


def _check_password_strength(value: str, label: str) -> str:
    problems = []
    if len(value) < PASSWORD_MIN_LENGTH:
        problems.append(f"{label} must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not (
        any(ch.islower() for ch in value)
        and any(ch.isupper() for ch in value)
        and any(ch.isdigit() for ch in value)
    ):
        problems.append(
            f"{label} must contain at least one uppercase letter, one lowercase letter and one number"
        )
    if any(ch.isspace() for ch in value):
        problems.append(f"{label} must not contain spaces")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        problems.append(f"{label} must not exceed {MAX_PASSWORD_BYTES} bytes")
    _fail_on("password_rules", problems)
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Requests ──────────────────────────────────────────────────────────


class RegisterRequest(_CamelModel):
    email: str
    given_names: str
    surname: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("given_names")
    @classmethod
    def _given_names(cls, value: str) -> str:
        return _check_name(value, "Given names", "Given names are required")

    @field_validator("surname")
    @classmethod
    def _surname(cls, value: str) -> str:
        return _check_name(value, "Surname", "Surname is required")

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        return _check_password_strength(value, "Password")


class LoginRequest(_CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("password_required", "Password is required")
        return value


class UpdateProfileRequest(_CamelModel):
    email: Optional[str] = None
    given_names: Optional[str] = None
    surname: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _email(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_email(value)

    @field_validator("given_names")
    @classmethod
    def _given_names(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_name(value, "Given names", "Given names are required")

    @field_validator("surname")
    @classmethod
    def _surname(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_name(value, "Surname", "Surname is required")

    @model_validator(mode="after")
    def _not_empty(self) -> "UpdateProfileRequest":
        if self.email is None and self.given_names is None and self.surname is None:
            raise PydanticCustomError("no_fields", "No fields to update")
        return self


class ChangePasswordRequest(_CamelModel):
    current_password: str
    new_password: str
    confirm_password: str

    @field_validator("current_password")
    @classmethod
    def _current(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("password_required", "Current password is required")
        return value

    @field_validator("new_password")
    @classmethod
    def _new(cls, value: str) -> str:
        return _check_password_strength(value, "New password")

    @model_validator(mode="after")
    def _confirmation_matches(self) -> "ChangePasswordRequest":
        if self.confirm_password != self.new_password:
            raise PydanticCustomError("password_mismatch", "Password confirmation does not match")
        return self


# ── Responses ─────────────────────────────────────────────────────────


class UserPublic(_CamelModel):
    """Public projection of a user. Never carries the password hash."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    email: str
    given_names: str
    surname: str
    created_at: datetime
    updated_at: datetime


def public_user(record) -> dict:
    return UserPublic.model_validate(record).model_dump(mode="json", by_alias=True)
