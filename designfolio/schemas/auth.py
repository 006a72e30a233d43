"""Request/response schemas for auth endpoints and the request identity."""

import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
# Lowercase, uppercase, digit and one of @$!%*?& ; nothing else allowed.
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[a-zA-Z\d@$!%*?&]+$"
)

USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 50
EMAIL_MAX_LEN = 100
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


class Role(str, Enum):
    """Stored account role. Admin status is not a role (see ADMIN_EMAILS)."""

    DESIGNER = "designer"
    VIEWER = "viewer"


def check_username(value: str) -> str:
    value = value.strip()
    if not (USERNAME_MIN_LEN <= len(value) <= USERNAME_MAX_LEN):
        raise ValueError(
            f"Username must be {USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} characters long!"
        )
    if not USERNAME_PATTERN.match(value):
        raise ValueError(
            "Username can only contain letters, numbers, underscore, and hyphen!"
        )
    return value


def check_strong_password(value: str, field_name: str = "password") -> str:
    if not (PASSWORD_MIN_LEN <= len(value) <= PASSWORD_MAX_LEN):
        raise ValueError(
            f"{field_name} must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters long!"
        )
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(
            f"{field_name} must contain lowercase, uppercase, number, "
            "and special character (@$!%*?&)!"
        )
    return value


class Identity(BaseModel):
    """Decoded access-token claims; the caller identity for one request."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: Role
    issued_at: datetime | None = None
    expires_at: datetime | None = None


class AuthContext(BaseModel):
    """Result of non-blocking authentication: identity when a valid token was sent."""

    model_config = ConfigDict(frozen=True)

    identity: Identity | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None


class AdminContext(BaseModel):
    """Identity that passed the admin allow-list check."""

    model_config = ConfigDict(frozen=True)

    identity: Identity
    is_admin: bool = True


class RegisterRequest(BaseModel):
    """New account payload."""

    username: str
    email: EmailStr = Field(..., max_length=EMAIL_MAX_LEN)
    password: str
    role: Role

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return check_username(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_strong_password(v, "password")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr = Field(..., max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr = Field(..., max_length=EMAIL_MAX_LEN)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=500)
    newPassword: str

    @field_validator("newPassword")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return check_strong_password(v, "newPassword")


class UserOut(BaseModel):
    """Public view of an account (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    username: str
    email: str
    role: Role
    createdAt: datetime | None = Field(default=None, validation_alias="created_at")


class AuthResponse(BaseModel):
    """Register/login/refresh response: user summary plus a bearer token."""

    message: str
    user: UserOut
    token: str


class MessageResponse(BaseModel):
    message: str


class VerifyResponse(BaseModel):
    message: str
    user: dict[str, Any]
