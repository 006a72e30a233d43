"""Request/response schemas for account and admin user endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from designfolio.schemas.auth import (
    EMAIL_MAX_LEN,
    PASSWORD_MAX_LEN,
    Role,
    check_strong_password,
    check_username,
)


class UserDetail(BaseModel):
    """Account as seen by its owner or an admin."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: Role
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AdminUserDetail(UserDetail):
    isAdmin: bool = False


class ProfileUpdateRequest(BaseModel):
    username: str | None = None
    email: EmailStr | None = Field(default=None, max_length=EMAIL_MAX_LEN)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        return None if v is None else check_username(v)


class PasswordChangeRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    newPassword: str
    confirmPassword: str

    @field_validator("newPassword")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return check_strong_password(v, "newPassword")

    @model_validator(mode="after")
    def passwords_match(self) -> "PasswordChangeRequest":
        if self.confirmPassword != self.newPassword:
            raise ValueError("Password confirmation does not match new password!")
        return self


class RoleUpdateRequest(BaseModel):
    role: Role


class UserResponse(BaseModel):
    message: str
    user: UserDetail


class AdminUserResponse(BaseModel):
    message: str
    user: AdminUserDetail


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalCount: int
    limit: int
    hasNextPage: bool
    hasPrevPage: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = (total + limit - 1) // limit
        return cls(
            currentPage=page,
            totalPages=total_pages,
            totalCount=total,
            limit=limit,
            hasNextPage=page < total_pages,
            hasPrevPage=page > 1,
        )


class UserFilters(BaseModel):
    role: Role | None = None
    search: str | None = None


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    message: str
    users: list[AdminUserDetail]
    pagination: Pagination
    filters: UserFilters


class UserStats(BaseModel):
    totalUsers: int
    designers: int
    viewers: int
    newUsers30Days: int
    newUsers7Days: int


class UserStatsResponse(BaseModel):
    message: str
    stats: UserStats
