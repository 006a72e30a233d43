"""Account self-service and admin user management endpoints."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from designfolio.api.deps import AdminUser, DbSession, require_role
from designfolio.core.config import Settings, get_settings
from designfolio.core.errors import Conflict, Forbidden, NotFound, Unauthenticated, ValidationFailed
from designfolio.core.rate_limit import client_address, rate_limit
from designfolio.core.security import hash_password, verify_password
from designfolio.models import User
from designfolio.schemas.auth import AdminContext, Identity, MessageResponse, Role
from designfolio.schemas.users import (
    AdminUserDetail,
    AdminUserResponse,
    Pagination,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RoleUpdateRequest,
    UserDetail,
    UserFilters,
    UserResponse,
    UsersListResponse,
    UserStats,
    UserStatsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()

AnyRole = Annotated[Identity, Depends(require_role(Role.DESIGNER, Role.VIEWER))]
AppSettings = Annotated[Settings, Depends(get_settings)]


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFound("User not found!")
    return user


def _ensure_admin_exists(db: Session, admin: AdminContext) -> None:
    """The allow-list is config; the admin's account may have been deleted since login."""
    if db.query(User.id).filter(User.email == admin.identity.email).first() is None:
        raise NotFound("Admin user not found!")


def _admin_view(user: User, settings: Settings) -> AdminUserDetail:
    detail = AdminUserDetail.model_validate(user)
    return detail.model_copy(update={"isAdmin": settings.is_admin(user.email)})


@router.put("/profile", response_model=UserResponse, dependencies=[Depends(rate_limit("api"))])
def update_profile(
    body: ProfileUpdateRequest,
    request: Request,
    identity: AnyRole,
    db: DbSession,
) -> UserResponse:
    """Change username and/or email; both must stay unique."""
    if not body.username and not body.email:
        raise ValidationFailed("No valid fields to update!")
    user = _get_user_or_404(db, identity.id)

    if body.username:
        taken = (
            db.query(User.id)
            .filter(User.username == body.username, User.id != user.id)
            .first()
        )
        if taken is not None:
            raise Conflict("Username already taken!")
        user.username = body.username
    if body.email:
        taken = db.query(User.id).filter(User.email == body.email, User.id != user.id).first()
        if taken is not None:
            raise Conflict("Email already taken!")
        user.email = body.email

    db.commit()
    db.refresh(user)
    logger.info(
        "profile update user_id=%s username=%s client=%s",
        user.id,
        user.username,
        client_address(request),
    )
    return UserResponse(message="Profile updated successfully!", user=UserDetail.model_validate(user))


@router.put(
    "/change-password",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit("auth"))],
)
def change_password(
    body: PasswordChangeRequest,
    request: Request,
    identity: AnyRole,
    db: DbSession,
    settings: AppSettings,
) -> MessageResponse:
    client = client_address(request)
    user = _get_user_or_404(db, identity.id)
    if not verify_password(body.currentPassword, user.password_hash):
        logger.warning("password change failed reason=bad_password user_id=%s client=%s", user.id, client)
        raise Unauthenticated("Current password is incorrect!")
    if verify_password(body.newPassword, user.password_hash):
        raise ValidationFailed("New password must be different from current password!")

    user.password_hash = hash_password(body.newPassword, settings.BCRYPT_ROUNDS)
    db.commit()
    logger.info("password change success user_id=%s client=%s", user.id, client)
    return MessageResponse(message="Password changed successfully!")


@router.delete("/account", response_model=MessageResponse, dependencies=[Depends(rate_limit("api"))])
def delete_account(request: Request, identity: AnyRole, db: DbSession) -> MessageResponse:
    user = _get_user_or_404(db, identity.id)
    db.delete(user)
    db.commit()
    logger.info(
        "account deleted user_id=%s username=%s client=%s",
        identity.id,
        identity.username,
        client_address(request),
    )
    return MessageResponse(message="Account deleted successfully!")


@router.get("", response_model=UsersListResponse, dependencies=[Depends(rate_limit("api"))])
def list_users(
    admin: AdminUser,
    db: DbSession,
    settings: AppSettings,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    role: Role | None = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
) -> UsersListResponse:
    """List accounts (admin only), newest first, optionally filtered by role and a search term."""
    _ensure_admin_exists(db, admin)

    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role.value)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.username.ilike(pattern), User.email.ilike(pattern)))

    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return UsersListResponse(
        message="Users retrieved successfully!",
        users=[_admin_view(u, settings) for u in users],
        pagination=Pagination.build(page, limit, total),
        filters=UserFilters(role=role, search=search or None),
    )


@router.get("/stats", response_model=UserStatsResponse, dependencies=[Depends(rate_limit("api"))])
def get_user_stats(admin: AdminUser, db: DbSession) -> UserStatsResponse:
    _ensure_admin_exists(db, admin)
    now = datetime.now(UTC)
    month_ago = now - timedelta(days=30)
    week_ago = now - timedelta(days=7)
    row = db.query(
        func.count(User.id),
        func.count(case((User.role == Role.DESIGNER.value, 1))),
        func.count(case((User.role == Role.VIEWER.value, 1))),
        func.count(case((User.created_at >= month_ago, 1))),
        func.count(case((User.created_at >= week_ago, 1))),
    ).one()
    total, designers, viewers, new_30, new_7 = row
    return UserStatsResponse(
        message="User statistics retrieved successfully!",
        stats=UserStats(
            totalUsers=total,
            designers=designers,
            viewers=viewers,
            newUsers30Days=new_30,
            newUsers7Days=new_7,
        ),
    )


@router.get("/{id}", response_model=AdminUserResponse, dependencies=[Depends(rate_limit("api"))])
def get_user(id: int, admin: AdminUser, db: DbSession, settings: AppSettings) -> AdminUserResponse:
    _ensure_admin_exists(db, admin)
    user = _get_user_or_404(db, id)
    return AdminUserResponse(message="User retrieved successfully!", user=_admin_view(user, settings))


@router.put("/{id}/role", response_model=AdminUserResponse, dependencies=[Depends(rate_limit("api"))])
def update_user_role(
    id: int,
    body: RoleUpdateRequest,
    admin: AdminUser,
    db: DbSession,
    settings: AppSettings,
) -> AdminUserResponse:
    """Change a user's stored role. Accounts on the admin allow-list cannot be changed."""
    _ensure_admin_exists(db, admin)
    user = _get_user_or_404(db, id)
    if settings.is_admin(user.email):
        raise Forbidden("Cannot change admin user role!")

    previous = user.role
    user.role = body.role.value
    db.commit()
    db.refresh(user)
    logger.info(
        "role update admin=%s user_id=%s username=%s from=%s to=%s",
        admin.identity.username,
        user.id,
        user.username,
        previous,
        user.role,
    )
    return AdminUserResponse(message="User role updated successfully!", user=_admin_view(user, settings))
