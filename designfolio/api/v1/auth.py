"""Registration, login, token refresh/verify and password reset endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from designfolio.api.deps import (
    CurrentUser,
    DbSession,
    OptionalUser,
    get_token_service,
)
from designfolio.core.config import Settings, get_settings
from designfolio.core.errors import Conflict, Unauthenticated, ValidationFailed
from designfolio.core.rate_limit import client_address, rate_limit
from designfolio.core.security import (
    RESET_TOKEN_TYPE,
    TokenService,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from designfolio.models import User
from designfolio.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserOut,
    VerifyResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()

Tokens = Annotated[TokenService, Depends(get_token_service)]
AppSettings = Annotated[Settings, Depends(get_settings)]

INVALID_CREDENTIALS = "Invalid email or password!"


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("register"))],
)
def register(
    body: RegisterRequest,
    request: Request,
    db: DbSession,
    tokens: Tokens,
    settings: AppSettings,
) -> AuthResponse:
    """Create an account and return it together with an access token."""
    existing = (
        db.query(User.id)
        .filter(or_(User.email == body.email, User.username == body.username))
        .first()
    )
    if existing is not None:
        raise Conflict("User already existing with this email or username!")

    user = User(
        username=body.username,
        email=body.email,
        password_hash=hash_password(body.password, settings.BCRYPT_ROUNDS),
        role=body.role.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("User already existing with this email or username!") from e
    db.refresh(user)

    logger.info(
        "registration success user_id=%s username=%s role=%s client=%s",
        user.id,
        user.username,
        user.role,
        client_address(request),
    )
    return AuthResponse(
        message="User registered successfully!",
        user=UserOut.model_validate(user),
        token=tokens.issue_access_token(user),
    )


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(rate_limit("auth"))])
def login(
    body: LoginRequest,
    request: Request,
    db: DbSession,
    tokens: Tokens,
    settings: AppSettings,
) -> AuthResponse:
    """
    Authenticate with email and password; returns an access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    client = client_address(request)
    user = db.query(User).filter(User.email == body.email).first()
    if user is None:
        verify_password(body.password, dummy_password_hash(settings.BCRYPT_ROUNDS))
        logger.warning("login failed reason=unknown_email client=%s", client)
        raise Unauthenticated(INVALID_CREDENTIALS)
    if not verify_password(body.password, user.password_hash):
        logger.warning("login failed reason=bad_password user_id=%s client=%s", user.id, client)
        raise Unauthenticated(INVALID_CREDENTIALS)

    logger.info("login success user_id=%s username=%s client=%s", user.id, user.username, client)
    return AuthResponse(
        message="Login successfully!",
        user=UserOut.model_validate(user),
        token=tokens.issue_access_token(user),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, auth: OptionalUser) -> MessageResponse:
    """Tokens are not revoked server side; the client discards its token."""
    if auth.is_authenticated:
        logger.info(
            "logout user_id=%s username=%s client=%s",
            auth.identity.id,
            auth.identity.username,
            client_address(request),
        )
    return MessageResponse(message="Logout successfully!")


@router.post("/refresh", response_model=AuthResponse)
def refresh_token(request: Request, identity: CurrentUser, tokens: Tokens) -> AuthResponse:
    """Issue a fresh access token carrying the caller's current claims."""
    logger.info(
        "token refresh user_id=%s username=%s client=%s",
        identity.id,
        identity.username,
        client_address(request),
    )
    return AuthResponse(
        message="Token refreshed successfully!",
        user=UserOut(
            id=identity.id,
            username=identity.username,
            email=identity.email,
            role=identity.role,
        ),
        token=tokens.issue_access_token(identity),
    )


@router.get("/verify", response_model=VerifyResponse)
def verify_token(identity: CurrentUser) -> VerifyResponse:
    return VerifyResponse(
        message="Token is valid!",
        user={
            "id": identity.id,
            "username": identity.username,
            "email": identity.email,
            "role": identity.role.value,
        },
    )


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit("api"))],
)
def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    db: DbSession,
    tokens: Tokens,
    settings: AppSettings,
) -> MessageResponse:
    """
    Issue a one-hour reset token. The response is identical whether or not the
    email exists. Delivering the link is left to an external mailer; it is
    only written to the debug log here.
    """
    user = db.query(User).filter(User.email == body.email).first()
    if user is not None:
        reset_token = tokens.issue_reset_token(user)
        logger.info("password reset requested user_id=%s", user.id)
        logger.debug(
            "password reset url=%s/reset-password?token=%s",
            settings.CORS_ORIGIN,
            reset_token,
        )
    else:
        logger.warning(
            "password reset requested for unknown email client=%s",
            client_address(request),
        )
    return MessageResponse(
        message="If an account with this email exists, a password reset link has been sent!"
    )


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit("api"))],
)
def reset_password(
    body: ResetPasswordRequest,
    request: Request,
    db: DbSession,
    tokens: Tokens,
    settings: AppSettings,
) -> MessageResponse:
    """Set a new password using a reset token. Access tokens are rejected."""
    client = client_address(request)
    result = tokens.verify(body.token, expected_type=RESET_TOKEN_TYPE)
    if not result.ok:
        logger.warning(
            "password reset failed outcome=%s client=%s", result.outcome.value, client
        )
        raise ValidationFailed("Invalid or expired reset token!")

    user = (
        db.query(User)
        .filter(User.id == int(result.claims["sub"]), User.email == result.claims.get("email"))
        .first()
    )
    if user is None:
        logger.warning("password reset failed reason=user_not_found client=%s", client)
        raise ValidationFailed("Invalid reset token!")

    user.password_hash = hash_password(body.newPassword, settings.BCRYPT_ROUNDS)
    db.commit()
    logger.info("password reset success user_id=%s client=%s", user.id, client)
    return MessageResponse(
        message="Password reset successfully! You can now login with your new password!"
    )
