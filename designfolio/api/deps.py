"""
Authentication and authorization dependencies.

Routes compose them in order: authenticate -> role or admin gate -> ownership
gate. Each returns a typed value (Identity, AdminContext, OwnedResource) that
later dependencies and the endpoint receive as arguments.
"""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from designfolio.core.config import Settings, get_settings
from designfolio.core.database import get_db
from designfolio.core.errors import (
    ApiError,
    Forbidden,
    InternalError,
    NotFound,
    Unauthenticated,
)
from designfolio.core.rate_limit import client_address
from designfolio.core.security import TokenOutcome, TokenService
from designfolio.schemas.auth import AdminContext, AuthContext, Identity, Role
from designfolio.services.ownership import (
    OwnedResource,
    ResourceKind,
    get_ownership_path,
    resolve_owner,
)

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

WWW_AUTHENTICATE = {"WWW-Authenticate": "Bearer"}

# Failure outcome -> (error type, client message, machine-readable code)
_TOKEN_FAILURES: dict[TokenOutcome, tuple[type[ApiError], str, str]] = {
    TokenOutcome.EXPIRED: (Unauthenticated, "Token expired! Please login again!", "TOKEN_EXPIRED"),
    TokenOutcome.INVALID: (Unauthenticated, "Invalid token! Please login again!", "INVALID_TOKEN"),
    TokenOutcome.NOT_YET_VALID: (Unauthenticated, "Token not active yet!", "TOKEN_NOT_ACTIVE"),
    TokenOutcome.ERROR: (InternalError, "Authentication Failed!", "AUTH_ERROR"),
}


def get_token_service(
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenService:
    return TokenService.from_settings(settings)


def _route(request: Request) -> str:
    return f"{request.method} {request.url.path}"


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> Identity:
    """Dependency: require a valid Bearer access token and return the caller identity."""
    client = client_address(request)
    if credentials is None:
        logger.warning("auth outcome=no_token client=%s route=%s", client, _route(request))
        raise Unauthenticated(
            "Access denied! No authentication token provided!",
            headers=WWW_AUTHENTICATE,
        )

    result = tokens.verify(credentials.credentials)
    if not result.ok:
        logger.warning(
            "auth outcome=%s client=%s route=%s reason=%s",
            result.outcome.value,
            client,
            _route(request),
            result.reason,
        )
        error_cls, message, code = _TOKEN_FAILURES[result.outcome]
        headers = WWW_AUTHENTICATE if error_cls is Unauthenticated else None
        raise error_cls(message, code=code, headers=headers)

    identity = result.identity
    logger.info(
        "auth outcome=success user_id=%s username=%s client=%s route=%s",
        identity.id,
        identity.username,
        client,
        _route(request),
    )
    return identity


def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> AuthContext:
    """Dependency: like get_current_user but never rejects; failures mean anonymous."""
    client = client_address(request)
    if credentials is None:
        logger.debug("auth optional outcome=no_token client=%s route=%s", client, _route(request))
        return AuthContext()

    result = tokens.verify(credentials.credentials)
    if not result.ok:
        logger.info(
            "auth optional outcome=%s client=%s route=%s reason=%s",
            result.outcome.value,
            client,
            _route(request),
            result.reason,
        )
        return AuthContext()

    logger.info(
        "auth optional outcome=success user_id=%s username=%s client=%s route=%s",
        result.identity.id,
        result.identity.username,
        client,
        _route(request),
    )
    return AuthContext(identity=result.identity)


def check_role(identity: Identity | None, allowed: frozenset[Role]) -> Identity:
    if identity is None:
        raise Unauthenticated("Authentication required!")
    if identity.role not in allowed:
        required = sorted(role.value for role in allowed)
        logger.warning(
            "authorization denied user_id=%s username=%s role=%s required=%s",
            identity.id,
            identity.username,
            identity.role.value,
            ",".join(required),
        )
        raise Forbidden(
            f"Access denied! Required role: {' or '.join(required)}",
            extra={"userRole": identity.role.value, "requiredRoles": required},
        )
    return identity


def require_role(*roles: Role | str) -> Callable[..., Identity]:
    """Build a dependency admitting only the given roles; unknown role names raise ValueError."""
    allowed = frozenset(Role(role) for role in roles)
    if not allowed:
        raise ValueError("require_role needs at least one role")

    def dependency(identity: Annotated[Identity, Depends(get_current_user)]) -> Identity:
        return check_role(identity, allowed)

    return dependency


def check_admin(identity: Identity | None, settings: Settings, client: str = "unknown") -> AdminContext:
    if identity is None:
        raise Unauthenticated("Authentication required!")
    if not settings.is_admin(identity.email):
        logger.warning(
            "admin access denied user_id=%s username=%s email=%s client=%s",
            identity.id,
            identity.username,
            identity.email,
            client,
        )
        raise Forbidden("Admin access denied!", code="ADMIN_ACCESS_DENIED")
    logger.info(
        "admin access granted user_id=%s username=%s client=%s",
        identity.id,
        identity.username,
        client,
    )
    return AdminContext(identity=identity)


def require_admin(
    request: Request,
    identity: Annotated[Identity, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AdminContext:
    """Dependency: caller's email must be in ADMIN_EMAILS; stored role is irrelevant."""
    return check_admin(identity, settings, client_address(request))


def require_ownership(kind: ResourceKind | str) -> Callable[..., OwnedResource]:
    """
    Build a dependency that loads the resource named by the ``id`` path parameter
    and admits only its owner.

    Missing resource is 404, someone else's resource is 403. Unknown kinds
    raise ValueError here, when routes are declared.
    """
    kind = ResourceKind(kind)
    path = get_ownership_path(kind)

    def dependency(
        id: Annotated[int, Path(gt=0)],
        identity: Annotated[Identity, Depends(get_current_user)],
        db: Annotated[Session, Depends(get_db)],
    ) -> OwnedResource:
        try:
            resource = resolve_owner(db, kind, id)
        except SQLAlchemyError as e:
            logger.exception("ownership check failed kind=%s resource_id=%s", kind.value, id)
            raise InternalError("Server error!", details=[str(e)]) from e

        if resource is None:
            raise NotFound(f"{path.label} not found or you don't have access to it!")

        if resource.owner_id != identity.id:
            logger.warning(
                "ownership denied user_id=%s kind=%s resource_id=%s owner_id=%s",
                identity.id,
                kind.value,
                id,
                resource.owner_id,
            )
            raise Forbidden("You can only modify your own content!")
        return resource

    return dependency


CurrentUser = Annotated[Identity, Depends(get_current_user)]
OptionalUser = Annotated[AuthContext, Depends(get_optional_user)]
AdminUser = Annotated[AdminContext, Depends(require_admin)]
DbSession = Annotated[Session, Depends(get_db)]
