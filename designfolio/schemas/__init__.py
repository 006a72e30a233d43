"""Pydantic request/response schemas."""

from designfolio.schemas.auth import AdminContext, AuthContext, Identity, Role
from designfolio.schemas.health import HealthResponse

__all__ = [
    "AdminContext",
    "AuthContext",
    "HealthResponse",
    "Identity",
    "Role",
]
