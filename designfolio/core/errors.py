"""API error types rendered as ``{"error": ..., "code": ..., "details": ...}``."""

from typing import Any

from fastapi import status


class ApiError(Exception):
    """Base error carrying an HTTP status, a client message and optional code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: list[Any] | None = None,
        extra: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.extra = extra or {}
        self.headers = headers

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.code:
            body["code"] = self.code
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT


class ValidationFailed(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class RateLimited(ApiError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class ServiceUnavailable(ApiError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class InternalError(ApiError):
    """500; ``details`` is only exposed when DEBUG is enabled."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
