"""
Custom Exception Classes.

Request-level failures (missing, malformed or foreign-tenant bearer tokens)
are raised as ``AppException`` subclasses and converted to JSON
responses by the global handler in ``main``. Business outcomes of the
clinic services are returned as ``ServiceResult`` envelopes instead.
"""

from typing import Any


class AppException(Exception):
    """
    Base exception for all application-specific errors.

    The global exception handler converts these to HTTP responses.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "APP_ERROR",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render in the same shape as a failed ``ServiceResult``."""
        return {
            "success": False,
            "status_code": self.status_code,
            "message": self.message,
            "data": None,
            "error": self.error_code,
            "details": self.details,
        }

# ============================================
# 4xx Client Errors
# ============================================

class UnauthorizedError(AppException):
    """Authentication required or failed (401)."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: str = "UNAUTHORIZED",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, 401, details)

class ForbiddenError(AppException):
    """Permission denied (403)."""

    def __init__(
        self,
        message: str = "Permission denied",
        error_code: str = "FORBIDDEN",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, 403, details)

# ============================================
# Token / Tenancy Errors
# ============================================

class InvalidTokenError(UnauthorizedError):
    """Bearer token is malformed or carries a bad signature."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message=message, error_code="INVALID_TOKEN")

class TokenExpiredError(UnauthorizedError):
    """Bearer token is past its ``exp`` claim."""

    def __init__(self) -> None:
        super().__init__(message="Token has expired", error_code="TOKEN_EXPIRED")

class TenantScopeMissingError(ForbiddenError):
    """Token does not name the tenant the caller is acting in."""

    def __init__(self) -> None:
        super().__init__(
            message="Token is not scoped to a tenant",
            error_code="TENANT_SCOPE_MISSING",
        )
