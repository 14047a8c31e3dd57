"""
Standardized API Response Schemas.

Every clinic service operation returns a ``ServiceResult`` envelope. The
HTTP layer renders it unchanged, using ``status_code`` as the response
status, so clients see the same shape for successes and expected failures.
"""
from typing import Any, Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# Generic type for response data
T = TypeVar("T")


class ServiceResult(BaseModel, Generic[T]):
    """
    Outcome of a service operation.

    Expected failures (not found, forbidden, validation, conflict) are
    results, not exceptions. ``error`` carries the underlying detail for
    500s so operators can correlate with the logs.

    Example:
        ```python
        result = await service.find_one(patient_id, caller)
        if not result.success:
            return result.to_response()
        ```
    """

    success: bool = Field(description="Whether the operation succeeded")
    status_code: int = Field(description="HTTP status the result maps to")
    message: str = Field(description="Human-readable outcome message")
    data: T | None = Field(default=None, description="Response payload")
    error: str | None = Field(default=None, description="Error detail for failures")

    # ========================================
    # Constructors
    # ========================================
    @classmethod
    def ok(cls, message: str, data: Any = None, status_code: int = 200) -> "ServiceResult":
        return cls(success=True, status_code=status_code, message=message, data=data)

    @classmethod
    def created(cls, message: str, data: Any = None) -> "ServiceResult":
        return cls.ok(message, data, status_code=201)

    @classmethod
    def fail(cls, status_code: int, message: str, error: str | None = None) -> "ServiceResult":
        return cls(success=False, status_code=status_code, message=message, error=error)

    @classmethod
    def bad_request(cls, message: str) -> "ServiceResult":
        return cls.fail(400, message)

    @classmethod
    def unauthorized(cls, message: str) -> "ServiceResult":
        return cls.fail(401, message)

    @classmethod
    def forbidden(cls, message: str = "Permission denied") -> "ServiceResult":
        return cls.fail(403, message)

    @classmethod
    def not_found(cls, message: str) -> "ServiceResult":
        return cls.fail(404, message)

    @classmethod
    def conflict(cls, message: str) -> "ServiceResult":
        return cls.fail(409, message)

    @classmethod
    def internal(cls, message: str, error: Exception | str | None = None) -> "ServiceResult":
        return cls.fail(500, message, str(error) if error is not None else None)

    def to_response(self) -> JSONResponse:
        """Render as a JSON response with the envelope's status."""
        return JSONResponse(
            status_code=self.status_code,
            content=self.model_dump(mode="json"),
        )


class ErrorResponse(BaseModel):
    """
    Error shape produced by the global exception handlers.

    Mirrors a failed ``ServiceResult`` and adds the machine-readable code
    in ``error`` plus optional ``details``.
    """

    success: bool = Field(default=False)
    status_code: int
    message: str
    data: None = None
    error: str = Field(description="Machine-readable error code")
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(description="Service health status")
    service: str = Field(description="Service name")
    version: str = Field(description="Service version")
    environment: str = Field(description="Deployment environment")
    checks: dict[str, "HealthCheck"] = Field(
        default_factory=dict,
        description="Individual component health checks"
    )


class HealthCheck(BaseModel):
    """Individual health check result."""

    status: str = Field(description="Component status: healthy/unhealthy")
    latency_ms: float | None = Field(
        default=None,
        description="Response time in milliseconds"
    )
    message: str | None = Field(
        default=None,
        description="Additional status information"
    )


# Update forward references
HealthResponse.model_rebuild()
