"""Response envelopes shared by the audit endpoints."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorDetail(BaseModel):
    """Body of a failed request, as rendered by the exception handlers."""

    code: str = Field(..., description="Error code, e.g. audit_failed or validation_error")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(None, description="Request field that failed validation")
    details: dict[str, Any] | None = Field(
        None, description="Extra context, e.g. the failed phase and its cause code"
    )


class ErrorResponse(BaseModel):
    """Error envelope: `{"error": {...}}`."""

    error: ErrorDetail


class SuccessResponse(BaseModel, Generic[T]):
    """Success envelope: the payload in `data`, run flags such as `degraded` in `meta`."""

    data: T
    meta: dict[str, Any] | None = None
