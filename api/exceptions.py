"""Custom exceptions and error handling."""

from enum import StrEnum
from typing import Any

from fastapi import status


class AuditPipelineError(Exception):
    """Base exception for the audit pipeline."""

    def __init__(
        self,
        message: str,
        code: str = "error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ContractErrorKind(StrEnum):
    """Ways a phase output can violate its contract."""

    MALFORMED = "malformed"  # Not parseable as a JSON object
    EMPTY = "empty"  # Nothing left after trimming


class ContractError(AuditPipelineError):
    """Generation output could not be turned into the expected structure."""

    def __init__(self, kind: ContractErrorKind, message: str):
        self.kind = kind
        super().__init__(
            message=message,
            code=f"contract_{kind.value}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"kind": kind.value},
        )


class EngineErrorKind(StrEnum):
    """Generation engine failure classes."""

    EMPTY_RESPONSE = "empty_response"
    TRANSPORT_FAILURE = "transport_failure"  # network, auth, quota, timeout


class EngineError(AuditPipelineError):
    """Generation engine call failed."""

    def __init__(
        self,
        kind: EngineErrorKind,
        message: str,
        provider: str | None = None,
    ):
        self.kind = kind
        self.provider = provider
        details: dict[str, Any] = {"kind": kind.value}
        if provider:
            details["provider"] = provider
        super().__init__(
            message=message,
            code=f"engine_{kind.value}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details,
        )


class AuditFailedError(AuditPipelineError):
    """An audit run aborted because one of its phases failed."""

    def __init__(self, phase: str, cause: BaseException):
        self.phase = phase
        self.cause = cause
        cause_code = cause.code if isinstance(cause, AuditPipelineError) else "exception"
        super().__init__(
            message=f"Audit failed in phase '{phase}': {cause}",
            code="audit_failed",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"phase": phase, "cause": cause_code},
        )
