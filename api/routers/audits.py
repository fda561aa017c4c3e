"""Audit endpoints."""

from fastapi import APIRouter, status

from api.deps import OrchestratorDep
from api.schemas.audit import AuditCreate, AuditReportRead
from api.schemas.responses import ErrorResponse, SuccessResponse

router = APIRouter(prefix="/audits", tags=["audits"])


@router.post(
    "",
    response_model=SuccessResponse[AuditReportRead],
    status_code=status.HTTP_201_CREATED,
    summary="Run an audit",
    responses={status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse}},
)
async def create_audit(
    audit_in: AuditCreate,
    orchestrator: OrchestratorDep,
) -> SuccessResponse[AuditReportRead]:
    """
    Run a complete audit synchronously and return the report.

    Unavailable signal sources degrade to fallback data and are listed in
    `degraded_signals`. A failed generation phase returns 502 with the
    phase name in the error details.
    """
    report = await orchestrator.run_audit(audit_in.to_profile())
    return SuccessResponse(
        data=AuditReportRead.from_report(report),
        meta={"degraded": bool(report.degraded_signals)},
    )
