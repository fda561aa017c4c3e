"""Audit request and report schemas."""

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import AnyHttpUrl, BaseModel, Field

from worker.reports.contract import AuditReport
from worker.signals.models import SubjectProfile


class AuditCreate(BaseModel):
    """Schema for requesting an audit."""

    name: str = Field(..., min_length=1, max_length=200, description="Professional or clinic name")
    locality: str = Field(..., min_length=1, max_length=200, description="City or region")
    category: str = Field(..., min_length=1, max_length=200, description="Medical specialty")
    url: AnyHttpUrl | None = Field(None, description="Website to audit")

    def to_profile(self) -> SubjectProfile:
        return SubjectProfile(
            name=self.name.strip(),
            locality=self.locality.strip(),
            category=self.category.strip(),
            url=str(self.url) if self.url else None,
        )


class SubjectRead(BaseModel):
    name: str
    locality: str
    category: str
    url: str | None


class SectionFindingRead(BaseModel):
    """One analysis section."""

    text: str
    severity: Literal["low", "medium", "high"]


class SalesPitchRead(BaseModel):
    headline: str
    symptoms: list[str]
    prognosis: str
    treatment_plan: list[str]


class AuditReportRead(BaseModel):
    """Schema for reading a completed audit report."""

    run_id: uuid.UUID
    version: str
    generated_at: datetime
    subject: SubjectRead
    technical: SectionFindingRead
    branding: SectionFindingRead
    market: SectionFindingRead
    sales_pitch: SalesPitchRead
    google_ads_csv: str
    degraded_signals: list[str] = Field(
        default_factory=list,
        description="Signal categories that used fallback data",
    )
    signals: dict[str, Any] = Field(default_factory=dict, description="Collected signal values")

    @classmethod
    def from_report(cls, report: AuditReport) -> "AuditReportRead":
        return cls.model_validate(report.to_dict())
