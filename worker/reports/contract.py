"""Report JSON contract and data structures.

Defines the audit report format handed to the presentation layer.
All reports follow this contract for API responses and CLI output.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, StrEnum
from typing import Any
from uuid import UUID

from worker.signals.models import SubjectProfile, freeze, thaw


class ReportVersion(str, Enum):
    """Report schema versions."""

    V1_0 = "1.0"


CURRENT_VERSION = ReportVersion.V1_0


class Severity(StrEnum):
    """Qualitative rating attached to each analysis section."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class SectionFinding:
    """Output of one analysis phase."""

    narrative_text: str = ""
    severity: Severity = Severity.MEDIUM

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"text": self.narrative_text, "severity": self.severity.value}


@dataclass(frozen=True)
class SalesPitch:
    """Synthesized sales pitch built from all three findings."""

    headline: str = ""
    symptoms: tuple[str, ...] = ()  # usually three
    prognosis: str = ""
    treatment_plan: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "headline": self.headline,
            "symptoms": list(self.symptoms),
            "prognosis": self.prognosis,
            "treatment_plan": list(self.treatment_plan),
        }


@dataclass(frozen=True)
class CampaignExport:
    """Advertising campaign import file, kept as opaque delimited text."""

    csv: str

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"csv": self.csv}


@dataclass(frozen=True)
class AuditReport:
    """Terminal aggregate of one successful audit run.

    Every field comes from the same run; reports are never patched.
    """

    technical: SectionFinding
    branding: SectionFinding
    market: SectionFinding
    sales_pitch: SalesPitch
    campaign_export: CampaignExport

    # Metadata
    run_id: UUID
    subject: SubjectProfile
    generated_at: datetime
    degraded_signals: tuple[str, ...] = ()
    version: ReportVersion = CURRENT_VERSION
    signals: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "signals", freeze(self.signals))

    @property
    def google_ads_csv(self) -> str:
        return self.campaign_export.csv

    def sections(self) -> dict[str, SectionFinding]:
        """Analysis sections by name."""
        return {
            "technical": self.technical,
            "branding": self.branding,
            "market": self.market,
        }

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "run_id": str(self.run_id),
            "version": self.version.value,
            "generated_at": self.generated_at.isoformat(),
            "subject": self.subject.to_dict(),
            "technical": self.technical.to_dict(),
            "branding": self.branding.to_dict(),
            "market": self.market.to_dict(),
            "sales_pitch": self.sales_pitch.to_dict(),
            "google_ads_csv": self.google_ads_csv,
            "degraded_signals": list(self.degraded_signals),
            "signals": thaw(self.signals),
        }
