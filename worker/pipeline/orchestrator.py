"""Audit orchestrator - collect signals, analyze, synthesize.

One run moves through COLLECTING -> ANALYZING -> SYNTHESIZING and ends in
COMPLETE or FAILED. Signal collection never fails a run; any engine or
contract error in a generation phase does, and no partial report is
produced.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

import structlog

from api.exceptions import AuditFailedError
from worker.generation.runner import PhaseRunner
from worker.pipeline import prompts
from worker.pipeline.config import AuditConfig
from worker.pipeline.graph import PhaseExecutionError, PhaseGraph, PhaseNode
from worker.reports.contract import AuditReport, CampaignExport, SalesPitch, SectionFinding
from worker.reports.validator import (
    SALES_PITCH_SCHEMA,
    SECTION_FINDING_SCHEMA,
    validate,
    validate_campaign_export,
)
from worker.signals.collector import SignalCollector
from worker.signals.models import CollectionContext, SubjectProfile

logger = structlog.get_logger(__name__)


class AuditStage(StrEnum):
    """Lifecycle of one audit run."""

    COLLECTING = "collecting"
    ANALYZING = "analyzing"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    FAILED = "failed"


# Graph stage index -> run stage
GRAPH_STAGES = (AuditStage.ANALYZING, AuditStage.SYNTHESIZING)

TECHNICAL = "technical"
BRANDING = "branding"
MARKET = "market"
SALES_PITCH = "sales_pitch"
CAMPAIGN_EXPORT = "campaign_export"

StageCallback = Callable[[AuditStage], None]


class AuditOrchestrator:
    """Runs audits. Holds configuration and clients only; each run owns its own state."""

    def __init__(
        self,
        config: AuditConfig | None = None,
        collector: SignalCollector | None = None,
        runner: PhaseRunner | None = None,
    ):
        self.config = config or AuditConfig()
        self.collector = collector or SignalCollector(self.config.collector)
        self.runner = runner or PhaseRunner(self.config.generation)

    async def _analyze(self, phase: str, role: str, payload: str) -> SectionFinding:
        raw = await self.runner.run_phase(role, payload, structured=True, phase=phase)
        finding = validate(raw, SECTION_FINDING_SCHEMA)
        logger.info("phase_completed", phase=phase, severity=finding.severity.value)
        return finding

    async def _sales_pitch(
        self, profile: SubjectProfile, inputs: dict[str, Any]
    ) -> SalesPitch:
        payload = prompts.sales_pitch_payload(
            profile, inputs[TECHNICAL], inputs[BRANDING], inputs[MARKET]
        )
        raw = await self.runner.run_phase(
            prompts.SALES_PITCH_ROLE, payload, structured=True, phase=SALES_PITCH
        )
        pitch = validate(raw, SALES_PITCH_SCHEMA)
        logger.info("phase_completed", phase=SALES_PITCH, symptoms=len(pitch.symptoms))
        return pitch

    async def _campaign_export(
        self, profile: SubjectProfile, inputs: dict[str, Any]
    ) -> CampaignExport:
        payload = prompts.campaign_export_payload(profile, inputs[TECHNICAL], inputs[MARKET])
        raw = await self.runner.run_phase(
            prompts.CAMPAIGN_EXPORT_ROLE, payload, structured=False, phase=CAMPAIGN_EXPORT
        )
        export = validate_campaign_export(raw)
        logger.info("phase_completed", phase=CAMPAIGN_EXPORT, lines=export.csv.count("\n") + 1)
        return export

    def build_graph(self, profile: SubjectProfile, context: CollectionContext) -> PhaseGraph:
        """
        Build the phase DAG for one run.

        The three analyses read only the collection context. The sales pitch
        needs all three findings; the campaign export needs technical and market.
        """
        technical_payload = prompts.technical_payload(profile, context)
        branding_payload = prompts.branding_payload(profile, context)
        market_payload = prompts.market_payload(profile, context)

        return PhaseGraph(
            [
                PhaseNode(
                    TECHNICAL,
                    lambda _: self._analyze(TECHNICAL, prompts.TECHNICAL_ROLE, technical_payload),
                ),
                PhaseNode(
                    BRANDING,
                    lambda _: self._analyze(BRANDING, prompts.BRANDING_ROLE, branding_payload),
                ),
                PhaseNode(
                    MARKET,
                    lambda _: self._analyze(MARKET, prompts.MARKET_ROLE, market_payload),
                ),
                PhaseNode(
                    SALES_PITCH,
                    lambda inputs: self._sales_pitch(profile, dict(inputs)),
                    depends_on=(TECHNICAL, BRANDING, MARKET),
                ),
                PhaseNode(
                    CAMPAIGN_EXPORT,
                    lambda inputs: self._campaign_export(profile, dict(inputs)),
                    depends_on=(TECHNICAL, MARKET),
                ),
            ]
        )

    async def run_audit(
        self,
        profile: SubjectProfile,
        stage_callback: StageCallback | None = None,
    ) -> AuditReport:
        """
        Run one complete audit.

        Args:
            profile: The professional being audited
            stage_callback: Optional observer of stage transitions

        Returns:
            AuditReport assembled from a single run

        Raises:
            AuditFailedError: naming the phase whose engine call or
                contract validation failed
        """
        run_id = uuid4()
        log = logger.bind(run_id=str(run_id), subject=profile.name)

        def enter(stage: AuditStage) -> None:
            log.info("audit_stage", stage=stage.value)
            if stage_callback:
                stage_callback(stage)

        log.info("audit_started", url=profile.url, category=profile.category)

        enter(AuditStage.COLLECTING)
        context = await self.collector.collect_all(profile)

        graph = self.build_graph(profile, context)
        try:
            outputs = await graph.execute(on_stage=lambda index, _: enter(GRAPH_STAGES[index]))
        except PhaseExecutionError as e:
            enter(AuditStage.FAILED)
            log.error(
                "audit_failed",
                phase=e.phase,
                error_type=type(e.cause).__name__,
                error=str(e.cause),
            )
            raise AuditFailedError(e.phase, e.cause) from e.cause

        report = AuditReport(
            technical=outputs[TECHNICAL],
            branding=outputs[BRANDING],
            market=outputs[MARKET],
            sales_pitch=outputs[SALES_PITCH],
            campaign_export=outputs[CAMPAIGN_EXPORT],
            run_id=run_id,
            subject=profile,
            generated_at=datetime.now(UTC),
            degraded_signals=tuple(c.value for c in context.degraded_categories()),
            signals=context.to_dict(),
        )

        enter(AuditStage.COMPLETE)
        log.info(
            "audit_completed",
            degraded_signals=list(report.degraded_signals),
            severities={name: s.severity.value for name, s in report.sections().items()},
        )
        return report


async def run_audit(
    profile: SubjectProfile,
    config: AuditConfig | None = None,
) -> AuditReport:
    """
    Convenience function to run one audit.

    Args:
        profile: The professional being audited
        config: Optional pipeline configuration

    Returns:
        AuditReport
    """
    orchestrator = AuditOrchestrator(config=config)
    return await orchestrator.run_audit(profile)
