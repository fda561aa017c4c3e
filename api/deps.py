"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from api.config import Settings, get_settings
from worker.pipeline.config import AuditConfig
from worker.pipeline.orchestrator import AuditOrchestrator

__all__ = ["SettingsDep", "OrchestratorDep", "get_orchestrator"]


# Settings dependency
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_orchestrator(settings: SettingsDep) -> AuditOrchestrator:
    """Build an orchestrator from current settings. Instances hold no per-run state."""
    return AuditOrchestrator(config=AuditConfig.from_settings(settings))


OrchestratorDep = Annotated[AuditOrchestrator, Depends(get_orchestrator)]
