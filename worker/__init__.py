"""Clinic Audit - Worker Package."""

# Lazy imports to avoid pulling httpx and the pipeline in at import time
# Use explicit imports when these are needed:
# from worker.pipeline.orchestrator import AuditOrchestrator, AuditStage, run_audit
# from worker.signals.models import SubjectProfile

__all__ = [
    "AuditOrchestrator",
    "AuditStage",
    "run_audit",
    "SubjectProfile",
]


from typing import Any


def __getattr__(name: str) -> Any:
    """Lazy import for worker submodules."""
    if name in ("AuditOrchestrator", "AuditStage", "run_audit"):
        from worker.pipeline import orchestrator

        return getattr(orchestrator, name)
    elif name == "SubjectProfile":
        from worker.signals.models import SubjectProfile

        return SubjectProfile
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
