"""Workflow orchestration over the recruitment kernel."""

from recruitment_services.outcomes import ActionOutcome, OutcomeKind, OutcomeStatus
from recruitment_services.workflow_orchestrator import WorkflowOrchestrator

__all__ = [
    "ActionOutcome",
    "OutcomeKind",
    "OutcomeStatus",
    "WorkflowOrchestrator",
]
