"""
Pure domain layer.

Value objects, the typed action union, and view projection with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- Transport I/O

All domain objects are immutable and deterministic.
"""

from recruitment_kernel.domain.actions import Action, ActionKey, Stage, Verb, action_name
from recruitment_kernel.domain.background_check import (
    BackgroundCheckSnapshot,
    BackgroundCheckStage,
    BackgroundCheckStatus,
    FinalizeDecision,
    FinalizePolicy,
)
from recruitment_kernel.domain.checklist import Checklist, ChecklistCriterion
from recruitment_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from recruitment_kernel.domain.observation import (
    ObservationContent,
    ObservationRecord,
    ObservationSettings,
)
from recruitment_kernel.domain.recommendation import (
    ProofAttachment,
    ProofHandoff,
    ProofPolicy,
    Recommendation,
)
from recruitment_kernel.domain.records import (
    CandidateRecord,
    ReplicaRef,
    SurfaceKind,
    SurfaceRef,
)
from recruitment_kernel.domain.transport import MessageTransport
from recruitment_kernel.domain.views import RenderedView

__all__ = [
    "Action",
    "ActionKey",
    "BackgroundCheckSnapshot",
    "BackgroundCheckStage",
    "BackgroundCheckStatus",
    "CandidateRecord",
    "Checklist",
    "ChecklistCriterion",
    "Clock",
    "DeterministicClock",
    "FinalizeDecision",
    "FinalizePolicy",
    "MessageTransport",
    "ObservationContent",
    "ObservationRecord",
    "ObservationSettings",
    "ProofAttachment",
    "ProofHandoff",
    "ProofPolicy",
    "Recommendation",
    "RenderedView",
    "ReplicaRef",
    "Stage",
    "SurfaceKind",
    "SurfaceRef",
    "SystemClock",
    "Verb",
    "action_name",
]
