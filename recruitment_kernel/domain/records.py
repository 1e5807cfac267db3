"""
Candidate record aggregate (``recruitment_kernel.domain.records``).

A ``CandidateRecord`` is the read-side snapshot of everything known about one
origin: the recommendation, its background check, the recorded observation
slots, and the surfaces that mirror it.  Selectors assemble it from the store;
the projection renders it.  It is never cached across calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from recruitment_kernel.domain.background_check import (
    BackgroundCheckSnapshot,
    BackgroundCheckStage,
    BackgroundCheckStatus,
    stage_of,
)
from recruitment_kernel.domain.observation import ObservationRecord
from recruitment_kernel.domain.recommendation import Recommendation


class SurfaceKind(str, Enum):
    """Role a rendered message plays for its origin."""

    ORIGIN = "origin"
    MIRROR = "mirror"


@dataclass(frozen=True)
class SurfaceRef:
    """Identity of a rendered message on the transport."""

    channel_id: str
    message_id: str


@dataclass(frozen=True)
class ReplicaRef:
    origin_id: str
    surface: SurfaceRef
    kind: SurfaceKind = SurfaceKind.ORIGIN


@dataclass(frozen=True)
class CandidateRecord:
    recommendation: Recommendation
    slot_count: int
    background_check: BackgroundCheckSnapshot | None = None
    observations: tuple[ObservationRecord, ...] = ()
    replicas: tuple[ReplicaRef, ...] = ()

    @property
    def origin_id(self) -> str:
        return self.recommendation.origin_id

    @property
    def stage(self) -> BackgroundCheckStage:
        return stage_of(self.background_check)

    @property
    def status(self) -> BackgroundCheckStatus:
        if self.background_check is None:
            return BackgroundCheckStatus.UNSET
        return self.background_check.status

    @property
    def observation_open(self) -> bool:
        return self.status is BackgroundCheckStatus.PASS

    @property
    def filled_slots(self) -> frozenset[int]:
        return frozenset(o.slot for o in self.observations)

    @property
    def all_slots_filled(self) -> bool:
        return set(range(1, self.slot_count + 1)) <= self.filled_slots

    def observation(self, slot: int) -> ObservationRecord | None:
        for record in self.observations:
            if record.slot == slot:
                return record
        return None

    def surfaces(self, kind: SurfaceKind | None = None) -> tuple[ReplicaRef, ...]:
        if kind is None:
            return self.replicas
        return tuple(r for r in self.replicas if r.kind is kind)
