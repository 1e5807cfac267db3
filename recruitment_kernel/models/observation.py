"""
Module: recruitment_kernel.models.observation
Responsibility: ORM persistence for observation slots.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - PRIMARY KEY (origin_id, slot_index): at most one row per slot.  The
      key violation is how a concurrent second writer learns it lost.
    - Rows are write-once -- no UPDATE, no DELETE.

Failure modes:
    - IntegrityError on a duplicate (origin_id, slot_index).
    - ImmutabilityViolationError on UPDATE/DELETE through the ORM.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from recruitment_kernel.db.base import Base
from recruitment_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from recruitment_kernel.domain.observation import ObservationRecord


class ObservationModel(Base):
    """Persistent observation report.  Write-once."""

    __tablename__ = "observations"

    __table_args__ = (
        CheckConstraint("slot_index >= 1", name="ck_observations_slot_positive"),
    )

    origin_id: Mapped[str] = mapped_column(primary_key=True)
    slot_index: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    date: Mapped[str] = mapped_column(String(32), nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False)
    issues: Mapped[str] = mapped_column(Text, nullable=False, default="")
    subject_username: Mapped[str | None] = mapped_column(String(100), nullable=True)
    author_id: Mapped[str] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Observation {self.origin_id}#{self.slot_index} "
            f"author={self.author_id}>"
        )

    def to_dto(self) -> ObservationRecord:
        """Convert ORM model to frozen domain DTO."""
        from recruitment_kernel.domain.observation import ObservationRecord

        return ObservationRecord(
            origin_id=self.origin_id,
            slot=self.slot_index,
            date=self.date,
            notes=self.notes,
            issues=self.issues,
            author_id=self.author_id,
            created_at=self.created_at,
            subject_username=self.subject_username,
        )


@event.listens_for(ObservationModel, "before_update")
def prevent_observation_update(mapper, connection, target):
    """Prevent updates to recorded observations."""
    raise ImmutabilityViolationError(
        entity_type="Observation",
        entity_id=f"{target.origin_id}#{target.slot_index}",
        reason="Recorded observations are immutable -- cannot modify",
    )


@event.listens_for(ObservationModel, "before_delete")
def prevent_observation_delete(mapper, connection, target):
    """Prevent deletion of recorded observations."""
    raise ImmutabilityViolationError(
        entity_type="Observation",
        entity_id=f"{target.origin_id}#{target.slot_index}",
        reason="Recorded observations are immutable -- cannot delete",
    )
