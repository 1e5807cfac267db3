"""
Module: recruitment_kernel.models.replica
Responsibility: ORM persistence for the replica set of each origin and the
    mirror-once claim.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - replica_refs is append-only: PRIMARY KEY (origin_id, channel_id,
      message_id), no UPDATE, no DELETE.
    - mirror_claims has one row per origin; the insert that creates it is
      the single winner allowed to post a mirror.  The claim, the mirror
      replica ref and the posted message id commit together; a failed send
      rolls the claim back so a later completion can retry.

Failure modes:
    - IntegrityError on a duplicate replica ref or claim.
    - ImmutabilityViolationError on replica ref UPDATE/DELETE.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Index, String, event
from sqlalchemy.orm import Mapped, mapped_column

from recruitment_kernel.db.base import Base
from recruitment_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from recruitment_kernel.domain.records import ReplicaRef


class ReplicaRefModel(Base):
    """One rendered surface of an origin.  Append-only."""

    __tablename__ = "replica_refs"

    __table_args__ = (
        CheckConstraint(
            "surface_kind IN ('origin', 'mirror')",
            name="ck_replica_refs_valid_kind",
        ),
        Index("ix_replica_refs_origin", "origin_id"),
    )

    origin_id: Mapped[str] = mapped_column(primary_key=True)
    channel_id: Mapped[str] = mapped_column(primary_key=True)
    message_id: Mapped[str] = mapped_column(primary_key=True)
    surface_kind: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ReplicaRef {self.origin_id} -> "
            f"{self.channel_id}/{self.message_id} ({self.surface_kind})>"
        )

    def to_dto(self) -> ReplicaRef:
        """Convert ORM model to frozen domain DTO."""
        from recruitment_kernel.domain.records import ReplicaRef, SurfaceKind, SurfaceRef

        return ReplicaRef(
            origin_id=self.origin_id,
            surface=SurfaceRef(self.channel_id, self.message_id),
            kind=SurfaceKind(self.surface_kind),
        )


class MirrorClaimModel(Base):
    """Mirror-once guard: the row exists while a mirror is posted or in flight."""

    __tablename__ = "mirror_claims"

    origin_id: Mapped[str] = mapped_column(primary_key=True)
    channel_id: Mapped[str] = mapped_column(nullable=False)
    message_id: Mapped[str | None] = mapped_column(nullable=True)
    claimed_by_id: Mapped[str] = mapped_column(nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<MirrorClaim {self.origin_id} channel={self.channel_id} "
            f"message={self.message_id}>"
        )


@event.listens_for(ReplicaRefModel, "before_update")
def prevent_replica_update(mapper, connection, target):
    """Prevent updates to replica refs."""
    raise ImmutabilityViolationError(
        entity_type="ReplicaRef",
        entity_id=f"{target.origin_id}:{target.channel_id}/{target.message_id}",
        reason="Replica membership is append-only -- cannot modify",
    )


@event.listens_for(ReplicaRefModel, "before_delete")
def prevent_replica_delete(mapper, connection, target):
    """Prevent deletion of replica refs."""
    raise ImmutabilityViolationError(
        entity_type="ReplicaRef",
        entity_id=f"{target.origin_id}:{target.channel_id}/{target.message_id}",
        reason="Replica membership is append-only -- cannot delete",
    )
