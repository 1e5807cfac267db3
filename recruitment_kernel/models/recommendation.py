"""
Module: recruitment_kernel.models.recommendation
Responsibility: ORM persistence for posted recommendations (the canonical
    content of an origin record).

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - origin_id is the message identity of the original posting and the
      primary key.  A recommendation row is written once when the message
      is posted and never changes.

Failure modes:
    - IntegrityError on a second insert for the same origin.
    - ImmutabilityViolationError on UPDATE/DELETE through the ORM.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from recruitment_kernel.db.base import Base
from recruitment_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from recruitment_kernel.domain.recommendation import Recommendation


class RecommendationModel(Base):
    """Persistent recommendation.  Write-once."""

    __tablename__ = "recommendations"

    origin_id: Mapped[str] = mapped_column(primary_key=True)
    channel_id: Mapped[str] = mapped_column(nullable=False)
    recommender_id: Mapped[str] = mapped_column(nullable=False)
    candidate_username: Mapped[str] = mapped_column(String(100), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    proof_url: Mapped[str] = mapped_column(Text, nullable=False)
    proof_file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source_guild_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Recommendation {self.origin_id} "
            f"candidate={self.candidate_username}>"
        )

    def to_dto(self) -> Recommendation:
        """Convert ORM model to frozen domain DTO."""
        from recruitment_kernel.domain.recommendation import (
            Recommendation as RecommendationDTO,
        )

        return RecommendationDTO(
            origin_id=self.origin_id,
            channel_id=self.channel_id,
            recommender_id=self.recommender_id,
            candidate_username=self.candidate_username,
            reason=self.reason,
            proof_url=self.proof_url,
            created_at=self.created_at,
            proof_file_name=self.proof_file_name,
            source_guild_name=self.source_guild_name,
        )

    @classmethod
    def from_dto(cls, dto: Recommendation) -> RecommendationModel:
        """Create ORM model from domain DTO."""
        return cls(
            origin_id=dto.origin_id,
            channel_id=dto.channel_id,
            recommender_id=dto.recommender_id,
            candidate_username=dto.candidate_username,
            reason=dto.reason,
            proof_url=dto.proof_url,
            proof_file_name=dto.proof_file_name,
            source_guild_name=dto.source_guild_name,
            created_at=dto.created_at,
        )


@event.listens_for(RecommendationModel, "before_update")
def prevent_recommendation_update(mapper, connection, target):
    """Prevent updates to posted recommendations."""
    raise ImmutabilityViolationError(
        entity_type="Recommendation",
        entity_id=target.origin_id,
        reason="Posted recommendations are immutable -- cannot modify",
    )


@event.listens_for(RecommendationModel, "before_delete")
def prevent_recommendation_delete(mapper, connection, target):
    """Prevent deletion of posted recommendations."""
    raise ImmutabilityViolationError(
        entity_type="Recommendation",
        entity_id=target.origin_id,
        reason="Posted recommendations are immutable -- cannot delete",
    )
