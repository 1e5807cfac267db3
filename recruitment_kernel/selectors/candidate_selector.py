"""
Module: recruitment_kernel.selectors.candidate_selector
Responsibility: Assemble the ``CandidateRecord`` snapshot of one origin from
    the store's tables.
Architecture position: Kernel > Selectors.

Every call reads fresh rows; nothing is cached across calls.  Engines and the
broadcaster load the record through here and render it immediately.

Failure modes:
    - RecordNotFoundError if the origin has no recommendation row.
"""

from sqlalchemy import select

from recruitment_kernel.domain.records import CandidateRecord
from recruitment_kernel.exceptions import RecordNotFoundError
from recruitment_kernel.models.background_check import BackgroundCheckModel
from recruitment_kernel.models.observation import ObservationModel
from recruitment_kernel.models.recommendation import RecommendationModel
from recruitment_kernel.models.replica import ReplicaRefModel
from recruitment_kernel.selectors.base import BaseSelector


class CandidateSelector(BaseSelector):
    """Read side of the record store."""

    def exists(self, origin_id: str) -> bool:
        return self.session.get(RecommendationModel, origin_id) is not None

    def load(self, origin_id: str, slot_count: int) -> CandidateRecord:
        """
        Load the full record for ``origin_id``.

        Raises:
            RecordNotFoundError: No recommendation row for the origin.
        """
        recommendation = self.session.execute(
            select(RecommendationModel)
            .where(RecommendationModel.origin_id == origin_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if recommendation is None:
            raise RecordNotFoundError(origin_id)

        background_check = self.session.execute(
            select(BackgroundCheckModel)
            .where(BackgroundCheckModel.origin_id == origin_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        observations = self.session.execute(
            select(ObservationModel)
            .where(ObservationModel.origin_id == origin_id)
            .order_by(ObservationModel.slot_index)
            .execution_options(populate_existing=True)
        ).scalars().all()

        replicas = self.session.execute(
            select(ReplicaRefModel)
            .where(ReplicaRefModel.origin_id == origin_id)
            .order_by(ReplicaRefModel.created_at, ReplicaRefModel.message_id)
        ).scalars().all()

        return CandidateRecord(
            recommendation=recommendation.to_dto(),
            slot_count=slot_count,
            background_check=(
                background_check.to_dto() if background_check is not None else None
            ),
            observations=tuple(o.to_dto() for o in observations),
            replicas=tuple(r.to_dto() for r in replicas),
        )
