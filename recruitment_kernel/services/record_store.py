"""
RecordStore -- the persistent record store.

Responsibility:
    Sole owner of the persisted rows of every origin record: the
    recommendation, its background check, the observation slots, the replica
    set and the mirror claim.  Engines read and mutate through this class and
    never cache authoritative copies across calls.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Used by BackgroundCheckEngine, ObservationEngine and the recommendation
    intake in the orchestrator.  Reads of the whole record go through
    ``CandidateSelector``.

Invariants enforced:
    R7  -- Services flush within the caller's transaction; they never commit.
           The single exception is the IntegrityError path below, which rolls
           the caller's transaction back (the conflicting insert is always the
           first write of its unit of work).
    First durable writer wins:
        - ``write_status`` is one conditional UPDATE guarded by
          ``status = 'unset'``; rowcount 0 means another writer finalized.
        - ``write_selection`` carries the same guard, so a draft can never
          overwrite a terminal row.
        - ``insert_observation`` relies on PRIMARY KEY (origin_id, slot_index).
        - ``claim_mirror`` relies on PRIMARY KEY (origin_id) of mirror_claims.

Failure modes:
    - SlotAlreadyRecordedError: a concurrent or earlier writer owns the slot.
    - IntegrityError: any other constraint failure (propagated).
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recruitment_kernel.domain.background_check import (
    BackgroundCheckSnapshot,
    BackgroundCheckStatus,
)
from recruitment_kernel.domain.clock import Clock, SystemClock
from recruitment_kernel.domain.observation import ObservationRecord
from recruitment_kernel.domain.recommendation import Recommendation
from recruitment_kernel.domain.records import ReplicaRef, SurfaceKind, SurfaceRef
from recruitment_kernel.exceptions import SlotAlreadyRecordedError
from recruitment_kernel.logging_config import get_logger
from recruitment_kernel.models.background_check import BackgroundCheckModel
from recruitment_kernel.models.observation import ObservationModel
from recruitment_kernel.models.recommendation import RecommendationModel
from recruitment_kernel.models.replica import MirrorClaimModel, ReplicaRefModel

logger = get_logger("services.record_store")

_UNSET = BackgroundCheckStatus.UNSET.value


class RecordStore:
    """
    Persistence for origin records.

    Contract:
        Accepts the caller's Session; every mutation is flushed, never
        committed.  Returns frozen domain DTOs, never ORM instances.

    Non-goals:
        - Does NOT decide stage legality -- the engines do.
        - Does NOT render or talk to the transport.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    # =========================================================================
    # Recommendations and replicas
    # =========================================================================

    def insert_recommendation(self, recommendation: Recommendation) -> Recommendation:
        model = RecommendationModel.from_dto(recommendation)
        self._session.add(model)
        self._session.flush()
        logger.info(
            "recommendation_persisted",
            extra={
                "origin_id": recommendation.origin_id,
                "channel_id": recommendation.channel_id,
            },
        )
        return model.to_dto()

    def get_recommendation(self, origin_id: str) -> Recommendation | None:
        model = self._session.get(RecommendationModel, origin_id)
        return model.to_dto() if model is not None else None

    def add_replica(
        self,
        origin_id: str,
        surface: SurfaceRef,
        kind: SurfaceKind,
    ) -> ReplicaRef:
        """Append a surface to the origin's replica set."""
        model = ReplicaRefModel(
            origin_id=origin_id,
            channel_id=surface.channel_id,
            message_id=surface.message_id,
            surface_kind=kind.value,
            created_at=self._clock.now(),
        )
        self._session.add(model)
        self._session.flush()
        logger.info(
            "replica_registered",
            extra={
                "origin_id": origin_id,
                "channel_id": surface.channel_id,
                "message_id": surface.message_id,
                "surface_kind": kind.value,
            },
        )
        return model.to_dto()

    def list_replicas(self, origin_id: str) -> tuple[ReplicaRef, ...]:
        rows = self._session.execute(
            select(ReplicaRefModel)
            .where(ReplicaRefModel.origin_id == origin_id)
            .order_by(ReplicaRefModel.created_at, ReplicaRefModel.message_id)
        ).scalars().all()
        return tuple(r.to_dto() for r in rows)

    # =========================================================================
    # Background checks
    # =========================================================================

    def get_background_check(self, origin_id: str) -> BackgroundCheckSnapshot | None:
        model = self._session.execute(
            select(BackgroundCheckModel)
            .where(BackgroundCheckModel.origin_id == origin_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None

    def ensure_background_check(self, origin_id: str) -> BackgroundCheckSnapshot:
        """
        Return the origin's background-check row, creating an ``unset`` row
        if none exists.  Existing draft selections are preserved.
        """
        existing = self.get_background_check(origin_id)
        if existing is not None:
            return existing

        self._session.add(
            BackgroundCheckModel(
                origin_id=origin_id,
                status=_UNSET,
                selected_keys=[],
                updated_at=self._clock.now(),
            )
        )
        try:
            self._session.flush()
        except IntegrityError:
            # Concurrent start -- another action created the row first
            self._session.rollback()
            logger.info(
                "background_check_concurrent_start",
                extra={"origin_id": origin_id},
            )
            return self.get_background_check(origin_id)

        logger.info("background_check_started", extra={"origin_id": origin_id})
        return self.get_background_check(origin_id)

    def write_selection(self, origin_id: str, keys: Sequence[str]) -> bool:
        """
        Overwrite the draft selection.

        Returns:
            False if the row is missing or already terminal (nothing written).
        """
        result = self._session.execute(
            update(BackgroundCheckModel)
            .where(BackgroundCheckModel.origin_id == origin_id)
            .where(BackgroundCheckModel.status == _UNSET)
            .values(selected_keys=list(keys), updated_at=self._clock.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def write_status(
        self,
        origin_id: str,
        status: BackgroundCheckStatus,
        actor_id: str,
    ) -> bool:
        """
        Move ``unset`` to a terminal status.

        The WHERE clause is the whole concurrency story: of any number of
        concurrent callers, exactly one sees rowcount 1.

        Returns:
            True if this call performed the transition.
        """
        if status is BackgroundCheckStatus.UNSET:
            raise ValueError("write_status requires a terminal status")
        result = self._session.execute(
            update(BackgroundCheckModel)
            .where(BackgroundCheckModel.origin_id == origin_id)
            .where(BackgroundCheckModel.status == _UNSET)
            .values(
                status=status.value,
                finalized_by_id=actor_id,
                updated_at=self._clock.now(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # =========================================================================
    # Observations
    # =========================================================================

    def get_observation(self, origin_id: str, slot: int) -> ObservationRecord | None:
        model = self._session.execute(
            select(ObservationModel)
            .where(ObservationModel.origin_id == origin_id)
            .where(ObservationModel.slot_index == slot)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None

    def insert_observation(self, record: ObservationRecord) -> ObservationRecord:
        """
        Insert a slot row.  Write-once.

        Raises:
            SlotAlreadyRecordedError: The slot already has a row.  The
                caller's transaction has been rolled back and ``record`` was
                discarded.
        """
        model = ObservationModel(
            origin_id=record.origin_id,
            slot_index=record.slot,
            date=record.date,
            notes=record.notes,
            issues=record.issues,
            subject_username=record.subject_username,
            author_id=record.author_id,
            created_at=record.created_at,
        )
        self._session.add(model)
        try:
            self._session.flush()
        except IntegrityError:
            self._session.rollback()
            existing = self.get_observation(record.origin_id, record.slot)
            if existing is None:
                raise
            logger.warning(
                "observation_slot_conflict",
                extra={
                    "origin_id": record.origin_id,
                    "slot": record.slot,
                    "existing_author_id": existing.author_id,
                },
            )
            raise SlotAlreadyRecordedError(
                record.origin_id, record.slot, existing.author_id
            ) from None

        logger.info(
            "observation_recorded",
            extra={"origin_id": record.origin_id, "slot": record.slot},
        )
        return model.to_dto()

    # =========================================================================
    # Mirror claim
    # =========================================================================

    def mirror_claimed(self, origin_id: str) -> bool:
        return self._session.execute(
            select(MirrorClaimModel.origin_id)
            .where(MirrorClaimModel.origin_id == origin_id)
        ).first() is not None

    def claim_mirror(self, origin_id: str, channel_id: str, actor_id: str) -> bool:
        """
        Claim the right to post the origin's single mirror.

        Returns:
            True for exactly one caller per origin.  A losing caller's
            transaction is rolled back.
        """
        self._session.add(
            MirrorClaimModel(
                origin_id=origin_id,
                channel_id=channel_id,
                claimed_by_id=actor_id,
                claimed_at=self._clock.now(),
            )
        )
        try:
            self._session.flush()
        except IntegrityError:
            self._session.rollback()
            logger.info("mirror_claim_lost", extra={"origin_id": origin_id})
            return False
        logger.info(
            "mirror_claimed",
            extra={"origin_id": origin_id, "channel_id": channel_id},
        )
        return True

    def record_mirror_message(self, origin_id: str, message_id: str) -> None:
        self._session.execute(
            update(MirrorClaimModel)
            .where(MirrorClaimModel.origin_id == origin_id)
            .values(message_id=message_id)
            .execution_options(synchronize_session=False)
        )
