"""
ObservationEngine -- write-once observation slots and the mirror-once rule.

Responsibility:
    Opens, records and shows the K observation slots of an origin whose
    background check passed.  Once every slot is recorded, posts exactly one
    mirror of the record to the configured mirror channel.

Architecture position:
    Kernel > Services -- imperative shell.  Reads through
    ``CandidateSelector``, writes through ``RecordStore``.  The mirror step
    talks to the ``MessageTransport``.

Invariants enforced:
    - A slot is written at most once: PRIMARY KEY (origin_id, slot_index).
      The loser of a concurrent submit gets SlotAlreadyRecordedError naming
      the existing author; its content is discarded.
    - Observation actions require ``Finalized(pass)``.
    - Mirror once: the claim insert into ``mirror_claims`` picks the single
      sender.  The claim, the mirror replica ref and the posted message id
      commit together.

Failure modes:
    - RecordNotFoundError, PreconditionViolatedError, InvalidSlotError,
      ObservationContentError, SlotAlreadyRecordedError, SlotNotRecordedError.
    - TransportError from ``post_mirror_if_complete`` when the mirror send
      fails.  The caller rolls back, which releases the claim.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from recruitment_kernel.domain.checklist import Checklist
from recruitment_kernel.domain.clock import Clock, SystemClock
from recruitment_kernel.domain.observation import (
    ObservationContent,
    ObservationRecord,
    ObservationSettings,
    normalize_content,
)
from recruitment_kernel.domain.projection import observation_form, project, role_mention
from recruitment_kernel.domain.records import CandidateRecord, SurfaceKind, SurfaceRef
from recruitment_kernel.domain.transport import MessageTransport
from recruitment_kernel.domain.views import FormSpec, RenderedView
from recruitment_kernel.exceptions import (
    PreconditionViolatedError,
    SlotNotRecordedError,
    TransportError,
)
from recruitment_kernel.logging_config import get_logger
from recruitment_kernel.selectors.candidate_selector import CandidateSelector
from recruitment_kernel.services.record_store import RecordStore

logger = get_logger("services.observation")


@dataclass(frozen=True)
class MirrorSettings:
    """Where the completed record is mirrored and how it is announced."""

    channel_id: str
    reactions: tuple[str, ...] = ("✅", "❌")
    ping_role_id: str | None = None


@dataclass(frozen=True)
class ObservationStartResult:
    """Either the stored record (slot taken) or the form to fill it."""

    existing: ObservationRecord | None = None
    form: FormSpec | None = None

    @property
    def recorded(self) -> bool:
        return self.existing is not None


class ObservationEngine:
    """
    Observation stage engine.

    Contract:
        Runs inside the caller's transaction and flushes only.
    """

    def __init__(
        self,
        session: Session,
        settings: ObservationSettings | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._settings = settings or ObservationSettings()
        self._clock = clock or SystemClock()
        self._store = RecordStore(session, self._clock)
        self._selector = CandidateSelector(session)

    @property
    def settings(self) -> ObservationSettings:
        return self._settings

    def load_open(self, origin_id: str, stage: str) -> CandidateRecord:
        """
        Load the record and require a passed background check.

        Raises:
            RecordNotFoundError: origin unknown.
            PreconditionViolatedError: background check not passed.
        """
        record = self._selector.load(origin_id, self._settings.slot_count)
        if not record.observation_open:
            raise PreconditionViolatedError(
                origin_id,
                stage,
                f"background check is {record.status.value}",
            )
        return record

    def start(self, origin_id: str, slot: int) -> ObservationStartResult:
        """Recorded slot: redirect to its record.  Empty slot: the form."""
        self._settings.validate_slot(slot)
        record = self.load_open(origin_id, "observation.start")
        existing = record.observation(slot)
        if existing is not None:
            return ObservationStartResult(existing=existing)
        return ObservationStartResult(
            form=observation_form(
                origin_id,
                slot,
                self._clock.now(),
                self._settings.include_subject_username,
            )
        )

    def submit(
        self,
        origin_id: str,
        slot: int,
        content: ObservationContent,
        author_id: str,
    ) -> ObservationRecord:
        """
        Record ``content`` in the slot and return the stored row.

        Completion is not reported here: a concurrent submit of another
        slot may still be uncommitted.  ``post_mirror_if_complete`` re-reads
        the record in a later unit of work.

        Raises:
            SlotAlreadyRecordedError: slot taken; nothing was written.
        """
        self._settings.validate_slot(slot)
        self.load_open(origin_id, "observation.submit")

        now = self._clock.now()
        normalized = normalize_content(content, now, self._settings)
        return self._store.insert_observation(
            ObservationRecord(
                origin_id=origin_id,
                slot=slot,
                date=normalized.date,
                notes=normalized.notes,
                issues=normalized.issues,
                author_id=author_id,
                created_at=now,
                subject_username=normalized.subject_username,
            )
        )

    def view(self, origin_id: str, slot: int) -> tuple[ObservationRecord, CandidateRecord]:
        """
        Raises:
            SlotNotRecordedError: slot is empty.
        """
        self._settings.validate_slot(slot)
        record = self.load_open(origin_id, "observation.view")
        observation = record.observation(slot)
        if observation is None:
            raise SlotNotRecordedError(origin_id, slot)
        return observation, record

    def post_mirror_if_complete(
        self,
        origin_id: str,
        actor_id: str,
        transport: MessageTransport,
        mirror: MirrorSettings | None,
        checklist: Checklist,
    ) -> SurfaceRef | None:
        """
        Post the single mirror once every slot is recorded.

        Returns:
            The new mirror surface, or None when the record is incomplete,
            no mirror channel is configured, or another caller holds the
            claim.

        Raises:
            TransportError: the mirror send failed.  The caller's unit of
                work must roll back to release the claim.
        """
        if mirror is None:
            return None
        record = self._selector.load(origin_id, self._settings.slot_count)
        if not record.all_slots_filled:
            return None
        if self._store.mirror_claimed(origin_id):
            return None
        if not self._store.claim_mirror(origin_id, mirror.channel_id, actor_id):
            return None

        view = project(record, checklist, SurfaceKind.MIRROR)
        view = RenderedView(
            content=role_mention(mirror.ping_role_id),
            embeds=view.embeds,
            rows=view.rows,
        )
        try:
            ref = transport.send_message(mirror.channel_id, view)
        except TransportError:
            logger.error(
                "mirror_post_failed",
                extra={"origin_id": origin_id, "channel_id": mirror.channel_id},
                exc_info=True,
            )
            raise

        self._store.add_replica(origin_id, ref, SurfaceKind.MIRROR)
        self._store.record_mirror_message(origin_id, ref.message_id)
        logger.info(
            "mirror_posted",
            extra={
                "origin_id": origin_id,
                "channel_id": ref.channel_id,
                "message_id": ref.message_id,
            },
        )

        for marker in mirror.reactions:
            try:
                transport.add_reaction(ref, marker)
            except TransportError:
                logger.warning(
                    "mirror_reaction_failed",
                    extra={"origin_id": origin_id, "marker": marker},
                    exc_info=True,
                )
        return ref
