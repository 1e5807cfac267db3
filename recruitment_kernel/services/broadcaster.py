"""
Broadcaster -- re-render every surface of an origin from canonical state.

Responsibility:
    After a state change commits, load the origin's ``CandidateRecord``,
    project it once per surface kind and edit every replica whose current
    content differs from the projection.

Architecture position:
    Kernel > Services.  Read-only against the database; all effects are
    transport edits.  Called by the orchestrator outside the unit of work
    that changed state.

Invariants enforced:
    - Views are rebuilt wholesale; nothing reads back or patches a field.
    - Origin and mirror surfaces render the same state.
    - Best effort: a missing surface or a failed edit is logged and skipped,
      never retried, and never fails the action that caused the broadcast.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from recruitment_kernel.domain.checklist import Checklist
from recruitment_kernel.domain.projection import project
from recruitment_kernel.domain.records import CandidateRecord, SurfaceKind, SurfaceRef
from recruitment_kernel.domain.transport import MessageTransport
from recruitment_kernel.domain.views import RenderedView
from recruitment_kernel.exceptions import TransportError
from recruitment_kernel.logging_config import get_logger
from recruitment_kernel.selectors.candidate_selector import CandidateSelector

logger = get_logger("services.broadcaster")


@dataclass
class BroadcastReport:
    origin_id: str
    edited: list[SurfaceRef] = field(default_factory=list)
    unchanged: list[SurfaceRef] = field(default_factory=list)
    skipped: list[SurfaceRef] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.edited) + len(self.unchanged) + len(self.skipped)


def _same_surface(current: RenderedView, projected: RenderedView) -> bool:
    return current.embeds == projected.embeds and current.rows == projected.rows


class Broadcaster:
    """Pushes the canonical projection to every registered surface."""

    def __init__(
        self,
        session: Session,
        transport: MessageTransport,
        checklist: Checklist,
        slot_count: int,
    ):
        self._selector = CandidateSelector(session)
        self._transport = transport
        self._checklist = checklist
        self._slot_count = slot_count

    def broadcast(self, origin_id: str) -> BroadcastReport:
        """
        Raises:
            RecordNotFoundError: origin unknown.
        """
        record = self._selector.load(origin_id, self._slot_count)
        return self.broadcast_record(record)

    def broadcast_record(self, record: CandidateRecord) -> BroadcastReport:
        report = BroadcastReport(origin_id=record.origin_id)
        views = {
            kind: project(record, self._checklist, kind) for kind in SurfaceKind
        }

        for replica in record.replicas:
            ref = replica.surface
            projected = views[replica.kind]
            try:
                current = self._transport.fetch_message(ref)
                if current is None:
                    logger.warning(
                        "broadcast_surface_missing",
                        extra={"channel_id": ref.channel_id, "message_id": ref.message_id},
                    )
                    report.skipped.append(ref)
                    continue
                if _same_surface(current, projected):
                    report.unchanged.append(ref)
                    continue
                self._transport.edit_message(ref, projected)
            except TransportError:
                logger.warning(
                    "broadcast_surface_failed",
                    extra={"channel_id": ref.channel_id, "message_id": ref.message_id},
                    exc_info=True,
                )
                report.skipped.append(ref)
                continue
            report.edited.append(ref)

        logger.info(
            "broadcast_completed",
            extra={
                "origin_id": record.origin_id,
                "edited": len(report.edited),
                "unchanged": len(report.unchanged),
                "skipped": len(report.skipped),
            },
        )
        return report
