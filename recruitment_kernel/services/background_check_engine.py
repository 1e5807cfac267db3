"""
BackgroundCheckEngine -- per-origin background-check state machine.

Responsibility:
    Drives ``NotStarted -> Selecting -> Finalized(pass|fail)`` for one origin
    record.  Selections are drafts (last writer wins); finalization is the
    single irreversible transition (first writer wins).

Architecture position:
    Kernel > Services -- imperative shell.  Reads and writes exclusively
    through ``RecordStore``; existence checks go through
    ``CandidateSelector``.  Called by the workflow orchestrator, one engine
    per unit of work.

Invariants enforced:
    - Terminal rows are never changed: both the selection write and the
      finalize write are conditional on ``status = 'unset'``.
    - Exactly one concurrent ``finalize`` wins; every other caller gets
      AlreadyFinalizedError and changes nothing.
    - Under REQUIRE_COMPLETE_CHECKLIST, ``pass`` is only legal with every
      criterion selected.  The policy is checked against the selection read
      inside the same transaction as the winning UPDATE.

Failure modes:
    - RecordNotFoundError: origin unknown.
    - PreconditionViolatedError: selection or finalize before ``start``.
    - AlreadyFinalizedError: the check is terminal.
    - UnknownCriterionError: selection contains a key outside the checklist.
    - ChecklistIncompleteError: ``pass`` on a partial checklist.  The
      status write has already been issued; the caller's unit of work MUST
      roll back (``session_scope`` does).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from recruitment_kernel.domain.background_check import (
    BackgroundCheckSnapshot,
    FinalizeDecision,
    FinalizePolicy,
    check_decision_allowed,
)
from recruitment_kernel.domain.checklist import Checklist
from recruitment_kernel.domain.clock import Clock, SystemClock
from recruitment_kernel.exceptions import (
    AlreadyFinalizedError,
    PreconditionViolatedError,
    RecordNotFoundError,
)
from recruitment_kernel.logging_config import get_logger
from recruitment_kernel.selectors.candidate_selector import CandidateSelector
from recruitment_kernel.services.record_store import RecordStore

logger = get_logger("services.background_check")


@dataclass(frozen=True)
class FinalizeResult:
    """Outcome of a winning ``finalize``."""

    snapshot: BackgroundCheckSnapshot
    decision: FinalizeDecision

    @property
    def origin_id(self) -> str:
        return self.snapshot.origin_id

    @property
    def observation_open(self) -> bool:
        """True when the observation stage is now reachable."""
        return self.decision is FinalizeDecision.PASS


class BackgroundCheckEngine:
    """
    Background-check stage engine.

    Contract:
        Every method runs inside the caller's transaction and flushes only.

    Non-goals:
        - Does NOT render views or broadcast.
        - Does NOT check who may review; the transport resolves permissions.
    """

    def __init__(
        self,
        session: Session,
        checklist: Checklist | None = None,
        policy: FinalizePolicy = FinalizePolicy.REQUIRE_COMPLETE_CHECKLIST,
        clock: Clock | None = None,
    ):
        self._session = session
        self._checklist = checklist or Checklist()
        self._policy = policy
        self._store = RecordStore(session, clock or SystemClock())
        self._selector = CandidateSelector(session)

    @property
    def checklist(self) -> Checklist:
        return self._checklist

    @property
    def policy(self) -> FinalizePolicy:
        return self._policy

    def get(self, origin_id: str) -> BackgroundCheckSnapshot | None:
        return self._store.get_background_check(origin_id)

    def start(self, origin_id: str) -> BackgroundCheckSnapshot:
        """
        Enter ``Selecting``.  Idempotent while unset; draft selections made
        by an earlier reviewer are kept.

        Raises:
            RecordNotFoundError: origin unknown.
            AlreadyFinalizedError: check is terminal.
        """
        if not self._selector.exists(origin_id):
            raise RecordNotFoundError(origin_id)

        snapshot = self._store.ensure_background_check(origin_id)
        if snapshot.is_terminal:
            raise AlreadyFinalizedError(origin_id, snapshot.status.value)
        return snapshot

    def update_selection(
        self,
        origin_id: str,
        values: Iterable[str],
    ) -> BackgroundCheckSnapshot:
        """
        Overwrite the draft selection with ``values`` (0..N criteria).

        Raises:
            UnknownCriterionError: a value is not a checklist key.
            AlreadyFinalizedError: check is terminal.
            PreconditionViolatedError: check never started.
            RecordNotFoundError: origin unknown.
        """
        keys = self._checklist.normalize(values)
        if self._store.write_selection(origin_id, keys):
            logger.info(
                "background_check_selection_saved",
                extra={"origin_id": origin_id, "selected_count": len(keys)},
            )
            return self._store.get_background_check(origin_id)

        self._raise_not_writable(origin_id, "bgcheck.updateSelection")

    def finalize(
        self,
        origin_id: str,
        decision: FinalizeDecision,
        actor_id: str,
    ) -> FinalizeResult:
        """
        Record the terminal decision.

        Raises:
            AlreadyFinalizedError: another finalize won.
            ChecklistIncompleteError: ``pass`` not allowed for the selection.
            PreconditionViolatedError: check never started.
            RecordNotFoundError: origin unknown.
        """
        # Fail fast on the common case before taking the write lock.
        current = self._store.get_background_check(origin_id)
        if current is not None and not current.is_terminal:
            check_decision_allowed(current, decision, self._checklist, self._policy)

        if not self._store.write_status(origin_id, decision.status, actor_id):
            logger.info(
                "background_check_finalize_lost",
                extra={"origin_id": origin_id, "decision": decision.value},
            )
            self._raise_not_writable(origin_id, "bgcheck.finalize")

        snapshot = self._store.get_background_check(origin_id)
        # The selection may have changed between the read above and the
        # winning UPDATE.
        check_decision_allowed(snapshot, decision, self._checklist, self._policy)

        logger.info(
            "background_check_finalized",
            extra={
                "origin_id": origin_id,
                "decision": decision.value,
                "selected_count": len(snapshot.selected),
            },
        )
        return FinalizeResult(snapshot=snapshot, decision=decision)

    def _raise_not_writable(self, origin_id: str, stage: str) -> None:
        snapshot = self._store.get_background_check(origin_id)
        if snapshot is not None and snapshot.is_terminal:
            raise AlreadyFinalizedError(origin_id, snapshot.status.value)
        if not self._selector.exists(origin_id):
            raise RecordNotFoundError(origin_id)
        raise PreconditionViolatedError(
            origin_id, stage, "background check has not been started"
        )
