"""
Background-check domain types (``recruitment_kernel.domain.background_check``).

Responsibility
--------------
Pure value objects for the background-check state machine: persisted status,
derived stage, reviewer decisions, the finalize policy, and the immutable
snapshot the engine hands out.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  May import only from other domain
modules and ``exceptions``.

Lifecycle
---------
::

    NOT_STARTED --start--> SELECTING --finalize(pass|fail)--> FINALIZED

* ``SELECTING`` accepts any number of selection overwrites (draft,
  last-writer-wins).
* ``FINALIZED`` has no outgoing edges.  The persisted ``status`` moves from
  ``unset`` to ``pass`` or ``fail`` exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from recruitment_kernel.domain.checklist import Checklist
from recruitment_kernel.exceptions import ChecklistIncompleteError


class BackgroundCheckStatus(str, Enum):
    """Persisted status column values."""

    UNSET = "unset"
    PASS = "pass"
    FAIL = "fail"

    @property
    def header(self) -> str:
        return self.value.upper()


class BackgroundCheckStage(str, Enum):
    """Derived lifecycle stage."""

    NOT_STARTED = "not_started"
    SELECTING = "selecting"
    FINALIZED = "finalized"


class FinalizeDecision(str, Enum):
    """Reviewer decisions that end a background check."""

    PASS = "pass"
    FAIL = "fail"

    @property
    def status(self) -> BackgroundCheckStatus:
        return BackgroundCheckStatus(self.value)


class FinalizePolicy(str, Enum):
    """Whether ``pass`` needs a complete checklist.

    REQUIRE_COMPLETE_CHECKLIST is the default: a partially selected checklist
    can only be failed.  ALWAYS_ALLOW_PASS leaves the call to the reviewer.
    """

    REQUIRE_COMPLETE_CHECKLIST = "require_complete_checklist"
    ALWAYS_ALLOW_PASS = "always_allow_pass"


@dataclass(frozen=True)
class BackgroundCheckSnapshot:
    """Immutable view of one background_checks row."""

    origin_id: str
    status: BackgroundCheckStatus = BackgroundCheckStatus.UNSET
    selected: tuple[str, ...] = ()
    finalized_by_id: str | None = None
    updated_at: datetime | None = None

    @property
    def stage(self) -> BackgroundCheckStage:
        if self.status is BackgroundCheckStatus.UNSET:
            return BackgroundCheckStage.SELECTING
        return BackgroundCheckStage.FINALIZED

    @property
    def is_terminal(self) -> bool:
        return self.status is not BackgroundCheckStatus.UNSET

    @property
    def passed(self) -> bool:
        return self.status is BackgroundCheckStatus.PASS


def stage_of(snapshot: BackgroundCheckSnapshot | None) -> BackgroundCheckStage:
    """Stage of an origin; a missing row means the check never started."""
    if snapshot is None:
        return BackgroundCheckStage.NOT_STARTED
    return snapshot.stage


def pass_allowed(
    selected: tuple[str, ...],
    checklist: Checklist,
    policy: FinalizePolicy,
) -> bool:
    """Whether the Pass affordance is offered for this selection."""
    if policy is FinalizePolicy.ALWAYS_ALLOW_PASS:
        return True
    return checklist.is_complete(selected)


def check_decision_allowed(
    snapshot: BackgroundCheckSnapshot,
    decision: FinalizeDecision,
    checklist: Checklist,
    policy: FinalizePolicy,
) -> None:
    """Raise if the finalize policy forbids ``decision`` for this selection.

    Raises:
        ChecklistIncompleteError: pass requested on a partial checklist under
            REQUIRE_COMPLETE_CHECKLIST.
    """
    if decision is FinalizeDecision.PASS and not pass_allowed(
        snapshot.selected, checklist, policy
    ):
        raise ChecklistIncompleteError(
            snapshot.origin_id,
            len(set(snapshot.selected) & set(checklist.keys)),
            checklist.size,
        )
