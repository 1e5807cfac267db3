"""
Observation domain types (``recruitment_kernel.domain.observation``).

Pure value objects for the write-once observation slots attached to an
origin record.  ZERO I/O.

Each origin has ``slot_count`` slots (K).  A slot is ``Empty`` until its first
durable insert and ``Recorded`` forever after.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from recruitment_kernel.exceptions import InvalidSlotError, ObservationContentError

MAX_FIELD_LENGTH = 1024
MAX_DATE_LENGTH = 32
MAX_SUBJECT_USERNAME_LENGTH = 100
DEFAULT_SLOT_COUNT = 3
FORM_DATE_FORMAT = "%m/%d/%Y"


@dataclass(frozen=True)
class ObservationSettings:
    """How many slots an origin has and which fields a slot form carries."""

    slot_count: int = DEFAULT_SLOT_COUNT
    include_subject_username: bool = False

    def __post_init__(self) -> None:
        if self.slot_count < 1:
            raise ValueError(f"slot_count must be >= 1, got {self.slot_count}")

    @property
    def slots(self) -> range:
        return range(1, self.slot_count + 1)

    def validate_slot(self, slot: int) -> int:
        if slot not in self.slots:
            raise InvalidSlotError(slot, self.slot_count)
        return slot


@dataclass(frozen=True)
class ObservationContent:
    """Content an observer submits for one slot."""

    notes: str
    date: str = ""
    issues: str = ""
    subject_username: str | None = None


@dataclass(frozen=True)
class ObservationRecord:
    """Immutable view of one observations row."""

    origin_id: str
    slot: int
    date: str
    notes: str
    issues: str
    author_id: str
    created_at: datetime
    subject_username: str | None = None


def form_date(moment: datetime) -> str:
    """``MM/DD/YYYY``, the format the observation form prefills."""
    return moment.strftime(FORM_DATE_FORMAT)


def normalize_content(
    content: ObservationContent,
    today: datetime,
    settings: ObservationSettings,
) -> ObservationContent:
    """Trim and bound submitted content.

    Blank date falls back to today; notes are required; text fields are cut
    to the column sizes.  The subject username is dropped unless the setting
    enables it.

    Raises:
        ObservationContentError: If notes are blank.
    """
    notes = (content.notes or "").strip()[:MAX_FIELD_LENGTH]
    if not notes:
        raise ObservationContentError("notes")

    subject = None
    if settings.include_subject_username and content.subject_username:
        subject = content.subject_username.strip()[:MAX_SUBJECT_USERNAME_LENGTH] or None

    return replace(
        content,
        notes=notes,
        date=(content.date or "").strip()[:MAX_DATE_LENGTH] or form_date(today),
        issues=(content.issues or "").strip()[:MAX_FIELD_LENGTH],
        subject_username=subject,
    )
