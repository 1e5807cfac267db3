"""
Module: recruitment_kernel.models.background_check
Responsibility: ORM persistence for the per-origin background check.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One row per origin (origin_id primary key).
    - DB check constraint limits status to unset / pass / fail.
    - Terminal rows are never rewritten.  The store performs every write as
      a Core UPDATE guarded by ``status = 'unset'``; there is no ORM-level
      mutation path for this table.

Failure modes:
    - IntegrityError on an invalid status value.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from recruitment_kernel.db.base import Base

if TYPE_CHECKING:
    from recruitment_kernel.domain.background_check import BackgroundCheckSnapshot


class BackgroundCheckModel(Base):
    """Persistent background-check state for one origin."""

    __tablename__ = "background_checks"

    __table_args__ = (
        CheckConstraint(
            "status IN ('unset', 'pass', 'fail')",
            name="ck_background_checks_valid_status",
        ),
    )

    origin_id: Mapped[str] = mapped_column(primary_key=True)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="unset")
    selected_keys: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    finalized_by_id: Mapped[str | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<BackgroundCheck {self.origin_id} status={self.status}>"

    def to_dto(self) -> BackgroundCheckSnapshot:
        """Convert ORM model to frozen domain DTO."""
        from recruitment_kernel.domain.background_check import (
            BackgroundCheckSnapshot,
            BackgroundCheckStatus,
        )

        return BackgroundCheckSnapshot(
            origin_id=self.origin_id,
            status=BackgroundCheckStatus(self.status),
            selected=tuple(self.selected_keys or ()),
            finalized_by_id=self.finalized_by_id,
            updated_at=self.updated_at,
        )
