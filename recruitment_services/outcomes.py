"""
Action outcomes (``recruitment_services.outcomes``).

Every user action ends in exactly one ``ActionOutcome``.  The transport
binding turns it into an ephemeral reply, an in-place update of the
message the widget lives on, or a form dialog.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from recruitment_kernel.domain.views import FormSpec, RenderedView


class OutcomeKind(str, Enum):
    REPLY = "reply"
    UPDATE = "update"
    FORM = "form"


class OutcomeStatus(str, Enum):
    OK = "ok"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class ActionOutcome:
    kind: OutcomeKind
    status: OutcomeStatus = OutcomeStatus.OK
    message: str | None = None
    view: RenderedView | None = None
    form: FormSpec | None = None
    error_code: str | None = None
    origin_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @classmethod
    def reply(
        cls,
        message: str | None = None,
        view: RenderedView | None = None,
        origin_id: str | None = None,
    ) -> ActionOutcome:
        return cls(OutcomeKind.REPLY, message=message, view=view, origin_id=origin_id)

    @classmethod
    def update(
        cls,
        message: str | None = None,
        view: RenderedView | None = None,
        origin_id: str | None = None,
    ) -> ActionOutcome:
        return cls(OutcomeKind.UPDATE, message=message, view=view, origin_id=origin_id)

    @classmethod
    def show_form(cls, form: FormSpec, origin_id: str | None = None) -> ActionOutcome:
        return cls(OutcomeKind.FORM, form=form, origin_id=origin_id)

    @classmethod
    def error(
        cls,
        message: str,
        error_code: str,
        status: OutcomeStatus = OutcomeStatus.REJECTED,
        origin_id: str | None = None,
    ) -> ActionOutcome:
        return cls(
            OutcomeKind.REPLY,
            status=status,
            message=message,
            error_code=error_code,
            origin_id=origin_id,
        )
