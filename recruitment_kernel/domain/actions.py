"""
Typed user actions (``recruitment_kernel.domain.actions``).

Responsibility
--------------
Every user interaction the transport delivers becomes exactly one variant of
the ``Action`` tagged union.  Each variant carries the origin id (or the
handoff token) as a typed field, so dispatch is a structural ``match`` rather
than prefix parsing.

``ActionKey`` is the compact ``stage:verb:id[:extra]`` form that transport
bindings embed in buttons, menus and forms, and decode when the widget is
used.  It identifies the target; the transport combines it with the actor
and the submitted values to build the ``Action``.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from recruitment_kernel.domain.background_check import FinalizeDecision
from recruitment_kernel.domain.observation import ObservationContent
from recruitment_kernel.domain.recommendation import ProofAttachment
from recruitment_kernel.exceptions import MalformedActionError

KEY_SEPARATOR = ":"


class Stage(str, Enum):
    RECOMMEND = "recommend"
    BGCHECK = "bgcheck"
    OBSERVATION = "observation"


class Verb(str, Enum):
    START = "start"
    CONTINUE = "continue"
    CANCEL = "cancel"
    SUBMIT = "submit"
    SELECT = "select"
    FINALIZE = "finalize"
    VIEW = "view"


# Verbs a widget may carry per stage; "start" for recommend is the slash
# command itself and never appears in a widget.
_WIDGET_VERBS: dict[Stage, frozenset[Verb]] = {
    Stage.RECOMMEND: frozenset({Verb.CONTINUE, Verb.CANCEL, Verb.SUBMIT}),
    Stage.BGCHECK: frozenset({Verb.START, Verb.SELECT, Verb.FINALIZE, Verb.CANCEL}),
    Stage.OBSERVATION: frozenset({Verb.START, Verb.VIEW, Verb.SUBMIT}),
}


@dataclass(frozen=True)
class ActionKey:
    """Widget identifier: ``stage:verb:target[:extra]``."""

    stage: Stage
    verb: Verb
    target: str
    extra: str | None = None

    def encode(self) -> str:
        parts = [self.stage.value, self.verb.value, self.target]
        if self.extra is not None:
            parts.append(self.extra)
        return KEY_SEPARATOR.join(parts)

    @classmethod
    def decode(cls, raw: str) -> ActionKey:
        """
        Raises:
            MalformedActionError: Unknown stage/verb, empty target, a missing
                or unexpected extra, or a non-numeric slot.
        """
        parts = raw.split(KEY_SEPARATOR)
        if len(parts) not in (3, 4):
            raise MalformedActionError(raw, "expected stage:verb:target[:extra]")
        try:
            stage = Stage(parts[0])
            verb = Verb(parts[1])
        except ValueError as exc:
            raise MalformedActionError(raw, str(exc)) from exc
        if verb not in _WIDGET_VERBS[stage]:
            raise MalformedActionError(raw, f"verb {verb.value} not valid for {stage.value}")
        if not parts[2]:
            raise MalformedActionError(raw, "empty target")

        extra = parts[3] if len(parts) == 4 else None
        needs_extra = stage is Stage.OBSERVATION or verb is Verb.FINALIZE
        if needs_extra and not extra:
            raise MalformedActionError(raw, "missing extra segment")
        if not needs_extra and extra is not None:
            raise MalformedActionError(raw, "unexpected extra segment")
        if stage is Stage.OBSERVATION and not extra.isdigit():
            raise MalformedActionError(raw, "slot must be numeric")
        if verb is Verb.FINALIZE:
            try:
                FinalizeDecision(extra)
            except ValueError as exc:
                raise MalformedActionError(raw, str(exc)) from exc
        return cls(stage, verb, parts[2], extra)

    @property
    def slot(self) -> int | None:
        if self.stage is Stage.OBSERVATION and self.extra is not None:
            return int(self.extra)
        return None


# ---------------------------------------------------------------------------
# Action variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _ActionBase:
    correlation_id: str
    actor_id: str


@dataclass(frozen=True)
class RecommendStart(_ActionBase):
    """Slash command.  The correlation id doubles as the handoff token."""

    authorized: bool
    proof: ProofAttachment | None = None
    source_guild_name: str | None = None

    @property
    def token(self) -> str:
        return self.correlation_id


@dataclass(frozen=True)
class RecommendContinue(_ActionBase):
    token: str


@dataclass(frozen=True)
class RecommendCancel(_ActionBase):
    token: str


@dataclass(frozen=True)
class RecommendSubmit(_ActionBase):
    token: str
    candidate_username: str
    reason: str


@dataclass(frozen=True)
class BackgroundCheckStart(_ActionBase):
    origin_id: str


@dataclass(frozen=True)
class BackgroundCheckUpdateSelection(_ActionBase):
    origin_id: str
    values: tuple[str, ...]


@dataclass(frozen=True)
class BackgroundCheckFinalize(_ActionBase):
    origin_id: str
    decision: FinalizeDecision


@dataclass(frozen=True)
class BackgroundCheckCancel(_ActionBase):
    origin_id: str


@dataclass(frozen=True)
class ObservationStart(_ActionBase):
    origin_id: str
    slot: int


@dataclass(frozen=True)
class ObservationView(_ActionBase):
    origin_id: str
    slot: int


@dataclass(frozen=True)
class ObservationSubmit(_ActionBase):
    origin_id: str
    slot: int
    content: ObservationContent


Action = (
    RecommendStart
    | RecommendContinue
    | RecommendCancel
    | RecommendSubmit
    | BackgroundCheckStart
    | BackgroundCheckUpdateSelection
    | BackgroundCheckFinalize
    | BackgroundCheckCancel
    | ObservationStart
    | ObservationView
    | ObservationSubmit
)

_ACTION_NAMES: dict[type, str] = {
    RecommendStart: "recommend.start",
    RecommendContinue: "recommend.continue",
    RecommendCancel: "recommend.cancel",
    RecommendSubmit: "recommend.submit",
    BackgroundCheckStart: "bgcheck.start",
    BackgroundCheckUpdateSelection: "bgcheck.updateSelection",
    BackgroundCheckFinalize: "bgcheck.finalize",
    BackgroundCheckCancel: "bgcheck.cancel",
    ObservationStart: "observation.start",
    ObservationView: "observation.view",
    ObservationSubmit: "observation.submit",
}


def action_name(action: Action) -> str:
    """Dotted vocabulary name, e.g. ``bgcheck.finalize``."""
    return _ACTION_NAMES[type(action)]


def action_origin(action: Action) -> str | None:
    """Origin id the action targets, None for recommend.* actions."""
    return getattr(action, "origin_id", None)


def action_from_key(
    key: ActionKey,
    *,
    correlation_id: str,
    actor_id: str,
    values: tuple[str, ...] = (),
    fields: dict[str, str] | None = None,
) -> Action:
    """Build the typed action for a decoded widget key.

    ``values`` carries select-menu choices; ``fields`` carries form inputs
    keyed by the form field keys the projection declares.
    """
    fields = fields or {}
    base = {"correlation_id": correlation_id, "actor_id": actor_id}
    match (key.stage, key.verb):
        case (Stage.RECOMMEND, Verb.CONTINUE):
            return RecommendContinue(**base, token=key.target)
        case (Stage.RECOMMEND, Verb.CANCEL):
            return RecommendCancel(**base, token=key.target)
        case (Stage.RECOMMEND, Verb.SUBMIT):
            return RecommendSubmit(
                **base,
                token=key.target,
                candidate_username=fields.get("candidate_username", ""),
                reason=fields.get("reason", ""),
            )
        case (Stage.BGCHECK, Verb.START):
            return BackgroundCheckStart(**base, origin_id=key.target)
        case (Stage.BGCHECK, Verb.SELECT):
            return BackgroundCheckUpdateSelection(
                **base, origin_id=key.target, values=tuple(values)
            )
        case (Stage.BGCHECK, Verb.FINALIZE):
            return BackgroundCheckFinalize(
                **base, origin_id=key.target, decision=FinalizeDecision(key.extra)
            )
        case (Stage.BGCHECK, Verb.CANCEL):
            return BackgroundCheckCancel(**base, origin_id=key.target)
        case (Stage.OBSERVATION, Verb.START):
            return ObservationStart(**base, origin_id=key.target, slot=key.slot)
        case (Stage.OBSERVATION, Verb.VIEW):
            return ObservationView(**base, origin_id=key.target, slot=key.slot)
        case (Stage.OBSERVATION, Verb.SUBMIT):
            return ObservationSubmit(
                **base,
                origin_id=key.target,
                slot=key.slot,
                content=ObservationContent(
                    notes=fields.get("notes", ""),
                    date=fields.get("date", ""),
                    issues=fields.get("issues", ""),
                    subject_username=fields.get("subject_username"),
                ),
            )
    raise MalformedActionError(key.encode(), "no action for stage/verb")
