"""
View projection (``recruitment_kernel.domain.projection``).

Responsibility
--------------
Pure functions from canonical state to ``RenderedView`` / ``FormSpec``.
Every surface is re-rendered wholesale from a ``CandidateRecord``; nothing
reads back or patches what a message currently shows.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  The broadcaster and the orchestrator
call these; transport bindings translate the result into widgets.

Invariants enforced
-------------------
* Origin and mirror surfaces of one record differ only in the embed title.
* Affordances expose exactly the actions that are legal for the current
  state: the background-check button until finalized (disabled after a
  fail), then one button per observation slot.
"""

from __future__ import annotations

from datetime import datetime

from recruitment_kernel.domain.actions import ActionKey, Stage, Verb
from recruitment_kernel.domain.background_check import (
    BackgroundCheckSnapshot,
    BackgroundCheckStatus,
    FinalizeDecision,
    FinalizePolicy,
    pass_allowed,
)
from recruitment_kernel.domain.checklist import FAIL_MARKER, PASS_MARKER, Checklist
from recruitment_kernel.domain.observation import ObservationRecord, form_date
from recruitment_kernel.domain.records import CandidateRecord, SurfaceKind
from recruitment_kernel.domain.recommendation import Recommendation
from recruitment_kernel.domain.views import (
    AffordanceRow,
    Button,
    ButtonStyle,
    Embed,
    EmbedField,
    FieldStyle,
    FormField,
    FormSpec,
    RenderedView,
    SelectMenu,
    SelectOption,
)

REQUIREMENTS_COLOR = 0x5865F2
RECOMMENDATION_COLOR = 0x2ECC71
OBSERVATION_COLOR = 0x43B581

SURFACE_TITLES: dict[SurfaceKind, str] = {
    SurfaceKind.ORIGIN: "Recommendation",
    SurfaceKind.MIRROR: "Promotion Poll",
}

BACKGROUND_CHECK_LABEL = "Background check"
EMPTY_VALUE = "—"


def mention(user_id: str | None) -> str:
    return f"<@{user_id}>" if user_id else EMPTY_VALUE


def role_mention(role_id: str | None) -> str | None:
    return f"<@&{role_id}>" if role_id else None


# ---------------------------------------------------------------------------
# Record surfaces
# ---------------------------------------------------------------------------


def background_check_field(
    snapshot: BackgroundCheckSnapshot,
    checklist: Checklist,
) -> EmbedField:
    """Header carries PASS/FAIL; the body is the checklist."""
    marker = PASS_MARKER if snapshot.passed else FAIL_MARKER
    return EmbedField(
        name=f"{marker} Background Check: {snapshot.status.header}",
        value="\n".join(checklist.lines(snapshot.selected)),
    )


def recommendation_embed(
    recommendation: Recommendation,
    checklist: Checklist,
    background_check: BackgroundCheckSnapshot | None = None,
    kind: SurfaceKind = SurfaceKind.ORIGIN,
) -> Embed:
    fields = [
        EmbedField("Recommender", mention(recommendation.recommender_id)),
        EmbedField("LR Username", recommendation.candidate_username, inline=True),
        EmbedField("Reason", recommendation.reason or EMPTY_VALUE),
    ]
    if background_check is not None and background_check.is_terminal:
        fields.append(background_check_field(background_check, checklist))

    return Embed(
        title=SURFACE_TITLES[kind],
        color=RECOMMENDATION_COLOR,
        fields=tuple(fields),
        footer=f"Submitted from: {recommendation.source_guild_name or 'Unknown'}",
        image_url=recommendation.proof_url,
        timestamp=recommendation.created_at,
    )


def affordance_rows(record: CandidateRecord) -> tuple[AffordanceRow, ...]:
    origin_id = record.origin_id
    match record.status:
        case BackgroundCheckStatus.UNSET:
            return (AffordanceRow((
                Button(
                    BACKGROUND_CHECK_LABEL,
                    ActionKey(Stage.BGCHECK, Verb.START, origin_id).encode(),
                ),
            )),)
        case BackgroundCheckStatus.FAIL:
            return (AffordanceRow((
                Button(
                    BACKGROUND_CHECK_LABEL,
                    ActionKey(Stage.BGCHECK, Verb.START, origin_id).encode(),
                    disabled=True,
                ),
            )),)

    filled = record.filled_slots
    buttons = []
    for slot in range(1, record.slot_count + 1):
        if slot in filled:
            buttons.append(Button(
                f"View Observation {slot}",
                ActionKey(Stage.OBSERVATION, Verb.VIEW, origin_id, str(slot)).encode(),
                style=ButtonStyle.PRIMARY,
            ))
        else:
            buttons.append(Button(
                f"Observation {slot}",
                ActionKey(Stage.OBSERVATION, Verb.START, origin_id, str(slot)).encode(),
            ))
    # Transports cap a row at five components.
    return tuple(
        AffordanceRow(tuple(buttons[i:i + 5])) for i in range(0, len(buttons), 5)
    )


def project(
    record: CandidateRecord,
    checklist: Checklist,
    kind: SurfaceKind = SurfaceKind.ORIGIN,
) -> RenderedView:
    """Full view of a record for one surface kind."""
    return RenderedView(
        embeds=(
            recommendation_embed(
                record.recommendation, checklist, record.background_check, kind
            ),
        ),
        rows=affordance_rows(record),
    )


# ---------------------------------------------------------------------------
# Background-check review panel (shown to the reviewer only)
# ---------------------------------------------------------------------------


def background_check_panel(
    snapshot: BackgroundCheckSnapshot,
    checklist: Checklist,
    policy: FinalizePolicy,
    content: str | None = None,
) -> RenderedView:
    origin_id = snapshot.origin_id
    chosen = set(snapshot.selected)
    menu = SelectMenu(
        action_key=ActionKey(Stage.BGCHECK, Verb.SELECT, origin_id).encode(),
        placeholder="Select all items that PASS",
        options=tuple(
            SelectOption(c.label, c.key, default=c.key in chosen)
            for c in checklist.criteria
        ),
        min_values=0,
        max_values=checklist.size,
    )
    actions = AffordanceRow((
        Button(
            "Pass",
            ActionKey(Stage.BGCHECK, Verb.FINALIZE, origin_id, FinalizeDecision.PASS.value).encode(),
            style=ButtonStyle.SUCCESS,
            disabled=not pass_allowed(snapshot.selected, checklist, policy),
        ),
        Button(
            "Decline",
            ActionKey(Stage.BGCHECK, Verb.FINALIZE, origin_id, FinalizeDecision.FAIL.value).encode(),
            style=ButtonStyle.DANGER,
        ),
        Button(
            "Cancel",
            ActionKey(Stage.BGCHECK, Verb.CANCEL, origin_id).encode(),
        ),
    ))
    if content is None:
        content = (
            "**Background check**\n"
            "Select all that **PASS**, then choose **Pass** or **Decline**."
        )
    return RenderedView(content=content, rows=(AffordanceRow((menu,)), actions))


# ---------------------------------------------------------------------------
# Observations
# ---------------------------------------------------------------------------


def observation_embed(
    observation: ObservationRecord,
    recommendation: Recommendation,
    title: str | None = None,
) -> Embed:
    fields = [
        EmbedField("Observer", mention(observation.author_id)),
        EmbedField("Date", observation.date or form_date(observation.created_at)),
        EmbedField("Observation Notes", observation.notes or EMPTY_VALUE),
        EmbedField("Observation Issues", observation.issues or "None"),
        EmbedField("Recommended Individual", recommendation.candidate_username or EMPTY_VALUE),
    ]
    if observation.subject_username:
        fields.append(EmbedField("Observed Username", observation.subject_username))
    return Embed(
        title=title or f"Observation {observation.slot}",
        color=OBSERVATION_COLOR,
        fields=tuple(fields),
        timestamp=observation.created_at,
    )


def observation_form(
    origin_id: str,
    slot: int,
    today: datetime,
    include_subject_username: bool = False,
) -> FormSpec:
    fields = [
        FormField("date", "Date", value=form_date(today)),
        FormField("notes", "Observation Notes", style=FieldStyle.PARAGRAPH),
        FormField(
            "issues",
            "Observation Issues",
            style=FieldStyle.PARAGRAPH,
            required=False,
            placeholder="If none, leave blank",
        ),
    ]
    if include_subject_username:
        fields.append(FormField("subject_username", "Observed Username", required=False))
    return FormSpec(
        action_key=ActionKey(Stage.OBSERVATION, Verb.SUBMIT, origin_id, str(slot)).encode(),
        title=f"Observation {slot}",
        fields=tuple(fields),
    )


# ---------------------------------------------------------------------------
# Recommendation intake
# ---------------------------------------------------------------------------


def requirements_panel(token: str, requirements_text: str) -> RenderedView:
    return RenderedView(
        embeds=(
            Embed(
                title="Recommendation Requirements",
                color=REQUIREMENTS_COLOR,
                description=requirements_text,
            ),
        ),
        rows=(AffordanceRow((
            Button(
                "Continue",
                ActionKey(Stage.RECOMMEND, Verb.CONTINUE, token).encode(),
                style=ButtonStyle.PRIMARY,
            ),
            Button("Cancel", ActionKey(Stage.RECOMMEND, Verb.CANCEL, token).encode()),
        )),),
    )


def recommendation_form(token: str) -> FormSpec:
    return FormSpec(
        action_key=ActionKey(Stage.RECOMMEND, Verb.SUBMIT, token).encode(),
        title="Recommendation",
        fields=(
            FormField("candidate_username", "Roblox Username (LR)"),
            FormField(
                "reason",
                "Why are you recommending this individual?",
                style=FieldStyle.PARAGRAPH,
            ),
        ),
    )
