"""
recruitment_services.workflow_orchestrator -- action dispatch for the
recruitment workflow.

Responsibility:
    Receives every typed user action, routes it to the stage that owns it,
    runs it in its own unit of work, broadcasts the new canonical state
    after commit, and turns the result or the error into exactly one
    ``ActionOutcome``.

Architecture position:
    Services -- stateful orchestration over the kernel.  This is the only
    place where engines, the record store, the broadcaster and the session
    stash are constructed and composed.  Configuration arrives already
    bridged (see ``from_config``).

Invariants enforced:
    - One unit of work per action: a fresh session from the session
      factory, committed on success, rolled back on any error.
    - Broadcasts run after commit, in their own read-only session, and
      never fail the action.
    - Observation actions require ``Finalized(pass)``; background-check
      actions are illegal once finalized.  The engines enforce both.
    - Every action is acknowledged, including unexpected failures.

Failure modes:
    - None escape ``dispatch``/``handle_widget``; errors become outcomes
      with ``status`` REJECTED (expected, user-facing) or FAILED (logged
      at error level).

Usage:
    orchestrator = WorkflowOrchestrator.from_config(
        config, get_session_factory(), transport,
    )
    outcome = orchestrator.handle_widget(
        "bgcheck:finalize:1234:pass",
        correlation_id=interaction_id,
        actor_id=user_id,
    )
"""

from __future__ import annotations

from dataclasses import replace

from sqlalchemy.orm import Session, sessionmaker

from recruitment_config.bridges import (
    build_checklist,
    build_finalize_policy,
    build_mirror_settings,
    build_observation_settings,
    build_proof_policy,
    build_session_stash,
)
from recruitment_config.schema import WorkflowConfig
from recruitment_kernel.db.engine import session_scope
from recruitment_kernel.domain.actions import (
    Action,
    ActionKey,
    BackgroundCheckCancel,
    BackgroundCheckFinalize,
    BackgroundCheckStart,
    BackgroundCheckUpdateSelection,
    ObservationStart,
    ObservationSubmit,
    ObservationView,
    RecommendCancel,
    RecommendContinue,
    RecommendStart,
    RecommendSubmit,
    action_from_key,
    action_name,
    action_origin,
)
from recruitment_kernel.domain.background_check import FinalizePolicy
from recruitment_kernel.domain.checklist import Checklist
from recruitment_kernel.domain.clock import Clock, SystemClock
from recruitment_kernel.domain.observation import ObservationSettings
from recruitment_kernel.domain.projection import (
    background_check_panel,
    mention,
    observation_embed,
    recommendation_embed,
    recommendation_form,
    requirements_panel,
    role_mention,
)
from recruitment_kernel.domain.recommendation import (
    MAX_REASON_LENGTH,
    MAX_USERNAME_LENGTH,
    ProofHandoff,
    ProofPolicy,
    Recommendation,
    make_handoff,
    validate_proof,
)
from recruitment_kernel.domain.records import CandidateRecord, SurfaceKind
from recruitment_kernel.domain.transport import MessageTransport
from recruitment_kernel.domain.views import RenderedView
from recruitment_kernel.exceptions import (
    AlreadyFinalizedError,
    ChecklistIncompleteError,
    InvalidProofError,
    InvalidSlotError,
    MalformedActionError,
    NotAuthorizedError,
    ObservationContentError,
    PreconditionViolatedError,
    ProofRequiredError,
    RecommendationContentError,
    RecordNotFoundError,
    RecruitmentKernelError,
    SessionExpiredError,
    SlotAlreadyRecordedError,
    SlotNotRecordedError,
    SurfaceUnavailableError,
    UnknownCriterionError,
)
from recruitment_kernel.logging_config import LogContext, get_logger
from recruitment_kernel.services.background_check_engine import BackgroundCheckEngine
from recruitment_kernel.services.broadcaster import Broadcaster, BroadcastReport
from recruitment_kernel.services.observation_engine import (
    MirrorSettings,
    ObservationEngine,
)
from recruitment_kernel.services.record_store import RecordStore
from recruitment_kernel.services.session_stash import SessionStash
from recruitment_services.outcomes import ActionOutcome, OutcomeStatus

logger = get_logger("services.workflow_orchestrator")

GENERIC_FAILURE = "❌ Something went wrong."
SESSION_EXPIRED = "❌ Session expired. Please run `/recommend` again."


class WorkflowOrchestrator:
    """Single entry point for user actions.

    Contract:
        Owns unit-of-work boundaries; engines and the store only flush.

    Non-goals:
        - Does NOT resolve permissions; ``RecommendStart.authorized`` comes
          from the transport binding.
        - Does NOT retry broadcasts.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        transport: MessageTransport,
        stash: SessionStash,
        *,
        recommend_channel_id: str | None,
        checklist: Checklist | None = None,
        finalize_policy: FinalizePolicy = FinalizePolicy.REQUIRE_COMPLETE_CHECKLIST,
        observation_settings: ObservationSettings | None = None,
        proof_policy: ProofPolicy | None = None,
        mirror: MirrorSettings | None = None,
        ping_role_id: str | None = None,
        requirements_text: str = "",
        clock: Clock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._transport = transport
        self._stash = stash
        self._recommend_channel_id = recommend_channel_id
        self._checklist = checklist or Checklist()
        self._finalize_policy = finalize_policy
        self._observation_settings = observation_settings or ObservationSettings()
        self._proof_policy = proof_policy or ProofPolicy()
        self._mirror = mirror
        self._ping_role_id = ping_role_id
        self._requirements_text = requirements_text
        self._clock = clock or SystemClock()

    @classmethod
    def from_config(
        cls,
        config: WorkflowConfig,
        session_factory: sessionmaker[Session],
        transport: MessageTransport,
        stash: SessionStash | None = None,
        clock: Clock | None = None,
    ) -> WorkflowOrchestrator:
        return cls(
            session_factory,
            transport,
            stash or build_session_stash(config),
            recommend_channel_id=config.channels.recommend_channel_id,
            checklist=build_checklist(config),
            finalize_policy=build_finalize_policy(config),
            observation_settings=build_observation_settings(config),
            proof_policy=build_proof_policy(config),
            mirror=build_mirror_settings(config),
            ping_role_id=config.channels.ping_role_id,
            requirements_text=config.requirements_text,
            clock=clock,
        )

    @property
    def stash(self) -> SessionStash:
        return self._stash

    # =========================================================================
    # Entry points
    # =========================================================================

    def handle_widget(
        self,
        raw_key: str,
        *,
        correlation_id: str,
        actor_id: str,
        values: tuple[str, ...] = (),
        fields: dict[str, str] | None = None,
    ) -> ActionOutcome:
        """Decode a widget identifier and dispatch the resulting action."""
        try:
            key = ActionKey.decode(raw_key)
            action = action_from_key(
                key,
                correlation_id=correlation_id,
                actor_id=actor_id,
                values=values,
                fields=fields,
            )
        except MalformedActionError as exc:
            with LogContext.bind(correlation_id=correlation_id, actor_id=actor_id):
                logger.error("action_malformed", extra={"raw_key": raw_key}, exc_info=True)
            return ActionOutcome.error(GENERIC_FAILURE, exc.code, OutcomeStatus.FAILED)
        return self.dispatch(action)

    def dispatch(self, action: Action) -> ActionOutcome:
        """Run one action and return its single outcome."""
        origin_id = action_origin(action)
        with LogContext.bind(
            correlation_id=action.correlation_id,
            origin_id=origin_id,
            actor_id=action.actor_id,
            action=action_name(action),
        ):
            logger.info("action_received")
            try:
                outcome = self._route(action)
            except RecruitmentKernelError as exc:
                outcome = self._error_outcome(exc, origin_id)
            except Exception as exc:
                logger.exception(
                    "action_failed_unexpectedly",
                    extra={"error_type": type(exc).__name__},
                )
                outcome = ActionOutcome.error(
                    GENERIC_FAILURE, "INTERNAL_ERROR", OutcomeStatus.FAILED, origin_id
                )
            logger.info(
                "action_completed",
                extra={
                    "status": outcome.status.value,
                    "outcome_kind": outcome.kind.value,
                    "error_code": outcome.error_code,
                },
            )
            return outcome

    def _route(self, action: Action) -> ActionOutcome:
        match action:
            case RecommendStart():
                return self._recommend_start(action)
            case RecommendContinue(token=token, actor_id=actor_id):
                self._stash.refresh(token, actor_id)
                return ActionOutcome.show_form(recommendation_form(token))
            case RecommendCancel(token=token):
                self._stash.discard(token)
                return ActionOutcome.update(message="❌ Recommendation cancelled.")
            case RecommendSubmit():
                return self._recommend_submit(action)
            case BackgroundCheckStart(origin_id=origin_id):
                return self._bgcheck_start(origin_id)
            case BackgroundCheckUpdateSelection(origin_id=origin_id, values=values):
                return self._bgcheck_update_selection(origin_id, values)
            case BackgroundCheckFinalize():
                return self._bgcheck_finalize(action)
            case BackgroundCheckCancel(origin_id=origin_id):
                return ActionOutcome.update(
                    message="❎ Background check cancelled.", origin_id=origin_id
                )
            case ObservationStart():
                return self._observation_start(action)
            case ObservationView():
                return self._observation_view(action)
            case ObservationSubmit():
                return self._observation_submit(action)
        raise MalformedActionError(repr(action), "unhandled action type")

    # =========================================================================
    # Recommendation intake
    # =========================================================================

    def _recommend_start(self, action: RecommendStart) -> ActionOutcome:
        if not action.authorized:
            raise NotAuthorizedError(action.actor_id)
        proof = validate_proof(action.proof, self._proof_policy)
        self._stash.put(
            action.token,
            make_handoff(proof, action.source_guild_name),
            owner_id=action.actor_id,
        )
        return ActionOutcome.reply(
            view=requirements_panel(action.token, self._requirements_text)
        )

    def _recommend_submit(self, action: RecommendSubmit) -> ActionOutcome:
        candidate = (action.candidate_username or "").strip()[:MAX_USERNAME_LENGTH]
        if not candidate:
            raise RecommendationContentError("candidate_username")
        reason = (action.reason or "").strip()[:MAX_REASON_LENGTH]

        handoff: ProofHandoff = self._stash.consume(action.token, action.actor_id)
        if self._recommend_channel_id is None:
            raise SurfaceUnavailableError("recommend_channel")

        draft = Recommendation(
            origin_id="",
            channel_id=self._recommend_channel_id,
            recommender_id=action.actor_id,
            candidate_username=candidate,
            reason=reason,
            proof_url=handoff.proof_url,
            created_at=self._clock.now(),
            proof_file_name=handoff.proof_file_name,
            source_guild_name=handoff.source_guild_name,
        )
        # Posted without affordances; the broadcast below adds them once the
        # message id (the origin id) is known.
        ref = self._transport.send_message(
            self._recommend_channel_id,
            RenderedView(
                content=role_mention(self._ping_role_id),
                embeds=(recommendation_embed(draft, self._checklist),),
            ),
        )
        recommendation = replace(
            draft, origin_id=ref.message_id, channel_id=ref.channel_id
        )

        with LogContext.bind(origin_id=recommendation.origin_id):
            try:
                with session_scope(self._session_factory) as session:
                    store = RecordStore(session, self._clock)
                    store.insert_recommendation(recommendation)
                    store.add_replica(recommendation.origin_id, ref, SurfaceKind.ORIGIN)
            except Exception:
                logger.error(
                    "recommendation_orphaned",
                    extra={"channel_id": ref.channel_id, "message_id": ref.message_id},
                )
                raise
            self._broadcast(recommendation.origin_id)

        return ActionOutcome.reply(
            message="✅ Recommendation sent to the Recruitment Department. Thanks!",
            origin_id=recommendation.origin_id,
        )

    # =========================================================================
    # Background check
    # =========================================================================

    def _background_check_engine(self, session: Session) -> BackgroundCheckEngine:
        return BackgroundCheckEngine(
            session, self._checklist, self._finalize_policy, self._clock
        )

    def _bgcheck_start(self, origin_id: str) -> ActionOutcome:
        with session_scope(self._session_factory) as session:
            snapshot = self._background_check_engine(session).start(origin_id)
        return ActionOutcome.reply(
            view=background_check_panel(snapshot, self._checklist, self._finalize_policy),
            origin_id=origin_id,
        )

    def _bgcheck_update_selection(
        self,
        origin_id: str,
        values: tuple[str, ...],
    ) -> ActionOutcome:
        with session_scope(self._session_factory) as session:
            snapshot = self._background_check_engine(session).update_selection(
                origin_id, values
            )
        content = (
            f"Selections saved ({len(snapshot.selected)}/{self._checklist.size}). "
            "Choose **Pass** or **Decline** when ready."
        )
        return ActionOutcome.update(
            view=background_check_panel(
                snapshot, self._checklist, self._finalize_policy, content=content
            ),
            origin_id=origin_id,
        )

    def _bgcheck_finalize(self, action: BackgroundCheckFinalize) -> ActionOutcome:
        with session_scope(self._session_factory) as session:
            result = self._background_check_engine(session).finalize(
                action.origin_id, action.decision, action.actor_id
            )
        self._broadcast(action.origin_id)
        header = result.snapshot.status.header
        return ActionOutcome.update(
            message=f"✅ Background check **{header}** recorded.",
            origin_id=action.origin_id,
        )

    # =========================================================================
    # Observations
    # =========================================================================

    def _observation_engine(self, session: Session) -> ObservationEngine:
        return ObservationEngine(session, self._observation_settings, self._clock)

    def _observation_start(self, action: ObservationStart) -> ActionOutcome:
        origin_id = action.origin_id
        with session_scope(self._session_factory) as session:
            engine = self._observation_engine(session)
            started = engine.start(origin_id, action.slot)
            if not started.recorded:
                return ActionOutcome.show_form(started.form, origin_id=origin_id)
            observation, record = engine.view(origin_id, action.slot)
        self._resume_mirror(record, action.actor_id)
        return ActionOutcome.reply(
            view=RenderedView(
                embeds=(observation_embed(observation, record.recommendation),)
            ),
            origin_id=origin_id,
        )

    def _observation_view(self, action: ObservationView) -> ActionOutcome:
        origin_id = action.origin_id
        with session_scope(self._session_factory) as session:
            observation, record = self._observation_engine(session).view(
                origin_id, action.slot
            )
        self._resume_mirror(record, action.actor_id)
        return ActionOutcome.reply(
            view=RenderedView(
                embeds=(observation_embed(observation, record.recommendation),)
            ),
            origin_id=origin_id,
        )

    def _observation_submit(self, action: ObservationSubmit) -> ActionOutcome:
        origin_id = action.origin_id
        try:
            with session_scope(self._session_factory) as session:
                stored = self._observation_engine(session).submit(
                    origin_id, action.slot, action.content, action.actor_id
                )
                recommendation = RecordStore(session, self._clock).get_recommendation(
                    origin_id
                )
        except SlotAlreadyRecordedError:
            # A full record whose mirror send failed is retried from here.
            self._post_mirror(origin_id, action.actor_id)
            raise

        # Completion is re-read after commit: two last slots submitted
        # concurrently can each see the other as still empty.
        self._post_mirror(origin_id, action.actor_id)
        self._broadcast(origin_id)

        confirmation = observation_embed(
            stored,
            recommendation,
            title=f"Observation {action.slot} Recorded",
        )
        return ActionOutcome.reply(
            view=RenderedView(embeds=(confirmation,)), origin_id=origin_id
        )

    # =========================================================================
    # After-commit effects (best effort)
    # =========================================================================

    def _resume_mirror(self, record: CandidateRecord, actor_id: str) -> None:
        """Retry the mirror of a complete record whose earlier send failed."""
        if self._mirror is None or not record.all_slots_filled:
            return
        if record.surfaces(SurfaceKind.MIRROR):
            return
        self._post_mirror(record.origin_id, actor_id)

    def _post_mirror(self, origin_id: str, actor_id: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                self._observation_engine(session).post_mirror_if_complete(
                    origin_id, actor_id, self._transport, self._mirror, self._checklist
                )
        except Exception:
            logger.exception("mirror_step_failed", extra={"origin_id": origin_id})

    def _broadcast(self, origin_id: str) -> BroadcastReport | None:
        try:
            with session_scope(self._session_factory) as session:
                return Broadcaster(
                    session,
                    self._transport,
                    self._checklist,
                    self._observation_settings.slot_count,
                ).broadcast(origin_id)
        except Exception:
            logger.exception("broadcast_failed", extra={"origin_id": origin_id})
            return None

    # =========================================================================
    # Error rendering
    # =========================================================================

    def _error_outcome(
        self,
        exc: RecruitmentKernelError,
        origin_id: str | None,
    ) -> ActionOutcome:
        status = OutcomeStatus.REJECTED
        match exc:
            case SessionExpiredError():
                message = SESSION_EXPIRED
            case NotAuthorizedError():
                message = "You do not have permission to use this command."
            case ProofRequiredError():
                message = "❌ You must upload a Safechat proof image."
            case InvalidProofError(max_bytes=max_bytes):
                message = (
                    f"❌ Proof must be an image ≤ {max_bytes // (1024 * 1024)}MB "
                    "(png/jpg/webp/gif)."
                )
            case RecommendationContentError():
                message = "❌ A Roblox username is required."
            case AlreadyFinalizedError(status=final_status):
                message = (
                    f"Background check was already recorded as "
                    f"**{final_status.upper()}**."
                )
            case ChecklistIncompleteError(selected=selected, required=required):
                message = (
                    f"❌ Every check must pass before choosing **Pass** "
                    f"({selected}/{required} selected)."
                )
            case UnknownCriterionError():
                message = "❌ Unknown background check item."
            case SlotAlreadyRecordedError(slot=slot, author_id=author_id):
                message = (
                    f"Observation {slot} was already recorded by {mention(author_id)}."
                )
            case SlotNotRecordedError():
                message = "❌ Observation not available yet."
            case InvalidSlotError():
                message = "❌ That observation slot does not exist."
            case ObservationContentError(field_name=field_name):
                label = field_name.replace("_", " ")
                message = f"❌ Observation {label} must not be blank."
            case RecordNotFoundError():
                message = "❌ This recommendation is no longer available."
            case SurfaceUnavailableError():
                message = "❌ Destination channel not found or mismatched."
                status = OutcomeStatus.FAILED
            case PreconditionViolatedError() | MalformedActionError():
                message = GENERIC_FAILURE
                status = OutcomeStatus.FAILED
            case _:
                message = GENERIC_FAILURE
                status = OutcomeStatus.FAILED

        if status is OutcomeStatus.FAILED:
            logger.error("action_failed", extra={"error_code": exc.code}, exc_info=exc)
        else:
            logger.warning("action_rejected", extra={"error_code": exc.code})
        return ActionOutcome.error(message, exc.code, status, origin_id)
