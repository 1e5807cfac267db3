"""
Typed Exception Hierarchy for the Recruitment Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every user action ends in exactly one visible outcome. The orchestrator picks
that outcome by exception TYPE, never by parsing message text:

    try:
        engine.finalize(origin_id, FinalizeDecision.PASS, actor_id)
    except AlreadyFinalizedError as e:
        reply(f"Already finalized as {e.status}")     # Structured data
        log.info("finalize_lost", extra={"code": e.code})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from RecruitmentKernelError:

    RecruitmentKernelError (base)
    |
    +-- SessionExpiredError
    +-- RecordNotFoundError
    +-- PreconditionViolatedError
    +-- MalformedActionError
    |
    +-- BackgroundCheckError
    |   +-- AlreadyFinalizedError
    |   +-- ChecklistIncompleteError
    |   +-- UnknownCriterionError
    |
    +-- ObservationError
    |   +-- SlotAlreadyRecordedError
    |   +-- SlotNotRecordedError
    |   +-- InvalidSlotError
    |   +-- ObservationContentError
    |
    +-- RecommendationError
    |   +-- NotAuthorizedError
    |   +-- ProofRequiredError
    |   +-- InvalidProofError
    |   +-- RecommendationContentError
    |
    +-- TransportError
    |   +-- SurfaceUnavailableError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                     | Handling
----------------|--------------------------|-----------------------------------
Handoff         | SESSION_EXPIRED          | Recoverable, actor restarts flow
Record          | RECORD_NOT_FOUND         | Recoverable, flow abandoned
Ordering        | PRECONDITION_VIOLATED    | Programming/transport fault, logged
Action          | MALFORMED_ACTION         | Programming/transport fault, logged
----------------|--------------------------|-----------------------------------
Background      | ALREADY_FINALIZED        | Concurrency loss, informational
                | CHECKLIST_INCOMPLETE     | Actor must select every criterion
                | UNKNOWN_CRITERION        | Transport sent an unknown key
----------------|--------------------------|-----------------------------------
Observation     | SLOT_ALREADY_RECORDED    | Concurrency loss, informational
                | SLOT_NOT_RECORDED        | Nothing to view yet
                | INVALID_SLOT             | Slot index outside 1..K
                | INVALID_OBSERVATION      | Required content missing
----------------|--------------------------|-----------------------------------
Recommendation  | NOT_AUTHORIZED           | Actor lacks an allowed role
                | PROOF_REQUIRED           | No proof attachment supplied
                | INVALID_PROOF            | Wrong content type or too large
                | INVALID_RECOMMENDATION   | Candidate username missing
----------------|--------------------------|-----------------------------------
Transport       | TRANSPORT_ERROR          | Send/edit failed
                | SURFACE_UNAVAILABLE      | Message or channel is gone
----------------|--------------------------|-----------------------------------
Persistence     | IMMUTABILITY_VIOLATION   | Write-once row touched, logged

===============================================================================
"""


class RecruitmentKernelError(Exception):
    """
    Base exception for all recruitment kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "RECRUITMENT_KERNEL_ERROR"


# Handoff / record / ordering


class SessionExpiredError(RecruitmentKernelError):
    """Handoff token is missing, expired, already consumed, or foreign."""

    code: str = "SESSION_EXPIRED"

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Session expired or not found: {token}")


class RecordNotFoundError(RecruitmentKernelError):
    """Origin id does not resolve to a recommendation record."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, origin_id: str):
        self.origin_id = origin_id
        super().__init__(f"Recommendation record not found: {origin_id}")


class PreconditionViolatedError(RecruitmentKernelError):
    """
    A stage was requested out of order.

    The rendered affordances never offer such an action, so this indicates
    a stale widget or a transport bug rather than a user mistake.
    """

    code: str = "PRECONDITION_VIOLATED"

    def __init__(self, origin_id: str, stage: str, reason: str):
        self.origin_id = origin_id
        self.stage = stage
        self.reason = reason
        super().__init__(
            f"Precondition violated for {stage} on {origin_id}: {reason}"
        )


class MalformedActionError(RecruitmentKernelError):
    """Action identifier could not be decoded."""

    code: str = "MALFORMED_ACTION"

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Malformed action identifier {raw!r}: {reason}")


# Background check


class BackgroundCheckError(RecruitmentKernelError):
    """Base exception for background-check errors."""

    code: str = "BACKGROUND_CHECK_ERROR"


class AlreadyFinalizedError(BackgroundCheckError):
    """Background check already carries a terminal status."""

    code: str = "ALREADY_FINALIZED"

    def __init__(self, origin_id: str, status: str):
        self.origin_id = origin_id
        self.status = status
        super().__init__(
            f"Background check for {origin_id} is already finalized as {status}"
        )


class ChecklistIncompleteError(BackgroundCheckError):
    """Pass requested while the checklist is only partially selected."""

    code: str = "CHECKLIST_INCOMPLETE"

    def __init__(self, origin_id: str, selected: int, required: int):
        self.origin_id = origin_id
        self.selected = selected
        self.required = required
        super().__init__(
            f"Cannot pass {origin_id}: {selected}/{required} criteria selected"
        )


class UnknownCriterionError(BackgroundCheckError):
    """Selection contains keys that are not part of the checklist."""

    code: str = "UNKNOWN_CRITERION"

    def __init__(self, keys: list[str]):
        self.keys = keys
        super().__init__(f"Unknown checklist criteria: {', '.join(keys)}")


# Observations


class ObservationError(RecruitmentKernelError):
    """Base exception for observation errors."""

    code: str = "OBSERVATION_ERROR"


class SlotAlreadyRecordedError(ObservationError):
    """Slot already has a row; the new content was discarded."""

    code: str = "SLOT_ALREADY_RECORDED"

    def __init__(self, origin_id: str, slot: int, author_id: str):
        self.origin_id = origin_id
        self.slot = slot
        self.author_id = author_id
        super().__init__(
            f"Observation {slot} for {origin_id} was already recorded by {author_id}"
        )


class SlotNotRecordedError(ObservationError):
    """Slot has no row yet."""

    code: str = "SLOT_NOT_RECORDED"

    def __init__(self, origin_id: str, slot: int):
        self.origin_id = origin_id
        self.slot = slot
        super().__init__(f"Observation {slot} for {origin_id} is not recorded")


class InvalidSlotError(ObservationError):
    """Slot index outside 1..K."""

    code: str = "INVALID_SLOT"

    def __init__(self, slot: int, slot_count: int):
        self.slot = slot
        self.slot_count = slot_count
        super().__init__(f"Invalid observation slot {slot} (expected 1..{slot_count})")


class ObservationContentError(ObservationError):
    """Required observation content is missing."""

    code: str = "INVALID_OBSERVATION"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Observation field is required: {field_name}")


# Recommendation intake


class RecommendationError(RecruitmentKernelError):
    """Base exception for recommendation intake errors."""

    code: str = "RECOMMENDATION_ERROR"


class NotAuthorizedError(RecommendationError):
    """Actor is not allowed to recommend."""

    code: str = "NOT_AUTHORIZED"

    def __init__(self, actor_id: str):
        self.actor_id = actor_id
        super().__init__(f"Actor {actor_id} is not allowed to recommend")


class ProofRequiredError(RecommendationError):
    """No proof attachment was supplied."""

    code: str = "PROOF_REQUIRED"

    def __init__(self):
        super().__init__("A proof image is required")


class InvalidProofError(RecommendationError):
    """Proof attachment has a disallowed content type or exceeds the size limit."""

    code: str = "INVALID_PROOF"

    def __init__(self, content_type: str | None, size: int, max_bytes: int):
        self.content_type = content_type
        self.size = size
        self.max_bytes = max_bytes
        super().__init__(
            f"Invalid proof attachment ({content_type}, {size} bytes, "
            f"limit {max_bytes})"
        )


class RecommendationContentError(RecommendationError):
    """Required recommendation content is missing."""

    code: str = "INVALID_RECOMMENDATION"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Recommendation field is required: {field_name}")


# Transport


class TransportError(RecruitmentKernelError):
    """Transport binding failed to send or edit a message."""

    code: str = "TRANSPORT_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Transport {operation} failed: {detail}")


class SurfaceUnavailableError(TransportError):
    """Channel or message no longer exists."""

    code: str = "SURFACE_UNAVAILABLE"

    def __init__(self, channel_id: str, message_id: str | None = None):
        self.channel_id = channel_id
        self.message_id = message_id
        target = f"{channel_id}/{message_id}" if message_id else channel_id
        super().__init__("fetch", f"surface unavailable: {target}")


# Persistence


class ImmutabilityViolationError(RecruitmentKernelError):
    """Attempt to modify or delete a write-once / append-only row."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")
