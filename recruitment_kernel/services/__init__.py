"""Services for the recruitment kernel (write side)."""

from recruitment_kernel.services.background_check_engine import (
    BackgroundCheckEngine,
    FinalizeResult,
)
from recruitment_kernel.services.broadcaster import Broadcaster, BroadcastReport
from recruitment_kernel.services.observation_engine import (
    MirrorSettings,
    ObservationEngine,
    ObservationStartResult,
)
from recruitment_kernel.services.record_store import RecordStore
from recruitment_kernel.services.session_stash import SessionStash

__all__ = [
    "BackgroundCheckEngine",
    "BroadcastReport",
    "Broadcaster",
    "FinalizeResult",
    "MirrorSettings",
    "ObservationEngine",
    "ObservationStartResult",
    "RecordStore",
    "SessionStash",
]
