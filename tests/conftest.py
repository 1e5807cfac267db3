"""
Pytest fixtures for the recruitment workflow test suite.

Provides:
- A file-backed SQLite database per test (real commits, real locking)
- An in-memory message transport with failure injection
- A wired WorkflowOrchestrator and helpers that walk a record through
  its stages

Environment Variables:
- RECRUITMENT_TEST_DATABASE_URL: run against another database (e.g.
  PostgreSQL).  Tables are dropped and recreated around every test.
"""

import json
import logging
import os
import threading
from io import StringIO
from itertools import count
from typing import Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from recruitment_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from recruitment_kernel.domain.background_check import FinalizeDecision
from recruitment_kernel.domain.checklist import Checklist
from recruitment_kernel.domain.clock import DeterministicClock
from recruitment_kernel.domain.observation import ObservationContent, ObservationSettings
from recruitment_kernel.domain.recommendation import ProofAttachment, Recommendation
from recruitment_kernel.domain.records import SurfaceKind, SurfaceRef
from recruitment_kernel.domain.views import RenderedView
from recruitment_kernel.exceptions import SurfaceUnavailableError, TransportError
from recruitment_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from recruitment_kernel.services.background_check_engine import BackgroundCheckEngine
from recruitment_kernel.services.observation_engine import MirrorSettings, ObservationEngine
from recruitment_kernel.services.record_store import RecordStore
from recruitment_kernel.services.session_stash import SessionStash
from recruitment_services import WorkflowOrchestrator

RECOMMEND_CHANNEL = "100"
POLLS_CHANNEL = "200"
PING_ROLE = "300"
RECOMMENDER = "1001"
REVIEWER = "2001"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture recruitment_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, orchestrator):
            orchestrator.handle_widget(...)
            logs = captured_logs()
            assert any(r["message"] == "action_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("recruitment_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


def messages(records: list[dict]) -> list[str]:
    return [r["message"] for r in records]


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine(tmp_path):
    """Fresh database per test.  SQLite lives in the test's tmp dir."""
    url = os.environ.get("RECRUITMENT_TEST_DATABASE_URL") or (
        f"sqlite:///{tmp_path / 'recruitment.db'}"
    )
    eng = init_engine_from_url(url)
    drop_tables(eng)
    create_tables(eng)
    yield eng
    drop_tables(eng)
    reset_engine()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    """Each thread / unit of work opens its own session from this factory."""
    return get_session_factory()


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    """A plain session; tests commit explicitly when they need durability."""
    sess = session_factory()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()


# Clock fixtures


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# =============================================================================
# Transport
# =============================================================================


class FakeTransport:
    """In-memory MessageTransport.

    Messages are keyed by SurfaceRef; message ids are sequential per
    transport.  Failures are injected per operation.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = count(900001)
        self.messages: dict[SurfaceRef, RenderedView] = {}
        self.reactions: dict[SurfaceRef, list[str]] = {}
        self.sent: list[SurfaceRef] = []
        self.edits: list[SurfaceRef] = []
        self.fail_send_channels: set[str] = set()
        self.fail_edit_refs: set[SurfaceRef] = set()
        self.fail_reactions = False

    def send_message(self, channel_id: str, view: RenderedView) -> SurfaceRef:
        with self._lock:
            if channel_id in self.fail_send_channels:
                raise TransportError("send", f"channel {channel_id} rejected the message")
            ref = SurfaceRef(channel_id, str(next(self._ids)))
            self.messages[ref] = view
            self.sent.append(ref)
            return ref

    def fetch_message(self, ref: SurfaceRef) -> RenderedView | None:
        with self._lock:
            return self.messages.get(ref)

    def edit_message(self, ref: SurfaceRef, view: RenderedView) -> None:
        with self._lock:
            if ref in self.fail_edit_refs:
                raise TransportError("edit", f"edit of {ref.message_id} failed")
            if ref not in self.messages:
                raise SurfaceUnavailableError(ref.channel_id, ref.message_id)
            self.messages[ref] = RenderedView(
                content=self.messages[ref].content,
                embeds=view.embeds,
                rows=view.rows,
            )
            self.edits.append(ref)

    def add_reaction(self, ref: SurfaceRef, marker: str) -> None:
        with self._lock:
            if self.fail_reactions:
                raise TransportError("react", f"reaction {marker} rejected")
            self.reactions.setdefault(ref, []).append(marker)

    def delete(self, ref: SurfaceRef) -> None:
        with self._lock:
            self.messages.pop(ref, None)

    def in_channel(self, channel_id: str) -> list[SurfaceRef]:
        with self._lock:
            return [ref for ref in self.sent if ref.channel_id == channel_id]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


# =============================================================================
# Kernel fixtures
# =============================================================================


@pytest.fixture
def checklist() -> Checklist:
    return Checklist()


@pytest.fixture
def observation_settings() -> ObservationSettings:
    return ObservationSettings()


@pytest.fixture
def mirror_settings() -> MirrorSettings:
    return MirrorSettings(channel_id=POLLS_CHANNEL, ping_role_id=PING_ROLE)


@pytest.fixture
def make_origin(session_factory, transport, deterministic_clock, checklist):
    """
    Post and persist a recommendation, returning its origin id.

    The message is posted to the fake transport first so broadcasts find a
    live origin surface.
    """

    def _make(candidate: str = "CandidateLR", reason: str = "Helpful and active") -> str:
        ref = transport.send_message(RECOMMEND_CHANNEL, RenderedView(content="draft"))
        with session_scope(session_factory) as sess:
            store = RecordStore(sess, deterministic_clock)
            store.insert_recommendation(
                Recommendation(
                    origin_id=ref.message_id,
                    channel_id=ref.channel_id,
                    recommender_id=RECOMMENDER,
                    candidate_username=candidate,
                    reason=reason,
                    proof_url="https://cdn.example.test/proof.png",
                    created_at=deterministic_clock.now(),
                    proof_file_name="proof.png",
                    source_guild_name="Flawn Salon",
                )
            )
            store.add_replica(ref.message_id, ref, SurfaceKind.ORIGIN)
        return ref.message_id

    return _make


@pytest.fixture
def passed_origin(make_origin, session_factory, checklist, deterministic_clock):
    """An origin whose background check passed with every criterion."""

    def _make() -> str:
        origin_id = make_origin()
        with session_scope(session_factory) as sess:
            engine = BackgroundCheckEngine(sess, checklist, clock=deterministic_clock)
            engine.start(origin_id)
            engine.update_selection(origin_id, checklist.keys)
            engine.finalize(origin_id, FinalizeDecision.PASS, REVIEWER)
        return origin_id

    return _make


@pytest.fixture
def record_observation(session_factory, observation_settings, deterministic_clock):
    def _record(origin_id: str, slot: int, author_id: str = "3001", notes: str = "Good work"):
        with session_scope(session_factory) as sess:
            return ObservationEngine(sess, observation_settings, deterministic_clock).submit(
                origin_id, slot, ObservationContent(notes=notes), author_id
            )

    return _record


# =============================================================================
# Orchestrator
# =============================================================================


@pytest.fixture
def stash():
    s = SessionStash(default_ttl=60)
    yield s
    s.close()


@pytest.fixture
def orchestrator(
    session_factory,
    transport,
    stash,
    checklist,
    observation_settings,
    mirror_settings,
    deterministic_clock,
) -> WorkflowOrchestrator:
    return WorkflowOrchestrator(
        session_factory,
        transport,
        stash,
        recommend_channel_id=RECOMMEND_CHANNEL,
        checklist=checklist,
        observation_settings=observation_settings,
        mirror=mirror_settings,
        ping_role_id=PING_ROLE,
        requirements_text="Follow the criteria.",
        clock=deterministic_clock,
    )


PROOF = ProofAttachment(
    url="https://cdn.example.test/safechat.png",
    file_name="safechat.png",
    content_type="image/png",
    size=2048,
)
