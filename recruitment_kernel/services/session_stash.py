"""
SessionStash -- in-process handoff of ephemeral state between two actions.

Responsibility:
    Holds the payload produced by an initiating action (the proof attachment
    of ``recommend.start``) until the dependent action (``recommend.submit``)
    consumes it.  Entries are keyed by a handoff token and owned by one actor.

Architecture position:
    Kernel > Services.  Process-local; the stash does not touch the
    database and its contents do not survive a restart.

Invariants enforced:
    - Single use: ``consume`` is an atomic get-and-remove under the stash
      lock, so at most one caller ever receives a given payload.
    - Expiry: each entry carries an absolute deadline.  A deferred cleanup
      timer armed by ``put``/``refresh`` removes it; lookups also treat a
      past-deadline entry as gone, so expiry never depends on timer
      scheduling.  There is no active sweep.
    - Ownership: a token owned by another actor behaves exactly like a
      missing token.

Failure modes:
    - SessionExpiredError on any lookup of a missing, expired, consumed or
      foreign token.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any

from recruitment_kernel.exceptions import SessionExpiredError
from recruitment_kernel.logging_config import get_logger

logger = get_logger("services.session_stash")

DEFAULT_TTL_SECONDS = 180.0


@dataclass
class _Entry:
    payload: Any
    owner_id: str
    ttl: float
    expires_at: float
    generation: int
    timer: threading.Timer | None = None


class SessionStash:
    """
    Token-keyed, TTL-bounded, single-use handoff store.

    Contract:
        Thread-safe.  Deadlines are measured on ``time.monotonic``.

    Non-goals:
        - Does NOT persist anything.
        - Does NOT sweep; each entry owns its own cleanup timer.
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL_SECONDS):
        if default_ttl <= 0:
            raise ValueError(f"default_ttl must be positive, got {default_ttl}")
        self._default_ttl = default_ttl
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._generation = 0
        self._closed = False

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ------------------------------------------------------------------

    def put(
        self,
        token: str,
        payload: Any,
        owner_id: str,
        ttl: float | None = None,
    ) -> None:
        """Store ``payload`` under ``token``, replacing any previous entry."""
        ttl = self._default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        with self._lock:
            if self._closed:
                raise RuntimeError("SessionStash is closed")
            previous = self._entries.pop(token, None)
            if previous is not None and previous.timer is not None:
                previous.timer.cancel()
            entry = _Entry(
                payload=payload,
                owner_id=owner_id,
                ttl=ttl,
                expires_at=0.0,
                generation=0,
            )
            self._entries[token] = entry
            self._arm(token, entry)
        logger.debug("handoff_stored", extra={"token": token, "ttl": ttl})

    def refresh(self, token: str, owner_id: str) -> None:
        """Restart the entry's full TTL window; the payload is unchanged.

        Raises:
            SessionExpiredError: Missing, expired or foreign token.
        """
        with self._lock:
            entry = self._live_entry(token, owner_id)
            if entry.timer is not None:
                entry.timer.cancel()
            self._arm(token, entry)
        logger.debug("handoff_refreshed", extra={"token": token})

    def get(self, token: str, owner_id: str) -> Any:
        """Non-destructive lookup.

        Raises:
            SessionExpiredError: Missing, expired or foreign token.
        """
        with self._lock:
            return self._live_entry(token, owner_id).payload

    def consume(self, token: str, owner_id: str) -> Any:
        """Atomic get-and-remove.

        Raises:
            SessionExpiredError: Missing, expired, already consumed or
                foreign token.
        """
        with self._lock:
            entry = self._live_entry(token, owner_id)
            del self._entries[token]
            if entry.timer is not None:
                entry.timer.cancel()
        logger.debug("handoff_consumed", extra={"token": token})
        return entry.payload

    def discard(self, token: str) -> None:
        """Drop the entry if present.  Idempotent; no ownership check."""
        with self._lock:
            entry = self._entries.pop(token, None)
            if entry is not None and entry.timer is not None:
                entry.timer.cancel()
        if entry is not None:
            logger.debug("handoff_discarded", extra={"token": token})

    def close(self) -> None:
        """Cancel every outstanding timer and drop all entries."""
        with self._lock:
            self._closed = True
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            if entry.timer is not None:
                entry.timer.cancel()

    # ------------------------------------------------------------------
    # Internals (caller holds self._lock)
    # ------------------------------------------------------------------

    def _arm(self, token: str, entry: _Entry) -> None:
        self._generation += 1
        entry.generation = self._generation
        entry.expires_at = time.monotonic() + entry.ttl
        timer = threading.Timer(entry.ttl, self._expire, args=(token, entry.generation))
        timer.daemon = True
        entry.timer = timer
        timer.start()

    def _live_entry(self, token: str, owner_id: str) -> _Entry:
        entry = self._entries.get(token)
        if entry is None:
            raise SessionExpiredError(token)
        if time.monotonic() >= entry.expires_at:
            del self._entries[token]
            if entry.timer is not None:
                entry.timer.cancel()
            logger.debug("handoff_expired", extra={"token": token})
            raise SessionExpiredError(token)
        if entry.owner_id != owner_id:
            logger.warning(
                "handoff_owner_mismatch",
                extra={"token": token, "owner_id": entry.owner_id},
            )
            raise SessionExpiredError(token)
        return entry

    def _expire(self, token: str, generation: int) -> None:
        with self._lock:
            entry = self._entries.get(token)
            # A refresh or re-put re-armed the entry; this timer is stale.
            if entry is None or entry.generation != generation:
                return
            del self._entries[token]
        logger.debug("handoff_expired", extra={"token": token})
