"""In-memory session store with per-session locking and periodic eviction."""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING

import structlog

from game.logic.enums import SessionStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from game.session.models import Session

DEFAULT_SWEEP_INTERVAL_SECONDS = 300  # 5 minutes
DEFAULT_FINISHED_RETENTION_SECONDS = 600  # 10 minutes
DEFAULT_LOBBY_MAX_AGE_SECONDS = 3600  # 1 hour
DEFAULT_RECORD_TTL_SECONDS = 86400  # 24 hours

logger = structlog.get_logger()


def is_lobby_expired(session: Session, now: float, max_age_seconds: float) -> bool:
    """Check whether an unmatched lobby is older than the abandoned-lobby window."""
    return session.status == SessionStatus.NEW and now - session.created_at > max_age_seconds


class SessionStore:
    """Keyed session storage with time-bounded retention.

    Stores immutable Session snapshots, so get() and list() hand out values
    that later writes cannot change. Read-modify-write cycles must run under
    lock(game_id); the lock is scoped to one session, so operations on
    different sessions never contend.

    Eviction is advisory cleanup. A sweep removes finished games idle past
    the retention window, lobbies older than the abandoned-lobby window, and
    any record not written within the coarse record TTL. Call start_sweeper()
    on app startup and stop_sweeper() on shutdown.
    """

    def __init__(
        self,
        *,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        finished_retention_seconds: float = DEFAULT_FINISHED_RETENTION_SECONDS,
        lobby_max_age_seconds: float = DEFAULT_LOBBY_MAX_AGE_SECONDS,
        record_ttl_seconds: float = DEFAULT_RECORD_TTL_SECONDS,
    ) -> None:
        self._sweep_interval_seconds = sweep_interval_seconds
        self._finished_retention_seconds = finished_retention_seconds
        self._lobby_max_age_seconds = lobby_max_age_seconds
        self._record_ttl_seconds = record_ttl_seconds
        self._sessions: dict[str, Session] = {}
        self._written_at: dict[str, float] = {}  # game_id -> time.monotonic() of last put
        self._locks: dict[str, asyncio.Lock] = {}
        self._sweeper_task: asyncio.Task[None] | None = None

    @property
    def lobby_max_age_seconds(self) -> float:
        return self._lobby_max_age_seconds

    def lock(self, game_id: str) -> asyncio.Lock:
        """Return the critical-section lock for one session, creating it on first use."""
        return self._locks.setdefault(game_id, asyncio.Lock())

    def put(self, session: Session) -> None:
        """Insert or replace a session and restart its retention clock."""
        self._sessions[session.game_id] = session
        self._written_at[session.game_id] = time.monotonic()

    def get(self, game_id: str) -> Session | None:
        return self._sessions.get(game_id)

    def list(self, predicate: Callable[[Session], bool] | None = None) -> list[Session]:
        """Return a snapshot of stored sessions, optionally filtered."""
        sessions = list(self._sessions.values())
        if predicate is None:
            return sessions
        return [s for s in sessions if predicate(s)]

    async def remove(self, game_id: str) -> None:
        """Remove a session under its lock. Unknown ids are ignored."""
        async with self.lock(game_id):
            self._drop(game_id)
        # Drop the lock outside the async with block so we never delete
        # a lock we still hold.
        self.release_lock(game_id)

    def count(self) -> int:
        return len(self._sessions)

    def release_lock(self, game_id: str) -> None:
        """Forget the lock of a session that is not stored (removed, evicted or never existed)."""
        if game_id not in self._sessions:
            self._locks.pop(game_id, None)

    def _drop(self, game_id: str) -> None:
        self._sessions.pop(game_id, None)
        self._written_at.pop(game_id, None)

    def _expiry_reason(self, session: Session, now: float) -> str | None:
        written_at = self._written_at.get(session.game_id)
        if written_at is not None and time.monotonic() - written_at > self._record_ttl_seconds:
            return "record_ttl"
        if (
            session.status == SessionStatus.FINISHED
            and now - session.last_activity_at > self._finished_retention_seconds
        ):
            return "finished"
        if is_lobby_expired(session, now, self._lobby_max_age_seconds):
            return "abandoned_lobby"
        return None

    async def sweep(self, now: float | None = None) -> int:
        """Remove expired sessions. Return the number removed.

        Candidates come from a snapshot and are re-checked under their own
        lock, so a session revived by a concurrent operation (e.g. a rematch
        accepted just before the sweep reaches it) is left alone.
        """
        if now is None:
            now = time.time()
        candidates = [s.game_id for s in self.list() if self._expiry_reason(s, now) is not None]

        removed = 0
        for game_id in candidates:
            async with self.lock(game_id):
                session = self._sessions.get(game_id)
                reason = self._expiry_reason(session, now) if session is not None else None
                if session is None or reason is None:
                    continue
                self._drop(game_id)
            self.release_lock(game_id)
            removed += 1
            logger.info(
                "session evicted",
                game_id=game_id,
                status=session.status,
                reason=reason,
                creator=session.creator,
            )

        if removed:
            logger.info("eviction sweep finished", removed=removed, remaining=self.count())
        return removed

    def start_sweeper(self) -> None:
        """Start the periodic eviction task."""
        if self._sweeper_task is not None and not self._sweeper_task.done():
            return
        self._sweeper_task = asyncio.create_task(self._sweeper_loop())

    async def stop_sweeper(self) -> None:
        """Cancel the eviction task."""
        if self._sweeper_task is not None:
            self._sweeper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper_task
            self._sweeper_task = None

    async def _sweeper_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval_seconds)
            try:
                await self.sweep()
            except Exception:
                logger.exception("eviction sweep failed")
