"""Session service: runs state transitions against the store under per-session locks."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from game.logic.enums import SessionStatus
from game.logic.exceptions import GameRuleError, InvalidInputError, SessionNotFoundError
from game.session import transitions
from game.session.models import Session, require_login
from game.session.results import Created, Err, Joined, Ok
from game.session.store import is_lobby_expired

if TYPE_CHECKING:
    from collections.abc import Callable

    from game.session.results import RandomJoinResult, SessionResult
    from game.session.store import SessionStore

logger = structlog.get_logger()


def _rejected(operation: str, game_id: str | None, error: GameRuleError) -> Err:
    logger.info("operation rejected", operation=operation, game_id=game_id, code=error.code, reason=str(error))
    return Err(code=error.code, message=str(error))


class SessionService:
    """Orchestrate session operations: create, join handshake, play, surrender and rematch.

    Every mutating operation is read-validate-mutate-write executed inside the
    store's lock for that session, so two concurrent operations on one session
    can never both validate against the same snapshot. The service returns the
    updated session and never notifies anyone; routing snapshots to topics is
    the caller's job.
    """

    def __init__(self, store: SessionStore, *, lobby_max_age_seconds: float | None = None) -> None:
        self._store = store
        self._lobby_max_age_seconds = (
            store.lobby_max_age_seconds if lobby_max_age_seconds is None else lobby_max_age_seconds
        )

    async def create(self, player: str) -> SessionResult:
        try:
            require_login(player)
        except InvalidInputError as e:
            return _rejected("create", None, e)
        return Ok(await self._create(player))

    async def request_join(self, player: str, game_id: str) -> SessionResult:
        return await self._transition(
            game_id,
            "request_join",
            lambda s: transitions.request_join(s, player),
            logins=(player,),
        )

    async def request_join_random(self, player: str) -> RandomJoinResult:
        """Join the oldest open lobby, or create a new one owned by the player.

        Candidates come from a store snapshot; each is re-validated under its
        own lock before the join request is recorded, so a lobby claimed by a
        concurrent caller is skipped rather than double-booked.
        """
        try:
            require_login(player)
        except InvalidInputError as e:
            return _rejected("request_join_random", None, e)

        candidates = sorted(
            self._store.list(lambda s: self._is_open_lobby(s, player)),
            key=lambda s: (s.created_at, s.game_id),
        )
        for candidate in candidates:
            updated: Session | None = None
            async with self._store.lock(candidate.game_id):
                session = self._store.get(candidate.game_id)
                if session is not None and self._is_open_lobby(session, player):
                    updated = transitions.request_join(session, player)
                    self._store.put(updated)
            if updated is None:
                self._store.release_lock(candidate.game_id)
                continue
            logger.info("random join matched", game_id=updated.game_id, player=player, creator=updated.creator)
            return Ok(Joined(updated))

        return Ok(Created(await self._create(player)))

    async def respond_join(self, game_id: str, responder: str, requester: str, *, accepted: bool) -> SessionResult:
        return await self._transition(
            game_id,
            "respond_join",
            lambda s: transitions.respond_join(s, responder, requester, accepted=accepted),
            logins=(responder, requester),
        )

    async def move(self, game_id: str, player: str, cell_index: int) -> SessionResult:
        return await self._transition(
            game_id,
            "move",
            lambda s: transitions.move(s, player, cell_index),
            logins=(player,),
        )

    async def request_surrender(self, game_id: str, player: str) -> SessionResult:
        return await self._transition(
            game_id,
            "request_surrender",
            lambda s: transitions.request_surrender(s, player),
            logins=(player,),
        )

    async def respond_surrender(self, game_id: str, responder: str, *, accepted: bool) -> SessionResult:
        return await self._transition(
            game_id,
            "respond_surrender",
            lambda s: transitions.respond_surrender(s, responder, accepted=accepted),
            logins=(responder,),
        )

    async def request_rematch(self, game_id: str, player: str) -> SessionResult:
        return await self._transition(
            game_id,
            "request_rematch",
            lambda s: transitions.request_rematch(s, player),
            logins=(player,),
        )

    async def respond_rematch(self, game_id: str, responder: str, *, accepted: bool) -> SessionResult:
        return await self._transition(
            game_id,
            "respond_rematch",
            lambda s: transitions.respond_rematch(s, responder, accepted=accepted),
            logins=(responder,),
        )

    def list_available(self) -> list[Session]:
        """Return unexpired lobbies, most recently created first."""
        now = time.time()
        lobbies = self._store.list(
            lambda s: s.status == SessionStatus.NEW and not is_lobby_expired(s, now, self._lobby_max_age_seconds),
        )
        return sorted(lobbies, key=lambda s: s.created_at, reverse=True)

    async def _create(self, player: str) -> Session:
        session = Session(creator=player)
        async with self._store.lock(session.game_id):
            self._store.put(session)
        logger.info("game created", game_id=session.game_id, creator=player)
        return session

    def _is_open_lobby(self, session: Session, player: str) -> bool:
        return (
            session.status == SessionStatus.NEW
            and session.joiner is None
            and session.pending_joiner is None
            and session.creator != player
            and not is_lobby_expired(session, time.time(), self._lobby_max_age_seconds)
        )

    async def _transition(
        self,
        game_id: str,
        operation: str,
        apply: Callable[[Session], Session],
        *,
        logins: tuple[str, ...],
    ) -> SessionResult:
        """Validate input, then run one transition under the session lock and write back only on success."""
        try:
            for login in logins:
                require_login(login)
        except InvalidInputError as e:
            return _rejected(operation, game_id, e)

        try:
            async with self._store.lock(game_id):
                session = self._store.get(game_id)
                if session is None:
                    raise SessionNotFoundError(game_id)
                updated = apply(session)
                self._store.put(updated)
        except SessionNotFoundError as e:
            self._store.release_lock(game_id)
            return _rejected(operation, game_id, e)
        except GameRuleError as e:
            return _rejected(operation, game_id, e)

        logger.debug("operation applied", operation=operation, game_id=game_id, status=updated.status)
        return Ok(updated)
