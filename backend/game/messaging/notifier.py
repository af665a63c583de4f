"""Topic-based fan-out of session snapshots to connected clients."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Protocol

import structlog

from game.messaging.types import GameUpdateMessage

if TYPE_CHECKING:
    from game.messaging.protocol import ConnectionProtocol
    from game.session.models import Session

logger = structlog.get_logger()


class Notifier(Protocol):
    async def publish(self, topic: str, session: Session) -> None: ...


class TopicHub:
    """In-process Notifier backed by per-topic subscription sets.

    Delivery is best-effort: a subscriber whose send fails is skipped and
    the publish still reaches everyone else. There is no ordering guarantee
    across topics.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, dict[str, ConnectionProtocol]] = {}

    def subscribe(self, connection: ConnectionProtocol, topic: str) -> None:
        self._subscribers.setdefault(topic, {})[connection.connection_id] = connection

    def unsubscribe(self, connection: ConnectionProtocol, topic: str) -> None:
        subscribers = self._subscribers.get(topic)
        if subscribers is None:
            return
        subscribers.pop(connection.connection_id, None)
        if not subscribers:
            del self._subscribers[topic]

    def unsubscribe_all(self, connection: ConnectionProtocol) -> None:
        """Drop every subscription held by a connection (on disconnect)."""
        for topic in list(self._subscribers):
            self.unsubscribe(connection, topic)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, {}))

    async def publish(self, topic: str, session: Session) -> None:
        subscribers = self._subscribers.get(topic)
        if not subscribers:
            logger.debug("publish without subscribers", topic=topic, game_id=session.game_id)
            return
        message = GameUpdateMessage(topic=topic, game=session)
        # Snapshot: a disconnect may unsubscribe while we await a send.
        for connection in list(subscribers.values()):
            with contextlib.suppress(RuntimeError, OSError):
                await connection.send_message(message)
