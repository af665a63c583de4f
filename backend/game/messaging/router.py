from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from game.logic.enums import SessionErrorCode
from game.messaging import topics
from game.messaging.types import (
    ConnectMessage,
    ErrorMessage,
    JoinResponseMessage,
    MoveMessage,
    PingMessage,
    PongMessage,
    RematchMessage,
    RematchResponseMessage,
    StartGameMessage,
    SubscribedMessage,
    SubscribeMessage,
    SurrenderMessage,
    SurrenderResponseMessage,
    UnsubscribedMessage,
    UnsubscribeMessage,
    parse_client_message,
)
from game.session.results import Created, Err, Joined

if TYPE_CHECKING:
    from game.messaging.notifier import Notifier, TopicHub
    from game.messaging.protocol import ConnectionProtocol
    from game.messaging.types import ClientMessage
    from game.session.models import Session
    from game.session.results import SessionResult
    from game.session.service import SessionService

logger = logging.getLogger(__name__)

_SESSION_TOPIC_MESSAGES = (
    MoveMessage,
    SurrenderMessage,
    SurrenderResponseMessage,
    RematchMessage,
    RematchResponseMessage,
)


class MessageRouter:
    """
    Routes incoming messages to the session service and publishes outcomes.

    Successful operations are published on the topics their outcome calls
    for; failures are answered to the sending connection only. Contains no
    transport code and can be tested without real WebSocket connections.
    """

    def __init__(self, service: SessionService, hub: TopicHub, *, notifier: Notifier | None = None) -> None:
        self._service = service
        self._hub = hub
        self._notifier: Notifier = hub if notifier is None else notifier

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await self._send_error(connection, SessionErrorCode.VALIDATION_ERROR, str(e))
            return

        try:
            await self._dispatch(connection, message)
        except Exception:
            logger.exception("unexpected error handling %s from %s", message.type, connection.connection_id)
            await self._send_error(connection, SessionErrorCode.INTERNAL_ERROR, "Internal server error")

    async def _dispatch(self, connection: ConnectionProtocol, message: ClientMessage) -> None:
        if isinstance(message, StartGameMessage):
            await self._handle_start_game(connection, message)
        elif isinstance(message, ConnectMessage):
            await self._handle_connect_game(connection, message)
        elif isinstance(message, JoinResponseMessage):
            await self._handle_join_response(connection, message)
        elif isinstance(message, _SESSION_TOPIC_MESSAGES):
            await self._handle_session_action(connection, message)
        elif isinstance(message, SubscribeMessage):
            self._hub.subscribe(connection, message.topic)
            await connection.send_message(SubscribedMessage(topic=message.topic))
        elif isinstance(message, UnsubscribeMessage):
            self._hub.unsubscribe(connection, message.topic)
            await connection.send_message(UnsubscribedMessage(topic=message.topic))
        elif isinstance(message, PingMessage):
            await connection.send_message(PongMessage())

    async def _handle_start_game(self, connection: ConnectionProtocol, message: StartGameMessage) -> None:
        result = await self._service.create(message.login)
        if await self._reject(connection, result):
            return
        await self._notifier.publish(topics.created(message.login), result.value)

    async def _handle_connect_game(self, connection: ConnectionProtocol, message: ConnectMessage) -> None:
        """Join a named game, or match into any open lobby when no game_id is given."""
        if message.game_id:
            result = await self._service.request_join(message.login, message.game_id)
            if await self._reject(connection, result):
                return
            await self._publish_join_request(message.login, result.value)
            return

        random_result = await self._service.request_join_random(message.login)
        if isinstance(random_result, Err):
            await self._send_error(connection, random_result.code, random_result.message)
            return
        outcome = random_result.value
        if isinstance(outcome, Joined):
            await self._publish_join_request(message.login, outcome.session)
        elif isinstance(outcome, Created):
            await self._notifier.publish(topics.created(message.login), outcome.session)

    async def _publish_join_request(self, requester: str, session: Session) -> None:
        await self._notifier.publish(topics.join_pending(requester), session)
        await self._notifier.publish(topics.join_request(session.creator), session)

    async def _handle_join_response(self, connection: ConnectionProtocol, message: JoinResponseMessage) -> None:
        result = await self._service.respond_join(
            message.game_id,
            message.responder_login,
            message.requester_login,
            accepted=message.accepted,
        )
        if await self._reject(connection, result):
            return
        session = result.value
        if message.accepted:
            await self._notifier.publish(topics.connected(message.responder_login), session)
            await self._notifier.publish(topics.connected(message.requester_login), session)
        else:
            await self._notifier.publish(topics.join_rejected(message.requester_login), session)
            await self._notifier.publish(topics.updated(message.responder_login), session)

    async def _handle_session_action(
        self,
        connection: ConnectionProtocol,
        message: MoveMessage
        | SurrenderMessage
        | SurrenderResponseMessage
        | RematchMessage
        | RematchResponseMessage,
    ) -> None:
        """Run an in-game action and broadcast the new snapshot on the session topic."""
        if isinstance(message, MoveMessage):
            result = await self._service.move(message.game_id, message.login, message.cell_index)
        elif isinstance(message, SurrenderMessage):
            result = await self._service.request_surrender(message.game_id, message.login)
        elif isinstance(message, SurrenderResponseMessage):
            result = await self._service.respond_surrender(message.game_id, message.login, accepted=message.accepted)
        elif isinstance(message, RematchMessage):
            result = await self._service.request_rematch(message.game_id, message.login)
        else:
            result = await self._service.respond_rematch(message.game_id, message.login, accepted=message.accepted)

        if await self._reject(connection, result):
            return
        await self._notifier.publish(topics.session(message.game_id), result.value)

    async def _reject(self, connection: ConnectionProtocol, result: SessionResult) -> bool:
        """Send an Err result back to the sender. Return True if the result was an Err."""
        if not isinstance(result, Err):
            return False
        await self._send_error(connection, result.code, result.message)
        return True

    async def _send_error(self, connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
        await connection.send_message(ErrorMessage(code=code, message=message))

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        logger.debug("connection registered: %s", connection.connection_id)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        self._hub.unsubscribe_all(connection)
