"""Tests for MessageRouter: service dispatch, topic routing and error replies."""

from unittest.mock import patch

from game.logic.enums import SessionStatus
from game.messaging.router import MessageRouter
from game.tests.mocks.connection import MockConnection


async def _start_game(message_router, notifier, conn, login="alice") -> str:
    await message_router.handle_message(conn, {"type": "start_game", "login": login})
    return notifier.published[-1][1].game_id


async def _start_active_game(message_router, notifier, conn) -> str:
    game_id = await _start_game(message_router, notifier, conn)
    await message_router.handle_message(conn, {"type": "connect", "login": "bob", "game_id": game_id})
    await message_router.handle_message(
        conn,
        {
            "type": "join_response",
            "game_id": game_id,
            "responder_login": "alice",
            "requester_login": "bob",
            "accepted": True,
        },
    )
    notifier.published.clear()
    return game_id


class TestLobbyRouting:
    async def test_start_game_publishes_created(self, message_router, notifier, mock_connection):
        await message_router.handle_message(mock_connection, {"type": "start_game", "login": "alice"})

        assert notifier.topics == ["game.created.alice"]
        assert notifier.published[0][1].creator == "alice"
        assert mock_connection.sent_messages == []

    async def test_connect_by_id_notifies_requester_and_creator(self, message_router, notifier, mock_connection):
        game_id = await _start_game(message_router, notifier, mock_connection)
        notifier.published.clear()

        await message_router.handle_message(mock_connection, {"type": "connect", "login": "bob", "game_id": game_id})

        assert notifier.topics == ["game.join.pending.bob", "game.join.request.alice"]
        assert notifier.published[0][1].pending_joiner == "bob"

    async def test_random_connect_without_lobby_creates_one(self, message_router, notifier, mock_connection):
        await message_router.handle_message(mock_connection, {"type": "connect", "login": "bob"})

        assert notifier.topics == ["game.created.bob"]

    async def test_random_connect_joins_open_lobby(self, message_router, notifier, mock_connection):
        await _start_game(message_router, notifier, mock_connection)
        notifier.published.clear()

        await message_router.handle_message(mock_connection, {"type": "connect", "login": "bob", "game_id": ""})

        assert notifier.topics == ["game.join.pending.bob", "game.join.request.alice"]

    async def test_accepted_join_notifies_both_players(self, message_router, notifier, mock_connection):
        game_id = await _start_game(message_router, notifier, mock_connection)
        await message_router.handle_message(mock_connection, {"type": "connect", "login": "bob", "game_id": game_id})
        notifier.published.clear()

        await message_router.handle_message(
            mock_connection,
            {
                "type": "join_response",
                "game_id": game_id,
                "responder_login": "alice",
                "requester_login": "bob",
                "accepted": True,
            },
        )

        assert notifier.topics == ["game.connected.alice", "game.connected.bob"]
        assert notifier.published[0][1].status == SessionStatus.ACTIVE

    async def test_rejected_join_notifies_requester_and_updates_creator(
        self,
        message_router,
        notifier,
        mock_connection,
    ):
        game_id = await _start_game(message_router, notifier, mock_connection)
        await message_router.handle_message(mock_connection, {"type": "connect", "login": "bob", "game_id": game_id})
        notifier.published.clear()

        await message_router.handle_message(
            mock_connection,
            {
                "type": "join_response",
                "game_id": game_id,
                "responder_login": "alice",
                "requester_login": "bob",
                "accepted": False,
            },
        )

        assert notifier.topics == ["game.join.rejected.bob", "game.updated.alice"]
        assert notifier.published[0][1].pending_joiner is None


class TestSessionTopicRouting:
    async def test_move_publishes_on_session_topic(self, message_router, notifier, mock_connection):
        game_id = await _start_active_game(message_router, notifier, mock_connection)

        await message_router.handle_message(
            mock_connection,
            {"type": "move", "game_id": game_id, "login": "alice", "cell_index": 4},
        )

        assert notifier.topics == [f"game.{game_id}"]
        assert notifier.published[0][1].turn == "bob"

    async def test_surrender_flow_publishes_each_step(self, message_router, notifier, mock_connection):
        game_id = await _start_active_game(message_router, notifier, mock_connection)

        await message_router.handle_message(mock_connection, {"type": "surrender", "game_id": game_id, "login": "bob"})
        await message_router.handle_message(
            mock_connection,
            {"type": "surrender_response", "game_id": game_id, "login": "alice", "accepted": True},
        )
        await message_router.handle_message(mock_connection, {"type": "rematch", "game_id": game_id, "login": "bob"})
        await message_router.handle_message(
            mock_connection,
            {"type": "rematch_response", "game_id": game_id, "login": "alice", "accepted": True},
        )

        assert notifier.topics == [f"game.{game_id}"] * 4
        assert notifier.published[1][1].status == SessionStatus.FINISHED
        assert notifier.published[3][1].status == SessionStatus.ACTIVE


class TestErrorReplies:
    async def test_invalid_message_returns_validation_error(self, message_router, notifier, mock_connection):
        await message_router.handle_message(mock_connection, {"type": "move", "game_id": "g-1"})

        assert mock_connection.sent_messages[0]["type"] == "error"
        assert mock_connection.sent_messages[0]["code"] == "validation_error"
        assert notifier.published == []

    async def test_service_error_goes_to_sender_only(self, message_router, notifier, mock_connection):
        game_id = await _start_active_game(message_router, notifier, mock_connection)

        await message_router.handle_message(
            mock_connection,
            {"type": "move", "game_id": game_id, "login": "bob", "cell_index": 0},
        )

        assert mock_connection.sent_messages == [
            {"type": "error", "code": "turn_violation", "message": "It's not your turn"},
        ]
        assert notifier.published == []

    async def test_unknown_game_returns_not_found(self, message_router, mock_connection):
        await message_router.handle_message(mock_connection, {"type": "connect", "login": "bob", "game_id": "nope"})

        assert mock_connection.sent_messages == [
            {"type": "error", "code": "not_found", "message": "Game nope does not exist"},
        ]

    async def test_unexpected_error_returns_internal_error(self, message_router, service, mock_connection, caplog):
        with patch.object(service, "create", side_effect=RuntimeError("boom")):
            await message_router.handle_message(mock_connection, {"type": "start_game", "login": "alice"})

        assert mock_connection.sent_messages[0]["code"] == "internal_error"
        assert "boom" not in mock_connection.sent_messages[0]["message"]
        assert "unexpected error handling start_game" in caplog.text


class TestSubscriptions:
    async def test_subscribe_acknowledges_and_registers(self, message_router, hub, mock_connection):
        await message_router.handle_message(mock_connection, {"type": "subscribe", "topic": "game.created.alice"})

        assert mock_connection.sent_messages == [{"type": "subscribed", "topic": "game.created.alice"}]
        assert hub.subscriber_count("game.created.alice") == 1

    async def test_unsubscribe(self, message_router, hub, mock_connection):
        await message_router.handle_message(mock_connection, {"type": "subscribe", "topic": "game.g-1"})
        await message_router.handle_message(mock_connection, {"type": "unsubscribe", "topic": "game.g-1"})

        assert mock_connection.sent_messages[-1] == {"type": "unsubscribed", "topic": "game.g-1"}
        assert hub.subscriber_count("game.g-1") == 0

    async def test_ping(self, message_router, mock_connection):
        await message_router.handle_message(mock_connection, {"type": "ping"})

        assert mock_connection.sent_messages == [{"type": "pong"}]

    async def test_disconnect_drops_subscriptions(self, message_router, hub):
        conn = MockConnection()
        await message_router.handle_message(conn, {"type": "subscribe", "topic": "game.g-1"})

        await message_router.handle_disconnect(conn)

        assert hub.subscriber_count("game.g-1") == 0


class TestHubAsNotifier:
    async def test_router_publishes_through_hub_by_default(self, service, hub):
        router = MessageRouter(service, hub)
        alice = MockConnection()
        await router.handle_message(alice, {"type": "subscribe", "topic": "game.created.alice"})

        await router.handle_message(alice, {"type": "start_game", "login": "alice"})

        assert alice.sent_messages[-1]["type"] == "game_update"
        assert alice.sent_messages[-1]["topic"] == "game.created.alice"
