from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter

from game.logic.board import BOARD_SIZE
from game.logic.enums import SessionErrorCode
from game.messaging.topics import TOPIC_PREFIX
from game.session.models import MAX_LOGIN_LENGTH, MIN_LOGIN_LENGTH, Session

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F

_MAX_TOPIC_LENGTH = 128


def _has_control_chars(value: str) -> bool:
    return any(ord(c) < _SPACE_ORD or ord(c) == _DEL_ORD for c in value)


def _validate_login(value: str) -> str:
    if not value.strip():
        raise ValueError("Player login cannot be empty")
    if _has_control_chars(value):
        raise ValueError("Player login must not contain control characters")
    return value


def _validate_topic(value: str) -> str:
    if not value.startswith(TOPIC_PREFIX):
        raise ValueError(f"Topic must start with {TOPIC_PREFIX!r}")
    if _has_control_chars(value):
        raise ValueError("Topic must not contain control characters")
    return value


Login = Annotated[
    str,
    Field(min_length=MIN_LOGIN_LENGTH, max_length=MAX_LOGIN_LENGTH),
    AfterValidator(_validate_login),
]
GameId = Annotated[str, Field(min_length=1, max_length=64, pattern=r"^[a-zA-Z0-9_-]+$")]
Topic = Annotated[
    str,
    Field(min_length=len(TOPIC_PREFIX) + 1, max_length=_MAX_TOPIC_LENGTH),
    AfterValidator(_validate_topic),
]


class ClientMessageType(StrEnum):
    START_GAME = "start_game"
    CONNECT = "connect"
    JOIN_RESPONSE = "join_response"
    MOVE = "move"
    SURRENDER = "surrender"
    SURRENDER_RESPONSE = "surrender_response"
    REMATCH = "rematch"
    REMATCH_RESPONSE = "rematch_response"
    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    PING = "ping"


class ServerMessageType(StrEnum):
    GAME_UPDATE = "game_update"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"
    ERROR = "error"
    PONG = "pong"


class _ClientMessage(BaseModel):
    model_config = ConfigDict(extra="forbid")


class StartGameMessage(_ClientMessage):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME
    login: Login


class ConnectMessage(_ClientMessage):
    """Join a specific game, or any open lobby when game_id is omitted or empty."""

    type: Literal[ClientMessageType.CONNECT] = ClientMessageType.CONNECT
    login: Login
    game_id: Annotated[str, Field(max_length=64, pattern=r"^[a-zA-Z0-9_-]*$")] | None = None


class JoinResponseMessage(_ClientMessage):
    type: Literal[ClientMessageType.JOIN_RESPONSE] = ClientMessageType.JOIN_RESPONSE
    game_id: GameId
    responder_login: Login
    requester_login: Login
    accepted: bool = Field(strict=True)


class MoveMessage(_ClientMessage):
    type: Literal[ClientMessageType.MOVE] = ClientMessageType.MOVE
    game_id: GameId
    login: Login
    cell_index: int = Field(ge=0, lt=BOARD_SIZE, strict=True)


class SurrenderMessage(_ClientMessage):
    type: Literal[ClientMessageType.SURRENDER] = ClientMessageType.SURRENDER
    game_id: GameId
    login: Login


class SurrenderResponseMessage(_ClientMessage):
    type: Literal[ClientMessageType.SURRENDER_RESPONSE] = ClientMessageType.SURRENDER_RESPONSE
    game_id: GameId
    login: Login
    accepted: bool = Field(strict=True)


class RematchMessage(_ClientMessage):
    type: Literal[ClientMessageType.REMATCH] = ClientMessageType.REMATCH
    game_id: GameId
    login: Login


class RematchResponseMessage(_ClientMessage):
    type: Literal[ClientMessageType.REMATCH_RESPONSE] = ClientMessageType.REMATCH_RESPONSE
    game_id: GameId
    login: Login
    accepted: bool = Field(strict=True)


class SubscribeMessage(_ClientMessage):
    type: Literal[ClientMessageType.SUBSCRIBE] = ClientMessageType.SUBSCRIBE
    topic: Topic


class UnsubscribeMessage(_ClientMessage):
    type: Literal[ClientMessageType.UNSUBSCRIBE] = ClientMessageType.UNSUBSCRIBE
    topic: Topic


class PingMessage(_ClientMessage):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = Annotated[
    StartGameMessage
    | ConnectMessage
    | JoinResponseMessage
    | MoveMessage
    | SurrenderMessage
    | SurrenderResponseMessage
    | RematchMessage
    | RematchResponseMessage
    | SubscribeMessage
    | UnsubscribeMessage
    | PingMessage,
    Field(discriminator="type"),
]

_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Validate a decoded wire dict into a typed client message.

    Raises pydantic.ValidationError for unknown types or malformed fields.
    """
    return _client_message_adapter.validate_python(data)


class GameUpdateMessage(BaseModel):
    type: Literal[ServerMessageType.GAME_UPDATE] = ServerMessageType.GAME_UPDATE
    topic: str
    game: Session


class SubscribedMessage(BaseModel):
    type: Literal[ServerMessageType.SUBSCRIBED] = ServerMessageType.SUBSCRIBED
    topic: str


class UnsubscribedMessage(BaseModel):
    type: Literal[ServerMessageType.UNSUBSCRIBED] = ServerMessageType.UNSUBSCRIBED
    topic: str


class ErrorMessage(BaseModel):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    code: SessionErrorCode
    message: str


class PongMessage(BaseModel):
    type: Literal[ServerMessageType.PONG] = ServerMessageType.PONG
