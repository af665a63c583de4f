"""Session value type shared by the store, the service and the wire layer."""

import time
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from game.logic.board import BOARD_SIZE, empty_board, is_full
from game.logic.enums import Mark, SessionStatus
from game.logic.exceptions import InvalidInputError

MIN_LOGIN_LENGTH = 2
MAX_LOGIN_LENGTH = 50


def require_login(login: str) -> None:
    """Reject a player login that is blank or outside 2-50 characters."""
    if not isinstance(login, str) or not login.strip():
        raise InvalidInputError("Player login cannot be empty")
    if not MIN_LOGIN_LENGTH <= len(login) <= MAX_LOGIN_LENGTH:
        raise InvalidInputError(
            f"Player login must be between {MIN_LOGIN_LENGTH} and {MAX_LOGIN_LENGTH} characters",
        )


class Session(BaseModel):
    """One tic-tac-toe game between a creator and at most one joiner.

    Frozen: every transition produces a new validated instance via touched(),
    so a snapshot handed to the notifier can never change underneath it.
    """

    model_config = ConfigDict(frozen=True)

    game_id: str = Field(default_factory=lambda: str(uuid4()))
    creator: str
    joiner: str | None = None
    pending_joiner: str | None = None
    status: SessionStatus = SessionStatus.NEW
    board: tuple[Mark | None, ...] = Field(default_factory=empty_board)
    turn: str | None = None
    winner: Mark | None = None
    surrender_requester: str | None = None
    rematch_requester: str | None = None
    created_at: float = Field(default_factory=time.time)
    last_activity_at: float = Field(default_factory=time.time)

    @model_validator(mode="after")
    def _validate_shape(self) -> Self:
        if len(self.board) != BOARD_SIZE:
            raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(self.board)}")
        if self.winner is not None and self.status != SessionStatus.FINISHED:
            raise ValueError("Only a finished game can have a winner")
        if self.status == SessionStatus.NEW and self.joiner is not None:
            raise ValueError("A new game cannot have a joiner")
        if self.status != SessionStatus.NEW and (self.joiner is None or self.pending_joiner is not None):
            raise ValueError(f"A {self.status} game must have a joiner and no pending join request")
        return self

    @property
    def is_draw(self) -> bool:
        return self.status == SessionStatus.FINISHED and self.winner is None and is_full(self.board)

    def is_participant(self, player: str) -> bool:
        return player in (self.creator, self.joiner)

    def mark_of(self, player: str) -> Mark:
        """Return the mark a participant plays. Creator plays X, joiner plays O."""
        if player == self.creator:
            return Mark.X
        if player == self.joiner:
            return Mark.O
        raise ValueError(f"{player} is not a player in game {self.game_id}")

    def opponent_of(self, player: str) -> str | None:
        if player == self.creator:
            return self.joiner
        if player == self.joiner:
            return self.creator
        return None

    def touched(self, **updates: object) -> Self:
        """Return a validated copy with updates applied and last_activity_at refreshed.

        Re-runs the shape checks, which model_copy(update=...) skips.
        """
        return self.model_validate({**self.model_dump(), **updates, "last_activity_at": time.time()})
