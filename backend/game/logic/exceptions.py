"""Typed domain exceptions for session rule violations.

Domain code raises subclasses of GameRuleError. The session service
catches them at its public boundary and converts them into Err results,
so callers never see these exceptions directly.
"""

from game.logic.enums import SessionErrorCode


class GameRuleError(Exception):
    """Base exception for session rule violations."""

    code: SessionErrorCode = SessionErrorCode.INVALID_STATE


class SessionNotFoundError(GameRuleError):
    """Referenced session does not exist (or was already evicted)."""

    code = SessionErrorCode.NOT_FOUND

    def __init__(self, game_id: str) -> None:
        self.game_id = game_id
        super().__init__(f"Game {game_id} does not exist")


class InvalidStateError(GameRuleError):
    """Operation is not legal given the current status or pending requests."""

    code = SessionErrorCode.INVALID_STATE


class TurnViolationError(GameRuleError):
    """Move attempted by a player who does not hold the turn."""

    code = SessionErrorCode.TURN_VIOLATION


class IllegalMoveError(GameRuleError):
    """Move targets an occupied or out-of-range cell."""

    code = SessionErrorCode.ILLEGAL_MOVE


class InvalidInputError(GameRuleError):
    """Malformed operation input, rejected before any session is read."""

    code = SessionErrorCode.VALIDATION_ERROR
