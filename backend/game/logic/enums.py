"""
String enum definitions for tic-tac-toe session concepts.
"""

from enum import StrEnum


class Mark(StrEnum):
    """Symbol a player places on the board. The session creator always plays X."""

    X = "X"
    O = "O"  # noqa: E741


class SessionStatus(StrEnum):
    """Lifecycle state of a session."""

    NEW = "NEW"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"


class SessionErrorCode(StrEnum):
    """Error codes returned by the session service and sent to clients."""

    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    TURN_VIOLATION = "turn_violation"
    ILLEGAL_MOVE = "illegal_move"
    VALIDATION_ERROR = "validation_error"
    INTERNAL_ERROR = "internal_error"
