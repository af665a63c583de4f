"""
Pure session state transitions.

Each function takes the current Session snapshot, validates the operation
against it and returns the next snapshot with last_activity_at refreshed.
Rule violations raise GameRuleError subclasses; nothing here touches the
store, so a failed validation can never leave a half-applied change.

State machine: NEW -> ACTIVE -> FINISHED, and FINISHED -> ACTIVE through an
accepted rematch (same game_id, same players, fresh board).
"""

from game.logic.board import apply_move, check_win, empty_board, is_full
from game.logic.enums import SessionStatus
from game.logic.exceptions import InvalidStateError, TurnViolationError
from game.session.models import Session


def _require_participant(session: Session, player: str) -> None:
    if not session.is_participant(player):
        raise InvalidStateError(f"{player} is not a player in this game")


def request_join(session: Session, player: str) -> Session:
    if player == session.creator:
        raise InvalidStateError("You cannot join your own game")
    if session.joiner is not None:
        raise InvalidStateError("Game is already full")
    if session.pending_joiner is not None:
        raise InvalidStateError("There is already a pending join request")
    return session.touched(pending_joiner=player)


def respond_join(session: Session, responder: str, requester: str, *, accepted: bool) -> Session:
    """Resolve the pending join request. The request is cleared whether accepted or rejected."""
    if session.pending_joiner is None:
        raise InvalidStateError("No pending join request")
    if responder != session.creator:
        raise InvalidStateError("Only the game creator can respond to join requests")
    if requester != session.pending_joiner:
        raise InvalidStateError("Invalid requester")

    if not accepted:
        return session.touched(pending_joiner=None)
    return session.touched(
        joiner=session.pending_joiner,
        pending_joiner=None,
        turn=session.creator,
        status=SessionStatus.ACTIVE,
    )


def move(session: Session, player: str, cell_index: int) -> Session:
    """
    Place the player's mark and advance the game.

    A winning move or a move that fills the board finishes the game; the
    turn only passes to the opponent while the game stays active.

    Raises:
        InvalidStateError: If the game is not in progress
        TurnViolationError: If the player does not hold the turn
        IllegalMoveError: If the cell is occupied or out of range

    """
    if session.status == SessionStatus.FINISHED:
        raise InvalidStateError("Game is already finished")
    # Checked before the turn: a NEW game has no turn holder yet, and the
    # caller gets invalid_state rather than a turn violation.
    if session.status != SessionStatus.ACTIVE:
        raise InvalidStateError("Game has not started yet")
    if player != session.turn:
        raise TurnViolationError("It's not your turn")

    mark = session.mark_of(player)
    board = apply_move(session.board, cell_index, mark)

    if check_win(board, mark):
        return session.touched(
            board=board,
            winner=mark,
            status=SessionStatus.FINISHED,
            surrender_requester=None,
        )
    if is_full(board):
        return session.touched(board=board, status=SessionStatus.FINISHED, surrender_requester=None)
    return session.touched(board=board, turn=session.opponent_of(player))


def request_surrender(session: Session, player: str) -> Session:
    if session.status != SessionStatus.ACTIVE:
        raise InvalidStateError("Game is not in progress")
    _require_participant(session, player)
    return session.touched(surrender_requester=player)


def respond_surrender(session: Session, responder: str, *, accepted: bool) -> Session:
    """Resolve a surrender request. On acceptance the responder's mark wins."""
    if session.surrender_requester is None or session.surrender_requester == responder:
        raise InvalidStateError("No surrender request to respond to")
    _require_participant(session, responder)

    if not accepted:
        return session.touched(surrender_requester=None)
    return session.touched(
        status=SessionStatus.FINISHED,
        winner=session.mark_of(responder),
        surrender_requester=None,
    )


def request_rematch(session: Session, player: str) -> Session:
    if session.status != SessionStatus.FINISHED:
        raise InvalidStateError("Can only request rematch for finished games")
    _require_participant(session, player)
    return session.touched(rematch_requester=player)


def respond_rematch(session: Session, responder: str, *, accepted: bool) -> Session:
    """Resolve a rematch request. On acceptance the same session restarts with the creator to move."""
    if session.rematch_requester is None or session.rematch_requester == responder:
        raise InvalidStateError("No rematch request to respond to")
    _require_participant(session, responder)

    if not accepted:
        return session.touched(rematch_requester=None)
    return session.touched(
        board=empty_board(),
        winner=None,
        surrender_requester=None,
        rematch_requester=None,
        turn=session.creator,
        status=SessionStatus.ACTIVE,
    )
