import pytest
from pydantic import ValidationError

from game.logic.board import empty_board
from game.logic.enums import Mark, SessionStatus
from game.session.models import Session
from game.tests.helpers.sessions import CREATOR, JOINER, active_session, finished_session, new_session


class TestSessionDefaults:
    def test_new_session_shape(self):
        session = new_session()

        assert session.status == SessionStatus.NEW
        assert session.board == empty_board()
        assert session.joiner is None
        assert session.turn is None
        assert session.winner is None
        assert session.created_at <= session.last_activity_at

    def test_game_ids_are_unique(self):
        assert new_session().game_id != new_session().game_id

    def test_session_is_frozen(self):
        session = new_session()

        with pytest.raises(ValidationError):
            session.status = SessionStatus.ACTIVE


class TestSessionShapeValidation:
    def test_board_must_have_nine_cells(self):
        with pytest.raises(ValidationError, match="Board must have 9 cells"):
            Session(creator=CREATOR, board=(None,) * 8)

    def test_winner_requires_finished_status(self):
        with pytest.raises(ValidationError, match="Only a finished game can have a winner"):
            active_session(winner=Mark.X)

    def test_new_session_cannot_have_joiner(self):
        with pytest.raises(ValidationError, match="cannot have a joiner"):
            Session(creator=CREATOR, joiner=JOINER)

    def test_active_session_requires_joiner(self):
        with pytest.raises(ValidationError, match="must have a joiner"):
            Session(creator=CREATOR, status=SessionStatus.ACTIVE, turn=CREATOR)


class TestSessionHelpers:
    def test_marks_follow_seat(self):
        session = active_session()

        assert session.mark_of(CREATOR) == Mark.X
        assert session.mark_of(JOINER) == Mark.O

    def test_mark_of_stranger_raises(self):
        with pytest.raises(ValueError, match="carol is not a player"):
            active_session().mark_of("carol")

    def test_opponent_of(self):
        session = active_session()

        assert session.opponent_of(CREATOR) == JOINER
        assert session.opponent_of(JOINER) == CREATOR
        assert session.opponent_of("carol") is None

    def test_is_participant(self):
        session = active_session()

        assert session.is_participant(CREATOR)
        assert session.is_participant(JOINER)
        assert not session.is_participant("carol")

    def test_is_draw(self):
        draw_board = (Mark.X, Mark.O, Mark.X, Mark.X, Mark.O, Mark.O, Mark.O, Mark.X, Mark.X)

        assert finished_session(winner=None, board=draw_board).is_draw
        assert not finished_session().is_draw

    def test_touched_refreshes_activity(self):
        session = new_session(created_at=100.0, last_activity_at=100.0)

        updated = session.touched(pending_joiner=JOINER)

        assert updated.pending_joiner == JOINER
        assert updated.last_activity_at > 100.0
        assert updated.created_at == 100.0
        assert session.pending_joiner is None

    def test_touched_rejects_invalid_shape(self):
        with pytest.raises(ValidationError, match="Only a finished game can have a winner"):
            active_session().touched(winner=Mark.X)

    def test_touched_rejects_started_game_without_joiner(self):
        with pytest.raises(ValidationError, match="must have a joiner"):
            new_session().touched(status=SessionStatus.ACTIVE, turn=CREATOR)
