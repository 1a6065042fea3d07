"""
Tests for the session state machine.

Tests:
- Seating, auto-start and host handling
- Roll/move validation and the awaiting-move lock
- Auto-pass and extra turns
- Leaving mid-game
- Winning
"""

import pytest

from ..engine_core.action import Action, ActionType
from ..engine_core.board import TRIO
from ..engine_core.errors import ErrorCode, GameError
from ..engine_core.state import Base, Home, OnTrack, SessionStatus
from ..session import EventType, SessionConfig
from .conftest import make_board


def assert_rejected(code, func, *args):
    with pytest.raises(GameError) as excinfo:
        func(*args)
    assert excinfo.value.code == code


class TestSeating:
    """Tests for joining and leaving the lobby."""

    def test_colors_assigned_in_order(self, make_session):
        session = make_session(seat_count=4)
        seats = [session.join(name) for name in ("A", "B", "C")]
        assert [seat.color for seat in seats] == ["red", "green", "yellow"]
        assert session.status == SessionStatus.WAITING

    def test_trio_uses_its_own_colors(self, make_session):
        session = make_session(seat_count=3, layout=TRIO)
        colors = [session.join().color for _ in range(3)]
        assert colors == ["red", "green", "blue"]
        assert session.status == SessionStatus.PLAYING

    def test_default_names(self, make_session):
        session = make_session()
        assert session.join("  ").name == "Player-red"
        assert session.add_bot().name == "CPU-green"

    def test_auto_start_and_first_move(self, make_session, dice):
        """Two joins on a two-seat room start the game; a 6 enters and keeps the turn."""
        session = make_session(seat_count=2)
        session.join("Alice")
        session.join("Bob")

        assert session.status == SessionStatus.PLAYING
        assert session.turns.turn_index == 0
        assert session.turns.pending_die is None

        dice.push(6)
        session.roll("seat1")
        session.move("seat1", 0)

        assert session.board["red"][0] == OnTrack(0)
        assert session.turns.turn_index == 0
        assert session.turns.pending_die is None

    def test_join_during_play_takes_last_place(self, make_session, dice):
        """A late joiner gets fresh tokens without disturbing the current turn."""
        session = make_session(seat_count=4)
        session.join("Alice")
        session.join("Bob")
        session.start("seat1")
        dice.push(6)
        session.roll("seat1")

        carol = session.join("Carol")

        assert session.status == SessionStatus.PLAYING
        assert carol.color == "yellow"
        assert session.seats[-1] is carol
        assert session.board["yellow"] == (Base(),) * 4
        assert session.turns.turn_index == 0
        assert session.turns.awaiting_move == "seat1"
        assert session.turns.pending_die == 6

        session.move("seat1", 0)
        assert session.board["red"][0] == OnTrack(0)

    def test_full_room(self, make_session):
        session = make_session(seat_count=4)
        for name in ("A", "B", "C", "D"):
            session.join(name)
        assert session.status == SessionStatus.PLAYING
        assert_rejected(ErrorCode.ROOM_FULL, session.join, "Late")
        assert len(session.seats) == 4

    def test_seated_colors_have_four_tokens(self, three_player_game):
        assert set(three_player_game.board) == {"red", "green", "yellow"}
        for tokens in three_player_game.board.values():
            assert tokens == (Base(),) * 4

    def test_join_emits_state(self, make_session, events):
        session = make_session()
        session.join("Alice")
        assert len(events) == 1
        assert events[0].event_type == EventType.STATE
        assert events[0].snapshot["seats"][0]["name"] == "Alice"


class TestHost:
    """Tests for host assignment and manual start."""

    def test_first_human_is_host(self, make_session):
        session = make_session()
        session.add_bot()
        assert session.host_id is None
        seat = session.join("Alice")
        assert session.host_id == seat.seat_id

    def test_host_passes_to_next_human(self, make_session):
        session = make_session()
        session.join("Alice")
        session.add_bot()
        bob = session.join("Bob")
        session.leave("seat1")
        assert session.host_id == bob.seat_id

    def test_no_host_when_only_bots_remain(self, make_session):
        session = make_session()
        session.join("Alice")
        session.add_bot()
        session.leave("seat1")
        assert session.host_id is None

    def test_host_starts_early(self, make_session):
        session = make_session(seat_count=4)
        session.join("Alice")
        session.join("Bob")
        session.start("seat1")
        assert session.status == SessionStatus.PLAYING
        assert session.turns.turn_index == 0

    def test_non_host_cannot_start(self, make_session):
        session = make_session(seat_count=4)
        session.join("Alice")
        session.join("Bob")
        assert_rejected(ErrorCode.NOT_HOST, session.start, "seat2")

    def test_start_needs_min_seats(self, make_session):
        session = make_session(seat_count=4)
        session.join("Alice")
        assert_rejected(ErrorCode.WRONG_PHASE, session.start, "seat1")

    def test_start_twice(self, two_player_game):
        assert_rejected(ErrorCode.WRONG_PHASE, two_player_game.start, "seat1")


class TestBots:
    """Tests for adding and removing bots in the lobby."""

    def test_add_bot_can_fill_room(self, make_session):
        session = make_session(seat_count=2)
        session.join("Alice")
        bot = session.add_bot()
        assert bot.is_bot
        assert session.status == SessionStatus.PLAYING

    def test_add_bot_only_while_waiting(self, two_player_game):
        assert_rejected(ErrorCode.WRONG_PHASE, two_player_game.add_bot)

    def test_remove_first_bot(self, make_session):
        session = make_session()
        session.join("Alice")
        first = session.add_bot()
        session.add_bot()
        removed = session.remove_bot()
        assert removed.seat_id == first.seat_id
        assert len(session.seats) == 2
        assert "green" not in session.board

    def test_remove_bot_without_bots(self, make_session):
        session = make_session()
        session.join("Alice")
        assert session.remove_bot() is None
        assert len(session.seats) == 1

    def test_freed_color_is_reused(self, make_session):
        session = make_session()
        session.join("Alice")
        session.add_bot()
        session.remove_bot()
        assert session.join("Bob").color == "green"


class TestRollAndMove:
    """Tests for turn actions."""

    def test_only_current_seat_rolls(self, two_player_game):
        assert_rejected(ErrorCode.NOT_YOUR_TURN, two_player_game.roll, "seat2")

    def test_lock_held_until_move(self, two_player_game, dice):
        """While a seat holds the lock nobody else acts and it cannot re-roll."""
        session = two_player_game
        dice.push(6)
        result = session.roll("seat1")

        assert result.legal == [0, 1, 2, 3]
        assert session.turns.awaiting_move == "seat1"
        assert_rejected(ErrorCode.ALREADY_ROLLED, session.roll, "seat1")
        assert_rejected(ErrorCode.NOT_YOUR_TURN, session.roll, "seat2")
        assert_rejected(ErrorCode.NOT_YOUR_TURN, session.move, "seat2", 0)

        session.move("seat1", 0)
        assert not session.turns.is_locked

    def test_move_before_roll(self, two_player_game):
        assert_rejected(ErrorCode.NOT_YOUR_TURN, two_player_game.move, "seat1", 0)

    def test_illegal_token_keeps_lock(self, two_player_game, dice):
        session = two_player_game
        session.board = make_board(red=[10], green=[])
        dice.push(4)
        session.roll("seat1")
        assert_rejected(ErrorCode.INVALID_MOVE, session.move, "seat1", 1)
        assert session.turns.awaiting_move == "seat1"
        assert session.turns.pending_die == 4

    def test_non_six_passes_turn(self, two_player_game, dice):
        session = two_player_game
        session.board = make_board(red=[10], green=[])
        dice.push(4)
        session.roll("seat1")
        session.move("seat1", 0)
        assert session.board["red"][0] == OnTrack(14)
        assert session.turns.turn_index == 1
        assert session.current_seat.seat_id == "seat2"

    def test_six_grants_one_more_roll(self, two_player_game, dice):
        session = two_player_game
        dice.push(6, 4)
        session.roll("seat1")
        session.move("seat1", 0)
        assert session.turns.turn_index == 0

        result = session.roll("seat1")
        assert result.legal == [0]
        session.move("seat1", 0)
        assert session.board["red"][0] == OnTrack(4)
        assert session.turns.turn_index == 1

    def test_capture_sends_token_home(self, two_player_game, dice):
        session = two_player_game
        session.board = make_board(red=[2], green=[44])
        dice.push(3)
        session.roll("seat1")
        outcome = session.move("seat1", 0)
        assert len(outcome.captures) == 1
        assert session.board["green"][0] == Base()
        assert session.snapshot()["tokensByColor"]["green"][0] == {"state": "base"}

    def test_last_roll_cache(self, two_player_game, dice):
        session = two_player_game
        dice.push(6)
        session.roll("seat1")
        assert session.last_rolls == {"red": 6}
        assert session.snapshot()["lastRollByColor"] == {"red": 6}

    def test_roll_in_lobby(self, make_session):
        session = make_session()
        session.join("Alice")
        assert_rejected(ErrorCode.WRONG_PHASE, session.roll, "seat1")

    def test_unknown_seat_is_stale(self, two_player_game):
        assert_rejected(ErrorCode.STALE_REQUEST, two_player_game.roll, "ghost")


class TestAutoPass:
    """Tests for rolls without a legal move."""

    def test_no_move_passes_after_delay(self, two_player_game, dice, scheduler):
        session = two_player_game
        dice.push(3)
        result = session.roll("seat1")

        assert result.passes
        assert session.turns.pending_die == 3
        assert not session.turns.is_locked
        assert session.turns.turn_index == 0
        assert scheduler.delays[-1] == session.config.pass_delay

        scheduler.run_all()
        assert session.turns.turn_index == 1
        assert session.turns.pending_die is None

    def test_grace_window_rejects_actions(self, two_player_game, dice):
        session = two_player_game
        dice.push(3)
        session.roll("seat1")
        assert_rejected(ErrorCode.ALREADY_ROLLED, session.roll, "seat1")
        assert_rejected(ErrorCode.NOT_YOUR_TURN, session.move, "seat1", 0)
        assert_rejected(ErrorCode.NOT_YOUR_TURN, session.roll, "seat2")

    def test_six_without_move_still_passes(self, two_player_game, dice, scheduler):
        """An auto-pass always advances, even on a 6."""
        session = two_player_game
        session.board = make_board(red=["home", "home", 55, 54], green=[])
        dice.push(6)
        result = session.roll("seat1")
        assert result.passes

        scheduler.run_all()
        assert session.turns.turn_index == 1

    def test_base_and_overshoot_pass(self, two_player_game, dice, scheduler):
        session = two_player_game
        session.board = make_board(red=[55, 56, None, None], green=[])
        dice.push(3)
        assert session.roll("seat1").passes
        scheduler.run_all()
        assert session.current_seat.seat_id == "seat2"


class TestLeave:
    """Tests for seats leaving."""

    def test_leave_while_holding_lock(self, three_player_game, dice):
        """The next seat gets the turn with nothing pending."""
        session = three_player_game
        session.board = make_board(red=[10], green=[10], yellow=[10])
        dice.push(2, 3)
        session.roll("seat1")
        session.move("seat1", 0)
        session.roll("seat2")
        assert session.turns.awaiting_move == "seat2"

        session.leave("seat2")

        assert session.status == SessionStatus.PLAYING
        assert session.current_seat.seat_id == "seat3"
        assert session.turns.pending_die is None
        assert not session.turns.is_locked
        assert "green" not in session.board

        dice.push(1)
        session.roll("seat3")

    def test_earlier_seat_leaving_keeps_current(self, three_player_game, dice):
        session = three_player_game
        session.board = make_board(red=[10], green=[10], yellow=[10])
        dice.push(2)
        session.roll("seat1")
        session.move("seat1", 0)
        assert session.current_seat.seat_id == "seat2"

        session.leave("seat1")
        assert session.current_seat.seat_id == "seat2"
        assert session.turns.turn_index == 0

    def test_too_few_seats_reverts_to_waiting(self, two_player_game, dice):
        session = two_player_game
        dice.push(6)
        session.roll("seat1")
        session.leave("seat2")

        assert session.status == SessionStatus.WAITING
        assert session.turns.pending_die is None
        assert not session.turns.is_locked

    def test_rejoin_restarts_fresh(self, two_player_game, dice):
        session = two_player_game
        dice.push(6)
        session.roll("seat1")
        session.move("seat1", 0)
        session.leave("seat2")

        session.join("Dave")
        assert session.status == SessionStatus.PLAYING
        assert session.board["red"] == (Base(),) * 4
        assert session.turns.turn_index == 0

    def test_last_leave_closes(self, make_session):
        session = make_session()
        session.join("Alice")
        session.leave("seat1")
        assert session.closed
        assert_rejected(ErrorCode.STALE_REQUEST, session.join, "Bob")

    def test_stale_auto_pass_is_ignored(self, three_player_game, dice, scheduler):
        session = three_player_game
        dice.push(3)
        session.roll("seat1")
        session.leave("seat1")
        assert session.current_seat.seat_id == "seat2"

        scheduler.run_all()
        assert session.current_seat.seat_id == "seat2"
        assert session.turns.pending_die is None


class TestFinish:
    """Tests for the end of the game."""

    @pytest.fixture
    def nearly_won(self, two_player_game, dice):
        session = two_player_game
        session.board = make_board(red=["home", "home", "home", 51], green=[])
        dice.push(6)
        session.roll("seat1")
        return session

    def test_last_token_home_wins(self, nearly_won, events):
        nearly_won.move("seat1", 3)
        assert nearly_won.status == SessionStatus.FINISHED
        assert nearly_won.winner == "red"
        assert nearly_won.board["red"] == (Home(),) * 4
        assert events[-1].event_type == EventType.FINISHED
        assert events[-1].winner == "red"
        assert events[-1].snapshot["winner"] == "red"

    def test_no_actions_after_finish(self, nearly_won):
        nearly_won.move("seat1", 3)
        assert_rejected(ErrorCode.WRONG_PHASE, nearly_won.roll, "seat1")
        assert_rejected(ErrorCode.WRONG_PHASE, nearly_won.roll, "seat2")
        assert_rejected(ErrorCode.WRONG_PHASE, nearly_won.join, "Late")

    def test_close_cancels_timers(self, two_player_game, dice, scheduler):
        dice.push(3)
        two_player_game.roll("seat1")
        assert scheduler.pending == 1
        two_player_game.close()
        assert scheduler.pending == 0


class TestApply:
    """Tests for the action record entry point."""

    def test_success(self, two_player_game, dice):
        dice.push(6)
        result = two_player_game.apply(Action.roll("seat1"))
        assert result.success
        assert result.value.die == 6

    def test_failure_carries_code(self, two_player_game):
        result = two_player_game.apply(Action.roll("seat2"))
        assert not result.success
        assert result.error_code == ErrorCode.NOT_YOUR_TURN

    def test_move_reports_changes(self, two_player_game, dice):
        two_player_game.board = make_board(red=[2], green=[44])
        dice.push(3)
        two_player_game.apply(Action.roll("seat1"))
        result = two_player_game.apply(Action.move("seat1", 0))
        assert result.success
        assert result.changes == [
            "red token 0 moved onTrack -> onTrack(5)",
            "red captured green token 0",
        ]

    def test_move_without_index(self, two_player_game, dice):
        dice.push(6)
        two_player_game.apply(Action.roll("seat1"))
        result = two_player_game.apply(Action(action_type=ActionType.MOVE, seat_id="seat1"))
        assert result.error_code == ErrorCode.INVALID_MOVE

    def test_join_and_leave(self, make_session):
        session = make_session()
        joined = session.apply(Action.join("Alice", connection_id="c1"))
        assert joined.success
        assert session.seat_for_connection("c1").seat_id == joined.value.seat_id

        left = session.apply(Action.leave(joined.value.seat_id))
        assert left.success
        assert session.is_empty


class TestSnapshot:
    """Tests for the wire snapshot."""

    def test_fields(self, two_player_game):
        snapshot = two_player_game.snapshot()
        assert snapshot["sessionId"] == "room1"
        assert snapshot["status"] == "playing"
        assert snapshot["turnIndex"] == 0
        assert snapshot["pendingDie"] is None
        assert snapshot["hostId"] == "seat1"
        assert snapshot["winner"] is None
        assert [seat["color"] for seat in snapshot["seats"]] == ["red", "green"]
        assert snapshot["tokensByColor"]["red"] == [{"state": "base"}] * 4


class TestConfig:
    """Tests for session configuration."""

    def test_defaults_fill_layout(self):
        config = SessionConfig()
        assert config.seat_count == 4
        assert config.max_seats == 4

    def test_seat_count_above_layout(self):
        with pytest.raises(ValueError):
            SessionConfig(layout=TRIO, seat_count=4)

    def test_seat_count_below_min(self):
        with pytest.raises(ValueError):
            SessionConfig(seat_count=2, min_seats=3)
