"""
Pytest fixtures for Ludo tests.
"""

import pytest

from ..engine_core.board import CLASSIC, BoardLayout
from ..engine_core.state import Base, Board, Home, OnTrack
from ..session import ManualScheduler, Session, SessionConfig


class ScriptedDice:
    """Dice that return queued values in order."""

    def __init__(self, values=None):
        self.values = list(values or [])
        self.rolled = []

    def push(self, *values: int):
        self.values.extend(values)

    def __call__(self) -> int:
        if not self.values:
            raise AssertionError("ScriptedDice ran out of values")
        value = self.values.pop(0)
        self.rolled.append(value)
        return value


def make_board(layout: BoardLayout = CLASSIC, **tokens_by_color) -> Board:
    """
    Build a board from compact token entries.

    Each color maps to up to four entries: None for Base, "home" for Home,
    or an int step for OnTrack. Missing entries are Base.
    """
    board = {}
    for color, entries in tokens_by_color.items():
        tokens = []
        for entry in list(entries) + [None] * (layout.tokens_per_color - len(entries)):
            if entry is None:
                tokens.append(Base())
            elif entry == "home":
                tokens.append(Home())
            else:
                tokens.append(OnTrack(entry))
        board[color] = tuple(tokens)
    return board


@pytest.fixture
def layout() -> BoardLayout:
    return CLASSIC


@pytest.fixture
def dice() -> ScriptedDice:
    return ScriptedDice()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def make_session(dice, scheduler, events):
    """Factory for sessions wired to scripted dice and a manual scheduler."""
    counter = iter(range(1, 1000))

    def factory(seat_count: int = 4, min_seats: int = 2, layout: BoardLayout = CLASSIC, **kwargs):
        config = SessionConfig(layout=layout, seat_count=seat_count, min_seats=min_seats)
        return Session(
            "room1",
            config,
            scheduler=scheduler,
            dice=dice,
            listener=events.append,
            id_factory=lambda: f"seat{next(counter)}",
            **kwargs,
        )

    return factory


@pytest.fixture
def two_player_game(make_session):
    """A started 2-seat game: red (seat1) vs green (seat2)."""
    session = make_session(seat_count=2)
    session.join("Alice")
    session.join("Bob")
    return session


@pytest.fixture
def three_player_game(make_session):
    """A started 3-seat game: red, green, yellow."""
    session = make_session(seat_count=3)
    session.join("Alice")
    session.join("Bob")
    session.join("Carol")
    return session
