"""
Turn Sequencer - Turn index, pending die and the awaiting-move lock.

At most one unresolved roll exists per session. Between a roll and its
resolution the die is pending; if the roll has a legal move, the rolling
seat also holds the awaiting-move lock until it moves. A roll without a
legal move leaves the die pending (no lock) until the auto-pass fires.

serial increments on every turn change. Delayed actions capture it and do
nothing if the turn has moved on by the time they run.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..engine_core.board import DIE_FACES
from ..engine_core.errors import ErrorCode, GameError


@dataclass
class TurnSequencer:
    turn_index: int = 0
    pending_die: int | None = None
    awaiting_move: str | None = None  # seat id holding the lock
    serial: int = 0

    @property
    def is_locked(self) -> bool:
        return self.awaiting_move is not None

    def reset(self):
        """Fresh game: first seat to act, nothing pending."""
        self.turn_index = 0
        self.clear_pending()
        self.serial += 1

    def clear_pending(self):
        self.pending_die = None
        self.awaiting_move = None

    # =========================================================================
    # Validation
    # =========================================================================

    def check_roll(self, seat_index: int):
        """Raise unless the seat at seat_index may roll now."""
        if seat_index != self.turn_index:
            raise GameError(ErrorCode.NOT_YOUR_TURN, "It is not your turn")
        if self.pending_die is not None:
            raise GameError(ErrorCode.ALREADY_ROLLED, "Die already rolled this turn")
        if self.is_locked:
            raise GameError(ErrorCode.NOT_YOUR_TURN, "Another seat must move first")

    def check_move(self, seat_index: int, seat_id: str):
        """Raise unless this seat holds the lock with a pending die."""
        if seat_index != self.turn_index or self.awaiting_move != seat_id:
            raise GameError(ErrorCode.NOT_YOUR_TURN, "You are not awaiting a move")
        if self.pending_die is None:
            raise GameError(ErrorCode.NOT_YOUR_TURN, "Roll before moving")

    # =========================================================================
    # Transitions
    # =========================================================================

    def record_roll(self, die: int, seat_id: str | None):
        """
        Store a fresh roll.

        seat_id takes the lock; None means the roll has no legal move and
        will be passed.
        """
        self.pending_die = die
        self.awaiting_move = seat_id

    def advance(self, seat_count: int, extra_turn: bool = False) -> bool:
        """
        Resolve the current turn.

        Returns True if the turn index moved. An extra turn keeps the same
        seat for exactly one more roll.
        """
        self.clear_pending()
        self.serial += 1
        if extra_turn or seat_count == 0:
            return False
        self.turn_index = (self.turn_index + 1) % seat_count
        return True

    def seat_removed(self, index: int, seat_count: int) -> bool:
        """
        Keep the turn index pointing at a seated player after a removal.

        seat_count is the number of seats left. Returns True if the removed
        seat was the one whose turn it was; its roll and lock are dropped and
        the turn passes to whoever now sits at its index.
        """
        was_current = index == self.turn_index
        if was_current:
            self.clear_pending()
            self.serial += 1
        elif index < self.turn_index:
            self.turn_index -= 1

        if seat_count == 0 or self.turn_index >= seat_count:
            self.turn_index = 0
        return was_current

    def describe(self) -> str:
        die = self.pending_die if self.pending_die is not None else "-"
        return f"turn={self.turn_index} die={die} lock={self.awaiting_move or '-'}"


def is_extra_turn(die: int) -> bool:
    """The maximum face grants the same seat another roll."""
    return die == DIE_FACES
