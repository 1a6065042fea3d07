"""
Session Manager - Game sessions and the registry that owns them.

LIFECYCLE:
1. A join naming an unknown (or no) session creates a new one
2. Seats fill in canonical color order; reaching seat_count starts the game
3. During the game:
   - The current seat rolls
   - No legal move: the turn auto-passes after a short grace delay
   - Otherwise the seat holds the awaiting-move lock until it moves
   - A 6 grants the same seat another roll
   - Bots roll and move on paced timers
4. A seat with all tokens Home wins; the session is Finished
5. The last seat leaving destroys the session

PERSISTENCE RULES:
- In-memory only, process lifetime
- Sessions share no state with each other

TIMERS:
- Every delayed action re-validates the session when it fires
- A session that moved on (leave, status change, new turn) ignores it
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import random
import uuid

from ..bots import BotPolicy, GreedyPolicy
from ..engine_core.action import Action, ActionResult, ActionType
from ..engine_core.action_generator import legal_moves
from ..engine_core.board import BoardLayout, CLASSIC, DIE_FACES
from ..engine_core.errors import ErrorCode, GameError
from ..engine_core.reducer import MoveOutcome, apply_move, win_check
from ..engine_core.state import (
    Board,
    Seat,
    SessionStatus,
    board_to_dict,
    fresh_tokens,
)
from .scheduler import ManualScheduler, Scheduler, TimerHandle
from .turns import TurnSequencer, is_extra_turn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionConfig:
    """
    Per-session rules and pacing.

    seat_count is the number of seats that starts a game automatically;
    min_seats is the fewest a game may be played with.
    """
    layout: BoardLayout = CLASSIC
    seat_count: int | None = None
    min_seats: int = 2
    bot_delay: float = 0.35
    pass_delay: float = 0.8

    def __post_init__(self):
        if self.seat_count is None:
            object.__setattr__(self, "seat_count", self.layout.max_seats)
        if not 2 <= self.min_seats <= self.layout.max_seats:
            raise ValueError(
                f"min_seats must be between 2 and {self.layout.max_seats}, got {self.min_seats}"
            )
        if not self.min_seats <= self.seat_count <= self.layout.max_seats:
            raise ValueError(
                f"seat_count must be between {self.min_seats} and "
                f"{self.layout.max_seats}, got {self.seat_count}"
            )

    @property
    def max_seats(self) -> int:
        return self.layout.max_seats


class EventType(Enum):
    STATE = "state"
    FINISHED = "finished"


@dataclass
class SessionEvent:
    """A state transition, pushed to the session's listener."""
    event_type: EventType
    session_id: str
    snapshot: dict[str, Any]
    winner: str | None = None


@dataclass
class RollResult:
    """Outcome of a roll: the die and which tokens it can move."""
    die: int
    legal: list[int] = field(default_factory=list)

    @property
    def passes(self) -> bool:
        return not self.legal


def _short_id() -> str:
    return uuid.uuid4().hex[:8]


def _random_die() -> int:
    return random.randint(1, DIE_FACES)


class Session:
    """
    One game instance.

    Contains:
    - Seats in turn order, and the board keyed by seated color
    - The turn sequencer (turn index, pending die, lock)
    - A scheduler for bot pacing and auto-pass
    - A listener receiving every state transition

    All operations are synchronous and raise GameError before touching
    state when the action is not allowed.
    """

    def __init__(
        self,
        session_id: str,
        config: SessionConfig | None = None,
        *,
        scheduler: Scheduler | None = None,
        policy: BotPolicy | None = None,
        dice: Callable[[], int] | None = None,
        listener: Callable[[SessionEvent], None] | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self.session_id = session_id
        self.config = config or SessionConfig()
        self.scheduler = scheduler or ManualScheduler()
        self.policy = policy or GreedyPolicy()
        self.dice = dice or _random_die
        self.listener = listener
        self._new_seat_id = id_factory or _short_id

        self.status = SessionStatus.WAITING
        self.seats: list[Seat] = []
        self.board: Board = {}
        self.turns = TurnSequencer()
        self.last_rolls: dict[str, int] = {}
        self.host_id: str | None = None
        self.winner: str | None = None
        self.closed = False

        self._timers: set[TimerHandle] = set()

    @property
    def layout(self) -> BoardLayout:
        return self.config.layout

    # =========================================================================
    # Lookups
    # =========================================================================

    @property
    def is_empty(self) -> bool:
        return not self.seats

    @property
    def has_humans(self) -> bool:
        return any(seat.is_human for seat in self.seats)

    @property
    def current_seat(self) -> Seat | None:
        if not self.seats:
            return None
        return self.seats[self.turns.turn_index]

    def get_seat(self, seat_id: str) -> Seat | None:
        for seat in self.seats:
            if seat.seat_id == seat_id:
                return seat
        return None

    def seat_for_connection(self, connection_id: str) -> Seat | None:
        for seat in self.seats:
            if seat.connection_id == connection_id:
                return seat
        return None

    def _require_seat(self, seat_id: str | None) -> tuple[int, Seat]:
        if self.closed:
            raise GameError(ErrorCode.STALE_REQUEST, "Session is closed")
        for index, seat in enumerate(self.seats):
            if seat.seat_id == seat_id:
                return index, seat
        raise GameError(ErrorCode.STALE_REQUEST, f"Seat {seat_id} is not in this session")

    def _require_status(self, status: SessionStatus):
        if self.status != status:
            raise GameError(
                ErrorCode.WRONG_PHASE,
                f"Not allowed while {self.status.value}",
            )

    def _next_free_color(self) -> str | None:
        taken = {seat.color for seat in self.seats}
        for color in self.layout.colors:
            if color not in taken:
                return color
        return None

    # =========================================================================
    # Lobby
    # =========================================================================

    def join(self, name: str | None = None, connection_id: str | None = None) -> Seat:
        """
        Seat a human. Starts the game if this fills the configured seat count.

        A join during play takes the last place in turn order with fresh
        tokens; the current turn is not disturbed.
        """
        seat = self._seat(name=name, is_bot=False, connection_id=connection_id)
        logger.info("Session %s: %s joined as %s", self.session_id, seat.name, seat.color)
        self._after_seating()
        return seat

    def add_bot(self) -> Seat:
        """Seat a bot. Only while waiting."""
        self._require_open()
        self._require_status(SessionStatus.WAITING)
        seat = self._seat(name=None, is_bot=True)
        logger.info("Session %s: bot %s added", self.session_id, seat.name)
        self._after_seating()
        return seat

    def remove_bot(self) -> Seat | None:
        """Remove the first bot in seat order. Only while waiting; no-op if none."""
        self._require_open()
        self._require_status(SessionStatus.WAITING)
        for index, seat in enumerate(self.seats):
            if seat.is_bot:
                self._unseat(index)
                logger.info("Session %s: bot %s removed", self.session_id, seat.name)
                self._emit_state()
                return seat
        return None

    def start(self, seat_id: str):
        """Host starts the game early with at least min_seats seated."""
        _, seat = self._require_seat(seat_id)
        self._require_status(SessionStatus.WAITING)
        if seat.seat_id != self.host_id:
            raise GameError(ErrorCode.NOT_HOST, "Only the host can start the game")
        if not self.config.min_seats <= len(self.seats) <= self.config.max_seats:
            raise GameError(
                ErrorCode.WRONG_PHASE,
                f"Need {self.config.min_seats}-{self.config.max_seats} players",
            )
        self._start_game()
        self._emit_state()
        self._schedule_bot_turn()

    def leave(self, seat_id: str) -> Seat:
        """
        Remove a seat (disconnect).

        If it was that seat's turn, its roll and lock are dropped and the turn
        passes on. A game left with too few seats goes back to waiting.
        """
        index, seat = self._require_seat(seat_id)
        was_current = self._unseat(index)
        logger.info("Session %s: %s left", self.session_id, seat.name)

        if self.is_empty:
            self.close()
            return seat

        if self.status == SessionStatus.PLAYING and len(self.seats) < self.config.min_seats:
            self.status = SessionStatus.WAITING
            self.turns.clear_pending()
            logger.info("Session %s: back to waiting, too few seats", self.session_id)
        elif was_current:
            logger.debug("Session %s: turn passed after leave, %s",
                         self.session_id, self.turns.describe())

        self._emit_state()
        self._schedule_bot_turn()
        return seat

    def _require_open(self):
        if self.closed:
            raise GameError(ErrorCode.STALE_REQUEST, "Session is closed")

    def _seat(self, name: str | None, is_bot: bool, connection_id: str | None = None) -> Seat:
        self._require_open()
        if self.status == SessionStatus.FINISHED:
            raise GameError(ErrorCode.WRONG_PHASE, "Game is over")
        if len(self.seats) >= self.config.max_seats:
            raise GameError(ErrorCode.ROOM_FULL, "Room full")
        color = self._next_free_color()
        if color is None:
            raise GameError(ErrorCode.ROOM_FULL, "No color available")

        if is_bot:
            default_name = f"CPU-{color}"
        else:
            default_name = f"Player-{color}"
        seat = Seat(
            seat_id=self._new_seat_id(),
            name=(name or "").strip() or default_name,
            color=color,
            is_bot=is_bot,
            connection_id=connection_id,
        )
        self.seats.append(seat)
        self.board[color] = fresh_tokens(self.layout)
        if self.host_id is None and seat.is_human:
            self.host_id = seat.seat_id
        return seat

    def _after_seating(self):
        if self.status == SessionStatus.WAITING and len(self.seats) == self.config.seat_count:
            self._start_game()
        self._emit_state()
        self._schedule_bot_turn()

    def _unseat(self, index: int) -> bool:
        seat = self.seats.pop(index)
        self.board.pop(seat.color, None)
        self.last_rolls.pop(seat.color, None)
        was_current = self.turns.seat_removed(index, len(self.seats))
        if self.host_id == seat.seat_id:
            humans = [s for s in self.seats if s.is_human]
            self.host_id = humans[0].seat_id if humans else None
        return was_current

    def _start_game(self):
        self.status = SessionStatus.PLAYING
        self.board = {seat.color: fresh_tokens(self.layout) for seat in self.seats}
        self.last_rolls.clear()
        self.turns.reset()
        logger.info(
            "Session %s: game started with %s",
            self.session_id, ", ".join(seat.color for seat in self.seats),
        )

    # =========================================================================
    # Turn actions
    # =========================================================================

    def roll(self, seat_id: str) -> RollResult:
        """
        Roll the die for the seat whose turn it is.

        With no legal move the roll is only recorded and the turn passes after
        pass_delay. Otherwise the seat takes the awaiting-move lock.
        """
        index, seat = self._require_seat(seat_id)
        self._require_status(SessionStatus.PLAYING)
        self.turns.check_roll(index)

        die = self.dice()
        if not 1 <= die <= DIE_FACES:
            raise ValueError(f"Dice produced {die}")
        self.last_rolls[seat.color] = die
        legal = legal_moves(self.board, seat.color, die, self.layout)

        if legal:
            self.turns.record_roll(die, seat.seat_id)
        else:
            self.turns.record_roll(die, None)
        logger.debug("Session %s: %s rolled %d, legal=%s", self.session_id, seat.color, die, legal)

        self._emit_state()

        serial = self.turns.serial
        if not legal:
            self._later(self.config.pass_delay, lambda: self._auto_pass(serial))
        elif seat.is_bot:
            self._later(self.config.bot_delay, lambda: self._bot_move(seat.seat_id, serial))
        return RollResult(die=die, legal=legal)

    def move(self, seat_id: str, token_index: int) -> MoveOutcome:
        """
        Move a token with the pending die.

        Clears the die and the lock, then either finishes the game, keeps
        the turn (a 6) or passes it to the next seat.
        """
        index, seat = self._require_seat(seat_id)
        self._require_status(SessionStatus.PLAYING)
        self.turns.check_move(index, seat.seat_id)

        die = self.turns.pending_die
        outcome = apply_move(self.board, seat.color, token_index, die, self.layout)
        self.board = outcome.board
        for change in outcome.describe():
            logger.debug("Session %s: %s", self.session_id, change)

        if win_check(self.board, seat.color):
            self.turns.clear_pending()
            self.status = SessionStatus.FINISHED
            self.winner = seat.color
            self.cancel_timers()
            logger.info("Session %s: %s wins", self.session_id, seat.color)
            self._emit(EventType.FINISHED, winner=seat.color)
            return outcome

        self.turns.advance(len(self.seats), extra_turn=is_extra_turn(die))
        self._emit_state()
        self._schedule_bot_turn()
        return outcome

    def apply(self, action: Action) -> ActionResult:
        """
        Apply an action record.

        Returns ActionResult with the handler's value or the rejection.
        """
        handler = self._get_handler(action.action_type)
        try:
            value = handler(action)
        except GameError as e:
            logger.debug("Session %s: %s rejected: %s",
                         self.session_id, action.action_type.value, e.code.value)
            return ActionResult.failure(e)
        if isinstance(value, MoveOutcome):
            return ActionResult.ok(value, changes=value.describe())
        return ActionResult.ok(value)

    def _get_handler(self, action_type: ActionType) -> Callable[[Action], Any]:
        handlers = {
            ActionType.JOIN: lambda a: self.join(a.name, a.connection_id),
            ActionType.START: lambda a: self.start(a.seat_id),
            ActionType.ROLL: lambda a: self.roll(a.seat_id),
            ActionType.MOVE: self._handle_move,
            ActionType.ADD_BOT: lambda a: self.add_bot(),
            ActionType.REMOVE_BOT: lambda a: self.remove_bot(),
            ActionType.LEAVE: lambda a: self.leave(a.seat_id),
        }
        return handlers[action_type]

    def _handle_move(self, action: Action) -> MoveOutcome:
        if action.token_index is None:
            raise GameError(ErrorCode.INVALID_MOVE, "Missing token index")
        return self.move(action.seat_id, action.token_index)

    # =========================================================================
    # Delayed actions
    # =========================================================================

    def _later(self, delay: float, callback: Callable[[], None]):
        handle = None

        def fire():
            self._timers.discard(handle)
            callback()

        handle = self.scheduler.call_later(delay, fire)
        self._timers.add(handle)

    def _schedule_bot_turn(self):
        seat = self.current_seat
        if (
            self.closed
            or self.status != SessionStatus.PLAYING
            or seat is None
            or not seat.is_bot
            or self.turns.pending_die is not None
        ):
            return
        serial = self.turns.serial
        self._later(self.config.bot_delay, lambda: self._bot_roll(seat.seat_id, serial))

    def _turn_still_valid(self, serial: int) -> bool:
        return (
            not self.closed
            and self.status == SessionStatus.PLAYING
            and self.turns.serial == serial
        )

    def _auto_pass(self, serial: int):
        if not self._turn_still_valid(serial):
            return
        if self.turns.pending_die is None or self.turns.is_locked:
            return
        seat = self.current_seat
        logger.debug("Session %s: %s has no move, passing", self.session_id, seat.color)
        self.turns.advance(len(self.seats))
        self._emit_state()
        self._schedule_bot_turn()

    def _bot_roll(self, seat_id: str, serial: int):
        if not self._turn_still_valid(serial):
            return
        seat = self.current_seat
        if seat is None or seat.seat_id != seat_id or not seat.is_bot:
            return
        if self.turns.pending_die is not None:
            return
        self.roll(seat_id)

    def _bot_move(self, seat_id: str, serial: int):
        if not self._turn_still_valid(serial):
            return
        if self.turns.awaiting_move != seat_id:
            return
        seat = self.current_seat
        decision = self.policy.select_move(
            seat.color, self.turns.pending_die, self.board, self.layout
        )
        if decision.token_index is None:
            # roll() only locks when a move exists, so a policy returning
            # nothing just forfeits the move
            logger.warning("Session %s: %s returned no move, passing",
                           self.session_id, self.policy.get_name())
            self.turns.advance(len(self.seats))
            self._emit_state()
            self._schedule_bot_turn()
            return
        logger.debug("Session %s: %s bot: %s", self.session_id, seat.color, decision.explanation)
        self.move(seat_id, decision.token_index)

    def cancel_timers(self):
        for timer in list(self._timers):
            timer.cancel()
        self._timers.clear()

    def close(self):
        """Mark the session dead. Pending timers become no-ops."""
        self.closed = True
        self.cancel_timers()

    # =========================================================================
    # Snapshots
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        """Full public state in wire shape."""
        return {
            "sessionId": self.session_id,
            "status": self.status.value,
            "seats": [seat.to_dict() for seat in self.seats],
            "tokensByColor": board_to_dict(self.board),
            "turnIndex": self.turns.turn_index,
            "pendingDie": self.turns.pending_die,
            "lastRollByColor": dict(self.last_rolls),
            "hostId": self.host_id,
            "winner": self.winner,
        }

    def _emit_state(self):
        self._emit(EventType.STATE)

    def _emit(self, event_type: EventType, winner: str | None = None):
        if self.listener is None:
            return
        self.listener(SessionEvent(
            event_type=event_type,
            session_id=self.session_id,
            snapshot=self.snapshot(),
            winner=winner,
        ))


class SessionRegistry:
    """
    Creates, finds and destroys sessions.

    Owned by whoever hosts the game server; one per process.
    No persistence - sessions are in-memory only.
    """

    def __init__(
        self,
        session_factory: Callable[[str], Session] | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self._sessions: dict[str, Session] = {}
        self._session_factory = session_factory or (lambda session_id: Session(session_id))
        self._new_id = id_factory or (lambda: uuid.uuid4().hex[:6])

    def get_or_create(self, session_id: str | None = None) -> Session:
        """
        Return the session for a known id.

        Unknown or missing ids get a new session under a fresh id.
        """
        if session_id and session_id in self._sessions:
            return self._sessions[session_id]

        new_id = self._new_id()
        while new_id in self._sessions:
            new_id = self._new_id()
        session = self._session_factory(new_id)
        self._sessions[new_id] = session
        logger.info("Session %s created", new_id)
        return session

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def destroy(self, session_id: str) -> bool:
        """Remove a session and silence its timers."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        logger.info("Session %s destroyed", session_id)
        return True

    def list_sessions(self) -> list[str]:
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
