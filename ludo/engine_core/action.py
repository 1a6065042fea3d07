"""
Action System - Actions and results.

Actions represent the inbound requests a seat can make:
1. Lobby actions (join, start, add/remove bot)
2. Turn actions (roll, move)
3. Connection loss (leave)

All session changes requested from outside flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import ErrorCode, GameError


class ActionType(Enum):
    """Types of actions a session accepts."""
    JOIN = "join"
    START = "start"
    ROLL = "roll"
    MOVE = "move"
    ADD_BOT = "addBot"
    REMOVE_BOT = "removeBot"
    LEAVE = "leave"


@dataclass
class Action:
    """
    A request addressed to one session.

    seat_id identifies the acting seat for everything except JOIN, which
    creates the seat and is keyed by the transport's connection id instead.
    """
    action_type: ActionType
    seat_id: str | None = None
    connection_id: str | None = None
    name: str | None = None
    token_index: int | None = None

    @classmethod
    def join(cls, name: str | None = None, connection_id: str | None = None) -> Action:
        return cls(action_type=ActionType.JOIN, name=name, connection_id=connection_id)

    @classmethod
    def start(cls, seat_id: str) -> Action:
        return cls(action_type=ActionType.START, seat_id=seat_id)

    @classmethod
    def roll(cls, seat_id: str) -> Action:
        return cls(action_type=ActionType.ROLL, seat_id=seat_id)

    @classmethod
    def move(cls, seat_id: str, token_index: int) -> Action:
        return cls(action_type=ActionType.MOVE, seat_id=seat_id, token_index=token_index)

    @classmethod
    def add_bot(cls, seat_id: str | None = None) -> Action:
        return cls(action_type=ActionType.ADD_BOT, seat_id=seat_id)

    @classmethod
    def remove_bot(cls, seat_id: str | None = None) -> Action:
        return cls(action_type=ActionType.REMOVE_BOT, seat_id=seat_id)

    @classmethod
    def leave(cls, seat_id: str) -> Action:
        return cls(action_type=ActionType.LEAVE, seat_id=seat_id)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    On success, value carries the handler's return (the new Seat for a join,
    the die for a roll, the MoveOutcome for a move). On failure, error_code
    and error say why.
    """
    success: bool
    value: Any | None = None
    error: str | None = None
    error_code: ErrorCode | None = None
    changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: GameError) -> ActionResult:
        """Create a failure result from a rejected action."""
        return cls(success=False, error=error.message, error_code=error.code)

    @classmethod
    def ok(cls, value: Any = None, changes: list[str] | None = None) -> ActionResult:
        return cls(success=True, value=value, changes=changes or [])
