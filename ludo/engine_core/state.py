"""
Game State - Token variant, seats and board containers.

Design principles:
- Tokens are a closed tagged variant: Base | OnTrack(step) | Home
- Token states are frozen; moves build new boards instead of mutating
- Serializable: every container renders to the wire snapshot shape
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from .board import BoardLayout


class SessionStatus(Enum):
    """Lifecycle of a session. FINISHED is terminal."""
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


@dataclass(frozen=True)
class Base:
    """Token still in its yard, not yet entered on the track."""
    kind: ClassVar[str] = "base"

    def to_dict(self) -> dict:
        return {"state": self.kind}


@dataclass(frozen=True)
class OnTrack:
    """Token on the ring or in the private lane, counted from its own start."""
    step: int
    kind: ClassVar[str] = "onTrack"

    def __post_init__(self):
        if self.step < 0:
            raise ValueError(f"Track step must be non-negative, got {self.step}")

    def to_dict(self) -> dict:
        return {"state": self.kind, "step": self.step}


@dataclass(frozen=True)
class Home:
    """Finished token. Never movable again."""
    kind: ClassVar[str] = "home"

    def to_dict(self) -> dict:
        return {"state": self.kind}


TokenState = Union[Base, OnTrack, Home]

# Board: color -> that color's tokens, indexed 0..3
Board = dict[str, tuple[TokenState, ...]]


def fresh_tokens(layout: BoardLayout) -> tuple[TokenState, ...]:
    """All tokens of one color in the yard."""
    return tuple(Base() for _ in range(layout.tokens_per_color))


def token_step(token: TokenState, layout: BoardLayout) -> int:
    """
    Progress of a token as a single number.

    Base counts as -1 and Home as max_step, so tokens can be ranked.
    """
    if isinstance(token, OnTrack):
        return token.step
    if isinstance(token, Home):
        return layout.max_step
    return -1


@dataclass
class Seat:
    """
    A session slot bound to one color.

    connection_id is a lookup key owned by the transport; the session never
    holds the connection itself. Bots have no connection.
    """
    seat_id: str
    name: str
    color: str
    is_bot: bool = False
    connection_id: str | None = None

    @property
    def is_human(self) -> bool:
        return not self.is_bot

    def to_dict(self) -> dict:
        return {
            "id": self.seat_id,
            "name": self.name,
            "color": self.color,
            "isBot": self.is_bot,
        }


def board_to_dict(board: Board) -> dict[str, list[dict]]:
    """Render a board as {color: [{state, step?}, ...]}."""
    return {
        color: [token.to_dict() for token in tokens]
        for color, tokens in board.items()
    }
