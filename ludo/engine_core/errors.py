"""
Error taxonomy for rejected game actions.

Every GameError is recoverable: it is raised before any state is touched and
is reported only to the sender of the offending action.
"""

from __future__ import annotations
from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable rejection reasons, sent verbatim on the wire."""
    ROOM_FULL = "RoomFull"
    NOT_YOUR_TURN = "NotYourTurn"
    ALREADY_ROLLED = "AlreadyRolled"
    INVALID_MOVE = "InvalidMove"
    STALE_REQUEST = "StaleRequest"
    NOT_HOST = "NotHost"
    WRONG_PHASE = "WrongPhase"


class GameError(Exception):
    """An action was rejected by the rules or the turn lock."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or code.value
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"GameError({self.code.value}, {self.message!r})"
