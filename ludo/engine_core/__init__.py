"""
Engine Core - Deterministic board state and rule evaluation.

The engine is the pure part of the game:
1. Describes the board layout
2. Models token states
3. Generates legal moves for a die
4. Applies moves via the reducer (captures included)
5. Detects wins
"""

from .board import BoardLayout, CLASSIC, TRIO, LAYOUTS, get_layout
from .state import (
    Base,
    OnTrack,
    Home,
    TokenState,
    Board,
    Seat,
    SessionStatus,
    fresh_tokens,
)
from .errors import ErrorCode, GameError
from .action import Action, ActionType, ActionResult
from .action_generator import legal_moves
from .reducer import Capture, MoveOutcome, apply_move, win_check

__all__ = [
    "BoardLayout",
    "CLASSIC",
    "TRIO",
    "LAYOUTS",
    "get_layout",
    "Base",
    "OnTrack",
    "Home",
    "TokenState",
    "Board",
    "Seat",
    "SessionStatus",
    "fresh_tokens",
    "ErrorCode",
    "GameError",
    "Action",
    "ActionType",
    "ActionResult",
    "legal_moves",
    "Capture",
    "MoveOutcome",
    "apply_move",
    "win_check",
]
