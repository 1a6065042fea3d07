"""
Legal Move Generator - Which tokens may move for a given die.

Rules:
- A Base token enters only on a 6, and only while fewer than
  BLOCKADE_SIZE tokens of its own color already sit on its start cell
- An OnTrack token moves only if it does not overshoot Home
- A Home token never moves
"""

from __future__ import annotations

from .board import BoardLayout, DIE_FACES
from .state import Base, Board, Home, OnTrack

BLOCKADE_SIZE = 2


def tokens_on_start(board: Board, color: str) -> int:
    """Count this color's tokens sitting on its own start cell (step 0)."""
    return sum(
        1 for token in board[color]
        if isinstance(token, OnTrack) and token.step == 0
    )


def legal_moves(board: Board, color: str, die: int, layout: BoardLayout) -> list[int]:
    """
    Return the indices of the tokens of `color` that may move by `die`.

    The result is sorted ascending; an empty list means the roll is a pass.
    """
    if not 1 <= die <= DIE_FACES:
        raise ValueError(f"Die value must be in 1..{DIE_FACES}, got {die}")

    tokens = board[color]
    start_blocked = tokens_on_start(board, color) >= BLOCKADE_SIZE
    movable = []

    for index, token in enumerate(tokens):
        if isinstance(token, Home):
            continue

        if isinstance(token, Base):
            if die == DIE_FACES and not start_blocked:
                movable.append(index)
            continue

        if token.step + die <= layout.max_step:
            movable.append(index)

    return movable

