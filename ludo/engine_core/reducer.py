"""
Reducer - Applies a token move to a board.

The reducer is the single point of board mutation.

Design principles:
- Pure function: (board, color, token, die) -> MoveOutcome with a new board
- Validates against the legal move set before applying
- Resolves captures on the shared ring
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .action_generator import legal_moves
from .board import BoardLayout
from .errors import ErrorCode, GameError
from .state import Base, Board, Home, OnTrack, TokenState


@dataclass(frozen=True)
class Capture:
    """An opposing token sent back to its yard."""
    color: str
    token_index: int
    step: int  # step the captured token had, relative to its own start


@dataclass
class MoveOutcome:
    """
    Result of applying a move.

    Contains the new board, the token's old and new state, any captures
    and whether the move finished the token.
    """
    board: Board
    color: str
    token_index: int
    die: int
    before: TokenState
    after: TokenState
    captures: list[Capture] = field(default_factory=list)

    @property
    def finished_token(self) -> bool:
        return isinstance(self.after, Home)

    def describe(self) -> list[str]:
        """Human-readable changes, for logs."""
        changes = [
            f"{self.color} token {self.token_index} moved "
            f"{self.before.kind} -> {self.after.kind}"
            + (f"({self.after.step})" if isinstance(self.after, OnTrack) else "")
        ]
        for capture in self.captures:
            changes.append(
                f"{self.color} captured {capture.color} token {capture.token_index}"
            )
        return changes


def destination(token: TokenState, die: int, layout: BoardLayout) -> TokenState:
    """State a token reaches when moved by die. Assumes the move is legal."""
    if isinstance(token, Base):
        return OnTrack(0)
    if isinstance(token, OnTrack):
        step = token.step + die
        if step == layout.max_step:
            return Home()
        return OnTrack(step)
    raise ValueError("Home tokens cannot move")


def resolve_captures(
    board: Board,
    color: str,
    landing: TokenState,
    layout: BoardLayout,
) -> tuple[Board, list[Capture]]:
    """
    Send opposing tokens on the landing cell back to Base.

    No capture happens in a lane, on Home, on a safe cell, or against the
    mover's own color.
    """
    if not isinstance(landing, OnTrack):
        return board, []

    cell = layout.absolute_cell(color, landing.step)
    if cell is None or layout.is_safe(cell):
        return board, []

    captures = []
    new_board = dict(board)
    for other_color, tokens in board.items():
        if other_color == color:
            continue
        new_tokens = list(tokens)
        for index, token in enumerate(tokens):
            if not isinstance(token, OnTrack):
                continue
            if layout.absolute_cell(other_color, token.step) == cell:
                new_tokens[index] = Base()
                captures.append(Capture(color=other_color, token_index=index, step=token.step))
        new_board[other_color] = tuple(new_tokens)

    return new_board, captures


def apply_move(
    board: Board,
    color: str,
    token_index: int,
    die: int,
    layout: BoardLayout,
) -> MoveOutcome:
    """
    Move one token of `color` by `die`.

    Raises GameError(INVALID_MOVE) if the token is not in the legal set.
    The input board is left untouched.
    """
    if token_index not in legal_moves(board, color, die, layout):
        raise GameError(
            ErrorCode.INVALID_MOVE,
            f"Token {token_index} of {color} cannot move {die}",
        )

    before = board[color][token_index]
    after = destination(before, die, layout)

    tokens = list(board[color])
    tokens[token_index] = after
    new_board = dict(board)
    new_board[color] = tuple(tokens)

    new_board, captures = resolve_captures(new_board, color, after, layout)

    return MoveOutcome(
        board=new_board,
        color=color,
        token_index=token_index,
        die=die,
        before=before,
        after=after,
        captures=captures,
    )


def win_check(board: Board, color: str) -> bool:
    """True exactly when every token of `color` is Home."""
    tokens = board.get(color, ())
    return bool(tokens) and all(isinstance(token, Home) for token in tokens)
