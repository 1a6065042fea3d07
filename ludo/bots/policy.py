"""
Bot Policy - Interface for bot decision-making.

A BotPolicy looks at the board after a roll and picks one token to move.
Policies are pure: they never touch the session, they only read the board.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
import random

from ..engine_core.action_generator import legal_moves
from ..engine_core.board import BoardLayout, DIE_FACES
from ..engine_core.reducer import destination
from ..engine_core.state import Base, Board, Home, token_step


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    token_index is None when no token can move (the turn passes).
    """
    token_index: int | None
    explanation: str = ""
    considered: int = 0


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    Implementations range from deterministic heuristics to random play.
    """

    @abstractmethod
    def select_move(
        self,
        color: str,
        die: int,
        board: Board,
        layout: BoardLayout,
    ) -> BotDecision:
        """
        Select a token to move.

        Args:
            color: The bot's color
            die: The pending die value
            board: Current board
            layout: Board geometry

        Returns:
            BotDecision with the chosen token index, or None to pass
        """
        pass

    def decide(self, color: str, die: int, board: Board, layout: BoardLayout) -> int | None:
        """Shortcut returning only the token index."""
        return self.select_move(color, die, board, layout).token_index

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class GreedyPolicy(BotPolicy):
    """
    Default bot.

    Order of preference:
    1. On a 6, release a token from Base
    2. Finish a token (land exactly on Home)
    3. Advance the legal token that is furthest along
    Ties go to the lowest token index.
    """

    def select_move(
        self,
        color: str,
        die: int,
        board: Board,
        layout: BoardLayout,
    ) -> BotDecision:
        legal = legal_moves(board, color, die, layout)
        if not legal:
            return BotDecision(token_index=None, explanation="No legal move")

        tokens = board[color]

        if die == DIE_FACES:
            for index in legal:
                if isinstance(tokens[index], Base):
                    return BotDecision(
                        token_index=index,
                        explanation="Release token from base",
                        considered=len(legal),
                    )

        for index in legal:
            if isinstance(destination(tokens[index], die, layout), Home):
                return BotDecision(
                    token_index=index,
                    explanation="Finish token",
                    considered=len(legal),
                )

        # max() keeps the first of equal keys, and legal is ascending
        best = max(legal, key=lambda index: token_step(tokens[index], layout))
        return BotDecision(
            token_index=best,
            explanation="Advance furthest token",
            considered=len(legal),
        )


class RandomPolicy(BotPolicy):
    """
    Random policy - picks a legal token uniformly at random.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_move(
        self,
        color: str,
        die: int,
        board: Board,
        layout: BoardLayout,
    ) -> BotDecision:
        legal = legal_moves(board, color, die, layout)
        if not legal:
            return BotDecision(token_index=None, explanation="No legal move")

        return BotDecision(
            token_index=self.rng.choice(legal),
            explanation="Selected randomly",
            considered=len(legal),
        )


class FirstLegalPolicy(BotPolicy):
    """
    First-legal policy - always moves the lowest legal token index.

    Used for deterministic testing.
    """

    def select_move(
        self,
        color: str,
        die: int,
        board: Board,
        layout: BoardLayout,
    ) -> BotDecision:
        legal = legal_moves(board, color, die, layout)
        if not legal:
            return BotDecision(token_index=None, explanation="No legal move")

        return BotDecision(
            token_index=legal[0],
            explanation="Selected first legal move",
            considered=1,
        )


POLICIES = {
    "greedy": GreedyPolicy,
    "first": FirstLegalPolicy,
    "random": RandomPolicy,
}


def create_policy(name: str, seed: int | None = None) -> BotPolicy:
    """Build a policy by its configuration name."""
    if name not in POLICIES:
        raise ValueError(f"Unknown bot policy '{name}'. Supported: {sorted(POLICIES)}")
    if name == "random":
        return RandomPolicy(seed=seed)
    return POLICIES[name]()
