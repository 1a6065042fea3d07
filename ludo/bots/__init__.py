"""
Bots module - Automated seat players.

Provides:
- BotPolicy: Interface for bot decision-making
- GreedyPolicy: Default heuristic (release, finish, advance furthest)
- RandomPolicy / FirstLegalPolicy: Baselines for testing
"""

from .policy import (
    BotPolicy,
    BotDecision,
    GreedyPolicy,
    RandomPolicy,
    FirstLegalPolicy,
    POLICIES,
    create_policy,
)

__all__ = [
    "BotPolicy",
    "BotDecision",
    "GreedyPolicy",
    "RandomPolicy",
    "FirstLegalPolicy",
    "POLICIES",
    "create_policy",
]
