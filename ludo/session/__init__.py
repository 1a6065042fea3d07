"""
Session Module - Manages live game sessions.

A session is one game instance:
- Created when the first player references an unknown session
- Holds seats, board, turn state and the awaiting-move lock
- Drives bot seats and auto-passes on timers
- Destroyed when its last seat leaves

Sessions are EPHEMERAL:
- No persistence to database
- Process-scoped, owned by a SessionRegistry
"""

from .manager import (
    SessionRegistry,
    Session,
    SessionConfig,
    SessionEvent,
    EventType,
    RollResult,
)
from .scheduler import Scheduler, AsyncioScheduler, ManualScheduler
from .turns import TurnSequencer

__all__ = [
    "SessionRegistry",
    "Session",
    "SessionConfig",
    "SessionEvent",
    "EventType",
    "RollResult",
    "Scheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "TurnSequencer",
]
