"""
API Module - Network interface.

Exposes the game over a WebSocket for browser clients:
1. A client joins a room (created on demand)
2. Seats roll and move on their turn
3. Every change is pushed to all seats as a snapshot
4. Rejections go back to the sender only

All state is session-scoped. No user accounts.
"""

from .schemas import (
    # Inbound
    JoinMessage,
    StartMessage,
    RollMessage,
    MoveMessage,
    AddBotMessage,
    RemoveBotMessage,
    PingMessage,
    parse_inbound,
    # Outbound
    JoinedMessage,
    StateMessage,
    FinishedMessage,
    ErrorMessage,
    PongMessage,
    # Shared
    SessionSnapshot,
    SeatView,
    TokenView,
)
from .service import GameService, Connection
from .app import create_app

__all__ = [
    # Inbound
    "JoinMessage",
    "StartMessage",
    "RollMessage",
    "MoveMessage",
    "AddBotMessage",
    "RemoveBotMessage",
    "PingMessage",
    "parse_inbound",
    # Outbound
    "JoinedMessage",
    "StateMessage",
    "FinishedMessage",
    "ErrorMessage",
    "PongMessage",
    # Shared
    "SessionSnapshot",
    "SeatView",
    "TokenView",
    # Service
    "GameService",
    "Connection",
    "create_app",
]
