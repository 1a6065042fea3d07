"""
Ludo Arena - Multiplayer token-race board game server.

Runs 2-4 colored seats per session, each controlled by a human over a
WebSocket or by a bot policy. The package provides:
- Board layouts and the token state model
- Pure rule functions (legal moves, move application, capture, win check)
- Turn sequencing with an awaiting-move lock
- Bot policies for automated seats
- A FastAPI transport
"""

__version__ = "0.1.0"
