"""
Pydantic Schemas for API - Wire contract between clients and the server.

Inbound records arrive as JSON objects over the WebSocket, tagged by "type":
    join{roomId?, name?}  start  roll  move{tokenIndex}  addBot  removeBot  ping

Outbound messages:
    joined{you, snapshot}      to the joining connection only
    state{snapshot}            to every seat after each change
    finished{winner, snapshot} to every seat when a color wins
    error{reason, message}     to the offending connection only
    pong                       reply to ping

Field names are camelCase on the wire and snake_case in Python.

Error Codes:
- RoomFull: seating at capacity, no free color, or game in progress
- NotYourTurn: sender is not the current seat or does not hold the lock
- AlreadyRolled: roll while a die is pending
- InvalidMove: token index not in the current legal set
- StaleRequest: the session or seat no longer exists
- NotHost: start requested by a seat that is not the host
- WrongPhase: action not allowed in the current session status
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from ..engine_core.errors import ErrorCode


WIRE_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class TokenStateName(str, Enum):
    BASE = "base"
    ON_TRACK = "onTrack"
    HOME = "home"


# =============================================================================
# Inbound Messages
# =============================================================================

class InboundMessage(BaseModel):
    model_config = {**WIRE_CONFIG, "extra": "ignore"}


class JoinMessage(InboundMessage):
    """Join a room, or create one when room_id is missing or unknown."""
    type: Literal["join"]
    room_id: Optional[str] = Field(None, max_length=64)
    name: Optional[str] = Field(None, max_length=32)


class StartMessage(InboundMessage):
    """Host starts the game before every seat is filled."""
    type: Literal["start"]


class RollMessage(InboundMessage):
    type: Literal["roll"]


class MoveMessage(InboundMessage):
    type: Literal["move"]
    token_index: int = Field(..., ge=0)


class AddBotMessage(InboundMessage):
    type: Literal["addBot"]


class RemoveBotMessage(InboundMessage):
    type: Literal["removeBot"]


class PingMessage(InboundMessage):
    type: Literal["ping"]


AnyInboundMessage = Annotated[
    Union[
        JoinMessage,
        StartMessage,
        RollMessage,
        MoveMessage,
        AddBotMessage,
        RemoveBotMessage,
        PingMessage,
    ],
    Field(discriminator="type"),
]

inbound_adapter = TypeAdapter(AnyInboundMessage)


def parse_inbound(data: Any) -> AnyInboundMessage:
    """Validate a decoded JSON record. Raises pydantic.ValidationError."""
    return inbound_adapter.validate_python(data)


# =============================================================================
# Snapshot Models
# =============================================================================

class TokenView(BaseModel):
    """One token: its state tag and, on the track, its step."""
    state: TokenStateName
    step: Optional[int] = None

    model_config = WIRE_CONFIG


class SeatView(BaseModel):
    """A seated player."""
    id: str
    name: str
    color: str
    is_bot: bool = False

    model_config = WIRE_CONFIG


class SessionSnapshot(BaseModel):
    """Full public state of a session."""
    session_id: str
    status: SessionStatus
    seats: list[SeatView] = Field(default_factory=list)
    tokens_by_color: dict[str, list[TokenView]] = Field(default_factory=dict)
    turn_index: int = 0
    pending_die: Optional[int] = Field(None, ge=1, le=6)
    last_roll_by_color: dict[str, int] = Field(default_factory=dict)
    host_id: Optional[str] = None
    winner: Optional[str] = None

    model_config = WIRE_CONFIG


# =============================================================================
# Outbound Messages
# =============================================================================

class OutboundMessage(BaseModel):
    model_config = WIRE_CONFIG

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class JoinedMessage(OutboundMessage):
    type: Literal["joined"] = "joined"
    you: SeatView
    snapshot: SessionSnapshot


class StateMessage(OutboundMessage):
    type: Literal["state"] = "state"
    snapshot: SessionSnapshot


class FinishedMessage(OutboundMessage):
    type: Literal["finished"] = "finished"
    winner: str
    snapshot: SessionSnapshot


class ErrorMessage(OutboundMessage):
    type: Literal["error"] = "error"
    reason: ErrorCode
    message: str = ""


class PongMessage(OutboundMessage):
    type: Literal["pong"] = "pong"


# =============================================================================
# HTTP Responses
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard HTTP error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    api_version: str = Field("v1", description="API version")


class SessionListResponse(BaseModel):
    """Response listing live sessions."""
    sessions: list[str]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    sessions: int = 0
