"""
API Service - Glue between the transport and the session core.

The service:
1. Tracks connections and which seat each one holds
2. Validates inbound records and drops malformed ones
3. Routes actions to sessions through the registry
4. Fans session events out to the seated connections

This layer is framework-agnostic: a connection is just an id and a
non-blocking send callable. The FastAPI app plugs WebSockets into it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable
import logging
import uuid

from pydantic import ValidationError

from .schemas import (
    AddBotMessage,
    ErrorMessage,
    FinishedMessage,
    JoinedMessage,
    JoinMessage,
    MoveMessage,
    PingMessage,
    PongMessage,
    RemoveBotMessage,
    RollMessage,
    SeatView,
    SessionSnapshot,
    StartMessage,
    StateMessage,
    parse_inbound,
)
from ..bots import create_policy
from ..config import Settings
from ..engine_core.action import Action
from ..engine_core.errors import ErrorCode, GameError
from ..session import (
    AsyncioScheduler,
    EventType,
    Scheduler,
    Session,
    SessionEvent,
    SessionRegistry,
)

logger = logging.getLogger(__name__)

Sender = Callable[[dict[str, Any]], None]


@dataclass
class Connection:
    """A transport connection. The transport owns its lifetime."""
    connection_id: str
    send: Sender
    session_id: str | None = None
    seat_id: str | None = None

    @property
    def is_seated(self) -> bool:
        return self.session_id is not None and self.seat_id is not None


class GameService:
    """
    Main service for the game server.

    Usage:
        service = GameService()

        conn_id = service.connect(send=outbox.append)
        service.handle(conn_id, {"type": "join", "name": "Ada"})
        service.handle(conn_id, {"type": "roll"})
        service.disconnect(conn_id)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        scheduler: Scheduler | None = None,
        dice: Callable[[], int] | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self.settings = settings or Settings()
        self.session_config = self.settings.session_config()
        self.scheduler = scheduler or AsyncioScheduler()
        self.dice = dice
        self.registry = SessionRegistry(
            session_factory=self._create_session,
            id_factory=id_factory,
        )
        self._connections: dict[str, Connection] = {}

    def _create_session(self, session_id: str) -> Session:
        return Session(
            session_id,
            self.session_config,
            scheduler=self.scheduler,
            policy=create_policy(self.settings.bot_policy),
            dice=self.dice,
            listener=self._on_session_event,
        )

    # =========================================================================
    # Connections
    # =========================================================================

    def connect(self, send: Sender, connection_id: str | None = None) -> str:
        """Register a connection. Returns its id."""
        connection_id = connection_id or uuid.uuid4().hex[:12]
        self._connections[connection_id] = Connection(connection_id=connection_id, send=send)
        logger.debug("Connection %s opened", connection_id)
        return connection_id

    def disconnect(self, connection_id: str):
        """Connection closed: its seat leaves its session."""
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return
        logger.debug("Connection %s closed", connection_id)
        self._leave_seat(conn)

    def get_connection(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def _leave_seat(self, conn: Connection):
        if not conn.is_seated:
            return
        session_id, seat_id = conn.session_id, conn.seat_id
        conn.session_id = None
        conn.seat_id = None

        session = self.registry.get(session_id)
        if session is None:
            return
        if session.get_seat(seat_id) is not None:
            session.leave(seat_id)
        # bots never keep a session alive on their own
        if not session.has_humans:
            self.registry.destroy(session_id)

    # =========================================================================
    # Inbound
    # =========================================================================

    def handle(self, connection_id: str, data: Any):
        """
        Process one decoded inbound record from a connection.

        Malformed records are logged and dropped. Rejected actions are
        answered with an error message to the sender only.
        """
        conn = self._connections.get(connection_id)
        if conn is None:
            logger.debug("Record from unknown connection %s dropped", connection_id)
            return

        try:
            message = parse_inbound(data)
        except ValidationError as e:
            logger.debug("Malformed record from %s dropped: %s", connection_id, e.errors())
            return

        try:
            if isinstance(message, PingMessage):
                conn.send(PongMessage().to_wire())
            elif isinstance(message, JoinMessage):
                self._handle_join(conn, message)
            else:
                self._handle_seat_action(conn, message)
        except GameError as e:
            logger.debug("Connection %s: %s rejected: %s",
                         connection_id, message.type, e.code.value)
            self._send_error(conn, e)

    def _handle_join(self, conn: Connection, message: JoinMessage):
        if conn.is_seated:
            self._leave_seat(conn)

        session = self.registry.get_or_create(message.room_id)
        try:
            seat = session.join(message.name, connection_id=conn.connection_id)
        except GameError:
            if not session.has_humans:
                self.registry.destroy(session.session_id)
            raise

        conn.session_id = session.session_id
        conn.seat_id = seat.seat_id
        conn.send(JoinedMessage(
            you=SeatView.model_validate(seat.to_dict()),
            snapshot=SessionSnapshot.model_validate(session.snapshot()),
        ).to_wire())

    def _handle_seat_action(self, conn: Connection, message):
        session = self._session_for(conn)
        seat_id = conn.seat_id

        if isinstance(message, RollMessage):
            action = Action.roll(seat_id)
        elif isinstance(message, MoveMessage):
            action = Action.move(seat_id, message.token_index)
        elif isinstance(message, StartMessage):
            action = Action.start(seat_id)
        elif isinstance(message, AddBotMessage):
            action = Action.add_bot(seat_id)
        elif isinstance(message, RemoveBotMessage):
            action = Action.remove_bot(seat_id)
        else:
            raise ValueError(f"Unhandled message type: {message.type}")

        result = session.apply(action)
        if not result.success:
            raise GameError(result.error_code, result.error)

    def _session_for(self, conn: Connection) -> Session:
        if not conn.is_seated:
            raise GameError(ErrorCode.STALE_REQUEST, "Join a room first")
        session = self.registry.get(conn.session_id)
        if session is None or session.get_seat(conn.seat_id) is None:
            conn.session_id = None
            conn.seat_id = None
            raise GameError(ErrorCode.STALE_REQUEST, "Session no longer exists")
        return session

    # =========================================================================
    # Outbound
    # =========================================================================

    def _on_session_event(self, event: SessionEvent):
        snapshot = SessionSnapshot.model_validate(event.snapshot)
        if event.event_type == EventType.FINISHED:
            payload = FinishedMessage(winner=event.winner, snapshot=snapshot).to_wire()
        else:
            payload = StateMessage(snapshot=snapshot).to_wire()
        self.broadcast(event.session_id, payload)

    def broadcast(self, session_id: str, payload: dict[str, Any]):
        """Send a message to every connection seated in a session."""
        for conn in list(self._connections.values()):
            if conn.session_id == session_id:
                conn.send(payload)

    def _send_error(self, conn: Connection, error: GameError):
        conn.send(ErrorMessage(reason=error.code, message=error.message).to_wire())

    # =========================================================================
    # Queries
    # =========================================================================

    def get_snapshot(self, session_id: str) -> dict[str, Any] | None:
        session = self.registry.get(session_id)
        if session is None:
            return None
        return SessionSnapshot.model_validate(session.snapshot()).model_dump(
            mode="json", by_alias=True
        )

    def list_sessions(self) -> list[str]:
        return self.registry.list_sessions()

    def shutdown(self):
        """Close every session; used on app shutdown."""
        for session_id in self.registry.list_sessions():
            self.registry.destroy(session_id)
