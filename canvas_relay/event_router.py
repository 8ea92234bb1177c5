"""
Inbound event routing: rate limiting, validation, isolation and fan-out
"""

from typing import Any, Callable, Dict, Optional
from .models import ClearCanvas, DrawingPayload
from .validators import (
    parse_begin_path,
    parse_draw_line,
    parse_config_change,
    parse_draw_shape,
    parse_join_request
)
from .constants import DEFAULT_ROOM, ERROR_MESSAGES
from .rate_limiter import RateLimiter
from .room_registry import RoomRegistry
from .session import ConnectionSession
from .transport import Transport
from .logger import get_logger, log_room_event

logger = get_logger()

DRAWING_PARSERS: Dict[str, Callable[[Any], Optional[DrawingPayload]]] = {
    "beginPath": parse_begin_path,
    "drawLine": parse_draw_line,
    "drawShape": parse_draw_shape,
    "changeConfig": parse_config_change,
    "clearCanvas": lambda data: ClearCanvas(),
}


class EventRouter:
    """
    Owns every connection session and handles their events

    All handlers run to completion without awaiting, so no two handlers
    interleave and the registry, limiter and session map need no locking.
    """

    def __init__(self, registry: RoomRegistry, rate_limiter: RateLimiter, transport: Transport):
        self.registry = registry
        self.rate_limiter = rate_limiter
        self.transport = transport
        # connection_id -> ConnectionSession
        self._sessions: Dict[str, ConnectionSession] = {}

        self._room_handlers = {
            "joinRoom": self._handle_join_room,
            "leaveRoom": self._handle_leave_room,
            "getRooms": self._handle_get_rooms,
        }

    def bind(self, transport: Optional[Transport] = None):
        """Register this router's hooks on the transport"""
        transport = transport or self.transport
        transport.on_connect(self.connect)
        transport.on_event(self.handle_event)
        transport.on_disconnect(self.disconnect)

    def session(self, connection_id: str) -> Optional[ConnectionSession]:
        return self._sessions.get(connection_id)

    def connect(self, connection_id: str):
        """New connections start in their own private room"""
        session = ConnectionSession(connection_id, self.registry, self.transport)
        self._sessions[connection_id] = session
        logger.info(f"Client connected: {connection_id}")
        session.join(DEFAULT_ROOM)

    def disconnect(self, connection_id: str):
        """
        Clean up a connection exactly once

        A second call, or any event arriving afterwards, finds no session
        and is ignored.
        """
        session = self._sessions.pop(connection_id, None)
        if session is None:
            return

        try:
            session.leave()
        finally:
            self.rate_limiter.forget(connection_id)
            logger.info(f"Client disconnected: {connection_id}")

    def handle_event(self, connection_id: str, event: str, data: Any = None):
        """
        Handle one inbound event

        Args:
            connection_id: Sender connection id
            event: Event name
            data: Raw event payload
        """
        session = self._sessions.get(connection_id)
        if session is None:
            logger.debug(f"Event {event} for unknown connection {connection_id} dropped")
            return

        if event in DRAWING_PARSERS:
            try:
                self._handle_drawing(session, event, data)
            except Exception as e:
                logger.error(f"Error in {event} for {connection_id}: {e}")
            return

        handler = self._room_handlers.get(event)
        if handler is None:
            logger.debug(f"Unknown event {event!r} from {connection_id} ignored")
            return

        handler(session, data)

    def _admit(self, session: ConnectionSession) -> bool:
        if self.rate_limiter.admit(session.connection_id):
            return True
        self.transport.send(session.connection_id, "error", {"message": ERROR_MESSAGES["rate_limit"]})
        return False

    def _handle_drawing(self, session: ConnectionSession, event: str, data: Any):
        if not self._admit(session):
            return

        payload = DRAWING_PARSERS[event](data)
        if payload is None:
            return

        # Private rooms never fan out; membership already guarantees this
        if not session.is_bound or session.is_private:
            return

        self.transport.broadcast_to_group(session.actual_room, session.connection_id, event, payload.to_dict())

    def _handle_join_room(self, session: ConnectionSession, data: Any):
        if not self._admit(session):
            return

        try:
            room_id, create = parse_join_request(data)

            if not create and room_id != DEFAULT_ROOM and not self.registry.has_room(room_id):
                log_room_event(session.connection_id, "rejected", room_id, "room does not exist")
                self.transport.send(session.connection_id, "roomError", {
                    "message": ERROR_MESSAGES["room_not_found"].format(room_id=room_id)
                })
                return

            session.join(room_id)

        except Exception as e:
            logger.error(f"Error in joinRoom for {session.connection_id}: {e}")
            self.transport.send(session.connection_id, "roomError", {"message": ERROR_MESSAGES["join_failed"]})

    def _handle_leave_room(self, session: ConnectionSession, data: Any):
        try:
            if session.is_bound:
                session.leave()
                session.join(DEFAULT_ROOM)

        except Exception as e:
            logger.error(f"Error in leaveRoom for {session.connection_id}: {e}")
            self.transport.send(session.connection_id, "roomError", {"message": ERROR_MESSAGES["leave_failed"]})

    def _handle_get_rooms(self, session: ConnectionSession, data: Any):
        try:
            rooms = [room.to_dict() for room in self.registry.list_public_rooms()]
        except Exception as e:
            logger.error(f"Error in getRooms for {session.connection_id}: {e}")
            rooms = []

        self.transport.send(session.connection_id, "roomsList", {"rooms": rooms})

    def stats(self) -> Dict[str, int]:
        """
        Get router statistics

        Returns:
            Dictionary with session, room and rate limiter counts
        """
        return {
            "sessions": len(self._sessions),
            "rate_limited_connections": len(self.rate_limiter),
            **self.registry.stats()
        }

    def __len__(self) -> int:
        return len(self._sessions)
