"""
Per-connection room binding and the join/leave protocol
"""

from typing import Optional
from .constants import DEFAULT_ROOM
from .room_registry import RoomRegistry, private_room_id, is_private_room
from .transport import Transport
from .logger import get_logger, log_room_event

logger = get_logger()


class ConnectionSession:
    """
    Room state for one connection

    ``display_room`` is what the client sees ("default" in private mode);
    ``actual_room`` is the broadcast group the transport uses. Both are None
    while the connection is unbound.
    """

    def __init__(self, connection_id: str, registry: RoomRegistry, transport: Transport):
        self.connection_id = connection_id
        self.actual_room: Optional[str] = None
        self.display_room: Optional[str] = None
        self._registry = registry
        self._transport = transport

    @property
    def is_bound(self) -> bool:
        return self.actual_room is not None

    @property
    def is_private(self) -> bool:
        return self.display_room == DEFAULT_ROOM or is_private_room(self.actual_room)

    def join(self, display_room_id: str) -> str:
        """
        Bind this connection to a room, leaving the current one if different

        Args:
            display_room_id: Sanitized room id as requested by the client

        Returns:
            The actual room id joined
        """
        if self.is_bound and self.display_room != display_room_id:
            self.leave()

        if display_room_id == DEFAULT_ROOM:
            actual_room_id = private_room_id(self.connection_id)
        else:
            actual_room_id = display_room_id

        self._transport.leave_all_groups(self.connection_id)
        self._transport.join_group(self.connection_id, actual_room_id)
        member_count = self._registry.add_member(actual_room_id, self.connection_id)

        self.actual_room = actual_room_id
        self.display_room = display_room_id

        # Private rooms always report a single user
        user_count = 1 if self.is_private else member_count

        self._transport.send(self.connection_id, "roomJoined", {
            "roomId": display_room_id,
            "userCount": user_count
        })

        if not self.is_private:
            self._transport.broadcast_to_group(actual_room_id, self.connection_id, "userJoined", {
                "userCount": user_count
            })

        log_room_event(
            self.connection_id, "join", actual_room_id,
            f"display={display_room_id} users={user_count} total_rooms={len(self._registry)}"
        )
        return actual_room_id

    def leave(self):
        """Release the current room binding; remaining members of a collaborative room are notified"""
        if not self.is_bound:
            return

        room_id = self.actual_room
        remaining = self._registry.remove_member(room_id, self.connection_id)

        if remaining and not is_private_room(room_id):
            self._transport.broadcast_to_group(room_id, self.connection_id, "userLeft", {
                "userCount": remaining
            })

        self._transport.leave_all_groups(self.connection_id)
        self.actual_room = None
        self.display_room = None

        log_room_event(self.connection_id, "leave", room_id, f"remaining={remaining or 0}")
