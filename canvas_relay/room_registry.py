"""
Authoritative room membership registry
"""

from typing import Dict, List, Set, Optional
from .models import RoomInfo
from .constants import DEFAULT_ROOM, PRIVATE_ROOM_PREFIX
from .logger import get_logger

logger = get_logger()


def private_room_id(connection_id: str) -> str:
    """
    Underlying broadcast group for a connection's private workspace

    Every "default" user gets a group of their own, so no other connection
    can ever be a member of it.
    """
    return f"{PRIVATE_ROOM_PREFIX}{connection_id}"


def is_private_room(room_id: Optional[str]) -> bool:
    if not room_id:
        return False
    return room_id == DEFAULT_ROOM or room_id.startswith(PRIVATE_ROOM_PREFIX)


class RoomRegistry:
    """
    Map from room identifier to member connection ids

    Rooms are created on first membership and deleted as soon as their last
    member leaves; the registry never holds an empty room once a membership
    change completes. All operations are total, absent rooms behave as empty.
    """

    def __init__(self):
        # room_id -> {connection_id}
        self._rooms: Dict[str, Set[str]] = {}

    def ensure(self, room_id: str) -> Set[str]:
        """Create an empty room if absent and return its member set"""
        members = self._rooms.get(room_id)
        if members is None:
            members = set()
            self._rooms[room_id] = members
            logger.debug(f"Room created: {room_id}")
        return members

    def add_member(self, room_id: str, connection_id: str) -> int:
        """
        Add a connection to a room, creating the room if needed

        Args:
            room_id: Actual room identifier
            connection_id: Connection identifier

        Returns:
            Member count after the addition
        """
        members = self.ensure(room_id)
        members.add(connection_id)
        return len(members)

    def remove_member(self, room_id: str, connection_id: str) -> Optional[int]:
        """
        Remove a connection from a room, deleting the room when it empties

        Args:
            room_id: Actual room identifier
            connection_id: Connection identifier

        Returns:
            Member count after removal (0 if the room was deleted),
            or None if the room did not exist
        """
        members = self._rooms.get(room_id)
        if members is None:
            return None

        members.discard(connection_id)

        if not members:
            del self._rooms[room_id]
            logger.info(f"Room deleted: {room_id} (empty)")
            return 0

        return len(members)

    def member_count(self, room_id: str) -> int:
        return len(self._rooms.get(room_id, ()))

    def has_room(self, room_id: str) -> bool:
        return room_id in self._rooms

    def members(self, room_id: str) -> Set[str]:
        """Snapshot of a room's members"""
        return set(self._rooms.get(room_id, ()))

    def list_public_rooms(self) -> List[RoomInfo]:
        """
        List collaborative rooms with their member counts

        Any identifier starting with "default" is left out, which covers
        every private room as well as the bare "default" name.

        Returns:
            RoomInfo objects ordered by room id
        """
        return [
            RoomInfo(id=room_id, user_count=len(members))
            for room_id, members in sorted(self._rooms.items())
            if members and not room_id.startswith(DEFAULT_ROOM)
        ]

    def stats(self) -> Dict[str, int]:
        """
        Get overall room statistics

        Returns:
            Dictionary with room and membership totals
        """
        private_rooms = sum(1 for room_id in self._rooms if is_private_room(room_id))
        return {
            "total_rooms": len(self._rooms),
            "private_rooms": private_rooms,
            "public_rooms": len(self._rooms) - private_rooms,
            "total_members": sum(len(members) for members in self._rooms.values())
        }

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
