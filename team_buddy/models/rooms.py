"""
Room membership bookkeeping for the room channel.

This module provides the RoomRegistry class which tracks which connected
clients have joined which rooms. Rooms are created on first join and removed
as soon as their last member leaves, and the number of rooms tracked at once
is capped so the registry cannot grow without bound.
"""

from typing import Dict, Optional, Set

from team_buddy.config.constants import DEFAULT_MAX_ROOMS
from team_buddy.errors import RoomCapacityExceeded


class RoomRegistry:
    """
    Keyed store of room memberships.

    Each client is a member of at most one room; joining another room moves
    the client out of the previous one.
    """

    def __init__(self, max_rooms: int = DEFAULT_MAX_ROOMS):
        """Initialize an empty registry holding at most ``max_rooms`` rooms."""
        self.max_rooms = max_rooms
        self.rooms: Dict[str, Set[str]] = {}
        self.client_rooms: Dict[str, str] = {}

    def join(self, room_id: str, client_id: str) -> None:
        """
        Add a client to a room, creating the room if needed.

        Args:
            room_id: Identifier of the room to join
            client_id: Identifier of the connected client

        Raises:
            RoomCapacityExceeded: If the room is new and the registry is full
        """
        current = self.client_rooms.get(client_id)
        if current == room_id:
            return

        if room_id not in self.rooms:
            # A client moving out of a room it occupies alone frees that slot
            freed = current is not None and self.rooms.get(current) == {client_id}
            if len(self.rooms) - int(freed) >= self.max_rooms:
                raise RoomCapacityExceeded(
                    f"Room limit reached ({self.max_rooms}); cannot create room {room_id}"
                )

        if current is not None:
            self.leave(client_id)

        self.rooms.setdefault(room_id, set()).add(client_id)
        self.client_rooms[client_id] = room_id

    def leave(self, client_id: str) -> Optional[str]:
        """
        Remove a client from its room.

        Args:
            client_id: Identifier of the disconnecting client

        Returns:
            The room the client left, or None if it was not in a room
        """
        room_id = self.client_rooms.pop(client_id, None)
        if room_id is None:
            return None

        members = self.rooms.get(room_id)
        if members is not None:
            members.discard(client_id)
            if not members:
                del self.rooms[room_id]
        return room_id

    def members(self, room_id: str) -> Set[str]:
        """Return a copy of the members of a room."""
        return set(self.rooms.get(room_id, ()))

    def room_of(self, client_id: str) -> Optional[str]:
        """Return the room a client is in, if any."""
        return self.client_rooms.get(client_id)

    def __len__(self) -> int:
        return len(self.rooms)
