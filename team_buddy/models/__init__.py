"""
Models module for data structures and state in the AI Team Buddy application.

Key components:
- events: Pydantic models for data channel events (transcript / response) and
  room channel messages, plus the boundary decoder for data channel payloads.
- chat: Immutable chat entries appended to a room's conversation log.
- connection_state: The observable state of one realtime session.
- rooms: Bounded registry of room memberships for the room channel.

Usage examples:
```python
from team_buddy.models import ConnectionState, ChatEntry, parse_event

state = ConnectionState()
event = parse_event('{"type": "response", "text": "Hello team"}')
if event is not None:
    state.append(ChatEntry.from_ai(event.text))
```
"""

from team_buddy.models.chat import ChatEntry, ChatIdentity
from team_buddy.models.connection_state import ConnectionState, SessionState
from team_buddy.models.events import (
    InboundEvent,
    JoinRoomMessage,
    ResponseEvent,
    RoomErrorResponse,
    RoomJoinedResponse,
    TranscriptEvent,
    parse_event,
)
from team_buddy.models.rooms import RoomRegistry

__all__ = [
    "ChatEntry",
    "ChatIdentity",
    "ConnectionState",
    "SessionState",
    "InboundEvent",
    "JoinRoomMessage",
    "ResponseEvent",
    "RoomErrorResponse",
    "RoomJoinedResponse",
    "TranscriptEvent",
    "parse_event",
    "RoomRegistry",
]
