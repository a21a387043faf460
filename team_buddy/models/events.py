"""
Pydantic models for messages carried on the signaling data channel and the
room channel.

Data channel events are newline-free JSON objects tagged by ``type``. Only the
``transcript`` and ``response`` tags are understood; anything else is treated
as unknown and ignored by the caller rather than rejected.
"""

import json
import logging
from typing import Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from team_buddy.config.constants import (
    EVENT_TYPE_RESPONSE,
    EVENT_TYPE_TRANSCRIPT,
    LOGGER_NAME,
    MESSAGE_TYPE_ROOM_ERROR,
    MESSAGE_TYPE_ROOM_JOINED,
)
from team_buddy.errors import MalformedInboundMessage

logger = logging.getLogger(LOGGER_NAME)


# Data channel events
class DataChannelEvent(BaseModel):
    """Base model for events received on the signaling data channel."""

    type: str = Field(..., description="Event type discriminator")
    text: str = Field(..., description="Text payload of the event")


class TranscriptEvent(DataChannelEvent):
    """Transcription of what the local user said."""

    type: Literal["transcript"]


class ResponseEvent(DataChannelEvent):
    """Text of the AI assistant's reply."""

    type: Literal["response"]


InboundEvent = Union[TranscriptEvent, ResponseEvent]

EVENT_MODELS: Dict[str, Type[DataChannelEvent]] = {
    EVENT_TYPE_TRANSCRIPT: TranscriptEvent,
    EVENT_TYPE_RESPONSE: ResponseEvent,
}


def parse_event(raw: Union[str, bytes]) -> Optional[InboundEvent]:
    """
    Decode one data channel message.

    Args:
        raw: The message exactly as received from the data channel

    Returns:
        The typed event, or None when the event type is not one we handle

    Raises:
        MalformedInboundMessage: If the payload is not a JSON object or a known
            event type fails validation
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedInboundMessage(f"Binary message is not UTF-8: {e}") from e

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedInboundMessage(f"Invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedInboundMessage("Event payload is not a JSON object")

    # "kind" is accepted as an alias of the "type" tag
    event_type = payload.get("type", payload.get("kind"))
    if event_type is not None and not isinstance(event_type, str):
        raise MalformedInboundMessage(f"Event tag is not a string: {event_type!r}")
    model = EVENT_MODELS.get(event_type)
    if model is None:
        logger.debug(f"Ignoring data channel event of type: {event_type}")
        return None

    try:
        return model(**{**payload, "type": event_type})
    except ValidationError as e:
        raise MalformedInboundMessage(f"Invalid {event_type} event: {e}") from e


# Room channel messages
class RoomMessage(BaseModel):
    """Base model for room channel messages."""

    type: str = Field(..., description="Message type identifier")


class JoinRoomMessage(RoomMessage):
    """Request from a client to join a room."""

    type: Literal["join_room"]
    roomId: str = Field(..., description="Identifier of the room to join")

    @field_validator("roomId")
    def validate_room_id(cls, v):
        """Validate that the room id is not empty."""
        if not v.strip():
            raise ValueError("Room id cannot be empty")
        return v


class RoomJoinedResponse(RoomMessage):
    """Acknowledgement sent after a successful join."""

    type: Literal["room_joined"] = MESSAGE_TYPE_ROOM_JOINED
    roomId: str
    clientId: str


class RoomErrorResponse(RoomMessage):
    """Error sent when a room request cannot be honoured."""

    type: Literal["room_error"] = MESSAGE_TYPE_ROOM_ERROR
    reason: str


__all__ = [
    "DataChannelEvent",
    "TranscriptEvent",
    "ResponseEvent",
    "InboundEvent",
    "parse_event",
    "JoinRoomMessage",
    "RoomJoinedResponse",
    "RoomErrorResponse",
]
