"""
Chat entries shown in a room's conversation log.

Entries are immutable once created and are only ever appended, in arrival
order. The timestamp is the local wall-clock time of receipt, never a value
taken from the inbound payload.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from team_buddy.config.constants import (
    AI_DISPLAY_NAME,
    AI_USER_ID,
    SYSTEM_DISPLAY_NAME,
    SYSTEM_USER_ID,
)


class ChatIdentity(str, Enum):
    """Who produced a chat entry."""

    USER = "user"
    AI = "ai"
    SYSTEM = "system"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChatEntry(BaseModel):
    """A single line in the conversation log."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    identity: ChatIdentity
    user_id: str
    display_name: str
    text: str
    timestamp: str = Field(default_factory=_now)

    @property
    def kind(self) -> str:
        return self.identity.value

    @classmethod
    def from_user(cls, user_id: str, user_name: str, text: str) -> "ChatEntry":
        return cls(identity=ChatIdentity.USER, user_id=user_id, display_name=user_name, text=text)

    @classmethod
    def from_ai(cls, text: str) -> "ChatEntry":
        return cls(identity=ChatIdentity.AI, user_id=AI_USER_ID, display_name=AI_DISPLAY_NAME, text=text)

    @classmethod
    def from_system(cls, text: str) -> "ChatEntry":
        return cls(
            identity=ChatIdentity.SYSTEM,
            user_id=SYSTEM_USER_ID,
            display_name=SYSTEM_DISPLAY_NAME,
            text=text,
        )
