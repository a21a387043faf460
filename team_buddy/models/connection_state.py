"""
Observable state of one realtime session.

A ConnectionState is owned by exactly one RealtimeConnectionManager. The UI
(or the CLI client) only reads it: the connected indicator, the in-progress
spinner, the error banner, the microphone button and the chat log.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from team_buddy.models.chat import ChatEntry


class SessionState(str, Enum):
    """Lifecycle states of a realtime session."""

    IDLE = "idle"
    ACQUIRING = "acquiring"
    NEGOTIATING = "negotiating"
    CONNECTED = "connected"
    CLOSED = "closed"
    FAILED = "failed"


TERMINAL_STATES = (SessionState.CLOSED, SessionState.FAILED)


class ConnectionState(BaseModel):
    """Per-room connection state."""

    state: SessionState = SessionState.IDLE
    is_connected: bool = False
    is_processing: bool = False
    error: Optional[str] = None
    is_mic_active: bool = True
    messages: List[ChatEntry] = Field(default_factory=list)

    def append(self, entry: ChatEntry) -> ChatEntry:
        """Append a chat entry to the log and return it."""
        self.messages.append(entry)
        return entry

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
