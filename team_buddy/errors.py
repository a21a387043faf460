"""
Error types raised by the credential relay and the realtime connection manager.

Every failure during session establishment ends the session, so these carry a
single human-readable message that is shown to the user as-is.
"""

from typing import Optional


class TeamBuddyError(Exception):
    """Base class for all application errors."""

    @property
    def message(self) -> str:
        return str(self)


# Credential relay
class ConfigurationMissing(TeamBuddyError):
    """Required server configuration (the OpenAI API key) is absent."""


class UpstreamRejected(TeamBuddyError):
    """The upstream service answered with a non-success status."""

    def __init__(self, status: int, message: str, text: Optional[str] = None):
        self.status = status
        self.detail = message
        super().__init__(text or f"OpenAI API error: {status} - {message}")


class NetworkFailure(TeamBuddyError):
    """The upstream service could not be reached or timed out."""


# Connection manager
class MicrophoneUnavailable(TeamBuddyError):
    """Microphone access was denied or produced no audio track."""


class NegotiationFailed(TeamBuddyError):
    """The offer/answer exchange with the realtime endpoint failed."""


class NoActiveTrack(TeamBuddyError):
    """A mute toggle was requested without a sender and live local track."""


class TrackEnded(TeamBuddyError):
    """The local capture track ended; the session must be restarted."""


class MicrophoneToggleFailed(TeamBuddyError):
    """Swapping the outbound track on the sender raised."""


class MalformedInboundMessage(TeamBuddyError):
    """A data channel message was not a valid JSON event object."""


# Room registry
class RoomCapacityExceeded(TeamBuddyError):
    """The room registry is full and cannot track another room."""
