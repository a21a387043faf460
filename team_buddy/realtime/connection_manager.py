"""
Lifecycle of one realtime voice session with the OpenAI Realtime API.

RealtimeConnectionManager owns every resource of a session: the peer
connection, the microphone stream and its sender, the signaling data channel
and the inbound audio sink. It walks the session through

    IDLE -> ACQUIRING -> NEGOTIATING -> CONNECTED -> CLOSED

with FAILED reachable from any state before CLOSED. A manager is single use:
``start()`` runs at most once, and recovering from FAILED means building a
new manager.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from aiortc import RTCPeerConnection, RTCSessionDescription

from team_buddy.config.constants import (
    DATA_CHANNEL_LABEL,
    ERROR_MICROPHONE_UNAVAILABLE,
    ERROR_NO_SENDER,
    ERROR_TRACK_ENDED,
    LOGGER_NAME,
)
from team_buddy.errors import (
    MalformedInboundMessage,
    MicrophoneToggleFailed,
    MicrophoneUnavailable,
    NegotiationFailed,
    NoActiveTrack,
    TeamBuddyError,
    TrackEnded,
)
from team_buddy.models.chat import ChatEntry
from team_buddy.models.connection_state import ConnectionState, SessionState
from team_buddy.models.events import ResponseEvent, TranscriptEvent, parse_event
from team_buddy.realtime.media import AudioSink, MicrophoneSource, SpeakerAudioSink
from team_buddy.services.relay_client import RelayClient
from team_buddy.services.signaling import SignalingClient

logger = logging.getLogger(LOGGER_NAME)


class RealtimeConnectionManager:
    """
    Drives a single WebRTC session between a room member and the AI model.

    The collaborators are injectable so the state machine can run against
    fakes: ``relay`` supplies the Session Credential, ``signaling`` performs
    the offer/answer exchange, ``media_source`` opens the microphone, and the
    two factories build the peer connection and the inbound audio sink.
    """

    def __init__(
        self,
        room_id: str,
        user_id: str,
        user_name: str,
        relay: Optional[RelayClient] = None,
        signaling: Optional[SignalingClient] = None,
        media_source: Optional[MicrophoneSource] = None,
        peer_connection_factory: Callable[[], Any] = RTCPeerConnection,
        audio_sink_factory: Callable[[], AudioSink] = SpeakerAudioSink,
    ):
        self.room_id = room_id
        self.user_id = user_id
        self.user_name = user_name
        self.relay = relay or RelayClient()
        self.signaling = signaling or SignalingClient()
        self.media_source = media_source or MicrophoneSource()
        self.peer_connection_factory = peer_connection_factory
        self.audio_sink_factory = audio_sink_factory

        self.connection_state = ConnectionState()

        self.peer_connection = None
        self.data_channel = None
        self.audio_sink: Optional[AudioSink] = None
        self.media_stream = None
        self.local_track = None
        self.sender = None

        self._started = False
        self._toggle_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self.connection_state.state

    def _transition(self, new_state: SessionState) -> None:
        logger.debug(f"Room {self.room_id}: {self.state.value} -> {new_state.value}")
        self.connection_state.state = new_state

    async def start(self) -> ConnectionState:
        """
        Establish the session.

        Failures are not raised; they move the session to FAILED and the
        message is recorded in ``connection_state.error``.

        Returns:
            The connection state after the attempt

        Raises:
            RuntimeError: If called more than once on the same manager
        """
        if self._started:
            raise RuntimeError("start() may only be called once per connection manager")
        self._started = True

        cs = self.connection_state
        cs.error = None
        cs.is_processing = True
        cs.is_mic_active = True
        self._transition(SessionState.ACQUIRING)
        logger.info(f"Initializing Realtime connection for room {self.room_id}")

        try:
            credential = await self.relay.fetch_credential()
            if self.state is not SessionState.ACQUIRING:
                logger.info("Session was closed while fetching the credential")
                return cs

            self._transition(SessionState.NEGOTIATING)
            await self._negotiate(credential)
        except TeamBuddyError as e:
            self._fail(e.message)
            return cs
        except Exception as e:
            logger.error(f"Error initializing Realtime connection: {e}", exc_info=True)
            self._fail(str(e) or type(e).__name__)
            return cs

        if self.state is SessionState.NEGOTIATING:
            cs.is_connected = True
            cs.is_processing = False
            self._transition(SessionState.CONNECTED)
            logger.info(f"Realtime connection established for room {self.room_id}")
        return cs

    async def _negotiate(self, credential: str) -> None:
        pc = self.peer_connection_factory()
        self.peer_connection = pc
        self.audio_sink = self.audio_sink_factory()
        pc.on("track", self._on_track)

        self.media_stream = await self.media_source.get_user_media()
        if self.state is not SessionState.NEGOTIATING:
            # Closed while the microphone prompt was pending
            self._stop_media_stream()
            return

        audio_tracks = self.media_stream.get_audio_tracks()
        if not audio_tracks:
            logger.error("Could not get local audio track!")
            raise MicrophoneUnavailable(ERROR_MICROPHONE_UNAVAILABLE)
        self.local_track = audio_tracks[0]

        logger.info(f"Adding local audio track: {self.local_track.id}")
        self.sender = pc.addTrack(self.local_track)
        if not self.sender:
            raise NegotiationFailed(ERROR_NO_SENDER)

        channel = pc.createDataChannel(DATA_CHANNEL_LABEL)
        self.data_channel = channel
        channel.on("open", lambda: logger.info("Data channel opened"))
        channel.on("close", lambda: logger.info("Data channel closed"))
        channel.on("message", self.handle_message)

        logger.info("Creating offer")
        offer = await pc.createOffer()
        await pc.setLocalDescription(offer)

        answer_sdp = await self.signaling.exchange(pc.localDescription.sdp, credential)
        if self.state is not SessionState.NEGOTIATING:
            return

        logger.info("Setting remote description")
        await pc.setRemoteDescription(RTCSessionDescription(sdp=answer_sdp, type="answer"))

    def _fail(self, message: str) -> None:
        logger.error(f"Realtime session for room {self.room_id} failed: {message}")
        cs = self.connection_state
        if self.state is SessionState.CLOSED:
            return
        cs.error = message
        cs.is_connected = False
        cs.is_processing = False
        self._transition(SessionState.FAILED)

    def _on_track(self, track) -> None:
        logger.info(f"Received track: kind={track.kind}, id={track.id}")
        sink = self.audio_sink
        if track.kind != "audio" or sink is None:
            logger.info(f"Could not assign track {track.id}: not audio or no audio sink")
            return
        if sink.is_bound:
            logger.info(f"Audio sink already has track {sink.track.id}. Ignoring new track {track.id}")
            return
        logger.info(f"Assigning remote audio track {track.id} to audio sink")
        sink.bind(track)

    def handle_message(self, raw) -> Optional[ChatEntry]:
        """
        Handle one message from the signaling data channel.

        Returns:
            The appended chat entry, or None if the message was dropped
        """
        try:
            event = parse_event(raw)
        except MalformedInboundMessage as e:
            logger.warning(f"Error parsing data channel message: {e}")
            return None

        cs = self.connection_state
        if isinstance(event, TranscriptEvent):
            if not cs.is_mic_active:
                logger.debug("Dropping transcript received while microphone is muted")
                return None
            return cs.append(ChatEntry.from_user(self.user_id, self.user_name, event.text))
        if isinstance(event, ResponseEvent):
            return cs.append(ChatEntry.from_ai(event.text))
        return None

    async def set_microphone_active(self, active: bool) -> ChatEntry:
        """
        Mute or unmute the outbound audio without renegotiating.

        Muting swaps the sender's track for None; the capture track keeps
        running so unmuting only has to put it back. Concurrent calls are
        serialized.

        Returns:
            The system chat entry recording the change

        Raises:
            NoActiveTrack: If there is no sender or no live local track
            TrackEnded: If unmuting after the capture track has ended
            MicrophoneToggleFailed: If the sender rejected the track swap
        """
        async with self._toggle_lock:
            sender = self.sender
            track = self.local_track
            cs = self.connection_state

            if sender is None or track is None:
                logger.warning("Could not toggle microphone: sender or local track not found")
                raise NoActiveTrack("No active microphone track")

            if active:
                if track.readyState == "ended":
                    logger.error("Cannot unmute: track is ended, need to reacquire")
                    cs.error = ERROR_TRACK_ENDED
                    raise TrackEnded(ERROR_TRACK_ENDED)
                replacement = track
            else:
                if track.readyState == "ended":
                    raise NoActiveTrack("Microphone track has ended")
                replacement = None

            logger.info(f"Toggling microphone via replaceTrack: {cs.is_mic_active} -> {active}")
            try:
                result = sender.replaceTrack(replacement)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Error during replaceTrack (toggling to {active}): {e}")
                message = f"Failed to {'unmute' if active else 'mute'} microphone. Please try again."
                cs.error = message
                raise MicrophoneToggleFailed(message) from e

            cs.is_mic_active = active
            text = (
                "Conversation resumed - microphone active"
                if active
                else "Conversation paused - microphone muted"
            )
            return cs.append(ChatEntry.from_system(text))

    async def toggle_microphone(self) -> ChatEntry:
        """Flip the microphone between muted and active."""
        return await self.set_microphone_active(not self.connection_state.is_mic_active)

    def dismiss_error(self) -> None:
        """Clear the error banner."""
        self.connection_state.error = None

    def _stop_media_stream(self) -> None:
        if self.media_stream is not None:
            logger.info("Stopping media stream tracks")
            for track in self.media_stream.get_tracks():
                track.stop()
            self.media_stream = None

    async def close(self) -> None:
        """
        Release every resource held by the session.

        Safe to call from any state, any number of times, including before
        ``start()``. A FAILED session stays FAILED; otherwise the state
        becomes CLOSED.
        """
        if self.state is SessionState.CLOSED:
            return

        logger.info(f"Cleaning up realtime session for room {self.room_id}")
        if self.state is not SessionState.FAILED:
            self._transition(SessionState.CLOSED)
        cs = self.connection_state
        cs.is_connected = False
        cs.is_processing = False

        self.sender = None

        if self.data_channel is not None:
            self.data_channel.remove_all_listeners()
            self.data_channel = None

        pc = self.peer_connection
        self.peer_connection = None
        if pc is not None:
            logger.info("Closing peer connection")
            pc.remove_all_listeners()
            try:
                await pc.close()
            except Exception as e:
                logger.error(f"Error closing peer connection: {e}")

        if self.audio_sink is not None:
            logger.info("Removing audio sink")
            sink = self.audio_sink
            self.audio_sink = None
            try:
                await sink.close()
            except Exception as e:
                logger.error(f"Error closing audio sink: {e}")

        self._stop_media_stream()
        self.local_track = None
        logger.info("Cleanup complete")
