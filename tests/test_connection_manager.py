"""
Tests for the realtime session state machine.

Every collaborator (relay, signaling, microphone, peer connection, audio sink)
is replaced by the doubles in tests/fakes.py so the lifecycle can be driven
deterministically.
"""

import asyncio
import json

import pytest

from fakes import (
    FakeAudioSink,
    FakeMediaSource,
    FakePeerConnection,
    FakeRelay,
    FakeSignaling,
    FakeTrack,
)
from team_buddy.errors import (
    MicrophoneToggleFailed,
    MicrophoneUnavailable,
    NegotiationFailed,
    NoActiveTrack,
    TrackEnded,
    UpstreamRejected,
)
from team_buddy.models.chat import ChatIdentity
from team_buddy.models.connection_state import SessionState
from team_buddy.realtime.connection_manager import RealtimeConnectionManager


def make_manager(relay=None, signaling=None, media_source=None, pcs=None, sinks=None):
    pcs = pcs if pcs is not None else []
    sinks = sinks if sinks is not None else []

    def pc_factory():
        pc = FakePeerConnection()
        pcs.append(pc)
        return pc

    def sink_factory():
        sink = FakeAudioSink()
        sinks.append(sink)
        return sink

    return RealtimeConnectionManager(
        room_id="room-1",
        user_id="user-1",
        user_name="Alex",
        relay=relay or FakeRelay(),
        signaling=signaling or FakeSignaling(),
        media_source=media_source or FakeMediaSource(),
        peer_connection_factory=pc_factory,
        audio_sink_factory=sink_factory,
    )


async def connected_manager():
    manager = make_manager()
    await manager.start()
    assert manager.state is SessionState.CONNECTED
    return manager


class TestStart:
    """Tests for session establishment"""

    @pytest.mark.asyncio
    async def test_start_reaches_connected(self):
        relay = FakeRelay(credential="tok_abc")
        signaling = FakeSignaling(answer="v=0 answer")
        pcs = []
        manager = make_manager(relay=relay, signaling=signaling, pcs=pcs)

        state = await manager.start()

        assert state.state is SessionState.CONNECTED
        assert state.is_connected is True
        assert state.is_processing is False
        assert state.error is None
        assert state.is_mic_active is True
        pc = pcs[0]
        assert pc.remoteDescription.sdp == "v=0 answer"
        assert pc.remoteDescription.type == "answer"
        # The committed local description is what gets sent upstream
        assert signaling.offers == [("v=0 offer with candidates", "tok_abc")]

    @pytest.mark.asyncio
    async def test_negotiation_steps_run_in_order(self):
        pcs = []
        manager = make_manager(pcs=pcs)

        await manager.start()

        assert pcs[0].calls == [
            "addTrack",
            "createDataChannel",
            "createOffer",
            "setLocalDescription",
            "setRemoteDescription",
        ]
        assert pcs[0].data_channels[0].label == "oai-events"

    @pytest.mark.asyncio
    async def test_relay_error_fails_without_touching_microphone(self):
        message = "Server configuration error: OpenAI API key not found."
        relay = FakeRelay(error=UpstreamRejected(500, message, text=message))
        media = FakeMediaSource()
        pcs = []
        manager = make_manager(relay=relay, media_source=media, pcs=pcs)

        state = await manager.start()

        assert state.state is SessionState.FAILED
        assert state.error == message
        assert state.is_connected is False
        assert state.is_processing is False
        assert media.calls == 0
        assert pcs == []

    @pytest.mark.asyncio
    async def test_microphone_denied_fails(self):
        media = FakeMediaSource(error=MicrophoneUnavailable("Microphone access denied or no audio track found."))
        signaling = FakeSignaling()
        manager = make_manager(media_source=media, signaling=signaling)

        state = await manager.start()

        assert state.state is SessionState.FAILED
        assert state.error == "Microphone access denied or no audio track found."
        assert signaling.offers == []

    @pytest.mark.asyncio
    async def test_no_audio_track_fails(self):
        media = FakeMediaSource(tracks=[FakeTrack(kind="video")])
        manager = make_manager(media_source=media)

        state = await manager.start()

        assert state.state is SessionState.FAILED
        assert state.error == "Microphone access denied or no audio track found."

    @pytest.mark.asyncio
    async def test_signaling_error_fails(self):
        signaling = FakeSignaling(error=NegotiationFailed("WebRTC connection error: 401"))
        manager = make_manager(signaling=signaling)

        state = await manager.start()

        assert state.state is SessionState.FAILED
        assert state.error == "WebRTC connection error: 401"
        assert state.is_connected is False

    @pytest.mark.asyncio
    async def test_remote_description_error_is_recorded_verbatim(self):
        pcs = []
        manager = make_manager(pcs=pcs)
        original_factory = manager.peer_connection_factory

        def failing_factory():
            pc = original_factory()
            pc.remote_error = ValueError("Invalid SDP line")
            return pc

        manager.peer_connection_factory = failing_factory

        state = await manager.start()

        assert state.state is SessionState.FAILED
        assert state.error == "Invalid SDP line"

    @pytest.mark.asyncio
    async def test_start_only_once(self):
        manager = await connected_manager()

        with pytest.raises(RuntimeError):
            await manager.start()


class TestInboundTracks:
    """Tests for the first-track-wins playback policy"""

    @pytest.mark.asyncio
    async def test_second_audio_track_is_ignored(self):
        pcs, sinks = [], []
        manager = make_manager(pcs=pcs, sinks=sinks)
        await manager.start()
        first, second = FakeTrack(), FakeTrack()

        pcs[0].emit("track", first)
        pcs[0].emit("track", second)

        assert sinks[0].track is first
        assert sinks[0].started == [first]

    @pytest.mark.asyncio
    async def test_video_track_is_not_bound(self):
        pcs, sinks = [], []
        manager = make_manager(pcs=pcs, sinks=sinks)
        await manager.start()

        pcs[0].emit("track", FakeTrack(kind="video"))

        assert sinks[0].is_bound is False


class TestInboundMessages:
    """Tests for data channel event handling"""

    @pytest.mark.asyncio
    async def test_transcript_and_response_are_appended(self):
        manager = await connected_manager()
        channel = manager.data_channel

        channel.emit("message", json.dumps({"type": "transcript", "text": "hello"}))
        channel.emit("message", json.dumps({"type": "response", "text": "hi there"}))

        messages = manager.connection_state.messages
        assert [m.identity for m in messages] == [ChatIdentity.USER, ChatIdentity.AI]
        assert messages[0].user_id == "user-1"
        assert messages[0].display_name == "Alex"
        assert messages[0].text == "hello"
        assert messages[1].display_name == "AI Assistant"
        assert messages[1].text == "hi there"

    @pytest.mark.asyncio
    async def test_transcript_dropped_while_muted_response_kept(self):
        manager = await connected_manager()
        await manager.set_microphone_active(False)
        before = len(manager.connection_state.messages)

        manager.handle_message(json.dumps({"type": "transcript", "text": "stale"}))
        assert len(manager.connection_state.messages) == before

        entry = manager.handle_message(json.dumps({"type": "response", "text": "still here"}))
        assert entry is not None
        assert manager.connection_state.messages[-1] is entry
        assert entry.identity is ChatIdentity.AI

    @pytest.mark.asyncio
    async def test_unknown_and_malformed_messages_are_ignored(self):
        manager = await connected_manager()

        assert manager.handle_message(json.dumps({"type": "session.created"})) is None
        assert manager.handle_message("not json") is None
        assert manager.handle_message(json.dumps(["a", "list"])) is None
        assert manager.handle_message(json.dumps({"type": "response"})) is None
        assert manager.handle_message(json.dumps({"type": {"a": 1}})) is None
        assert manager.handle_message(json.dumps({"type": ["x"]})) is None
        assert manager.handle_message(json.dumps({"kind": []})) is None
        assert manager.connection_state.messages == []
        assert manager.state is SessionState.CONNECTED

    @pytest.mark.asyncio
    async def test_entries_keep_arrival_order(self):
        manager = await connected_manager()

        for i in range(5):
            manager.handle_message(json.dumps({"type": "response", "text": str(i)}))

        assert [m.text for m in manager.connection_state.messages] == ["0", "1", "2", "3", "4"]


class TestMicrophoneToggle:
    """Tests for mute/unmute through the sender handle"""

    @pytest.mark.asyncio
    async def test_mute_keeps_capture_track_running(self):
        manager = await connected_manager()
        track = manager.local_track

        entry = await manager.set_microphone_active(False)

        assert manager.sender.replaced == [None]
        assert track.readyState == "live"
        assert manager.connection_state.is_mic_active is False
        assert entry.identity is ChatIdentity.SYSTEM
        assert entry.text == "Conversation paused - microphone muted"

    @pytest.mark.asyncio
    async def test_unmute_restores_original_track(self):
        manager = await connected_manager()
        track = manager.local_track

        await manager.set_microphone_active(False)
        entry = await manager.set_microphone_active(True)

        assert manager.sender.track is track
        assert manager.connection_state.is_mic_active is True
        assert entry.text == "Conversation resumed - microphone active"

    @pytest.mark.asyncio
    async def test_unmute_after_track_ended_rejects(self):
        manager = await connected_manager()
        await manager.set_microphone_active(False)
        manager.local_track.stop()
        messages_before = len(manager.connection_state.messages)

        with pytest.raises(TrackEnded):
            await manager.set_microphone_active(True)

        assert manager.connection_state.is_mic_active is False
        assert manager.connection_state.error == "Microphone track ended unexpectedly. Please refresh."
        assert len(manager.connection_state.messages) == messages_before

    @pytest.mark.asyncio
    async def test_toggle_without_track_rejects(self):
        manager = make_manager()

        with pytest.raises(NoActiveTrack):
            await manager.set_microphone_active(False)

        assert manager.connection_state.is_mic_active is True
        assert manager.connection_state.messages == []

    @pytest.mark.asyncio
    async def test_replace_track_failure_leaves_flag(self):
        manager = await connected_manager()
        manager.sender.fail = True

        with pytest.raises(MicrophoneToggleFailed):
            await manager.set_microphone_active(False)

        assert manager.connection_state.is_mic_active is True
        assert manager.connection_state.error == "Failed to mute microphone. Please try again."

    @pytest.mark.asyncio
    async def test_toggle_microphone_flips_state(self):
        manager = await connected_manager()

        await manager.toggle_microphone()
        assert manager.connection_state.is_mic_active is False
        await manager.toggle_microphone()
        assert manager.connection_state.is_mic_active is True

    @pytest.mark.asyncio
    async def test_concurrent_toggles_are_serialized(self):
        manager = await connected_manager()
        sender = manager.sender
        active = []
        overlaps = []

        async def slow_replace(track):
            active.append(track)
            if len(active) > 1:
                overlaps.append(track)
            await asyncio.sleep(0.01)
            active.remove(track)
            sender.replaced.append(track)

        sender.replaceTrack = slow_replace

        await asyncio.gather(
            manager.set_microphone_active(False),
            manager.set_microphone_active(True),
        )

        assert overlaps == []
        assert sender.replaced == [None, manager.local_track]
        assert manager.connection_state.is_mic_active is True

    @pytest.mark.asyncio
    async def test_dismiss_error(self):
        manager = await connected_manager()
        manager.local_track.stop()
        with pytest.raises(TrackEnded):
            await manager.set_microphone_active(True)

        manager.dismiss_error()

        assert manager.connection_state.error is None


class TestClose:
    """Tests for teardown"""

    @pytest.mark.asyncio
    async def test_close_releases_resources(self):
        pcs, sinks = [], []
        media = FakeMediaSource()
        manager = make_manager(media_source=media, pcs=pcs, sinks=sinks)
        await manager.start()
        pcs[0].emit("track", FakeTrack())
        channel = manager.data_channel

        await manager.close()

        assert manager.state is SessionState.CLOSED
        assert manager.connection_state.is_connected is False
        assert all(t.readyState == "ended" for t in media.tracks)
        assert pcs[0].closed is True
        assert pcs[0].listeners == {}
        assert channel.listeners == {}
        assert sinks[0].closed is True
        assert manager.sender is None
        assert manager.local_track is None
        assert manager.peer_connection is None
        assert manager.audio_sink is None

    @pytest.mark.asyncio
    async def test_close_twice_is_a_noop(self):
        pcs = []
        manager = make_manager(pcs=pcs)
        await manager.start()

        await manager.close()
        await manager.close()

        assert pcs[0].close_count == 1
        assert manager.state is SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_close_before_start(self):
        manager = make_manager()

        await manager.close()
        await manager.close()

        assert manager.state is SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_close_after_failure_keeps_failed_and_stops_tracks(self):
        media = FakeMediaSource()
        signaling = FakeSignaling(error=NegotiationFailed("WebRTC connection error: 500"))
        manager = make_manager(media_source=media, signaling=signaling)
        await manager.start()

        await manager.close()

        assert manager.state is SessionState.FAILED
        assert manager.connection_state.error == "WebRTC connection error: 500"
        assert media.tracks[0].readyState == "ended"

    @pytest.mark.asyncio
    async def test_close_during_credential_fetch(self):
        gate = asyncio.Event()
        media = FakeMediaSource()

        class SlowRelay(FakeRelay):
            async def fetch_credential(self):
                await gate.wait()
                return "tok_abc"

        manager = make_manager(relay=SlowRelay(), media_source=media)
        start_task = asyncio.create_task(manager.start())
        await asyncio.sleep(0)

        await manager.close()
        gate.set()
        state = await start_task

        assert state.state is SessionState.CLOSED
        assert state.is_connected is False
        assert media.calls == 0

    @pytest.mark.asyncio
    async def test_toggle_after_close_rejects(self):
        manager = await connected_manager()
        await manager.close()

        with pytest.raises(NoActiveTrack):
            await manager.set_microphone_active(False)
