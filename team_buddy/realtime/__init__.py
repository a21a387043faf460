"""
Realtime module: the client side of a live voice session with the AI model.

Key components:
- RealtimeConnectionManager: Owns one WebRTC session end to end, from
  credential fetch through negotiation, inbound event handling and
  mute/unmute, to teardown.
- media: Microphone capture (PyAudio-backed aiortc track), the local media
  stream, and sinks for the remote audio track.

Usage examples:
```python
from team_buddy.realtime import RealtimeConnectionManager

manager = RealtimeConnectionManager(room_id="standup", user_id="u1", user_name="Alex")
state = await manager.start()
if state.is_connected:
    await manager.set_microphone_active(False)
await manager.close()
```
"""

from team_buddy.realtime.connection_manager import RealtimeConnectionManager
from team_buddy.realtime.media import (
    AudioSink,
    BlackholeAudioSink,
    LocalMediaStream,
    MicrophoneSource,
    MicrophoneStreamTrack,
    SpeakerAudioSink,
)

__all__ = [
    "RealtimeConnectionManager",
    "AudioSink",
    "BlackholeAudioSink",
    "LocalMediaStream",
    "MicrophoneSource",
    "MicrophoneStreamTrack",
    "SpeakerAudioSink",
]
