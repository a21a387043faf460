"""
Local media for a realtime session: microphone capture and inbound playback.

The connection manager only depends on small seams here:
- a media source whose ``get_user_media()`` returns a LocalMediaStream,
- an audio sink with ``bind(track)``, ``is_bound`` and ``close()``.

PyAudio backs the default microphone track and speaker sink. It is imported
when a device is opened so the rest of the package loads on hosts without
PortAudio.
"""

import asyncio
import fractions
import logging
import uuid
from typing import List, Optional

import av
import numpy as np
from aiortc import MediaStreamTrack
from aiortc.contrib.media import MediaBlackhole
from aiortc.mediastreams import MediaStreamError

from team_buddy.config.constants import (
    CHANNELS,
    CHUNK,
    ERROR_MICROPHONE_UNAVAILABLE,
    LOGGER_NAME,
    SAMPLE_RATE,
)
from team_buddy.errors import MicrophoneUnavailable

logger = logging.getLogger(LOGGER_NAME)


class MicrophoneStreamTrack(MediaStreamTrack):
    """MediaStreamTrack that captures audio from the default input device."""

    kind = "audio"

    def __init__(self, device_index: Optional[int] = None):
        super().__init__()
        import pyaudio

        self.p = pyaudio.PyAudio()
        try:
            self.stream = self.p.open(
                format=pyaudio.paInt16,
                channels=CHANNELS,
                rate=SAMPLE_RATE,
                input=True,
                input_device_index=device_index,
                frames_per_buffer=CHUNK,
            )
        except Exception:
            self.p.terminate()
            raise
        self.timestamp = 0
        logger.info(f"Microphone initialized: {SAMPLE_RATE}Hz, {CHANNELS} channel(s)")

    async def recv(self):
        """Get the next 20ms frame from the microphone."""
        if self.readyState != "live":
            raise MediaStreamError

        # Blocking read, run in the default executor
        stream = self.stream
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(
            None, lambda: stream.read(CHUNK, exception_on_overflow=False)
        )
        if self.readyState != "live":
            raise MediaStreamError
        frame = av.AudioFrame.from_ndarray(
            np.frombuffer(data, np.int16).reshape(1, -1),
            format="s16",
            layout="mono",
        )
        frame.sample_rate = SAMPLE_RATE
        frame.pts = self.timestamp
        frame.time_base = fractions.Fraction(1, SAMPLE_RATE)
        self.timestamp += CHUNK
        return frame

    def stop(self):
        """Stop capturing and release the input device."""
        if self.readyState == "ended":
            return
        super().stop()
        if self.stream:
            self.stream.stop_stream()
            self.stream.close()
            self.stream = None
        if self.p:
            self.p.terminate()
            self.p = None
        logger.info("Microphone stopped")


class LocalMediaStream:
    """A group of local tracks acquired together, like a browser MediaStream."""

    def __init__(self, tracks: List[MediaStreamTrack]):
        self.id = str(uuid.uuid4())
        self._tracks = list(tracks)

    def get_tracks(self) -> List[MediaStreamTrack]:
        return list(self._tracks)

    def get_audio_tracks(self) -> List[MediaStreamTrack]:
        return [t for t in self._tracks if t.kind == "audio"]


class MicrophoneSource:
    """Acquires the local microphone for a session."""

    def __init__(self, device_index: Optional[int] = None):
        self.device_index = device_index

    async def get_user_media(self) -> LocalMediaStream:
        """
        Open the microphone.

        Raises:
            MicrophoneUnavailable: If the device cannot be opened
        """
        logger.info("Getting user media (audio)...")
        try:
            track = MicrophoneStreamTrack(self.device_index)
        except (ImportError, OSError) as e:
            logger.error(f"Could not open microphone: {e}")
            raise MicrophoneUnavailable(ERROR_MICROPHONE_UNAVAILABLE) from e
        return LocalMediaStream([track])


class AudioSink:
    """Base class for consumers of the remote audio track."""

    def __init__(self):
        self.track: Optional[MediaStreamTrack] = None

    @property
    def is_bound(self) -> bool:
        return self.track is not None

    def bind(self, track: MediaStreamTrack) -> None:
        if self.track is not None:
            raise RuntimeError("Audio sink already has a track")
        self.track = track
        self._start(track)

    def _start(self, track: MediaStreamTrack) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        self.track = None


class SpeakerAudioSink(AudioSink):
    """Plays the remote audio track on the default output device."""

    def __init__(self, volume: float = 0.8):
        super().__init__()
        self.volume = volume
        self.p = None
        self.stream = None
        self._task: Optional[asyncio.Task] = None
        self._resampler = av.AudioResampler(format="s16", layout="mono", rate=SAMPLE_RATE)

    def _start(self, track: MediaStreamTrack) -> None:
        import pyaudio

        self.p = pyaudio.PyAudio()
        self.stream = self.p.open(
            format=pyaudio.paInt16,
            channels=CHANNELS,
            rate=SAMPLE_RATE,
            output=True,
            frames_per_buffer=CHUNK,
        )
        self._task = asyncio.create_task(self._play(track))

    async def _play(self, track: MediaStreamTrack) -> None:
        loop = asyncio.get_running_loop()
        try:
            while True:
                frame = await track.recv()
                for out in self._resampler.resample(frame):
                    samples = out.to_ndarray().astype(np.float32) * self.volume
                    await loop.run_in_executor(
                        None, self.stream.write, samples.astype(np.int16).tobytes()
                    )
        except MediaStreamError:
            logger.info("Remote audio track ended")

    async def close(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        if self.stream:
            self.stream.stop_stream()
            self.stream.close()
            self.stream = None
        if self.p:
            self.p.terminate()
            self.p = None
        await super().close()


class BlackholeAudioSink(AudioSink):
    """Consumes and discards the remote audio track, for headless runs."""

    def __init__(self):
        super().__init__()
        self._blackhole = MediaBlackhole()
        self._task: Optional[asyncio.Task] = None

    def _start(self, track: MediaStreamTrack) -> None:
        self._blackhole.addTrack(track)
        self._task = asyncio.create_task(self._blackhole.start())

    async def close(self) -> None:
        if self._task is not None:
            await self._blackhole.stop()
            self._task = None
        await super().close()
