"""Test doubles for aiortc, aiohttp and the realtime collaborators."""

import uuid

from team_buddy.realtime.media import AudioSink, LocalMediaStream


class FakeTrack:
    """Stand-in for an aiortc MediaStreamTrack"""

    def __init__(self, kind="audio"):
        self.kind = kind
        self.id = str(uuid.uuid4())
        self.readyState = "live"

    def stop(self):
        self.readyState = "ended"


class FakeSender:
    """Stand-in for an RTCRtpSender that records replaceTrack calls"""

    def __init__(self, track):
        self.track = track
        self.replaced = []
        self.fail = False

    def replaceTrack(self, track):
        if self.fail:
            raise RuntimeError("replaceTrack failed")
        self.replaced.append(track)
        self.track = track


class FakeEmitter:
    def __init__(self):
        self.listeners = {}

    def on(self, event, handler):
        self.listeners.setdefault(event, []).append(handler)

    def emit(self, event, *args):
        for handler in self.listeners.get(event, []):
            handler(*args)

    def remove_all_listeners(self):
        self.listeners = {}


class FakeDataChannel(FakeEmitter):
    def __init__(self, label):
        super().__init__()
        self.label = label


class FakeDescription:
    def __init__(self, sdp, type):
        self.sdp = sdp
        self.type = type


class FakePeerConnection(FakeEmitter):
    """Stand-in for RTCPeerConnection recording the order of negotiation steps"""

    def __init__(self):
        super().__init__()
        self.calls = []
        self.senders = []
        self.data_channels = []
        self.localDescription = None
        self.remoteDescription = None
        self.closed = False
        self.close_count = 0
        self.remote_error = None

    def addTrack(self, track):
        self.calls.append("addTrack")
        sender = FakeSender(track)
        self.senders.append(sender)
        return sender

    def createDataChannel(self, label):
        self.calls.append("createDataChannel")
        channel = FakeDataChannel(label)
        self.data_channels.append(channel)
        return channel

    async def createOffer(self):
        self.calls.append("createOffer")
        return FakeDescription("v=0 offer", "offer")

    async def setLocalDescription(self, description):
        self.calls.append("setLocalDescription")
        self.localDescription = FakeDescription(description.sdp + " with candidates", description.type)

    async def setRemoteDescription(self, description):
        self.calls.append("setRemoteDescription")
        if self.remote_error:
            raise self.remote_error
        self.remoteDescription = description

    async def close(self):
        self.close_count += 1
        self.closed = True


class FakeRelay:
    def __init__(self, credential="tok_abc", error=None):
        self.credential = credential
        self.error = error
        self.calls = 0

    async def fetch_credential(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.credential


class FakeSignaling:
    def __init__(self, answer="v=0 answer", error=None):
        self.answer = answer
        self.error = error
        self.offers = []

    async def exchange(self, offer_sdp, credential):
        self.offers.append((offer_sdp, credential))
        if self.error:
            raise self.error
        return self.answer


class FakeMediaSource:
    def __init__(self, tracks=None, error=None):
        self.tracks = [FakeTrack()] if tracks is None else tracks
        self.error = error
        self.calls = 0
        self.stream = None

    async def get_user_media(self):
        self.calls += 1
        if self.error:
            raise self.error
        self.stream = LocalMediaStream(self.tracks)
        return self.stream


class FakeAudioSink(AudioSink):
    def __init__(self):
        super().__init__()
        self.started = []
        self.closed = False

    def _start(self, track):
        self.started.append(track)

    async def close(self):
        self.closed = True
        await super().close()


class FakeResponse:
    """Async context manager mimicking an aiohttp ClientResponse"""

    def __init__(self, status=200, body=""):
        self.status = status
        self.body = body

    async def text(self):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeHttpSession:
    """Mimics aiohttp.ClientSession.post"""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response
