"""
Services module for the HTTP integrations of the AI Team Buddy application.

Key components:
- credential_relay: Server side; creates an ephemeral OpenAI Realtime session
  using the server-held API key.
- relay_client: Client side; asks the relay for a session and extracts the
  ephemeral credential.
- signaling: Client side; exchanges the SDP offer for an answer with the
  OpenAI Realtime endpoint.

All three use aiohttp, apply a bounded total timeout and never retry.

Usage examples:
```python
from team_buddy.services import RelayClient, SignalingClient

credential = await RelayClient("http://localhost:5000").fetch_credential()
answer_sdp = await SignalingClient().exchange(offer_sdp, credential)
```
"""

from team_buddy.services.credential_relay import create_session
from team_buddy.services.relay_client import RelayClient
from team_buddy.services.signaling import SignalingClient

__all__ = ["create_session", "RelayClient", "SignalingClient"]
