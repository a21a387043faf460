"""
AI Team Buddy - live voice sessions with the OpenAI Realtime API over WebRTC.

A relay server holds the long-lived OpenAI API key and mints short-lived
session credentials. Clients use a credential to negotiate a WebRTC
connection directly with OpenAI, sending microphone audio and receiving the
assistant's voice plus transcript/response events on a data channel.

Architecture Overview:
- FastAPI relay exposing ``POST /session``, ``GET /health`` and the room
  channel WebSocket ``/ws``
- aiortc-based client that owns the whole session lifecycle
- aiohttp for every outbound HTTP call, with bounded timeouts and no retries

Key Components:
- config: Constants, logging setup and environment-backed settings
- models: Chat entries, connection state, data channel events, room registry
- services: Credential relay, relay client and SDP signaling client
- realtime: The connection manager state machine and local media
- websocket_manager: Room channel connection handling
- client: Terminal client for joining a room

Getting Started:
1. Set up environment variables (or a ``.env`` file):
   - OPENAI_API_KEY: Your OpenAI API key (relay only)
   - PORT / HOST: Relay bind address (default 0.0.0.0:5000)
   - LOG_LEVEL: Logging level (default INFO)

2. Start the relay:
   ```bash
   python run.py
   ```

3. Join a room from a terminal:
   ```bash
   python -m team_buddy.client --room standup --name Alex
   ```
"""

__version__ = "1.0.0"
