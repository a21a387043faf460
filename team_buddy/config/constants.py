"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for configuration values and making it easier to
maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "team_buddy"

# Default OpenAI model and voice for Realtime API sessions
DEFAULT_REALTIME_MODEL = "gpt-4o-realtime-preview-2024-12-17"
DEFAULT_REALTIME_VOICE = "verse"

# Upstream endpoints
OPENAI_SESSIONS_URL = "https://api.openai.com/v1/realtime/sessions"
OPENAI_REALTIME_URL = "https://api.openai.com/v1/realtime"
OPENAI_BETA_HEADER = "realtime=v1"

# Relay defaults
DEFAULT_RELAY_URL = "http://localhost:5000"
DEFAULT_CORS_ORIGINS = "http://localhost:3000"
DEFAULT_UPSTREAM_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_ROOMS = 1000

# Name of the signaling data channel opened alongside the audio track
DATA_CHANNEL_LABEL = "oai-events"

# Data channel event types
EVENT_TYPE_TRANSCRIPT = "transcript"
EVENT_TYPE_RESPONSE = "response"

# Room channel message types
MESSAGE_TYPE_JOIN_ROOM = "join_room"
MESSAGE_TYPE_ROOM_JOINED = "room_joined"
MESSAGE_TYPE_ROOM_ERROR = "room_error"

# Display names used for chat entries that do not come from the local user
AI_USER_ID = "ai"
AI_DISPLAY_NAME = "AI Assistant"
SYSTEM_USER_ID = "system"
SYSTEM_DISPLAY_NAME = "System"

# Error messages shown to the user
ERROR_API_KEY_MISSING = "Server configuration error: OpenAI API key not found."
ERROR_SESSION_GENERATION = "Error generating session"
ERROR_NO_CLIENT_SECRET = "No client secret value in session response"
ERROR_MICROPHONE_UNAVAILABLE = "Microphone access denied or no audio track found."
ERROR_NO_SENDER = "Failed to add audio track sender."
ERROR_TRACK_ENDED = "Microphone track ended unexpectedly. Please refresh."

# Audio parameters for capture and playback
SAMPLE_RATE = 48000
CHANNELS = 1
CHUNK = 960  # 20ms at 48kHz
