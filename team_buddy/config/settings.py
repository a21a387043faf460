"""
Environment-backed settings for the relay server and the realtime client.

Values are read from the process environment, optionally seeded from a ``.env``
file in the working directory. The OpenAI API key is deliberately not cached:
the relay re-reads it on every request so a missing key is reported per call.
"""

import os
from pathlib import Path
from typing import List, Optional

import dotenv
from pydantic import BaseModel, Field

from team_buddy.config.constants import (
    DEFAULT_CORS_ORIGINS,
    DEFAULT_MAX_ROOMS,
    DEFAULT_REALTIME_MODEL,
    DEFAULT_REALTIME_VOICE,
    DEFAULT_RELAY_URL,
    DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
)


def load_env_file(path: Path = Path(".") / ".env") -> bool:
    """Load variables from a .env file if it exists."""
    if path.exists():
        return dotenv.load_dotenv(path)
    return False


def get_openai_api_key() -> Optional[str]:
    """Return the server-held OpenAI API key, or None when it is not configured."""
    return os.getenv("OPENAI_API_KEY") or None


class Settings(BaseModel):
    """Runtime configuration resolved from environment variables."""

    host: str = Field("0.0.0.0", description="Host the relay binds to")
    port: int = Field(5000, description="Port the relay listens on")
    log_level: str = Field("INFO", description="Application log level")
    cors_origins: List[str] = Field(
        default_factory=lambda: [DEFAULT_CORS_ORIGINS],
        description="Origins allowed to call the relay",
    )
    realtime_model: str = Field(DEFAULT_REALTIME_MODEL, description="Realtime model id")
    realtime_voice: str = Field(DEFAULT_REALTIME_VOICE, description="Realtime voice id")
    upstream_timeout: float = Field(
        DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
        gt=0,
        description="Total timeout in seconds for upstream HTTP calls",
    )
    relay_url: str = Field(DEFAULT_RELAY_URL, description="Relay base URL used by clients")
    max_rooms: int = Field(DEFAULT_MAX_ROOMS, gt=0, description="Upper bound on tracked rooms")

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            realtime_model=os.getenv("REALTIME_MODEL", DEFAULT_REALTIME_MODEL),
            realtime_voice=os.getenv("REALTIME_VOICE", DEFAULT_REALTIME_VOICE),
            upstream_timeout=float(
                os.getenv("UPSTREAM_TIMEOUT_SECONDS", str(DEFAULT_UPSTREAM_TIMEOUT_SECONDS))
            ),
            relay_url=os.getenv("RELAY_URL", DEFAULT_RELAY_URL).rstrip("/"),
            max_rooms=int(os.getenv("MAX_ROOMS", str(DEFAULT_MAX_ROOMS))),
        )


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings.from_env()
