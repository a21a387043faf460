"""
Configuration module for the AI Team Buddy application.

Key components:
- constants: Application-wide constants such as the logger name, upstream
  endpoints, default realtime model/voice and user-facing error messages.
- logging_config: Console and rotating file logging for the relay and client.
- settings: Environment-backed settings, optionally seeded from a ``.env`` file.

Usage examples:
```python
from team_buddy.config.constants import LOGGER_NAME, DEFAULT_REALTIME_MODEL
from team_buddy.config.logging_config import configure_logging
from team_buddy.config.settings import get_settings

logger = configure_logging()
settings = get_settings()
logger.info(f"Relay listening on {settings.host}:{settings.port}")
```
"""

# Config module initialization
