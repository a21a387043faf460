"""
Credential relay: exchanges the server-held OpenAI API key for an ephemeral
Realtime session.

The relay is stateless. Each call makes exactly one upstream POST and either
returns the upstream JSON untouched or raises one of ConfigurationMissing,
UpstreamRejected or NetworkFailure. Nothing is retried.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from team_buddy.config.constants import (
    DEFAULT_REALTIME_MODEL,
    DEFAULT_REALTIME_VOICE,
    DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
    ERROR_API_KEY_MISSING,
    LOGGER_NAME,
    OPENAI_BETA_HEADER,
    OPENAI_SESSIONS_URL,
)
from team_buddy.config.settings import get_openai_api_key
from team_buddy.errors import ConfigurationMissing, NetworkFailure, UpstreamRejected
from team_buddy.services.http import (
    client_timeout,
    extract_error_message,
    is_success,
    session_scope,
)

logger = logging.getLogger(LOGGER_NAME)


async def create_session(
    api_key: Optional[str] = None,
    model: str = DEFAULT_REALTIME_MODEL,
    voice: str = DEFAULT_REALTIME_VOICE,
    timeout: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
    url: str = OPENAI_SESSIONS_URL,
    http_session: Optional[aiohttp.ClientSession] = None,
) -> Dict[str, Any]:
    """
    Create an ephemeral Realtime session with OpenAI.

    Args:
        api_key: OpenAI API key; read from OPENAI_API_KEY when omitted
        model: Realtime model identifier
        voice: Voice identifier for the model's audio output
        timeout: Total timeout in seconds for the upstream call
        url: Session creation endpoint
        http_session: Optional aiohttp session to reuse

    Returns:
        The upstream session JSON, including ``client_secret.value``

    Raises:
        ConfigurationMissing: If no API key is configured
        UpstreamRejected: If OpenAI answers with a non-success status
        NetworkFailure: If OpenAI cannot be reached or the call times out
    """
    if api_key is None:
        api_key = get_openai_api_key()
    if not api_key:
        logger.error("OpenAI API key is missing!")
        raise ConfigurationMissing(ERROR_API_KEY_MISSING)

    logger.info(f"Creating session with OpenAI API (model={model}, voice={voice})")
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "OpenAI-Beta": OPENAI_BETA_HEADER,
    }
    payload = {"model": model, "voice": voice}

    try:
        async with session_scope(http_session) as session:
            async with session.post(
                url, headers=headers, json=payload, timeout=client_timeout(timeout)
            ) as response:
                logger.info(f"OpenAI API response status: {response.status}")
                body = await response.text()
    except asyncio.TimeoutError as e:
        logger.error(f"Timeout while creating session (after {timeout}s)")
        raise NetworkFailure(f"Timed out after {timeout}s waiting for OpenAI API") from e
    except aiohttp.ClientError as e:
        logger.error(f"Failed to reach OpenAI API: {e}")
        raise NetworkFailure(f"Failed to reach OpenAI API: {e}") from e

    if not is_success(response.status):
        logger.error(f"OpenAI API error response text: {body}")
        raise UpstreamRejected(response.status, extract_error_message(body))

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise UpstreamRejected(response.status, f"Invalid JSON in session response: {e}") from e

    logger.info("Session created successfully")
    logger.debug(f"Session response: {data}")
    return data
