"""
Client side of the credential relay.

RelayClient asks the relay for a fresh Realtime session and hands back only
the bearer value from ``client_secret.value``. It is called once per session
by the connection manager.
"""

import asyncio
import json
import logging
from typing import Optional

import aiohttp

from team_buddy.config.constants import (
    DEFAULT_RELAY_URL,
    DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
    ERROR_NO_CLIENT_SECRET,
    LOGGER_NAME,
)
from team_buddy.errors import NegotiationFailed, NetworkFailure, UpstreamRejected
from team_buddy.services.http import client_timeout, is_success, session_scope

logger = logging.getLogger(LOGGER_NAME)


class RelayClient:
    """Fetches Session Credentials from the relay's ``POST /session`` endpoint."""

    def __init__(
        self,
        relay_url: str = DEFAULT_RELAY_URL,
        timeout: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        self.relay_url = relay_url.rstrip("/")
        self.timeout = timeout
        self.http_session = http_session

    async def fetch_credential(self) -> str:
        """
        Request a new session from the relay.

        Returns:
            The ephemeral bearer credential

        Raises:
            UpstreamRejected: If the relay answers with a non-success status;
                the message is the relay's ``details`` field when present
            NegotiationFailed: If the response carries no client secret
            NetworkFailure: If the relay cannot be reached
        """
        url = f"{self.relay_url}/session"
        logger.info(f"Fetching session token from {url}")

        try:
            async with session_scope(self.http_session) as session:
                async with session.post(
                    url,
                    json={},
                    headers={"Content-Type": "application/json"},
                    timeout=client_timeout(self.timeout),
                ) as response:
                    status = response.status
                    body = await response.text()
        except asyncio.TimeoutError as e:
            raise NetworkFailure(f"Timed out after {self.timeout}s waiting for relay") from e
        except aiohttp.ClientError as e:
            raise NetworkFailure(f"Failed to reach relay: {e}") from e

        if not is_success(status):
            logger.error(f"Token fetch error: {body}")
            message = self._error_details(body) or f"HTTP error! status: {status}"
            raise UpstreamRejected(status, message, text=message)

        try:
            session_data = json.loads(body)
        except json.JSONDecodeError as e:
            raise NegotiationFailed(f"Invalid JSON in session response: {e}") from e

        secret = session_data.get("client_secret") if isinstance(session_data, dict) else None
        value = secret.get("value") if isinstance(secret, dict) else None
        if not value:
            raise NegotiationFailed(ERROR_NO_CLIENT_SECRET)

        logger.info("Ephemeral key obtained")
        return value

    @staticmethod
    def _error_details(body: str) -> Optional[str]:
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return None
        if isinstance(payload, dict) and payload.get("details"):
            return str(payload["details"])
        return None
