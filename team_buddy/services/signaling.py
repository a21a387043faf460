"""
SDP offer/answer exchange with the OpenAI Realtime endpoint.

The offer is posted as raw ``application/sdp`` to a model-qualified URL,
authenticated with the ephemeral credential; the response body is the raw
answer SDP.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from team_buddy.config.constants import (
    DEFAULT_REALTIME_MODEL,
    DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
    LOGGER_NAME,
    OPENAI_BETA_HEADER,
    OPENAI_REALTIME_URL,
)
from team_buddy.errors import NegotiationFailed, NetworkFailure
from team_buddy.services.http import client_timeout, is_success, session_scope

logger = logging.getLogger(LOGGER_NAME)


class SignalingClient:
    """Exchanges a local SDP offer for the remote answer."""

    def __init__(
        self,
        model: str = DEFAULT_REALTIME_MODEL,
        base_url: str = OPENAI_REALTIME_URL,
        timeout: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.http_session = http_session

    async def exchange(self, offer_sdp: str, credential: str) -> str:
        """
        Post the offer and return the answer SDP.

        Args:
            offer_sdp: Session description of the committed local offer
            credential: Ephemeral bearer credential from the relay

        Returns:
            The answer session description as text

        Raises:
            NegotiationFailed: On a non-success status or an empty answer
            NetworkFailure: If the endpoint cannot be reached
        """
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/sdp",
            "OpenAI-Beta": OPENAI_BETA_HEADER,
        }

        logger.info(f"Connecting to Realtime API with model: {self.model}")
        try:
            async with session_scope(self.http_session) as session:
                async with session.post(
                    self.base_url,
                    params={"model": self.model},
                    data=offer_sdp,
                    headers=headers,
                    timeout=client_timeout(self.timeout),
                ) as response:
                    status = response.status
                    body = await response.text()
        except asyncio.TimeoutError as e:
            raise NetworkFailure(
                f"Timed out after {self.timeout}s waiting for Realtime API"
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkFailure(f"Failed to reach Realtime API: {e}") from e

        if not is_success(status):
            logger.error(f"SDP response error text: {body}")
            raise NegotiationFailed(f"WebRTC connection error: {status}")

        if not body.strip():
            raise NegotiationFailed("Realtime API returned an empty SDP answer")

        logger.info("Received answer SDP")
        return body
