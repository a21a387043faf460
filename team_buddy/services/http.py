"""
Shared helpers for outbound HTTP calls made with aiohttp.
"""

import json
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp


@asynccontextmanager
async def session_scope(
    http_session: Optional[aiohttp.ClientSession] = None,
) -> AsyncIterator[aiohttp.ClientSession]:
    """
    Yield an aiohttp session.

    A caller-supplied session is reused and left open; otherwise a new session
    is created for the duration of the block and closed afterwards.
    """
    if http_session is not None:
        yield http_session
        return

    async with aiohttp.ClientSession() as session:
        yield session


def client_timeout(seconds: float) -> aiohttp.ClientTimeout:
    """Total timeout covering connect, send and read for one request."""
    return aiohttp.ClientTimeout(total=seconds)


def is_success(status: int) -> bool:
    return 200 <= status < 300


def extract_error_message(body: str) -> str:
    """
    Pull a human-readable message out of an upstream error body.

    OpenAI errors look like ``{"error": {"message": "..."}}``. Bodies that are
    not JSON, or JSON without that field, are returned unchanged.
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return body

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    return body
