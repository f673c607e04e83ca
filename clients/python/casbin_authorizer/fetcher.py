"""
HTTP retrieval of authorization payloads from a Casbin policy server.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import requests

from .errors import FetchError

logger = logging.getLogger(__name__)


class RemoteFetcher:
    """
    Fetches the serialized authorization payload for a subject.

    The server is expected to answer ``GET <endpoint>?subject=<user>`` with
    ``{"message": ..., "data": "<payload JSON>"}``. Only ``data`` is used.
    Blocking ``requests`` calls run in a worker thread so fetch() can be
    awaited from the event loop.
    """

    def __init__(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 5.0
    ):
        """
        Initialize the fetcher.

        Args:
            endpoint: Full URL of the permission endpoint
            headers: Optional HTTP headers (e.g., for authentication)
            timeout: Request timeout in seconds
        """
        self.endpoint = endpoint
        self.headers = headers or {}
        self.timeout = timeout

    async def fetch(self, user: str) -> str:
        """Fetch the payload for user. HTTP and connection errors propagate."""
        return await asyncio.to_thread(self._get, user)

    def _get(self, user: str) -> str:
        logger.info(f"Fetching authorization data for {user!r} from {self.endpoint}")

        response = requests.get(
            self.endpoint,
            params={"subject": user},
            headers=self.headers,
            timeout=self.timeout
        )
        response.raise_for_status()

        body: Any = response.json()
        if not isinstance(body, dict) or "data" not in body:
            raise FetchError(f"Response from {self.endpoint} has no 'data' field")

        data = body["data"]
        if isinstance(data, str):
            return data
        # Some servers send the payload as an object rather than a string
        return json.dumps(data)
