"""
Single-endpoint HTTP fetcher

Issues one GET per call against the upstream base URL with the fixed
client identification headers. Never retries; failures surface as
NetworkError (non-2xx) or TransportError (connection, timeout, bad JSON).
"""

import asyncio
import json
import logging
import time
from typing import Any, Optional

import aiohttp

from .config import ApiConfig
from .errors import NetworkError, TransportError

logger = logging.getLogger(__name__)


class Fetcher:
    """Thin aiohttp wrapper for the status API"""

    def __init__(self, config: ApiConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def open(self):
        """Create the HTTP session if one was not supplied"""
        if self.session is not None:
            return

        timeout = aiohttp.ClientTimeout(
            total=self.config.request_timeout,
            connect=self.config.connect_timeout
        )
        connector = aiohttp.TCPConnector(
            limit=self.config.max_concurrent_requests,
            keepalive_timeout=30,
            enable_cleanup_closed=True
        )

        self.session = aiohttp.ClientSession(
            timeout=timeout,
            connector=connector,
            headers=self.config.get_headers()
        )
        self._owns_session = True

    async def close(self):
        """Close the HTTP session if this fetcher created it"""
        if self.session is not None and self._owns_session:
            await self.session.close()
        self.session = None

    async def __aenter__(self) -> 'Fetcher':
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def build_url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def fetch(self, path: str) -> Any:
        """GET one endpoint and return its parsed JSON body"""
        if self.session is None:
            await self.open()

        url = self.build_url(path)
        start_time = time.time()

        try:
            async with self.session.get(url, headers=self.config.get_headers()) as response:
                if not 200 <= response.status < 300:
                    raise NetworkError(path, response.status, response.reason)

                try:
                    data = await response.json(content_type=None)
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    raise TransportError(path, f"Invalid JSON: {e}") from e

        except asyncio.TimeoutError as e:
            raise TransportError(path, "Request timeout") from e
        except aiohttp.ClientError as e:
            raise TransportError(path, str(e) or type(e).__name__) from e

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"Fetched {url} in {duration_ms}ms")
        return data
