"""Async downloader for manifests, keys and segments."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

import aiohttp

from .errors import TransportError
from .models import FetchConfig

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Anything able to download a URL as bytes."""

    async def download(self, url: str) -> bytes:
        """Return the body of ``url``."""


class SegmentDownloader:
    """Asynchronous byte fetcher backed by aiohttp."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        config: Optional[FetchConfig] = None,
    ):
        """
        Initialize downloader.

        Args:
            session: Optional aiohttp session. If None, a new one will be created.
            config: Headers and timeouts used when the downloader creates its own session.
        """
        self.session = session
        self.config = config or FetchConfig()
        self._own_session = session is None

    async def __aenter__(self):
        if self._own_session:
            timeout = aiohttp.ClientTimeout(
                total=None,
                sock_connect=self.config.connect_timeout,
                sock_read=self.config.read_timeout,
            )
            self.session = aiohttp.ClientSession(headers=self.config.headers, timeout=timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._own_session and self.session:
            await self.session.close()
            self.session = None

    async def download(self, url: str) -> bytes:
        """
        Download a URL and return its content.

        Args:
            url: URL to download

        Returns:
            Downloaded content as bytes

        Raises:
            TransportError: The request failed or returned an error status.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized. Use 'async with' context manager.")

        logger.debug("GET %s", url)
        try:
            async with self.session.get(url) as response:
                response.raise_for_status()
                return await response.read()
        except aiohttp.ClientResponseError as exc:
            raise TransportError(url, f"HTTP {exc.status}: {exc.message}") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(url, str(exc) or type(exc).__name__) from exc
        except asyncio.TimeoutError as exc:
            raise TransportError(url, "request timed out") from exc
