"""Async HTTP client management.

Provides the shared httpx client used for token acquisition, remote store
lookups, and vault fetches. A pre-configured client can be injected (tests
use httpx.MockTransport); otherwise one is created lazily and owned here.
"""

import asyncio
from typing import Optional, Union

import httpx

from cascade.constants import DEFAULT_HTTP_TIMEOUT_SECONDS


class HttpClient:
    """Lazily created httpx.AsyncClient.

    Attributes:
        timeout: Request timeout in seconds for owned clients
        client: Underlying httpx client, None until first use
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ):
        """Initialize HTTP client holder.

        Args:
            client: Injected client; never closed by this holder
            timeout: Request timeout for a lazily created client
        """
        self.timeout = timeout
        self.client = client
        self._owned = client is None
        self._lock = asyncio.Lock()

    async def get_client(self) -> httpx.AsyncClient:
        """Return the client, creating it on first use."""
        if self.client is not None:
            return self.client

        async with self._lock:
            if self.client is None:
                self.client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
                self._owned = True
            return self.client

    async def disconnect(self) -> None:
        """Close the client if it was created here."""
        async with self._lock:
            if self.client is not None and self._owned:
                await self.client.aclose()
                self.client = None


def as_http_client(
    http_client: Union[HttpClient, httpx.AsyncClient, None],
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
) -> HttpClient:
    """Wrap an httpx client (or nothing) in an HttpClient; pass holders through."""
    if isinstance(http_client, HttpClient):
        return http_client
    return HttpClient(client=http_client, timeout=timeout)
