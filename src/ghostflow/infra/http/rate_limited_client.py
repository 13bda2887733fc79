import asyncio
import logging
import time

import httpx

logger = logging.getLogger(__name__)


class RateLimitedClient:
    """Async HTTP GET client that spaces requests at least ``1 / rate_per_second`` apart.

    A 429 response carrying ``Retry-After`` pushes the next free slot back by
    that many seconds, so every caller sharing the client waits it out.
    """

    def __init__(
        self,
        rate_per_second: float = 5.0,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._min_interval = 1.0 / rate_per_second
        self._next_slot = 0.0
        self._lock = asyncio.Lock()
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)

    async def _wait_for_slot(self) -> None:
        async with self._lock:
            delay = self._next_slot - time.monotonic()
            if delay > 0:
                await asyncio.sleep(delay)
            self._next_slot = time.monotonic() + self._min_interval

    def _defer(self, response: httpx.Response) -> None:
        retry_after = response.headers.get("Retry-After")
        if retry_after is None:
            return
        try:
            seconds = float(retry_after)
        except ValueError:
            return
        self._next_slot = max(self._next_slot, time.monotonic() + seconds)
        logger.warning("Server asked to back off %.1fs (%s)", seconds, response.request.url.host)

    async def get(self, url: str, params: dict | list | None = None) -> httpx.Response:
        await self._wait_for_slot()
        response = await self._client.get(url, params=params)
        logger.debug("GET %s -> %d", url, response.status_code)
        if response.status_code == 429:
            self._defer(response)
        return response

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RateLimitedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
