"""ContractNameService: cached verified-contract names with in-flight de-duplication."""

import asyncio
import logging

import httpx
from tenacity import RetryError

from ghostflow.exceptions import ExternalServiceError
from ghostflow.infra.blockchain.etherscan_client import EtherscanClient

logger = logging.getLogger(__name__)


class ContractNameService:
    def __init__(self, etherscan: EtherscanClient) -> None:
        self._etherscan = etherscan
        self._cache: dict[str, str | None] = {}
        self._in_flight: dict[str, asyncio.Future[str | None]] = {}

    async def get_name(self, address: str) -> str | None:
        """Verified name, or None for EOAs, unverified contracts and provider failures."""
        key = address.lower()
        if key in self._cache:
            return self._cache[key]
        if key in self._in_flight:
            return await asyncio.shield(self._in_flight[key])

        future: asyncio.Future[str | None] = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            name = await self._fetch(key)
        except BaseException:
            future.cancel()
            raise
        else:
            future.set_result(name)
        finally:
            del self._in_flight[key]
        return name

    async def _fetch(self, key: str) -> str | None:
        try:
            name = await self._etherscan.get_contract_name(key)
        except (ExternalServiceError, RetryError, httpx.HTTPError, ValueError) as exc:
            # Not cached: the next request retries
            logger.warning("Contract name lookup for %s failed: %s", key, exc)
            return None
        self._cache[key] = name
        return name

    def clear(self) -> None:
        self._cache.clear()
