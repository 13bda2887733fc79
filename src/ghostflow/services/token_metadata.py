"""TokenMetadataService: per-process ERC-20 metadata cache backed by Moralis."""

import logging

import httpx
from tenacity import RetryError

from ghostflow.exceptions import ExternalServiceError
from ghostflow.infra.blockchain.moralis_client import MoralisClient
from ghostflow.parser.utils.types import TokenMetadata

logger = logging.getLogger(__name__)

UNKNOWN_TOKEN_NAME = "Unknown Token"
UNKNOWN_TOKEN_SYMBOL = "UNKNOWN"
DEFAULT_DECIMALS = 18
# Moralis accepts up to 25 addresses per metadata request
BATCH_SIZE = 25


def fallback_metadata(address: str) -> TokenMetadata:
    return TokenMetadata(
        address=address.lower(),
        name=UNKNOWN_TOKEN_NAME,
        symbol=UNKNOWN_TOKEN_SYMBOL,
        decimals=DEFAULT_DECIMALS,
        logo=None,
    )


def _to_metadata(raw: dict) -> TokenMetadata:
    decimals = raw.get("decimals")
    return TokenMetadata(
        address=raw["address"].lower(),
        name=raw.get("name") or UNKNOWN_TOKEN_NAME,
        symbol=raw.get("symbol") or UNKNOWN_TOKEN_SYMBOL,
        decimals=int(decimals) if decimals not in (None, "") else DEFAULT_DECIMALS,
        logo=raw.get("logo") or None,
    )


class TokenMetadataService:
    """Cache lookup -> batched provider fetch -> cache store.

    Failed batches get fallback records that are returned but never cached, so
    a later call retries them.
    """

    def __init__(self, moralis: MoralisClient, batch_size: int = BATCH_SIZE) -> None:
        self._moralis = moralis
        self._batch_size = batch_size
        self._cache: dict[str, TokenMetadata] = {}

    async def get_many(self, addresses: list[str]) -> dict[str, TokenMetadata]:
        result: dict[str, TokenMetadata] = {}
        uncached: list[str] = []
        for address in addresses:
            key = address.lower()
            if key in self._cache:
                result[key] = self._cache[key]
            elif key not in uncached:
                uncached.append(key)

        for start in range(0, len(uncached), self._batch_size):
            batch = uncached[start:start + self._batch_size]
            try:
                tokens = await self._moralis.get_token_metadata(batch)
            except (ExternalServiceError, RetryError, httpx.HTTPError) as exc:
                logger.warning("Token metadata batch of %d failed: %s", len(batch), exc)
                for key in batch:
                    result[key] = fallback_metadata(key)
                continue

            for raw in tokens:
                if not raw.get("address"):
                    continue
                meta = _to_metadata(raw)
                self._cache[meta.address] = meta
                result[meta.address] = meta

        for address in addresses:
            key = address.lower()
            if key not in result:
                result[key] = fallback_metadata(key)
        return result

    def lookup(self, address: str) -> TokenMetadata:
        """Synchronous lookup for enrich_transfers; call get_many first."""
        return self._cache.get(address.lower()) or fallback_metadata(address)

    def clear(self) -> None:
        self._cache.clear()
