"""Etherscan v2 API client: verified contract names."""

import logging
from typing import Any

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ghostflow.exceptions import ExternalServiceError, RateLimitedError
from ghostflow.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

# Etherscan v2 uses a single base URL + chainid param
BASE_URL = "https://api.etherscan.io/v2/api"

CHAIN_IDS: dict[str, int] = {
    "eth": 1,
    "ethereum": 1,
}


class EtherscanClient:
    def __init__(
        self,
        api_key: str,
        http_client: RateLimitedClient,
        chain: str = "eth",
        base_url: str = BASE_URL,
    ) -> None:
        if chain not in CHAIN_IDS:
            raise ValueError(f"Unsupported chain: {chain}")
        self._api_key = api_key
        self._chain_id = CHAIN_IDS[chain]
        self._http = http_client
        self._base_url = base_url

    @retry(
        retry=retry_if_exception_type(ExternalServiceError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
    )
    async def _call(self, params: dict[str, Any]) -> dict:
        params = {**params, "apikey": self._api_key, "chainid": self._chain_id}
        resp = await self._http.get(self._base_url, params=params)
        if resp.status_code >= 500:
            raise ExternalServiceError(f"Etherscan server error {resp.status_code}")

        data = resp.json()
        result = data.get("result")
        if data.get("status") == "0" and isinstance(result, str) and "rate limit" in result.lower():
            logger.warning("Etherscan rate limit: %s", result)
            raise RateLimitedError(f"Etherscan rate limited: {result}")
        return data

    async def get_contract_name(self, address: str) -> str | None:
        """Verified contract name, or None for EOAs and unverified contracts."""
        data = await self._call({
            "module": "contract",
            "action": "getsourcecode",
            "address": address,
        })
        result = data.get("result")
        if data.get("status") == "1" and isinstance(result, list) and result:
            return result[0].get("ContractName") or None
        return None
