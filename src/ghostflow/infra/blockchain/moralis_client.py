"""Moralis EVM API client: verbose transactions and ERC-20 metadata."""

import logging
from typing import Any

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ghostflow.exceptions import ExternalServiceError, RateLimitedError, TransactionNotFoundError
from ghostflow.infra.http.rate_limited_client import RateLimitedClient
from ghostflow.parser.utils.types import (
    DecodedEvent,
    DecodedEventParam,
    InternalCall,
    RawEventLog,
    TransactionReceipt,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://deep-index.moralis.io/api/v2.2"


class MoralisClient:
    def __init__(
        self,
        http_client: RateLimitedClient,
        chain: str = "eth",
        base_url: str = BASE_URL,
    ) -> None:
        self._http = http_client
        self._chain = chain
        self._base_url = base_url.rstrip("/")

    @retry(
        retry=retry_if_exception_type(ExternalServiceError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
    )
    async def _get(self, path: str, params: list[tuple[str, str]]) -> Any:
        resp = await self._http.get(f"{self._base_url}{path}", params=params)

        if resp.status_code == 429:
            logger.warning("Moralis rate limit hit on %s", path)
            raise RateLimitedError(f"Moralis rate limited: {path}")
        if resp.status_code >= 500:
            raise ExternalServiceError(f"Moralis server error {resp.status_code}: {path}")
        return resp

    async def get_transaction_verbose(self, tx_hash: str) -> dict:
        """Raw verbose transaction JSON including decoded logs and internal transactions."""
        resp = await self._get(
            f"/transaction/{tx_hash}/verbose",
            [("chain", self._chain), ("include", "internal_transactions")],
        )
        if resp.status_code == 404:
            raise TransactionNotFoundError(tx_hash)
        if resp.status_code != 200:
            raise ExternalServiceError(f"Moralis error {resp.status_code}: {resp.text}")

        data = resp.json()
        if not data:
            raise TransactionNotFoundError(tx_hash)
        return data

    async def get_token_metadata(self, addresses: list[str]) -> list[dict]:
        """ERC-20 metadata for up to one batch of addresses."""
        if not addresses:
            return []
        params = [("chain", self._chain)]
        params.extend((f"addresses[{i}]", address) for i, address in enumerate(addresses))

        resp = await self._get("/erc20/metadata", params)
        if resp.status_code != 200:
            raise ExternalServiceError(f"Moralis metadata error {resp.status_code}: {resp.text}")

        data = resp.json()
        return data if isinstance(data, list) else []


def _parse_log(raw: dict) -> RawEventLog:
    decoded = raw.get("decoded_event")
    decoded_event = None
    if decoded:
        decoded_event = DecodedEvent(
            label=decoded.get("label"),
            signature=decoded.get("signature"),
            type=decoded.get("type"),
            params=[
                DecodedEventParam(name=p.get("name", ""), type=p.get("type", ""), value=p.get("value"))
                for p in decoded.get("params") or []
            ],
        )
    return RawEventLog(
        address=raw["address"],
        topic0=raw.get("topic0"),
        topic1=raw.get("topic1"),
        topic2=raw.get("topic2"),
        topic3=raw.get("topic3"),
        data=raw.get("data") or "0x",
        log_index=int(raw["log_index"]),
        decoded_event=decoded_event,
    )


def _parse_internal_call(raw: dict) -> InternalCall:
    return InternalCall(
        from_address=raw.get("from") or "",
        to_address=raw.get("to") or "",
        value=str(raw.get("value") or "0"),
        error=raw.get("error") or None,
    )


def parse_verbose_transaction(payload: dict) -> TransactionReceipt:
    """Convert a Moralis verbose transaction payload into a TransactionReceipt."""
    return TransactionReceipt(
        hash=payload["hash"],
        from_address=payload["from_address"],
        to_address=payload.get("to_address"),
        contract_address=payload.get("receipt_contract_address") or None,
        value=str(payload.get("value") or "0"),
        logs=[_parse_log(log) for log in payload.get("logs") or []],
        internal_calls=[_parse_internal_call(c) for c in payload.get("internal_transactions") or []],
    )
