"""TransactionDecoder: fetch a receipt, prefetch token metadata, decode the flow."""

import logging

from ghostflow.exceptions import InvalidTransactionHashError
from ghostflow.infra.blockchain.moralis_client import MoralisClient, parse_verbose_transaction
from ghostflow.parser.flow import DecodedTransaction, decode_receipt
from ghostflow.parser.registry import DetectorRegistry, build_default_registry
from ghostflow.parser.utils.formatting import validate_tx_hash
from ghostflow.parser.utils.transfers import decode_transfer_logs
from ghostflow.services.token_metadata import TokenMetadataService

logger = logging.getLogger(__name__)


class TransactionDecoder:
    def __init__(
        self,
        moralis: MoralisClient,
        metadata: TokenMetadataService,
        registry: DetectorRegistry | None = None,
    ) -> None:
        self._moralis = moralis
        self._metadata = metadata
        self._registry = registry or build_default_registry()

    async def decode(self, tx_hash: str) -> DecodedTransaction:
        tx_hash = tx_hash.strip()
        error = validate_tx_hash(tx_hash)
        if error is not None:
            raise InvalidTransactionHashError(error)

        payload = await self._moralis.get_transaction_verbose(tx_hash)
        receipt = parse_verbose_transaction(payload)

        # Metadata is fetched up front so decoding itself stays synchronous
        token_addresses = list(dict.fromkeys(t.token_address for t in decode_transfer_logs(receipt.logs)))
        await self._metadata.get_many(token_addresses)

        decoded = decode_receipt(receipt, self._metadata.lookup, self._registry)
        logger.info("Decoded %s: %d flow items", decoded.tx_hash, len(decoded.flow))
        return decoded
