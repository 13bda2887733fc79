"""Extract token and native transfers from receipt data."""

import logging
from collections.abc import Callable

from ghostflow.parser.utils.logs import (
    ERC20_TRANSFER_SIGNATURE,
    ERC20_TRANSFER_TOPIC0,
    address_from_topic,
    decode_uint256_data,
)
from ghostflow.parser.utils.types import (
    InternalCall,
    NativeTransfer,
    PlainTransfer,
    RawEventLog,
    TokenMetadata,
    TokenTransfer,
)

logger = logging.getLogger(__name__)


def _from_decoded_event(log: RawEventLog) -> PlainTransfer | None:
    event = log.decoded_event
    if event is None or event.signature != ERC20_TRANSFER_SIGNATURE:
        return None

    from_addr = event.param("from")
    to_addr = event.param("to")
    value = event.param("value", "amount")
    if from_addr is None or to_addr is None or value is None:
        return None

    try:
        amount = int(value)
    except (TypeError, ValueError):
        return None

    return PlainTransfer(
        from_address=str(from_addr),
        to_address=str(to_addr),
        token_address=log.address,
        value=str(amount),
        log_index=log.log_index,
    )


def _from_raw_topics(log: RawEventLog) -> PlainTransfer | None:
    if log.topic0 is None or log.topic0.lower() != ERC20_TRANSFER_TOPIC0:
        return None

    if not log.topic1 or not log.topic2:
        logger.warning(
            "Skipping Transfer log %d from %s: missing topic1/topic2",
            log.log_index, log.address,
        )
        return None

    try:
        value = decode_uint256_data(log.data)
    except ValueError:
        logger.warning("Skipping Transfer log %d from %s: undecodable data", log.log_index, log.address)
        return None

    return PlainTransfer(
        from_address=address_from_topic(log.topic1),
        to_address=address_from_topic(log.topic2),
        token_address=log.address,
        value=value,
        log_index=log.log_index,
    )


def decode_transfer_logs(logs: list[RawEventLog]) -> list[PlainTransfer]:
    """Turn receipt logs into ERC-20 transfers, in log order.

    The provider's decoded event is preferred; when it is absent or lacks
    from/to/amount the raw topics are decoded instead.
    """
    transfers: list[PlainTransfer] = []
    for log in logs:
        transfer = _from_decoded_event(log) or _from_raw_topics(log)
        if transfer is not None:
            transfers.append(transfer)
    return transfers


def extract_native_transfers(
    internal_calls: list[InternalCall],
    top_level_value: str | int | None,
    top_level_from: str,
    top_level_to: str | None,
    start_position: int,
) -> list[NativeTransfer]:
    """Top-level value first (if nonzero), then each value-bearing internal call."""
    transfers: list[NativeTransfer] = []
    position = start_position

    value = int(top_level_value or 0)
    if value > 0:
        # contract creation without a known address still moved the value
        transfers.append(NativeTransfer(
            from_address=top_level_from,
            to_address=top_level_to or "",
            amount=str(value),
            log_index=position,
        ))
        position += 1

    for call in internal_calls:
        if int(call.value or 0) <= 0:
            continue
        # Reverted calls moved no value
        if call.error:
            continue
        transfers.append(NativeTransfer(
            from_address=call.from_address,
            to_address=call.to_address,
            amount=str(int(call.value)),
            log_index=position,
        ))
        position += 1

    return transfers


def enrich_transfers(
    plain: list[PlainTransfer],
    metadata_lookup: Callable[[str], TokenMetadata],
) -> list[TokenTransfer]:
    """Attach token metadata. ``metadata_lookup`` must answer for every address."""
    enriched: list[TokenTransfer] = []
    for transfer in plain:
        meta = metadata_lookup(transfer.token_address)
        enriched.append(TokenTransfer(
            **transfer.model_dump(),
            token_name=meta.name,
            token_symbol=meta.symbol,
            token_logo=meta.logo,
            decimals=meta.decimals,
        ))
    return enriched


def next_native_position(transfers: list[TokenTransfer] | list[PlainTransfer]) -> int:
    """One past the highest log index used by token transfers (0 if none)."""
    if not transfers:
        return 0
    return max(t.log_index for t in transfers) + 1
