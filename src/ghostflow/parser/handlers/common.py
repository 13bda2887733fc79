"""Reusable builders for operation payloads.

Every builder returns a fresh value; nothing here looks at claim state.
"""

from typing import Any

from ghostflow.parser.utils.logs import ZERO_ADDRESS
from ghostflow.parser.utils.operations import OperationToken
from ghostflow.parser.utils.types import TokenTransfer

UNKNOWN_ASSET_NAME = "Unknown"
UNKNOWN_ASSET_SYMBOL = "???"
DEFAULT_DECIMALS = 18

NATIVE_SYMBOL = "ETH"
NATIVE_NAME = "Ether"


def make_asset_fields(transfer: TokenTransfer | None, asset: str, fallback_amount: str) -> dict[str, Any]:
    """Asset fields for a lending operation.

    Without an underlying transfer the amount comes from the anchor event and
    the metadata falls back to sentinels.
    """
    if transfer is None:
        return {
            "asset": asset,
            "asset_name": UNKNOWN_ASSET_NAME,
            "asset_symbol": UNKNOWN_ASSET_SYMBOL,
            "asset_logo": None,
            "amount": fallback_amount,
            "decimals": DEFAULT_DECIMALS,
        }
    return {
        "asset": asset,
        "asset_name": transfer.token_name,
        "asset_symbol": transfer.token_symbol,
        "asset_logo": transfer.token_logo,
        "amount": transfer.value,
        "decimals": transfer.decimals,
    }


def make_token(transfer: TokenTransfer) -> OperationToken:
    return OperationToken(
        address=transfer.token_address,
        symbol=transfer.token_symbol,
        name=transfer.token_name,
        logo=transfer.token_logo,
        decimals=transfer.decimals,
        amount=transfer.value,
    )


def make_native_token(address: str, amount: str, decimals: int = DEFAULT_DECIMALS) -> OperationToken:
    """ETH shown in place of a wrapped-token leg. ``address`` stays the WETH contract."""
    return OperationToken(
        address=address,
        symbol=NATIVE_SYMBOL,
        name=NATIVE_NAME,
        logo=None,
        decimals=decimals,
        amount=amount,
        is_native=True,
    )


def make_zero_token() -> OperationToken:
    """Placeholder for an unresolved liquidity slot."""
    return OperationToken(
        address=ZERO_ADDRESS,
        symbol=UNKNOWN_ASSET_SYMBOL,
        name=UNKNOWN_ASSET_NAME,
        logo=None,
        decimals=DEFAULT_DECIMALS,
        amount="0",
    )
