"""Reusable handling for WETH wrap/unwrap at router and position-manager boundaries.

When a router wraps ETH (or unwraps WETH), the user's side of the trade is a
native transfer rather than the WETH leg the pool saw.
"""

from collections.abc import Collection

from ghostflow.parser.defi.uniswap_constants import WETH_ADDRESS
from ghostflow.parser.handlers.common import make_native_token
from ghostflow.parser.utils.context import DetectionContext
from ghostflow.parser.utils.operations import OperationToken
from ghostflow.parser.utils.types import TokenTransfer


def is_weth(transfer: TokenTransfer | None) -> bool:
    return transfer is not None and transfer.token_address.lower() == WETH_ADDRESS


def find_native_leg(
    context: DetectionContext,
    exclude: Collection[int],
    *,
    from_address: str | None = None,
    to_address: str | None = None,
    from_any: Collection[str] | None = None,
    to_any: Collection[str] | None = None,
) -> int | None:
    """First unclaimed native transfer matching every given constraint.

    ``from_any`` / ``to_any`` are sets of lowercase addresses.
    """
    def matches(nt) -> bool:
        sender = nt.from_address.lower()
        receiver = nt.to_address.lower()
        if from_address is not None and sender != from_address.lower():
            return False
        if to_address is not None and receiver != to_address.lower():
            return False
        if from_any is not None and sender not in from_any:
            return False
        if to_any is not None and receiver not in to_any:
            return False
        return True

    return context.find_native(matches, exclude=set(exclude))


def as_native(transfer: TokenTransfer, native_amount: str) -> OperationToken:
    """Present a WETH leg as ETH, using the native leg's own amount."""
    return make_native_token(transfer.token_address, native_amount, transfer.decimals)
