"""Protocol operation variants and detector results.

Operations form a closed tagged union on ``type``. Consumers match on the
discriminant; adding a protocol means adding a variant plus a detector.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Operation(BaseModel):
    model_config = ConfigDict(frozen=True)

    log_index: int


class _LendingOperation(_Operation):
    asset: str
    asset_name: str
    asset_symbol: str
    asset_logo: str | None = None
    amount: str
    decimals: int = 18


class AaveSupplyOperation(_LendingOperation):
    type: Literal["aave-supply"] = "aave-supply"
    supplier: str
    on_behalf_of: str | None = None


class AaveBorrowOperation(_LendingOperation):
    type: Literal["aave-borrow"] = "aave-borrow"
    borrower: str


class AaveRepayOperation(_LendingOperation):
    type: Literal["aave-repay"] = "aave-repay"
    repayer: str
    on_behalf_of: str | None = None


class AaveWithdrawOperation(_LendingOperation):
    type: Literal["aave-withdraw"] = "aave-withdraw"
    withdrawer: str
    to: str | None = None


class OperationToken(BaseModel):
    """One side of a swap or one slot of a liquidity position."""

    model_config = ConfigDict(frozen=True)

    address: str
    symbol: str
    name: str
    logo: str | None = None
    decimals: int = 18
    amount: str
    is_native: bool = False


class UniswapSwapOperation(_Operation):
    type: Literal["uniswap-swap"] = "uniswap-swap"
    version: Literal["v2", "v3", "v4"]
    token_in: OperationToken
    token_out: OperationToken
    sender: str
    recipient: str
    hops: int = 1
    # "contract-mediated" marks the log-proximity fallback; treat it as best effort
    resolution: Literal["direct", "contract-mediated"] = "direct"


class UniswapAddLiquidityOperation(_Operation):
    type: Literal["uniswap-add-liquidity"] = "uniswap-add-liquidity"
    version: Literal["v2", "v3"]
    token0: OperationToken
    token1: OperationToken
    provider: str


class UniswapRemoveLiquidityOperation(_Operation):
    type: Literal["uniswap-remove-liquidity"] = "uniswap-remove-liquidity"
    version: Literal["v2", "v3"]
    token0: OperationToken
    token1: OperationToken
    recipient: str


class UniswapCollectFeesOperation(_Operation):
    type: Literal["uniswap-collect-fees"] = "uniswap-collect-fees"
    version: Literal["v3"] = "v3"
    token0: OperationToken
    token1: OperationToken
    collector: str


Operation = Annotated[
    Union[
        AaveSupplyOperation,
        AaveBorrowOperation,
        AaveRepayOperation,
        AaveWithdrawOperation,
        UniswapSwapOperation,
        UniswapAddLiquidityOperation,
        UniswapRemoveLiquidityOperation,
        UniswapCollectFeesOperation,
    ],
    Field(discriminator="type"),
]


class DetectionResult(BaseModel):
    """Output of one detector run. Claims are indices, never removals."""

    model_config = ConfigDict(frozen=True)

    detector_name: str = ""
    operations: list[Operation] = []
    claimed_transfer_indices: frozenset[int] = frozenset()
    claimed_native_indices: frozenset[int] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.operations and not self.claimed_transfer_indices and not self.claimed_native_indices
