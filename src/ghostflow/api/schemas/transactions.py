from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from ghostflow.parser.flow import (
    DecodedTransaction,
    FlowItem,
    NativeTransferFlowItem,
    OperationFlowItem,
    TransferFlowItem,
)
from ghostflow.parser.handlers.common import DEFAULT_DECIMALS
from ghostflow.parser.utils.formatting import format_transfer_amount
from ghostflow.parser.utils.operations import Operation
from ghostflow.parser.utils.types import NativeTransfer, TokenTransfer


class TransferItemResponse(BaseModel):
    kind: Literal["transfer"] = "transfer"
    log_index: int
    transfer: TokenTransfer
    display_amount: str


class NativeTransferItemResponse(BaseModel):
    kind: Literal["native-transfer"] = "native-transfer"
    log_index: int
    transfer: NativeTransfer
    display_amount: str


class OperationItemResponse(BaseModel):
    kind: Literal["operation"] = "operation"
    log_index: int
    operation: Operation


FlowItemResponse = Annotated[
    Union[TransferItemResponse, NativeTransferItemResponse, OperationItemResponse],
    Field(discriminator="kind"),
]


class DecodedTransactionResponse(BaseModel):
    tx_hash: str
    from_address: str
    to_address: Optional[str]
    value: str
    flow: list[FlowItemResponse]


class ContractNameResponse(BaseModel):
    address: str
    name: Optional[str]


def _flow_item_response(item: FlowItem) -> FlowItemResponse:
    if isinstance(item, TransferFlowItem):
        return TransferItemResponse(
            log_index=item.log_index,
            transfer=item.transfer,
            display_amount=format_transfer_amount(item.transfer.value, item.transfer.decimals),
        )
    if isinstance(item, NativeTransferFlowItem):
        return NativeTransferItemResponse(
            log_index=item.log_index,
            transfer=item.transfer,
            display_amount=format_transfer_amount(item.transfer.amount, DEFAULT_DECIMALS),
        )
    if isinstance(item, OperationFlowItem):
        return OperationItemResponse(log_index=item.log_index, operation=item.operation)
    raise TypeError(f"Unsupported flow item: {type(item).__name__}")


def to_response(decoded: DecodedTransaction) -> DecodedTransactionResponse:
    return DecodedTransactionResponse(
        tx_hash=decoded.tx_hash,
        from_address=decoded.from_address,
        to_address=decoded.to_address,
        value=decoded.value,
        flow=[_flow_item_response(item) for item in decoded.flow],
    )
