"""Flow assembly: operations plus every unclaimed transfer, in log order.

``decode_receipt`` is the whole decoding pipeline for one receipt. It does no
I/O; token metadata comes from the ``metadata_lookup`` callable.
"""

from collections.abc import Callable, Collection
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ghostflow.parser.registry import DetectorRegistry, build_default_registry
from ghostflow.parser.utils.context import DetectionContext
from ghostflow.parser.utils.operations import Operation
from ghostflow.parser.utils.transfers import (
    decode_transfer_logs,
    enrich_transfers,
    extract_native_transfers,
    next_native_position,
)
from ghostflow.parser.utils.types import NativeTransfer, TokenMetadata, TokenTransfer, TransactionReceipt


class TransferFlowItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["transfer"] = "transfer"
    log_index: int
    transfer: TokenTransfer


class OperationFlowItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["operation"] = "operation"
    log_index: int
    operation: Operation


class NativeTransferFlowItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["native-transfer"] = "native-transfer"
    log_index: int
    transfer: NativeTransfer


FlowItem = Annotated[
    Union[TransferFlowItem, OperationFlowItem, NativeTransferFlowItem],
    Field(discriminator="kind"),
]


class DecodedTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    tx_hash: str
    from_address: str
    to_address: str | None = None
    value: str = "0"
    flow: list[FlowItem] = []


def assemble_flow(
    transfers: list[TokenTransfer],
    operations: list[Operation],
    native_transfers: list[NativeTransfer],
    claimed_transfer_indices: Collection[int],
    claimed_native_indices: Collection[int],
) -> list[FlowItem]:
    """Merge operations with the unclaimed transfers, sorted by log index.

    The sort is stable: on equal positions operations precede transfers, which
    precede native transfers.
    """
    items: list[FlowItem] = [OperationFlowItem(log_index=op.log_index, operation=op) for op in operations]
    items.extend(
        TransferFlowItem(log_index=t.log_index, transfer=t)
        for idx, t in enumerate(transfers)
        if idx not in claimed_transfer_indices
    )
    items.extend(
        NativeTransferFlowItem(log_index=nt.log_index, transfer=nt)
        for idx, nt in enumerate(native_transfers)
        if idx not in claimed_native_indices
    )
    return sorted(items, key=lambda item: item.log_index)


def decode_receipt(
    receipt: TransactionReceipt,
    metadata_lookup: Callable[[str], TokenMetadata],
    registry: DetectorRegistry | None = None,
) -> DecodedTransaction:
    plain = decode_transfer_logs(receipt.logs)
    transfers = enrich_transfers(plain, metadata_lookup)
    native_transfers = extract_native_transfers(
        receipt.internal_calls,
        receipt.value,
        receipt.from_address,
        receipt.to_address or receipt.contract_address,
        next_native_position(transfers),
    )

    context = DetectionContext(receipt.logs, transfers, native_transfers, receipt.from_address)
    result = (registry or build_default_registry()).run(context)

    flow = assemble_flow(
        transfers,
        result.operations,
        native_transfers,
        result.claimed_transfer_indices,
        result.claimed_native_indices,
    )
    return DecodedTransaction(
        tx_hash=receipt.hash,
        from_address=receipt.from_address,
        to_address=receipt.to_address,
        value=receipt.value,
        flow=flow,
    )
