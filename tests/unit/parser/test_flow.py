"""Tests for flow assembly and the full decode_receipt pipeline."""

from fixtures import tx_eth_to_token_v4, tx_eth_to_wlfi_v3, tx_mtk_to_eth_v2
from fixtures.tokens import lookup_known_token

from ghostflow.infra.blockchain.moralis_client import parse_verbose_transaction
from ghostflow.parser.flow import (
    NativeTransferFlowItem,
    OperationFlowItem,
    TransferFlowItem,
    assemble_flow,
    decode_receipt,
)
from ghostflow.parser.registry import DetectorRegistry
from ghostflow.parser.utils.operations import OperationToken, UniswapSwapOperation
from ghostflow.parser.utils.types import NativeTransfer, TokenTransfer, TransactionReceipt

USER = "0x1111111111111111111111111111111111111111"
POOL = "0x2222222222222222222222222222222222222222"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"


def _make_transfer(log_index: int, value: str = "1") -> TokenTransfer:
    return TokenTransfer(
        from_address=USER,
        to_address=POOL,
        token_address=USDC,
        value=value,
        log_index=log_index,
        token_name="USD Coin",
        token_symbol="USDC",
        decimals=6,
    )


def _make_swap(log_index: int) -> UniswapSwapOperation:
    token = OperationToken(address=USDC, symbol="USDC", name="USD Coin", decimals=6, amount="1")
    return UniswapSwapOperation(
        log_index=log_index, version="v3", token_in=token, token_out=token, sender=USER, recipient=USER,
    )


class TestAssembleFlow:
    def test_unclaimed_items_sorted_by_log_index(self):
        transfers = [_make_transfer(5), _make_transfer(1), _make_transfer(3)]
        natives = [NativeTransfer(from_address=POOL, to_address=USER, amount="7", log_index=6)]
        flow = assemble_flow(transfers, [_make_swap(2)], natives, {2}, set())

        assert [item.log_index for item in flow] == [1, 2, 5, 6]
        assert [item.kind for item in flow] == ["transfer", "operation", "transfer", "native-transfer"]

    def test_claimed_items_hidden(self):
        transfers = [_make_transfer(1), _make_transfer(2)]
        natives = [NativeTransfer(from_address=POOL, to_address=USER, amount="7", log_index=3)]
        flow = assemble_flow(transfers, [], natives, {0, 1}, {0})
        assert flow == []

    def test_equal_log_index_keeps_insertion_order(self):
        flow = assemble_flow([_make_transfer(4)], [_make_swap(4)], [], set(), set())
        assert isinstance(flow[0], OperationFlowItem)
        assert isinstance(flow[1], TransferFlowItem)

    def test_nothing_lost(self):
        transfers = [_make_transfer(i) for i in range(6)]
        claimed = {1, 4}
        flow = assemble_flow(transfers, [_make_swap(1)], [], claimed, set())
        shown = [item for item in flow if isinstance(item, TransferFlowItem)]
        assert len(shown) + len(claimed) == len(transfers)


class TestDecodeReceipt:
    def test_v2_sell_keeps_tax_transfer_visible(self, metadata_lookup):
        receipt = parse_verbose_transaction(tx_mtk_to_eth_v2.PAYLOAD)
        decoded = decode_receipt(receipt, metadata_lookup)

        assert decoded.tx_hash == tx_mtk_to_eth_v2.TX_HASH
        assert decoded.from_address == tx_mtk_to_eth_v2.FROM_ADDRESS
        operations = [item for item in decoded.flow if isinstance(item, OperationFlowItem)]
        transfers = [item for item in decoded.flow if isinstance(item, TransferFlowItem)]
        natives = [item for item in decoded.flow if isinstance(item, NativeTransferFlowItem)]

        assert len(operations) == 1
        assert operations[0].operation.type == "uniswap-swap"
        assert operations[0].log_index == 803
        assert len(transfers) == 1
        assert transfers[0].transfer.to_address == tx_mtk_to_eth_v2.FEE_RECIPIENT
        assert transfers[0].transfer.value == tx_mtk_to_eth_v2.MTK_TAX_AMOUNT
        # WETH -> router unwrap is not part of the swap
        assert len(natives) == 1
        log_indices = [item.log_index for item in decoded.flow]
        assert log_indices == sorted(log_indices)

    def test_v3_buy_collapses_to_single_operation(self, metadata_lookup):
        receipt = parse_verbose_transaction(tx_eth_to_wlfi_v3.PAYLOAD)
        decoded = decode_receipt(receipt, metadata_lookup)

        operations = [item for item in decoded.flow if isinstance(item, OperationFlowItem)]
        assert len(operations) == 1
        assert operations[0].operation.token_out.amount == tx_eth_to_wlfi_v3.WLFI_AMOUNT
        assert decoded.value == tx_eth_to_wlfi_v3.VALUE

    def test_v4_buy(self, metadata_lookup):
        receipt = parse_verbose_transaction(tx_eth_to_token_v4.PAYLOAD)
        decoded = decode_receipt(receipt, metadata_lookup)

        operations = [item.operation for item in decoded.flow if isinstance(item, OperationFlowItem)]
        assert [op.version for op in operations] == ["v4"]

    def test_empty_registry_shows_raw_movements(self):
        receipt = parse_verbose_transaction(tx_mtk_to_eth_v2.PAYLOAD)
        decoded = decode_receipt(receipt, lookup_known_token, registry=DetectorRegistry())

        assert not any(isinstance(item, OperationFlowItem) for item in decoded.flow)
        assert sum(isinstance(item, TransferFlowItem) for item in decoded.flow) == 3
        assert sum(isinstance(item, NativeTransferFlowItem) for item in decoded.flow) == 2

    def test_plain_eth_send(self, metadata_lookup):
        receipt = TransactionReceipt(hash="0x" + "ab" * 32, from_address=USER, to_address=POOL, value="1000")
        decoded = decode_receipt(receipt, metadata_lookup)

        assert len(decoded.flow) == 1
        item = decoded.flow[0]
        assert isinstance(item, NativeTransferFlowItem)
        assert item.transfer.amount == "1000"
        assert item.transfer.to_address == POOL

    def test_decoding_is_deterministic(self, metadata_lookup):
        receipt = parse_verbose_transaction(tx_eth_to_wlfi_v3.PAYLOAD)
        assert decode_receipt(receipt, metadata_lookup) == decode_receipt(receipt, metadata_lookup)

    def test_contract_creation_value_kept(self, metadata_lookup):
        created = "0x9999999999999999999999999999999999999999"
        receipt = TransactionReceipt(hash="0x" + "cd" * 32, from_address=USER, contract_address=created, value="42")
        decoded = decode_receipt(receipt, metadata_lookup)

        assert len(decoded.flow) == 1
        assert decoded.flow[0].transfer.to_address == created
        assert decoded.flow[0].transfer.amount == "42"
