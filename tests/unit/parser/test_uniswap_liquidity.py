"""Tests for UniswapLiquidityDetector: V3 add/remove/collect, V2 add/remove."""

import logging

from fixtures.tokens import lookup_known_token

from ghostflow.parser.defi.uniswap_constants import (
    UNISWAP_V2_ROUTER02,
    UNISWAP_V3_NPM,
    V2_BURN_TOPIC0,
    V2_MINT_TOPIC0,
    V3_DECREASE_LIQUIDITY_TOPIC0,
    V3_INCREASE_LIQUIDITY_TOPIC0,
    V3_NPM_COLLECT_TOPIC0,
    V3_POOL_BURN_TOPIC0,
    V3_POOL_COLLECT_TOPIC0,
    V3_POOL_MINT_TOPIC0,
    WETH_ADDRESS,
)
from ghostflow.parser.defi.uniswap_liquidity import detect_liquidity_operations
from ghostflow.parser.utils.create2 import compute_v2_pair_address, compute_v3_pool_address
from ghostflow.parser.utils.logs import ZERO_ADDRESS
from ghostflow.parser.utils.types import NativeTransfer, RawEventLog, TokenTransfer

USER = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
TOKEN_ID_1 = "0x" + "0" * 63 + "1"
TOKEN_ID_2 = "0x" + "0" * 63 + "2"


def _make_log(address: str, topic0: str, log_index: int, topic1: str | None = None, topic2: str | None = None) -> RawEventLog:
    return RawEventLog(address=address, topic0=topic0, topic1=topic1, topic2=topic2, data="0x", log_index=log_index)


def _make_transfer(from_address: str, to_address: str, token: str, value: str, log_index: int) -> TokenTransfer:
    meta = lookup_known_token(token)
    return TokenTransfer(
        from_address=from_address,
        to_address=to_address,
        token_address=token,
        value=value,
        log_index=log_index,
        token_name=meta.name,
        token_symbol=meta.symbol,
        decimals=meta.decimals,
    )


def _native(from_address: str, to_address: str, amount: str, log_index: int) -> NativeTransfer:
    return NativeTransfer(from_address=from_address, to_address=to_address, amount=amount, log_index=log_index)


def _topic(address: str) -> str:
    return "0x" + "0" * 24 + address[2:].lower()


class TestEmpty:
    def test_no_anchors(self):
        result = detect_liquidity_operations([], [], [], USER)
        assert result.operations == []
        assert result.is_empty


class TestV3AddLiquidity:
    def test_two_token_deposit(self):
        pool = compute_v3_pool_address(USDC, DAI, 500)
        logs = [
            _make_log(pool, V3_POOL_MINT_TOPIC0, 12),
            _make_log(UNISWAP_V3_NPM, V3_INCREASE_LIQUIDITY_TOPIC0, 13, topic1=TOKEN_ID_1),
        ]
        transfers = [
            _make_transfer(USER, pool, USDC, "1000000", 10),
            _make_transfer(USER, pool, DAI, "1000000000000000000", 11),
        ]
        result = detect_liquidity_operations(logs, transfers, [], USER)

        assert len(result.operations) == 1
        op = result.operations[0]
        assert op.type == "uniswap-add-liquidity"
        assert op.version == "v3"
        assert op.provider == USER
        assert {op.token0.symbol, op.token1.symbol} == {"USDC", "DAI"}
        assert result.claimed_transfer_indices == frozenset({0, 1})

    def test_one_sided_deposit_pads_zero_slot(self):
        pool = compute_v3_pool_address(USDC, DAI, 500)
        logs = [
            _make_log(pool, V3_POOL_MINT_TOPIC0, 12),
            _make_log(UNISWAP_V3_NPM, V3_INCREASE_LIQUIDITY_TOPIC0, 13, topic1=TOKEN_ID_1),
        ]
        transfers = [_make_transfer(USER, pool, USDC, "1000000", 11)]
        op = detect_liquidity_operations(logs, transfers, [], USER).operations[0]

        assert op.token0.symbol == "USDC"
        assert op.token1.address == ZERO_ADDRESS
        assert op.token1.amount == "0"

    def test_fork_pool_rejected(self, caplog):
        fork = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
        logs = [
            _make_log(fork, V3_POOL_MINT_TOPIC0, 12),
            _make_log(UNISWAP_V3_NPM, V3_INCREASE_LIQUIDITY_TOPIC0, 13, topic1=TOKEN_ID_1),
        ]
        transfers = [
            _make_transfer(USER, fork, USDC, "1000000", 10),
            _make_transfer(USER, fork, DAI, "1000000000000000000", 11),
        ]
        with caplog.at_level(logging.INFO):
            result = detect_liquidity_operations(logs, transfers, [], USER)
        assert result.operations == []
        assert "not a canonical pool" in caplog.text

    def test_no_pool_mint_skipped(self):
        logs = [_make_log(UNISWAP_V3_NPM, V3_INCREASE_LIQUIDITY_TOPIC0, 13, topic1=TOKEN_ID_1)]
        transfers = [_make_transfer(USER, UNISWAP_V3_NPM, USDC, "1", 11)]
        assert detect_liquidity_operations(logs, transfers, [], USER).operations == []


class TestV3RemoveLiquidity:
    def test_remove_claims_pool_and_display_legs(self):
        pool = compute_v3_pool_address(USDC, DAI, 500)
        logs = [
            _make_log(pool, V3_POOL_BURN_TOPIC0, 20),
            _make_log(UNISWAP_V3_NPM, V3_DECREASE_LIQUIDITY_TOPIC0, 21, topic1=TOKEN_ID_1),
            _make_log(pool, V3_POOL_COLLECT_TOPIC0, 23),
            _make_log(UNISWAP_V3_NPM, V3_NPM_COLLECT_TOPIC0, 24, topic1=TOKEN_ID_1),
        ]
        transfers = [
            _make_transfer(pool, UNISWAP_V3_NPM, USDC, "500000", 22),
            _make_transfer(pool, UNISWAP_V3_NPM, DAI, "500000000000000000000", 22),
            _make_transfer(UNISWAP_V3_NPM, USER, USDC, "500000", 25),
            _make_transfer(UNISWAP_V3_NPM, USER, DAI, "500000000000000000000", 26),
        ]
        result = detect_liquidity_operations(logs, transfers, [], USER)

        # the Collect for the same position is part of the removal
        assert len(result.operations) == 1
        op = result.operations[0]
        assert op.type == "uniswap-remove-liquidity"
        assert op.version == "v3"
        assert op.recipient == USER
        assert sorted([op.token0.symbol, op.token1.symbol]) == ["DAI", "USDC"]
        assert result.claimed_transfer_indices == frozenset({0, 1, 2, 3})

    def test_weth_leg_paid_as_eth(self):
        pool = compute_v3_pool_address(USDC, WETH_ADDRESS, 500)
        logs = [
            _make_log(pool, V3_POOL_BURN_TOPIC0, 20),
            _make_log(UNISWAP_V3_NPM, V3_DECREASE_LIQUIDITY_TOPIC0, 21, topic1=TOKEN_ID_1),
        ]
        transfers = [
            _make_transfer(pool, UNISWAP_V3_NPM, USDC, "500000", 22),
            _make_transfer(pool, UNISWAP_V3_NPM, WETH_ADDRESS, "3000000000000000", 23),
            _make_transfer(UNISWAP_V3_NPM, USER, USDC, "500000", 25),
            _make_transfer(UNISWAP_V3_NPM, USER, WETH_ADDRESS, "3000000000000000", 26),
        ]
        natives = [_native(UNISWAP_V3_NPM, USER, "3000000000000000", 30)]
        result = detect_liquidity_operations(logs, transfers, natives, USER)

        op = result.operations[0]
        eth = op.token1 if op.token1.is_native else op.token0
        assert eth.symbol == "ETH"
        assert eth.amount == "3000000000000000"
        assert result.claimed_native_indices == frozenset({0})


class TestV3CollectFees:
    def test_standalone_collect(self):
        logs = [_make_log(UNISWAP_V3_NPM, V3_NPM_COLLECT_TOPIC0, 30, topic1=TOKEN_ID_2)]
        transfers = [
            _make_transfer(UNISWAP_V3_NPM, USER, USDC, "1234", 31),
            _make_transfer(UNISWAP_V3_NPM, USER, DAI, "5678000000000000000", 32),
        ]
        result = detect_liquidity_operations(logs, transfers, [], USER)

        op = result.operations[0]
        assert op.type == "uniswap-collect-fees"
        assert op.version == "v3"
        assert op.collector == USER
        assert result.claimed_transfer_indices == frozenset({0, 1})

    def test_collect_with_weth_unwrap(self):
        pool = compute_v3_pool_address(USDC, WETH_ADDRESS, 500)
        logs = [
            _make_log(pool, V3_POOL_COLLECT_TOPIC0, 699),
            _make_log(UNISWAP_V3_NPM, V3_NPM_COLLECT_TOPIC0, 700, topic1=TOKEN_ID_2),
        ]
        transfers = [
            _make_transfer(pool, UNISWAP_V3_NPM, USDC, "59839", 697),
            _make_transfer(pool, UNISWAP_V3_NPM, WETH_ADDRESS, "30000000000000", 698),
            _make_transfer(UNISWAP_V3_NPM, USER, USDC, "59839", 702),
            # no NPM -> user WETH transfer: it was unwrapped
        ]
        natives = [
            _native(WETH_ADDRESS, UNISWAP_V3_NPM, "30000000000000", 703),
            _native(UNISWAP_V3_NPM, USER, "30000000000000", 704),
        ]
        result = detect_liquidity_operations(logs, transfers, natives, USER)

        assert len(result.operations) == 1
        op = result.operations[0]
        assert op.collector == USER
        assert sorted([op.token0.symbol, op.token1.symbol]) == ["ETH", "USDC"]
        eth = op.token0 if op.token0.symbol == "ETH" else op.token1
        assert eth.is_native is True
        assert eth.amount == "30000000000000"
        assert result.claimed_transfer_indices == frozenset({0, 1, 2})
        assert result.claimed_native_indices == frozenset({0, 1})

    def test_pool_legs_outside_window_not_claimed(self):
        logs = [_make_log(UNISWAP_V3_NPM, V3_NPM_COLLECT_TOPIC0, 700, topic1=TOKEN_ID_2)]
        transfers = [
            _make_transfer(USER, UNISWAP_V3_NPM, USDC, "1", 600),
            _make_transfer(UNISWAP_V3_NPM, USER, USDC, "59839", 702),
        ]
        result = detect_liquidity_operations(logs, transfers, [], USER)
        assert result.claimed_transfer_indices == frozenset({1})


class TestV2Liquidity:
    def test_add_claims_lp_mint(self):
        pair = compute_v2_pair_address(USDC, DAI)
        logs = [_make_log(pair, V2_MINT_TOPIC0, 5, topic1=_topic(UNISWAP_V2_ROUTER02))]
        transfers = [
            _make_transfer(USER, pair, USDC, "1000000", 1),
            _make_transfer(USER, pair, DAI, "1000000000000000000", 2),
            _make_transfer(ZERO_ADDRESS, USER, pair, "1000", 3),
        ]
        result = detect_liquidity_operations(logs, transfers, [], USER)

        op = result.operations[0]
        assert op.type == "uniswap-add-liquidity"
        assert op.version == "v2"
        assert op.provider == USER
        # the LP mint precedes the anchor here, so only the deposit legs are claimed
        assert result.claimed_transfer_indices == frozenset({0, 1})

    def test_add_lp_mint_after_anchor_claimed(self):
        pair = compute_v2_pair_address(USDC, DAI)
        logs = [_make_log(pair, V2_MINT_TOPIC0, 5)]
        transfers = [
            _make_transfer(USER, pair, USDC, "1000000", 1),
            _make_transfer(USER, pair, DAI, "1000000000000000000", 2),
            _make_transfer(ZERO_ADDRESS, USER, pair, "1000", 6),
        ]
        result = detect_liquidity_operations(logs, transfers, [], USER)
        assert result.claimed_transfer_indices == frozenset({0, 1, 2})

    def test_add_requires_both_tokens(self):
        pair = compute_v2_pair_address(USDC, DAI)
        logs = [_make_log(pair, V2_MINT_TOPIC0, 5)]
        transfers = [_make_transfer(USER, pair, USDC, "1000000", 1)]
        assert detect_liquidity_operations(logs, transfers, [], USER).operations == []

    def test_remove_via_router_unwraps_weth(self):
        pair = compute_v2_pair_address(USDC, WETH_ADDRESS)
        logs = [_make_log(pair, V2_BURN_TOPIC0, 5, topic1=_topic(UNISWAP_V2_ROUTER02), topic2=_topic(UNISWAP_V2_ROUTER02))]
        transfers = [
            _make_transfer(USER, pair, pair, "1000", 2),
            _make_transfer(pair, ZERO_ADDRESS, pair, "1000", 3),
            _make_transfer(pair, UNISWAP_V2_ROUTER02, USDC, "1000000", 6),
            _make_transfer(pair, UNISWAP_V2_ROUTER02, WETH_ADDRESS, "400000000000000", 7),
        ]
        natives = [
            _native(WETH_ADDRESS, UNISWAP_V2_ROUTER02, "400000000000000", 8),
            _native(UNISWAP_V2_ROUTER02, USER, "400000000000000", 9),
        ]
        result = detect_liquidity_operations(logs, transfers, natives, USER)

        op = result.operations[0]
        assert op.type == "uniswap-remove-liquidity"
        assert op.version == "v2"
        assert op.recipient == USER
        assert any(t.is_native for t in (op.token0, op.token1))
        # the LP burn nearest the anchor is claimed, the earlier LP return is not
        assert result.claimed_transfer_indices == frozenset({1, 2, 3})
        assert result.claimed_native_indices == frozenset({1})

    def test_fork_pair_rejected(self):
        fork = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
        logs = [_make_log(fork, V2_MINT_TOPIC0, 5)]
        transfers = [
            _make_transfer(USER, fork, USDC, "1000000", 1),
            _make_transfer(USER, fork, DAI, "1000000000000000000", 2),
        ]
        result = detect_liquidity_operations(logs, transfers, [], USER)
        assert result.operations == []
        assert result.claimed_transfer_indices == frozenset()
