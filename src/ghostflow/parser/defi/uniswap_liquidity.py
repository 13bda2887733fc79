"""Uniswap liquidity detector: V3 positions (NPM) and V2 pairs.

V3 anchors come from the NonfungiblePositionManager (IncreaseLiquidity,
DecreaseLiquidity, Collect); the pool is identified through the nearest
pool-level Mint/Burn. V2 anchors are the pair's own Mint/Burn. Pools and
pairs are CREATE2-verified whenever both tokens are known.

Scan order matters: V3 removals run first so their position ids can
suppress the Collect that sweeps the same withdrawal.
"""

import logging

from ghostflow.parser.defi.uniswap_constants import (
    COLLECT_POOL_LEG_WINDOW,
    KNOWN_UNISWAP_ROUTERS,
    UNISWAP_V3_NPM,
    V2_BURN_TOPIC0,
    V2_MINT_TOPIC0,
    V3_DECREASE_LIQUIDITY_TOPIC0,
    V3_INCREASE_LIQUIDITY_TOPIC0,
    V3_NPM_COLLECT_TOPIC0,
    V3_POOL_BURN_TOPIC0,
    V3_POOL_MINT_TOPIC0,
    WETH_ADDRESS,
    is_known_router,
)
from ghostflow.parser.generic.base import BaseDetector
from ghostflow.parser.handlers.common import make_native_token, make_token, make_zero_token
from ghostflow.parser.handlers.wrap import find_native_leg, is_weth
from ghostflow.parser.utils.context import ClaimSet, DetectionContext
from ghostflow.parser.utils.create2 import verify_v2_pair, verify_v3_pool
from ghostflow.parser.utils.logs import ZERO_ADDRESS, address_from_topic
from ghostflow.parser.utils.matching import find_closest_pair, find_closest_transfer
from ghostflow.parser.utils.operations import (
    DetectionResult,
    OperationToken,
    UniswapAddLiquidityOperation,
    UniswapCollectFeesOperation,
    UniswapRemoveLiquidityOperation,
)
from ghostflow.parser.utils.types import NativeTransfer, RawEventLog, TokenTransfer

logger = logging.getLogger(__name__)

PROTOCOL = "uniswap"

LiquidityOperation = UniswapAddLiquidityOperation | UniswapRemoveLiquidityOperation | UniswapCollectFeesOperation


def _two_slots(tokens: list[OperationToken]) -> tuple[OperationToken, OperationToken]:
    padded = tokens + [make_zero_token(), make_zero_token()]
    return padded[0], padded[1]


class UniswapLiquidityDetector(BaseDetector):
    DETECTOR_NAME = "UniswapLiquidityDetector"
    PROTOCOL = PROTOCOL

    ANCHOR_TOPICS = (
        V3_INCREASE_LIQUIDITY_TOPIC0,
        V3_DECREASE_LIQUIDITY_TOPIC0,
        V3_NPM_COLLECT_TOPIC0,
        V2_MINT_TOPIC0,
        V2_BURN_TOPIC0,
    )

    def can_detect(self, context: DetectionContext) -> bool:
        return any((log.topic0 or "").lower() in self.ANCHOR_TOPICS for log in context.logs)

    def detect(self, context: DetectionContext) -> DetectionResult:
        claims = ClaimSet()
        operations: list[LiquidityOperation] = []

        removed, decreased_positions = self._detect_v3_remove(context, claims)
        operations.extend(removed)
        operations.extend(self._detect_v3_collect(context, claims, decreased_positions))
        operations.extend(self._detect_v3_add(context, claims))
        operations.extend(self._detect_v2_add(context, claims))
        operations.extend(self._detect_v2_remove(context, claims))

        return self._make_result(operations, claims)

    # --- helpers ---------------------------------------------------------------

    @staticmethod
    def _nearest_pool_log(context: DetectionContext, topic0: str, anchor: int) -> str | None:
        """Emitting address of the ``topic0`` log closest to ``anchor`` in either direction."""
        best: RawEventLog | None = None
        for log in context.filter_logs(topic0=topic0):
            if best is None or abs(log.log_index - anchor) < abs(best.log_index - anchor):
                best = log
        return best.address.lower() if best is not None else None

    @staticmethod
    def _slot_tokens(
        context: DetectionContext,
        claims: ClaimSet,
        indices: list[int],
        **native_filter: str | frozenset[str],
    ) -> list[OperationToken]:
        """Tokens for ``indices``; at most one WETH slot becomes ETH if a matching native leg exists."""
        tokens: list[OperationToken] = []
        native_taken = False
        for idx in indices:
            transfer = context.transfers[idx]
            if is_weth(transfer) and not native_taken:
                native_idx = find_native_leg(context, claims.native, **native_filter)
                if native_idx is not None:
                    claims.claim_native(native_idx)
                    native_taken = True
                    tokens.append(make_native_token(transfer.token_address, transfer.value, transfer.decimals))
                    continue
            tokens.append(make_token(transfer))
        return tokens

    # --- V3 --------------------------------------------------------------------

    def _detect_v3_add(self, context: DetectionContext, claims: ClaimSet) -> list[UniswapAddLiquidityOperation]:
        operations = []
        for log in context.filter_logs(topic0=V3_INCREASE_LIQUIDITY_TOPIC0, address=UNISWAP_V3_NPM):
            anchor = log.log_index
            pool = self._nearest_pool_log(context, V3_POOL_MINT_TOPIC0, anchor)
            if pool is None:
                continue

            first, second = find_closest_pair(
                context.transfers, anchor, "before",
                lambda t: t.to_address.lower() == pool,
                claims.transfers,
            )
            legs = [i for i in (first, second) if i is not None]
            if not legs:
                continue

            # One-sided deposits cannot be recomputed; the NPM address check stands in
            if len(legs) == 2 and not verify_v3_pool(
                pool, context.transfers[legs[0]].token_address, context.transfers[legs[1]].token_address,
            ):
                logger.info("Rejecting V3 add at log %d: %s is not a canonical pool", anchor, pool)
                continue

            provider = context.transfers[legs[0]].from_address.lower()
            tokens = self._slot_tokens(
                context, claims, legs,
                from_address=context.originating_account, to_any=KNOWN_UNISWAP_ROUTERS,
            )
            token0, token1 = _two_slots(tokens)
            claims.claim(*legs)
            operations.append(UniswapAddLiquidityOperation(
                log_index=anchor, version="v3", token0=token0, token1=token1, provider=provider,
            ))
        return operations

    def _detect_v3_remove(
        self,
        context: DetectionContext,
        claims: ClaimSet,
    ) -> tuple[list[UniswapRemoveLiquidityOperation], set[str]]:
        operations = []
        decreased_positions: set[str] = set()

        for log in context.filter_logs(topic0=V3_DECREASE_LIQUIDITY_TOPIC0, address=UNISWAP_V3_NPM):
            anchor = log.log_index
            decreased_positions.add((log.topic1 or "").lower())

            pool = self._nearest_pool_log(context, V3_POOL_BURN_TOPIC0, anchor)
            if pool is None:
                continue

            pool_legs = [i for i in find_closest_pair(
                context.transfers, anchor, "after",
                lambda t: t.from_address.lower() == pool and t.to_address.lower() == UNISWAP_V3_NPM,
                claims.transfers,
            ) if i is not None]
            display_legs = [i for i in find_closest_pair(
                context.transfers, anchor, "after",
                lambda t: t.from_address.lower() == UNISWAP_V3_NPM and t.to_address.lower() != pool,
                claims.transfers,
            ) if i is not None]
            if not display_legs:
                continue

            if len(pool_legs) == 2 and not verify_v3_pool(
                pool, context.transfers[pool_legs[0]].token_address, context.transfers[pool_legs[1]].token_address,
            ):
                logger.info("Rejecting V3 remove at log %d: %s is not a canonical pool", anchor, pool)
                continue

            recipient = context.transfers[display_legs[0]].to_address.lower()
            tokens = self._slot_tokens(
                context, claims, display_legs,
                from_address=UNISWAP_V3_NPM, to_address=recipient,
            )
            token0, token1 = _two_slots(tokens)
            claims.claim(*display_legs, *pool_legs)
            operations.append(UniswapRemoveLiquidityOperation(
                log_index=anchor, version="v3", token0=token0, token1=token1, recipient=recipient,
            ))

        return operations, decreased_positions

    def _detect_v3_collect(
        self,
        context: DetectionContext,
        claims: ClaimSet,
        decreased_positions: set[str],
    ) -> list[UniswapCollectFeesOperation]:
        operations = []
        for log in context.filter_logs(topic0=V3_NPM_COLLECT_TOPIC0, address=UNISWAP_V3_NPM):
            if (log.topic1 or "").lower() in decreased_positions:
                # fee sweep of a removal already reported
                continue

            anchor = log.log_index
            display_legs = [i for i in find_closest_pair(
                context.transfers, anchor, "after",
                lambda t: t.from_address.lower() == UNISWAP_V3_NPM,
                claims.transfers,
            ) if i is not None]
            pool_legs = [
                idx for idx, t in enumerate(context.transfers)
                if idx not in claims.transfers
                and idx not in display_legs
                and t.to_address.lower() == UNISWAP_V3_NPM
                and t.from_address.lower() != UNISWAP_V3_NPM
                and abs(t.log_index - anchor) <= COLLECT_POOL_LEG_WINDOW
            ]

            tokens = [make_token(context.transfers[i]) for i in display_legs]
            collector = context.transfers[display_legs[0]].to_address.lower() if display_legs else None

            # WETH reached the NPM but left it as ETH: show the native leg instead
            unwrapped = (
                len(display_legs) < 2
                and not any(is_weth(context.transfers[i]) for i in display_legs)
                and any(is_weth(context.transfers[i]) for i in pool_legs)
            )
            if unwrapped:
                native_out = find_native_leg(
                    context, claims.native, from_address=UNISWAP_V3_NPM, to_address=collector,
                )
                if native_out is not None:
                    native = context.native_transfers[native_out]
                    native_in = find_native_leg(
                        context, claims.native | {native_out}, from_address=WETH_ADDRESS, to_address=UNISWAP_V3_NPM,
                    )
                    claims.claim_native(native_out, native_in)
                    tokens.append(make_native_token(WETH_ADDRESS, native.amount))
                    collector = collector or native.to_address.lower()

            if not tokens or collector is None:
                continue

            token0, token1 = _two_slots(tokens)
            claims.claim(*display_legs, *pool_legs)
            operations.append(UniswapCollectFeesOperation(
                log_index=anchor, token0=token0, token1=token1, collector=collector,
            ))
        return operations

    # --- V2 --------------------------------------------------------------------

    def _detect_v2_add(self, context: DetectionContext, claims: ClaimSet) -> list[UniswapAddLiquidityOperation]:
        operations = []
        for log in context.filter_logs(topic0=V2_MINT_TOPIC0):
            pair = log.address.lower()
            anchor = log.log_index

            first, second = find_closest_pair(
                context.transfers, anchor, "before",
                lambda t: t.to_address.lower() == pair and t.from_address.lower() != ZERO_ADDRESS,
                claims.transfers,
            )
            # Both sides are needed to verify the pair
            if first is None or second is None:
                continue
            if not verify_v2_pair(pair, context.transfers[first].token_address, context.transfers[second].token_address):
                logger.info("Rejecting V2 add at log %d: %s is not a canonical pair", anchor, pair)
                continue

            lp_mint = find_closest_transfer(
                context.transfers, anchor, "after",
                lambda t: t.from_address.lower() == ZERO_ADDRESS and t.token_address.lower() == pair,
                claims.transfers | {first, second},
            )

            provider = context.transfers[first].from_address.lower()
            tokens = self._slot_tokens(
                context, claims, [first, second],
                from_address=context.originating_account, to_any=KNOWN_UNISWAP_ROUTERS,
            )
            token0, token1 = _two_slots(tokens)
            claims.claim(first, second, lp_mint)
            operations.append(UniswapAddLiquidityOperation(
                log_index=anchor, version="v2", token0=token0, token1=token1, provider=provider,
            ))
        return operations

    def _detect_v2_remove(self, context: DetectionContext, claims: ClaimSet) -> list[UniswapRemoveLiquidityOperation]:
        operations = []
        origin = context.originating_account
        for log in context.filter_logs(topic0=V2_BURN_TOPIC0):
            pair = log.address.lower()
            anchor = log.log_index
            recipient = address_from_topic(log.topic2) if log.topic2 else origin

            first, second = find_closest_pair(
                context.transfers, anchor, "after",
                lambda t: t.from_address.lower() == pair and t.to_address.lower() == recipient,
                claims.transfers,
            )
            if first is None:
                first, second = find_closest_pair(
                    context.transfers, anchor, "after",
                    lambda t: t.from_address.lower() == pair and t.to_address.lower() != ZERO_ADDRESS,
                    claims.transfers,
                )
            if first is None or second is None:
                continue
            if not verify_v2_pair(pair, context.transfers[first].token_address, context.transfers[second].token_address):
                logger.info("Rejecting V2 remove at log %d: %s is not a canonical pair", anchor, pair)
                continue

            lp_burn = find_closest_transfer(
                context.transfers, anchor, "before",
                lambda t: t.token_address.lower() == pair and t.to_address.lower() in (ZERO_ADDRESS, pair),
                claims.transfers | {first, second},
            )

            effective = context.transfers[first].to_address.lower()
            if is_known_router(effective):
                native_before = set(claims.native)
                tokens = self._slot_tokens(
                    context, claims, [first, second], from_address=effective, to_address=origin,
                )
                unwrapped = claims.native != native_before
            else:
                tokens = [make_token(context.transfers[first]), make_token(context.transfers[second])]
                unwrapped = False

            token0, token1 = _two_slots(tokens)
            claims.claim(first, second, lp_burn)
            operations.append(UniswapRemoveLiquidityOperation(
                log_index=anchor, version="v2", token0=token0, token1=token1,
                recipient=origin if unwrapped else effective,
            ))
        return operations


def detect_liquidity_operations(
    logs: list[RawEventLog],
    transfers: list[TokenTransfer],
    native_transfers: list[NativeTransfer],
    originating_account: str,
) -> DetectionResult:
    """Functional entry point: Uniswap liquidity operations found in ``logs``."""
    context = DetectionContext(logs, transfers, native_transfers, originating_account)
    return UniswapLiquidityDetector().detect(context)
