"""Uniswap swap detector: V2 pairs, V3 pools, V4 PoolManager.

Swap events are verified (trusted router sender, or CREATE2 recomputation of
the pool address), grouped by consecutive router into multi-hop swaps, and resolved to
the originating account's net input and output.
"""

import logging
from dataclasses import dataclass
from typing import Literal

from ghostflow.parser.defi.uniswap_constants import (
    UNISWAP_V4_POOL_MANAGER,
    V2_SWAP_TOPIC0,
    V3_SWAP_TOPIC0,
    V4_SWAP_TOPIC0,
    WETH_ADDRESS,
    is_known_router,
)
from ghostflow.parser.generic.base import BaseDetector
from ghostflow.parser.handlers.common import make_native_token, make_token
from ghostflow.parser.handlers.wrap import as_native, find_native_leg, is_weth
from ghostflow.parser.utils.context import ClaimSet, DetectionContext
from ghostflow.parser.utils.create2 import verify_v2_pair, verify_v3_pool
from ghostflow.parser.utils.logs import address_from_topic
from ghostflow.parser.utils.matching import find_closest_transfer
from ghostflow.parser.utils.operations import DetectionResult, OperationToken, UniswapSwapOperation
from ghostflow.parser.utils.types import NativeTransfer, RawEventLog, TokenTransfer

logger = logging.getLogger(__name__)

PROTOCOL = "uniswap"


@dataclass(frozen=True)
class SwapEvent:
    version: Literal["v2", "v3", "v4"]
    pool: str
    sender: str
    recipient: str
    log_index: int

    @property
    def via_router(self) -> bool:
        return is_known_router(self.sender)


class UniswapSwapDetector(BaseDetector):
    DETECTOR_NAME = "UniswapSwapDetector"
    PROTOCOL = PROTOCOL

    def can_detect(self, context: DetectionContext) -> bool:
        return bool(self._collect_events(context))

    def detect(self, context: DetectionContext) -> DetectionResult:
        events = [e for e in self._collect_events(context) if self._is_verified(e, context)]
        if not events:
            return self._empty_result()

        operations: list[UniswapSwapOperation] = []
        claims = ClaimSet()
        groups = self._group(events)
        for position, group in enumerate(groups):
            lower = groups[position - 1][-1].log_index if position > 0 else None
            upper = groups[position + 1][0].log_index if position + 1 < len(groups) else None
            operation = self._build_operation(group, context, claims, (lower, upper))
            if operation is not None:
                operations.append(operation)

        return self._make_result(operations, claims)

    # --- Anchor collection -------------------------------------------------

    def _collect_events(self, context: DetectionContext) -> list[SwapEvent]:
        events: list[SwapEvent] = []
        for log in context.logs:
            topic0 = (log.topic0 or "").lower()
            if topic0 in (V2_SWAP_TOPIC0, V3_SWAP_TOPIC0):
                if not log.topic1 or not log.topic2:
                    logger.warning("Skipping swap log %d from %s: missing topics", log.log_index, log.address)
                    continue
                events.append(SwapEvent(
                    version="v3" if topic0 == V3_SWAP_TOPIC0 else "v2",
                    pool=log.address.lower(),
                    sender=address_from_topic(log.topic1),
                    recipient=address_from_topic(log.topic2),
                    log_index=log.log_index,
                ))
            elif topic0 == V4_SWAP_TOPIC0 and log.address.lower() == UNISWAP_V4_POOL_MANAGER:
                if not log.topic2:
                    logger.warning("Skipping V4 swap log %d: missing sender topic", log.log_index)
                    continue
                # topic1 is the pool id; the PoolManager pays the account that started the tx
                events.append(SwapEvent(
                    version="v4",
                    pool=UNISWAP_V4_POOL_MANAGER,
                    sender=address_from_topic(log.topic2),
                    recipient=context.originating_account,
                    log_index=log.log_index,
                ))
        return events

    def _is_verified(self, event: SwapEvent, context: DetectionContext) -> bool:
        if event.version == "v4" or event.via_router:
            return True

        tokens = self._pool_tokens(event.pool, context.transfers)
        if len(tokens) < 2:
            logger.info("Dropping %s swap at log %d: token pair of %s unknown", event.version, event.log_index, event.pool)
            return False

        token_a, token_b = tokens[0], tokens[1]
        verified = (
            verify_v2_pair(event.pool, token_a, token_b)
            if event.version == "v2"
            else verify_v3_pool(event.pool, token_a, token_b)
        )
        if not verified:
            logger.info("Rejecting %s swap at log %d: %s is not a canonical pool", event.version, event.log_index, event.pool)
        return verified

    @staticmethod
    def _pool_tokens(pool: str, transfers: list[TokenTransfer]) -> list[str]:
        """Distinct token addresses moving in or out of ``pool``, in discovery order."""
        tokens: list[str] = []
        for t in transfers:
            if pool in (t.from_address.lower(), t.to_address.lower()):
                token = t.token_address.lower()
                if token not in tokens:
                    tokens.append(token)
        return tokens

    @staticmethod
    def _group(events: list[SwapEvent]) -> list[list[SwapEvent]]:
        """Consecutive anchors from the same router form one multi-hop group.

        Any other anchor in between ends the group; direct pool swaps are
        always alone.
        """
        groups: list[list[SwapEvent]] = []
        for event in sorted(events, key=lambda e: e.log_index):
            current = groups[-1] if groups else None
            if (
                current is not None
                and event.via_router
                and current[-1].via_router
                and current[-1].sender == event.sender
            ):
                current.append(event)
            else:
                groups.append([event])
        return groups

    @staticmethod
    def _in_window(log_index: int, group: list[SwapEvent], window: tuple[int | None, int | None]) -> bool:
        """Transfers after the previous group and up to this group's last anchor.

        Router and V4 groups also take transfers settled after their last
        anchor, up to the next group's first anchor.
        """
        lower, upper = window
        if lower is not None and log_index <= lower:
            return False
        last = group[-1]
        if log_index <= last.log_index:
            return True
        if not (last.via_router or last.version == "v4"):
            return False
        return upper is None or log_index < upper

    # --- Resolution ----------------------------------------------------------

    def _build_operation(
        self,
        group: list[SwapEvent],
        context: DetectionContext,
        claims: ClaimSet,
        window: tuple[int | None, int | None] = (None, None),
    ) -> UniswapSwapOperation | None:
        origin = context.originating_account
        transfers = context.transfers
        pools = {e.pool for e in group}
        participants = pools | {e.sender for e in group if e.via_router}

        matched = [
            idx for idx, t in enumerate(transfers)
            if idx not in claims.transfers
            and self._in_window(t.log_index, group, window)
            and (t.from_address.lower() in participants or t.to_address.lower() in participants)
        ]
        if not matched:
            return None

        def first(predicate, exclude: int | None = None) -> int | None:
            for idx in matched:
                if idx != exclude and predicate(transfers[idx]):
                    return idx
            return None

        native_used: set[int] = set(claims.native)
        consumed_native: list[int] = []

        input_idx = first(lambda t: t.from_address.lower() == origin and t.to_address.lower() in participants)
        if input_idx is None:
            input_idx = first(lambda t: t.from_address.lower() == origin)
        if input_idx is None:
            input_idx = self._router_wrapped_input(matched, context, participants, native_used)

        pure_native_idx = None
        if input_idx is None:
            pure_native_idx = find_native_leg(context, native_used, from_address=origin, to_any=participants)

        last = group[-1]
        output_idx = first(
            lambda t: t.to_address.lower() == origin and t.from_address.lower() in participants,
            exclude=input_idx,
        )
        if output_idx is None and last.recipient != origin:
            output_idx = first(lambda t: t.to_address.lower() == last.recipient, exclude=input_idx)

        token_in: OperationToken | None = None
        if pure_native_idx is not None:
            native = context.native_transfers[pure_native_idx]
            token_in = make_native_token(WETH_ADDRESS, native.amount)
            consumed_native.append(pure_native_idx)
            native_used.add(pure_native_idx)
        elif input_idx is not None:
            token_in = make_token(transfers[input_idx])
            if is_weth(transfers[input_idx]):
                wrap_idx = find_native_leg(context, native_used, from_address=origin, to_any=participants)
                if wrap_idx is not None:
                    token_in = as_native(transfers[input_idx], context.native_transfers[wrap_idx].amount)
                    consumed_native.append(wrap_idx)
                    native_used.add(wrap_idx)

        token_out: OperationToken | None = None
        if output_idx is not None:
            token_out = make_token(transfers[output_idx])
            if is_weth(transfers[output_idx]):
                unwrap_idx = find_native_leg(context, native_used, to_address=origin, from_any=participants)
                if unwrap_idx is not None:
                    token_out = as_native(transfers[output_idx], context.native_transfers[unwrap_idx].amount)
                    consumed_native.append(unwrap_idx)
                    native_used.add(unwrap_idx)

        if token_in is None or token_out is None:
            return self._build_mediated_operation(group, context, claims)

        claims.claim(*matched, input_idx, output_idx)
        claims.claim_native(*consumed_native)
        return UniswapSwapOperation(
            log_index=group[0].log_index,
            version=group[0].version,
            token_in=token_in,
            token_out=token_out,
            sender=origin,
            recipient=last.recipient or origin,
            hops=len(group),
        )

    @staticmethod
    def _router_wrapped_input(
        matched: list[int],
        context: DetectionContext,
        participants: set[str],
        native_used: set[int],
    ) -> int | None:
        """WETH sent router->pool, backed by ETH the originator sent to that router."""
        origin = context.originating_account
        for idx in matched:
            t = context.transfers[idx]
            sender = t.from_address.lower()
            if not (is_weth(t) and is_known_router(sender) and t.to_address.lower() in participants):
                continue
            if find_native_leg(context, native_used, from_address=origin, to_address=sender) is not None:
                return idx
        return None

    def _build_mediated_operation(
        self,
        group: list[SwapEvent],
        context: DetectionContext,
        claims: ClaimSet,
    ) -> UniswapSwapOperation | None:
        """Last resort: a contract traded on the originator's behalf.

        Each hop is paired with the nearest at-or-before transfers between the
        candidate contract and the hop's pool. Log proximity is the only
        evidence here, so the result is marked as contract-mediated.
        """
        origin = context.originating_account
        pools = {e.pool for e in group}
        candidates: list[str] = []
        for event in group:
            for address in (event.sender, event.recipient):
                if address and address != origin and address not in pools and not is_known_router(address):
                    if address not in candidates:
                        candidates.append(address)

        for user in candidates:
            hop_claims: list[int] = []
            group_in: int | None = None
            group_out: int | None = None

            for event in group:
                in_idx = self._nearest_before(context.transfers, event, claims, sender=user, receiver=event.pool)
                out_idx = self._nearest_before(context.transfers, event, claims, sender=event.pool, receiver=user)
                hop_claims.extend(i for i in (in_idx, out_idx) if i is not None and i not in hop_claims)
                # first hop's output and last hop's input bound the whole route
                if group_out is None and out_idx is not None:
                    group_out = out_idx
                if in_idx is not None:
                    group_in = in_idx

            if group_in is None or group_out is None:
                continue

            logger.debug(
                "Swap at log %d resolved through contract %s by log proximity",
                group[0].log_index, user,
            )
            claims.claim(*hop_claims)
            return UniswapSwapOperation(
                log_index=group[0].log_index,
                version=group[0].version,
                token_in=make_token(context.transfers[group_in]),
                token_out=make_token(context.transfers[group_out]),
                sender=user,
                recipient=group[-1].recipient or user,
                hops=len(group),
                resolution="contract-mediated",
            )

        return None

    @staticmethod
    def _nearest_before(
        transfers: list[TokenTransfer],
        event: SwapEvent,
        claims: ClaimSet,
        *,
        sender: str,
        receiver: str,
    ) -> int | None:
        return find_closest_transfer(
            transfers,
            event.log_index,
            "before",
            lambda t: t.from_address.lower() == sender and t.to_address.lower() == receiver,
            claims.transfers,
        )


def detect_swaps(
    logs: list[RawEventLog],
    transfers: list[TokenTransfer],
    native_transfers: list[NativeTransfer],
    originating_account: str,
) -> DetectionResult:
    """Functional entry point: Uniswap swaps found in ``logs``."""
    context = DetectionContext(logs, transfers, native_transfers, originating_account)
    return UniswapSwapDetector().detect(context)
