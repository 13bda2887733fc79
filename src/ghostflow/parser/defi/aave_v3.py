"""Aave V3 Pool detector: Supply, Borrow, Repay, Withdraw.

Anchors are the Pool's own events. Each anchor is paired with the closest
underlying-asset transfer and the aToken / debt-token mint or burn at or
before it in log order.
"""

import logging

from eth_utils import encode_hex, keccak

from ghostflow.parser.generic.base import EventDrivenDetector
from ghostflow.parser.handlers.common import make_asset_fields
from ghostflow.parser.utils.context import ClaimSet, DetectionContext
from ghostflow.parser.utils.logs import (
    ZERO_ADDRESS,
    address_from_topic,
    decode_address_word,
    decode_uint256_word,
    same_address,
)
from ghostflow.parser.utils.matching import find_closest_transfer
from ghostflow.parser.utils.operations import (
    AaveBorrowOperation,
    AaveRepayOperation,
    AaveSupplyOperation,
    AaveWithdrawOperation,
    DetectionResult,
)
from ghostflow.parser.utils.types import RawEventLog, TokenTransfer

logger = logging.getLogger(__name__)


def _event_topic(signature: str) -> str:
    return encode_hex(keccak(text=signature))


# Supply(reserve indexed, user, onBehalfOf indexed, amount, referralCode indexed)
SUPPLY_TOPIC0 = _event_topic("Supply(address,address,address,uint256,uint16)")
# Borrow(reserve indexed, user, onBehalfOf indexed, amount, interestRateMode, borrowRate, referralCode indexed)
BORROW_TOPIC0 = _event_topic("Borrow(address,address,address,uint256,uint8,uint256,uint16)")
# Repay(reserve indexed, user indexed, repayer indexed, amount, useATokens)
REPAY_TOPIC0 = _event_topic("Repay(address,address,address,uint256,bool)")
# Withdraw(reserve indexed, user indexed, to indexed, amount)
WITHDRAW_TOPIC0 = _event_topic("Withdraw(address,address,address,uint256)")

# Aave V3 Pool addresses per chain (all lowercase)
AAVE_V3_POOL: dict[str, str] = {
    "ethereum": "0x87870bca3f3fd6335c3f4ce8392d69350b4fa4e2",
}
AAVE_V3_POOL_ADDRESS = AAVE_V3_POOL["ethereum"]

PROTOCOL = "aave_v3"


def _present(*topics: str | None) -> bool:
    return all(topics)


class AaveV3Detector(EventDrivenDetector):
    DETECTOR_NAME = "AaveV3Detector"
    PROTOCOL = PROTOCOL
    CONTRACT_ADDRESS = AAVE_V3_POOL_ADDRESS
    EVENT_HANDLERS = {
        SUPPLY_TOPIC0: "_handle_supply",
        BORROW_TOPIC0: "_handle_borrow",
        REPAY_TOPIC0: "_handle_repay",
        WITHDRAW_TOPIC0: "_handle_withdraw",
    }

    def _skip(self, kind: str, log: RawEventLog) -> None:
        logger.warning("Skipping Aave %s anchor at log %d: missing topics", kind, log.log_index)

    def _handle_supply(self, log: RawEventLog, context: DetectionContext, claims: ClaimSet) -> AaveSupplyOperation | None:
        if not _present(log.topic1, log.topic2):
            self._skip("Supply", log)
            return None

        reserve = address_from_topic(log.topic1)
        on_behalf_of = address_from_topic(log.topic2)
        user = decode_address_word(log.data, 0) or on_behalf_of
        amount = decode_uint256_word(log.data, 1)

        underlying = find_closest_transfer(
            context.transfers, log.log_index, "before",
            lambda t: same_address(t.token_address, reserve) and same_address(t.from_address, user),
            claims.transfers,
        )
        claims.claim(underlying)

        # aToken mint to the beneficiary
        mint = find_closest_transfer(
            context.transfers, log.log_index, "before",
            lambda t: same_address(t.from_address, ZERO_ADDRESS)
            and same_address(t.to_address, on_behalf_of),
            claims.transfers,
        )
        claims.claim(mint)

        return AaveSupplyOperation(
            log_index=log.log_index,
            **make_asset_fields(self._transfer(context, underlying), reserve, amount),
            supplier=user,
            on_behalf_of=None if on_behalf_of in (user, ZERO_ADDRESS) else on_behalf_of,
        )

    def _handle_borrow(self, log: RawEventLog, context: DetectionContext, claims: ClaimSet) -> AaveBorrowOperation | None:
        if not _present(log.topic1, log.topic2):
            self._skip("Borrow", log)
            return None

        reserve = address_from_topic(log.topic1)
        on_behalf_of = address_from_topic(log.topic2)
        amount = decode_uint256_word(log.data, 1)

        underlying = find_closest_transfer(
            context.transfers, log.log_index, "before",
            lambda t: same_address(t.token_address, reserve) and same_address(t.to_address, on_behalf_of),
            claims.transfers,
        )
        claims.claim(underlying)

        debt_mint = find_closest_transfer(
            context.transfers, log.log_index, "before",
            lambda t: same_address(t.from_address, ZERO_ADDRESS) and same_address(t.to_address, on_behalf_of),
            claims.transfers,
        )
        claims.claim(debt_mint)

        return AaveBorrowOperation(
            log_index=log.log_index,
            **make_asset_fields(self._transfer(context, underlying), reserve, amount),
            borrower=on_behalf_of,
        )

    def _handle_repay(self, log: RawEventLog, context: DetectionContext, claims: ClaimSet) -> AaveRepayOperation | None:
        if not _present(log.topic1, log.topic2, log.topic3):
            self._skip("Repay", log)
            return None

        reserve = address_from_topic(log.topic1)
        debtor = address_from_topic(log.topic2)
        repayer = address_from_topic(log.topic3)
        amount = decode_uint256_word(log.data, 0)

        underlying = find_closest_transfer(
            context.transfers, log.log_index, "before",
            lambda t: same_address(t.from_address, repayer) and not same_address(t.to_address, ZERO_ADDRESS),
            claims.transfers,
        )
        claims.claim(underlying)

        debt_burn = find_closest_transfer(
            context.transfers, log.log_index, "before",
            lambda t: same_address(t.from_address, debtor) and same_address(t.to_address, ZERO_ADDRESS),
            claims.transfers,
        )
        claims.claim(debt_burn)

        return AaveRepayOperation(
            log_index=log.log_index,
            **make_asset_fields(self._transfer(context, underlying), reserve, amount),
            repayer=repayer,
            on_behalf_of=debtor if debtor != repayer else None,
        )

    def _handle_withdraw(self, log: RawEventLog, context: DetectionContext, claims: ClaimSet) -> AaveWithdrawOperation | None:
        if not _present(log.topic1, log.topic2, log.topic3):
            self._skip("Withdraw", log)
            return None

        reserve = address_from_topic(log.topic1)
        user = address_from_topic(log.topic2)
        recipient = address_from_topic(log.topic3)
        amount = decode_uint256_word(log.data, 0)

        burn = find_closest_transfer(
            context.transfers, log.log_index, "before",
            lambda t: same_address(t.from_address, user) and same_address(t.to_address, ZERO_ADDRESS),
            claims.transfers,
        )
        claims.claim(burn)

        underlying = find_closest_transfer(
            context.transfers, log.log_index, "before",
            lambda t: same_address(t.token_address, reserve) and same_address(t.to_address, recipient),
            claims.transfers,
        )
        claims.claim(underlying)

        return AaveWithdrawOperation(
            log_index=log.log_index,
            **make_asset_fields(self._transfer(context, underlying), reserve, amount),
            withdrawer=user,
            to=recipient if recipient != user else None,
        )

    @staticmethod
    def _transfer(context: DetectionContext, idx: int | None) -> TokenTransfer | None:
        return context.transfers[idx] if idx is not None else None


def detect_lending_operations(logs: list[RawEventLog], transfers: list[TokenTransfer]) -> DetectionResult:
    """Functional entry point: Aave V3 operations found in ``logs``."""
    return AaveV3Detector().detect(DetectionContext(logs, transfers))
