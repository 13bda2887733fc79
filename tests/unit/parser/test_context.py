"""Tests for DetectionContext lookups and ClaimSet."""

from ghostflow.parser.utils.context import ClaimSet, DetectionContext
from ghostflow.parser.utils.types import NativeTransfer, RawEventLog, TokenTransfer

USER = "0x1111111111111111111111111111111111111111"
POOL = "0x2222222222222222222222222222222222222222"
TOKEN = "0x3333333333333333333333333333333333333333"
TOPIC_A = "0x" + "a" * 64
TOPIC_B = "0x" + "b" * 64


def _make_transfer(from_address: str, to_address: str, log_index: int) -> TokenTransfer:
    return TokenTransfer(
        from_address=from_address,
        to_address=to_address,
        token_address=TOKEN,
        value="1",
        log_index=log_index,
        token_name="Token",
        token_symbol="TKN",
    )


class TestDetectionContext:
    def test_originating_account_lowercased(self):
        context = DetectionContext([], [], None, "0xABCDEFabcdefABCDEFabcdefABCDEFabcdefABCD")
        assert context.originating_account == "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
        assert context.native_transfers == []

    def test_filter_logs_by_topic_and_address(self):
        logs = [
            RawEventLog(address=POOL, topic0=TOPIC_A.upper().replace("0X", "0x"), log_index=1),
            RawEventLog(address=TOKEN, topic0=TOPIC_A, log_index=2),
            RawEventLog(address=POOL, topic0=TOPIC_B, log_index=3),
            RawEventLog(address=POOL, topic0=None, log_index=4),
        ]
        context = DetectionContext(logs, [])

        assert [log.log_index for log in context.filter_logs(topic0=TOPIC_A)] == [1, 2]
        assert [log.log_index for log in context.filter_logs(topic0=TOPIC_A, address=POOL)] == [1]

    def test_inputs_copied(self):
        transfers = [_make_transfer(USER, POOL, 1), _make_transfer(POOL, USER, 2)]
        context = DetectionContext([], transfers)
        transfers.clear()

        assert len(context.transfers) == 2

    def test_find_native_respects_exclude(self):
        natives = [
            NativeTransfer(from_address=POOL, to_address=USER, amount="5", log_index=10),
            NativeTransfer(from_address=POOL, to_address=USER, amount="6", log_index=11),
        ]
        context = DetectionContext([], [], natives)

        assert context.find_native(lambda nt: nt.to_address == USER) == 0
        assert context.find_native(lambda nt: nt.to_address == USER, exclude={0}) == 1
        assert context.find_native(lambda nt: nt.amount == "7") is None


class TestClaimSet:
    def test_none_ignored(self):
        claims = ClaimSet()
        claims.claim(1, None, 3)
        claims.claim_native(None, 0)
        assert claims.transfers == {1, 3}
        assert claims.native == {0}
