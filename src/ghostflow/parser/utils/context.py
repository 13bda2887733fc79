"""DetectionContext: read-only working set for decoding one transaction."""

from collections.abc import Callable

from ghostflow.parser.utils.types import NativeTransfer, RawEventLog, TokenTransfer


class DetectionContext:
    """Inputs shared by every detector. Nothing here is ever consumed or reordered.

    Detectors record what they use in a ``ClaimSet`` and report indices back.
    """

    def __init__(
        self,
        logs: list[RawEventLog],
        transfers: list[TokenTransfer],
        native_transfers: list[NativeTransfer] | None = None,
        originating_account: str = "",
    ) -> None:
        self.logs: tuple[RawEventLog, ...] = tuple(logs)
        self.transfers: list[TokenTransfer] = list(transfers)
        self.native_transfers: list[NativeTransfer] = list(native_transfers or [])
        self.originating_account: str = originating_account.lower()

    def filter_logs(self, *, topic0: str, address: str | None = None) -> list[RawEventLog]:
        """Logs with the given topic0 (and emitting address), in receipt order."""
        result = []
        for log in self.logs:
            if log.topic0 is None or log.topic0.lower() != topic0:
                continue
            if address is not None and log.address.lower() != address:
                continue
            result.append(log)
        return result

    def find_native(
        self,
        predicate: Callable[[NativeTransfer], bool],
        exclude: set[int] | frozenset[int] = frozenset(),
    ) -> int | None:
        """Index of the first native transfer satisfying ``predicate``."""
        for idx, nt in enumerate(self.native_transfers):
            if idx in exclude:
                continue
            if predicate(nt):
                return idx
        return None


class ClaimSet:
    """Indices claimed during one detector scan."""

    def __init__(self) -> None:
        self.transfers: set[int] = set()
        self.native: set[int] = set()

    def claim(self, *indices: int | None) -> None:
        for idx in indices:
            if idx is not None:
                self.transfers.add(idx)

    def claim_native(self, *indices: int | None) -> None:
        for idx in indices:
            if idx is not None:
                self.native.add(idx)
