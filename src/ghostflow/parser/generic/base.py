"""Base detector interfaces."""

from abc import ABC, abstractmethod

from ghostflow.parser.utils.context import ClaimSet, DetectionContext
from ghostflow.parser.utils.operations import DetectionResult, Operation
from ghostflow.parser.utils.types import RawEventLog


class BaseDetector(ABC):
    """Minimal interface all protocol detectors implement."""

    DETECTOR_NAME: str = "BaseDetector"
    PROTOCOL: str = "unknown"

    @abstractmethod
    def can_detect(self, context: DetectionContext) -> bool:
        """Quick check: does the receipt contain any of this detector's anchors?"""

    @abstractmethod
    def detect(self, context: DetectionContext) -> DetectionResult:
        """Scan anchors and return operations plus claimed indices. Never raises on bad logs."""

    def _make_result(self, operations: list[Operation], claims: ClaimSet) -> DetectionResult:
        return DetectionResult(
            detector_name=self.DETECTOR_NAME,
            operations=operations,
            claimed_transfer_indices=frozenset(claims.transfers),
            claimed_native_indices=frozenset(claims.native),
        )

    def _empty_result(self) -> DetectionResult:
        return DetectionResult(detector_name=self.DETECTOR_NAME)


class EventDrivenDetector(BaseDetector):
    """Declarative topic0 -> handler mapping for single-contract protocols.

    Subclasses define:
        CONTRACT_ADDRESS: lowercase address that must emit the anchor
        EVENT_HANDLERS: dict mapping topic0 hashes to handler method names

    Handler method signature:
        def _handle_xxx(self, log, context, claims) -> Operation | None

    Anchors are dispatched in receipt order and share one ClaimSet, so a
    transfer matched by an earlier anchor is never offered to a later one.
    """

    CONTRACT_ADDRESS: str = ""
    EVENT_HANDLERS: dict[str, str] = {}

    def _anchors(self, context: DetectionContext) -> list[RawEventLog]:
        return [
            log for log in context.logs
            if log.topic0 is not None
            and log.topic0.lower() in self.EVENT_HANDLERS
            and log.address.lower() == self.CONTRACT_ADDRESS
        ]

    def can_detect(self, context: DetectionContext) -> bool:
        return bool(self._anchors(context))

    def detect(self, context: DetectionContext) -> DetectionResult:
        operations: list[Operation] = []
        claims = ClaimSet()

        for log in self._anchors(context):
            handler = getattr(self, self.EVENT_HANDLERS[log.topic0.lower()])
            operation = handler(log, context, claims)
            if operation is not None:
                operations.append(operation)

        return self._make_result(operations, claims)
