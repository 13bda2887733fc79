"""DetectorRegistry: ordered protocol detectors run over one DetectionContext."""

import logging

from pydantic import BaseModel, ConfigDict

from ghostflow.parser.generic.base import BaseDetector
from ghostflow.parser.utils.context import DetectionContext
from ghostflow.parser.utils.operations import DetectionResult, Operation

logger = logging.getLogger(__name__)


class RegistryResult(BaseModel):
    """Union of every detector's output for one receipt."""

    model_config = ConfigDict(frozen=True)

    operations: list[Operation] = []
    claimed_transfer_indices: frozenset[int] = frozenset()
    claimed_native_indices: frozenset[int] = frozenset()
    results: list[DetectionResult] = []


class DetectorRegistry:
    """Detectors run in registration order, each over the full unclaimed input.

    Detectors never see each other's claims. When two claim the same index the
    first claimant keeps it and a warning is logged.
    """

    def __init__(self) -> None:
        self._detectors: list[BaseDetector] = []

    def register(self, detector: BaseDetector) -> None:
        self._detectors.append(detector)

    @property
    def detectors(self) -> list[BaseDetector]:
        return list(self._detectors)

    def run(self, context: DetectionContext) -> RegistryResult:
        operations: list[Operation] = []
        results: list[DetectionResult] = []
        transfer_owner: dict[int, str] = {}
        native_owner: dict[int, str] = {}

        for detector in self._detectors:
            if not detector.can_detect(context):
                continue
            result = detector.detect(context)
            results.append(result)
            operations.extend(result.operations)
            self._merge(result.claimed_transfer_indices, transfer_owner, result.detector_name, "transfer")
            self._merge(result.claimed_native_indices, native_owner, result.detector_name, "native transfer")

        return RegistryResult(
            operations=operations,
            claimed_transfer_indices=frozenset(transfer_owner),
            claimed_native_indices=frozenset(native_owner),
            results=results,
        )

    @staticmethod
    def _merge(indices: frozenset[int], owners: dict[int, str], detector_name: str, label: str) -> None:
        for idx in sorted(indices):
            owner = owners.get(idx)
            if owner is not None:
                logger.warning("%s claimed %s %d already claimed by %s", detector_name, label, idx, owner)
                continue
            owners[idx] = detector_name


def build_default_registry() -> DetectorRegistry:
    """Create a DetectorRegistry with lending, swap and liquidity detectors."""
    from ghostflow.parser.defi.aave_v3 import AaveV3Detector
    from ghostflow.parser.defi.uniswap_liquidity import UniswapLiquidityDetector
    from ghostflow.parser.defi.uniswap_swap import UniswapSwapDetector

    registry = DetectorRegistry()
    registry.register(AaveV3Detector())
    registry.register(UniswapSwapDetector())
    registry.register(UniswapLiquidityDetector())
    return registry
