"""Bounded history of alignment results for diagnostics."""

from collections import Counter, deque
from typing import Any, Deque, Dict, Iterator, List

from ..core.constants import HISTORY_CAPACITY, STATISTICS_WINDOW
from ..core.types import AlignmentResult


class AlignmentHistory:
    """
    Ring buffer of the most recent alignment results.

    Appending beyond ``capacity`` silently evicts the oldest entry.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._results: Deque[AlignmentResult] = deque(maxlen=capacity)

    def append(self, result: AlignmentResult) -> None:
        self._results.append(result)

    def clear(self) -> None:
        self._results.clear()

    def recent(self, n: int) -> List[AlignmentResult]:
        """Return up to ``n`` most recent results, oldest first."""
        if n <= 0:
            return []
        return list(self._results)[-n:]

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[AlignmentResult]:
        return iter(self._results)

    def summary(self, window: int = STATISTICS_WINDOW) -> Dict[str, Any]:
        """
        Aggregate statistics over the last ``window`` results.

        Args:
            window: Number of recent results to average over

        Returns:
            Dictionary with average confidence, residual and processing time,
            total and recent counts, summed region coverage and the mode
            distribution. Averages are 0.0 for an empty history.
        """
        recent = self.recent(window)
        count = len(recent)

        coverage: Counter = Counter()
        for result in recent:
            coverage.update({region.value: n for region, n in result.region_coverage.items()})
        modes = Counter(result.mode.value for result in recent)

        def average(values):
            return sum(values) / count if count else 0.0

        return {
            "average_confidence": average([r.confidence for r in recent]),
            "average_residual": average([r.raw_transform.residual for r in recent]),
            "average_processing_time": average([r.processing_time for r in recent]),
            "total_alignments": len(self._results),
            "recent_alignments": count,
            "region_coverage": dict(coverage),
            "mode_distribution": dict(modes),
        }
