"""Transform smoothing utilities for temporal filtering."""

from typing import Any, Dict, Optional

from ..alignment.linalg import wrap_angle
from ..core.config import KalmanConfig
from ..core.constants import EMA_ALPHA
from ..core.types import RigidTransform
from .kalman import KalmanTransformFilter


class TransformSmoother:
    """
    Temporal smoothing of per-frame transforms with selectable filtering.
    """

    def __init__(self,
                 method: str = "kalman",
                 alpha: float = EMA_ALPHA,
                 kalman_config: Optional[KalmanConfig] = None,
                 device: str = 'cpu'):
        """
        Initialize transform smoother.

        Args:
            method: Smoothing method ("kalman", "ema", "none")
            alpha: Weight of the new measurement for EMA (0-1)
            kalman_config: Settings for the Kalman filter
            device: Device for the filter state
        """
        if method not in ("kalman", "ema", "none"):
            raise ValueError(f"Unknown smoothing method: {method}")
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"EMA alpha must be in (0, 1], got {alpha}")
        self.method = method
        self.alpha = alpha

        self.prev_transform: Optional[RigidTransform] = None
        self.kalman = KalmanTransformFilter(kalman_config, device=device)

    @property
    def initialized(self) -> bool:
        if self.method == "kalman":
            return self.kalman.initialized
        return self.prev_transform is not None

    def smooth(self, transform: RigidTransform, timestamp: Optional[float] = None) -> RigidTransform:
        """
        Apply smoothing to a transform.

        Args:
            transform: Raw transform of the current frame
            timestamp: Capture time in seconds

        Returns:
            Smoothed transform
        """
        if self.method == "kalman":
            smoothed = self.kalman.filter(transform, timestamp)
        elif self.method == "ema":
            smoothed = self._exponential_moving_average(transform)
        else:
            smoothed = transform
        return smoothed

    def _exponential_moving_average(self, transform: RigidTransform) -> RigidTransform:
        """Exponential moving average on angle, scale and translation."""
        if self.prev_transform is None:
            self.prev_transform = transform
            return transform

        prev = self.prev_transform
        alpha = self.alpha

        # Blend along the shortest arc so +179 and -179 degrees average near 180
        angle = prev.angle + alpha * wrap_angle(transform.angle - prev.angle)
        scale = (1 - alpha) * prev.scale + alpha * transform.scale
        translation = (1 - alpha) * prev.translation + alpha * transform.translation

        smoothed = RigidTransform.from_angle(
            angle=wrap_angle(angle),
            scale=scale,
            translation=translation.tolist(),
            residual=transform.residual,
            confidence=transform.confidence,
            degenerate=transform.degenerate,
            device=str(transform.translation.device),
        )
        self.prev_transform = smoothed
        return smoothed

    def statistics(self) -> Dict[str, Any]:
        """Smoother diagnostics."""
        if self.method == "kalman":
            return {**self.kalman.statistics(), "method": self.method}
        return {"initialized": self.initialized, "method": self.method}

    def reset(self):
        """Reset smoother state."""
        self.prev_transform = None
        self.kalman.reset()
