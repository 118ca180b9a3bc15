"""Kalman filter for temporal smoothing of registration transforms."""

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
import torch

from ..alignment.linalg import robust_inverse, symmetrize, wrap_angle
from ..core import constants
from ..core.config import KalmanConfig
from ..core.types import DTYPE, RigidTransform

logger = logging.getLogger(__name__)

# State layout: [tx, ty, tz, angle, scale, vtx, vty, vtz, vangle, vscale]
_ANGLE = 3
_SCALE = 4
_VELOCITY = slice(constants.OBSERVATION_SIZE, constants.STATE_SIZE)


@dataclass
class KalmanState:
    """Matrices of the constant-velocity model."""
    x: torch.Tensor   # state estimate (10,)
    P: torch.Tensor   # error covariance (10, 10)
    F: torch.Tensor   # state transition (10, 10), rebuilt for every time step
    H: torch.Tensor   # observation map (5, 10)
    Q: torch.Tensor   # process noise (10, 10)
    R: torch.Tensor   # measurement noise (5, 5)


class KalmanTransformFilter:
    """
    Constant-velocity Kalman filter over translation, in-plane angle and scale.

    The transition uses the real time elapsed between calls, and velocities
    decay by ``velocity_decay`` each step so the estimate does not drift when
    motion stops. One instance tracks exactly one image sequence: call
    ``reset()`` before feeding an unrelated sequence, and never share an
    instance between concurrent callers.
    """

    def __init__(self, config: Optional[KalmanConfig] = None, device: str = 'cpu'):
        """
        Initialize the filter.

        Args:
            config: Noise levels, initial uncertainty and time step limits
            device: Device for the state tensors
        """
        self.config = config or KalmanConfig()
        self.device = device
        self.state = self._initial_state()
        self.initialized = False
        self.last_timestamp: Optional[float] = None
        self.unstable_updates = 0

    def _initial_state(self) -> KalmanState:
        n, m = constants.STATE_SIZE, constants.OBSERVATION_SIZE

        x = torch.zeros(n, dtype=DTYPE, device=self.device)
        x[_SCALE] = 1.0

        P = torch.eye(n, dtype=DTYPE, device=self.device) * self.config.initial_uncertainty

        H = torch.zeros((m, n), dtype=DTYPE, device=self.device)
        H[:, :m] = torch.eye(m, dtype=DTYPE, device=self.device)

        Q = torch.eye(n, dtype=DTYPE, device=self.device) * self.config.process_noise
        R = torch.eye(m, dtype=DTYPE, device=self.device) * self.config.measurement_noise

        return KalmanState(x=x, P=P, F=self._transition(self.config.default_dt), H=H, Q=Q, R=R)

    def _transition(self, dt: float) -> torch.Tensor:
        m = constants.OBSERVATION_SIZE
        F = torch.eye(constants.STATE_SIZE, dtype=DTYPE, device=self.device)
        for i in range(m):
            F[i, i + m] = dt
            F[i + m, i + m] = self.config.velocity_decay
        return F

    def _time_step(self, timestamp: Optional[float]) -> float:
        if timestamp is None:
            timestamp = time.perf_counter()
        if self.last_timestamp is None:
            dt = self.config.default_dt
        else:
            dt = timestamp - self.last_timestamp
            if dt <= 0:
                dt = self.config.default_dt
        self.last_timestamp = timestamp
        return min(dt, self.config.max_dt)

    @staticmethod
    def observation(transform: RigidTransform) -> torch.Tensor:
        """Measurement vector [tx, ty, tz, angle, scale] of a transform."""
        z = torch.empty(constants.OBSERVATION_SIZE, dtype=DTYPE, device=transform.translation.device)
        z[:3] = transform.translation.to(DTYPE)
        z[_ANGLE] = transform.angle
        z[_SCALE] = transform.scale
        return z

    def predict(self, dt: float) -> None:
        """Propagate the state ``dt`` seconds forward."""
        s = self.state
        s.F = self._transition(dt)
        s.x = s.F @ s.x
        s.P = symmetrize(s.F @ s.P @ s.F.T + s.Q)

    def update(self, measurement: torch.Tensor) -> bool:
        """
        Fuse a measurement into the state.

        Args:
            measurement: Observation vector (5,)

        Returns:
            False if the innovation covariance had to be regularized
        """
        s = self.state
        measurement = measurement.to(device=s.x.device, dtype=DTYPE)

        innovation = measurement - s.H @ s.x
        innovation[_ANGLE] = wrap_angle(float(innovation[_ANGLE]))

        S = s.H @ s.P @ s.H.T + s.R
        S_inv, stable = robust_inverse(S, self.config.max_condition)
        K = s.P @ s.H.T @ S_inv

        s.x = s.x + K @ innovation
        s.x[_ANGLE] = wrap_angle(float(s.x[_ANGLE]))

        # Joseph form keeps P symmetric positive semi-definite
        I_KH = torch.eye(constants.STATE_SIZE, dtype=DTYPE, device=s.x.device) - K @ s.H
        s.P = symmetrize(I_KH @ s.P @ I_KH.T + K @ s.R @ K.T)
        return stable

    def filter_confidence(self) -> float:
        """Confidence derived from the uncertainty of the observed components."""
        variance = float(torch.trace(self.state.P[:constants.OBSERVATION_SIZE, :constants.OBSERVATION_SIZE]))
        return max(0.1, min(1.0, 1.0 - variance / self.config.max_variance))

    def filter(self, transform: RigidTransform, timestamp: Optional[float] = None) -> RigidTransform:
        """
        Smooth one raw transform.

        Args:
            transform: Raw transform from the solver
            timestamp: Capture time in seconds; wall clock if omitted

        Returns:
            New transform built from the filtered state
        """
        measurement = self.observation(transform)

        if not self.initialized:
            # No prior to predict from: seed the state and pass the measurement through
            self.state.x[:constants.OBSERVATION_SIZE] = measurement
            self.state.x[_VELOCITY] = 0.0
            self.initialized = True
            self._time_step(timestamp)
            return transform.with_confidence(constants.FIRST_MEASUREMENT_CONFIDENCE)

        self.predict(self._time_step(timestamp))
        stable = self.update(measurement)

        confidence = min(1.0, max(0.0, transform.confidence
                                  + constants.FILTER_CONFIDENCE_BOOST * self.filter_confidence()))
        if not stable:
            self.unstable_updates += 1
            confidence *= 0.5
            logger.warning("Innovation covariance near-singular, used regularized inverse")

        x = self.state.x
        scale = float(x[_SCALE])
        if not math.isfinite(scale) or scale <= 0:
            logger.warning("Filtered scale %s is invalid, keeping measured scale", scale)
            scale = transform.scale
            x[_SCALE] = scale

        return RigidTransform.from_angle(
            angle=float(x[_ANGLE]),
            scale=scale,
            translation=x[:3].tolist(),
            residual=transform.residual,
            confidence=confidence,
            degenerate=transform.degenerate,
            device=self.device,
        )

    def statistics(self) -> Dict[str, Any]:
        """Current filter statistics for diagnostics."""
        if not self.initialized:
            return {
                "initialized": False,
                "confidence": 0.0,
                "state_covariance": 0.0,
                "velocity_magnitude": 0.0,
                "unstable_updates": self.unstable_updates,
            }
        return {
            "initialized": True,
            "confidence": self.filter_confidence(),
            "state_covariance": float(torch.diagonal(self.state.P).mean()),
            "velocity_magnitude": float(torch.linalg.norm(self.state.x[5:8])),
            "unstable_updates": self.unstable_updates,
        }

    def reset(self) -> None:
        """Return to the freshly constructed state."""
        self.state = self._initial_state()
        self.initialized = False
        self.last_timestamp = None
        self.unstable_updates = 0
