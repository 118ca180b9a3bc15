"""Per-frame face alignment orchestrator."""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple, Union
import numpy as np
import torch

from ..alignment.canonical import canonical_target
from ..alignment.correspondence import build_correspondences
from ..alignment.solver import RigidAlignmentSolver
from ..core.alignment_mode import AlignmentMode
from ..core.config import AlignerConfig
from ..core.constants import MODE_REGION_WEIGHTS
from ..core.errors import AlignmentError, NoFaceDetected
from ..core.types import AlignmentResult, LandmarkSet
from ..mappers.semantic_mapper import SemanticLandmarkMapper, region_coverage
from .history import AlignmentHistory
from .smoother import TransformSmoother

logger = logging.getLogger(__name__)

LandmarkInput = Union[LandmarkSet, torch.Tensor, np.ndarray, None]


class SessionState(Enum):
    """Tracking state of one image sequence."""
    UNINITIALIZED = "uninitialized"
    TRACKING = "tracking"


@dataclass
class FrameAlignment:
    """Outcome of one frame in a sequence: a result or the error that stopped it."""
    index: int
    result: Optional[AlignmentResult] = None
    error: Optional[AlignmentError] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


class FaceAligner:
    """
    Registers faces from a sequence of images onto one canonical layout.

    Each call runs landmark preprocessing, correspondence building, the
    similarity solve and temporal smoothing in that order. A frame that fails
    before smoothing raises an ``AlignmentError`` and leaves the session
    untouched, so the next good frame continues from the last good one.
    """

    def __init__(self, config: Optional[AlignerConfig] = None, device: str = 'cpu'):
        """
        Initialize the aligner.

        Args:
            config: Aligner configuration (defaults when omitted)
            device: Device for solver and filter tensors
        """
        self.config = config or AlignerConfig()
        self.device = device

        self.mapper = SemanticLandmarkMapper(self.config.preprocessor)
        solver_config = self.config.solver
        if solver_config.use_3d:
            # Semantic points carry pixel x/y but normalized z
            logger.warning("use_3d is ignored by the face aligner, solving in the image plane")
            solver_config = replace(solver_config, use_3d=False)
        self.solver = RigidAlignmentSolver(solver_config, device=device)
        self.smoother = TransformSmoother(
            method=self.config.smoothing_method,
            alpha=self.config.ema_alpha,
            kalman_config=self.config.kalman,
            device=device,
        )
        self.history = AlignmentHistory(self.config.history_capacity)

        self._state = SessionState.UNINITIALIZED
        self._previous_rotation: Optional[torch.Tensor] = None

    @property
    def state(self) -> SessionState:
        return self._state

    def align(self,
              landmarks: LandmarkInput,
              resolution: Tuple[int, int],
              mode: Union[AlignmentMode, str] = AlignmentMode.FULL_FACE,
              timestamp: Optional[float] = None,
              image_size: Optional[Tuple[int, int]] = None) -> AlignmentResult:
        """
        Align one frame.

        Args:
            landmarks: Normalized landmarks of the frame; None when no face was found
            resolution: Output canvas (width, height) in pixels
            mode: Alignment mode selecting the template and region weights
            timestamp: Capture time in seconds, used for the filter time step
            image_size: Source image (width, height); defaults to ``resolution``

        Returns:
            AlignmentResult with smoothed and raw transforms

        Raises:
            NoFaceDetected: no landmarks for this frame
            InsufficientLandmarks: too few usable landmarks
            InsufficientCorrespondences: too few matched point pairs
        """
        start = time.perf_counter()
        mode = AlignmentMode(mode)
        width, height = resolution
        image_size = image_size or (width, height)

        landmark_set = self._as_landmark_set(landmarks)
        if landmark_set is None or not landmark_set.face_detected:
            raise NoFaceDetected("No face detected in frame")
        if landmark_set.detection_confidence < self.config.min_detection_confidence:
            logger.warning("Low face detection confidence %.2f", landmark_set.detection_confidence)

        points = self.mapper.map(landmark_set, image_size, MODE_REGION_WEIGHTS[mode])
        target = canonical_target(int(width), int(height), mode)
        correspondences = build_correspondences(points, target.points)
        raw = self.solver.solve(correspondences, previous_rotation=self._previous_rotation)

        # Nothing below can fail for input reasons, so the session is updated from here on
        transform = self.smoother.smooth(raw, timestamp)
        self._previous_rotation = raw.rotation
        self._state = SessionState.TRACKING

        result = AlignmentResult(
            transform=transform,
            raw_transform=raw,
            confidence=transform.confidence,
            used_point_count=len(correspondences),
            processing_time=time.perf_counter() - start,
            mode=mode,
            region_coverage=region_coverage(c.source for c in correspondences),
            timestamp=timestamp,
            detection_confidence=landmark_set.detection_confidence,
        )
        self.history.append(result)

        logger.debug("Aligned frame: %d pairs, residual %.3f px, confidence %.3f, %.2f ms",
                     result.used_point_count, raw.residual, result.confidence,
                     result.processing_time * 1000)
        return result

    def align_sequence(self,
                       frames: Iterable[Any],
                       resolution: Tuple[int, int],
                       mode: Union[AlignmentMode, str] = AlignmentMode.FULL_FACE,
                       image_size: Optional[Tuple[int, int]] = None) -> Iterator[FrameAlignment]:
        """
        Align a sequence lazily, recording failures instead of stopping.

        Args:
            frames: Iterable of landmarks, ``(landmarks, timestamp)`` pairs or
                    ``(landmarks, timestamp, image_size)`` triples such as
                    ``LandmarkFrame``
            resolution: Output canvas (width, height)
            mode: Alignment mode
            image_size: Source image (width, height) for frames that carry none

        Yields:
            FrameAlignment per input frame, in order
        """
        for index, frame in enumerate(frames):
            frame_size = image_size
            if isinstance(frame, tuple):
                landmarks, timestamp, *rest = frame
                if rest and rest[0] is not None:
                    frame_size = tuple(rest[0])
            else:
                landmarks, timestamp = frame, None
            try:
                result = self.align(landmarks, resolution, mode, timestamp, frame_size)
            except AlignmentError as e:
                logger.warning("Frame %d not aligned: %s", index, e)
                yield FrameAlignment(index=index, error=e)
            else:
                yield FrameAlignment(index=index, result=result)

    def _as_landmark_set(self, landmarks: LandmarkInput) -> Optional[LandmarkSet]:
        if landmarks is None or isinstance(landmarks, LandmarkSet):
            return landmarks
        return LandmarkSet.from_points(landmarks, device=self.device)

    def statistics(self) -> Dict[str, Any]:
        """History summary plus smoother diagnostics and session state."""
        stats = self.history.summary()
        stats["state"] = self._state.value
        stats["filter"] = self.smoother.statistics()
        return stats

    def reset(self) -> None:
        """Start a new image sequence."""
        self.smoother.reset()
        self.history.clear()
        self._previous_rotation = None
        self._state = SessionState.UNINITIALIZED
