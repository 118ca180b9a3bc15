"""Processing pipeline from images to aligned canvases."""

import logging
from typing import List, Optional, Iterator, Union, Any, Tuple
import numpy as np
from dataclasses import dataclass

from ..core.alignment_mode import AlignmentMode
from ..core.base_detector import BaseDetector
from ..core.base_renderer import BaseRenderer
from ..core.errors import AlignmentError, NoFaceDetected
from ..core.types import AlignmentResult, LandmarkSet
from ..core.stream_utils import ensure_iterator, collect_stream
from .aligner import FaceAligner

logger = logging.getLogger(__name__)


@dataclass
class FrameData:
    """Data for a single frame in the pipeline."""
    frame_idx: int
    image: Optional[np.ndarray] = None
    landmarks: Optional[LandmarkSet] = None
    alignment: Optional[AlignmentResult] = None
    error: Optional[AlignmentError] = None
    rendered: Optional[np.ndarray] = None


class Pipeline:
    """
    Unified processing pipeline supporting both batch and streaming modes.

    The pipeline automatically adapts to input type:
    - Iterator/Generator input → streaming mode (frame-by-frame processing)
    - List input → can be processed as batch or stream
    - Single image input → single processing

    Frames that cannot be aligned keep their ``error`` and no ``rendered``
    canvas; the rest of the sequence is processed normally.
    """

    def __init__(self,
                 detector: BaseDetector,
                 aligner: Optional[FaceAligner] = None,
                 renderer: Optional[BaseRenderer] = None,
                 resolution: Tuple[int, int] = (1280, 720),
                 mode: AlignmentMode = AlignmentMode.FULL_FACE,
                 frame_interval: float = 1.0):
        """
        Initialize pipeline.

        Args:
            detector: Face detector for landmark extraction
            aligner: Face aligner (a default one is created when omitted)
            renderer: Renderer producing the aligned canvas
            resolution: Output canvas (width, height)
            mode: Alignment mode
            frame_interval: Seconds between consecutive frames, used as timestamps
        """
        self.detector = detector
        self.aligner = aligner or FaceAligner()
        self.renderer = renderer
        self.resolution = resolution
        self.mode = mode
        self.frame_interval = frame_interval

    def process(self,
               input_data: Union[np.ndarray, Iterator[np.ndarray], List[np.ndarray]],
               output_sink: Optional[Any] = None,
               buffer_size: Optional[int] = 1) -> Union[Iterator[FrameData], List[FrameData], FrameData]:
        """
        Unified processing interface supporting both batch and streaming modes.

        Args:
            input_data: Input images (single, list, or iterator), RGB uint8
            output_sink: Optional handler with a ``write(canvas)`` method
            buffer_size: None collects all results into a list, otherwise lazy

        Returns:
            - If single input: single FrameData
            - If batch mode (buffer_size=None): complete results list
            - If streaming: iterator of FrameData
        """
        if isinstance(input_data, np.ndarray):
            return self._process_frame(input_data, 0)

        processed_stream = self._process_stream(ensure_iterator(input_data))

        if output_sink is not None:
            processed_stream = self._stream_to_sink(processed_stream, output_sink)
        return collect_stream(processed_stream, buffer_size)

    def _process_frame(self, frame: np.ndarray, frame_idx: int) -> FrameData:
        """
        Process one image through detection, alignment and rendering.

        Args:
            frame: Input image (H, W, C)
            frame_idx: Position in the sequence

        Returns:
            FrameData with whatever stages succeeded
        """
        result = FrameData(frame_idx=frame_idx, image=frame)
        height, width = frame.shape[:2]

        # Detection stage
        result.landmarks = self.detector.detect(frame)

        # Alignment stage
        try:
            if result.landmarks is None:
                raise NoFaceDetected(f"No face detected in frame {frame_idx}")
            result.alignment = self.aligner.align(
                result.landmarks,
                self.resolution,
                self.mode,
                timestamp=frame_idx * self.frame_interval,
                image_size=(width, height),
            )
        except AlignmentError as e:
            logger.warning("Frame %d skipped: %s", frame_idx, e)
            result.error = e

        # Rendering stage
        if self.renderer and result.alignment is not None:
            result.rendered = self.renderer.render(frame, result.alignment.transform, self.resolution)

        return result

    def _process_stream(self, frames: Iterator[np.ndarray]) -> Iterator[FrameData]:
        for frame_idx, frame in enumerate(frames):
            yield self._process_frame(frame, frame_idx)

    def _stream_to_sink(self, stream: Iterator[FrameData], output_sink: Any) -> Iterator[FrameData]:
        """
        Stream processed data to output sink while passing through.

        Args:
            stream: Processed frame stream
            output_sink: Output handler

        Yields:
            FrameData objects (passthrough)
        """
        for frame_data in stream:
            if frame_data.rendered is not None:
                output_sink.write(frame_data.rendered)
            yield frame_data
