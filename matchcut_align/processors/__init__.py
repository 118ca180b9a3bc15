"""Temporal filtering, orchestration and data I/O."""

from .aligner import FaceAligner, FrameAlignment, SessionState
from .data_exporter import DataExporter
from .data_loader import DataLoader, LandmarkFrame
from .history import AlignmentHistory
from .input_utils import detect_input_type, list_images
from .kalman import KalmanState, KalmanTransformFilter
from .pipeline import FrameData, Pipeline
from .smoother import TransformSmoother
from .streaming_json_reader import StreamingJSONReader

__all__ = [
    "AlignmentHistory",
    "DataExporter",
    "DataLoader",
    "FaceAligner",
    "FrameAlignment",
    "FrameData",
    "KalmanState",
    "LandmarkFrame",
    "KalmanTransformFilter",
    "Pipeline",
    "SessionState",
    "StreamingJSONReader",
    "TransformSmoother",
    "detect_input_type",
    "list_images",
]
