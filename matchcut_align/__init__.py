"""
Match-Cut Face Alignment Package

A Python package for registering faces from a sequence of photos onto one
canonical layout, so that eyes, nose and mouth land on the same canvas
position in every output frame.

The MediaPipe detector and the OpenCV renderer live in
``matchcut_align.detectors`` and ``matchcut_align.renderers``.
"""

__version__ = "1.0.0"

from .alignment.canonical import canonical_target
from .alignment.correspondence import build_correspondences
from .alignment.solver import RigidAlignmentSolver
from .core.alignment_mode import AlignmentMode
from .core.config import AlignerConfig, load_config
from .core.errors import (
    AlignmentError,
    InsufficientCorrespondences,
    InsufficientLandmarks,
    NoFaceDetected,
)
from .core.types import AlignmentResult, LandmarkSet, RigidTransform
from .mappers.semantic_mapper import SemanticLandmarkMapper
from .processors.aligner import FaceAligner, FrameAlignment, SessionState
from .processors.data_exporter import DataExporter
from .processors.data_loader import DataLoader
from .processors.kalman import KalmanTransformFilter
from .processors.pipeline import Pipeline
from .processors.smoother import TransformSmoother

__all__ = [
    "AlignerConfig",
    "AlignmentError",
    "AlignmentMode",
    "AlignmentResult",
    "DataExporter",
    "DataLoader",
    "FaceAligner",
    "FrameAlignment",
    "InsufficientCorrespondences",
    "InsufficientLandmarks",
    "KalmanTransformFilter",
    "LandmarkSet",
    "NoFaceDetected",
    "Pipeline",
    "RigidAlignmentSolver",
    "RigidTransform",
    "SemanticLandmarkMapper",
    "SessionState",
    "TransformSmoother",
    "build_correspondences",
    "canonical_target",
    "load_config",
]
