"""Core components for matchcut-align package."""

from .alignment_mode import AlignmentMode
from .base_detector import BaseDetector
from .base_renderer import BaseRenderer
from .config import AlignerConfig, KalmanConfig, PreprocessorConfig, SolverConfig, load_config
from .errors import (
    AlignmentError,
    InsufficientCorrespondences,
    InsufficientLandmarks,
    NoFaceDetected,
)
from .input_type import InputType
from .region import Region
from .types import (
    AlignmentResult,
    CanonicalTarget,
    Correspondence,
    Landmark,
    LandmarkSet,
    RigidTransform,
    SemanticPoint,
)

__all__ = [
    "AlignerConfig",
    "AlignmentError",
    "AlignmentMode",
    "AlignmentResult",
    "BaseDetector",
    "BaseRenderer",
    "CanonicalTarget",
    "Correspondence",
    "InsufficientCorrespondences",
    "InsufficientLandmarks",
    "InputType",
    "KalmanConfig",
    "Landmark",
    "LandmarkSet",
    "NoFaceDetected",
    "PreprocessorConfig",
    "Region",
    "RigidTransform",
    "SemanticPoint",
    "SolverConfig",
    "load_config",
]
