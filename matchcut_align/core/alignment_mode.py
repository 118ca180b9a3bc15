"""Alignment mode enumeration for template and weight selection."""

from enum import Enum


class AlignmentMode(Enum):
    """Enumeration of supported alignment modes."""
    FULL_FACE = "full-face"
    FEATURE_SPECIFIC = "feature-specific"
    EXPRESSION_INVARIANT = "expression-invariant"
    PERSPECTIVE_3D = "3d-perspective"
