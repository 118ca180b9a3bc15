"""Canonical templates, correspondences and rigid alignment."""

from .canonical import canonical_target
from .correspondence import build_correspondences, group_by_region, region_centroid
from .linalg import proper_rotation, robust_inverse, wrap_angle
from .solver import RigidAlignmentSolver

__all__ = [
    "RigidAlignmentSolver",
    "build_correspondences",
    "canonical_target",
    "group_by_region",
    "proper_rotation",
    "region_centroid",
    "robust_inverse",
    "wrap_angle",
]
