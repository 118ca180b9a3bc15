"""Weighted Procrustes (Kabsch/Umeyama) solver for similarity transforms."""

import logging
import math
from typing import Optional, Sequence
import torch

from ..core.config import SolverConfig
from ..core.constants import MIN_CORRESPONDENCES, MIN_SOLVE_CONFIDENCE
from ..core.errors import InsufficientCorrespondences
from ..core.types import DTYPE, Correspondence, RigidTransform
from .linalg import embed_rotation, proper_rotation

logger = logging.getLogger(__name__)

# Largest singular value below which the point cloud is treated as collapsed
_COLLAPSED_SPREAD = 1e-12


class RigidAlignmentSolver:
    """
    Solves for the rotation, uniform scale and translation that best map
    source points onto target points in the weighted least-squares sense.

    The solver keeps no state between calls: identical input gives identical
    output, and one instance may be shared across threads. Continuity with the
    previous frame is only used through the explicit ``previous_rotation``
    argument when the geometry is degenerate.
    """

    def __init__(self, config: Optional[SolverConfig] = None, device: str = 'cpu'):
        """
        Initialize the solver.

        Args:
            config: Confidence and degeneracy settings
            device: Device for the working tensors
        """
        self.config = config or SolverConfig()
        self.device = device

    @property
    def dimensions(self) -> int:
        return 3 if self.config.use_3d else 2

    def solve(self,
              correspondences: Sequence[Correspondence],
              previous_rotation: Optional[torch.Tensor] = None) -> RigidTransform:
        """
        Solve for the transform mapping correspondence sources onto targets.

        Args:
            correspondences: Source/target point pairs with weights
            previous_rotation: Rotation to fall back on when the points are colinear

        Returns:
            Raw (unsmoothed) RigidTransform
        """
        dim = self.dimensions
        source = torch.tensor([[c.source.x, c.source.y, c.source.z][:dim] for c in correspondences],
                              dtype=DTYPE, device=self.device)
        target = torch.tensor([[c.target.x, c.target.y, c.target.z][:dim] for c in correspondences],
                              dtype=DTYPE, device=self.device)
        weights = torch.tensor([c.weight for c in correspondences], dtype=DTYPE, device=self.device)
        return self.solve_points(source, target, weights, previous_rotation)

    def solve_points(self,
                     source: torch.Tensor,
                     target: torch.Tensor,
                     weights: Optional[torch.Tensor] = None,
                     previous_rotation: Optional[torch.Tensor] = None) -> RigidTransform:
        """
        Weighted Procrustes on raw point arrays.

        Args:
            source: (N, D) source points, D in {2, 3}
            target: (N, D) target points
            weights: (N,) positive weights, uniform if omitted
            previous_rotation: Fallback rotation (2x2 or 3x3) for degenerate input

        Returns:
            RigidTransform with a 3x3 rotation and 3-vector translation

        Raises:
            InsufficientCorrespondences: fewer than three points or no positive weight
        """
        source = torch.as_tensor(source, dtype=DTYPE, device=self.device)
        target = torch.as_tensor(target, dtype=DTYPE, device=self.device)
        if source.shape != target.shape or source.ndim != 2 or source.shape[1] not in (2, 3):
            raise ValueError(f"Mismatched point sets: {tuple(source.shape)} vs {tuple(target.shape)}")

        count, dim = source.shape
        if count < MIN_CORRESPONDENCES:
            raise InsufficientCorrespondences(count, MIN_CORRESPONDENCES)

        if weights is None:
            weights = torch.ones(count, dtype=DTYPE, device=self.device)
        weights = torch.as_tensor(weights, dtype=DTYPE, device=self.device)
        total_weight = weights.sum()
        if not total_weight > 0:
            raise InsufficientCorrespondences(count, MIN_CORRESPONDENCES, "total weight is not positive")

        # Weighted centroids and centred point sets
        source_centroid = (weights[:, None] * source).sum(dim=0) / total_weight
        target_centroid = (weights[:, None] * target).sum(dim=0) / total_weight
        source_centered = source - source_centroid
        target_centered = target - target_centroid

        # Cross-covariance H = sum_i w_i p_i' q_i'^T
        cross_covariance = (weights[:, None] * source_centered).T @ target_centered
        U, singular_values, Vh = torch.linalg.svd(cross_covariance)

        degenerate = self._is_degenerate(singular_values)
        if degenerate:
            rotation = self._fallback_rotation(previous_rotation, dim)
            logger.warning("Degenerate correspondence geometry (singular values %s), using %s rotation",
                           [round(float(s), 6) for s in singular_values],
                           "previous" if previous_rotation is not None else "identity")
        else:
            rotation = proper_rotation(U, Vh)

        # Optimal uniform scale for the chosen rotation
        rotated = source_centered @ rotation.T
        numerator = (weights * (rotated * target_centered).sum(dim=1)).sum()
        denominator = (weights * (source_centered ** 2).sum(dim=1)).sum()
        scale = float(numerator / denominator) if denominator > 0 else float('nan')
        if not math.isfinite(scale) or scale <= 0:
            logger.warning("Invalid scale %s from solver, falling back to 1.0", scale)
            scale = 1.0
            degenerate = True

        translation = target_centroid - scale * rotation @ source_centroid

        transformed = scale * source @ rotation.T + translation
        squared_error = ((transformed - target) ** 2).sum(dim=1)
        residual = math.sqrt(float((weights * squared_error).sum() / total_weight))

        confidence = self._confidence(residual, count, degenerate)

        translation_3d = torch.zeros(3, dtype=DTYPE, device=self.device)
        translation_3d[:dim] = translation

        return RigidTransform(
            rotation=embed_rotation(rotation),
            scale=scale,
            translation=translation_3d,
            residual=residual,
            confidence=confidence,
            degenerate=degenerate,
        )

    def _is_degenerate(self, singular_values: torch.Tensor) -> bool:
        """Colinear or coincident points leave at most one usable singular value."""
        largest = float(singular_values[0])
        if largest <= _COLLAPSED_SPREAD:
            return True
        return float(singular_values[1]) / largest < self.config.degenerate_ratio

    def _fallback_rotation(self, previous_rotation: Optional[torch.Tensor], dim: int) -> torch.Tensor:
        if previous_rotation is None:
            return torch.eye(dim, dtype=DTYPE, device=self.device)
        previous = torch.as_tensor(previous_rotation, dtype=DTYPE, device=self.device)
        if previous.shape[0] < dim:
            previous = embed_rotation(previous)
        return previous[:dim, :dim].clone()

    def _confidence(self, residual: float, count: int, degenerate: bool) -> float:
        fit = min(1.0, max(MIN_SOLVE_CONFIDENCE, 1.0 - residual / self.config.residual_tolerance))
        coverage = min(1.0, count / self.config.full_correspondence_count)
        confidence = fit * coverage
        if degenerate:
            confidence = min(confidence, self.config.degenerate_confidence_cap)
        return confidence
