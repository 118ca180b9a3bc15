"""Small-matrix linear algebra helpers for the solver and the Kalman filter."""

import math
from typing import Tuple
import torch

from ..core.types import DTYPE


def proper_rotation(U: torch.Tensor, Vh: torch.Tensor) -> torch.Tensor:
    """
    Closest proper rotation from the SVD ``H = U S Vh`` of a cross-covariance.
    
    Computes ``R = V diag(1, ..., d) U^T`` with ``d = sign(det(V U^T))`` so the
    result never contains a reflection.
    """
    V = Vh.transpose(-2, -1)
    sign = torch.sign(torch.linalg.det(V @ U.transpose(-2, -1)))
    if sign == 0:
        sign = torch.ones((), dtype=U.dtype, device=U.device)
    correction = torch.ones(U.shape[-1], dtype=U.dtype, device=U.device)
    correction[-1] = sign
    return V @ torch.diag(correction) @ U.transpose(-2, -1)


def embed_rotation(rotation: torch.Tensor) -> torch.Tensor:
    """Embed a 2x2 in-plane rotation into a 3x3 rotation about z."""
    if rotation.shape == (3, 3):
        return rotation
    full = torch.eye(3, dtype=rotation.dtype, device=rotation.device)
    full[:2, :2] = rotation
    return full


def symmetrize(matrix: torch.Tensor) -> torch.Tensor:
    return (matrix + matrix.transpose(-2, -1)) / 2


def wrap_angle(angle: float) -> float:
    """Wrap an angle to (-pi, pi]."""
    wrapped = math.remainder(angle, 2 * math.pi)
    return math.pi if wrapped == -math.pi else wrapped


def robust_inverse(matrix: torch.Tensor, max_condition: float = 1e8) -> Tuple[torch.Tensor, bool]:
    """
    Invert a symmetric positive-definite matrix such as an innovation covariance.
    
    Uses a Cholesky factorization when the matrix is well conditioned. If the
    factorization fails or the condition number exceeds ``max_condition``,
    the matrix is shifted by a Tikhonov term large enough to bring the
    condition number back into range and that regularized inverse is returned.
    
    Args:
        matrix: Square symmetric matrix
        max_condition: Largest acceptable condition number
        
    Returns:
        Tuple of (inverse, stable); ``stable`` is False when regularization was needed
    """
    sym = symmetrize(matrix.to(DTYPE))
    size = sym.shape[-1]
    identity = torch.eye(size, dtype=sym.dtype, device=sym.device)
    
    eigenvalues = torch.linalg.eigvalsh(sym)
    smallest, largest = float(eigenvalues[0]), float(eigenvalues[-1])
    well_conditioned = smallest > 0 and largest / smallest <= max_condition
    
    if well_conditioned:
        L, info = torch.linalg.cholesky_ex(sym)
        if int(info) == 0:
            return torch.cholesky_inverse(L), True
    
    magnitude = max(abs(largest), abs(smallest), 1.0)
    shift = max(0.0, -smallest) + magnitude / max_condition
    L, info = torch.linalg.cholesky_ex(sym + shift * identity)
    if int(info) == 0:
        return torch.cholesky_inverse(L), False
    return torch.linalg.pinv(sym), False
