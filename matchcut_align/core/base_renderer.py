"""Base renderer interface for resampling aligned frames."""

from abc import ABC, abstractmethod
from typing import Tuple
import numpy as np

from .types import RigidTransform


class BaseRenderer(ABC):
    """
    Abstract base class for renderers that apply a registration transform.
    
    The transform is applied as translate -> rotate -> scale -> draw, so a
    source pixel p lands at ``scale * R @ p + t`` on the output canvas.
    """
    
    @abstractmethod
    def render(self,
               image: np.ndarray,
               transform: RigidTransform,
               resolution: Tuple[int, int]) -> np.ndarray:
        """
        Resample an image onto the canonical canvas.
        
        Args:
            image: Source image (H, W, C) uint8
            transform: Smoothed registration transform
            resolution: Output canvas size as (width, height)
            
        Returns:
            Output canvas (height, width, C) uint8
        """
        pass
    
    def close(self):
        """Close renderer and clean up resources."""
        pass
    
    def __enter__(self):
        """Context manager entry."""
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with automatic cleanup."""
        self.close()
