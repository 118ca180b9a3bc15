"""Base class for landmark to semantic point mapping."""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
import torch

from ..core.config import PreprocessorConfig
from ..core.types import LandmarkSet, SemanticPoint


class BaseLandmarkMapper(ABC):
    """Abstract base class for turning raw landmarks into semantic points."""
    
    def __init__(self, config: Optional[PreprocessorConfig] = None):
        """
        Initialize the mapper.
        
        Args:
            config: Confidence threshold and boundary margin settings
        """
        self.config = config or PreprocessorConfig()
    
    @abstractmethod
    def map(self,
            landmarks: LandmarkSet,
            image_size: Tuple[int, int]) -> List[SemanticPoint]:
        """
        Map facial landmarks to weighted semantic points.
        
        Args:
            landmarks: Normalized landmark set of one face
            image_size: Source image dimensions as (width, height)
            
        Returns:
            Semantic points in source pixel coordinates
        """
        pass
    
    def preprocess_landmarks(self,
                             landmarks: torch.Tensor,
                             image_size: Tuple[int, int]) -> torch.Tensor:
        """
        Convert [0, 1] normalized coordinates to source pixel coordinates.
        
        Args:
            landmarks: Landmark coordinates in [0, 1] range, (N, 2) or (N, 3)
            image_size: Image dimensions (width, height)
            
        Returns:
            Landmarks with x, y in pixels; z is kept as-is
        """
        width, height = image_size
        pixels = landmarks.clone()
        pixels[:, 0] = landmarks[:, 0] * width
        pixels[:, 1] = landmarks[:, 1] * height
        return pixels
