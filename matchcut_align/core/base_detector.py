"""Base class for landmark providers."""

from abc import ABC, abstractmethod
from typing import Optional, Union
import numpy as np
import torch

from .types import LandmarkSet, DTYPE


class BaseDetector(ABC):
    """Abstract base class for facial landmark detectors."""
    
    @abstractmethod
    def detect(self, image: np.ndarray) -> Optional[LandmarkSet]:
        """
        Detect landmarks in the given image.
        
        Args:
            image: Input image as numpy array (H, W, C) in RGB format
            
        Returns:
            Landmarks of the main face, or None if no face was found
        """
        pass
    
    @abstractmethod
    def get_num_landmarks(self) -> int:
        """Return the number of landmarks this detector provides."""
        pass
    
    def preprocess_image(self, image: np.ndarray) -> np.ndarray:
        """
        Preprocess image before detection.
        Default implementation returns image as-is.
        """
        return image
    
    def postprocess_landmarks(self,
                              landmarks: Union[np.ndarray, torch.Tensor],
                              image_shape: Optional[tuple] = None,
                              detection_confidence: float = 1.0) -> LandmarkSet:
        """
        Postprocess detected landmarks into a LandmarkSet.
        Normalizes pixel coordinates to [0, 1] when image_shape is provided.
        
        Args:
            landmarks: Raw landmarks from detector (N, 2) or (N, 3)
            image_shape: Image shape (H, W, C) for normalization
            detection_confidence: Detector score for the face
            
        Returns:
            LandmarkSet with normalized coordinates
        """
        if isinstance(landmarks, np.ndarray):
            landmarks = torch.from_numpy(landmarks)
        
        landmarks = landmarks.to(DTYPE)
        
        if image_shape is not None:
            height, width = image_shape[:2]
            landmarks = landmarks.clone()  # Don't modify original
            landmarks[:, 0] = landmarks[:, 0] / width   # x coordinates
            landmarks[:, 1] = landmarks[:, 1] / height  # y coordinates
        
        return LandmarkSet(points=landmarks, face_detected=True,
                           detection_confidence=float(detection_confidence))
