"""Detector implementations for landmark detection."""

from .mediapipe_detector import MediaPipeDetector, landmarks_to_set

__all__ = [
    "MediaPipeDetector",
    "landmarks_to_set",
]
