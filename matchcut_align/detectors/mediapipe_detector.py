"""MediaPipe detector wrapper for 478-point face mesh landmarks."""

import logging
from typing import Optional, Sequence, Union, Iterator, List
from pathlib import Path
import requests
import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision
from tqdm import tqdm

from ..core.base_detector import BaseDetector
from ..core.stream_utils import is_iterator, apply_to_stream
from ..core.types import LandmarkSet

logger = logging.getLogger(__name__)

MODEL_URL = ("https://storage.googleapis.com/mediapipe-models/face_landmarker/"
             "face_landmarker/float16/1/face_landmarker.task")
NUM_LANDMARKS = 478


def landmarks_to_set(face_landmarks: Sequence, detection_confidence: float = 1.0) -> LandmarkSet:
    """
    Convert one face of a MediaPipe FaceLandmarker result to a LandmarkSet.

    MediaPipe already reports x, y normalized to the image size and z
    relative to head width (negative = towards the camera), which is the
    convention the mapper expects, so values are copied as-is.

    Args:
        face_landmarks: Sequence of NormalizedLandmark with x, y, z
        detection_confidence: Confidence to attach to the face

    Returns:
        LandmarkSet of shape (N, 3)
    """
    points = np.array([[lm.x, lm.y, lm.z] for lm in face_landmarks], dtype=np.float64).reshape(-1, 3)
    return LandmarkSet.from_points(points, detection_confidence=detection_confidence)


def _face_area(face_landmarks: Sequence) -> float:
    xs = [lm.x for lm in face_landmarks]
    ys = [lm.y for lm in face_landmarks]
    return (max(xs) - min(xs)) * (max(ys) - min(ys))


class MediaPipeDetector(BaseDetector):
    """
    MediaPipe FaceLandmarker using the Tasks API in IMAGE mode.

    Photos of a match-cut sequence are unrelated stills, so every image is
    detected independently rather than tracked. When several faces are found
    the largest one is returned.
    """

    def __init__(self,
                 max_num_faces: int = 4,
                 min_detection_confidence: float = 0.5,
                 model_path: Optional[Union[str, Path]] = None):
        """
        Initialize MediaPipe FaceLandmarker detector with auto-download.

        Args:
            max_num_faces: Maximum number of faces to consider per image
            min_detection_confidence: Minimum confidence for face detection
            model_path: Location of face_landmarker.task (downloaded if missing)
        """
        self.max_num_faces = max_num_faces
        self.min_detection_confidence = min_detection_confidence

        model_file = self._ensure_model_exists(
            Path(model_path) if model_path else Path.cwd() / "face_landmarker.task")

        base_options = python.BaseOptions(model_asset_path=str(model_file))
        options = vision.FaceLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.IMAGE,
            num_faces=max_num_faces,
            min_face_detection_confidence=min_detection_confidence,
            min_face_presence_confidence=min_detection_confidence,
            output_face_blendshapes=False,
            output_facial_transformation_matrixes=False
        )

        self.landmarker = vision.FaceLandmarker.create_from_options(options)

    @staticmethod
    def _ensure_model_exists(model_path: Path) -> Path:
        """
        Ensure the model file exists, download if necessary.

        Returns:
            Path to the model file
        """
        if model_path.exists():
            logger.info("Using existing MediaPipe model: %s", model_path)
            return model_path

        logger.info("MediaPipe FaceLandmarker model not found, downloading to %s", model_path)
        try:
            response = requests.get(MODEL_URL, stream=True, timeout=60)
            response.raise_for_status()
            total_size = int(response.headers.get('content-length', 0))

            with open(model_path, 'wb') as f:
                with tqdm(total=total_size, unit='B', unit_scale=True, desc="Downloading model") as pbar:
                    for chunk in response.iter_content(chunk_size=8192):
                        if chunk:
                            f.write(chunk)
                            pbar.update(len(chunk))
        except requests.RequestException as e:
            model_path.unlink(missing_ok=True)
            raise RuntimeError(f"Failed to download MediaPipe model: {e}") from e

        return model_path

    def get_num_landmarks(self) -> int:
        return NUM_LANDMARKS

    def detect(self, input_data: Union[np.ndarray, Iterator[np.ndarray], List[np.ndarray]]):
        """
        Unified detection interface supporting single image, batch, and streaming modes.

        Args:
            input_data: RGB uint8 image(s) (H, W, 3): single array, list, or iterator

        Returns:
            - Single image: Optional[LandmarkSet]
            - Multiple images: Iterator or List of Optional[LandmarkSet]
        """
        if isinstance(input_data, np.ndarray):
            return self._detect_single(input_data)

        elif is_iterator(input_data):
            return apply_to_stream(input_data, self._detect_single, preserve_none=True)

        else:
            return [self._detect_single(image) for image in input_data]

    def _detect_single(self, image: np.ndarray) -> Optional[LandmarkSet]:
        """
        Detect face mesh landmarks in a single image.

        Args:
            image: RGB image (H, W, 3) uint8

        Returns:
            Landmarks of the largest face, or None if no face detected
        """
        image = self.preprocess_image(image)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image)

        detection_result = self.landmarker.detect(mp_image)
        if not detection_result.face_landmarks:
            return None

        face_landmarks = max(detection_result.face_landmarks, key=_face_area)
        if len(face_landmarks) != NUM_LANDMARKS:
            logger.warning("Expected %d landmarks, got %d", NUM_LANDMARKS, len(face_landmarks))

        # FaceLandmarker reports no per-face score; faces below the threshold are already dropped
        return landmarks_to_set(face_landmarks)

    def preprocess_image(self, image: np.ndarray) -> np.ndarray:
        """MediaPipe needs a contiguous uint8 buffer."""
        return np.ascontiguousarray(image, dtype=np.uint8)

    def close(self):
        """Clean up MediaPipe resources."""
        if hasattr(self, 'landmarker'):
            self.landmarker.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
