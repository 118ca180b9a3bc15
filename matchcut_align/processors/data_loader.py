"""Load landmark sequences and exported transforms from files."""

from typing import NamedTuple, Tuple, Iterator, Optional, Dict, Any, Union
from pathlib import Path

from .streaming_json_reader import StreamingJSONReader
from ..core.types import LandmarkSet, RigidTransform


class LandmarkFrame(NamedTuple):
    """One entry of a landmark sequence."""
    landmarks: Optional[LandmarkSet]
    timestamp: Optional[float] = None
    image_size: Optional[Tuple[int, int]] = None


class DataLoader:
    """Load intermediate data from files."""

    @staticmethod
    def load_landmarks(input_path: Union[str, Path],
                       device: str = 'cpu') -> Tuple[Iterator[LandmarkFrame], Dict[str, Any]]:
        """
        Load a landmark sequence from JSON using streaming.

        Each entry of ``data`` is ``null`` (no face), a list of normalized
        ``[x, y]`` or ``[x, y, z]`` points, or an object with ``landmarks``
        and optional ``timestamp``, ``detection_confidence`` and
        ``image_size`` ([width, height]). Entries without an image size fall
        back to the top-level ``width`` and ``height``.

        Args:
            input_path: Input JSON file path
            device: Device to load tensors to

        Returns:
            Tuple of (LandmarkFrame iterator, metadata dict)
        """
        input_path_obj: Path = Path(input_path)

        with StreamingJSONReader(input_path_obj) as reader:
            metadata = reader.get_metadata()

        default_size = None
        if metadata.get('width') and metadata.get('height'):
            default_size = (int(metadata['width']), int(metadata['height']))

        return DataLoader._create_landmarks_iterator(input_path_obj, device, default_size), metadata

    @staticmethod
    def _create_landmarks_iterator(input_path: Path,
                                   device: str,
                                   default_size: Optional[Tuple[int, int]]) -> Iterator[LandmarkFrame]:
        with StreamingJSONReader(input_path) as reader:
            for frame in reader.read_items():
                if frame is None:
                    yield LandmarkFrame(None, None, default_size)
                elif isinstance(frame, dict):
                    size = frame.get('image_size')
                    size = (int(size[0]), int(size[1])) if size else default_size
                    points = frame.get('landmarks')
                    landmarks = None
                    if points is not None:
                        landmarks = LandmarkSet.from_points(
                            points, frame.get('detection_confidence', 1.0), device=device)
                    yield LandmarkFrame(landmarks, frame.get('timestamp'), size)
                else:
                    yield LandmarkFrame(LandmarkSet.from_points(frame, device=device), None, default_size)

    @staticmethod
    def load_transforms(input_path: Union[str, Path],
                        device: str = 'cpu',
                        raw: bool = False) -> Iterator[Optional[RigidTransform]]:
        """
        Load transforms written by ``DataExporter.write_result``.

        Args:
            input_path: Input JSON file path
            device: Device to load tensors to
            raw: Return the unsmoothed solver output instead of the smoothed one

        Returns:
            Iterator of transforms, None for frames that failed
        """
        key = 'raw_transform' if raw else 'transform'
        with StreamingJSONReader(input_path) as reader:
            for item in reader.read_items():
                if item is None:
                    yield None
                else:
                    yield RigidTransform.from_dict(item[key], device=device)
