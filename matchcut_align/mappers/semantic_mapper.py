"""Landmark preprocessor producing weighted, confidence-scored semantic points."""

import logging
from collections import Counter
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
import torch

from ..core import constants
from ..core.config import PreprocessorConfig
from ..core.constants import FACIAL_REGIONS, FULL_FACE_WEIGHTS
from ..core.errors import InsufficientLandmarks
from ..core.region import Region
from ..core.types import DTYPE, LandmarkSet, SemanticPoint
from ..core.stream_utils import apply_to_stream, is_iterator
from .base_mapper import BaseLandmarkMapper

logger = logging.getLogger(__name__)


def region_coverage(points: Iterable[SemanticPoint]) -> Dict[Region, int]:
    """Count semantic points per region."""
    return dict(Counter(point.region for point in points))


class SemanticLandmarkMapper(BaseLandmarkMapper):
    """
    Filters a raw face mesh down to the regions used for registration.

    Each region in the weight table contributes the landmarks listed for it in
    ``FACIAL_REGIONS``. A point is kept when its coordinates are plausible
    (inside the image, moderate depth) and its confidence reaches the
    configured threshold. Confidence starts at 0.8, eyes and nose bridge get a
    bonus, and points near the image edge or with large depth are penalized.

    The mapper holds no per-frame state and can be shared between threads.
    """
    
    def __init__(self, config: Optional[PreprocessorConfig] = None):
        super().__init__(config)
    
    def map(self,
            input_data: Union[LandmarkSet, Iterator[Optional[LandmarkSet]], List[Optional[LandmarkSet]]],
            image_size: Tuple[int, int],
            region_weights: Optional[Mapping[Region, float]] = None):
        """
        Unified mapping interface supporting single, batch, and streaming modes.
        
        Args:
            input_data: Landmark set, or a list/iterator of landmark sets
            image_size: Source image dimensions as (width, height)
            region_weights: Active regions and their weights (defaults to full-face)
            
        Returns:
            - Single input: List[SemanticPoint]
            - Multiple inputs: Iterator or List of point lists (None passes through)
        """
        weights = region_weights if region_weights is not None else FULL_FACE_WEIGHTS
        
        if isinstance(input_data, LandmarkSet):
            return self._map_single(input_data, image_size, weights)
        
        elif is_iterator(input_data):
            return apply_to_stream(input_data, lambda lm: self._map_single(lm, image_size, weights),
                                   preserve_none=True)
        
        else:
            return [self._map_single(lm, image_size, weights) if lm is not None else None
                    for lm in input_data]
    
    def _map_single(self,
                    landmarks: LandmarkSet,
                    image_size: Tuple[int, int],
                    region_weights: Mapping[Region, float]) -> List[SemanticPoint]:
        """
        Extract semantic points for one face.
        
        Raises:
            InsufficientLandmarks: fewer than three points survive filtering
        """
        normalized = landmarks.points.to(DTYPE)
        count = normalized.shape[0]
        pixels = self.preprocess_landmarks(normalized, image_size)
        
        x = normalized[:, 0]
        y = normalized[:, 1]
        z = normalized[:, 2] if normalized.shape[1] > 2 else torch.zeros_like(x)
        
        valid = (x >= 0) & (x <= 1) & (y >= 0) & (y <= 1) & (z.abs() < constants.MAX_VALID_DEPTH)
        
        margin = self.config.boundary_margin
        near_edge = (x < margin) | (x > 1 - margin) | (y < margin) | (y > 1 - margin)
        depth_outlier = z.abs() > constants.DEPTH_OUTLIER_THRESHOLD
        
        penalty = near_edge.to(DTYPE) * constants.BOUNDARY_PENALTY + depth_outlier.to(DTYPE) * constants.DEPTH_PENALTY
        
        points: List[SemanticPoint] = []
        for region, region_weight in region_weights.items():
            table = FACIAL_REGIONS[region]
            # Indices past the end of a sparse landmark set are skipped
            indices = [i for i in table if i < count]
            if not indices:
                continue
            
            base = constants.BASE_CONFIDENCE
            if region in constants.RELIABLE_REGIONS:
                base += constants.RELIABLE_REGION_BONUS
            
            idx = torch.tensor(indices, dtype=torch.long, device=normalized.device)
            confidence = torch.clamp(base - penalty[idx],
                                     constants.MIN_POINT_CONFIDENCE,
                                     constants.MAX_POINT_CONFIDENCE)
            keep = valid[idx] & (confidence >= self.config.min_confidence)
            
            point_weight = region_weight / len(table)
            for i, landmark_index in enumerate(indices):
                if not keep[i]:
                    continue
                points.append(SemanticPoint(
                    x=float(pixels[landmark_index, 0]),
                    y=float(pixels[landmark_index, 1]),
                    z=float(z[landmark_index]),
                    region=region,
                    weight=point_weight,
                    confidence=float(confidence[i]),
                    index=landmark_index,
                ))
        
        if len(points) < constants.MIN_VALID_POINTS:
            raise InsufficientLandmarks(len(points), constants.MIN_VALID_POINTS)
        
        logger.debug("Extracted %d semantic points from %d landmarks", len(points), count)
        return points
