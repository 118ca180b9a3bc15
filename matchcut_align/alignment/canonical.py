"""Canonical face layout that every frame is registered onto."""

import logging
from functools import lru_cache
from typing import List

from ..core.alignment_mode import AlignmentMode
from ..core.constants import (
    EYE_SPACING_RATIO,
    FACE_HEIGHT_RATIO,
    FACE_WIDTH_RATIO,
    FACIAL_REGIONS,
    MODE_REGION_WEIGHTS,
    REGION_ANCHORS,
)
from ..core.region import Region
from ..core.types import CanonicalTarget, SemanticPoint

logger = logging.getLogger(__name__)


@lru_cache(maxsize=32)
def canonical_target(width: int, height: int,
                     mode: AlignmentMode = AlignmentMode.FULL_FACE) -> CanonicalTarget:
    """
    Build the standard face template for a canvas.
    
    The face is centred on the canvas with a height of 60% of the smaller
    canvas side. Every landmark of a region is placed on that region's anchor.
    Correspondence building moves the matching source points onto their
    region centroid, so the solver registers region centroids weighted by how
    many of their points survived preprocessing.
    
    Results are cached per (width, height, mode) and are immutable.
    
    Args:
        width: Canvas width in pixels
        height: Canvas height in pixels
        mode: Alignment mode selecting the active regions and weights
        
    Returns:
        CanonicalTarget in canvas pixel coordinates
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas size must be positive, got {width}x{height}")
    
    if mode is AlignmentMode.PERSPECTIVE_3D:
        logger.info("3d-perspective mode aligns with the in-plane full-face template")
    
    face_height = min(width, height) * FACE_HEIGHT_RATIO
    face_width = face_height * FACE_WIDTH_RATIO
    eye_spacing = face_width * EYE_SPACING_RATIO
    center_x = width / 2
    center_y = height / 2
    
    points: List[SemanticPoint] = []
    for region, region_weight in MODE_REGION_WEIGHTS[mode].items():
        offset_x, offset_y = REGION_ANCHORS[region]
        if region is Region.LEFT_EYE:
            x = center_x - eye_spacing / 2
        elif region is Region.RIGHT_EYE:
            x = center_x + eye_spacing / 2
        else:
            x = center_x + offset_x * face_height
        y = center_y + offset_y * face_height
        
        table = FACIAL_REGIONS[region]
        point_weight = region_weight / len(table)
        points.extend(
            SemanticPoint(x=x, y=y, z=0.0, region=region, weight=point_weight,
                          confidence=1.0, index=index)
            for index in table
        )
    
    return CanonicalTarget(width=width, height=height, mode=mode, points=tuple(points))
