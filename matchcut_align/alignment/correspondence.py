"""Pairing of source semantic points with canonical target points."""

from dataclasses import replace
from typing import Dict, List, Sequence, Tuple

from ..core.constants import MIN_CORRESPONDENCES
from ..core.errors import InsufficientCorrespondences
from ..core.region import Region
from ..core.types import Correspondence, SemanticPoint


def group_by_region(points: Sequence[SemanticPoint]) -> Dict[Region, List[SemanticPoint]]:
    """Group points by region, each group sorted by confidence (highest first)."""
    groups: Dict[Region, List[SemanticPoint]] = {}
    for point in points:
        groups.setdefault(point.region, []).append(point)
    return {
        region: sorted(group, key=lambda p: p.confidence, reverse=True)
        for region, group in groups.items()
    }


def region_centroid(points: Sequence[SemanticPoint]) -> Tuple[float, float, float]:
    """Confidence-weighted mean position of a group of points."""
    total = sum(p.confidence for p in points)
    if total <= 0:
        count = len(points)
        return (sum(p.x for p in points) / count,
                sum(p.y for p in points) / count,
                sum(p.z for p in points) / count)
    return (sum(p.x * p.confidence for p in points) / total,
            sum(p.y * p.confidence for p in points) / total,
            sum(p.z * p.confidence for p in points) / total)


def build_correspondences(source: Sequence[SemanticPoint],
                          target: Sequence[SemanticPoint],
                          min_count: int = MIN_CORRESPONDENCES) -> List[Correspondence]:
    """
    Pair source and target points region by region.
    
    Within a region present in both sets, points are paired in confidence
    order up to the size of the smaller group. Regions found on one side only
    contribute nothing. The result is ordered by combined weight, heaviest
    first; the solver does not depend on this order.
    
    When a region's targets all sit on one anchor, its paired source points
    are moved to their confidence-weighted centroid. The solve then matches
    region centroids, and the spread of a region (a jaw contour, an eye
    outline) does not shrink the recovered scale.
    
    Args:
        source: Semantic points detected in the frame
        target: Canonical template points
        min_count: Minimum number of pairs required
        
    Returns:
        List of correspondences
        
    Raises:
        InsufficientCorrespondences: too few pairs, or no positive weight
    """
    source_groups = group_by_region(source)
    target_groups = group_by_region(target)
    
    correspondences: List[Correspondence] = []
    for region, source_group in source_groups.items():
        target_group = target_groups.get(region)
        if not target_group:
            continue
        paired_sources = source_group[:len(target_group)]
        if _single_anchor(target_group):
            x, y, z = region_centroid(paired_sources)
            paired_sources = [replace(s, x=x, y=y, z=z) for s in paired_sources]
        correspondences.extend(
            Correspondence(source=s, target=t) for s, t in zip(paired_sources, target_group)
        )
    
    if len(correspondences) < min_count:
        raise InsufficientCorrespondences(len(correspondences), min_count)
    if sum(c.weight for c in correspondences) <= 0:
        raise InsufficientCorrespondences(len(correspondences), min_count, "total weight is not positive")
    
    return sorted(correspondences, key=lambda c: c.weight, reverse=True)


def _single_anchor(points: Sequence[SemanticPoint]) -> bool:
    first = points[0]
    return all(p.x == first.x and p.y == first.y and p.z == first.z for p in points)
