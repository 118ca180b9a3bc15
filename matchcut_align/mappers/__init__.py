"""Landmark to semantic point mappers."""

from .semantic_mapper import SemanticLandmarkMapper, region_coverage

__all__ = ["SemanticLandmarkMapper", "region_coverage"]
