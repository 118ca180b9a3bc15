"""Renderers for aligned output frames."""

from .affine_renderer import AffineRenderer

__all__ = [
    "AffineRenderer",
]
