"""OpenCV renderer that resamples frames onto the canonical canvas."""

from typing import Tuple, Union, Iterator, List
import numpy as np
import cv2

from ..core.base_renderer import BaseRenderer
from ..core.types import RigidTransform


class AffineRenderer(BaseRenderer):
    """
    Warps each source image with its registration transform.

    Pixels outside the source image are filled with ``border_value``.
    """

    def __init__(self,
                 interpolation: int = cv2.INTER_LINEAR,
                 border_value: Tuple[int, int, int] = (0, 0, 0)):
        """
        Initialize renderer.

        Args:
            interpolation: OpenCV interpolation flag
            border_value: Fill color for uncovered canvas pixels
        """
        self.interpolation = interpolation
        self.border_value = border_value

    def render(self,
               image: np.ndarray,
               transform: RigidTransform,
               resolution: Tuple[int, int]) -> np.ndarray:
        width, height = resolution
        return cv2.warpAffine(
            image,
            transform.to_affine(),
            (int(width), int(height)),
            flags=self.interpolation,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=self.border_value,
        )

    def render_batch(self,
                     images: Union[List[np.ndarray], Iterator[np.ndarray]],
                     transforms: Union[List[RigidTransform], Iterator[RigidTransform]],
                     resolution: Tuple[int, int]) -> Iterator[np.ndarray]:
        """Render image/transform pairs lazily; a None transform yields None."""
        for image, transform in zip(images, transforms):
            yield None if transform is None else self.render(image, transform, resolution)
