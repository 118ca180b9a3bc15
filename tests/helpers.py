"""Synthetic face builders shared by the test modules."""

import math
from collections import Counter

import torch

from matchcut_align.alignment.canonical import canonical_target
from matchcut_align.core.alignment_mode import AlignmentMode
from matchcut_align.core.constants import FACE_HEIGHT_RATIO, FACIAL_REGIONS
from matchcut_align.core.region import Region
from matchcut_align.core.types import DTYPE, LandmarkSet

IMAGE_SIZE = (640, 480)
NUM_LANDMARKS = 478

# Region outlines as (half width, half height) in units of face height
_ELLIPSES = {
    Region.LEFT_EYE: (0.07, 0.025),
    Region.RIGHT_EYE: (0.07, 0.025),
    Region.NOSE_TIP: (0.05, 0.03),
    Region.MOUTH_OUTER: (0.12, 0.05),
    Region.MOUTH_INNER: (0.08, 0.015),
    Region.CHIN: (0.06, 0.03),
}


def make_face(angle_degrees=0.0, scale=1.0, shift=(0.0, 0.0), image_size=IMAGE_SIZE,
              depth=0.0, detection_confidence=1.0):
    """
    Build a 478-point landmark set whose region landmarks sit on the canonical
    anchors for ``image_size``, then rotated/scaled about the image centre and
    shifted (all in pixels). Landmarks outside the semantic regions sit at
    the image centre.
    """
    width, height = image_size
    template = canonical_target(width, height, AlignmentMode.FULL_FACE)

    pixels = torch.zeros((NUM_LANDMARKS, 2), dtype=DTYPE)
    pixels[:, 0] = width / 2
    pixels[:, 1] = height / 2
    for region, indices in FACIAL_REGIONS.items():
        x, y = template.anchor(region)
        for index in indices:
            pixels[index, 0] = x
            pixels[index, 1] = y

    return _landmark_set(pixels, angle_degrees, scale, shift, image_size, depth, detection_confidence)


def spread_face(angle_degrees=0.0, scale=1.0, shift=(0.0, 0.0), image_size=IMAGE_SIZE):
    """
    Build a landmark set with realistic region shapes: eye and mouth outlines,
    a jaw arc, a forehead row and a nose ridge. Each region's centroid sits on
    its canonical anchor, including regions that share landmark indices.
    """
    width, height = image_size
    template = canonical_target(width, height, AlignmentMode.FULL_FACE)
    face_height = min(width, height) * FACE_HEIGHT_RATIO

    counts = Counter(index for indices in FACIAL_REGIONS.values() for index in indices)
    shared = {index for index, count in counts.items() if count > 1}

    positions = {}
    for region, indices in FACIAL_REGIONS.items():
        for index in indices:
            if index in shared and index not in positions:
                positions[index] = template.anchor(region)

    for region, indices in FACIAL_REGIONS.items():
        anchor_x, anchor_y = template.anchor(region)
        free = [index for index in indices if index not in shared]
        base = [(anchor_x + dx * face_height, anchor_y + dy * face_height)
                for dx, dy in _outline(region, len(free))]

        # Shift the free points so the whole region averages to the anchor
        fixed = [positions[index] for index in indices if index in shared]
        total = len(indices)
        correction_x = (total * anchor_x - sum(p[0] for p in fixed) - sum(b[0] for b in base)) / len(free)
        correction_y = (total * anchor_y - sum(p[1] for p in fixed) - sum(b[1] for b in base)) / len(free)
        for index, (x, y) in zip(free, base):
            positions[index] = (x + correction_x, y + correction_y)

    pixels = torch.zeros((NUM_LANDMARKS, 2), dtype=DTYPE)
    pixels[:, 0] = width / 2
    pixels[:, 1] = height / 2
    for index, (x, y) in positions.items():
        pixels[index, 0] = x
        pixels[index, 1] = y

    return _landmark_set(pixels, angle_degrees, scale, shift, image_size)


def _outline(region, count):
    if region in _ELLIPSES:
        rx, ry = _ELLIPSES[region]
        return [(rx * math.cos(2 * math.pi * i / count), ry * math.sin(2 * math.pi * i / count))
                for i in range(count)]
    if region is Region.JAW:
        # Lower face contour from ear to ear
        angles = [math.pi * (0.05 + 0.9 * i / (count - 1)) for i in range(count)]
        return [(0.36 * math.cos(a), 0.2 * math.sin(a)) for a in angles]
    if region is Region.FOREHEAD:
        return [(-0.2 + 0.4 * i / (count - 1), 0.0) for i in range(count)]
    # Nose ridge: alternating sides down the bridge
    return [(0.02 * (-1) ** i, -0.1 + 0.2 * i / (count - 1)) for i in range(count)]


def _landmark_set(pixels, angle_degrees, scale, shift, image_size, depth=0.0, detection_confidence=1.0):
    width, height = image_size
    center = torch.tensor([width / 2, height / 2], dtype=DTYPE)
    theta = math.radians(angle_degrees)
    rotation = torch.tensor([[math.cos(theta), -math.sin(theta)],
                             [math.sin(theta), math.cos(theta)]], dtype=DTYPE)
    xy = (pixels - center) @ rotation.T * scale + center + torch.tensor(shift, dtype=DTYPE)

    points = torch.zeros((NUM_LANDMARKS, 3), dtype=DTYPE)
    points[:, 0] = xy[:, 0] / width
    points[:, 1] = xy[:, 1] / height
    points[:, 2] = depth
    return LandmarkSet.from_points(points, detection_confidence=detection_confidence)


def uniform_face(x, y, z=0.0):
    """All landmarks at one normalized position."""
    points = torch.zeros((NUM_LANDMARKS, 3), dtype=DTYPE)
    points[:, 0] = x
    points[:, 1] = y
    points[:, 2] = z
    return LandmarkSet.from_points(points)
