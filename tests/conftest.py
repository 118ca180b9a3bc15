"""Shared test fixtures."""

import pytest
import torch

from matchcut_align.core.types import DTYPE, RigidTransform

from helpers import make_face


@pytest.fixture
def face_factory():
    return make_face


@pytest.fixture
def frontal_face():
    return make_face()


@pytest.fixture
def square_points():
    """Four non-colinear 2D points."""
    return torch.tensor([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]], dtype=DTYPE)


@pytest.fixture
def sample_transform():
    return RigidTransform.from_angle(0.3, 1.5, (100.0, 50.0), residual=1.0, confidence=0.8)
