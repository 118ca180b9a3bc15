"""Tests for the Kalman transform filter and the smoother front end."""

import logging
import math

import pytest
import torch

from matchcut_align.core.config import KalmanConfig
from matchcut_align.core.types import DTYPE, RigidTransform
from matchcut_align.processors.kalman import KalmanTransformFilter
from matchcut_align.processors.smoother import TransformSmoother


def noisy_sequence(count, seed=0, noise=(2.0, 0.02, 0.02)):
    """Constant true transform plus Gaussian measurement noise."""
    generator = torch.Generator().manual_seed(seed)
    translation_noise, angle_noise, scale_noise = noise
    frames = []
    for i in range(count):
        n = torch.randn(4, generator=generator, dtype=DTYPE)
        frames.append(RigidTransform.from_angle(
            angle=0.1 + angle_noise * float(n[0]),
            scale=1.5 + scale_noise * float(n[1]),
            translation=(100.0 + translation_noise * float(n[2]), 50.0 + translation_noise * float(n[3])),
            confidence=0.7,
        ))
    return frames


class TestFirstMeasurement:
    def test_passes_measurement_through(self, sample_transform):
        kf = KalmanTransformFilter()

        out = kf.filter(sample_transform, timestamp=0.0)

        assert torch.equal(out.rotation, sample_transform.rotation)
        assert torch.equal(out.translation, sample_transform.translation)
        assert out.scale == sample_transform.scale
        assert out.confidence == 0.5
        assert kf.initialized

    def test_reset_restores_first_call_behaviour(self, sample_transform):
        kf = KalmanTransformFilter()
        kf.filter(sample_transform, timestamp=0.0)
        kf.filter(RigidTransform.from_angle(1.0, 2.0, (0.0, 0.0)), timestamp=0.1)

        kf.reset()
        out = kf.filter(sample_transform, timestamp=5.0)

        assert out.confidence == 0.5
        assert torch.equal(out.translation, sample_transform.translation)
        assert kf.state.x[5:].abs().max() == 0

    def test_statistics_before_first_measurement(self):
        stats = KalmanTransformFilter().statistics()
        assert stats["initialized"] is False
        assert stats["velocity_magnitude"] == 0.0


class TestFiltering:
    def test_reduces_tail_variance(self):
        frames = noisy_sequence(150)
        kf = KalmanTransformFilter()

        filtered = [kf.filter(t, timestamp=i / 30) for i, t in enumerate(frames)]

        raw_tail = torch.tensor([t.translation[0].item() for t in frames[-75:]])
        smooth_tail = torch.tensor([t.translation[0].item() for t in filtered[-75:]])
        assert smooth_tail.var() < raw_tail.var()

        raw_angles = torch.tensor([t.angle for t in frames[-75:]])
        smooth_angles = torch.tensor([t.angle for t in filtered[-75:]])
        assert smooth_angles.var() < raw_angles.var()

    def test_tracks_constant_input(self, sample_transform):
        kf = KalmanTransformFilter()
        for i in range(60):
            out = kf.filter(sample_transform, timestamp=i / 30)
        assert out.angle == pytest.approx(sample_transform.angle, abs=1e-3)
        assert out.scale == pytest.approx(sample_transform.scale, abs=1e-3)
        assert out.translation.tolist() == pytest.approx(sample_transform.translation.tolist(), abs=1e-2)

    def test_covariance_stays_symmetric_positive_semidefinite(self):
        kf = KalmanTransformFilter()
        for i, t in enumerate(noisy_sequence(40, seed=1)):
            kf.filter(t, timestamp=i * 0.5)
            P = kf.state.P
            assert torch.allclose(P, P.T, atol=1e-12)
            assert torch.linalg.eigvalsh(P).min() >= -1e-9

    def test_output_rotation_is_proper(self):
        kf = KalmanTransformFilter()
        for i, t in enumerate(noisy_sequence(10, seed=2)):
            out = kf.filter(t, timestamp=i / 30)
        assert torch.allclose(out.rotation @ out.rotation.T, torch.eye(3, dtype=DTYPE), atol=1e-9)
        assert float(torch.linalg.det(out.rotation)) == pytest.approx(1.0)

    def test_confidence_formula(self):
        kf = KalmanTransformFilter()
        frames = noisy_sequence(20, seed=3)
        for i, t in enumerate(frames):
            out = kf.filter(t, timestamp=i / 30)
        expected = min(1.0, frames[-1].confidence + 0.2 * kf.filter_confidence())
        assert out.confidence == pytest.approx(expected)
        assert 0.1 <= kf.filter_confidence() <= 1.0

    def test_angle_wraps_across_pi(self):
        kf = KalmanTransformFilter()
        kf.filter(RigidTransform.from_angle(math.pi - 0.01, 1.0, (0.0, 0.0)), timestamp=0.0)
        out = kf.filter(RigidTransform.from_angle(-math.pi + 0.01, 1.0, (0.0, 0.0)), timestamp=1 / 30)
        assert abs(abs(out.angle) - math.pi) < 0.05

    def test_long_gap_is_clamped(self, sample_transform):
        kf = KalmanTransformFilter(KalmanConfig(max_dt=2.0))
        kf.filter(sample_transform, timestamp=0.0)
        kf.filter(sample_transform, timestamp=1000.0)
        assert kf.state.F[0, 5] == pytest.approx(2.0)

    def test_non_increasing_timestamp_uses_default_step(self, sample_transform):
        kf = KalmanTransformFilter()
        kf.filter(sample_transform, timestamp=10.0)
        kf.filter(sample_transform, timestamp=10.0)
        assert kf.state.F[0, 5] == pytest.approx(KalmanConfig().default_dt)

    def test_statistics(self):
        kf = KalmanTransformFilter()
        for i, t in enumerate(noisy_sequence(5)):
            kf.filter(t, timestamp=i / 30)
        stats = kf.statistics()
        assert stats["initialized"] is True
        assert stats["state_covariance"] > 0
        assert stats["unstable_updates"] == 0

    def test_ill_conditioned_update_is_regularized(self, sample_transform, caplog):
        kf = KalmanTransformFilter(KalmanConfig(max_condition=1.0 + 1e-12))
        kf.filter(sample_transform, timestamp=0.0)
        kf.state.P[0, 0] = 10.0

        with caplog.at_level(logging.WARNING, logger="matchcut_align.processors.kalman"):
            out = kf.filter(sample_transform, timestamp=1 / 30)

        assert kf.statistics()["unstable_updates"] == 1
        assert "regularized inverse" in caplog.text
        stable_confidence = min(1.0, sample_transform.confidence + 0.2 * kf.filter_confidence())
        assert out.confidence == pytest.approx(0.5 * stable_confidence)

        P = kf.state.P
        assert torch.allclose(P, P.T, atol=1e-12)
        assert torch.linalg.eigvalsh(P).min() >= -1e-9
        assert torch.isfinite(kf.state.x).all()
        assert out.scale == pytest.approx(sample_transform.scale, abs=1e-3)


class TestTransformSmoother:
    def test_kalman_is_default(self, sample_transform):
        smoother = TransformSmoother()
        out = smoother.smooth(sample_transform, timestamp=0.0)
        assert out.confidence == 0.5
        assert smoother.initialized
        assert smoother.statistics()["method"] == "kalman"

    def test_ema_blends_along_shortest_arc(self):
        smoother = TransformSmoother(method="ema", alpha=0.5)
        first = RigidTransform.from_angle(math.radians(170), 1.0, (0.0, 0.0))
        smoother.smooth(first)
        out = smoother.smooth(RigidTransform.from_angle(math.radians(-170), 3.0, (10.0, 20.0)))

        assert abs(out.angle_degrees) == pytest.approx(180.0)
        assert out.scale == pytest.approx(2.0)
        assert out.translation[:2].tolist() == pytest.approx([5.0, 10.0])

    def test_ema_first_call_is_identity(self, sample_transform):
        smoother = TransformSmoother(method="ema")
        assert smoother.smooth(sample_transform) is sample_transform

    def test_reset(self, sample_transform):
        smoother = TransformSmoother(method="ema")
        smoother.smooth(sample_transform)
        smoother.reset()
        assert not smoother.initialized
        assert smoother.statistics() == {"initialized": False, "method": "ema"}

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            TransformSmoother(method="median")

    def test_invalid_alpha(self):
        with pytest.raises(ValueError):
            TransformSmoother(method="ema", alpha=0.0)
