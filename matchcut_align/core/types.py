"""Type definitions for landmarks, correspondences and transforms."""

from dataclasses import dataclass, field
from typing import Optional, Dict, List, Tuple, Union, Sequence, Any
import math
import numpy as np
import torch

from .alignment_mode import AlignmentMode
from .region import Region

DTYPE = torch.float64


@dataclass(frozen=True)
class Landmark:
    """A single raw landmark in normalized image coordinates."""
    index: int
    x: float
    y: float
    z: float = 0.0


@dataclass
class LandmarkSet:
    """
    Landmarks of one detected face.

    ``points`` holds normalized coordinates as a (N, 2) or (N, 3) tensor.
    A provider that finds no face reports ``face_detected=False``; a face
    found with low certainty keeps ``face_detected=True`` and a low
    ``detection_confidence``.
    """

    points: torch.Tensor
    face_detected: bool = True
    detection_confidence: float = 1.0

    @classmethod
    def from_points(cls,
                    points: Union[torch.Tensor, np.ndarray, Sequence[Sequence[float]]],
                    detection_confidence: float = 1.0,
                    device: str = 'cpu') -> 'LandmarkSet':
        """
        Build a landmark set from any (N, 2) or (N, 3) array-like.

        Args:
            points: Normalized landmark coordinates
            detection_confidence: Detector confidence for the face
            device: Device to place the tensor on

        Returns:
            LandmarkSet with a float64 tensor
        """
        tensor = torch.as_tensor(np.asarray(points, dtype=np.float64), dtype=DTYPE, device=device)
        if tensor.ndim != 2 or tensor.shape[1] not in (2, 3):
            raise ValueError(f"Expected landmarks of shape (N, 2) or (N, 3), got {tuple(tensor.shape)}")
        return cls(points=tensor, face_detected=True, detection_confidence=float(detection_confidence))

    @classmethod
    def no_face(cls) -> 'LandmarkSet':
        """Marker value for an image in which no face was found."""
        return cls(points=torch.zeros((0, 3), dtype=DTYPE), face_detected=False, detection_confidence=0.0)

    @property
    def has_depth(self) -> bool:
        return self.points.shape[1] == 3

    def __len__(self) -> int:
        return int(self.points.shape[0])

    def __getitem__(self, index: int) -> Landmark:
        row = self.points[index].tolist()
        z = row[2] if len(row) > 2 else 0.0
        return Landmark(index=index, x=row[0], y=row[1], z=z)


@dataclass(frozen=True)
class SemanticPoint:
    """A landmark assigned to a facial region, in pixel coordinates."""
    x: float
    y: float
    z: float
    region: Region
    weight: float
    confidence: float
    index: int = -1


@dataclass(frozen=True)
class Correspondence:
    """A source point paired with its canonical target."""
    source: SemanticPoint
    target: SemanticPoint

    @property
    def weight(self) -> float:
        return (self.source.weight + self.target.weight) / 2


@dataclass(frozen=True)
class CanonicalTarget:
    """The standard face layout for one canvas size and alignment mode."""
    width: int
    height: int
    mode: AlignmentMode
    points: Tuple[SemanticPoint, ...]

    def anchor(self, region: Region) -> Optional[Tuple[float, float]]:
        """Return the (x, y) anchor of a region, or None if the mode omits it."""
        for point in self.points:
            if point.region is region:
                return point.x, point.y
        return None

    @property
    def regions(self) -> List[Region]:
        return list(dict.fromkeys(point.region for point in self.points))


def _rotation_about_z(angle: float, device: Union[str, torch.device] = 'cpu') -> torch.Tensor:
    cos, sin = math.cos(angle), math.sin(angle)
    return torch.tensor([[cos, -sin, 0.0],
                         [sin, cos, 0.0],
                         [0.0, 0.0, 1.0]], dtype=DTYPE, device=device)


@dataclass(frozen=True)
class RigidTransform:
    """
    Similarity transform mapping source pixels onto the canonical canvas.

    A point p maps to ``scale * rotation @ p + translation``. The rotation is
    always a proper 3x3 rotation; 2D solves embed the in-plane rotation in
    its upper-left block and leave the z translation at zero.
    """

    rotation: torch.Tensor      # (3, 3)
    scale: float
    translation: torch.Tensor   # (3,)
    residual: float = 0.0
    confidence: float = 1.0
    degenerate: bool = False

    @classmethod
    def identity(cls, device: str = 'cpu') -> 'RigidTransform':
        """Create the identity transform."""
        return cls(
            rotation=torch.eye(3, dtype=DTYPE, device=device),
            scale=1.0,
            translation=torch.zeros(3, dtype=DTYPE, device=device),
        )

    @classmethod
    def from_angle(cls,
                   angle: float,
                   scale: float,
                   translation: Sequence[float],
                   residual: float = 0.0,
                   confidence: float = 1.0,
                   degenerate: bool = False,
                   device: str = 'cpu') -> 'RigidTransform':
        """
        Create an in-plane transform from an angle in radians.

        Args:
            angle: Rotation angle in radians (positive turns +x towards +y)
            scale: Uniform scale
            translation: (tx, ty) or (tx, ty, tz)
            residual: Alignment residual to carry along
            confidence: Confidence in [0, 1]
            degenerate: Whether the rotation came from a fallback
            device: Device for the tensors
        """
        t = [float(v) for v in translation]
        if len(t) == 2:
            t.append(0.0)
        return cls(
            rotation=_rotation_about_z(angle, device),
            scale=float(scale),
            translation=torch.tensor(t, dtype=DTYPE, device=device),
            residual=float(residual),
            confidence=float(confidence),
            degenerate=degenerate,
        )

    @property
    def angle(self) -> float:
        """In-plane rotation angle in radians."""
        return math.atan2(float(self.rotation[1, 0]), float(self.rotation[0, 0]))

    @property
    def angle_degrees(self) -> float:
        return math.degrees(self.angle)

    def with_confidence(self, confidence: float) -> 'RigidTransform':
        """Copy of this transform with a different confidence."""
        return RigidTransform(
            rotation=self.rotation.clone(),
            scale=self.scale,
            translation=self.translation.clone(),
            residual=self.residual,
            confidence=float(confidence),
            degenerate=self.degenerate,
        )

    def apply(self, points: torch.Tensor) -> torch.Tensor:
        """
        Transform a (N, 2) or (N, 3) set of points.

        Args:
            points: Points in source pixel coordinates

        Returns:
            Points in canvas coordinates with the same shape
        """
        points = torch.as_tensor(points, dtype=DTYPE, device=self.rotation.device)
        dim = points.shape[-1]
        rotation = self.rotation[:dim, :dim]
        return self.scale * points @ rotation.T + self.translation[:dim]

    def to_matrix(self) -> torch.Tensor:
        """Homogeneous 3x3 matrix of the in-plane transform."""
        matrix = torch.eye(3, dtype=DTYPE, device=self.rotation.device)
        matrix[:2, :2] = self.scale * self.rotation[:2, :2]
        matrix[:2, 2] = self.translation[:2]
        return matrix

    def to_affine(self) -> np.ndarray:
        """2x3 affine matrix as expected by ``cv2.warpAffine``."""
        return self.to_matrix()[:2].cpu().numpy()

    def to(self, device: Union[str, torch.device]) -> 'RigidTransform':
        """Move all tensors to specified device."""
        return RigidTransform(
            rotation=self.rotation.to(device),
            scale=self.scale,
            translation=self.translation.to(device),
            residual=self.residual,
            confidence=self.confidence,
            degenerate=self.degenerate,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "rotation": self.angle,
            "scale": self.scale,
            "translation": self.translation.cpu().tolist(),
            "residual": self.residual,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], device: str = 'cpu') -> 'RigidTransform':
        """Inverse of ``to_dict``."""
        return cls.from_angle(
            angle=data["rotation"],
            scale=data["scale"],
            translation=data["translation"],
            residual=data.get("residual", 0.0),
            confidence=data.get("confidence", 1.0),
            device=device,
        )


@dataclass(frozen=True)
class AlignmentResult:
    """Outcome of aligning one frame."""
    transform: RigidTransform
    raw_transform: RigidTransform
    confidence: float
    used_point_count: int
    processing_time: float      # seconds
    mode: AlignmentMode
    region_coverage: Dict[Region, int] = field(default_factory=dict)
    timestamp: Optional[float] = None
    detection_confidence: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "transform": self.transform.to_dict(),
            "raw_transform": self.raw_transform.to_dict(),
            "confidence": self.confidence,
            "used_point_count": self.used_point_count,
            "processing_time": self.processing_time,
            "mode": self.mode.value,
            "region_coverage": {region.value: count for region, count in self.region_coverage.items()},
            "timestamp": self.timestamp,
            "detection_confidence": self.detection_confidence,
            "degenerate": self.raw_transform.degenerate,
        }
