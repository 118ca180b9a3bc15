"""Exceptions raised for frames that cannot be aligned.

Only input insufficiency is surfaced as an exception. Degenerate geometry
and near-singular matrices are recovered in place with a fallback value and
a reduced confidence (see ``RigidTransform.degenerate`` and the Kalman
filter's ``unstable_updates`` counter).
"""


class AlignmentError(ValueError):
    """Base class for per-frame alignment failures."""


class NoFaceDetected(AlignmentError):
    """The landmark provider found no face in the image."""


class InsufficientLandmarks(AlignmentError):
    """Fewer valid semantic points than the solver needs."""

    def __init__(self, count: int, required: int):
        super().__init__(f"Only {count} valid landmarks, need at least {required}")
        self.count = count
        self.required = required


class InsufficientCorrespondences(AlignmentError):
    """Fewer region-matched point pairs than the solver needs."""

    def __init__(self, count: int, required: int, reason: str = ""):
        message = f"Only {count} landmark correspondences, need at least {required}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.count = count
        self.required = required
