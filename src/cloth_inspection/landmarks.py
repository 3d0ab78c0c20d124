"""
Landmark data contract.

A ``LandmarkFrame`` is one observation per processed video frame: zero, one
or two ``HandObservation`` objects, each holding the 21 normalised (x, y)
keypoints of a hand plus an optional "Left"/"Right" label.

Observations coming from the tracker may be partial.  Missing keypoints are
stored as NaN rows (or the array is simply shorter than 21 rows), and
``HandObservation.point()`` reports them as ``None`` so that callers can
bail out instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

import numpy as np

from cloth_inspection.config import NUM_LANDMARKS


@dataclass(frozen=True, eq=False)
class HandObservation:
    """Normalised keypoints for a single detected hand."""

    # (n, 2) array of x, y in [0, 1]; n is 21 for a complete observation.
    points: np.ndarray

    # "Left" / "Right" as reported by the tracker, if known.
    handedness: Optional[str] = None

    @classmethod
    def from_points(
        cls,
        points: Iterable[Optional[Sequence[float]]],
        handedness: Optional[str] = None,
    ) -> HandObservation:
        """Build an observation from ``(x, y)`` pairs; ``None`` marks a gap."""
        rows = []
        for p in points:
            if p is None:
                rows.append((np.nan, np.nan))
            else:
                rows.append((float(p[0]), float(p[1])))
        arr = np.array(rows, dtype=np.float64).reshape(-1, 2)
        return cls(points=arr, handedness=handedness)

    @classmethod
    def from_array(
        cls, landmarks: np.ndarray, handedness: Optional[str] = None
    ) -> HandObservation:
        """Build from an ``(n, 2)`` or ``(n, 3)`` array (z is dropped)."""
        arr = np.asarray(landmarks, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] < 2:
            arr = np.empty((0, 2), dtype=np.float64)
        return cls(points=arr[:, :2].copy(), handedness=handedness)

    def point(self, idx: int) -> Optional[np.ndarray]:
        """Return the ``(x, y)`` of landmark *idx*, or ``None`` if missing."""
        if idx < 0 or idx >= len(self.points):
            return None
        p = self.points[idx]
        if not np.all(np.isfinite(p)):
            return None
        return p

    @property
    def is_complete(self) -> bool:
        return (
            len(self.points) >= NUM_LANDMARKS
            and bool(np.all(np.isfinite(self.points[:NUM_LANDMARKS])))
        )


@dataclass(frozen=True)
class LandmarkFrame:
    """All hands observed at a single instant."""

    hands: tuple[HandObservation, ...] = field(default_factory=tuple)

    # Capture time in milliseconds on a monotonic clock, if the source
    # provides one.
    timestamp_ms: Optional[float] = None

    def __len__(self) -> int:
        return len(self.hands)


def frame_from_landmarker_result(
    result, timestamp_ms: Optional[float] = None
) -> LandmarkFrame:
    """Convert a MediaPipe Tasks ``HandLandmarkerResult`` to a frame.

    Only the attributes ``hand_landmarks`` (``list[list[NormalizedLandmark]]``)
    and ``handedness`` (``list[list[Category]]``) are used.
    """
    hand_landmarks = getattr(result, "hand_landmarks", None) or []
    handedness = getattr(result, "handedness", None) or []

    hands = []
    for i, mp_landmarks in enumerate(hand_landmarks):
        label = None
        if i < len(handedness) and handedness[i]:
            label = handedness[i][0].category_name
        hands.append(
            HandObservation.from_points(
                ((lm.x, lm.y) for lm in mp_landmarks), handedness=label
            )
        )
    return LandmarkFrame(hands=tuple(hands), timestamp_ms=timestamp_ms)
