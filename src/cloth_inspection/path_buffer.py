"""
Time-windowed buffer of fingertip positions with circle detection.

Stores the pixel-space index-fingertip trail of a pointing hand together
with capture timestamps so that the circle detector can decide whether the
recent trajectory forms a circle.

Points older than ``CIRCLE_WINDOW_MS`` are evicted from the front before
every evaluation, so the buffer never needs a size cap.

Circle test
-----------
1. Enough points and a large enough bounding box.
2. **Circularity**: the average deviation of each point's distance from the
   bounding-box centre from the nominal radius (mean of half-width and
   half-height), turned into ``max(0, 1 - avg_dev / radius)``.
3. **Aspect penalty**: multiplied by ``min(w/h, h/w)``.
4. **Arc coverage**: the points must spread around the centre, which
   rejects straight strokes.
5. **Closedness**: a path that returns near its start passes with a
   relaxed threshold.  With ``require_closed`` (the default) open paths are
   rejected outright, so a half-drawn arc does not fire before the loop is
   finished.
"""

from __future__ import annotations

import math
import time
from collections import deque
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

import numpy as np

from cloth_inspection.config import (
    CIRCLE_ARC_SECTORS,
    CIRCLE_CLOSED_RATIO,
    CIRCLE_CLOSED_RELAX,
    CIRCLE_CONFIDENCE_THRESHOLD,
    CIRCLE_MIN_ARC_COVERAGE,
    CIRCLE_MIN_DIAMETER_PX,
    CIRCLE_MIN_POINTS,
    CIRCLE_REQUIRE_CLOSED,
    CIRCLE_WINDOW_MS,
)


def now_ms() -> float:
    """Monotonic clock reading in milliseconds."""
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class TrackedPoint:
    """A fingertip sample in pixel space."""

    x: float
    y: float
    timestamp: float


@dataclass(frozen=True)
class Circle:
    """A confirmed circle gesture (pixel coordinates)."""

    center: tuple[float, float]
    radius: float
    points: tuple[TrackedPoint, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "center": {"x": round(self.center[0], 1), "y": round(self.center[1], 1)},
            "radius": round(self.radius, 1),
            "points": len(self.points),
        }


class BoundingBox(NamedTuple):
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


def bounding_box(xy: np.ndarray) -> BoundingBox:
    """Axis-aligned bounding box of an ``(n, 2)`` array."""
    mins = xy.min(axis=0)
    maxs = xy.max(axis=0)
    return BoundingBox(
        float(mins[0]),
        float(mins[1]),
        float(maxs[0] - mins[0]),
        float(maxs[1] - mins[1]),
    )


def circularity(xy: np.ndarray) -> float:
    """Circularity confidence in ``[0, 1]`` of an ``(n, 2)`` point array.

    A bounding box with zero width or zero height is degenerate and scores 0.
    """
    if len(xy) < 3:
        return 0.0
    box = bounding_box(xy)
    if box.width <= 0.0 or box.height <= 0.0:
        return 0.0
    radius = (box.width + box.height) / 4.0

    cx, cy = box.center
    dists = np.hypot(xy[:, 0] - cx, xy[:, 1] - cy)
    avg_dev = float(np.abs(dists - radius).mean())
    confidence = max(0.0, 1.0 - avg_dev / radius)

    aspect = min(box.width / box.height, box.height / box.width)
    return confidence * aspect


def arc_coverage(xy: np.ndarray, sectors: int = CIRCLE_ARC_SECTORS) -> float:
    """Fraction of equal angular sectors around the bbox centre with a point."""
    if len(xy) == 0:
        return 0.0
    cx, cy = bounding_box(xy).center
    angles = np.arctan2(xy[:, 1] - cy, xy[:, 0] - cx)
    bins = np.floor((angles + math.pi) / (2.0 * math.pi) * sectors).astype(int)
    bins = np.clip(bins, 0, sectors - 1)
    return len(np.unique(bins)) / sectors


class PathBuffer:
    """Age-bounded, append-only trail of ``TrackedPoint`` objects."""

    def __init__(
        self,
        window_ms: float = CIRCLE_WINDOW_MS,
        min_points: int = CIRCLE_MIN_POINTS,
        min_diameter_px: float = CIRCLE_MIN_DIAMETER_PX,
        confidence_threshold: float = CIRCLE_CONFIDENCE_THRESHOLD,
        closed_ratio: float = CIRCLE_CLOSED_RATIO,
        closed_relax: float = CIRCLE_CLOSED_RELAX,
        min_arc_coverage: float = CIRCLE_MIN_ARC_COVERAGE,
        require_closed: bool = CIRCLE_REQUIRE_CLOSED,
    ) -> None:
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        self.window_ms = window_ms
        self.min_points = min_points
        self.min_diameter_px = min_diameter_px
        self.confidence_threshold = confidence_threshold
        self.closed_ratio = closed_ratio
        self.closed_relax = closed_relax
        self.min_arc_coverage = min_arc_coverage
        self.require_closed = require_closed
        self._buf: deque[TrackedPoint] = deque()
        # Confidence of the most recent evaluation, for overlays/logging.
        self.last_confidence: float = 0.0

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def add_point(self, x: float, y: float, timestamp: Optional[float] = None) -> None:
        """Append a fingertip sample (pixel coords) stamped *timestamp* ms."""
        if timestamp is None:
            timestamp = now_ms()
        self._buf.append(TrackedPoint(float(x), float(y), float(timestamp)))

    def clear(self) -> None:
        self._buf.clear()
        self.last_confidence = 0.0

    def evict(self, now: Optional[float] = None) -> None:
        """Drop points that are ``window_ms`` or more older than *now*."""
        if now is None:
            now = now_ms()
        while self._buf and now - self._buf[0].timestamp >= self.window_ms:
            self._buf.popleft()

    # ------------------------------------------------------------------
    # Reading helpers
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._buf)

    def points(self, now: Optional[float] = None) -> tuple[TrackedPoint, ...]:
        """Live trail (after eviction), oldest first."""
        self.evict(now)
        return tuple(self._buf)

    def _xy(self) -> np.ndarray:
        return np.array([(p.x, p.y) for p in self._buf], dtype=np.float64)

    # ------------------------------------------------------------------
    # Circle detection
    # ------------------------------------------------------------------

    def _is_closed(self, xy: np.ndarray, box: BoundingBox) -> bool:
        avg_side = (box.width + box.height) / 2.0
        gap = float(np.hypot(*(xy[-1] - xy[0])))
        return avg_side > 0.0 and gap < self.closed_ratio * avg_side

    def detect_circle(self, now: Optional[float] = None) -> Optional[Circle]:
        """Return a ``Circle`` if the live trail forms one, else ``None``."""
        self.evict(now)
        self.last_confidence = 0.0
        if len(self._buf) < self.min_points:
            return None

        xy = self._xy()
        box = bounding_box(xy)
        diameter = max(box.width, box.height)
        if diameter < self.min_diameter_px:
            return None

        if arc_coverage(xy) < self.min_arc_coverage:
            return None

        confidence = circularity(xy)
        self.last_confidence = confidence

        threshold = self.confidence_threshold
        if self._is_closed(xy, box):
            threshold *= self.closed_relax
        elif self.require_closed:
            return None

        if confidence <= threshold:
            return None

        return Circle(
            center=box.center,
            radius=diameter / 2.0,
            points=tuple(self._buf),
        )
