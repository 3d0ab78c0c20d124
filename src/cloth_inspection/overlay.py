"""
Visual overlay renderer.

Draws hand skeletons, the fingertip trail, hold-to-confirm progress, the
capture countdown and status text onto the OpenCV frame, and annotates
captured images with the confirmed defect circles.
"""

from __future__ import annotations

from typing import Optional, Sequence

import cv2
import mediapipe as mp
import numpy as np

from cloth_inspection.config import (
    NUM_LANDMARKS,
    OVERLAY_CONNECTION_COLOR,
    OVERLAY_DEFECT_COLOR,
    OVERLAY_FINGER_DEBUG_COLOR,
    OVERLAY_FONT_SCALE,
    OVERLAY_HOLD_COLOR,
    OVERLAY_LANDMARK_COLOR,
    OVERLAY_STATUS_COLOR,
    OVERLAY_THICKNESS,
    OVERLAY_TRAIL_COLOR,
)
from cloth_inspection.finger_state import FingerState
from cloth_inspection.landmarks import HandObservation, LandmarkFrame
from cloth_inspection.path_buffer import Circle, TrackedPoint

# Tasks-API drawing utilities.
_drawing_utils = mp.tasks.vision.drawing_utils
_DrawingSpec = _drawing_utils.DrawingSpec
_HandConns = mp.tasks.vision.HandLandmarksConnections
_NormalizedLandmark = mp.tasks.components.containers.NormalizedLandmark

_LANDMARK_STYLE = _DrawingSpec(color=OVERLAY_LANDMARK_COLOR, thickness=2, circle_radius=3)
_CONNECTION_STYLE = _DrawingSpec(color=OVERLAY_CONNECTION_COLOR, thickness=2)


def draw_overlay(
    frame: np.ndarray,
    landmark_frame: Optional[LandmarkFrame],
    trail: Sequence[TrackedPoint],
    finger_state: Optional[FingerState] = None,
    hold_progress: Optional[dict[str, float]] = None,
    anchor: Optional[tuple[float, float]] = None,
    status: str = "",
    countdown: Optional[int] = None,
    gesture_display_name: Optional[str] = None,
) -> np.ndarray:
    """Draw all overlay elements onto *frame* (mutates in place and returns it).

    Parameters
    ----------
    frame : np.ndarray
        The BGR frame to draw on.
    landmark_frame :
        Hands observed this frame (or ``None``).
    trail :
        Live fingertip trail from the gesture session, in pixels.
    finger_state :
        ``FingerState`` of the single visible hand, for debug text.
    hold_progress :
        Per-gesture hold completion from ``GestureSession.hold_progress``.
    anchor :
        Current stationary-hold anchor in pixels, if any.
    status :
        Status line shown along the top edge.
    countdown :
        Whole seconds left before a capture; drawn large when positive.
    gesture_display_name :
        Label of the most recent gesture, kept on screen for a moment.
    """
    h, w, _ = frame.shape

    # 1. Hand landmarks & connections.
    if landmark_frame is not None:
        for hand in landmark_frame.hands:
            _drawing_utils.draw_landmarks(
                frame,
                _to_normalized_landmarks(hand),
                _HandConns.HAND_CONNECTIONS,
                _LANDMARK_STYLE,
                _CONNECTION_STYLE,
            )

    # 2. Fingertip trail.
    _draw_trail(frame, trail, OVERLAY_TRAIL_COLOR)

    # 3. Hold progress: ring around the anchor, bar for two-hand holds.
    if hold_progress:
        stationary = hold_progress.get("stationary", 0.0)
        if anchor is not None and stationary > 0.0:
            _draw_progress_ring(frame, anchor, stationary)
        two_hand = max(hold_progress.get("photo", 0.0), hold_progress.get("clear", 0.0))
        if two_hand > 0.0:
            bar_w = int((w - 40) * two_hand)
            cv2.rectangle(frame, (20, h - 60), (20 + bar_w, h - 48), OVERLAY_HOLD_COLOR, -1)

    # 4. Status line and last gesture label (top-left).
    if status:
        cv2.putText(
            frame,
            status,
            (20, 40),
            cv2.FONT_HERSHEY_SIMPLEX,
            OVERLAY_FONT_SCALE * 0.7,
            OVERLAY_STATUS_COLOR,
            OVERLAY_THICKNESS,
            cv2.LINE_AA,
        )
    if gesture_display_name:
        cv2.putText(
            frame,
            gesture_display_name,
            (20, 90),
            cv2.FONT_HERSHEY_SIMPLEX,
            OVERLAY_FONT_SCALE,
            OVERLAY_STATUS_COLOR,
            OVERLAY_THICKNESS + 1,
            cv2.LINE_AA,
        )

    # 5. Finger-state debug info (bottom-left).
    if finger_state is not None:
        state_str = "  ".join(
            f"{name}: {'UP' if val else '--'}"
            for name, val in finger_state.as_dict().items()
        )
        cv2.putText(
            frame,
            state_str,
            (20, h - 20),
            cv2.FONT_HERSHEY_SIMPLEX,
            OVERLAY_FONT_SCALE * 0.55,
            OVERLAY_FINGER_DEBUG_COLOR,
            1,
            cv2.LINE_AA,
        )

    # 6. Capture countdown (centre).
    if countdown is not None and countdown > 0:
        text = str(countdown)
        scale = OVERLAY_FONT_SCALE * 6
        (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, 8)
        cv2.putText(
            frame,
            text,
            ((w - tw) // 2, (h + th) // 2),
            cv2.FONT_HERSHEY_SIMPLEX,
            scale,
            (255, 255, 255),
            8,
            cv2.LINE_AA,
        )

    return frame


def annotate_capture(
    image: np.ndarray,
    circles: Sequence[Circle],
    mirrored: bool = False,
) -> np.ndarray:
    """Return a copy of *image* with each circle drawn and numbered.

    Set *mirrored* when the image is horizontally flipped relative to the
    coordinate space the circles were detected in.
    """
    out = image.copy()
    w = out.shape[1]
    for i, circle in enumerate(circles, start=1):
        cx, cy = circle.center
        if mirrored:
            cx = w - cx
        r = int(round(circle.radius))
        centre = (int(round(cx)), int(round(cy)))
        cv2.circle(out, centre, r, OVERLAY_DEFECT_COLOR, 5, cv2.LINE_AA)
        label_at = (int(round(cx - circle.radius * 0.7)), int(round(cy - circle.radius * 0.7)))
        cv2.putText(
            out,
            str(i),
            label_at,
            cv2.FONT_HERSHEY_SIMPLEX,
            OVERLAY_FONT_SCALE,
            OVERLAY_DEFECT_COLOR,
            OVERLAY_THICKNESS + 1,
            cv2.LINE_AA,
        )
    return out


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------

# Number of interpolated sub-points between each pair of control points
# for Catmull-Rom spline rendering.  Higher = smoother but more draw calls.
_SPLINE_SUBDIVISIONS = 6


def _to_normalized_landmarks(hand: HandObservation) -> list:
    """Convert *hand* to Tasks-API landmarks; missing points are invisible."""
    landmarks = []
    for idx in range(NUM_LANDMARKS):
        p = hand.point(idx)
        if p is None:
            landmarks.append(_NormalizedLandmark(x=0.0, y=0.0, visibility=0.0))
        else:
            landmarks.append(_NormalizedLandmark(x=float(p[0]), y=float(p[1])))
    return landmarks


def _catmull_rom(
    p0: tuple[float, float],
    p1: tuple[float, float],
    p2: tuple[float, float],
    p3: tuple[float, float],
    n: int,
) -> list[tuple[int, int]]:
    """Return *n* interpolated points on the Catmull-Rom segment p1 -> p2."""
    pts: list[tuple[int, int]] = []
    for i in range(n):
        t = i / n
        t2 = t * t
        t3 = t2 * t
        # Catmull-Rom basis (tension = 0.5)
        x = 0.5 * (
            (2.0 * p1[0])
            + (-p0[0] + p2[0]) * t
            + (2.0 * p0[0] - 5.0 * p1[0] + 4.0 * p2[0] - p3[0]) * t2
            + (-p0[0] + 3.0 * p1[0] - 3.0 * p2[0] + p3[0]) * t3
        )
        y = 0.5 * (
            (2.0 * p1[1])
            + (-p0[1] + p2[1]) * t
            + (2.0 * p0[1] - 5.0 * p1[1] + 4.0 * p2[1] - p3[1]) * t2
            + (-p0[1] + 3.0 * p1[1] - 3.0 * p2[1] + p3[1]) * t3
        )
        pts.append((int(round(x)), int(round(y))))
    return pts


def interpolate_spline(points: list[tuple[float, float]]) -> list[tuple[int, int]]:
    """Expand a polyline into a smooth Catmull-Rom spline.

    Fewer than 3 input points are returned as integer pixels unchanged.
    """
    if len(points) < 3:
        return [(int(round(x)), int(round(y))) for x, y in points]

    result: list[tuple[int, int]] = []
    n = len(points)
    for i in range(n - 1):
        p0 = points[max(i - 1, 0)]
        p1 = points[i]
        p2 = points[i + 1]
        p3 = points[min(i + 2, n - 1)]
        result.extend(_catmull_rom(p0, p1, p2, p3, _SPLINE_SUBDIVISIONS))
    last = points[-1]
    result.append((int(round(last[0])), int(round(last[1]))))
    return result


def _draw_trail(
    frame: np.ndarray,
    trail: Sequence[TrackedPoint],
    color: tuple[int, int, int],
) -> None:
    """Draw a fading, spline-smoothed polyline through the trail."""
    if len(trail) < 2:
        return
    points = interpolate_spline([(p.x, p.y) for p in trail])
    for i in range(1, len(points)):
        alpha = i / len(points)  # 0 -> 1 (fades in)
        thickness = max(1, int(4 * alpha))
        c = tuple(int(v * alpha) for v in color)
        cv2.line(frame, points[i - 1], points[i], c, thickness, cv2.LINE_AA)


def _draw_progress_ring(
    frame: np.ndarray, centre: tuple[float, float], progress: float
) -> None:
    c = (int(round(centre[0])), int(round(centre[1])))
    cv2.ellipse(frame, c, (24, 24), -90, 0, int(360 * progress), OVERLAY_HOLD_COLOR, 3, cv2.LINE_AA)
