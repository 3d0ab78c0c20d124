"""
Gesture session controller.

Consumes one ``LandmarkFrame`` per processed video frame, runs the pose
classifier, feeds the path buffer and the hold timers, and emits at most one
``GestureEvent`` per frame.

Priority per frame
------------------
1. **No hands**: every hold timer is cancelled and the stationary anchor is
   dropped.  The drawn trail is left alone so a single missed frame does not
   wipe it.
2. **Two hands**: photo-capture pose (both thumbs up) and clear-canvas pose.
   Photo capture wins when both match; the clear timer is held at Idle for
   that frame.
3. **One hand, pointing**: the index fingertip is converted to pixels and
   appended to the path buffer.  A detected circle is emitted at once;
   otherwise holding the fingertip still near its anchor for
   ``STATIONARY_HOLD_MS`` emits a fixed-size circle around the anchor.
4. **More than two hands**: ignored for gesture purposes.

All timing is logical.  Nothing fires between frames and the controller
performs no I/O.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from cloth_inspection.config import (
    CLEAR_HOLD_MS,
    CLEAR_POSE,
    GESTURE_CIRCLE_DETECTED,
    GESTURE_CLEAR_CANVAS,
    GESTURE_COOLDOWN_MS,
    GESTURE_PHOTO_CAPTURE,
    INDEX_TIP,
    PHOTO_HOLD_MS,
    POINTING_STRICT,
    STATIONARY_CIRCLE_RADIUS_PX,
    STATIONARY_HOLD_MS,
    STATIONARY_RADIUS_PX,
)
from cloth_inspection.finger_state import (
    is_clear_canvas_pose,
    is_photo_capture_pose,
    is_pointing_pose,
    validate_clear_pose_mode,
)
from cloth_inspection.hold_timer import HoldTimer
from cloth_inspection.landmarks import HandObservation, LandmarkFrame
from cloth_inspection.path_buffer import Circle, PathBuffer, TrackedPoint, now_ms

logger = logging.getLogger("cloth_inspection.session")


@dataclass
class GestureEvent:
    """A single recognised gesture."""

    gesture: str
    timestamp: float
    circle: Optional[Circle] = None
    confidence: float = 1.0

    def to_dict(self) -> dict:
        payload = {
            "gesture": self.gesture,
            "confidence": round(self.confidence, 3),
            "timestamp": round(self.timestamp, 3),
        }
        if self.circle is not None:
            payload["circle"] = self.circle.to_dict()
        return payload


class GestureSession:
    """Per-camera-session gesture state.

    Two sessions never share a path buffer or timers; create one per active
    camera session and call :meth:`reset` when the session restarts.
    """

    def __init__(
        self,
        path_buffer: Optional[PathBuffer] = None,
        photo_hold_ms: float = PHOTO_HOLD_MS,
        clear_hold_ms: float = CLEAR_HOLD_MS,
        stationary_hold_ms: float = STATIONARY_HOLD_MS,
        stationary_radius_px: float = STATIONARY_RADIUS_PX,
        stationary_circle_radius_px: float = STATIONARY_CIRCLE_RADIUS_PX,
        cooldown_ms: float = GESTURE_COOLDOWN_MS,
        clear_pose: str = CLEAR_POSE,
        pointing_strict: bool = POINTING_STRICT,
    ) -> None:
        self.path = path_buffer if path_buffer is not None else PathBuffer()
        self.clear_pose = validate_clear_pose_mode(clear_pose)
        self.pointing_strict = pointing_strict
        self.stationary_radius_px = stationary_radius_px
        self.stationary_circle_radius_px = stationary_circle_radius_px
        self.cooldown_ms = cooldown_ms

        self._photo_timer = HoldTimer(photo_hold_ms, "photo")
        self._clear_timer = HoldTimer(clear_hold_ms, "clear")
        self._stationary_timer = HoldTimer(stationary_hold_ms, "stationary")

        # Pixel position the fingertip has to stay near for a stationary hold.
        self._anchor: Optional[tuple[float, float]] = None
        self._last_event_at: Optional[float] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(
        self,
        frame: Optional[LandmarkFrame],
        frame_width: int,
        frame_height: int,
        is_detecting: bool = True,
        is_busy: bool = False,
        now: Optional[float] = None,
    ) -> Optional[GestureEvent]:
        """Advance the session by one frame and return the event, if any.

        *is_detecting* gates fingertip collection (paused during a capture
        countdown); *is_busy* holds both two-hand timers at Idle.  *now* is a
        monotonic clock reading in ms and defaults to the frame timestamp,
        then to the current monotonic time.  A frame size that is not positive
        only stops fingertip collection for that frame.
        """
        if now is None:
            if frame is not None and frame.timestamp_ms is not None:
                now = frame.timestamp_ms
            else:
                now = now_ms()

        hands = frame.hands if frame is not None else ()
        n_hands = len(hands)

        if n_hands != 1:
            self._drop_anchor()
        if n_hands != 2:
            self._photo_timer.cancel()
            self._clear_timer.cancel()

        if n_hands == 2:
            return self._process_two_hands(hands[0], hands[1], is_busy, now)
        if n_hands == 1:
            return self._process_one_hand(
                hands[0], frame_width, frame_height, is_detecting, now
            )
        return None

    def reset(self) -> None:
        """Empty the trail, cancel every hold and forget the anchor."""
        self.path.clear()
        self._photo_timer.cancel()
        self._clear_timer.cancel()
        self._drop_anchor()
        logger.debug("session reset")

    def clear_canvas(self) -> None:
        self.reset()

    def trail(self, now: Optional[float] = None) -> tuple[TrackedPoint, ...]:
        """Read-only snapshot of the live trail for rendering."""
        return self.path.points(now)

    def hold_progress(self, now: Optional[float] = None) -> dict[str, float]:
        if now is None:
            now = now_ms()
        return {
            "photo": self._photo_timer.progress(now),
            "clear": self._clear_timer.progress(now),
            "stationary": self._stationary_timer.progress(now),
        }

    @property
    def anchor(self) -> Optional[tuple[float, float]]:
        return self._anchor

    # ------------------------------------------------------------------
    # Cooldown helpers
    # ------------------------------------------------------------------

    def _on_cooldown(self, now: float) -> bool:
        if self._last_event_at is None:
            return False
        return (now - self._last_event_at) < self.cooldown_ms

    def _fire(
        self,
        gesture: str,
        now: float,
        circle: Optional[Circle] = None,
        confidence: float = 1.0,
    ) -> GestureEvent:
        self._last_event_at = now
        event = GestureEvent(
            gesture=gesture, timestamp=now, circle=circle, confidence=confidence
        )
        if circle is not None:
            logger.info(
                "%s at (%.0f, %.0f) r=%.0f (confidence=%.2f, %d points)",
                gesture, circle.center[0], circle.center[1], circle.radius,
                confidence, len(circle.points),
            )
        else:
            logger.info("%s", gesture)
        return event

    # ------------------------------------------------------------------
    # Two-hand gestures (photo capture / clear canvas)
    # ------------------------------------------------------------------

    def _process_two_hands(
        self,
        hand1: HandObservation,
        hand2: HandObservation,
        is_busy: bool,
        now: float,
    ) -> Optional[GestureEvent]:
        if is_busy or self._on_cooldown(now):
            self._photo_timer.cancel()
            self._clear_timer.cancel()
            return None

        photo = is_photo_capture_pose(hand1, hand2)
        # Photo capture takes priority over clear canvas.
        clear = not photo and is_clear_canvas_pose(hand1, hand2, self.clear_pose)

        if self._photo_timer.update(photo, now):
            self._clear_timer.cancel()
            return self._fire(GESTURE_PHOTO_CAPTURE, now)
        if self._clear_timer.update(clear, now):
            return self._fire(GESTURE_CLEAR_CANVAS, now)
        return None

    # ------------------------------------------------------------------
    # Single-hand drawing (circle / stationary hold)
    # ------------------------------------------------------------------

    def _process_one_hand(
        self,
        hand: HandObservation,
        frame_width: int,
        frame_height: int,
        is_detecting: bool,
        now: float,
    ) -> Optional[GestureEvent]:
        if not is_detecting or self._on_cooldown(now):
            self._drop_anchor()
            return None
        if not is_pointing_pose(hand, strict=self.pointing_strict):
            self._drop_anchor()
            return None
        if frame_width <= 0 or frame_height <= 0:
            logger.debug("skipping fingertip, frame size %dx%d", frame_width, frame_height)
            self._drop_anchor()
            return None

        tip = hand.point(INDEX_TIP)
        x = float(tip[0]) * frame_width
        y = float(tip[1]) * frame_height
        self.path.add_point(x, y, now)

        circle = self.path.detect_circle(now)
        if circle is not None:
            self._drop_anchor()
            return self._fire(
                GESTURE_CIRCLE_DETECTED, now, circle, self.path.last_confidence
            )

        return self._check_stationary(x, y, now)

    def _check_stationary(self, x: float, y: float, now: float) -> Optional[GestureEvent]:
        anchor = self._anchor
        if anchor is not None and math.hypot(x - anchor[0], y - anchor[1]) <= self.stationary_radius_px:
            if self._stationary_timer.update(True, now):
                self._anchor = None
                circle = Circle(center=anchor, radius=self.stationary_circle_radius_px)
                return self._fire(GESTURE_CIRCLE_DETECTED, now, circle)
            return None

        self._anchor = (x, y)
        self._stationary_timer.restart(now)
        return None

    def _drop_anchor(self) -> None:
        self._anchor = None
        self._stationary_timer.cancel()
