"""Inspection flow: turns gesture events into annotated captures.

A detected circle pauses drawing and starts a short countdown so the
operator can take their hand out of the shot; when it runs out the current
camera frame is grabbed, the circle is drawn onto it and the result is kept
with the session's captures.  Both-thumbs-up captures straight away and the
clear pose wipes the trail.

The frame grabber is passed in as a plain callable so the flow never touches
the camera itself.  Everything advances from :meth:`InspectionFlow.on_frame`.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from cloth_inspection.config import (
    CAPTURE_COUNTDOWN_MS,
    GESTURE_CIRCLE_DETECTED,
    GESTURE_CLEAR_CANVAS,
    GESTURE_PHOTO_CAPTURE,
    RESUME_DELAY_MS,
)
from cloth_inspection.landmarks import LandmarkFrame
from cloth_inspection.overlay import annotate_capture
from cloth_inspection.path_buffer import Circle, now_ms
from cloth_inspection.session import GestureEvent, GestureSession

logger = logging.getLogger("cloth_inspection.inspection")

STATUS_READY = "Ready to inspect. Draw a circle around a defect."
STATUS_COUNTDOWN = "Circle detected! Capturing in..."
STATUS_CAPTURED = "Image captured. Ready for next inspection."
STATUS_CAPTURE_FAILED = "Failed to capture image. Please try again."
STATUS_CLEARED = "Canvas cleared."
STATUS_RESET = "System reset. Ready to inspect."

FrameGrabber = Callable[[], Optional[np.ndarray]]


@dataclass
class CapturedImage:
    """An annotated capture held in memory."""

    id: str
    image: np.ndarray
    timestamp: str
    defects: int
    circles: tuple[Circle, ...] = field(default_factory=tuple)


class InspectionFlow:
    """Drives a :class:`GestureSession` and reacts to its events."""

    def __init__(
        self,
        session: GestureSession,
        grab_frame: FrameGrabber,
        countdown_ms: float = CAPTURE_COUNTDOWN_MS,
        resume_delay_ms: float = RESUME_DELAY_MS,
        mirrored_capture: bool = False,
    ) -> None:
        self.session = session
        self.grab_frame = grab_frame
        self.countdown_ms = countdown_ms
        self.resume_delay_ms = resume_delay_ms
        self.mirrored_capture = mirrored_capture

        self.is_detecting = True
        self.status = STATUS_READY
        # Newest first.
        self.captures: list[CapturedImage] = []

        self._pending_circle: Optional[Circle] = None
        self._capture_due_at: Optional[float] = None
        self._resume_at: Optional[float] = None

    @property
    def is_busy(self) -> bool:
        """True while a capture countdown is running."""
        return self._capture_due_at is not None

    def countdown_remaining(self, now: Optional[float] = None) -> Optional[int]:
        """Whole seconds left on the capture countdown, or ``None``."""
        if self._capture_due_at is None:
            return None
        if now is None:
            now = now_ms()
        return max(0, math.ceil((self._capture_due_at - now) / 1000.0))

    def on_frame(
        self,
        frame: Optional[LandmarkFrame],
        frame_width: int,
        frame_height: int,
        now: Optional[float] = None,
    ) -> Optional[GestureEvent]:
        """Process one landmark frame; returns the session's event, if any."""
        if now is None:
            now = now_ms()
        self._advance(now)

        event = self.session.process(
            frame,
            frame_width,
            frame_height,
            is_detecting=self.is_detecting,
            is_busy=self.is_busy,
            now=now,
        )
        if event is not None:
            self._handle(event, now)
        return event

    def reset(self) -> None:
        """Drop all captures and return to the ready state."""
        self.captures.clear()
        self.session.reset()
        self._pending_circle = None
        self._capture_due_at = None
        self._resume_at = None
        self.is_detecting = True
        self.status = STATUS_RESET
        logger.info("Inspection reset")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _advance(self, now: float) -> None:
        if self._capture_due_at is not None and now >= self._capture_due_at:
            circle = self._pending_circle
            self._capture_due_at = None
            self._pending_circle = None
            self._capture((circle,) if circle is not None else ())
            self.session.clear_canvas()
            self._resume_at = now + self.resume_delay_ms

        if self._resume_at is not None and now >= self._resume_at:
            self._resume_at = None
            self.is_detecting = True

    def _handle(self, event: GestureEvent, now: float) -> None:
        if event.gesture == GESTURE_CIRCLE_DETECTED:
            self.is_detecting = False
            self._pending_circle = event.circle
            self._capture_due_at = now + self.countdown_ms
            self.status = STATUS_COUNTDOWN
        elif event.gesture == GESTURE_PHOTO_CAPTURE:
            self._capture(())
        elif event.gesture == GESTURE_CLEAR_CANVAS:
            self.session.clear_canvas()
            self.status = STATUS_CLEARED

    def _capture(self, circles: tuple[Circle, ...]) -> None:
        image = self.grab_frame()
        if image is None:
            logger.warning("Frame grab returned nothing; capture skipped")
            self.status = STATUS_CAPTURE_FAILED
            return

        annotated = annotate_capture(image, circles, mirrored=self.mirrored_capture)
        capture = CapturedImage(
            id=f"img-{int(time.time() * 1000)}-{len(self.captures)}",
            image=annotated,
            timestamp=time.strftime("%H:%M:%S"),
            defects=len(circles),
            circles=circles,
        )
        self.captures.insert(0, capture)
        self.status = STATUS_CAPTURED
        logger.info("Captured %s with %d defect(s)", capture.id, capture.defects)
