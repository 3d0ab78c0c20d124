"""
Entry point – webcam capture loop.

Wires together:
  HandTracker  ->  GestureSession  ->  InspectionFlow  ->  Overlay
                                                       ->  JSON stdout

Keys: ``q`` quits, ``r`` resets the inspection, ``c`` clears the trail.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from typing import Optional

import cv2
import numpy as np

from cloth_inspection.config import (
    CAMERA_HEIGHT,
    CAMERA_INDEX,
    CAMERA_SRC,
    CAMERA_WIDTH,
    HEADLESS,
    LOG_LEVEL,
)
from cloth_inspection.finger_state import get_finger_state
from cloth_inspection.hand_tracker import HandTracker
from cloth_inspection.inspection import InspectionFlow
from cloth_inspection.overlay import draw_overlay
from cloth_inspection.path_buffer import now_ms
from cloth_inspection.session import GestureEvent, GestureSession

logger = logging.getLogger("cloth_inspection.main")

# How long (ms) to keep showing the last gesture label on screen after it
# was detected, so the operator has time to read it.
_GESTURE_DISPLAY_MS = 1200


def _emit_json(event: GestureEvent) -> None:
    """Write a JSON line to stdout."""
    sys.stdout.write(json.dumps(event.to_dict()) + "\n")
    sys.stdout.flush()


def _open_camera() -> Optional[cv2.VideoCapture]:
    # A numeric CAMERA_SRC selects a local device; anything else (rtsp/http
    # URL, device path) goes to OpenCV as-is.
    camera_src = CAMERA_INDEX
    if CAMERA_SRC is not None:
        try:
            camera_src = int(CAMERA_SRC)
        except ValueError:
            camera_src = CAMERA_SRC

    cap = cv2.VideoCapture(camera_src)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, CAMERA_WIDTH)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CAMERA_HEIGHT)
    if not cap.isOpened():
        logger.error("Cannot open camera source %r", camera_src)
        return None
    return cap


def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s  %(name)-24s  %(levelname)-7s  %(message)s",
        datefmt="%H:%M:%S",
    )

    cap = _open_camera()
    if cap is None:
        sys.exit(1)

    tracker = HandTracker()
    session = GestureSession()

    # The last clean (un-annotated) frame, handed out as the capture image.
    latest_frame: Optional[np.ndarray] = None

    def grab_frame() -> Optional[np.ndarray]:
        return None if latest_frame is None else latest_frame.copy()

    flow = InspectionFlow(session, grab_frame)

    last_gesture_name: Optional[str] = None
    last_gesture_time: float = 0.0

    logger.info("Cloth inspection started. Press 'q' to quit.")

    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                # Dropped frame; give the device a moment and retry.
                time.sleep(0.01)
                continue

            # Mirror the frame so it feels natural (like a mirror).
            frame = cv2.flip(frame, 1)
            latest_frame = frame
            h, w, _ = frame.shape
            now = now_ms()

            # --- Hand tracking ---
            landmark_frame = tracker.process(frame, now)

            # --- Gesture handling ---
            event = flow.on_frame(landmark_frame, w, h, now)
            if event is not None:
                _emit_json(event)
                last_gesture_name = event.gesture
                last_gesture_time = now

            display_name = None
            if last_gesture_name is not None and now - last_gesture_time < _GESTURE_DISPLAY_MS:
                display_name = last_gesture_name

            finger_state = None
            if len(landmark_frame) == 1:
                finger_state = get_finger_state(landmark_frame.hands[0])

            # --- Overlay ---
            view = draw_overlay(
                frame.copy(),
                landmark_frame,
                session.trail(now),
                finger_state=finger_state,
                hold_progress=session.hold_progress(now),
                anchor=session.anchor,
                status=flow.status,
                countdown=flow.countdown_remaining(now),
                gesture_display_name=display_name,
            )

            if not HEADLESS:
                cv2.imshow("Cloth Inspection", view)
                if flow.captures:
                    cv2.imshow("Last capture", flow.captures[0].image)

                key = cv2.waitKey(1) & 0xFF
                if key == ord("q"):
                    break
                if key == ord("r"):
                    flow.reset()
                elif key == ord("c"):
                    session.clear_canvas()
    finally:
        session.reset()
        tracker.close()
        cap.release()
        cv2.destroyAllWindows()
        logger.info("Stopped with %d capture(s)", len(flow.captures))


if __name__ == "__main__":
    main()
