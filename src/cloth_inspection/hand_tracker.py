"""
MediaPipe Hands wrapper (Tasks API, mediapipe >= 0.10).

Accepts a BGR frame from OpenCV, runs hand landmark detection, and returns
a ``LandmarkFrame`` with up to two hands of normalised landmarks.
"""

from __future__ import annotations

import os

import mediapipe as mp
import numpy as np

from cloth_inspection.config import (
    MP_MAX_NUM_HANDS,
    MP_MIN_DETECTION_CONFIDENCE,
    MP_MIN_TRACKING_CONFIDENCE,
)
from cloth_inspection.landmarks import LandmarkFrame, frame_from_landmarker_result

# Resolve the model path relative to this file so it works regardless of cwd.
# HAND_LANDMARKER_MODEL overrides it.
_MODEL_PATH = os.environ.get(
    "HAND_LANDMARKER_MODEL",
    os.path.join(os.path.dirname(__file__), "hand_landmarker.task"),
)

BaseOptions = mp.tasks.BaseOptions
HandLandmarker = mp.tasks.vision.HandLandmarker
HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
RunningMode = mp.tasks.vision.RunningMode


class HandTracker:
    """Thin wrapper around MediaPipe HandLandmarker (Tasks API)."""

    def __init__(self, model_path: str = _MODEL_PATH) -> None:
        options = HandLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=model_path),
            num_hands=MP_MAX_NUM_HANDS,
            min_hand_detection_confidence=MP_MIN_DETECTION_CONFIDENCE,
            min_tracking_confidence=MP_MIN_TRACKING_CONFIDENCE,
            running_mode=RunningMode.VIDEO,
        )
        self._landmarker = HandLandmarker.create_from_options(options)
        self._last_ts_ms: int = -1

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(self, bgr_frame: np.ndarray, timestamp_ms: float) -> LandmarkFrame:
        """Run detection on a BGR frame captured at *timestamp_ms*.

        Returns an empty frame when no hand is visible.
        """
        # Convert BGR -> RGB and wrap in a MediaPipe Image.
        rgb = bgr_frame[:, :, ::-1].copy()
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)

        # The VIDEO running mode requires a strictly increasing timestamp.
        ts = max(int(timestamp_ms), self._last_ts_ms + 1)
        self._last_ts_ms = ts
        result = self._landmarker.detect_for_video(mp_image, ts)

        return frame_from_landmarker_result(result, timestamp_ms=timestamp_ms)

    def close(self) -> None:
        """Release MediaPipe resources."""
        self._landmarker.close()
