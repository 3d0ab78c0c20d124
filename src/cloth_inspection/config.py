"""
Configuration constants for the cloth-inspection gesture core.

All tunable thresholds, hold durations, buffer windows, and gesture names
live here so they can be adjusted in one place without touching detection
logic.  A handful of deployment knobs can be overridden through environment
variables.
"""

import os

# ---------------------------------------------------------------------------
# Gesture name constants (used in JSON output)
# ---------------------------------------------------------------------------
GESTURE_CIRCLE_DETECTED = "CIRCLE_DETECTED"
GESTURE_PHOTO_CAPTURE = "PHOTO_CAPTURE_REQUESTED"
GESTURE_CLEAR_CANVAS = "CLEAR_CANVAS_REQUESTED"

# ---------------------------------------------------------------------------
# MediaPipe Hands configuration
# ---------------------------------------------------------------------------
MP_MAX_NUM_HANDS = 2
MP_MIN_DETECTION_CONFIDENCE = 0.7
MP_MIN_TRACKING_CONFIDENCE = 0.7

# ---------------------------------------------------------------------------
# Finger-state thresholds
# ---------------------------------------------------------------------------
# A finger is considered "extended" when the tip-to-wrist distance exceeds
# the PIP-to-wrist distance by this factor.  The margin keeps the result
# stable while a finger hovers around the boundary.
FINGER_EXTENDED_RATIO = 1.1

# When True the pointing pose also requires the ring and pinky fingers to be
# curled.  The relaxed form only looks at index and middle.
POINTING_STRICT = False

# ---------------------------------------------------------------------------
# Clear-canvas pose
# ---------------------------------------------------------------------------
# Exactly one definition is wired to the clear trigger:
#   "thumbs_down"    – both hands thumbs-down (canonical)
#   "crossed_wrists" – wrists crossed in front of the camera
CLEAR_POSE_THUMBS_DOWN = "thumbs_down"
CLEAR_POSE_CROSSED_WRISTS = "crossed_wrists"
CLEAR_POSE_MODES = (CLEAR_POSE_THUMBS_DOWN, CLEAR_POSE_CROSSED_WRISTS)
CLEAR_POSE = os.environ.get("CLEAR_POSE", CLEAR_POSE_THUMBS_DOWN)

# Crossed-wrists geometry, in normalised coords.  The "Left" wrist must sit
# at least this far to the right of the "Right" wrist ...
CROSS_MIN_SEPARATION = 0.15
# ... and both wrists must be roughly level.
CROSS_MAX_VERTICAL_OFFSET = 0.3

# ---------------------------------------------------------------------------
# Circle detection (path buffer)
# ---------------------------------------------------------------------------
# Points older than this (ms) are evicted before every evaluation.
CIRCLE_WINDOW_MS = 3000

# Minimum number of points before a circle is considered at all.
CIRCLE_MIN_POINTS = 25

# The larger bounding-box side must reach this size (px) so that small
# wiggles of the fingertip are not mistaken for a circle.
CIRCLE_MIN_DIAMETER_PX = 50.0

# Circularity confidence required to accept a path.
CIRCLE_CONFIDENCE_THRESHOLD = 0.5

# A path whose end lands within this fraction of the average bounding-box
# side from its start counts as closed ...
CIRCLE_CLOSED_RATIO = 0.4
# ... and closed paths only need threshold * this factor.
CIRCLE_CLOSED_RELAX = 0.8
# Open paths never count as a circle.  Turning this off lets an open path
# through when it clears the full threshold.
CIRCLE_REQUIRE_CLOSED = True

# Seen from the bounding-box centre the path has to visit at least this
# fraction of CIRCLE_ARC_SECTORS equal angular sectors.
CIRCLE_ARC_SECTORS = 12
CIRCLE_MIN_ARC_COVERAGE = 0.5

# ---------------------------------------------------------------------------
# Hold-to-confirm durations (ms)
# ---------------------------------------------------------------------------
PHOTO_HOLD_MS = 2000
CLEAR_HOLD_MS = 1000
STATIONARY_HOLD_MS = 1000

# Fingertip must stay within this radius (px) of its anchor to count as
# holding still.
STATIONARY_RADIUS_PX = 15.0

# Radius (px) of the circle reported for a stationary hold.
STATIONARY_CIRCLE_RADIUS_PX = 120.0

# ---------------------------------------------------------------------------
# Cooldown (ms) – after any gesture fires, no other gesture is emitted for
# this duration to prevent duplicate detections.
# ---------------------------------------------------------------------------
GESTURE_COOLDOWN_MS = 1000

# ---------------------------------------------------------------------------
# Inspection flow
# ---------------------------------------------------------------------------
CAPTURE_COUNTDOWN_MS = 2000
RESUME_DELAY_MS = 500

# ---------------------------------------------------------------------------
# MediaPipe landmark indices (for readability)
# ---------------------------------------------------------------------------
NUM_LANDMARKS = 21

WRIST = 0
THUMB_CMC = 1
THUMB_MCP = 2
THUMB_IP = 3
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_PIP = 6
INDEX_DIP = 7
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_PIP = 10
MIDDLE_DIP = 11
MIDDLE_TIP = 12
RING_MCP = 13
RING_PIP = 14
RING_DIP = 15
RING_TIP = 16
PINKY_MCP = 17
PINKY_PIP = 18
PINKY_DIP = 19
PINKY_TIP = 20

# ---------------------------------------------------------------------------
# Overlay / visualisation (BGR)
# ---------------------------------------------------------------------------
OVERLAY_FONT_SCALE = 1.2
OVERLAY_THICKNESS = 2
OVERLAY_LANDMARK_COLOR = (235, 99, 37)     # blue joints
OVERLAY_CONNECTION_COLOR = (136, 148, 13)  # teal bones
OVERLAY_TRAIL_COLOR = (12, 88, 234)        # orange trail
OVERLAY_STATUS_COLOR = (0, 255, 0)
OVERLAY_FINGER_DEBUG_COLOR = (255, 200, 0)
OVERLAY_HOLD_COLOR = (0, 215, 255)
OVERLAY_DEFECT_COLOR = (68, 68, 239)       # red defect ring

# ---------------------------------------------------------------------------
# Webcam
# ---------------------------------------------------------------------------
CAMERA_INDEX = 0
CAMERA_WIDTH = 1280
CAMERA_HEIGHT = 720
# Overrides CAMERA_INDEX; a number selects a local device, anything else is
# handed to OpenCV as a stream URL or device path.
CAMERA_SRC = os.environ.get("CAMERA_SRC")
HEADLESS = os.environ.get("HEADLESS", "0") in ("1", "true", "True")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
