"""
Pose classifier.

Stateless predicates over one ``HandObservation`` (finger extended, pointing,
thumb-up, thumb-down) and over a pair of observations (photo-capture pose,
clear-canvas pose, crossed hands).

Detection approach
------------------
* **Index / Middle / Ring / Pinky**: a finger is extended when the distance
  from its *tip* to the *wrist* exceeds the distance from its *PIP* joint to
  the wrist by ``FINGER_EXTENDED_RATIO``.  This works regardless of hand
  orientation.
* **Thumb**: only its direction matters here.  The thumb points up when the
  tip sits above (smaller y) the thumb MCP joint, and down when it sits
  below it.

Every predicate returns ``False`` when the hand is absent or one of the
landmarks it needs is missing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from cloth_inspection.config import (
    CLEAR_POSE,
    CLEAR_POSE_CROSSED_WRISTS,
    CLEAR_POSE_MODES,
    CROSS_MAX_VERTICAL_OFFSET,
    CROSS_MIN_SEPARATION,
    FINGER_EXTENDED_RATIO,
    INDEX_PIP,
    INDEX_TIP,
    MIDDLE_PIP,
    MIDDLE_TIP,
    PINKY_PIP,
    PINKY_TIP,
    POINTING_STRICT,
    RING_PIP,
    RING_TIP,
    THUMB_MCP,
    THUMB_TIP,
    WRIST,
)
from cloth_inspection.landmarks import HandObservation

Hand = Optional[HandObservation]


@dataclass
class FingerState:
    """Boolean state for each finger, plus thumb direction."""

    index: bool
    middle: bool
    ring: bool
    pinky: bool
    thumb_up: bool
    thumb_down: bool

    def as_dict(self) -> dict[str, bool]:
        return {
            "index": self.index,
            "middle": self.middle,
            "ring": self.ring,
            "pinky": self.pinky,
            "thumb_up": self.thumb_up,
            "thumb_down": self.thumb_down,
        }

    def count_extended(self) -> int:
        return sum([self.index, self.middle, self.ring, self.pinky])

    @property
    def fist(self) -> bool:
        """True when none of the four fingers is extended."""
        return self.count_extended() == 0


def _dist(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two 2-D points."""
    return float(np.linalg.norm(a - b))


def is_finger_extended(hand: Hand, tip: int, pip: int) -> bool:
    """True when the *tip* is clearly farther from the wrist than the *pip*."""
    if hand is None:
        return False
    wrist = hand.point(WRIST)
    tip_pt = hand.point(tip)
    pip_pt = hand.point(pip)
    if wrist is None or tip_pt is None or pip_pt is None:
        return False
    return _dist(tip_pt, wrist) > FINGER_EXTENDED_RATIO * _dist(pip_pt, wrist)


def _fingers_curled(hand: HandObservation) -> bool:
    # Missing points must not read as curled.
    for tip, pip in (
        (INDEX_TIP, INDEX_PIP),
        (MIDDLE_TIP, MIDDLE_PIP),
        (RING_TIP, RING_PIP),
        (PINKY_TIP, PINKY_PIP),
    ):
        if hand.point(tip) is None or hand.point(pip) is None:
            return False
        if is_finger_extended(hand, tip, pip):
            return False
    return hand.point(WRIST) is not None


def is_pointing_pose(hand: Hand, strict: bool = POINTING_STRICT) -> bool:
    """Index extended, middle curled (and ring/pinky curled when *strict*)."""
    if hand is None:
        return False
    if not is_finger_extended(hand, INDEX_TIP, INDEX_PIP):
        return False
    if hand.point(MIDDLE_TIP) is None or hand.point(MIDDLE_PIP) is None:
        return False
    if is_finger_extended(hand, MIDDLE_TIP, MIDDLE_PIP):
        return False
    if strict:
        for tip, pip in ((RING_TIP, RING_PIP), (PINKY_TIP, PINKY_PIP)):
            if hand.point(tip) is None or hand.point(pip) is None:
                return False
            if is_finger_extended(hand, tip, pip):
                return False
    return True


def is_thumb_up(hand: Hand) -> bool:
    if hand is None:
        return False
    tip = hand.point(THUMB_TIP)
    mcp = hand.point(THUMB_MCP)
    if tip is None or mcp is None:
        return False
    # y grows downward in image coordinates.
    return bool(tip[1] < mcp[1]) and _fingers_curled(hand)


def is_thumb_down(hand: Hand) -> bool:
    if hand is None:
        return False
    tip = hand.point(THUMB_TIP)
    mcp = hand.point(THUMB_MCP)
    if tip is None or mcp is None:
        return False
    return bool(tip[1] > mcp[1]) and _fingers_curled(hand)


def is_photo_capture_pose(hand1: Hand, hand2: Hand) -> bool:
    """Both hands show a thumbs-up."""
    return is_thumb_up(hand1) and is_thumb_up(hand2)


def is_thumbs_down_pose(hand1: Hand, hand2: Hand) -> bool:
    """Both hands show a thumbs-down."""
    return is_thumb_down(hand1) and is_thumb_down(hand2)


def is_crossed_hands_pose(hand1: Hand, hand2: Hand) -> bool:
    """Wrists crossed: the "Left" wrist sits to the right of the "Right" one.

    Needs one hand labelled "Left" and the other "Right".  The wrists must be
    at least ``CROSS_MIN_SEPARATION`` apart horizontally (in the crossed
    direction) and within ``CROSS_MAX_VERTICAL_OFFSET`` of each other
    vertically.
    """
    if hand1 is None or hand2 is None:
        return False
    labels = {hand1.handedness, hand2.handedness}
    if labels != {"Left", "Right"}:
        return False
    left, right = (hand1, hand2) if hand1.handedness == "Left" else (hand2, hand1)
    left_wrist = left.point(WRIST)
    right_wrist = right.point(WRIST)
    if left_wrist is None or right_wrist is None:
        return False
    separation = float(left_wrist[0] - right_wrist[0])
    vertical = abs(float(left_wrist[1] - right_wrist[1]))
    return separation > CROSS_MIN_SEPARATION and vertical < CROSS_MAX_VERTICAL_OFFSET


def validate_clear_pose_mode(mode: str) -> str:
    if mode not in CLEAR_POSE_MODES:
        raise ValueError(
            f"unknown clear pose {mode!r}, expected one of {CLEAR_POSE_MODES}"
        )
    return mode


def is_clear_canvas_pose(
    hand1: Hand, hand2: Hand, mode: str = CLEAR_POSE
) -> bool:
    """Clear-canvas pose under the configured definition.

    Only one definition is ever consulted: both-thumbs-down for
    ``"thumbs_down"``, crossed wrists for ``"crossed_wrists"``.  An unknown
    *mode* raises ``ValueError``.
    """
    if validate_clear_pose_mode(mode) == CLEAR_POSE_CROSSED_WRISTS:
        return is_crossed_hands_pose(hand1, hand2)
    return is_thumbs_down_pose(hand1, hand2)


def get_finger_state(hand: HandObservation) -> FingerState:
    """Summarise which fingers are extended and where the thumb points."""
    return FingerState(
        index=is_finger_extended(hand, INDEX_TIP, INDEX_PIP),
        middle=is_finger_extended(hand, MIDDLE_TIP, MIDDLE_PIP),
        ring=is_finger_extended(hand, RING_TIP, RING_PIP),
        pinky=is_finger_extended(hand, PINKY_TIP, PINKY_PIP),
        thumb_up=is_thumb_up(hand),
        thumb_down=is_thumb_down(hand),
    )
