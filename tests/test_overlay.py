import numpy as np

from cloth_inspection.finger_state import get_finger_state
from cloth_inspection.landmarks import HandObservation
from cloth_inspection.overlay import (
    _to_normalized_landmarks,
    annotate_capture,
    draw_overlay,
    interpolate_spline,
)
from cloth_inspection.path_buffer import Circle, TrackedPoint
from hands import frame_of, make_hand, pointing_hand_at


def test_draw_overlay_draws_in_place():
    frame = np.zeros((720, 1280, 3), dtype=np.uint8)
    hand = pointing_hand_at(640, 360)
    trail = [TrackedPoint(600 + 10 * i, 300 + 5 * i, i * 33.0) for i in range(10)]
    out = draw_overlay(
        frame,
        frame_of(hand, make_hand(wrist=(0.2, 0.9), missing=(8, 12))),
        trail,
        finger_state=get_finger_state(hand),
        hold_progress={"photo": 0.5, "clear": 0.0, "stationary": 0.4},
        anchor=(640.0, 360.0),
        status="Ready",
        countdown=2,
        gesture_display_name="CIRCLE_DETECTED",
    )
    assert out is frame
    assert frame.any()


def test_draw_overlay_with_nothing_to_draw():
    frame = np.zeros((120, 160, 3), dtype=np.uint8)
    draw_overlay(frame, None, [])
    assert not frame.any()


def test_annotate_capture_copies_and_marks():
    image = np.zeros((200, 200, 3), dtype=np.uint8)
    out = annotate_capture(image, [Circle(center=(100.0, 100.0), radius=50.0)])
    assert not image.any()
    assert out[100, 150].any()
    assert not out[100, 100].any()


def test_annotate_capture_mirrored():
    image = np.zeros((200, 200, 3), dtype=np.uint8)
    out = annotate_capture(image, [Circle(center=(50.0, 100.0), radius=20.0)], mirrored=True)
    assert out[100, 170].any()
    assert not out[100, 70].any()


def test_interpolate_spline():
    assert interpolate_spline([(1.2, 2.6)]) == [(1, 3)]
    pts = [(0.0, 0.0), (10.0, 0.0), (20.0, 10.0)]
    smooth = interpolate_spline(pts)
    assert smooth[0] == (0, 0)
    assert smooth[-1] == (20, 10)
    assert len(smooth) == 2 * 6 + 1


def test_missing_landmarks_are_hidden():
    landmarks = _to_normalized_landmarks(make_hand(wrist=(0.5, 0.8), missing=(8, 12)))
    assert len(landmarks) == 21
    assert landmarks[8].visibility == 0.0
    assert landmarks[12].visibility == 0.0
    assert landmarks[0].visibility is None
    assert (landmarks[0].x, landmarks[0].y) == (0.5, 0.8)


def test_truncated_hand_is_padded():
    hand = HandObservation.from_array(np.full((5, 2), 0.5))
    landmarks = _to_normalized_landmarks(hand)
    assert len(landmarks) == 21
    assert all(lm.visibility == 0.0 for lm in landmarks[5:])

    frame = np.zeros((120, 160, 3), dtype=np.uint8)
    draw_overlay(frame, frame_of(hand), [])
    assert frame.any()
