import math

import pytest

from cloth_inspection.config import (
    CLEAR_POSE_CROSSED_WRISTS,
    GESTURE_CIRCLE_DETECTED,
    GESTURE_CLEAR_CANVAS,
    GESTURE_PHOTO_CAPTURE,
)
from cloth_inspection.session import GestureEvent, GestureSession
from hands import frame_of, make_hand, pointing_hand_at, thumbs_down, thumbs_up

W, H = 1280, 720


def run(session, frames, **kwargs):
    """Feed ``(now, frame)`` pairs; return ``(now, event)`` for each event."""
    events = []
    for now, frame in frames:
        event = session.process(frame, W, H, now=now, **kwargs)
        if event is not None:
            events.append((now, event))
    return events


def photo_pose():
    return frame_of(thumbs_up((0.3, 0.8)), thumbs_up((0.7, 0.8)))


def clear_pose():
    return frame_of(thumbs_down((0.3, 0.8)), thumbs_down((0.7, 0.8)))


class TestTwoHandGestures:
    def test_photo_capture_after_hold(self):
        session = GestureSession()
        events = run(session, [(t, photo_pose()) for t in range(0, 2501, 50)])
        assert [(t, e.gesture) for t, e in events] == [(2000, GESTURE_PHOTO_CAPTURE)]

    def test_clear_canvas_after_hold(self):
        session = GestureSession()
        events = run(session, [(t, clear_pose()) for t in range(0, 1501, 50)])
        assert [(t, e.gesture) for t, e in events] == [(1000, GESTURE_CLEAR_CANVAS)]

    def test_photo_wins_over_clear(self):
        # Crossed thumbs-up hands match both poses in crossed-wrists mode.
        session = GestureSession(clear_pose=CLEAR_POSE_CROSSED_WRISTS)
        both = frame_of(
            thumbs_up((0.7, 0.8), handedness="Left"),
            thumbs_up((0.3, 0.8), handedness="Right"),
        )
        events = []
        for t in range(0, 2001, 50):
            event = session.process(both, W, H, now=t)
            assert session.hold_progress(t)["clear"] == 0.0
            if event is not None:
                events.append(event.gesture)
        assert events == [GESTURE_PHOTO_CAPTURE]

    def test_crossed_wrists_clear(self):
        session = GestureSession(clear_pose=CLEAR_POSE_CROSSED_WRISTS)
        crossed = frame_of(
            make_hand(wrist=(0.7, 0.7), handedness="Left"),
            make_hand(wrist=(0.3, 0.7), handedness="Right"),
        )
        events = run(session, [(t, crossed) for t in range(0, 1001, 50)])
        assert [e.gesture for _, e in events] == [GESTURE_CLEAR_CANVAS]

    def test_busy_cancels_hold(self):
        session = GestureSession()
        frames = [(t, photo_pose()) for t in range(0, 1501, 50)]
        assert run(session, frames) == []
        assert session.process(photo_pose(), W, H, is_busy=True, now=1550) is None
        events = run(session, [(t, photo_pose()) for t in range(1600, 3601, 50)])
        assert [t for t, _ in events] == [3600]

    def test_busy_on_the_due_frame_suppresses(self):
        session = GestureSession()
        assert run(session, [(t, photo_pose()) for t in range(0, 1951, 50)]) == []
        assert session.process(photo_pose(), W, H, is_busy=True, now=2000) is None
        assert session.process(photo_pose(), W, H, now=2050) is None

    def test_lost_hands_cancel_hold(self):
        session = GestureSession()
        assert run(session, [(t, photo_pose()) for t in range(0, 1501, 50)]) == []
        assert session.process(frame_of(), W, H, now=1550) is None
        assert session.hold_progress(1550)["photo"] == 0.0
        events = run(session, [(t, photo_pose()) for t in range(1600, 3601, 50)])
        assert [t for t, _ in events] == [3600]

    def test_more_than_two_hands_is_ignored(self):
        session = GestureSession()
        three = frame_of(thumbs_up((0.2, 0.8)), thumbs_up((0.5, 0.8)), thumbs_up((0.8, 0.8)))
        assert run(session, [(t, three) for t in range(0, 3001, 50)]) == []


class TestCircleDrawing:
    def test_traced_loop_emits_circle(self):
        session = GestureSession()
        frames = [(i * 33, frame_of()) for i in range(5)]
        for k in range(25):
            theta = 2 * math.pi * k / 25
            x = 640 + 100 * math.cos(theta)
            y = 360 + 90 * math.sin(theta)
            frames.append(((5 + k) * 33, frame_of(pointing_hand_at(x, y))))

        events = run(session, frames)
        # Fires on the 30th frame, once all 25 points are in.
        assert [t for t, _ in events] == [29 * 33]
        _, event = events[0]
        assert event.gesture == GESTURE_CIRCLE_DETECTED
        assert len(event.circle.points) == 25
        assert event.circle.center[0] == pytest.approx(640, abs=10)
        assert event.circle.center[1] == pytest.approx(360, abs=10)
        assert event.circle.radius == pytest.approx(100, abs=10)
        assert event.circle.points

    def test_trail_survives_a_missed_frame(self):
        session = GestureSession()
        for i in range(5):
            session.process(frame_of(pointing_hand_at(600 + 30 * i, 300)), W, H, now=i * 33)
        assert len(session.trail(132)) == 5
        session.process(frame_of(), W, H, now=165)
        assert len(session.trail(165)) == 5

    def test_not_detecting_collects_nothing(self):
        session = GestureSession()
        frames = [(t, frame_of(pointing_hand_at(640, 360))) for t in range(0, 1501, 50)]
        assert run(session, frames, is_detecting=False) == []
        assert session.trail(1500) == ()

    def test_open_hand_collects_nothing(self):
        session = GestureSession()
        open_hand = make_hand(extended=("index", "middle", "ring", "pinky"))
        session.process(frame_of(open_hand), W, H, now=0)
        assert session.trail(0) == ()


class TestStationaryHold:
    def test_holding_still_emits_default_circle(self):
        session = GestureSession()
        frames = [
            (t, frame_of(pointing_hand_at(640 + (2 if (t // 50) % 2 else -2), 360)))
            for t in range(0, 1201, 50)
        ]
        events = run(session, frames)
        assert len(events) == 1
        t, event = events[0]
        assert t == 1000
        assert event.gesture == GESTURE_CIRCLE_DETECTED
        assert event.circle.radius == 120
        assert event.circle.points == ()
        assert event.circle.center[0] == pytest.approx(638, abs=0.01)
        assert event.circle.center[1] == pytest.approx(360, abs=0.01)

    def test_moving_away_restarts_hold(self):
        session = GestureSession()
        frames = [(t, frame_of(pointing_hand_at(640, 360))) for t in range(0, 500, 50)]
        frames += [(t, frame_of(pointing_hand_at(680, 360))) for t in range(500, 1601, 50)]
        events = run(session, frames)
        assert [t for t, _ in events] == [1500]

    def test_leaving_pointing_pose_drops_anchor(self):
        session = GestureSession()
        run(session, [(t, frame_of(pointing_hand_at(640, 360))) for t in range(0, 801, 50)])
        assert session.anchor is not None
        session.process(frame_of(make_hand()), W, H, now=850)
        assert session.anchor is None
        events = run(session, [(t, frame_of(pointing_hand_at(640, 360))) for t in range(900, 1801, 50)])
        assert events == []


class TestSessionState:
    def test_cooldown_blocks_follow_up_events(self):
        session = GestureSession(cooldown_ms=1000)
        run(session, [(t, clear_pose()) for t in range(0, 1001, 50)])
        # A fresh clear hold inside the cooldown window cannot complete.
        assert run(session, [(t, clear_pose()) for t in range(1050, 1951, 50)]) == []

    def test_reset(self):
        session = GestureSession()
        for i in range(5):
            session.process(frame_of(pointing_hand_at(600 + 30 * i, 300)), W, H, now=i * 33)
        session.process(photo_pose(), W, H, now=200)
        assert session.hold_progress(700)["photo"] > 0.0
        session.reset()
        assert session.trail(700) == ()
        assert session.hold_progress(700) == {"photo": 0.0, "clear": 0.0, "stationary": 0.0}
        assert session.anchor is None

    def test_frame_timestamp_is_used(self):
        session = GestureSession()
        session.process(frame_of(pointing_hand_at(640, 360), timestamp_ms=500.0), W, H)
        assert [p.timestamp for p in session.trail(500.0)] == [500.0]

    def test_non_positive_frame_size_is_skipped(self):
        session = GestureSession()
        assert session.process(frame_of(), 0, 0, now=0) is None
        assert session.process(frame_of(pointing_hand_at(640, 360)), 0, 720, now=33) is None
        assert session.process(frame_of(pointing_hand_at(640, 360)), 1280, -1, now=66) is None
        assert session.trail(66) == ()
        assert session.anchor is None

    def test_two_hand_holds_ignore_frame_size(self):
        session = GestureSession()
        events = [session.process(clear_pose(), 0, 0, now=t) for t in range(0, 1001, 50)]
        assert [e.gesture for e in events if e is not None] == [GESTURE_CLEAR_CANVAS]

    def test_invalid_clear_pose(self):
        with pytest.raises(ValueError):
            GestureSession(clear_pose="wave")

    def test_sessions_do_not_share_state(self):
        a, b = GestureSession(), GestureSession()
        a.process(frame_of(pointing_hand_at(640, 360)), W, H, now=0)
        assert len(a.trail(0)) == 1
        assert b.trail(0) == ()


def test_event_to_dict():
    session = GestureSession()
    frames = [(t, frame_of(pointing_hand_at(640, 360))) for t in range(0, 1001, 50)]
    (_, event), = run(session, frames)
    payload = event.to_dict()
    assert payload["gesture"] == GESTURE_CIRCLE_DETECTED
    assert payload["circle"]["radius"] == 120
    assert payload["circle"]["points"] == 0
    assert GestureEvent("X", 1.0).to_dict() == {"gesture": "X", "confidence": 1.0, "timestamp": 1.0}
