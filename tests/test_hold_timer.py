import pytest

from cloth_inspection.hold_timer import HoldTimer


def run(timer, readings):
    """Feed ``(now, active)`` pairs; return the times at which it fired."""
    return [now for now, active in readings if timer.update(active, now)]


def test_does_not_fire_before_duration():
    timer = HoldTimer(2000)
    assert run(timer, [(0, True), (1000, True), (1999, True)]) == []
    assert timer.is_holding


def test_fires_once_at_duration():
    timer = HoldTimer(2000)
    assert run(timer, [(0, True), (2000, True)]) == [2000]
    assert not timer.is_holding


def test_continuous_hold_fires_exactly_once_per_duration():
    timer = HoldTimer(2000)
    frames = [(t, True) for t in range(0, 3001, 33)]
    assert len(run(timer, frames)) == 1


def test_restarts_after_firing():
    timer = HoldTimer(1000)
    fired = run(timer, [(0, True), (1000, True), (1001, True), (2000, True), (2001, True)])
    assert fired == [1000, 2001]


def test_release_before_duration_resets():
    timer = HoldTimer(2000)
    readings = [(t, True) for t in range(0, 1600, 100)]
    readings.append((1600, False))
    readings += [(t, True) for t in range(1700, 3600, 100)]
    # The new hold started at 1700 and would need until 3700.
    assert run(timer, readings) == []


def test_release_then_full_hold_fires_from_new_start():
    timer = HoldTimer(2000)
    readings = [(0, True), (1500, True), (1600, False), (1700, True), (3600, True), (3700, True)]
    assert run(timer, readings) == [3700]


def test_cancel():
    timer = HoldTimer(500)
    timer.update(True, 0)
    timer.cancel()
    assert not timer.is_holding
    assert not timer.update(True, 600)


def test_progress():
    timer = HoldTimer(1000)
    assert timer.progress(0) == 0.0
    timer.update(True, 100)
    assert timer.progress(600) == pytest.approx(0.5)
    assert timer.progress(5000) == 1.0


def test_invalid_duration():
    with pytest.raises(ValueError):
        HoldTimer(0)
