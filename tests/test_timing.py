import pytest

from pad_tracker.timing import TimingSmoother


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def test_duration_converges_to_constant_input():
    smoother = TimingSmoother()
    value = 0.0
    for _ in range(2000):
        value = smoother.update_duration(12.5)

    assert value == pytest.approx(12.5, rel=1e-6)


def test_duration_first_update_is_weighted():
    smoother = TimingSmoother(duration_alpha=0.02)

    assert smoother.update_duration(100.0) == pytest.approx(2.0)
    assert smoother.update_duration(100.0) == pytest.approx(0.98 * 2.0 + 2.0)


def test_duration_is_monotone_towards_target():
    smoother = TimingSmoother()
    previous = smoother.update_duration(40.0)
    for _ in range(50):
        current = smoother.update_duration(40.0)
        assert previous < current < 40.0
        previous = current


def test_fps_updates_once_per_window():
    clock = FakeClock()
    smoother = TimingSmoother(fps_alpha=0.3, window_s=1.0, clock=clock)

    for i in range(10):
        clock.now = i * 0.1
        assert smoother.tick_fps() == 0.0

    clock.now = 1.05
    assert smoother.tick_fps() == pytest.approx(3.0)

    # Next bucket: 1 frame already counted at 1.05, add 4 more
    for t in (1.3, 1.5, 1.7, 1.9):
        clock.now = t
        assert smoother.tick_fps() == pytest.approx(3.0)

    clock.now = 2.2
    assert smoother.tick_fps() == pytest.approx(0.7 * 3.0 + 0.3 * 5)


def test_fps_converges_to_steady_rate():
    clock = FakeClock()
    smoother = TimingSmoother(clock=clock)

    fps = 0.0
    for i in range(20 * 60):
        clock.now = i / 20.0 + 1e-9
        fps = smoother.tick_fps()

    assert fps == pytest.approx(20.0, abs=1.0)


def test_sessions_do_not_share_state():
    a = TimingSmoother()
    b = TimingSmoother()

    a.update_duration(50.0)

    assert a.avg_duration > 0.0
    assert b.avg_duration == 0.0


def test_reset_clears_state():
    smoother = TimingSmoother(clock=FakeClock())
    smoother.update_duration(10.0)
    smoother.tick_fps()

    smoother.reset()

    assert smoother.avg_duration == 0.0
    assert smoother.avg_fps == 0.0


@pytest.mark.parametrize("kwargs", [{"duration_alpha": 0.0}, {"fps_alpha": 1.5}])
def test_rejects_bad_coefficients(kwargs):
    with pytest.raises(ValueError):
        TimingSmoother(**kwargs)
