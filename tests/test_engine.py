import itertools

import pytest

from boxworld.engine import (
    FIXED_DT,
    MAX_FRAME_DT,
    App,
    Engine,
    EngineConfig,
    fixed_steps,
    smooth_fps,
)
from boxworld.window import QuitEvent


class FakeWindow:
    def __init__(self, batches=()):
        self.batches = list(batches)
        self.vsync = None
        self.capture = None
        self.swaps = 0
        self.closed = False

    def poll_events(self):
        return self.batches.pop(0) if self.batches else []

    def swap(self):
        self.swaps += 1

    def set_vsync(self, enabled):
        self.vsync = enabled

    def set_capture_mouse(self, enabled):
        self.capture = enabled

    def drawable_size(self):
        return (1280, 720)

    def close(self):
        self.closed = True


class RecordingApp(App):
    def __init__(self, quit_after=None):
        self.quit_after = quit_after
        self.calls = []
        self.update_dts = []
        self.fixed_dts = []

    def on_init(self, engine):
        self.calls.append("init")

    def on_shutdown(self, engine):
        self.calls.append("shutdown")

    def on_update(self, engine, dt):
        self.calls.append("update")
        self.update_dts.append(dt)
        if self.quit_after is not None and len(self.update_dts) >= self.quit_after:
            engine.request_quit()

    def on_fixed_update(self, engine, fixed_dt):
        self.fixed_dts.append(fixed_dt)

    def on_render(self, engine):
        self.calls.append("render")


def make_engine(window, times, config=None):
    source = iter(times)
    return Engine(config, window=window, renderer=object(), time_source=lambda: next(source))


def test_engine_config_defaults():
    cfg = EngineConfig()
    assert cfg.title == "Engine Prototype"
    assert (cfg.window_width, cfg.window_height) == (1280, 720)
    assert cfg.high_dpi and cfg.vsync and cfg.capture_mouse


def test_smooth_fps_takes_first_sample():
    assert smooth_fps(0.0, 0.5) == pytest.approx(2.0)


def test_smooth_fps_ignores_zero_dt():
    assert smooth_fps(60.0, 0.0) == 60.0


def test_smooth_fps_moves_towards_sample():
    result = smooth_fps(60.0, 1.0 / 30.0)
    assert 30.0 < result < 60.0


@pytest.mark.parametrize("acc", [0.0, 0.01, 0.04, 0.25, 1.0])
def test_fixed_steps_invariant(acc):
    steps, rest = fixed_steps(acc, FIXED_DT)
    assert steps >= 0
    assert 0.0 <= rest < FIXED_DT
    assert steps * FIXED_DT + rest == pytest.approx(acc)


def test_fixed_steps_rejects_non_positive_step():
    with pytest.raises(ValueError):
        fixed_steps(1.0, 0.0)


def test_app_is_abstract():
    with pytest.raises(TypeError):
        App()


def test_config_applied_to_window():
    window = FakeWindow()
    make_engine(window, [], EngineConfig(vsync=False, capture_mouse=True))
    assert window.vsync is False
    assert window.capture is True


def test_run_calls_hooks_in_order_and_counts_fixed_steps():
    window = FakeWindow()
    engine = make_engine(window, [0.0, 0.0, 0.04, 0.08])
    app = RecordingApp(quit_after=2)
    engine.run(app)
    assert app.calls == ["init", "update", "render", "update", "render", "shutdown"]
    assert app.update_dts == [pytest.approx(0.04), pytest.approx(0.04)]
    assert len(app.fixed_dts) == 4
    assert all(dt == FIXED_DT for dt in app.fixed_dts)
    assert window.swaps == 2
    assert engine.running is False


def test_quit_event_ends_loop():
    window = FakeWindow([[], [QuitEvent()]])
    times = itertools.count(step=0.01)
    source = lambda: float(next(times))
    engine = Engine(window=window, renderer=object(), time_source=source)
    app = RecordingApp()
    engine.run(app)
    assert app.calls.count("update") == 2
    assert app.calls[-1] == "shutdown"


def test_frame_time_is_clamped():
    engine = make_engine(FakeWindow(), [0.0, 0.0, 5.0])
    app = RecordingApp(quit_after=1)
    engine.run(app)
    assert app.update_dts == [MAX_FRAME_DT]


def test_negative_frame_time_becomes_zero():
    engine = make_engine(FakeWindow(), [0.0, 0.0, -1.0])
    app = RecordingApp(quit_after=1)
    engine.run(app)
    assert app.update_dts == [0.0]
    assert app.fixed_dts == []
    assert engine.smoothed_fps == 0.0


def test_close_closes_window():
    window = FakeWindow()
    engine = make_engine(window, [])
    engine.close()
    assert window.closed is True