"""The main loop: window events, variable update, fixed-rate update and rendering."""

from __future__ import annotations

import abc
import dataclasses
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from boxworld import log
from boxworld.clock import FrameClock
from boxworld.input import Input, KeyEvent, MouseButtonEvent, MouseMotionEvent, MouseWheelEvent
from boxworld.mesh import MeshLibrary
from boxworld.render_system import RenderSystem
from boxworld.window import ESCAPE_SCANCODE, QuitEvent, Window, WindowConfig

__all__ = [
    "EngineConfig",
    "App",
    "Engine",
    "smooth_fps",
    "fixed_steps",
    "FIXED_DT",
    "MAX_FRAME_DT",
    "FPS_SMOOTHING",
]

FIXED_DT = 1.0 / 60.0
MAX_FRAME_DT = 0.25
FPS_SMOOTHING = 0.1

_INPUT_EVENTS = (KeyEvent, MouseButtonEvent, MouseMotionEvent, MouseWheelEvent)


def smooth_fps(current: float, dt: float) -> float:
    """Blend the frame rate implied by ``dt`` into ``current``; the first sample is taken as is."""
    if dt <= 0.0:
        return current
    fps = 1.0 / dt
    if current == 0.0:
        return fps
    return current * (1.0 - FPS_SMOOTHING) + fps * FPS_SMOOTHING


def fixed_steps(accumulator: float, fixed_dt: float) -> tuple[int, float]:
    """Number of whole fixed steps in ``accumulator`` and the time left over."""
    if fixed_dt <= 0.0:
        raise ValueError("fixed_dt must be positive")
    steps = 0
    while accumulator >= fixed_dt:
        accumulator -= fixed_dt
        steps += 1
    return steps, accumulator


@dataclass
class EngineConfig:
    """Window and presentation settings for an Engine."""

    title: str = "Engine Prototype"
    window_width: int = 1280
    window_height: int = 720
    high_dpi: bool = True
    vsync: bool = True
    capture_mouse: bool = True
    assets_dir: Path = field(default_factory=lambda: Path("assets"))


class App(abc.ABC):
    """Hooks an application supplies to the engine loop."""

    @abc.abstractmethod
    def on_init(self, engine: Engine) -> None:
        """Called once before the first frame."""

    @abc.abstractmethod
    def on_shutdown(self, engine: Engine) -> None:
        """Called once after the last frame."""

    @abc.abstractmethod
    def on_update(self, engine: Engine, dt: float) -> None:
        """Called once per rendered frame with the clamped frame time."""

    @abc.abstractmethod
    def on_fixed_update(self, engine: Engine, fixed_dt: float) -> None:
        """Called zero or more times per frame at the fixed rate."""

    @abc.abstractmethod
    def on_render(self, engine: Engine) -> None:
        """Called once per frame to draw."""


def _is_escape_press(event) -> bool:
    return (
        ESCAPE_SCANCODE is not None
        and isinstance(event, KeyEvent)
        and event == KeyEvent(ESCAPE_SCANCODE, True)
    )


class Engine:
    """Owns the window, input, meshes and renderer, and drives an App."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        window=None,
        renderer=None,
        time_source: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.config = dataclasses.replace(config) if config is not None else EngineConfig()
        self._time_source = time_source
        self._running = False
        self._smoothed_fps = 0.0

        owns_window = window is None
        if owns_window:
            window = Window(
                WindowConfig(
                    title=self.config.title,
                    width=self.config.window_width,
                    height=self.config.window_height,
                    high_dpi=self.config.high_dpi,
                )
            )
        self.window = window
        if owns_window:
            self._report_gl()

        self.window.set_vsync(self.config.vsync)
        self.window.set_capture_mouse(self.config.capture_mouse)

        self.input = Input()
        self.meshes = MeshLibrary()

        self._owns_renderer = renderer is None
        if renderer is None:
            renderer = RenderSystem()
            renderer.init(self.config.assets_dir)
        self.renderer = renderer

    @staticmethod
    def _report_gl() -> None:
        from pyglet.gl import gl_info

        from boxworld.gl_debug import enable_gl_debug_callback

        version = gl_info.get_version_string()
        log.info(version if version else "GL_VERSION unavailable")
        if __debug__:
            enable_gl_debug_callback()

    def __enter__(self) -> Engine:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def smoothed_fps(self) -> float:
        return self._smoothed_fps

    @property
    def running(self) -> bool:
        return self._running

    def request_quit(self) -> None:
        """Stop the loop after the current frame."""
        self._running = False

    def run(self, app: App) -> None:
        """Run ``app`` until a quit is requested."""
        self._running = True
        app.on_init(self)

        clock = FrameClock(self._time_source)
        clock.reset()
        accumulator = 0.0

        while self._running:
            dt = min(max(clock.tick_seconds(), 0.0), MAX_FRAME_DT)
            accumulator += dt
            self._smoothed_fps = smooth_fps(self._smoothed_fps, dt)

            self.input.begin_frame()
            for event in self.window.poll_events():
                if isinstance(event, QuitEvent):
                    self.request_quit()
                elif _is_escape_press(event):
                    self.config.capture_mouse = not self.config.capture_mouse
                    self.window.set_capture_mouse(self.config.capture_mouse)
                if isinstance(event, _INPUT_EVENTS):
                    self.input.handle_event(event)

            app.on_update(self, dt)

            steps, accumulator = fixed_steps(accumulator, FIXED_DT)
            for _ in range(steps):
                app.on_fixed_update(self, FIXED_DT)

            app.on_render(self)
            self.window.swap()

        app.on_shutdown(self)

    def close(self) -> None:
        """Release the renderer (when created here) and close the window."""
        if self._owns_renderer and self.renderer is not None:
            self.renderer.destroy()
            self.renderer = None
        self.window.close()