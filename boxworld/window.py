"""An OpenGL 4.1 core window with event polling, built on pyglet."""

from __future__ import annotations

from dataclasses import dataclass

from boxworld import log
from boxworld.input import (
    KeyEvent,
    MouseButton,
    MouseButtonEvent,
    MouseMotionEvent,
    MouseWheelEvent,
    Scancode,
)

__all__ = [
    "WindowConfig",
    "QuitEvent",
    "ResizeEvent",
    "Window",
    "scancode_for_key",
    "mouse_button_for",
    "ESCAPE_SCANCODE",
]

# Key symbol values used by pyglet (X11 keysyms).
_KEY_SPACE = 0x20
_KEY_ESCAPE = 0xFF1B
_KEY_NAMES: dict[int, str] = {ord("a") + i: chr(ord("A") + i) for i in range(26)}
_KEY_NAMES.update(
    {
        _KEY_SPACE: "SPACE",
        _KEY_ESCAPE: "ESCAPE",
        0xFF0D: "RETURN",
        0xFF09: "TAB",
        0xFF08: "BACKSPACE",
        0xFF51: "LEFT",
        0xFF52: "UP",
        0xFF53: "RIGHT",
        0xFF54: "DOWN",
        0xFFE1: "LSHIFT",
        0xFFE2: "RSHIFT",
        0xFFE3: "LCTRL",
        0xFFE4: "RCTRL",
        0xFFE9: "LALT",
        0xFFEA: "RALT",
    }
)

# Mouse button values used by pyglet.
_MOUSE_NAMES = {1: "LEFT", 2: "MIDDLE", 4: "RIGHT", 8: "X1", 16: "X2"}


def scancode_for_key(symbol: int) -> Scancode | None:
    """Scancode for a pyglet key symbol, or None when it has none."""
    name = _KEY_NAMES.get(int(symbol))
    return None if name is None else Scancode.__members__.get(name)


def mouse_button_for(pyglet_button: int) -> MouseButton | None:
    """Mouse button for a pyglet button value, or None when it has none."""
    name = _MOUSE_NAMES.get(int(pyglet_button))
    return None if name is None else MouseButton.__members__.get(name)


ESCAPE_SCANCODE = scancode_for_key(_KEY_ESCAPE)


@dataclass
class WindowConfig:
    """Initial window title, size and DPI behaviour."""

    title: str = "Engine Prototype"
    width: int = 1280
    height: int = 720
    high_dpi: bool = True


@dataclass(frozen=True)
class QuitEvent:
    """The user asked to close the window."""


@dataclass(frozen=True)
class ResizeEvent:
    """The window changed size."""

    width: int
    height: int


class Window:
    """A resizable window owning a current OpenGL 4.1 core context."""

    def __init__(self, config: WindowConfig) -> None:
        import pyglet
        from pyglet import gl

        self.config = config
        gl_config = gl.Config(
            major_version=4,
            minor_version=1,
            forward_compatible=True,
            double_buffer=True,
            depth_size=24,
            stencil_size=8,
        )
        try:
            self._window = pyglet.window.Window(
                width=config.width,
                height=config.height,
                caption=config.title,
                resizable=True,
                config=gl_config,
            )
        except Exception as exc:
            raise RuntimeError(f"Window creation failed: {exc}") from exc

        self._pending: list = []
        self._window.push_handlers(
            on_key_press=self._on_key_press,
            on_key_release=self._on_key_release,
            on_mouse_press=self._on_mouse_press,
            on_mouse_release=self._on_mouse_release,
            on_mouse_motion=self._on_mouse_motion,
            on_mouse_drag=self._on_mouse_drag,
            on_mouse_scroll=self._on_mouse_scroll,
            on_close=self._on_close,
            on_resize=self._on_resize,
        )
        self._window.switch_to()
        self._apply_viewport()
        log.info("Window + OpenGL context created")

    def __enter__(self) -> Window:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def native(self):
        """The underlying pyglet window."""
        return self._window

    def _apply_viewport(self) -> None:
        from pyglet import gl

        width, height = self.drawable_size()
        gl.glViewport(0, 0, width, height)

    def _on_key_press(self, symbol, modifiers):
        scancode = scancode_for_key(symbol)
        if scancode is not None:
            self._pending.append(KeyEvent(scancode, True))
        # Handled here so the default handler does not close on Escape.
        return True

    def _on_key_release(self, symbol, modifiers):
        scancode = scancode_for_key(symbol)
        if scancode is not None:
            self._pending.append(KeyEvent(scancode, False))
        return True

    def _on_mouse_press(self, x, y, button, modifiers):
        mapped = mouse_button_for(button)
        if mapped is not None:
            self._pending.append(MouseButtonEvent(mapped, True))
        return True

    def _on_mouse_release(self, x, y, button, modifiers):
        mapped = mouse_button_for(button)
        if mapped is not None:
            self._pending.append(MouseButtonEvent(mapped, False))
        return True

    def _on_mouse_motion(self, x, y, dx, dy):
        # Screen y grows downwards for motion deltas.
        self._pending.append(MouseMotionEvent(float(dx), float(-dy)))
        return True

    def _on_mouse_drag(self, x, y, dx, dy, buttons, modifiers):
        return self._on_mouse_motion(x, y, dx, dy)

    def _on_mouse_scroll(self, x, y, scroll_x, scroll_y):
        self._pending.append(MouseWheelEvent(float(scroll_y)))
        return True

    def _on_close(self):
        self._pending.append(QuitEvent())
        return True

    def _on_resize(self, width, height):
        self._apply_viewport()
        self._pending.append(ResizeEvent(int(width), int(height)))
        return True

    def poll_events(self) -> list:
        """Process window-system events and return those collected since the last poll."""
        self._window.dispatch_events()
        events, self._pending = self._pending, []
        return events

    def swap(self) -> None:
        self._window.flip()

    def set_vsync(self, enabled: bool) -> None:
        self._window.set_vsync(bool(enabled))

    def set_capture_mouse(self, enabled: bool) -> None:
        """Hide and lock the pointer, reporting relative motion only."""
        self._window.set_exclusive_mouse(bool(enabled))

    def drawable_size(self) -> tuple[int, int]:
        """Framebuffer size in pixels (HiDPI-aware)."""
        width, height = self._window.get_framebuffer_size()
        return int(width), int(height)

    def close(self) -> None:
        if self._window is not None:
            self._window.close()
            self._window = None