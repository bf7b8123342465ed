"""Keyboard and mouse state gathered from input events."""

from __future__ import annotations

import enum
from dataclasses import dataclass

__all__ = [
    "Scancode",
    "MouseButton",
    "KeyEvent",
    "MouseButtonEvent",
    "MouseMotionEvent",
    "MouseWheelEvent",
    "Input",
    "MAX_SCANCODES",
    "MAX_MOUSE_BUTTONS",
]

MAX_SCANCODES = 512
MAX_MOUSE_BUTTONS = 8


class Scancode(enum.IntEnum):
    """Physical key codes (USB HID usage numbering)."""

    A = 4
    B = 5
    C = 6
    D = 7
    E = 8
    F = 9
    G = 10
    H = 11
    I = 12  # noqa: E741
    J = 13
    K = 14
    L = 15
    M = 16
    N = 17
    O = 18  # noqa: E741
    P = 19
    Q = 20
    R = 21
    S = 22
    T = 23
    U = 24
    V = 25
    W = 26
    X = 27
    Y = 28
    Z = 29
    NUM_1 = 30
    NUM_2 = 31
    NUM_3 = 32
    NUM_4 = 33
    NUM_5 = 34
    NUM_6 = 35
    NUM_7 = 36
    NUM_8 = 37
    NUM_9 = 38
    NUM_0 = 39
    RETURN = 40
    ESCAPE = 41
    BACKSPACE = 42
    TAB = 43
    SPACE = 44
    RIGHT = 79
    LEFT = 80
    DOWN = 81
    UP = 82
    LCTRL = 224
    LSHIFT = 225
    LALT = 226
    LGUI = 227
    RCTRL = 228
    RSHIFT = 229
    RALT = 230
    RGUI = 231


class MouseButton(enum.IntEnum):
    LEFT = 1
    MIDDLE = 2
    RIGHT = 3
    X1 = 4
    X2 = 5


@dataclass(frozen=True)
class KeyEvent:
    scancode: int
    pressed: bool


@dataclass(frozen=True)
class MouseButtonEvent:
    button: int
    pressed: bool


@dataclass(frozen=True)
class MouseMotionEvent:
    dx: float
    dy: float


@dataclass(frozen=True)
class MouseWheelEvent:
    dy: float


class Input:
    """Held keys and buttons, plus mouse motion and scroll accumulated per frame."""

    def __init__(self) -> None:
        self._keys: set[int] = set()
        self._mouse_buttons: set[int] = set()
        self.mouse_delta_x = 0.0
        self.mouse_delta_y = 0.0
        self.scroll_y = 0.0

    def begin_frame(self) -> None:
        """Clear the per-frame mouse motion and scroll totals."""
        self.mouse_delta_x = 0.0
        self.mouse_delta_y = 0.0
        self.scroll_y = 0.0

    def handle_event(self, event) -> None:
        """Update state from one event; events of other kinds are ignored."""
        match event:
            case KeyEvent(scancode=code, pressed=pressed):
                _set_held(self._keys, int(code), pressed, MAX_SCANCODES)
            case MouseButtonEvent(button=button, pressed=pressed):
                _set_held(self._mouse_buttons, int(button), pressed, MAX_MOUSE_BUTTONS)
            case MouseMotionEvent(dx=dx, dy=dy):
                self.mouse_delta_x += float(dx)
                self.mouse_delta_y += float(dy)
            case MouseWheelEvent(dy=dy):
                self.scroll_y += float(dy)
            case _:
                pass

    def key_down(self, scancode: int) -> bool:
        return int(scancode) in self._keys

    def mouse_button_down(self, button: int) -> bool:
        return int(button) in self._mouse_buttons


def _set_held(held: set[int], code: int, pressed: bool, limit: int) -> None:
    if not 0 <= code < limit:
        return
    if pressed:
        held.add(code)
    else:
        held.discard(code)