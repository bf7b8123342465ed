"""Immediate-mode coloured line drawing for debugging."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from boxworld.camera import Camera
from boxworld.shader import Shader

__all__ = ["DebugLine", "DebugDraw", "line_vertices", "aabb_edges"]

_FLOAT_BYTES = 4
_VERTEX_FLOATS = 6


def _vec(values) -> np.ndarray:
    return np.array(values, dtype=float)


@dataclass(eq=False)
class DebugLine:
    """A segment from ``start`` to ``end`` drawn in ``color``."""

    start: np.ndarray = field(default_factory=lambda: np.zeros(3))
    end: np.ndarray = field(default_factory=lambda: np.zeros(3))
    color: np.ndarray = field(default_factory=lambda: np.ones(3))

    def __post_init__(self) -> None:
        self.start = _vec(self.start)
        self.end = _vec(self.end)
        self.color = _vec(self.color)


def line_vertices(lines) -> np.ndarray:
    """Interleaved ``(position, color)`` float32 rows, two per line."""
    rows = [
        (*point, *line.color)
        for line in lines
        for point in (line.start, line.end)
    ]
    return np.ascontiguousarray(rows, dtype=np.float32).reshape(-1, _VERTEX_FLOATS)


def aabb_edges(minimum, maximum) -> list[tuple[np.ndarray, np.ndarray]]:
    """The 12 edges of the axis-aligned box from ``minimum`` to ``maximum``."""
    lo = _vec(minimum)
    hi = _vec(maximum)

    def corner(x: int, y: int, z: int) -> np.ndarray:
        return np.array([(lo, hi)[x][0], (lo, hi)[y][1], (lo, hi)[z][2]])

    loop = [(0, 0), (0, 1), (1, 1), (1, 0)]
    edges = []
    for x in (0, 1):
        for (y1, z1), (y2, z2) in zip(loop, loop[1:] + loop[:1]):
            edges.append((corner(x, y1, z1), corner(x, y2, z2)))
    for y, z in loop:
        edges.append((corner(0, y, z), corner(1, y, z)))
    return edges


class DebugDraw:
    """Collects lines during a frame and draws them all at once."""

    def __init__(self) -> None:
        self._lines: list[DebugLine] = []
        self._shader = Shader()
        self._vao = 0
        self._vbo = 0
        self._initialized = False

    @property
    def lines(self) -> tuple[DebugLine, ...]:
        """Lines queued for the next render."""
        return tuple(self._lines)

    def init(self, assets_dir: str | os.PathLike) -> None:
        """Load the line shader from ``assets_dir`` and create GPU buffers."""
        if self._initialized:
            return
        shaders = Path(assets_dir) / "shaders"
        self._shader = Shader.from_files(shaders / "debug_line.vert", shaders / "debug_line.frag")

        from pyglet import gl

        vao = gl.GLuint()
        vbo = gl.GLuint()
        gl.glGenVertexArrays(1, vao)
        gl.glGenBuffers(1, vbo)

        stride = _VERTEX_FLOATS * _FLOAT_BYTES
        gl.glBindVertexArray(vao)
        gl.glBindBuffer(gl.GL_ARRAY_BUFFER, vbo)
        gl.glBufferData(gl.GL_ARRAY_BUFFER, stride * 2, None, gl.GL_DYNAMIC_DRAW)
        gl.glEnableVertexAttribArray(0)
        gl.glVertexAttribPointer(0, 3, gl.GL_FLOAT, gl.GL_FALSE, stride, 0)
        gl.glEnableVertexAttribArray(1)
        gl.glVertexAttribPointer(1, 3, gl.GL_FLOAT, gl.GL_FALSE, stride, 3 * _FLOAT_BYTES)
        gl.glBindVertexArray(0)

        self._vao = vao.value
        self._vbo = vbo.value
        self._initialized = True

    def line(self, start, end, color) -> None:
        self._lines.append(DebugLine(start, end, color))

    def aabb(self, minimum, maximum, color) -> None:
        """Queue the 12 edges of an axis-aligned box."""
        for start, end in aabb_edges(minimum, maximum):
            self.line(start, end, color)

    def render(self, camera: Camera) -> None:
        """Draw queued lines with depth testing, then clear them."""
        if not self._initialized or not self._lines:
            return
        from pyglet import gl

        data = line_vertices(self._lines)
        gl.glBindBuffer(gl.GL_ARRAY_BUFFER, self._vbo)
        gl.glBufferData(gl.GL_ARRAY_BUFFER, data.nbytes, data.ctypes.data, gl.GL_DYNAMIC_DRAW)

        self._shader.bind()
        self._shader.set_mat4("uView", camera.view_matrix())
        self._shader.set_mat4("uProj", camera.proj_matrix())

        was_depth_test = gl.glIsEnabled(gl.GL_DEPTH_TEST)
        gl.glEnable(gl.GL_DEPTH_TEST)
        gl.glBindVertexArray(self._vao)
        gl.glDrawArrays(gl.GL_LINES, 0, len(data))
        gl.glBindVertexArray(0)
        if not was_depth_test:
            gl.glDisable(gl.GL_DEPTH_TEST)

        self.clear()

    def clear(self) -> None:
        self._lines.clear()

    def destroy(self) -> None:
        """Release GPU resources; the drawer must be initialised again before use."""
        if self._vbo or self._vao:
            from pyglet import gl

            if self._vbo:
                gl.glDeleteBuffers(1, gl.GLuint(self._vbo))
            if self._vao:
                gl.glDeleteVertexArrays(1, gl.GLuint(self._vao))
        self._vbo = 0
        self._vao = 0
        self._shader.delete()
        self._initialized = False