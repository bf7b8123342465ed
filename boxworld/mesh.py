"""Indexed triangle meshes and a library that owns them."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

__all__ = ["Vertex", "Mesh", "MeshLibrary", "cube_geometry"]

_FLOAT_BYTES = 4
_VERTEX_FLOATS = 6


@dataclass(frozen=True)
class Vertex:
    """A position and a normal."""

    position: tuple[float, float, float]
    normal: tuple[float, float, float]


def cube_geometry() -> tuple[list[Vertex], list[int]]:
    """Unit cube centred on the origin: 24 vertices with per-face normals, 36 indices."""
    p000 = (-0.5, -0.5, -0.5)
    p001 = (-0.5, -0.5, 0.5)
    p010 = (-0.5, 0.5, -0.5)
    p011 = (-0.5, 0.5, 0.5)
    p100 = (0.5, -0.5, -0.5)
    p101 = (0.5, -0.5, 0.5)
    p110 = (0.5, 0.5, -0.5)
    p111 = (0.5, 0.5, 0.5)

    faces = [
        ((-1.0, 0.0, 0.0), (p000, p001, p011, p010)),
        ((1.0, 0.0, 0.0), (p100, p110, p111, p101)),
        ((0.0, -1.0, 0.0), (p000, p100, p101, p001)),
        ((0.0, 1.0, 0.0), (p010, p011, p111, p110)),
        ((0.0, 0.0, -1.0), (p000, p010, p110, p100)),
        ((0.0, 0.0, 1.0), (p001, p101, p111, p011)),
    ]
    vertices = [Vertex(corner, normal) for normal, corners in faces for corner in corners]
    indices = [
        base + offset
        for base in range(0, len(vertices), 4)
        for offset in (0, 1, 2, 0, 2, 3)
    ]
    return vertices, indices


class Mesh:
    """Triangle geometry uploaded to the GPU on first draw."""

    def __init__(self, vertices, indices) -> None:
        self._vertex_data = np.ascontiguousarray(
            [(*v.position, *v.normal) for v in vertices], dtype=np.float32
        ).reshape(-1, _VERTEX_FLOATS)
        self._index_data = np.ascontiguousarray(list(indices), dtype=np.uint32)
        self.index_count = len(self._index_data)
        self._handles: tuple[int, int, int] | None = None

    @staticmethod
    def make_cube() -> Mesh:
        return Mesh(*cube_geometry())

    def _upload(self) -> None:
        from pyglet import gl

        vao = gl.GLuint()
        vbo = gl.GLuint()
        ebo = gl.GLuint()
        gl.glGenVertexArrays(1, vao)
        gl.glGenBuffers(1, vbo)
        gl.glGenBuffers(1, ebo)

        gl.glBindVertexArray(vao)
        gl.glBindBuffer(gl.GL_ARRAY_BUFFER, vbo)
        gl.glBufferData(
            gl.GL_ARRAY_BUFFER,
            self._vertex_data.nbytes,
            self._vertex_data.ctypes.data,
            gl.GL_STATIC_DRAW,
        )
        gl.glBindBuffer(gl.GL_ELEMENT_ARRAY_BUFFER, ebo)
        gl.glBufferData(
            gl.GL_ELEMENT_ARRAY_BUFFER,
            self._index_data.nbytes,
            self._index_data.ctypes.data,
            gl.GL_STATIC_DRAW,
        )

        stride = _VERTEX_FLOATS * _FLOAT_BYTES
        gl.glEnableVertexAttribArray(0)
        gl.glVertexAttribPointer(0, 3, gl.GL_FLOAT, gl.GL_FALSE, stride, 0)
        gl.glEnableVertexAttribArray(1)
        gl.glVertexAttribPointer(1, 3, gl.GL_FLOAT, gl.GL_FALSE, stride, 3 * _FLOAT_BYTES)
        gl.glBindVertexArray(0)

        self._handles = (vao.value, vbo.value, ebo.value)

    def draw(self) -> None:
        """Draw the triangles; needs a current GL context."""
        if self.index_count == 0:
            return
        if self._handles is None:
            self._upload()
        from pyglet import gl

        gl.glBindVertexArray(self._handles[0])
        gl.glDrawElements(gl.GL_TRIANGLES, self.index_count, gl.GL_UNSIGNED_INT, 0)
        gl.glBindVertexArray(0)

    def destroy(self) -> None:
        """Release GPU buffers and drop the geometry."""
        if self._handles is not None:
            from pyglet import gl

            vao, vbo, ebo = self._handles
            gl.glDeleteBuffers(1, gl.GLuint(ebo))
            gl.glDeleteBuffers(1, gl.GLuint(vbo))
            gl.glDeleteVertexArrays(1, gl.GLuint(vao))
            self._handles = None
        self._vertex_data = np.zeros((0, _VERTEX_FLOATS), dtype=np.float32)
        self._index_data = np.zeros(0, dtype=np.uint32)
        self.index_count = 0


class MeshLibrary:
    """Meshes addressed by the index they were added at."""

    def __init__(self) -> None:
        self._meshes: list[Mesh] = []

    def __len__(self) -> int:
        return len(self._meshes)

    def add(self, mesh: Mesh) -> int:
        """Store ``mesh`` and return its index."""
        self._meshes.append(mesh)
        return len(self._meshes) - 1

    def get(self, index: int) -> Mesh | None:
        """Return the mesh at ``index``, or None when there is none."""
        if not 0 <= index < len(self._meshes):
            return None
        return self._meshes[index]