"""GLSL shader programs built from source files or strings."""

from __future__ import annotations

import os
from pathlib import Path

import numpy as np

from boxworld import log

__all__ = ["ShaderError", "Shader", "read_text_file"]


class ShaderError(RuntimeError):
    """A shader source could not be read, compiled or linked."""


def read_text_file(path: str | os.PathLike) -> str:
    """Return the whole text of ``path``; raise ShaderError when it cannot be opened."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ShaderError(f"Failed to open file: {os.fspath(path)}") from exc


class Shader:
    """A linked vertex + fragment program; an empty Shader has program id 0."""

    def __init__(self, program=None) -> None:
        self._program = program

    @property
    def program(self) -> int:
        """OpenGL name of the program, or 0 when there is none."""
        return 0 if self._program is None else int(self._program.id)

    @staticmethod
    def from_files(vertex_path: str | os.PathLike, fragment_path: str | os.PathLike) -> Shader:
        """Read both stage files, then compile and link them."""
        vertex_source = read_text_file(vertex_path)
        fragment_source = read_text_file(fragment_path)
        shader = Shader.from_sources(vertex_source, fragment_source)
        log.info(f"Linked shader program: {os.fspath(vertex_path)} + {os.fspath(fragment_path)}")
        return shader

    @staticmethod
    def from_sources(vertex_source: str, fragment_source: str) -> Shader:
        """Compile and link a program from GLSL source text; needs a current GL context."""
        from pyglet.graphics.shader import Shader as StageShader
        from pyglet.graphics.shader import ShaderException, ShaderProgram

        stages = []
        try:
            for source, kind, label in (
                (vertex_source, "vertex", "Vertex shader compile"),
                (fragment_source, "fragment", "Fragment shader compile"),
            ):
                try:
                    stages.append(StageShader(source, kind))
                except ShaderException as exc:
                    raise ShaderError(f"{label} failed:\n{exc}") from exc
            try:
                program = ShaderProgram(*stages)
            except ShaderException as exc:
                raise ShaderError(f"Program link failed:\n{exc}") from exc
        finally:
            for stage in stages:
                stage.delete()
        return Shader(program)

    def bind(self) -> None:
        """Make this program current."""
        if self._program is None:
            from pyglet import gl

            gl.glUseProgram(0)
            return
        self._program.use()

    def delete(self) -> None:
        """Release the GL program; the shader becomes empty."""
        if self._program is not None:
            self._program.delete()
            self._program = None

    def _set(self, name: str, value) -> None:
        if self._program is None:
            return
        from pyglet.graphics.shader import ShaderException

        try:
            self._program[name] = value
        except ShaderException:
            # Uniforms the program does not use are ignored.
            pass

    def set_mat4(self, name: str, value) -> None:
        """Upload a 4x4 matrix (column-vector convention) to uniform ``name``."""
        flat = np.asarray(value, dtype=float).reshape(4, 4).flatten(order="F")
        self._set(name, tuple(float(x) for x in flat))

    def set_vec3(self, name: str, value) -> None:
        x, y, z = (float(c) for c in value)
        self._set(name, (x, y, z))

    def set_float(self, name: str, value: float) -> None:
        self._set(name, float(value))

    def set_int(self, name: str, value: int) -> None:
        self._set(name, int(value))