"""Sky gradient and lit, fogged mesh rendering."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from boxworld import log, vecmath
from boxworld.camera import Camera
from boxworld.mesh import MeshLibrary
from boxworld.scene import Scene
from boxworld.shader import Shader

__all__ = ["DirectionalLight", "RenderSystem", "FOG_NEAR", "FOG_FAR"]

FOG_NEAR = 18.0
FOG_FAR = 110.0


@dataclass(eq=False)
class DirectionalLight:
    """Light arriving from a single direction."""

    direction: np.ndarray = field(default_factory=lambda: vecmath.normalize([-1.0, -1.0, -0.3]))
    color: np.ndarray = field(default_factory=lambda: np.ones(3))

    def __post_init__(self) -> None:
        self.direction = np.array(self.direction, dtype=float)
        self.color = np.array(self.color, dtype=float)


class RenderSystem:
    """Draws a full-screen sky and then every entity with a mesh renderer."""

    def __init__(self) -> None:
        self.sky_bottom = vecmath.vec3(0.72, 0.83, 0.95)
        self.sky_top = vecmath.vec3(0.20, 0.53, 0.90)
        self.fog_color = vecmath.vec3(0.68, 0.79, 0.90)
        self._mesh_shader = Shader()
        self._sky_shader = Shader()
        self._sky_vao = 0
        self._initialized = False

    def init(self, assets_dir: str | os.PathLike) -> None:
        """Load shaders from ``assets_dir`` and set the fixed render state."""
        shaders = Path(assets_dir) / "shaders"
        self._mesh_shader = Shader.from_files(shaders / "mesh.vert", shaders / "mesh.frag")
        self._sky_shader = Shader.from_files(shaders / "sky.vert", shaders / "sky.frag")

        from pyglet import gl

        vao = gl.GLuint()
        gl.glGenVertexArrays(1, vao)
        self._sky_vao = vao.value

        gl.glEnable(gl.GL_DEPTH_TEST)
        gl.glDepthFunc(gl.GL_LESS)
        gl.glEnable(gl.GL_CULL_FACE)
        gl.glCullFace(gl.GL_BACK)
        gl.glFrontFace(gl.GL_CCW)

        self._initialized = True
        log.info("RenderSystem initialized")

    def render(self, scene: Scene, camera: Camera, light: DirectionalLight, meshes: MeshLibrary) -> None:
        """Draw the sky, then each renderable entity of ``scene``."""
        if not self._initialized:
            raise RuntimeError("RenderSystem is not initialized")
        from pyglet import gl

        self._render_sky()

        gl.glEnable(gl.GL_DEPTH_TEST)
        gl.glDepthMask(gl.GL_TRUE)
        gl.glClear(gl.GL_DEPTH_BUFFER_BIT)

        shader = self._mesh_shader
        shader.bind()
        shader.set_mat4("uView", camera.view_matrix())
        shader.set_mat4("uProj", camera.proj_matrix())
        shader.set_vec3("uViewPos", camera.position)
        shader.set_vec3("uLightDir", vecmath.normalize(light.direction))
        shader.set_vec3("uLightColor", light.color)
        shader.set_vec3("uFogColor", self.fog_color)
        shader.set_float("uFogNear", FOG_NEAR)
        shader.set_float("uFogFar", FOG_FAR)

        for entity in scene.mesh_renderer_entities():
            transform = scene.transform(entity)
            renderer = scene.mesh_renderer(entity)
            if transform is None or renderer is None:
                continue
            mesh = meshes.get(renderer.mesh_index)
            if mesh is None:
                continue
            shader.set_mat4("uModel", transform.matrix())
            shader.set_vec3("uAlbedo", renderer.albedo)
            shader.set_int("uEnableGroundGrid", 1 if renderer.enable_ground_grid else 0)
            mesh.draw()

    def _render_sky(self) -> None:
        from pyglet import gl

        gl.glDisable(gl.GL_DEPTH_TEST)
        gl.glDepthMask(gl.GL_FALSE)
        gl.glDisable(gl.GL_CULL_FACE)

        self._sky_shader.bind()
        self._sky_shader.set_vec3("uSkyBottom", self.sky_bottom)
        self._sky_shader.set_vec3("uSkyTop", self.sky_top)

        gl.glBindVertexArray(self._sky_vao)
        gl.glDrawArrays(gl.GL_TRIANGLES, 0, 3)
        gl.glBindVertexArray(0)

        gl.glEnable(gl.GL_CULL_FACE)

    def destroy(self) -> None:
        """Release GPU resources; the renderer must be initialised again before use."""
        if self._sky_vao:
            from pyglet import gl

            gl.glDeleteVertexArrays(1, gl.GLuint(self._sky_vao))
            self._sky_vao = 0
        self._mesh_shader.delete()
        self._sky_shader.delete()
        self._initialized = False