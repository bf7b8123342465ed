"""A first-person box world: fixed-step rigid-body physics, a capsule player, ray picking and an OpenGL renderer."""

__version__ = "0.1.0"