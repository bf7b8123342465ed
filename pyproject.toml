[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "boxworld"
version = "0.1.0"
description = "A small first-person box world: fixed-step rigid-body physics, a capsule player controller and an OpenGL renderer."
requires-python = ">=3.10"
keywords = ["game", "physics", "opengl", "simulation", "first-person", "raycast"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Simulation",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]
dependencies = [
    "numpy",
    "pyglet",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
boxworld = "boxworld.demo:main"

[tool.hatch.build.targets.wheel]
packages = ["boxworld"]

[tool.pytest.ini_options]
addopts = "-ra"
