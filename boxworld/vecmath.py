"""Small vector, matrix and quaternion helpers on numpy arrays.

Matrices are 4x4 and act on column vectors (``m @ v``). Quaternions are
arrays ordered ``(w, x, y, z)``.
"""

from __future__ import annotations

import math

import numpy as np

__all__ = [
    "vec3",
    "normalize",
    "normalized_or_zero",
    "translation",
    "rotation",
    "scaling",
    "look_at",
    "perspective",
    "quat_from_euler",
    "euler_from_quat",
    "rotate_by_quat",
]

_ZERO_LENGTH_SQUARED = 1.0e-8


def vec3(x: float, y: float, z: float) -> np.ndarray:
    """Return a three-component float vector."""
    return np.array([x, y, z], dtype=float)


def normalize(v) -> np.ndarray:
    """Return ``v`` scaled to unit length (NaN for a zero vector)."""
    arr = np.asarray(v, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        return arr / np.linalg.norm(arr)


def normalized_or_zero(v) -> np.ndarray:
    """Return ``v`` normalised, or the zero vector when ``v`` is nearly zero."""
    arr = np.asarray(v, dtype=float)
    if float(np.dot(arr, arr)) <= _ZERO_LENGTH_SQUARED:
        return np.zeros(3)
    return normalize(arr)


def translation(offset) -> np.ndarray:
    """Return a matrix translating by ``offset``."""
    m = np.identity(4)
    m[:3, 3] = np.asarray(offset, dtype=float)
    return m


def rotation(angle_radians: float, axis) -> np.ndarray:
    """Return a matrix rotating by ``angle_radians`` about ``axis`` (right-handed)."""
    x, y, z = normalize(axis)
    c = math.cos(angle_radians)
    s = math.sin(angle_radians)
    t = 1.0 - c
    m = np.identity(4)
    m[:3, :3] = [
        [t * x * x + c, t * x * y - s * z, t * x * z + s * y],
        [t * x * y + s * z, t * y * y + c, t * y * z - s * x],
        [t * x * z - s * y, t * y * z + s * x, t * z * z + c],
    ]
    return m


def scaling(factors) -> np.ndarray:
    """Return a matrix scaling each axis by ``factors``."""
    m = np.identity(4)
    m[:3, :3] = np.diag(np.asarray(factors, dtype=float))
    return m


def look_at(eye, center, up) -> np.ndarray:
    """Return a right-handed view matrix looking from ``eye`` towards ``center``."""
    eye = np.asarray(eye, dtype=float)
    f = normalize(np.asarray(center, dtype=float) - eye)
    s = normalize(np.cross(f, np.asarray(up, dtype=float)))
    u = np.cross(s, f)
    m = np.identity(4)
    m[0, :3] = s
    m[1, :3] = u
    m[2, :3] = -f
    m[0, 3] = -np.dot(s, eye)
    m[1, 3] = -np.dot(u, eye)
    m[2, 3] = np.dot(f, eye)
    return m


def perspective(fovy_radians: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Return a right-handed perspective projection mapping depth to [-1, 1]."""
    if aspect == 0.0:
        raise ValueError("aspect ratio must be non-zero")
    if near == far:
        raise ValueError("near and far planes must differ")
    tan_half = math.tan(fovy_radians / 2.0)
    if tan_half == 0.0:
        raise ValueError("field of view must be non-zero")
    m = np.zeros((4, 4))
    m[0, 0] = 1.0 / (aspect * tan_half)
    m[1, 1] = 1.0 / tan_half
    m[2, 2] = -(far + near) / (far - near)
    m[2, 3] = -(2.0 * far * near) / (far - near)
    m[3, 2] = -1.0
    return m


def quat_from_euler(angles_radians) -> np.ndarray:
    """Return the quaternion for Euler angles ``(pitch, yaw, roll)`` in radians."""
    half = np.asarray(angles_radians, dtype=float) * 0.5
    cx, cy, cz = np.cos(half)
    sx, sy, sz = np.sin(half)
    return np.array(
        [
            cx * cy * cz + sx * sy * sz,
            sx * cy * cz - cx * sy * sz,
            cx * sy * cz + sx * cy * sz,
            cx * cy * sz - sx * sy * cz,
        ]
    )


def euler_from_quat(q) -> np.ndarray:
    """Return Euler angles ``(pitch, yaw, roll)`` in radians for quaternion ``q``."""
    w, x, y, z = np.asarray(q, dtype=float)
    roll = math.atan2(2.0 * (x * y + w * z), w * w + x * x - y * y - z * z)

    py = 2.0 * (y * z + w * x)
    px = w * w - x * x - y * y + z * z
    if abs(py) < 1e-12 and abs(px) < 1e-12:
        pitch = 2.0 * math.atan2(x, w)
    else:
        pitch = math.atan2(py, px)

    yaw = math.asin(min(1.0, max(-1.0, -2.0 * (x * z - w * y))))
    return np.array([pitch, yaw, roll])


def rotate_by_quat(q, v) -> np.ndarray:
    """Rotate vector ``v`` by unit quaternion ``q``."""
    q = np.asarray(q, dtype=float)
    v = np.asarray(v, dtype=float)
    w = q[0]
    u = q[1:]
    t = 2.0 * np.cross(u, v)
    return v + w * t + np.cross(u, t)