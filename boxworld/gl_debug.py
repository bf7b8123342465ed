"""Routing of OpenGL debug messages into the log."""

from __future__ import annotations

import itertools

from boxworld import log
from boxworld.log import LogLevel

__all__ = [
    "level_for_severity",
    "enable_gl_debug_callback",
    "GL_DEBUG_SEVERITY_HIGH",
    "GL_DEBUG_SEVERITY_MEDIUM",
    "GL_DEBUG_SEVERITY_LOW",
    "GL_DEBUG_SEVERITY_NOTIFICATION",
]

GL_DEBUG_SEVERITY_HIGH = 0x9146
GL_DEBUG_SEVERITY_MEDIUM = 0x9147
GL_DEBUG_SEVERITY_LOW = 0x9148
GL_DEBUG_SEVERITY_NOTIFICATION = 0x826B

_SEVERITY_LEVELS = {
    GL_DEBUG_SEVERITY_HIGH: LogLevel.ERROR,
    GL_DEBUG_SEVERITY_MEDIUM: LogLevel.WARN,
    GL_DEBUG_SEVERITY_LOW: LogLevel.INFO,
    GL_DEBUG_SEVERITY_NOTIFICATION: LogLevel.DEBUG,
}

# Installed callbacks must stay referenced while GL may call them.
_installed_callbacks: list = []


def level_for_severity(severity: int) -> LogLevel:
    """Log level for a GL debug severity; unknown severities log as INFO."""
    return _SEVERITY_LEVELS.get(int(severity), LogLevel.INFO)


def _message_text(message, length: int) -> str:
    if not message:
        return "(null gl debug message)"
    if length >= 0:
        raw = bytes(message[:length])
    else:
        raw = b"".join(itertools.takewhile(lambda c: c != b"\0", (message[i] for i in itertools.count())))
    return raw.decode("utf-8", errors="replace")


def _on_gl_debug_message(source, kind, ident, severity, length, message, user_param) -> None:
    log.write(level_for_severity(severity), _message_text(message, length))


def enable_gl_debug_callback() -> bool:
    """Send GL debug output to the log when GL_KHR_debug is available; return whether it was enabled."""
    from pyglet import gl
    from pyglet.gl import gl_info

    if not gl_info.have_extension("GL_KHR_debug"):
        log.debug("GL_KHR_debug not available; skipping GL debug callback")
        return False

    gl.glEnable(gl.GL_DEBUG_OUTPUT)
    gl.glEnable(gl.GL_DEBUG_OUTPUT_SYNCHRONOUS)
    callback = gl.GLDEBUGPROC(_on_gl_debug_message)
    _installed_callbacks.append(callback)
    gl.glDebugMessageCallback(callback, None)

    # Keep medium and higher; notifications are too chatty.
    gl.glDebugMessageControl(
        gl.GL_DONT_CARE, gl.GL_DONT_CARE, GL_DEBUG_SEVERITY_NOTIFICATION, 0, None, gl.GL_FALSE
    )
    log.info("Enabled OpenGL debug callback")
    return True