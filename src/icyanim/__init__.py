"""Scripted character-grid animations: canvases, frames and playback."""
from __future__ import annotations

from typing import Any

from .animator import Animator, FrameRenderer
from .buffer import Canvas, Caret, Cell, Layer, Palette, TextAttribute
from .config import AnimatorConfig, load_animation_config
from .encodings import Encoding, from_universal, to_universal
from .errors import (
    AnimationError,
    BufferLoadError,
    BufferNotFoundError,
    ConfigError,
    FrameLimitExceeded,
    InvalidInputError,
    OutOfRangeError,
    ScriptError,
    TypeMismatchError,
)
from .frames import DEFAULT_SPEED, MAX_FRAMES, Frame, capture_frame
from .loaders import BufferLoader, FileBufferLoader
from .monitor import MonitorSettings
from .text_renderer import TextFrameRenderer

__version__ = "0.1.0"

__all__ = [
    "AnimationError",
    "Animator",
    "AnimatorConfig",
    "BufferLoadError",
    "BufferLoader",
    "BufferNotFoundError",
    "Canvas",
    "Caret",
    "Cell",
    "ConfigError",
    "DEFAULT_SPEED",
    "Encoding",
    "FileBufferLoader",
    "Frame",
    "FrameLimitExceeded",
    "FrameRenderer",
    "InvalidInputError",
    "Layer",
    "MAX_FRAMES",
    "MonitorSettings",
    "OutOfRangeError",
    "Palette",
    "ScriptError",
    "TextAttribute",
    "TextFrameRenderer",
    "TypeMismatchError",
    "capture_frame",
    "from_universal",
    "load_animation_config",
    "run",
    "to_universal",
]


def __getattr__(name: str) -> Any:
    if name == "run":
        from .scripting import host

        return host.run
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
