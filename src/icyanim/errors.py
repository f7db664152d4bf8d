"""Exception taxonomy shared by the canvas, scripting and playback layers."""
from __future__ import annotations


class AnimationError(Exception):
    """Base class for every error raised by :mod:`icyanim`."""


class OutOfRangeError(AnimationError, IndexError):
    """Raised when a layer, colour or size argument falls outside its bounds."""

    def __init__(self, message: str, *, value: int | None = None, bound: int | None = None) -> None:
        super().__init__(message)
        self.value = value
        self.bound = bound

    @classmethod
    def for_layer(cls, value: int, count: int, *, label: str = "Layer") -> "OutOfRangeError":
        """Build the error reported for a layer index outside ``0..<count``."""

        return cls(f"{label} {value} out of range (0..<{count})", value=value, bound=count)


class InvalidInputError(AnimationError, ValueError):
    """Raised when a script supplies an unusable value, such as an empty string."""


class BufferNotFoundError(AnimationError, FileNotFoundError):
    """Raised when ``load_buffer`` cannot find the requested file."""


class BufferLoadError(AnimationError, ValueError):
    """Raised when a buffer loader cannot decode a file."""


class FrameLimitExceeded(AnimationError, RuntimeError):
    """Raised when a capture would exceed the animator's frame cap."""


class TypeMismatchError(AnimationError, TypeError):
    """Raised when a host routine receives an argument of the wrong kind."""


class ConfigError(AnimationError, ValueError):
    """Raised when an animation configuration file fails validation."""


class ScriptError(AnimationError, RuntimeError):
    """Raised by :func:`icyanim.scripting.run` when a script fails.

    ``animator`` holds the frames captured before the failure and ``error``
    the capability error that aborted the script, when there was one.
    """

    def __init__(
        self,
        message: str,
        *,
        animator: object | None = None,
        error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.animator = animator
        self.error = error


__all__ = [
    "AnimationError",
    "BufferLoadError",
    "BufferNotFoundError",
    "ConfigError",
    "FrameLimitExceeded",
    "InvalidInputError",
    "OutOfRangeError",
    "ScriptError",
    "TypeMismatchError",
]
