"""Immutable animation frames and the capture step that produces them."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Mapping

from .buffer import Canvas
from .errors import TypeMismatchError
from .monitor import MonitorSettings, describe_type

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .animator import Animator


logger = logging.getLogger(__name__)

MAX_FRAMES: Final[int] = 4096
DEFAULT_SPEED: Final[int] = 100  # ms, like animated GIFs
FRAME_SPEED_GLOBAL: Final[str] = "frame_speed"


@dataclass(frozen=True)
class Frame:
    """Snapshot of a canvas together with its display metadata."""

    canvas: Canvas
    monitor_settings: MonitorSettings
    duration_ms: int

    @classmethod
    def capture(
        cls, canvas: Canvas, monitor_settings: MonitorSettings, duration_ms: int
    ) -> "Frame":
        """Copy ``canvas`` so later mutations do not reach the frame."""

        return cls(canvas.snapshot(), monitor_settings, int(duration_ms))


def read_frame_speed(values: Mapping[str, Any], default: int = DEFAULT_SPEED) -> int:
    """Return the frame duration requested through the ``frame_speed`` global."""

    raw = values.get(FRAME_SPEED_GLOBAL)
    if raw is None:
        return default
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise TypeMismatchError(
            f"{FRAME_SPEED_GLOBAL} must be a number, got: {describe_type(raw)}"
        )
    if raw < 0 or not float(raw).is_integer():
        raise TypeMismatchError(
            f"{FRAME_SPEED_GLOBAL} must be a non-negative integer, got: {raw}"
        )
    return int(raw)


def capture_frame(
    animator: "Animator", canvas: Canvas, ambient: Mapping[str, Any]
) -> Frame:
    """Append a snapshot of ``canvas`` to ``animator``.

    Monitor settings and the frame duration are read from the ``ambient``
    script globals.  Raises :class:`~icyanim.errors.FrameLimitExceeded` once the
    animator holds its maximum number of frames.
    """

    settings = animator.monitor_settings.merged_with_globals(ambient)
    duration = read_frame_speed(ambient, animator.default_speed)
    frame = animator.append_frame(canvas, settings, duration)
    logger.debug(
        "captured frame %d (%dx%d, %d ms)",
        animator.frame_count,
        canvas.width,
        canvas.height,
        duration,
    )
    return frame


__all__ = [
    "DEFAULT_SPEED",
    "FRAME_SPEED_GLOBAL",
    "Frame",
    "MAX_FRAMES",
    "capture_frame",
    "read_frame_speed",
]
