"""Playback engine that replays captured frames in real time.

The :class:`Animator` is shared between a render loop and UI controls, so
every public method holds the instance lock for its whole duration.  Public
methods never call each other while holding it; the ``_locked`` helpers carry
the shared logic instead.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Protocol

from .buffer import Canvas
from .errors import FrameLimitExceeded
from .frames import DEFAULT_SPEED, MAX_FRAMES, Frame
from .monitor import MonitorSettings


logger = logging.getLogger(__name__)


class FrameRenderer(Protocol):
    """Collaborator that draws the frames chosen by the animator."""

    def set_buffer(self, canvas: Canvas) -> None:
        """Receive a fresh snapshot to display; it is owned by the renderer."""


class Animator:
    """Ordered frame sequence plus the play/pause/loop/seek state machine."""

    def __init__(
        self,
        *,
        max_frames: int = MAX_FRAMES,
        default_speed: int = DEFAULT_SPEED,
        monitor_settings: MonitorSettings | None = None,
        renderer: FrameRenderer | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not 0 < max_frames <= MAX_FRAMES:
            raise ValueError(f"max_frames must be within 1..{MAX_FRAMES}")
        self._lock = threading.Lock()
        self._frames: list[Frame] = []
        self._max_frames = max_frames
        self._default_speed = int(default_speed)
        self._monitor_settings = monitor_settings or MonitorSettings.neutral()
        self._renderer = renderer
        self._clock = clock

        self._cur_frame = 0
        self._is_loop = False
        self._is_playing = False
        self._speed = self._default_speed
        self._instant = clock()

    # -- frame sequence ------------------------------------------------

    @property
    def frames(self) -> tuple[Frame, ...]:
        with self._lock:
            return tuple(self._frames)

    @property
    def frame_count(self) -> int:
        with self._lock:
            return len(self._frames)

    @property
    def max_frames(self) -> int:
        return self._max_frames

    @property
    def default_speed(self) -> int:
        return self._default_speed

    @property
    def monitor_settings(self) -> MonitorSettings:
        """Return the settings of the last captured or displayed frame."""

        with self._lock:
            return self._monitor_settings

    def append_frame(
        self, canvas: Canvas, monitor_settings: MonitorSettings, duration_ms: int
    ) -> Frame:
        """Snapshot ``canvas`` and append it, enforcing the frame cap."""

        with self._lock:
            if len(self._frames) >= self._max_frames:
                raise FrameLimitExceeded(
                    f"Maximum number of frames reached ({self._max_frames})"
                )
            frame = Frame.capture(canvas, monitor_settings, duration_ms)
            self._frames.append(frame)
            self._monitor_settings = monitor_settings
            return frame

    # -- play controls -------------------------------------------------

    @property
    def cur_frame(self) -> int:
        with self._lock:
            return self._cur_frame

    def set_cur_frame(self, index: int) -> None:
        """Seek to ``index`` and adopt that frame's stored duration."""

        with self._lock:
            if not 0 <= index < len(self._frames):
                raise IndexError(
                    f"frame {index} out of range (0..<{len(self._frames)})"
                )
            self._cur_frame = index
            self._speed = self._frames[index].duration_ms

    @property
    def is_loop(self) -> bool:
        with self._lock:
            return self._is_loop

    def set_is_loop(self, is_loop: bool) -> None:
        with self._lock:
            self._is_loop = bool(is_loop)

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return self._is_playing

    def set_is_playing(self, is_playing: bool) -> None:
        with self._lock:
            self._is_playing = bool(is_playing)

    @property
    def speed(self) -> int:
        """Return the active frame duration in milliseconds."""

        with self._lock:
            return self._speed

    def set_speed(self, speed: int) -> None:
        """Override the active duration without touching stored durations."""

        with self._lock:
            self._speed = int(speed)

    def attach_renderer(self, renderer: FrameRenderer | None) -> None:
        with self._lock:
            self._renderer = renderer

    # -- playback ------------------------------------------------------

    def start_playback(self, now: float | None = None) -> MonitorSettings:
        """Start playing from frame 0 and display it."""

        with self._lock:
            self._is_playing = True
            self._instant = self._now(now)
            self._cur_frame = 0
            logger.debug("playback started with %d frames", len(self._frames))
            self._monitor_settings = self._display_frame_locked(self._cur_frame)
            return self._monitor_settings

    def update_frame(self, now: float | None = None) -> MonitorSettings:
        """Advance by one frame when the active duration has elapsed.

        Returns the monitor settings of the frame on display.
        """

        with self._lock:
            if not self._frames:
                return MonitorSettings.default()
            timestamp = self._now(now)
            elapsed_ms = int((timestamp - self._instant) * 1000)
            if self._is_playing and elapsed_ms > self._speed:
                self._advance_locked()
                self._instant = timestamp
                self._monitor_settings = self._display_frame_locked(self._cur_frame)
            return self._monitor_settings

    def display_frame(self, index: int | None = None) -> MonitorSettings:
        """Send frame ``index`` (default: the current one) to the renderer."""

        with self._lock:
            return self._display_frame_locked(self._cur_frame if index is None else index)

    def snapshot_frame(self, index: int) -> Canvas | None:
        """Return a renderer-ready copy of frame ``index`` or ``None``."""

        with self._lock:
            frame = self._frame_at(index)
            if frame is None:
                return None
            return frame.canvas.snapshot(terminal=True)

    # -- helpers -------------------------------------------------------

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now

    def _frame_at(self, index: int) -> Frame | None:
        if 0 <= index < len(self._frames):
            return self._frames[index]
        return None

    def _display_frame_locked(self, index: int) -> MonitorSettings:
        frame = self._frame_at(index)
        if frame is None:
            return MonitorSettings.default()
        if self._renderer is not None:
            self._renderer.set_buffer(frame.canvas.snapshot(terminal=True))
        return frame.monitor_settings

    def _advance_locked(self) -> None:
        """Step to the next frame and load its duration as the active speed.

        Wrapping a loop back to frame 0 resets the speed to the default
        duration instead of frame 0's stored one, so a single-frame loop
        replays at the default after its first pass.
        """

        self._cur_frame += 1
        if self._cur_frame >= len(self._frames):
            if self._is_loop:
                self._speed = self._default_speed
                self._cur_frame = 0
            else:
                self._cur_frame = max(len(self._frames) - 1, 0)
                self._is_playing = False
                logger.debug("playback finished on frame %d", self._cur_frame)
            return
        self._speed = self._frames[self._cur_frame].duration_ms

    def __repr__(self) -> str:
        return (
            f"Animator(frames={len(self._frames)}, cur_frame={self._cur_frame}, "
            f"playing={self._is_playing}, loop={self._is_loop})"
        )


__all__ = ["Animator", "FrameRenderer"]
