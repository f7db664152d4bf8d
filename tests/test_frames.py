"""Tests for frame capture from ambient script globals."""
from __future__ import annotations

import pytest

from icyanim.animator import Animator
from icyanim.buffer import Canvas, Cell
from icyanim.errors import FrameLimitExceeded, TypeMismatchError
from icyanim.frames import DEFAULT_SPEED, MAX_FRAMES, capture_frame, read_frame_speed
from icyanim.monitor import MonitorSettings


def _ambient(**overrides: object) -> dict[str, object]:
    values: dict[str, object] = dict(MonitorSettings.neutral().as_globals())
    values["frame_speed"] = DEFAULT_SPEED
    values.update(overrides)
    return values


def test_capture_snapshots_canvas_and_reads_globals() -> None:
    animator = Animator()
    canvas = Canvas(2, 1)
    canvas.layers[0].set_char(0, 0, Cell(0x41))

    frame = capture_frame(animator, canvas, _ambient(monitor_gamma=70, frame_speed=250))
    canvas.layers[0].set_char(0, 0, Cell(0x42))

    assert animator.frame_count == 1
    assert frame.duration_ms == 250
    assert frame.monitor_settings.gamma == 70.0
    assert frame.canvas.layers[0].get_char(0, 0) == Cell(0x41)


def test_missing_frame_speed_uses_the_default() -> None:
    animator = Animator(default_speed=80)

    frame = capture_frame(animator, Canvas(1, 1), _ambient(frame_speed=None))

    assert frame.duration_ms == 80


def test_wrong_global_type_aborts_capture() -> None:
    animator = Animator()

    with pytest.raises(TypeMismatchError, match="monitor_gamma must be a number, got: string"):
        capture_frame(animator, Canvas(1, 1), _ambient(monitor_gamma="bright"))

    assert animator.frame_count == 0


@pytest.mark.parametrize("value", [-1, 12.5, "fast", True])
def test_read_frame_speed_rejects_invalid_values(value: object) -> None:
    with pytest.raises(TypeMismatchError):
        read_frame_speed({"frame_speed": value})


def test_read_frame_speed_accepts_integral_numbers() -> None:
    assert read_frame_speed({"frame_speed": 40.0}) == 40
    assert read_frame_speed({}) == DEFAULT_SPEED


def test_frame_cap_is_enforced() -> None:
    animator = Animator()
    canvas = Canvas(1, 1)
    ambient = _ambient()

    for _ in range(MAX_FRAMES):
        capture_frame(animator, canvas, ambient)

    with pytest.raises(FrameLimitExceeded, match=r"Maximum number of frames reached \(4096\)"):
        capture_frame(animator, canvas, ambient)
    assert animator.frame_count == MAX_FRAMES


def test_configured_cap_can_be_lower() -> None:
    animator = Animator(max_frames=2)
    ambient = _ambient()

    capture_frame(animator, Canvas(1, 1), ambient)
    capture_frame(animator, Canvas(1, 1), ambient)

    with pytest.raises(FrameLimitExceeded):
        capture_frame(animator, Canvas(1, 1), ambient)


@pytest.mark.parametrize("limit", [0, MAX_FRAMES + 1])
def test_cap_cannot_exceed_hard_limit(limit: int) -> None:
    with pytest.raises(ValueError):
        Animator(max_frames=limit)
