"""Playback state machine tests driven by explicit timestamps."""
from __future__ import annotations

from dataclasses import replace

import pytest

from icyanim.animator import Animator
from icyanim.buffer import Canvas, Cell
from icyanim.frames import DEFAULT_SPEED
from icyanim.monitor import MonitorSettings


def _canvas(code: int) -> Canvas:
    canvas = Canvas(1, 1)
    canvas.layers[0].set_char(0, 0, Cell(code))
    return canvas


def _shown(canvas: Canvas) -> int:
    return canvas.layers[0].get_char(0, 0).code


def _animator(durations: list[int], renderer=None) -> Animator:
    animator = Animator(clock=lambda: 0.0, renderer=renderer)
    for offset, duration in enumerate(durations):
        settings = replace(MonitorSettings.neutral(), monitor_type=offset)
        animator.append_frame(_canvas(0x41 + offset), settings, duration)
    return animator


def test_empty_animator_is_inert(recording_renderer) -> None:
    animator = Animator(renderer=recording_renderer)

    assert animator.start_playback(now=0.0) == MonitorSettings.default()
    assert animator.update_frame(now=10.0) == MonitorSettings.default()
    assert animator.display_frame(3) == MonitorSettings.default()
    assert animator.snapshot_frame(0) is None
    assert recording_renderer.buffers == []


def test_playback_advances_one_frame_after_duration(recording_renderer) -> None:
    animator = _animator([100, 250, 50], recording_renderer)

    settings = animator.start_playback(now=0.0)
    assert settings.monitor_type == 0
    assert animator.speed == DEFAULT_SPEED

    animator.update_frame(now=0.1)
    assert animator.cur_frame == 0

    settings = animator.update_frame(now=0.15)
    assert animator.cur_frame == 1
    assert settings.monitor_type == 1
    assert animator.speed == 250

    animator.update_frame(now=0.35)
    assert animator.cur_frame == 1

    animator.update_frame(now=0.45)
    assert animator.cur_frame == 2
    assert animator.speed == 50

    assert [_shown(canvas) for canvas in recording_renderer.buffers] == [0x41, 0x42, 0x43]


def test_non_loop_playback_holds_last_frame_and_stops(recording_renderer) -> None:
    animator = _animator([10, 10], recording_renderer)
    animator.start_playback(now=0.0)

    animator.update_frame(now=0.2)
    animator.update_frame(now=0.4)

    assert animator.cur_frame == 1
    assert not animator.is_playing

    animator.update_frame(now=5.0)
    assert animator.cur_frame == 1
    assert _shown(recording_renderer.buffers[-1]) == 0x42


def test_loop_wraps_and_resets_speed_to_default() -> None:
    animator = _animator([40, 40])
    animator.set_is_loop(True)
    animator.start_playback(now=0.0)

    animator.update_frame(now=0.2)
    assert (animator.cur_frame, animator.speed) == (1, 40)

    animator.update_frame(now=0.3)
    assert animator.cur_frame == 0
    assert animator.speed == DEFAULT_SPEED
    assert animator.is_playing


def test_single_frame_loop_keeps_playing() -> None:
    animator = _animator([250])
    animator.set_is_loop(True)
    animator.start_playback(now=0.0)

    animator.update_frame(now=0.2)

    assert animator.cur_frame == 0
    assert animator.is_playing
    assert animator.update_frame(now=0.3).monitor_type == 0
    assert animator.speed == DEFAULT_SPEED


def test_paused_animator_does_not_advance() -> None:
    animator = _animator([10, 10])
    animator.start_playback(now=0.0)
    animator.set_is_playing(False)

    animator.update_frame(now=1.0)

    assert animator.cur_frame == 0


def test_seek_adopts_stored_duration() -> None:
    animator = _animator([100, 250, 50])
    animator.start_playback(now=0.0)

    animator.set_cur_frame(1)

    assert animator.speed == 250
    animator.update_frame(now=0.2)
    assert animator.cur_frame == 1
    animator.update_frame(now=0.26)
    assert animator.cur_frame == 2


def test_seek_out_of_range_raises() -> None:
    animator = _animator([100])

    with pytest.raises(IndexError):
        animator.set_cur_frame(1)
    with pytest.raises(IndexError):
        animator.set_cur_frame(-1)


def test_set_speed_overrides_active_duration_only() -> None:
    animator = _animator([500, 500])
    animator.start_playback(now=0.0)

    animator.set_speed(10)
    animator.update_frame(now=0.05)

    assert animator.cur_frame == 1
    assert animator.speed == 500
    assert animator.frames[0].duration_ms == 500


def test_renderer_receives_independent_snapshots(recording_renderer) -> None:
    animator = _animator([100])

    animator.attach_renderer(recording_renderer)
    animator.display_frame(0)
    animator.display_frame(0)

    first, second = recording_renderer.buffers
    assert first is not second
    assert first.is_terminal_buffer
    first.layers[0].set_char(0, 0, Cell(0x5A))
    assert _shown(animator.frames[0].canvas) == 0x41
    assert _shown(second) == 0x41


def test_snapshot_frame_returns_copy() -> None:
    animator = _animator([100])

    snapshot = animator.snapshot_frame(0)

    assert snapshot is not None
    assert snapshot is not animator.frames[0].canvas
    assert _shown(snapshot) == 0x41


def test_ticks_before_first_advance_report_frame_zero_settings() -> None:
    animator = _animator([100, 100, 100])

    started = animator.start_playback(now=0.0)

    assert started.monitor_type == 0
    assert animator.update_frame(now=0.05).monitor_type == 0
    assert animator.cur_frame == 0
