"""End-to-end tests for scripts running in the sandboxed Lua host."""
from __future__ import annotations

import time
from pathlib import Path

import pytest

pytest.importorskip("lupa")

from icyanim.buffer import DOS_PALETTE, Canvas  # noqa: E402
from icyanim.config import AnimatorConfig  # noqa: E402
from icyanim.encodings import Encoding  # noqa: E402
from icyanim.errors import (  # noqa: E402
    BufferLoadError,
    BufferNotFoundError,
    FrameLimitExceeded,
    InvalidInputError,
    OutOfRangeError,
    ScriptError,
    TypeMismatchError,
)
from icyanim.scripting.host import ScriptHost, run  # noqa: E402


def _cell_text(canvas: Canvas, x: int, y: int) -> str:
    return canvas.decode_cell(canvas.layers[0].get_char(x, y))


def test_script_captures_a_frame(tmp_path: Path) -> None:
    source = (
        "local buf = new_buffer(4, 2)\n"
        "buf:fg_rgb(#FF0000)\n"
        'buf:set_char(0, 0, "A")\n'
        "next_frame(buf)\n"
    )

    animator = run(tmp_path, source)

    assert animator.frame_count == 1
    frame = animator.frames[0]
    assert frame.duration_ms == 100
    assert frame.canvas.size == (4, 2)
    assert _cell_text(frame.canvas, 0, 0) == "A"
    assert frame.canvas.layers[0].get_char(0, 0).attribute.foreground == len(DOS_PALETTE)
    assert frame.canvas.palette[len(DOS_PALETTE)].as_tuple() == (255, 0, 0)


def test_cur_frame_tracks_captures(tmp_path: Path) -> None:
    host = ScriptHost(tmp_path)
    source = (
        "assert(cur_frame == 1)\n"
        "local buf = new_buffer(1, 1)\n"
        "next_frame(buf)\n"
        "assert(cur_frame == 2)\n"
        "next_frame(buf)\n"
    )

    host.execute(source)

    assert host.globals["cur_frame"] == 3
    assert host.animator.frame_count == 2


def test_ambient_globals_are_read_on_capture(tmp_path: Path) -> None:
    source = (
        "local buf = new_buffer(1, 1)\n"
        "frame_speed = 250\n"
        "monitor_gamma = 70\n"
        "monitor_type = 2\n"
        "next_frame(buf)\n"
        "frame_speed = nil\n"
        "next_frame(buf)\n"
    )

    animator = run(tmp_path, source)

    first, second = animator.frames
    assert first.duration_ms == 250
    assert first.monitor_settings.gamma == 70.0
    assert first.monitor_settings.monitor_type == 2
    assert second.duration_ms == 100
    assert second.monitor_settings.gamma == 70.0


def test_ambient_globals_are_seeded_from_config(tmp_path: Path) -> None:
    config = AnimatorConfig(default_speed=40)
    host = ScriptHost(tmp_path, config=config)

    assert host.globals["frame_speed"] == 40
    assert host.globals["monitor_blur"] == 0.0
    assert host.globals["monitor_gamma"] == 50.0


def test_capability_errors_report_script_line(tmp_path: Path) -> None:
    source = (
        "local buf = new_buffer(2, 2)\n"
        "next_frame(buf)\n"
        "buf.layer = 3\n"
        "next_frame(buf)\n"
    )

    with pytest.raises(ScriptError, match=r"^script:3: Layer 3 out of range \(0\.\.<1\)") as excinfo:
        run(tmp_path, source)

    assert isinstance(excinfo.value.error, OutOfRangeError)
    assert excinfo.value.__cause__ is excinfo.value.error
    assert excinfo.value.animator.frame_count == 1


def test_method_errors_report_script_line(tmp_path: Path) -> None:
    source = 'local buf = new_buffer(2, 2)\nbuf:set_char(0, 0, "")\n'

    with pytest.raises(ScriptError, match=r"^script:2: Empty string") as excinfo:
        run(tmp_path, source)

    assert isinstance(excinfo.value.error, InvalidInputError)


def test_next_frame_requires_a_canvas(tmp_path: Path) -> None:
    with pytest.raises(ScriptError, match="Canvas argument required, got: number") as excinfo:
        run(tmp_path, "next_frame(5)\n")

    assert isinstance(excinfo.value.error, TypeMismatchError)
    assert excinfo.value.animator.frame_count == 0


def test_argument_kinds_are_checked(tmp_path: Path) -> None:
    source = 'local buf = new_buffer(2, 2)\nbuf:set_char("x", 0, "A")\n'

    with pytest.raises(ScriptError, match="set_char: argument #1 must be an integer, got: string"):
        run(tmp_path, source)


def test_syntax_errors_become_script_errors(tmp_path: Path) -> None:
    with pytest.raises(ScriptError, match=r"^anim\.lua:1:") as excinfo:
        run(tmp_path, "local = 5\n", chunk_name="anim.lua")

    assert excinfo.value.error is None


def test_fields_and_multiple_results(tmp_path: Path) -> None:
    source = (
        "local buf = new_buffer(4, 3)\n"
        "assert(buf.width == 4 and buf.height == 3 and buf.layer_count == 1)\n"
        "buf.x = 2\n"
        "buf.y = 1\n"
        'buf:print("ok")\n'
        "assert(buf.x == 4)\n"
        "buf:set_layer_position(0, 5, 6)\n"
        "local x, y = buf:get_layer_position(0)\n"
        "assert(x == 5 and y == 6)\n"
        "assert(buf:get_layer_visible(0) == true)\n"
        'assert(tostring(buf) == "Canvas")\n'
        "next_frame(buf)\n"
    )

    animator = run(tmp_path, source)

    canvas = animator.frames[0].canvas
    assert _cell_text(canvas, 2, 1) + _cell_text(canvas, 3, 1) == "ok"
    assert canvas.layers[0].offset == (5, 6)


def test_unknown_fields_fail(tmp_path: Path) -> None:
    source = "local buf = new_buffer(1, 1)\nlocal v = buf.nope\n"

    with pytest.raises(ScriptError, match=r"script:2: Canvas has no field 'nope'"):
        run(tmp_path, source)


def test_errors_caught_by_the_script_do_not_abort(tmp_path: Path) -> None:
    source = (
        "local buf = new_buffer(1, 1)\n"
        "local ok, err = pcall(function() buf.layer = 5 end)\n"
        "assert(not ok)\n"
        'assert(string.find(err, "Layer 5", 1, true))\n'
        "next_frame(buf)\n"
    )

    animator = run(tmp_path, source)

    assert animator.frame_count == 1


def test_sandbox_hides_host_access(tmp_path: Path) -> None:
    source = (
        "assert(io == nil and require == nil and package == nil)\n"
        "assert(load == nil and loadfile == nil and dofile == nil)\n"
        "assert(debug == nil and python == nil)\n"
        "assert(os.execute == nil and os.remove == nil and os.time ~= nil)\n"
        'assert(getmetatable(new_buffer(1, 1)) == "Canvas")\n'
    )

    animator = run(tmp_path, source)

    assert animator.frame_count == 0


def test_frame_limit_aborts_script(tmp_path: Path) -> None:
    source = "local buf = new_buffer(1, 1)\nfor i = 1, 3 do\n  next_frame(buf)\nend\n"

    with pytest.raises(ScriptError, match="Maximum number of frames reached") as excinfo:
        run(tmp_path, source, config=AnimatorConfig(max_frames=2))

    assert isinstance(excinfo.value.error, FrameLimitExceeded)
    assert excinfo.value.animator.frame_count == 2


def test_new_buffer_uses_configured_encoding(tmp_path: Path) -> None:
    source = "local buf = new_buffer(2, 1)\nbuf.font_page = 1\nbuf:set_char(0, 0, 'a')\nnext_frame(buf)\n"

    animator = run(tmp_path, source, config=AnimatorConfig(default_encoding=Encoding.PETSCII))

    canvas = animator.frames[0].canvas
    assert canvas.encoding is Encoding.PETSCII
    assert canvas.layers[0].get_char(0, 0).code == 0x01


def test_load_buffer_resolves_relative_paths(tmp_path: Path) -> None:
    (tmp_path / "art").mkdir()
    (tmp_path / "art" / "logo.txt").write_text("HI\n", encoding="utf-8")
    source = (
        'local buf = load_buffer("art/logo.txt")\n'
        'assert(buf:get_char(1, 0) == "I")\n'
        "next_frame(buf)\n"
    )

    animator = run(tmp_path, source)

    canvas = animator.frames[0].canvas
    assert canvas.encoding is Encoding.UNICODE
    assert canvas.width == 80


def test_load_buffer_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ScriptError, match="File not found missing.txt") as excinfo:
        run(tmp_path, 'load_buffer("missing.txt")\n')

    assert isinstance(excinfo.value.error, BufferNotFoundError)


def test_load_buffer_unreadable_file(tmp_path: Path) -> None:
    (tmp_path / "picture.bin").write_bytes(b"\x00")

    with pytest.raises(ScriptError, match="Could not load file picture.bin") as excinfo:
        run(tmp_path, 'load_buffer("picture.bin")\n')

    assert isinstance(excinfo.value.error, BufferLoadError)
    assert isinstance(excinfo.value.error.__cause__, BufferLoadError)


def test_custom_loader_receives_resolved_path(tmp_path: Path) -> None:
    (tmp_path / "scene.seq").write_bytes(b"")
    seen: list[Path] = []

    class FakeLoader:
        def load(self, path: Path) -> Canvas:
            seen.append(path)
            return Canvas(3, 3, Encoding.VIEWDATA)

    source = 'local buf = load_buffer("scene.seq")\nassert(buf.width == 3)\nnext_frame(buf)\n'

    animator = run(tmp_path, source, loader=FakeLoader())

    assert seen == [tmp_path / "scene.seq"]
    assert animator.frames[0].canvas.encoding is Encoding.VIEWDATA


def test_run_without_base_dir_uses_working_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / "logo.txt").write_text("OK\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    source = (
        "local blank = new_buffer(1, 1)\n"
        "next_frame(blank)\n"
        'local buf = load_buffer("logo.txt")\n'
        'assert(buf:get_char(0, 0) == "O")\n'
        "next_frame(buf)\n"
    )

    animator = run(None, source)

    assert animator.frame_count == 2
    assert animator.frames[1].canvas.encoding is Encoding.UNICODE


def test_far_coordinates_capture_quickly(tmp_path: Path) -> None:
    source = (
        "local buf = new_buffer(2, 2)\n"
        'buf:set_char(0, 2^40, "A")\n'
        'buf:set_char(2^40, 0, "B")\n'
        "next_frame(buf)\n"
        "next_frame(buf)\n"
        'assert(buf:get_char(0, 2^40) == "A")\n'
    )

    started = time.monotonic()
    animator = run(tmp_path, source)

    assert time.monotonic() - started < 5.0
    assert animator.frame_count == 2
    assert len(animator.frames[1].canvas.layers[0].cells) == 2
