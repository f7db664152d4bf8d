"""Command-line runner for animation scripts."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import IO, Callable, Sequence

from .animator import Animator
from .config import load_animation_config
from .errors import ConfigError, ScriptError
from .scripting.host import run
from .text_renderer import TextFrameRenderer


logger = logging.getLogger(__name__)

_CLEAR_SCREEN = "\x1b[H\x1b[2J"
_POLL_INTERVAL = 0.01


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed arguments for the animation runner."""

    parser = argparse.ArgumentParser(prog="icyanim", description=__doc__)
    parser.add_argument("script", type=Path, help="Lua animation script to run")
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help="Directory that relative load_buffer paths resolve against "
        "(defaults to the script's directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML file with animation defaults",
    )
    parser.add_argument(
        "--frame",
        type=int,
        default=None,
        metavar="N",
        help="Print frame N (1-based) as text",
    )
    parser.add_argument(
        "--play",
        action="store_true",
        help="Play the animation in the terminal",
    )
    parser.add_argument(
        "--loop",
        action="store_true",
        help="Loop playback until interrupted",
    )
    parser.add_argument(
        "--speed",
        type=int,
        default=None,
        metavar="MS",
        help="Show every frame for MS milliseconds instead of its stored duration",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def describe_frames(animator: Animator) -> list[str]:
    frames = animator.frames
    lines = [f"{len(frames)} frame(s)"]
    for number, frame in enumerate(frames, start=1):
        lines.append(
            f"frame {number}: {frame.canvas.width}x{frame.canvas.height}, "
            f"{frame.duration_ms} ms"
        )
    return lines


def render_frame(animator: Animator, number: int) -> list[str]:
    """Return the rows of frame ``number`` (1-based)."""

    snapshot = animator.snapshot_frame(number - 1)
    if snapshot is None:
        raise IndexError(f"frame {number} out of range (1..{animator.frame_count})")
    renderer = TextFrameRenderer()
    renderer.set_buffer(snapshot)
    return renderer.rows()


def play(
    animator: Animator,
    *,
    loop: bool = False,
    speed: int | None = None,
    stream: IO[str] = sys.stdout,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Play ``animator`` to ``stream`` and return the number of frames shown."""

    renderer = TextFrameRenderer()
    animator.attach_renderer(renderer)
    animator.set_is_loop(loop)
    animator.start_playback()
    shown = 0
    try:
        while True:
            if speed is not None:
                animator.set_speed(speed)
            if renderer.updates != shown:
                shown = renderer.updates
                stream.write(_CLEAR_SCREEN + renderer.render() + "\n")
                stream.flush()
            if not animator.is_playing:
                break
            sleep(_POLL_INTERVAL)
            animator.update_frame()
    except KeyboardInterrupt:
        animator.set_is_playing(False)
    finally:
        animator.attach_renderer(None)
    return shown


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ``icyanim`` command."""

    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    script_path: Path = args.script
    if not script_path.exists():
        raise SystemExit(f"script not found: {script_path}")
    base_dir = args.base_dir if args.base_dir is not None else script_path.parent

    try:
        config = load_animation_config(args.config)
        animator = run(
            base_dir,
            script_path.read_text(encoding="utf-8"),
            config=config,
            chunk_name=script_path.name,
        )
    except (ConfigError, ScriptError) as exc:
        print(f"icyanim: {exc}", file=sys.stderr)
        return 1

    if args.frame is not None:
        try:
            rows = render_frame(animator, args.frame)
        except IndexError as exc:
            print(f"icyanim: {exc}", file=sys.stderr)
            return 1
        print("\n".join(rows))
        return 0

    if args.play:
        if animator.frame_count == 0:
            logger.warning("%s produced no frames", script_path)
            return 0
        play(animator, loop=args.loop, speed=args.speed)
        return 0

    print("\n".join(describe_frames(animator)))
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via python -m
    raise SystemExit(main())


__all__ = ["describe_frames", "main", "parse_args", "play", "render_frame"]
