"""Buffer loaders used by the ``load_buffer`` script function."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Final, Protocol

from . import petscii
from .buffer import AttributeFlags, Canvas, Cell, Layer, Palette, TextAttribute
from .encodings import Encoding
from .errors import BufferLoadError


logger = logging.getLogger(__name__)

TEXT_MIN_WIDTH: Final[int] = 80
SEQ_WIDTH: Final[int] = 40
SEQ_DEFAULT_FOREGROUND: Final[int] = 14  # light blue
SEQ_DEFAULT_BACKGROUND: Final[int] = 6  # blue


class BufferLoader(Protocol):
    """Collaborator that turns a file into a :class:`~icyanim.buffer.Canvas`."""

    def load(self, path: Path) -> Canvas:
        """Decode ``path``; raise :class:`~icyanim.errors.BufferLoadError` on failure."""


class FileBufferLoader:
    """Load canvases from plain text, CP437 art and PETSCII ``.seq`` files."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Callable[[bytes], Canvas]] = {
            ".txt": _load_unicode_text,
            ".asc": _load_cp437_text,
            ".nfo": _load_cp437_text,
            ".diz": _load_cp437_text,
            ".seq": _load_petscii_stream,
        }

    def load(self, path: Path) -> Canvas:
        handler = self._handlers.get(path.suffix.lower())
        if handler is None:
            raise BufferLoadError(f"unsupported buffer format: {path.suffix or path.name}")
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise BufferLoadError(f"{path}: {exc.strerror or exc}") from exc
        canvas = handler(data)
        logger.debug("loaded %s as %r", path, canvas)
        return canvas


def _text_canvas(lines: list[str], encoding: Encoding) -> Canvas:
    width = max([TEXT_MIN_WIDTH, *(len(line) for line in lines)])
    canvas = Canvas(width, max(len(lines), 1), encoding)
    layer = canvas.layers[0]
    for y, line in enumerate(lines):
        for x, char in enumerate(line):
            layer.set_char(x, y, Cell(canvas.encode_char(char)))
    return canvas


def _split_lines(text: str) -> list[str]:
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.expandtabs(8) for line in lines]


def _load_unicode_text(data: bytes) -> Canvas:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise BufferLoadError(f"invalid UTF-8 at byte {exc.start}") from exc
    return _text_canvas(_split_lines(text), Encoding.UNICODE)


def _load_cp437_text(data: bytes) -> Canvas:
    # SAUCE records and the DOS end-of-file marker are not part of the picture.
    data = data.split(b"\x1a", 1)[0]
    lines = data.replace(b"\r\n", b"\n").replace(b"\r", b"\n").split(b"\n")
    if lines and lines[-1] == b"":
        lines.pop()
    canvas = Canvas(
        max([TEXT_MIN_WIDTH, *(len(line) for line in lines)]),
        max(len(lines), 1),
        Encoding.CP437,
    )
    layer = canvas.layers[0]
    for y, line in enumerate(lines):
        for x, code in enumerate(line):
            layer.set_char(x, y, Cell(code))
    return canvas


@dataclass
class _SeqCursor:
    """Screen-editor cursor for PETSCII streams; rows grow without scrolling."""

    width: int = SEQ_WIDTH
    x: int = 0
    y: int = 0
    foreground: int = SEQ_DEFAULT_FOREGROUND
    lowercase_mode: bool = False
    reverse_mode: bool = False

    def home(self) -> None:
        self.x = 0
        self.y = 0

    def move_left(self) -> None:
        if self.x > 0:
            self.x -= 1
        elif self.y > 0:
            self.y -= 1
            self.x = self.width - 1

    def move_right(self) -> None:
        self.x += 1
        if self.x >= self.width:
            self.x = 0
            self.y += 1

    def move_up(self) -> None:
        if self.y > 0:
            self.y -= 1

    def carriage_return(self) -> None:
        self.x = 0
        self.y += 1
        # Return also ends reverse mode on the C64 screen editor.
        self.reverse_mode = False

    @property
    def attribute(self) -> TextAttribute:
        return TextAttribute(
            foreground=self.foreground,
            background=SEQ_DEFAULT_BACKGROUND,
            font_page=petscii.SHIFTED_FONT_PAGE if self.lowercase_mode else 0,
            flags=AttributeFlags.REVERSE if self.reverse_mode else AttributeFlags.NONE,
        )


class _SeqDecoder:
    def __init__(self) -> None:
        self.cursor = _SeqCursor()
        self.layer = Layer("Background", SEQ_WIDTH, 1)

    def feed(self, data: bytes) -> None:
        for byte in data:
            if self._handle_control(byte):
                continue
            colour = petscii.COLOR_CODES.get(byte)
            if colour is not None:
                self.cursor.foreground = colour
                continue
            code = petscii.petscii_to_screen_code(byte)
            if code is None:
                continue
            self._put(code)
            self.cursor.move_right()

    def _handle_control(self, byte: int) -> bool:
        cursor = self.cursor
        if byte == 0x93:  # clear
            self.layer.cells.clear()
            cursor.home()
        elif byte == 0x13:  # home
            cursor.home()
        elif byte in (0x0D, 0x8D):  # return / shift-return
            cursor.carriage_return()
        elif byte == 0x11:  # cursor down
            cursor.y += 1
        elif byte == 0x91:  # cursor up
            cursor.move_up()
        elif byte == 0x1D:  # cursor right
            cursor.move_right()
        elif byte == 0x9D:  # cursor left
            cursor.move_left()
        elif byte == 0x14:  # delete
            cursor.move_left()
            self.layer.set_char(cursor.x, cursor.y, Cell(0x20, cursor.attribute))
        elif byte == 0x12:  # reverse on
            cursor.reverse_mode = True
        elif byte == 0x92:  # reverse off
            cursor.reverse_mode = False
        elif byte == 0x0E:  # lowercase/uppercase set
            cursor.lowercase_mode = True
        elif byte == 0x8E:  # uppercase/graphics set
            cursor.lowercase_mode = False
        else:
            return False
        return True

    def _put(self, code: int) -> None:
        cursor = self.cursor
        if cursor.reverse_mode:
            code |= 0x80
        self.layer.set_char(cursor.x, cursor.y, Cell(code, cursor.attribute))

    def canvas(self) -> Canvas:
        height = max(self.layer.extent[1], 1)
        self.layer.resize(SEQ_WIDTH, height)
        return Canvas(
            SEQ_WIDTH,
            height,
            Encoding.PETSCII,
            palette=Palette(petscii.C64_PALETTE),
            layers=[self.layer],
        )


def _load_petscii_stream(data: bytes) -> Canvas:
    decoder = _SeqDecoder()
    decoder.feed(data)
    return decoder.canvas()


__all__ = ["BufferLoader", "FileBufferLoader", "SEQ_WIDTH", "TEXT_MIN_WIDTH"]
