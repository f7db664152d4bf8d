"""Translation between Unicode and the legacy encodings a canvas can use.

Every canvas is bound to one :class:`Encoding` when it is created.  Cells store
codes in that native encoding; :func:`to_universal` and :func:`from_universal`
convert at the scripting boundary.  Both functions are total: each native code
decodes to some character, and characters the encoding cannot represent encode
to ``?``.
"""
from __future__ import annotations

from enum import Enum
from typing import Final

from . import petscii


class Encoding(Enum):
    """Character sets a canvas can be bound to."""

    UNICODE = "unicode"
    CP437 = "cp437"
    PETSCII = "petscii"
    ATASCII = "atascii"
    VIEWDATA = "viewdata"

    @classmethod
    def parse(cls, name: str) -> "Encoding":
        """Return the encoding called ``name`` (case-insensitive)."""

        try:
            return cls(str(name).strip().lower())
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"unknown encoding {name!r} (expected one of: {choices})") from exc


FALLBACK_CODE: Final[int] = 0x3F

_CP437_CONTROL_GLYPHS: Final[str] = (
    " ☺☻♥♦♣♠•◘○◙♂♀♪♫☼"
    "►◄↕‼¶§▬↨↑↓→←∟↔▲▼"
)


def _build_cp437_table() -> tuple[str, ...]:
    table = list(_CP437_CONTROL_GLYPHS)
    table.extend(chr(code) for code in range(0x20, 0x7F))
    table.append("⌂")
    table.extend(bytes(range(0x80, 0x100)).decode("cp437"))
    return tuple(table)


_ATASCII_GRAPHICS: Final[dict[int, str]] = {
    0x00: "♥",
    0x01: "├",
    0x02: "\U0001FB87",
    0x03: "┘",
    0x04: "┤",
    0x05: "┐",
    0x06: "╱",
    0x07: "╲",
    0x08: "◢",
    0x09: "▗",
    0x0A: "◣",
    0x0B: "▝",
    0x0C: "▘",
    0x0D: "\U0001FB82",
    0x0E: "▂",
    0x0F: "▖",
    0x10: "♣",
    0x11: "┌",
    0x12: "─",
    0x13: "┼",
    0x14: "●",
    0x15: "▄",
    0x16: "▎",
    0x17: "┬",
    0x18: "┴",
    0x19: "▌",
    0x1A: "└",
    0x1B: "␛",
    0x1C: "↑",
    0x1D: "↓",
    0x1E: "←",
    0x1F: "→",
    0x60: "♦",
    0x7B: "♠",
    0x7D: "↰",
    0x7E: "◀",
    0x7F: "▶",
}


def _build_atascii_table() -> tuple[str, ...]:
    return tuple(_ATASCII_GRAPHICS.get(code, chr(code)) for code in range(0x80))


_VIEWDATA_REPLACEMENTS: Final[dict[int, str]] = {
    0x23: "£",
    0x5B: "←",
    0x5C: "½",
    0x5D: "→",
    0x5E: "↑",
    0x5F: "#",
    0x60: "―",
    0x7B: "¼",
    0x7C: "‖",
    0x7D: "¾",
    0x7E: "÷",
    0x7F: "■",
}


def _sextant_glyph(pattern: int) -> str:
    """Return the Unicode character for a 2x3 teletext mosaic ``pattern``."""

    if pattern == 0:
        return " "
    if pattern == 0b111111:
        return "█"
    if pattern == 0b010101:
        return "▌"
    if pattern == 0b101010:
        return "▐"
    offset = pattern - 1
    if pattern > 0b010101:
        offset -= 1
    if pattern > 0b101010:
        offset -= 1
    return chr(0x1FB00 + offset)


def _mosaic_pattern(code: int) -> int:
    # Bits 0-4 hold the first five cells, bit 6 the bottom-right one.
    return (code & 0x1F) | ((code & 0x40) >> 1)


def _build_viewdata_table() -> tuple[str, ...]:
    table = [" "] * 0x100
    for code in range(0x20, 0x80):
        table[code] = _VIEWDATA_REPLACEMENTS.get(code, chr(code))
    for code in range(0x80, 0x100):
        if 0xA0 <= code <= 0xBF or 0xE0 <= code <= 0xFF:
            table[code] = _sextant_glyph(_mosaic_pattern(code))
        else:
            table[code] = table[code & 0x7F]
    return tuple(table)


def _build_reverse_table(glyphs: tuple[str, ...]) -> dict[str, int]:
    table: dict[str, int] = {}
    for code in range(0x20, min(len(glyphs), 0x7F)):
        table.setdefault(glyphs[code], code)
    for code, glyph in enumerate(glyphs):
        table.setdefault(glyph, code)
    return table


_CP437_GLYPHS: Final[tuple[str, ...]] = _build_cp437_table()
_ATASCII_GLYPHS: Final[tuple[str, ...]] = _build_atascii_table()
_VIEWDATA_GLYPHS: Final[tuple[str, ...]] = _build_viewdata_table()

_CP437_CODES: Final[dict[str, int]] = _build_reverse_table(_CP437_GLYPHS)
_ATASCII_CODES: Final[dict[str, int]] = _build_reverse_table(_ATASCII_GLYPHS)
_VIEWDATA_CODES: Final[dict[str, int]] = _build_reverse_table(_VIEWDATA_GLYPHS)


def to_universal(code: int, encoding: Encoding, font_page: int = 0) -> str:
    """Decode the native ``code`` of ``encoding`` into a single character."""

    raw = int(code)
    if encoding is Encoding.UNICODE:
        if 0 <= raw <= 0x10FFFF and not 0xD800 <= raw <= 0xDFFF:
            return chr(raw)
        return "�"
    raw &= 0xFF
    if encoding is Encoding.CP437:
        return _CP437_GLYPHS[raw]
    if encoding is Encoding.PETSCII:
        glyph, _reverse = petscii.translate_screen_code(raw, font_page)
        return glyph
    if encoding is Encoding.ATASCII:
        return _ATASCII_GLYPHS[raw & 0x7F]
    if encoding is Encoding.VIEWDATA:
        return _VIEWDATA_GLYPHS[raw]
    raise ValueError(f"unsupported encoding: {encoding!r}")


def from_universal(char: str, encoding: Encoding, font_page: int = 0) -> int:
    """Encode the first character of ``char`` into ``encoding``.

    Characters the encoding cannot represent map to ``?``.
    """

    if not char:
        raise ValueError("from_universal requires a character")
    scalar = char[0]
    if encoding is Encoding.UNICODE:
        return ord(scalar)
    if encoding is Encoding.CP437:
        return _CP437_CODES.get(scalar, FALLBACK_CODE)
    if encoding is Encoding.PETSCII:
        code = petscii.screen_code_for(scalar, font_page)
        return FALLBACK_CODE if code is None else code
    if encoding is Encoding.ATASCII:
        return _ATASCII_CODES.get(scalar, FALLBACK_CODE)
    if encoding is Encoding.VIEWDATA:
        return _VIEWDATA_CODES.get(scalar, FALLBACK_CODE)
    raise ValueError(f"unsupported encoding: {encoding!r}")


__all__ = ["Encoding", "FALLBACK_CODE", "from_universal", "to_universal"]
