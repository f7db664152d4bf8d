"""PETSCII translation helpers shared by the encoding adapter and the loaders."""
from __future__ import annotations

from typing import Final


SHIFTED_FONT_PAGE: Final[int] = 1

# Screen codes $40-$7F of the uppercase/graphics character ROM.
_GRAPHICS_GLYPHS: Final[str] = (
    "─♠\U0001FB72\U0001FB78\U0001FB77\U0001FB76\U0001FB7A\U0001FB71"
    "\U0001FB74╮╰╯\U0001FB7C╲╱\U0001FB7D"
    "\U0001FB7E●\U0001FB7B♥\U0001FB70╭╳○"
    "♣\U0001FB75♦┼\U0001FB8C│π◥"
    " ▌▄▔▁▏▒▕"
    "\U0001FB8F◤\U0001FB87├▗└┐▂"
    "┌┴┬┤▎▍\U0001FB88\U0001FB82"
    "\U0001FB83▃\U0001FB7F▖▝┘▘▚"
)

# PETSCII colour control bytes and the VIC-II colour index they select.
COLOR_CODES: Final[dict[int, int]] = {
    0x90: 0,  # black
    0x05: 1,  # white
    0x1C: 2,  # red
    0x9F: 3,  # cyan
    0x9C: 4,  # purple
    0x1E: 5,  # green
    0x1F: 6,  # blue
    0x9E: 7,  # yellow
    0x81: 8,  # orange
    0x95: 9,  # brown
    0x96: 10,  # light red
    0x97: 11,  # dark grey
    0x98: 12,  # medium grey
    0x99: 13,  # light green
    0x9A: 14,  # light blue
    0x9B: 15,  # light grey
}

C64_PALETTE: Final[tuple[tuple[int, int, int], ...]] = (
    (0x00, 0x00, 0x00),
    (0xFF, 0xFF, 0xFF),
    (0x88, 0x39, 0x32),
    (0x67, 0xB6, 0xBD),
    (0x8B, 0x3F, 0x96),
    (0x55, 0xA0, 0x49),
    (0x40, 0x31, 0x8D),
    (0xBF, 0xCE, 0x72),
    (0x8B, 0x54, 0x29),
    (0x57, 0x42, 0x00),
    (0xB8, 0x69, 0x62),
    (0x50, 0x50, 0x50),
    (0x78, 0x78, 0x78),
    (0x94, 0xE0, 0x89),
    (0x78, 0x69, 0xC4),
    (0x9F, 0x9F, 0x9F),
)


def _build_base_glyphs(*, shifted: bool) -> tuple[str, ...]:
    table = [" "] * 0x80
    table[0x00] = "@"
    for offset in range(26):
        letter = chr(ord("a" if shifted else "A") + offset)
        table[0x01 + offset] = letter
    table[0x1B] = "["
    table[0x1C] = "£"
    table[0x1D] = "]"
    table[0x1E] = "↑"
    table[0x1F] = "←"
    for code in range(0x20, 0x40):
        table[code] = chr(code)
    for code in range(0x40, 0x80):
        table[code] = _GRAPHICS_GLYPHS[code - 0x40]
    if shifted:
        for offset in range(26):
            table[0x41 + offset] = chr(ord("A") + offset)
        table[0x5E] = "\U0001FB96"
        table[0x5F] = "\U0001FB98"
        table[0x69] = "\U0001FB99"
        table[0x7A] = "✓"
    return tuple(table)


_UNSHIFTED_GLYPHS: Final[tuple[str, ...]] = _build_base_glyphs(shifted=False)
_SHIFTED_GLYPHS: Final[tuple[str, ...]] = _build_base_glyphs(shifted=True)


def _build_reverse_table(glyphs: tuple[str, ...]) -> dict[str, int]:
    table: dict[str, int] = {}
    for code, glyph in enumerate(glyphs):
        table.setdefault(glyph, code)
    return table


_UNSHIFTED_CODES: Final[dict[str, int]] = _build_reverse_table(_UNSHIFTED_GLYPHS)
_SHIFTED_CODES: Final[dict[str, int]] = _build_reverse_table(_SHIFTED_GLYPHS)


def _is_shifted(font_page: int) -> bool:
    return int(font_page) == SHIFTED_FONT_PAGE


def translate_screen_code(code: int, font_page: int = 0) -> tuple[str, bool]:
    """Return the glyph and reverse flag for the screen ``code``."""

    raw = int(code) & 0xFF
    glyphs = _SHIFTED_GLYPHS if _is_shifted(font_page) else _UNSHIFTED_GLYPHS
    return glyphs[raw & 0x7F], bool(raw & 0x80)


def screen_code_for(char: str, font_page: int = 0) -> int | None:
    """Return the non-reversed screen code for ``char`` or ``None``."""

    if _is_shifted(font_page):
        return _SHIFTED_CODES.get(char)
    code = _UNSHIFTED_CODES.get(char)
    if code is None and "a" <= char <= "z":
        code = _UNSHIFTED_CODES[char.upper()]
    return code


def petscii_to_screen_code(byte: int) -> int | None:
    """Map a printable PETSCII ``byte`` to its screen code.

    Control bytes return ``None``; the caller handles them as editor commands.
    """

    raw = int(byte) & 0xFF
    if 0x20 <= raw <= 0x3F:
        return raw
    if 0x40 <= raw <= 0x5F:
        return raw - 0x40
    if 0x60 <= raw <= 0x7F:
        return raw - 0x20
    if 0xA0 <= raw <= 0xBF:
        return raw - 0x40
    if 0xC0 <= raw <= 0xFE:
        return raw - 0x80
    if raw == 0xFF:
        return 0x5E
    return None


__all__ = [
    "C64_PALETTE",
    "COLOR_CODES",
    "SHIFTED_FONT_PAGE",
    "petscii_to_screen_code",
    "screen_code_for",
    "translate_screen_code",
]
