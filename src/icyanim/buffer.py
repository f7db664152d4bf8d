"""In-memory character buffer: palette, attributes, layers, fonts and caret."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntFlag
from types import MappingProxyType
from typing import Final, Iterable, Iterator, Mapping, Sequence

from .encodings import Encoding, from_universal, to_universal


DEFAULT_FOREGROUND: Final[int] = 7
DEFAULT_BACKGROUND: Final[int] = 0
BLANK_CODE: Final[int] = 0x20

DOS_PALETTE: Final[tuple[tuple[int, int, int], ...]] = (
    (0x00, 0x00, 0x00),
    (0x00, 0x00, 0xAA),
    (0x00, 0xAA, 0x00),
    (0x00, 0xAA, 0xAA),
    (0xAA, 0x00, 0x00),
    (0xAA, 0x00, 0xAA),
    (0xAA, 0x55, 0x00),
    (0xAA, 0xAA, 0xAA),
    (0x55, 0x55, 0x55),
    (0x55, 0x55, 0xFF),
    (0x55, 0xFF, 0x55),
    (0x55, 0xFF, 0xFF),
    (0xFF, 0x55, 0x55),
    (0xFF, 0x55, 0xFF),
    (0xFF, 0xFF, 0x55),
    (0xFF, 0xFF, 0xFF),
)


@dataclass(frozen=True)
class Color:
    """RGB colour stored in a :class:`Palette`."""

    r: int
    g: int
    b: int

    def as_tuple(self) -> tuple[int, int, int]:
        return self.r, self.g, self.b


class Palette:
    """Growable, ordered colour table referenced by attribute indices."""

    def __init__(self, colors: Iterable[tuple[int, int, int] | Color] = DOS_PALETTE) -> None:
        self._colors: list[Color] = [
            entry if isinstance(entry, Color) else Color(*entry) for entry in colors
        ]

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[Color]:
        return iter(self._colors)

    def __getitem__(self, index: int) -> Color:
        return self._colors[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Palette):
            return NotImplemented
        return self._colors == other._colors

    def insert_color_rgb(self, r: int, g: int, b: int) -> int:
        """Return the index of ``(r, g, b)``, appending it when missing."""

        color = Color(int(r), int(g), int(b))
        for index, existing in enumerate(self._colors):
            if existing == color:
                return index
        self._colors.append(color)
        return len(self._colors) - 1

    def clone(self) -> "Palette":
        return Palette(self._colors)


class AttributeFlags(IntFlag):
    """Style bits carried by a :class:`TextAttribute`."""

    NONE = 0
    BOLD = 1
    BLINK = 2
    UNDERLINE = 4
    REVERSE = 8


@dataclass(frozen=True)
class TextAttribute:
    """Colour, font page and style of a cell."""

    foreground: int = DEFAULT_FOREGROUND
    background: int = DEFAULT_BACKGROUND
    font_page: int = 0
    flags: AttributeFlags = AttributeFlags.NONE

    def with_foreground(self, value: int) -> "TextAttribute":
        return replace(self, foreground=int(value))

    def with_background(self, value: int) -> "TextAttribute":
        return replace(self, background=int(value))

    def with_font_page(self, value: int) -> "TextAttribute":
        return replace(self, font_page=int(value))


@dataclass(frozen=True)
class Cell:
    """A native character code plus its attribute."""

    code: int = BLANK_CODE
    attribute: TextAttribute = TextAttribute()


BLANK_CELL: Final[Cell] = Cell()


@dataclass
class Layer:
    """Sparse grid of cells drawn with an offset.

    Only written cells are stored, keyed by ``(x, y)``, so writes beyond the
    layer size are kept without growing anything else.  Writes at negative
    coordinates are ignored and reads of unwritten cells return
    :data:`BLANK_CELL`.
    """

    title: str
    width: int
    height: int
    is_visible: bool = True
    offset: tuple[int, int] = (0, 0)
    cells: dict[tuple[int, int], Cell] = field(default_factory=dict)

    def get_char(self, x: int, y: int) -> Cell:
        return self.cells.get((x, y), BLANK_CELL)

    def set_char(self, x: int, y: int, cell: Cell) -> None:
        if x < 0 or y < 0:
            return
        self.cells[(x, y)] = cell

    @property
    def extent(self) -> tuple[int, int]:
        """Return the width and height spanned by the written cells."""

        if not self.cells:
            return 0, 0
        return (
            max(x for x, _ in self.cells) + 1,
            max(y for _, y in self.cells) + 1,
        )

    def resize(self, width: int, height: int) -> None:
        """Change the layer size, dropping cells that fall outside it."""

        self.width = width
        self.height = height
        self.cells = {
            (x, y): cell for (x, y), cell in self.cells.items() if x < width and y < height
        }

    def clone(self) -> "Layer":
        return Layer(
            title=self.title,
            width=self.width,
            height=self.height,
            is_visible=self.is_visible,
            offset=self.offset,
            cells=dict(self.cells),
        )


@dataclass(frozen=True)
class BitFont:
    """Glyph set selected by a font page; bitmaps are rows of bit masks."""

    name: str
    size: tuple[int, int] = (8, 16)
    glyphs: Mapping[int, tuple[int, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )


DEFAULT_FONTS: Final[dict[Encoding, BitFont]] = {
    Encoding.UNICODE: BitFont("Unicode"),
    Encoding.CP437: BitFont("IBM VGA"),
    Encoding.PETSCII: BitFont("C64 PETSCII unshifted", size=(8, 8)),
    Encoding.ATASCII: BitFont("Atari ATASCII", size=(8, 8)),
    Encoding.VIEWDATA: BitFont("Viewdata", size=(12, 20)),
}


@dataclass
class Caret:
    """Script-visible cursor: position, active attribute and insert mode."""

    x: int = 0
    y: int = 0
    attribute: TextAttribute = TextAttribute()
    insert_mode: bool = False

    @property
    def position(self) -> tuple[int, int]:
        return self.x, self.y

    def set_position(self, x: int, y: int) -> None:
        self.x = int(x)
        self.y = int(y)

    @property
    def font_page(self) -> int:
        return self.attribute.font_page

    @font_page.setter
    def font_page(self, value: int) -> None:
        self.attribute = self.attribute.with_font_page(value)

    @property
    def foreground(self) -> int:
        return self.attribute.foreground

    @foreground.setter
    def foreground(self, value: int) -> None:
        self.attribute = self.attribute.with_foreground(value)

    @property
    def background(self) -> int:
        return self.attribute.background

    @background.setter
    def background(self, value: int) -> None:
        self.attribute = self.attribute.with_background(value)


class Canvas:
    """Character grid made of layers sharing one palette, font table and encoding."""

    def __init__(
        self,
        width: int,
        height: int,
        encoding: Encoding = Encoding.CP437,
        *,
        palette: Palette | None = None,
        layers: Sequence[Layer] | None = None,
        fonts: Mapping[int, BitFont] | None = None,
    ) -> None:
        self._width = int(width)
        self._height = int(height)
        self._encoding = encoding
        self.palette = palette if palette is not None else Palette()
        if layers is None:
            layers = [Layer("Background", self._width, self._height)]
        self.layers: list[Layer] = list(layers)
        if fonts is None:
            fonts = {0: DEFAULT_FONTS[encoding]}
        self._fonts: dict[int, BitFont] = dict(fonts)
        self.is_terminal_buffer = False

    @property
    def encoding(self) -> Encoding:
        """Return the encoding fixed when the canvas was created."""

        return self._encoding

    @property
    def width(self) -> int:
        return self._width

    @width.setter
    def width(self, value: int) -> None:
        self.set_size(value, self._height)

    @property
    def height(self) -> int:
        return self._height

    @height.setter
    def height(self, value: int) -> None:
        self.set_size(self._width, value)

    @property
    def size(self) -> tuple[int, int]:
        return self._width, self._height

    def set_size(self, width: int, height: int) -> None:
        """Resize the canvas and every layer that tracks the canvas size."""

        width = int(width)
        height = int(height)
        for layer in self.layers:
            if (layer.width, layer.height) == (self._width, self._height):
                layer.resize(width, height)
        self._width = width
        self._height = height

    def add_layer(self, title: str) -> Layer:
        layer = Layer(title, self._width, self._height)
        self.layers.append(layer)
        return layer

    @property
    def fonts(self) -> Mapping[int, BitFont]:
        return MappingProxyType(self._fonts)

    def decode_cell(self, cell: Cell) -> str:
        """Return the Unicode character shown by ``cell``."""

        return to_universal(cell.code, self._encoding, cell.attribute.font_page)

    def encode_char(self, char: str, font_page: int = 0) -> int:
        """Return the native code for the first character of ``char``."""

        return from_universal(char, self._encoding, font_page)

    def snapshot(self, *, terminal: bool = False) -> "Canvas":
        """Return a copy that shares no mutable state with this canvas."""

        copy = Canvas(
            self._width,
            self._height,
            self._encoding,
            palette=self.palette.clone(),
            layers=[layer.clone() for layer in self.layers],
            fonts=self._fonts,
        )
        copy.is_terminal_buffer = terminal
        return copy

    def __repr__(self) -> str:
        return (
            f"Canvas(width={self._width}, height={self._height}, "
            f"encoding={self._encoding.value}, layers={len(self.layers)})"
        )


__all__ = [
    "AttributeFlags",
    "BLANK_CELL",
    "BitFont",
    "Canvas",
    "Caret",
    "Cell",
    "Color",
    "DOS_PALETTE",
    "Layer",
    "Palette",
    "TextAttribute",
]
