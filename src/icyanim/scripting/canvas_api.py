"""Canvas capability exposed to animation scripts."""
from __future__ import annotations

from ..buffer import Canvas, Caret, Cell, Layer
from ..encodings import Encoding
from ..errors import InvalidInputError, OutOfRangeError
from .registry import ArgKind, HostRegistry


_COLOR_COMPONENT_LIMIT = 256


class ScriptCanvas:
    """A canvas plus the caret and active layer a script paints with.

    Characters cross this boundary as Unicode and are stored in the canvas'
    native encoding.  Layer-indexed operations validate the index before they
    touch any state.
    """

    def __init__(self, canvas: Canvas, caret: Caret | None = None, layer: int = 0) -> None:
        self._canvas = canvas
        self._caret = caret if caret is not None else Caret()
        self._layer = layer

    @classmethod
    def create(
        cls, width: int, height: int, encoding: Encoding = Encoding.CP437
    ) -> "ScriptCanvas":
        _require_unsigned("width", width)
        _require_unsigned("height", height)
        return cls(Canvas(width, height, encoding))

    @property
    def canvas(self) -> Canvas:
        return self._canvas

    @property
    def caret(self) -> Caret:
        return self._caret

    # -- fields --------------------------------------------------------

    @property
    def width(self) -> int:
        return self._canvas.width

    @width.setter
    def width(self, value: int) -> None:
        _require_unsigned("width", value)
        self._canvas.width = value

    @property
    def height(self) -> int:
        return self._canvas.height

    @height.setter
    def height(self, value: int) -> None:
        _require_unsigned("height", value)
        self._canvas.height = value

    @property
    def layer(self) -> int:
        return self._layer

    @layer.setter
    def layer(self, value: int) -> None:
        self._require_layer(value)
        self._layer = value

    @property
    def layer_count(self) -> int:
        return len(self._canvas.layers)

    @property
    def font_page(self) -> int:
        return self._caret.font_page

    @font_page.setter
    def font_page(self, value: int) -> None:
        self._caret.font_page = _require_unsigned("font_page", value)

    @property
    def fg(self) -> int:
        return self._caret.foreground

    @fg.setter
    def fg(self, value: int) -> None:
        self._caret.foreground = _require_unsigned("fg", value)

    @property
    def bg(self) -> int:
        return self._caret.background

    @bg.setter
    def bg(self, value: int) -> None:
        self._caret.background = _require_unsigned("bg", value)

    @property
    def x(self) -> int:
        return self._caret.x

    @x.setter
    def x(self, value: int) -> None:
        self._caret.x = int(value)

    @property
    def y(self) -> int:
        return self._caret.y

    @y.setter
    def y(self, value: int) -> None:
        self._caret.y = int(value)

    # -- colours -------------------------------------------------------

    def fg_rgb(self, r: int, g: int, b: int) -> int:
        """Set the caret foreground to ``(r, g, b)`` and return its palette index."""

        color = self._canvas.palette.insert_color_rgb(*_require_rgb(r, g, b))
        self._caret.foreground = color
        return color

    def bg_rgb(self, r: int, g: int, b: int) -> int:
        """Set the caret background to ``(r, g, b)`` and return its palette index."""

        color = self._canvas.palette.insert_color_rgb(*_require_rgb(r, g, b))
        self._caret.background = color
        return color

    # -- characters ----------------------------------------------------

    def set_char(self, x: int, y: int, ch: str) -> None:
        layer = self._active_layer()
        code = self._convert_from_unicode(ch)
        layer.set_char(x, y, Cell(code, self._caret.attribute))

    def get_char(self, x: int, y: int) -> str:
        cell = self._active_layer().get_char(x, y)
        return self._canvas.decode_cell(cell)

    def pickup_char(self, x: int, y: int) -> str:
        """Return the character at ``(x, y)`` and adopt its attribute."""

        cell = self._active_layer().get_char(x, y)
        self._caret.attribute = cell.attribute
        return self._canvas.decode_cell(cell)

    def set_fg(self, x: int, y: int, col: int) -> None:
        layer = self._active_layer()
        color = _require_unsigned("col", col)
        cell = layer.get_char(x, y)
        layer.set_char(x, y, Cell(cell.code, cell.attribute.with_foreground(color)))

    def get_fg(self, x: int, y: int) -> int:
        return self._active_layer().get_char(x, y).attribute.foreground

    def set_bg(self, x: int, y: int, col: int) -> None:
        layer = self._active_layer()
        color = _require_unsigned("col", col)
        cell = layer.get_char(x, y)
        layer.set_char(x, y, Cell(cell.code, cell.attribute.with_background(color)))

    def get_bg(self, x: int, y: int) -> int:
        return self._active_layer().get_char(x, y).attribute.background

    def print(self, text: str) -> None:
        """Write ``text`` from the caret position, one column per character."""

        layer = self._active_layer()
        attribute = self._caret.attribute
        codes = [self._convert_from_unicode(char) for char in text]
        for code in codes:
            layer.set_char(self._caret.x, self._caret.y, Cell(code, attribute))
            self._caret.x += 1

    def gotoxy(self, x: int, y: int) -> None:
        self._caret.set_position(x, y)

    # -- layers --------------------------------------------------------

    def set_layer_position(self, layer: int, x: int, y: int) -> None:
        self._layer_at(layer).offset = (int(x), int(y))

    def get_layer_position(self, layer: int) -> tuple[int, int]:
        return self._layer_at(layer).offset

    def set_layer_visible(self, layer: int, is_visible: bool) -> None:
        self._layer_at(layer).is_visible = bool(is_visible)

    def get_layer_visible(self, layer: int) -> bool:
        return self._layer_at(layer).is_visible

    def clear(self) -> None:
        """Reset the caret and replace the canvas with a blank one of equal size."""

        self._caret = Caret()
        self._canvas = Canvas(self._canvas.width, self._canvas.height, self._canvas.encoding)

    # -- helpers -------------------------------------------------------

    def _require_layer(self, index: int, *, label: str = "Layer") -> None:
        count = len(self._canvas.layers)
        if not 0 <= index < count:
            raise OutOfRangeError.for_layer(index, count, label=label)

    def _active_layer(self) -> Layer:
        self._require_layer(self._layer, label="Current layer")
        return self._canvas.layers[self._layer]

    def _layer_at(self, index: int) -> Layer:
        self._require_layer(index)
        return self._canvas.layers[index]

    def _convert_from_unicode(self, ch: str) -> int:
        if not ch:
            raise InvalidInputError("Empty string")
        return self._canvas.encode_char(ch, self._caret.font_page)

    def __repr__(self) -> str:
        return f"ScriptCanvas({self._canvas!r}, layer={self._layer})"


def _require_unsigned(name: str, value: int) -> int:
    if value < 0:
        raise OutOfRangeError(f"{name} {value} must not be negative", value=value, bound=0)
    return value


def _require_rgb(r: int, g: int, b: int) -> tuple[int, int, int]:
    for component in (r, g, b):
        if not 0 <= component < _COLOR_COMPONENT_LIMIT:
            raise OutOfRangeError(
                f"Color component {component} out of range (0..<{_COLOR_COMPONENT_LIMIT})",
                value=component,
                bound=_COLOR_COMPONENT_LIMIT,
            )
    return r, g, b


def _build_canvas_registry() -> HostRegistry:
    registry = HostRegistry(receiver="Canvas")
    for name in ("width", "height", "layer", "font_page", "fg", "bg", "x", "y"):
        prop = getattr(ScriptCanvas, name)
        registry.register_field(name, prop.fget, prop.fset)
    registry.register_field("layer_count", ScriptCanvas.layer_count.fget)

    integer = ArgKind.INTEGER
    registry.register_routine("fg_rgb", ScriptCanvas.fg_rgb, (integer,) * 3)
    registry.register_routine("bg_rgb", ScriptCanvas.bg_rgb, (integer,) * 3)
    registry.register_routine("set_char", ScriptCanvas.set_char, (integer, integer, ArgKind.STRING))
    registry.register_routine("get_char", ScriptCanvas.get_char, (integer, integer))
    registry.register_routine("pickup_char", ScriptCanvas.pickup_char, (integer, integer))
    registry.register_routine("set_fg", ScriptCanvas.set_fg, (integer,) * 3)
    registry.register_routine("get_fg", ScriptCanvas.get_fg, (integer, integer))
    registry.register_routine("set_bg", ScriptCanvas.set_bg, (integer,) * 3)
    registry.register_routine("get_bg", ScriptCanvas.get_bg, (integer, integer))
    registry.register_routine("print", ScriptCanvas.print, (ArgKind.STRING,))
    registry.register_routine("gotoxy", ScriptCanvas.gotoxy, (integer, integer))
    registry.register_routine(
        "set_layer_position", ScriptCanvas.set_layer_position, (integer,) * 3
    )
    registry.register_routine(
        "get_layer_position", ScriptCanvas.get_layer_position, (integer,)
    )
    registry.register_routine(
        "set_layer_visible", ScriptCanvas.set_layer_visible, (integer, ArgKind.BOOLEAN)
    )
    registry.register_routine("get_layer_visible", ScriptCanvas.get_layer_visible, (integer,))
    registry.register_routine("clear", ScriptCanvas.clear)
    return registry


CANVAS_API: HostRegistry = _build_canvas_registry()


__all__ = ["CANVAS_API", "ScriptCanvas"]
