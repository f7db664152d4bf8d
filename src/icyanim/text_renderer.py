"""Plain-text frame renderer used by the command line player."""
from __future__ import annotations

from .buffer import Canvas


class TextFrameRenderer:
    """Keep the most recent frame snapshot and flatten it to text rows."""

    def __init__(self) -> None:
        self._canvas: Canvas | None = None
        self.updates = 0

    @property
    def canvas(self) -> Canvas | None:
        return self._canvas

    def set_buffer(self, canvas: Canvas) -> None:
        self._canvas = canvas
        self.updates += 1

    def rows(self) -> list[str]:
        """Composite the visible layers, later layers drawn over earlier ones.

        Blank cells on upper layers let lower layers show through.
        """

        canvas = self._canvas
        if canvas is None:
            return []
        width, height = canvas.size
        grid = [[" "] * width for _ in range(height)]
        for layer in canvas.layers:
            if not layer.is_visible:
                continue
            offset_x, offset_y = layer.offset
            for (x, y), cell in layer.cells.items():
                target_x = x + offset_x
                target_y = y + offset_y
                if not (0 <= target_x < width and 0 <= target_y < height):
                    continue
                char = canvas.decode_cell(cell)
                if char != " " or layer is canvas.layers[0]:
                    grid[target_y][target_x] = char
        return ["".join(row).rstrip() for row in grid]

    def render(self) -> str:
        return "\n".join(self.rows())


__all__ = ["TextFrameRenderer"]
