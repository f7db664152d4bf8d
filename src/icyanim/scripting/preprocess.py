"""Textual preprocessing applied to animation scripts before they run."""
from __future__ import annotations

import re
from typing import Final


HEX_COLOR_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})"
)


def _expand_match(match: re.Match[str]) -> str:
    r, g, b = (int(group, 16) for group in match.groups())
    return f"{r},{g},{b}"


def expand_hex_colors(source: str) -> str:
    """Rewrite every ``#RRGGBB`` literal in ``source`` as ``R,G,B``.

    The expansion is purely textual, so ``buf:fg_rgb(#FF00AA)`` reaches the
    Lua parser as ``buf:fg_rgb(255,0,170)``.
    """

    return HEX_COLOR_PATTERN.sub(_expand_match, source)


__all__ = ["HEX_COLOR_PATTERN", "expand_hex_colors"]
