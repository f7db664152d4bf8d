"""Monitor effect settings captured with every animation frame."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Final, Mapping

from .errors import TypeMismatchError


class BackgroundEffect(Enum):
    """Effect drawn behind the canvas by the renderer."""

    NONE = "none"
    CHECKERS = "checkers"


@dataclass(frozen=True)
class MonitorSettings:
    """Display-effect parameters handed to the renderer with a frame."""

    use_filter: bool = False
    monitor_type: int = 0
    gamma: float = 50.0
    contrast: float = 50.0
    saturation: float = 50.0
    brightness: float = 30.0
    light: float = 40.0
    blur: float = 30.0
    curvature: float = 10.0
    scanlines: float = 10.0
    background_effect: BackgroundEffect = BackgroundEffect.NONE
    selection_fg: tuple[int, int, int] = (0xAB, 0x00, 0xAB)
    selection_bg: tuple[int, int, int] = (0xAB, 0xAB, 0xAB)

    @classmethod
    def default(cls) -> "MonitorSettings":
        return cls()

    @classmethod
    def neutral(cls) -> "MonitorSettings":
        """Settings that leave the rendered image unmodified."""

        return cls(
            gamma=50.0,
            contrast=50.0,
            saturation=50.0,
            brightness=50.0,
            light=50.0,
            blur=0.0,
            curvature=0.0,
            scanlines=0.0,
        )

    def as_globals(self) -> dict[str, int | float]:
        """Return the script globals that mirror these settings."""

        return {
            name: getattr(self, attribute)
            for name, attribute in AMBIENT_MONITOR_GLOBALS.items()
        }

    def merged_with_globals(self, values: Mapping[str, Any]) -> "MonitorSettings":
        """Return a copy updated from the script globals in ``values``."""

        updates: dict[str, int | float] = {}
        for name, attribute in AMBIENT_MONITOR_GLOBALS.items():
            raw = values.get(name)
            if attribute == "monitor_type":
                updates[attribute] = _require_monitor_type(name, raw)
            else:
                updates[attribute] = _require_number(name, raw)
        return replace(self, **updates)


AMBIENT_MONITOR_GLOBALS: Final[dict[str, str]] = {
    "monitor_type": "monitor_type",
    "monitor_gamma": "gamma",
    "monitor_contrast": "contrast",
    "monitor_saturation": "saturation",
    "monitor_brightness": "brightness",
    "monitor_blur": "blur",
    "monitor_curvature": "curvature",
    "monitor_scanlines": "scanlines",
}


def describe_type(value: object) -> str:
    """Name ``value``'s type the way a Lua script would see it."""

    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    name = type(value).__name__
    # lupa wraps Lua objects as _LuaTable, _LuaFunction, _LuaThread ...
    if name.startswith("_Lua"):
        return name[4:].lower()
    return name


def _require_number(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeMismatchError(f"{name} must be a number, got: {describe_type(value)}")
    return float(value)


def _require_monitor_type(name: str, value: object) -> int:
    number = _require_number(name, value)
    if not number.is_integer() or number < 0:
        raise TypeMismatchError(f"{name} must be a non-negative integer, got: {value}")
    return int(number)


__all__ = ["AMBIENT_MONITOR_GLOBALS", "BackgroundEffect", "MonitorSettings", "describe_type"]
