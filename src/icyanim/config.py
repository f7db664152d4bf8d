"""Load animation defaults from TOML configuration files."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

import tomllib

from .encodings import Encoding
from .errors import ConfigError
from .frames import DEFAULT_SPEED, MAX_FRAMES
from .monitor import AMBIENT_MONITOR_GLOBALS, MonitorSettings


@dataclass(frozen=True)
class AnimatorConfig:
    """Defaults applied to every script run."""

    default_encoding: Encoding = Encoding.CP437
    default_speed: int = DEFAULT_SPEED
    max_frames: int = MAX_FRAMES
    monitor: MonitorSettings = field(default_factory=MonitorSettings.neutral)


def load_animation_config(config_path: Path | None) -> AnimatorConfig:
    """Return the configuration stored at ``config_path``.

    A ``None`` path or a missing file yields :class:`AnimatorConfig` defaults.
    """

    if config_path is None or not config_path.exists():
        return AnimatorConfig()

    try:
        with config_path.open("rb") as stream:
            data = tomllib.load(stream)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{config_path}: {exc}") from exc

    return parse_animation_config(data)


def parse_animation_config(data: Mapping[str, Any]) -> AnimatorConfig:
    config = AnimatorConfig()
    animation = _table(data, "animation")
    overrides: Dict[str, object] = {}

    if "default_encoding" in animation:
        raw = animation["default_encoding"]
        if not isinstance(raw, str):
            raise ConfigError("animation.default_encoding must be a string")
        try:
            overrides["default_encoding"] = Encoding.parse(raw)
        except ValueError as exc:
            raise ConfigError(f"animation.default_encoding: {exc}") from exc

    if "default_speed" in animation:
        speed = _coerce_int("animation.default_speed", animation["default_speed"])
        if speed <= 0:
            raise ConfigError("animation.default_speed must be greater than 0")
        overrides["default_speed"] = speed

    if "max_frames" in animation:
        limit = _coerce_int("animation.max_frames", animation["max_frames"])
        if not 1 <= limit <= MAX_FRAMES:
            raise ConfigError(f"animation.max_frames must be between 1 and {MAX_FRAMES}")
        overrides["max_frames"] = limit

    monitor_overrides = _parse_monitor_overrides(_table(data, "monitor"))
    if monitor_overrides:
        overrides["monitor"] = replace(config.monitor, **monitor_overrides)

    return replace(config, **overrides)


def _table(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = data.get(name, {})
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{name} configuration must be a table")
    return raw


def _parse_monitor_overrides(raw: Mapping[str, Any]) -> Dict[str, object]:
    # Keys match the script globals with the ``monitor_`` prefix dropped.
    known = {
        name.removeprefix("monitor_"): attribute
        for name, attribute in AMBIENT_MONITOR_GLOBALS.items()
    }
    valid_attributes = {item.name for item in fields(MonitorSettings)}

    overrides: Dict[str, object] = {}
    for key, value in raw.items():
        attribute = known.get(key)
        if attribute is None or attribute not in valid_attributes:
            raise ConfigError(f"unknown monitor setting: {key}")
        if attribute == "monitor_type":
            monitor_type = _coerce_int(f"monitor.{key}", value)
            if monitor_type < 0:
                raise ConfigError(f"monitor.{key} must not be negative")
            overrides[attribute] = monitor_type
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"monitor.{key} must be a number")
        overrides[attribute] = float(value)
    return overrides


def _coerce_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer")
    return value


__all__ = ["AnimatorConfig", "load_animation_config", "parse_animation_config"]
