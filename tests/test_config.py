"""Regression tests for the TOML animation configuration loader."""
from __future__ import annotations

from pathlib import Path

import pytest

from icyanim.config import AnimatorConfig, load_animation_config
from icyanim.encodings import Encoding
from icyanim.errors import ConfigError
from icyanim.monitor import MonitorSettings


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    assert load_animation_config(tmp_path / "absent.toml") == AnimatorConfig()
    assert load_animation_config(None) == AnimatorConfig()


def test_load_animation_config_applies_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "icyanim.toml"
    config_path.write_text(
        "[animation]\n"
        'default_encoding = "PETSCII"\n'
        "default_speed = 60\n"
        "max_frames = 500\n\n"
        "[monitor]\n"
        "type = 3\n"
        "gamma = 65\n"
        "scanlines = 12.5\n",
        encoding="utf-8",
    )

    config = load_animation_config(config_path)

    assert config.default_encoding is Encoding.PETSCII
    assert config.default_speed == 60
    assert config.max_frames == 500
    assert config.monitor.monitor_type == 3
    assert config.monitor.gamma == 65.0
    assert config.monitor.scanlines == 12.5
    assert config.monitor.blur == MonitorSettings.neutral().blur


@pytest.mark.parametrize(
    "body, message",
    [
        ("[animation]\nmax_frames = 4097\n", "max_frames must be between 1 and 4096"),
        ("[animation]\nmax_frames = 0\n", "max_frames must be between 1 and 4096"),
        ("[animation]\ndefault_speed = 0\n", "default_speed must be greater than 0"),
        ("[animation]\ndefault_speed = \"fast\"\n", "default_speed must be an integer"),
        ("[animation]\ndefault_encoding = \"ebcdic\"\n", "unknown encoding"),
        ("[monitor]\nsharpness = 3\n", "unknown monitor setting: sharpness"),
        ("[monitor]\ngamma = true\n", "monitor.gamma must be a number"),
        ("[monitor]\ntype = -1\n", "monitor.type must not be negative"),
        ("animation = 5\n", "animation configuration must be a table"),
        ("[animation\n", "icyanim.toml"),
    ],
)
def test_invalid_configuration_is_rejected(tmp_path: Path, body: str, message: str) -> None:
    config_path = tmp_path / "icyanim.toml"
    config_path.write_text(body, encoding="utf-8")

    with pytest.raises(ConfigError, match=message):
        load_animation_config(config_path)
