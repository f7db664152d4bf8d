"""Shared fixtures for the icyanim test-suite."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_root_str = str(_REPO_ROOT)
if _root_str not in sys.path:
    sys.path.insert(0, _root_str)

import sitecustomize  # noqa: F401,E402  # Puts src/ on sys.path for checkouts.

from icyanim.buffer import Canvas  # noqa: E402


class RecordingRenderer:
    """Renderer double that keeps every snapshot it receives."""

    def __init__(self) -> None:
        self.buffers: list[Canvas] = []

    def set_buffer(self, canvas: Canvas) -> None:
        self.buffers.append(canvas)


@pytest.fixture
def recording_renderer() -> RecordingRenderer:
    return RecordingRenderer()
