"""Script-facing capability surface and the Lua host that runs scripts."""
from __future__ import annotations

from importlib import import_module
from typing import Any

from . import canvas_api as _canvas_api
from . import preprocess as _preprocess
from . import registry as _registry

_EAGER_MODULES = (_canvas_api, _preprocess, _registry)
# The host module imports lupa; load it on first use only.
_HOST_EXPORTS = ("CUR_FRAME_GLOBAL", "ScriptHost", "run")

__all__ = sorted(
    {name for module in _EAGER_MODULES for name in module.__all__} | set(_HOST_EXPORTS)
)
for _module in _EAGER_MODULES:
    for _name in _module.__all__:
        globals()[_name] = getattr(_module, _name)


def __getattr__(name: str) -> Any:
    if name in _HOST_EXPORTS:
        return getattr(import_module(".host", __name__), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(__all__)
