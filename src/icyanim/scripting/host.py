"""Run animation scripts inside a sandboxed Lua runtime.

Scripts see three host functions (``load_buffer``, ``new_buffer`` and
``next_frame``), canvas capability objects and a handful of ambient globals
that tune the monitor emulation and the duration of the next frame.  Every
call that crosses into Python goes through a :class:`HostRegistry`, so argument
validation and error messages are the same for host functions and canvas
methods.

Capabilities reach the script as Lua proxy tables.  Their metatable forwards
field and method access to Python; the :class:`ScriptCanvas` behind a proxy is
kept in a weak table that only the prelude can see.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Final, Mapping

from lupa import LuaRuntime

from ..animator import Animator
from ..config import AnimatorConfig
from ..errors import AnimationError, BufferLoadError, BufferNotFoundError, ScriptError
from ..frames import FRAME_SPEED_GLOBAL, capture_frame
from ..loaders import BufferLoader, FileBufferLoader
from ..monitor import AMBIENT_MONITOR_GLOBALS
from .canvas_api import CANVAS_API, ScriptCanvas
from .preprocess import expand_hex_colors
from .registry import ArgKind, HostRegistry


logger = logging.getLogger(__name__)

CUR_FRAME_GLOBAL: Final[str] = "cur_frame"
DEFAULT_CHUNK_NAME: Final[str] = "script"

_PRELUDE: Final[str] = r"""
local host_function, host_call, host_get, host_set, function_names, method_names = ...

local load = load
local pcall = pcall
local tostring = tostring
local error = error
local pack = table.pack
local unpack = table.unpack
local setmetatable = setmetatable
local type = type

local backing = setmetatable({}, { __mode = "k" })
local methods = {}
local canvas_mt

local function wrap(value)
  if type(value) == "userdata" then
    local proxy = setmetatable({}, canvas_mt)
    backing[proxy] = value
    return proxy
  end
  return value
end

local function unwrap_all(args)
  for i = 1, args.n do
    local target = backing[args[i]]
    if target ~= nil then
      args[i] = target
    end
  end
  return args
end

local function wrap_all(results)
  for i = 2, results.n do
    results[i] = wrap(results[i])
  end
  return unpack(results, 2, results.n)
end

canvas_mt = {
  __metatable = "Canvas",
  __name = "Canvas",
  __index = function(self, key)
    local method = methods[key]
    if method ~= nil then
      return method
    end
    local results = pack(host_get(backing[self], key))
    if not results[1] then
      error(results[2], 2)
    end
    return results[2]
  end,
  __newindex = function(self, key, value)
    local results = pack(host_set(backing[self], key, value))
    if not results[1] then
      error(results[2], 2)
    end
  end,
  __tostring = function(self)
    return "Canvas"
  end,
}

for _, name in ipairs(method_names) do
  methods[name] = function(self, ...)
    local target = backing[self]
    if target == nil then
      error("Canvas method '" .. name .. "' requires a Canvas receiver", 2)
    end
    local args = unwrap_all(pack(...))
    local results = pack(host_call(target, name, unpack(args, 1, args.n)))
    if not results[1] then
      error(results[2], 2)
    end
    return wrap_all(results)
  end
end

for _, name in ipairs(function_names) do
  _G[name] = function(...)
    local args = unwrap_all(pack(...))
    local results = pack(host_function(name, unpack(args, 1, args.n)))
    if not results[1] then
      error(results[2], 2)
    end
    return wrap_all(results)
  end
end

for _, name in ipairs({ "python", "io", "require", "package", "dofile", "loadfile", "load", "debug" }) do
  _G[name] = nil
end
os = { time = os.time, clock = os.clock, date = os.date }

return function(source, chunk_name)
  local chunk, message = load(source, "=" .. chunk_name, "t")
  if chunk == nil then
    return false, message
  end
  local ok, err = pcall(chunk)
  if not ok then
    return false, tostring(err)
  end
  return true, nil
end
"""


def _deny_attribute_access(obj: object, attr_name: object, is_setting: bool) -> object:
    raise AttributeError(f"access to {attr_name!r} is not allowed")


def _success(result: Any) -> tuple[Any, ...]:
    if result is None:
        return (True,)
    if isinstance(result, tuple):
        return (True, *result)
    return (True, result)


class ScriptHost:
    """One script run: a fresh Lua runtime bound to a fresh :class:`Animator`."""

    def __init__(
        self,
        base_dir: Path | str | None,
        *,
        config: AnimatorConfig | None = None,
        loader: BufferLoader | None = None,
    ) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else None
        self._config = config if config is not None else AnimatorConfig()
        self._loader = loader if loader is not None else FileBufferLoader()
        self.animator = Animator(
            max_frames=self._config.max_frames,
            default_speed=self._config.default_speed,
            monitor_settings=self._config.monitor,
        )
        self._last_error: AnimationError | None = None
        self._internal_error: Exception | None = None
        self._functions = self._build_function_registry()

        self._lua = LuaRuntime(
            unpack_returned_tuples=True,
            register_eval=False,
            register_builtins=False,
            attribute_filter=_deny_attribute_access,
        )
        install = self._lua.compile(_PRELUDE)
        self._runner = install(
            self._host_function,
            self._host_call,
            self._host_get,
            self._host_set,
            self._lua.table_from(list(self._functions.routines)),
            self._lua.table_from(list(CANVAS_API.routines)),
        )
        self._seed_globals()

    @property
    def globals(self) -> Any:
        return self._lua.globals()

    # -- host functions ------------------------------------------------

    def load_buffer(self, path: str) -> ScriptCanvas:
        """Load ``path`` as a new canvas.

        Relative paths resolve against the base directory, or against the
        working directory when the host has none.
        """

        file_name = Path(path)
        if self._base_dir is not None and not file_name.is_absolute():
            file_name = self._base_dir / file_name
        if not file_name.exists():
            raise BufferNotFoundError(f"File not found {path}")
        try:
            canvas = self._loader.load(file_name)
        except (BufferLoadError, OSError) as exc:
            raise BufferLoadError(f"Could not load file {path}") from exc
        return ScriptCanvas(canvas)

    def new_buffer(self, width: int, height: int) -> ScriptCanvas:
        return ScriptCanvas.create(width, height, self._config.default_encoding)

    def next_frame(self, canvas: ScriptCanvas) -> None:
        """Capture ``canvas`` with the current ambient globals as the next frame."""

        capture_frame(self.animator, canvas.canvas, self._ambient_values())
        self.globals[CUR_FRAME_GLOBAL] = self.animator.frame_count + 1

    # -- execution -----------------------------------------------------

    def execute(self, source: str, chunk_name: str = DEFAULT_CHUNK_NAME) -> Animator:
        """Run ``source`` and return the animator holding the captured frames.

        Raises :class:`ScriptError` with the partially filled animator when the
        script fails to compile or aborts.
        """

        expanded = expand_hex_colors(source)
        logger.debug("running %s (%d bytes)", chunk_name, len(expanded))
        self._last_error = None
        self._internal_error = None
        ok, message = self._runner(expanded, chunk_name)
        if self._internal_error is not None:
            raise self._internal_error
        if not ok:
            cause = self._last_error
            if cause is not None and str(cause) not in message:
                # The last capability error was caught by the script itself.
                cause = None
            logger.debug(
                "%s failed after %d frames: %s", chunk_name, self.animator.frame_count, message
            )
            raise ScriptError(message, animator=self.animator, error=cause) from cause
        logger.debug("%s captured %d frames", chunk_name, self.animator.frame_count)
        return self.animator

    # -- bridge --------------------------------------------------------

    def _build_function_registry(self) -> HostRegistry:
        registry = HostRegistry()
        registry.register_routine("load_buffer", self.load_buffer, (ArgKind.STRING,))
        registry.register_routine(
            "new_buffer", self.new_buffer, (ArgKind.INTEGER, ArgKind.INTEGER)
        )
        registry.register_routine("next_frame", self.next_frame, (ArgKind.CANVAS,))
        return registry

    def _seed_globals(self) -> None:
        lua_globals = self.globals
        for name, value in self._config.monitor.as_globals().items():
            lua_globals[name] = value
        lua_globals[FRAME_SPEED_GLOBAL] = self._config.default_speed
        lua_globals[CUR_FRAME_GLOBAL] = 1

    def _ambient_values(self) -> Mapping[str, Any]:
        lua_globals = self.globals
        names = (*AMBIENT_MONITOR_GLOBALS, FRAME_SPEED_GLOBAL)
        return {name: lua_globals[name] for name in names}

    def _guard(self, call: Callable[..., Any], *args: object) -> tuple[Any, ...]:
        try:
            return _success(call(*args))
        except AnimationError as exc:
            self._last_error = exc
            return False, str(exc)
        except Exception as exc:
            # Re-raised by execute() once control is back in Python.
            self._internal_error = exc
            raise

    def _host_function(self, name: str, *args: object) -> tuple[Any, ...]:
        return self._guard(self._functions.dispatch, name, *args)

    def _host_call(self, target: ScriptCanvas, name: str, *args: object) -> tuple[Any, ...]:
        return self._guard(CANVAS_API.dispatch_method, target, name, *args)

    def _host_get(self, target: ScriptCanvas, name: object) -> tuple[Any, ...]:
        return self._guard(CANVAS_API.get_field, target, str(name))

    def _host_set(self, target: ScriptCanvas, name: object, value: object) -> tuple[Any, ...]:
        return self._guard(CANVAS_API.set_field, target, str(name), value)


def run(
    base_dir: Path | str | None,
    source: str,
    *,
    config: AnimatorConfig | None = None,
    loader: BufferLoader | None = None,
    chunk_name: str = DEFAULT_CHUNK_NAME,
) -> Animator:
    """Execute ``source`` and return the :class:`Animator` with its frames."""

    host = ScriptHost(base_dir, config=config, loader=loader)
    return host.execute(source, chunk_name)


__all__ = ["CUR_FRAME_GLOBAL", "ScriptHost", "run"]
