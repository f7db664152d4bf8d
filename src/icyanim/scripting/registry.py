"""Dispatch table for the host routines and fields exposed to scripts.

Every routine is registered with a fixed signature.  The registry validates
argument count and kinds before the handler runs, so a script that passes a
string where a coordinate is expected fails with
:class:`~icyanim.errors.TypeMismatchError` at the call instead of somewhere
inside the canvas model.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Sequence

from ..errors import TypeMismatchError
from ..monitor import describe_type


class ArgKind(Enum):
    """Native argument kinds a host routine can declare."""

    INTEGER = auto()
    NUMBER = auto()
    STRING = auto()
    BOOLEAN = auto()
    CANVAS = auto()


_KIND_LABELS: Mapping[ArgKind, str] = MappingProxyType(
    {
        ArgKind.INTEGER: "integer",
        ArgKind.NUMBER: "number",
        ArgKind.STRING: "string",
        ArgKind.BOOLEAN: "boolean",
        ArgKind.CANVAS: "Canvas",
    }
)


def coerce_argument(kind: ArgKind, value: object) -> object:
    """Return ``value`` converted to ``kind`` or raise ``TypeError``."""

    if kind is ArgKind.INTEGER:
        if isinstance(value, bool):
            raise TypeError
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise TypeError
    if kind is ArgKind.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError
        return value
    if kind is ArgKind.STRING:
        if isinstance(value, str):
            return value
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            # Lua coerces numbers to strings when a string is expected.
            return str(value)
        raise TypeError
    if kind is ArgKind.BOOLEAN:
        if isinstance(value, bool):
            return value
        raise TypeError
    if kind is ArgKind.CANVAS:
        from .canvas_api import ScriptCanvas

        if isinstance(value, ScriptCanvas):
            return value
        raise TypeError
    raise TypeError  # pragma: no cover - exhaustive enum


@dataclass(frozen=True)
class HostRoutine:
    """A named host function with a fixed native signature."""

    name: str
    handler: Callable[..., Any]
    signature: tuple[ArgKind, ...] = ()

    def coerce(self, args: Sequence[object]) -> list[object]:
        if len(args) < len(self.signature):
            raise TypeMismatchError(
                f"{self.name} expects {len(self.signature)} argument(s), got {len(args)}"
            )
        values: list[object] = []
        for position, (kind, value) in enumerate(zip(self.signature, args), start=1):
            try:
                values.append(coerce_argument(kind, value))
            except TypeError:
                if kind is ArgKind.CANVAS:
                    raise TypeMismatchError(
                        f"Canvas argument required, got: {describe_type(value)}"
                    ) from None
                raise TypeMismatchError(
                    f"{self.name}: argument #{position} must be {_describe_kind(kind)}, "
                    f"got: {describe_type(value)}"
                ) from None
        return values

    def invoke(self, *args: object) -> Any:
        return self.handler(*self.coerce(args))


@dataclass(frozen=True)
class HostField:
    """A named field read or written on a capability object."""

    name: str
    getter: Callable[[Any], Any]
    setter: Callable[[Any, Any], None] | None = None
    kind: ArgKind = ArgKind.INTEGER

    @property
    def read_only(self) -> bool:
        return self.setter is None


def _describe_kind(kind: ArgKind) -> str:
    label = _KIND_LABELS[kind]
    article = "an" if label[0] in "aeiou" else "a"
    return f"{article} {label}"


class HostRegistry:
    """Registry that resolves routine and field names to host callables.

    ``receiver`` names the capability type the routines operate on; routines
    of a receiver registry take the capability object as first argument.
    """

    def __init__(self, receiver: str | None = None) -> None:
        self._receiver = receiver
        self._routines: Dict[str, HostRoutine] = {}
        self._fields: Dict[str, HostField] = {}

    @property
    def routines(self) -> Mapping[str, HostRoutine]:
        return MappingProxyType(self._routines)

    @property
    def fields(self) -> Mapping[str, HostField]:
        return MappingProxyType(self._fields)

    def register_routine(
        self,
        name: str,
        handler: Callable[..., Any],
        signature: Iterable[ArgKind] = (),
    ) -> HostRoutine:
        """Register ``handler`` under ``name`` with the given ``signature``."""

        if name in self._routines or name in self._fields:
            raise ValueError(f"host name already registered: {name}")
        routine = HostRoutine(name=name, handler=handler, signature=tuple(signature))
        self._routines[name] = routine
        return routine

    def register_field(
        self,
        name: str,
        getter: Callable[[Any], Any],
        setter: Callable[[Any, Any], None] | None = None,
        kind: ArgKind = ArgKind.INTEGER,
    ) -> HostField:
        """Register a readable (and optionally writable) field."""

        if name in self._routines or name in self._fields:
            raise ValueError(f"host name already registered: {name}")
        field = HostField(name=name, getter=getter, setter=setter, kind=kind)
        self._fields[name] = field
        return field

    def dispatch(self, name: str, *args: object) -> Any:
        """Validate ``args`` and invoke the routine called ``name``."""

        return self._resolve_routine(name).invoke(*args)

    def dispatch_method(self, target: object, name: str, *args: object) -> Any:
        """Invoke routine ``name`` with ``target`` as receiver."""

        routine = self._resolve_routine(name)
        return routine.handler(target, *routine.coerce(args))

    def get_field(self, target: object, name: str) -> Any:
        return self._resolve_field(name).getter(target)

    def set_field(self, target: object, name: str, value: object) -> None:
        field = self._resolve_field(name)
        if field.read_only:
            raise TypeMismatchError(f"{self._label()} field '{name}' is read-only")
        try:
            coerced = coerce_argument(field.kind, value)
        except TypeError:
            raise TypeMismatchError(
                f"{self._label()} field '{name}' must be {_describe_kind(field.kind)}, "
                f"got: {describe_type(value)}"
            ) from None
        field.setter(target, coerced)

    def _resolve_routine(self, name: str) -> HostRoutine:
        try:
            return self._routines[name]
        except KeyError:
            raise TypeMismatchError(f"{self._label()} has no method '{name}'") from None

    def _resolve_field(self, name: str) -> HostField:
        try:
            return self._fields[name]
        except KeyError:
            raise TypeMismatchError(f"{self._label()} has no field '{name}'") from None

    def _label(self) -> str:
        return self._receiver or "host"


__all__ = ["ArgKind", "HostField", "HostRegistry", "HostRoutine", "coerce_argument"]
