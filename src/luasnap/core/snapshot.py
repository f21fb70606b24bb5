"""Snapshotter - flatten a Lua result into detached values.

Tables are stored out of line in an ``objects`` mapping keyed by identity;
inside the graph they appear only as OBJECT_REF values. An identity is
marked visited before its members are walked, so a table that reaches
itself (directly or through others) resolves to a reference instead of
recursing forever.

The walk uses an explicit stack rather than Python recursion, so deeply
nested tables do not hit the recursion limit. Frames are processed
depth-first, which yields the same members and the same ``objects`` order
as the recursive formulation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from itertools import chain
from typing import Any

from luasnap.core.config import UnsupportedPolicy
from luasnap.core.errors import UnsupportedValueKind
from luasnap.core.interpreter import LuaInterpreter, RawValue, decode_text
from luasnap.core.types import NIL, EvalResponse, LuaObject, LuaValue

logger = logging.getLogger(__name__)

_DONE = object()


@dataclass
class _Frame:
    """A table whose members are still being walked."""

    identity: str
    items: Iterator[Any]
    obj: LuaObject = field(default_factory=LuaObject)
    pending_key: LuaValue | None = None

    def add(self, value: LuaValue) -> None:
        # Items alternate key, value
        if self.pending_key is None:
            self.pending_key = value
        else:
            self.obj.insert(self.pending_key, value)
            self.pending_key = None


class Snapshotter:
    """One snapshot pass.

    Create a fresh instance per top-level result: ``visited`` and
    ``objects`` belong to a single pass. Identities are stable across
    passes because they come from the interpreter, not from this class.

    Args:
        interpreter: The interpreter the raw values belong to. Must be
            called on the thread that owns it.
        unsupported: "opaque" turns unmodelled kinds into OPAQUE values,
            "error" raises UnsupportedValueKind.
    """

    def __init__(self, interpreter: LuaInterpreter, unsupported: UnsupportedPolicy = "opaque"):
        self.interpreter = interpreter
        self.unsupported = unsupported
        self.visited: set[str] = set()
        self.objects: dict[str, LuaObject] = {}
        self._stack: list[_Frame] = []

    def snapshot(self, raw: RawValue | Any) -> LuaValue:
        """Convert a raw interpreter value, collecting reachable tables.

        raw is normally what LuaInterpreter.run returned. Plain Python values
        are described by the interpreter first.

        Raises:
            UnsupportedValueKind: Under the "error" policy, if raw or any
                reachable member is not a modelled kind.
        """
        if not isinstance(raw, RawValue):
            raw = self.interpreter.describe(raw)
        value = self._visit(raw)
        while self._stack:
            frame = self._stack[-1]
            item = next(frame.items, _DONE)
            if item is _DONE:
                self._stack.pop()
                self.objects[frame.identity] = frame.obj
                continue
            frame.add(self._visit(item))
        return value

    def _visit(self, raw: RawValue) -> LuaValue:
        """Map one value. New tables are pushed to be walked next."""
        kind = raw.type_name
        if kind == "nil":
            return NIL
        if kind == "boolean":
            return LuaValue.boolean(raw.value)
        if kind == "number":
            return LuaValue.number(raw.value)
        if kind == "string":
            return LuaValue.string(decode_text(raw.value))

        identity = raw.identity or ""
        if raw.is_table:
            if identity not in self.visited:
                self.visited.add(identity)
                members = self.interpreter.members(raw)
                self._stack.append(_Frame(identity, chain.from_iterable(members)))
            return LuaValue.object_ref(identity)

        if self.unsupported == "error":
            raise UnsupportedValueKind(kind)
        return LuaValue.opaque(kind, identity)


def snapshot_value(
    interpreter: LuaInterpreter,
    raw: Any,
    unsupported: UnsupportedPolicy = "opaque",
) -> tuple[LuaValue, dict[str, LuaObject]]:
    """Snapshot raw with a fresh pass. Returns (value, objects)."""
    snapshotter = Snapshotter(interpreter, unsupported)
    value = snapshotter.snapshot(raw)
    return value, snapshotter.objects


def build_response(
    interpreter: LuaInterpreter,
    raw: Any,
    unsupported: UnsupportedPolicy = "opaque",
) -> EvalResponse:
    """Build the response for a chunk that ran successfully.

    Raises:
        UnsupportedValueKind: Under the "error" policy.
    """
    value, objects = snapshot_value(interpreter, raw, unsupported)
    if not objects:
        return EvalResponse.scalar(value)
    logger.debug("snapshot_done: value=%r objects=%d", value, len(objects))
    return EvalResponse(success=True, value=value, objects=objects)
