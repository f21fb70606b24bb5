"""LuaInterpreter - one Lua state and the helpers that read values out of it.

NOT THREAD-SAFE: an instance must be created, used and dropped on a single
thread. Session does that on its worker thread; nothing else should hold
one while a session is running.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import lupa

from luasnap.core.config import SessionConfig
from luasnap.core.errors import EvaluationFailure

logger = logging.getLogger(__name__)

# Type names and identities are read on the Lua side: lupa hands an
# unstarted coroutine to Python as its body function, so neither survives
# the crossing.
# Library functions are captured as upvalues so scripts that reassign
# string.format or tostring cannot change how identities are computed.
# "%p" (Lua 5.4+) ignores __tostring and __name; older Luas fall back to tostring.
_HELPERS_SOURCE = b"""
local format, tostring, pcall, type, next = string.format, tostring, pcall, type, next

local function identity(value)
    local ok, address = pcall(format, "%p", value)
    if ok and address ~= "(null)" then
        return type(value) .. ": " .. address
    end
    return tostring(value)
end

local function describe(value)
    local kind = type(value)
    if kind == "nil" or kind == "boolean" or kind == "number" or kind == "string" then
        return kind, nil
    end
    return kind, identity(value)
end

local function capture(f)
    local value = f()
    return value, describe(value)
end

local function entries(t)
    local flat, n = {}, 0
    for k, v in next, t do
        local key_kind, key_id = describe(k)
        local value_kind, value_id = describe(v)
        flat[n + 1], flat[n + 2], flat[n + 3] = k, key_kind, key_id
        flat[n + 4], flat[n + 5], flat[n + 6] = v, value_kind, value_id
        n = n + 6
    end
    return flat, n
end

return capture, describe, entries
"""

SANDBOX_REMOVED = ("io", "os", "debug", "package", "require", "dofile", "loadfile")


def decode_text(raw: bytes | str) -> str:
    """Decode a Lua string. Lua strings are bytes; invalid UTF-8 is replaced."""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


@dataclass(frozen=True)
class RawValue:
    """A value as lupa handed it over, with its Lua type and identity.

    Attributes:
        value: The lupa-side object. Only meaningful for scalars and tables.
        type_name: Lua type name ("table", "thread", ...), or the Python
            type name for host objects that never lived in Lua.
        identity: Identity text for reference kinds, None for scalars.
    """

    value: Any
    type_name: str
    identity: str | None = None

    @property
    def is_table(self) -> bool:
        return self.type_name == "table"


class LuaInterpreter:
    """Owns one ``lupa.LuaRuntime``.

    Strings come back as bytes (``encoding=None``) and are decoded by the
    snapshot code, so a chunk returning binary data never raises while its
    result is converted.
    """

    def __init__(self, config: SessionConfig | None = None) -> None:
        self.config = config or SessionConfig()
        self._lua = lupa.LuaRuntime(
            encoding=None,
            register_eval=False,
            register_builtins=False,
        )
        self._capture, self._describe, self._entries = self._lua.execute(_HELPERS_SOURCE)
        if self.config.sandbox:
            self._lua.execute(
                "; ".join(f"{name} = nil" for name in SANDBOX_REMOVED).encode("ascii")
            )
        logger.debug(
            "interpreter_created: version=%s sandbox=%s",
            self.version,
            self.config.sandbox,
        )

    @property
    def version(self) -> str:
        return decode_text(self._lua.lua_implementation)

    def compile(self, chunk: str) -> Any:
        """Compile a chunk into a callable Lua function.

        With expression_first, "return <chunk>" is tried first so bare
        expressions such as "1 + 1" produce a value. Statements like
        "x = 1" fail that attempt and are compiled as a block instead.

        Raises:
            EvaluationFailure: If the chunk is not valid Lua.
        """
        source = chunk.encode("utf-8")
        if self.config.expression_first:
            try:
                return self._lua.compile(b"return " + source)
            except lupa.LuaSyntaxError:
                pass
        try:
            return self._lua.compile(source)
        except lupa.LuaSyntaxError as e:
            raise EvaluationFailure(decode_text(str(e))) from e

    def run(self, chunk: str) -> RawValue:
        """Compile and run a chunk against the persistent state.

        Returns:
            The chunk's first return value (nil when it returns nothing).

        Raises:
            EvaluationFailure: On syntax or runtime errors.
        """
        function = self.compile(chunk)
        try:
            value, kind, identity = self._capture(function)
        except lupa.LuaError as e:
            raise EvaluationFailure(decode_text(str(e))) from e
        return _raw(value, kind, identity)

    def describe(self, value: Any) -> RawValue:
        """Describe a value that is already on the Python side.

        Python scalars map to their Lua kinds and lupa objects are described
        by Lua. Host (Python) objects have no Lua address; their id() is used.
        """
        if value is None:
            return RawValue(None, "nil")
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return RawValue(value, "boolean")
        if isinstance(value, (int, float)):
            return RawValue(value, "number")
        if isinstance(value, (bytes, str)):
            return RawValue(value, "string")
        if lupa.lua_type(value) is None:
            name = type(value).__name__
            return RawValue(value, name, f"{name}: {id(value):#x}")
        kind, identity = self._describe(value)
        return _raw(value, kind, identity)

    def members(self, table: RawValue) -> Iterator[tuple[RawValue, RawValue]]:
        """Raw key/value pairs of a table in Lua's next() order."""
        flat, count = self._entries(table.value)
        for i in range(1, count + 1, 6):
            key = _raw(flat[i], flat[i + 1], flat[i + 2])
            value = _raw(flat[i + 3], flat[i + 4], flat[i + 5])
            yield key, value


def _raw(value: Any, kind: bytes | str, identity: bytes | str | None) -> RawValue:
    return RawValue(value, decode_text(kind), None if identity is None else decode_text(identity))
