"""Pure data types for luasnap.core.

These are simple dataclasses with no interpreter coupling. A snapshot built
from them holds no references into the Lua state, so it can be kept,
compared, and serialized after the evaluation that produced it is gone.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ValueKind(Enum):
    """Tags of the closed value model."""

    NIL = "nil"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    OBJECT_REF = "object_ref"
    OPAQUE = "opaque"  # Function, userdata, thread or host object


class SessionState(Enum):
    """Session lifecycle states."""

    CREATED = auto()  # Worker not started yet
    RUNNING = auto()  # Accepting expressions
    CLOSED = auto()  # Stopped, or the worker died


@dataclass(frozen=True)
class LuaValue:
    """A tagged, detached Lua value.

    Attributes:
        kind: Which variant this is.
        data: Payload. bool for BOOLEAN, float for NUMBER, str for STRING,
            the identity string for OBJECT_REF and OPAQUE, None for NIL.
        type_name: Lua type name, only set for OPAQUE values.

    Build instances through the classmethods rather than the constructor.
    """

    kind: ValueKind
    data: bool | float | str | None = None
    type_name: str | None = None

    @classmethod
    def nil(cls) -> LuaValue:
        return NIL

    @classmethod
    def boolean(cls, value: bool) -> LuaValue:
        return cls(ValueKind.BOOLEAN, bool(value))

    @classmethod
    def number(cls, value: float) -> LuaValue:
        # Lua integers are widened, there is no separate integer variant
        return cls(ValueKind.NUMBER, float(value))

    @classmethod
    def string(cls, value: str) -> LuaValue:
        return cls(ValueKind.STRING, value)

    @classmethod
    def object_ref(cls, identity: str) -> LuaValue:
        return cls(ValueKind.OBJECT_REF, identity)

    @classmethod
    def opaque(cls, type_name: str, identity: str) -> LuaValue:
        return cls(ValueKind.OPAQUE, identity, type_name)

    @property
    def is_nil(self) -> bool:
        return self.kind is ValueKind.NIL

    @property
    def is_ref(self) -> bool:
        """True for references into the accompanying objects mapping."""
        return self.kind is ValueKind.OBJECT_REF

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict.

        Non-finite numbers are written as strings ("inf", "-inf", "nan")
        because JSON has no literal for them.
        """
        if self.kind is ValueKind.NIL:
            return {"type": "nil"}
        if self.kind is ValueKind.OPAQUE:
            return {"type": "opaque", "kind": self.type_name, "value": self.data}
        data = self.data
        if self.kind is ValueKind.NUMBER and not math.isfinite(data):  # type: ignore[arg-type]
            data = repr(data)
        return {"type": self.kind.value, "value": data}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LuaValue:
        """Inverse of to_dict.

        Raises:
            ValueError: If the type tag is unknown.
        """
        try:
            kind = ValueKind(data["type"])
        except (KeyError, ValueError) as e:
            raise ValueError(f"Unknown value type: {data.get('type')!r}") from e

        if kind is ValueKind.NIL:
            return NIL
        if kind is ValueKind.OPAQUE:
            return cls.opaque(data["kind"], data["value"])
        if kind is ValueKind.NUMBER:
            return cls.number(float(data["value"]))
        return cls(kind, data["value"])

    def __repr__(self) -> str:
        """Compact representation, e.g. Number(1.0) or ObjectRef('table: 0x1')."""
        if self.kind is ValueKind.NIL:
            return "Nil"
        if self.kind is ValueKind.OPAQUE:
            return f"Opaque({self.type_name!r}, {self.data!r})"
        name = "".join(part.capitalize() for part in self.kind.value.split("_"))
        return f"{name}({self.data!r})"


NIL = LuaValue(ValueKind.NIL)


@dataclass
class LuaObject:
    """Snapshot of one table: its entries in the order Lua enumerated them.

    Keys are neither deduplicated nor sorted. Both keys and values may be
    references to other objects in the same mapping.
    """

    members: list[tuple[LuaValue, LuaValue]] = field(default_factory=list)

    def insert(self, key: LuaValue, value: LuaValue) -> None:
        self.members.append((key, value))

    def get(self, key: LuaValue) -> LuaValue | None:
        """Return the value of the first member with this key, or None."""
        for member_key, member_value in self.members:
            if member_key == key:
                return member_value
        return None

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self):
        return iter(self.members)

    def to_dict(self) -> dict[str, Any]:
        return {"members": [[k.to_dict(), v.to_dict()] for k, v in self.members]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LuaObject:
        return cls(
            members=[
                (LuaValue.from_dict(k), LuaValue.from_dict(v)) for k, v in data.get("members", [])
            ]
        )


@dataclass(frozen=True)
class EvalResponse:
    """Outcome of one evaluation.

    Attributes:
        success: False if the chunk failed to compile or raised.
        value: The top-level result. NIL on failure.
        objects: Every table reachable from value, keyed by identity.
            Empty for scalar results and on failure.
        error: Diagnostic text when success is False.
    """

    success: bool
    value: LuaValue = NIL
    objects: dict[str, LuaObject] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def failure(cls, error: str | None = None) -> EvalResponse:
        return cls(success=False, value=NIL, objects={}, error=error)

    @classmethod
    def scalar(cls, value: LuaValue) -> EvalResponse:
        return cls(success=True, value=value, objects={})

    def resolve(self, value: LuaValue | None = None) -> LuaObject | None:
        """Look up the object a reference points to.

        Args:
            value: Reference to resolve. Defaults to the top-level value.

        Returns:
            The object, or None if value is not a reference.
        """
        value = self.value if value is None else value
        if not value.is_ref:
            return None
        return self.objects.get(value.data)  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, suitable for JSON serialization."""
        return {
            "success": self.success,
            "value": self.value.to_dict(),
            "objects": {identity: obj.to_dict() for identity, obj in self.objects.items()},
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EvalResponse:
        return cls(
            success=bool(data["success"]),
            value=LuaValue.from_dict(data.get("value", {"type": "nil"})),
            objects={
                identity: LuaObject.from_dict(obj)
                for identity, obj in data.get("objects", {}).items()
            },
            error=data.get("error"),
        )
