"""Tests for the Snapshotter."""

from __future__ import annotations

import pytest

from luasnap.core.errors import UnsupportedValueKind
from luasnap.core.interpreter import LuaInterpreter
from luasnap.core.snapshot import Snapshotter, build_response, snapshot_value
from luasnap.core.types import NIL, EvalResponse, LuaValue, ValueKind


def S(text: str) -> LuaValue:
    return LuaValue.string(text)


def N(number: float) -> LuaValue:
    return LuaValue.number(number)


class TestScalars:
    """Scalars map directly and collect no objects."""

    @pytest.mark.parametrize(
        ("chunk", "expected"),
        [
            ("return nil", NIL),
            ("return true", LuaValue.boolean(True)),
            ("return false", LuaValue.boolean(False)),
            ("return 7", N(7.0)),
            ("return 0.5", N(0.5)),
            ("return 'hi'", S("hi")),
        ],
    )
    def test_scalar(self, interpreter: LuaInterpreter, chunk: str, expected: LuaValue) -> None:
        value, objects = snapshot_value(interpreter, interpreter.run(chunk))

        assert value == expected
        assert objects == {}

    def test_integer_widened(self, interpreter: LuaInterpreter) -> None:
        value, _ = snapshot_value(interpreter, interpreter.run("return 1"))
        assert value.kind is ValueKind.NUMBER
        assert isinstance(value.data, float)

    def test_invalid_utf8_replaced(self, interpreter: LuaInterpreter) -> None:
        value, _ = snapshot_value(interpreter, interpreter.run("return '\\255ok'"))
        assert value == S("\ufffdok")

    def test_python_values_without_interpreter_types(self, interpreter: LuaInterpreter) -> None:
        snapshotter = Snapshotter(interpreter)
        assert snapshotter.snapshot(None) is NIL
        assert snapshotter.snapshot(True) == LuaValue.boolean(True)
        assert snapshotter.snapshot(b"x") == S("x")


class TestTables:
    """Aggregates are flattened into the objects mapping."""

    def test_empty_table_present(self, interpreter: LuaInterpreter) -> None:
        value, objects = snapshot_value(interpreter, interpreter.run("return {}"))

        assert value.is_ref
        assert list(objects) == [value.data]
        assert objects[value.data].members == []

    def test_members_in_native_order(self, interpreter: LuaInterpreter) -> None:
        value, objects = snapshot_value(interpreter, interpreter.run("return {10, 20, 30}"))

        assert objects[value.data].members == [
            (N(1), N(10)),
            (N(2), N(20)),
            (N(3), N(30)),
        ]

    def test_nested_tables(self, interpreter: LuaInterpreter) -> None:
        raw = interpreter.run("return {inner = {x = true}}")
        value, objects = snapshot_value(interpreter, raw)

        outer = objects[value.data]
        inner_ref = outer.get(S("inner"))
        assert inner_ref is not None and inner_ref.is_ref
        assert objects[inner_ref.data].members == [(S("x"), LuaValue.boolean(True))]
        assert len(objects) == 2

    def test_table_as_key(self, interpreter: LuaInterpreter) -> None:
        raw = interpreter.run("local k = {}; local t = {}; t[k] = 'v'; return t")
        value, objects = snapshot_value(interpreter, raw)

        [(key, member)] = objects[value.data].members
        assert key.is_ref
        assert objects[key.data].members == []
        assert member == S("v")

    def test_shared_table_listed_once(self, interpreter: LuaInterpreter) -> None:
        raw = interpreter.run("local s = {1}; return {a = s, b = s}")
        value, objects = snapshot_value(interpreter, raw)

        outer = objects[value.data]
        assert outer.get(S("a")) == outer.get(S("b"))
        assert len(objects) == 2

    def test_objects_detached_from_interpreter(self, interpreter: LuaInterpreter) -> None:
        interpreter.run("t = {a = 1}")
        value, objects = snapshot_value(interpreter, interpreter.run("return t"))
        interpreter.run("t.a = 2; t.b = 3")

        assert objects[value.data].members == [(S("a"), N(1))]


class TestCycles:
    """Cycles resolve to references, never to recursion."""

    def test_self_reference(self, interpreter: LuaInterpreter) -> None:
        raw = interpreter.run("local t = {}; t.me = t; return t")
        value, objects = snapshot_value(interpreter, raw)

        assert list(objects) == [value.data]
        assert objects[value.data].members == [(S("me"), value)]

    def test_transitive_cycle(self, interpreter: LuaInterpreter) -> None:
        raw = interpreter.run("local a, b = {}, {}; a.b = b; b.a = a; return a")
        value, objects = snapshot_value(interpreter, raw)

        b_ref = objects[value.data].get(S("b"))
        assert b_ref is not None
        assert objects[b_ref.data].get(S("a")) == value
        assert len(objects) == 2

    def test_deep_nesting(self, interpreter: LuaInterpreter) -> None:
        """Nesting deeper than the Python recursion limit is fine."""
        raw = interpreter.run(
            "local root = {}; local t = root; "
            "for i = 1, 5000 do t.next = {}; t = t.next end; return root"
        )
        value, objects = snapshot_value(interpreter, raw)

        assert len(objects) == 5001
        assert value.is_ref

    def test_fresh_state_per_pass(self, interpreter: LuaInterpreter) -> None:
        interpreter.run("t = {1}")
        first = snapshot_value(interpreter, interpreter.run("return t"))
        second = snapshot_value(interpreter, interpreter.run("return t"))

        assert first == second
        assert len(second[1]) == 1


class TestUnsupportedKinds:
    """Functions, coroutines and userdata."""

    def test_function_becomes_opaque(self, interpreter: LuaInterpreter) -> None:
        value, objects = snapshot_value(interpreter, interpreter.run("return print"))

        assert value.kind is ValueKind.OPAQUE
        assert value.type_name == "function"
        assert value.data.startswith("function: ")  # type: ignore[union-attr]
        assert objects == {}

    def test_opaque_member(self, interpreter: LuaInterpreter) -> None:
        raw = interpreter.run("return {f = function() end, co = coroutine.create(print)}")
        value, objects = snapshot_value(interpreter, raw)

        obj = objects[value.data]
        assert obj.get(S("f")).type_name == "function"  # type: ignore[union-attr]
        assert obj.get(S("co")).type_name == "thread"  # type: ignore[union-attr]

    def test_coroutines_keep_own_identity(self, interpreter: LuaInterpreter) -> None:
        raw = interpreter.run(
            "local f = function() end; return {coroutine.create(f), coroutine.create(f)}"
        )
        value, objects = snapshot_value(interpreter, raw)

        first, second = (member for _, member in objects[value.data])
        assert first.kind is ValueKind.OPAQUE
        assert (first.type_name, second.type_name) == ("thread", "thread")
        assert first.data != second.data

    def test_error_policy_names_thread(self, interpreter: LuaInterpreter) -> None:
        raw = interpreter.run("return coroutine.create(print)")
        with pytest.raises(UnsupportedValueKind) as exc_info:
            snapshot_value(interpreter, raw, unsupported="error")
        assert exc_info.value.kind == "thread"

    def test_error_policy_raises(self, interpreter: LuaInterpreter) -> None:
        raw = interpreter.run("return {f = print}")
        with pytest.raises(UnsupportedValueKind) as exc_info:
            snapshot_value(interpreter, raw, unsupported="error")
        assert exc_info.value.kind == "function"

    def test_host_object_opaque(self, interpreter: LuaInterpreter) -> None:
        value = Snapshotter(interpreter).snapshot(object())
        assert value.kind is ValueKind.OPAQUE
        assert value.type_name == "object"


class TestBuildResponse:
    """Tests for build_response."""

    def test_scalar_response(self, interpreter: LuaInterpreter) -> None:
        response = build_response(interpreter, interpreter.run("return 'x'"))
        assert response == EvalResponse(success=True, value=S("x"), objects={})

    def test_table_response(self, interpreter: LuaInterpreter) -> None:
        response = build_response(interpreter, interpreter.run("return {}"))

        assert response.success
        assert response.value.is_ref
        assert response.resolve() is not None
        assert response.error is None
