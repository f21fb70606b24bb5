"""Tests for the value model."""

from __future__ import annotations

import json
import math

import pytest

from luasnap.core.types import NIL, EvalResponse, LuaObject, LuaValue, ValueKind


class TestLuaValue:
    """Tests for LuaValue construction and equality."""

    def test_nil_is_singleton(self) -> None:
        assert LuaValue.nil() is NIL
        assert NIL.is_nil
        assert NIL.kind is ValueKind.NIL

    def test_number_widens_integers(self) -> None:
        value = LuaValue.number(3)
        assert value.data == 3.0
        assert isinstance(value.data, float)
        assert value == LuaValue.number(3.0)

    def test_boolean_not_equal_to_number(self) -> None:
        """True and 1.0 are different variants."""
        assert LuaValue.boolean(True) != LuaValue.number(1)

    def test_object_ref(self) -> None:
        ref = LuaValue.object_ref("table: 0x1")
        assert ref.is_ref
        assert ref.data == "table: 0x1"
        assert not LuaValue.string("table: 0x1").is_ref

    def test_opaque_keeps_type_name(self) -> None:
        value = LuaValue.opaque("function", "function: 0x2")
        assert value.kind is ValueKind.OPAQUE
        assert value.type_name == "function"
        assert value.data == "function: 0x2"

    def test_repr(self) -> None:
        assert repr(NIL) == "Nil"
        assert repr(LuaValue.number(1)) == "Number(1.0)"
        assert repr(LuaValue.object_ref("table: 0x1")) == "ObjectRef('table: 0x1')"
        assert repr(LuaValue.opaque("thread", "thread: 0x3")) == "Opaque('thread', 'thread: 0x3')"

    def test_hashable(self) -> None:
        assert len({LuaValue.string("a"), LuaValue.string("a"), NIL}) == 2


class TestLuaValueSerialization:
    """Tests for to_dict/from_dict."""

    @pytest.mark.parametrize(
        "value",
        [
            NIL,
            LuaValue.boolean(False),
            LuaValue.number(2.5),
            LuaValue.string("héllo"),
            LuaValue.object_ref("table: 0xabc"),
            LuaValue.opaque("userdata", "userdata: 0x9"),
        ],
    )
    def test_round_trip(self, value: LuaValue) -> None:
        assert LuaValue.from_dict(value.to_dict()) == value

    def test_infinite_number_is_json_safe(self) -> None:
        data = LuaValue.number(math.inf).to_dict()
        assert data == {"type": "number", "value": "inf"}
        json.dumps(data, allow_nan=False)
        assert LuaValue.from_dict(data).data == math.inf

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown value type"):
            LuaValue.from_dict({"type": "function"})


class TestLuaObject:
    """Tests for LuaObject."""

    def test_empty(self) -> None:
        obj = LuaObject()
        assert len(obj) == 0
        assert obj.members == []

    def test_insert_keeps_order_and_duplicates(self) -> None:
        obj = LuaObject()
        obj.insert(LuaValue.string("b"), LuaValue.number(1))
        obj.insert(LuaValue.string("a"), LuaValue.number(2))
        obj.insert(LuaValue.string("b"), LuaValue.number(3))

        assert [k.data for k, _ in obj] == ["b", "a", "b"]

    def test_get_returns_first_match(self) -> None:
        obj = LuaObject()
        obj.insert(LuaValue.string("k"), LuaValue.number(1))
        obj.insert(LuaValue.string("k"), LuaValue.number(2))

        assert obj.get(LuaValue.string("k")) == LuaValue.number(1)
        assert obj.get(LuaValue.string("missing")) is None


class TestEvalResponse:
    """Tests for EvalResponse."""

    def test_failure(self) -> None:
        response = EvalResponse.failure("boom")
        assert response.success is False
        assert response.value is NIL
        assert response.objects == {}
        assert response.error == "boom"

    def test_scalar(self) -> None:
        response = EvalResponse.scalar(LuaValue.number(1))
        assert response == EvalResponse(success=True, value=LuaValue.number(1), objects={})

    def test_resolve(self) -> None:
        obj = LuaObject([(LuaValue.string("a"), LuaValue.number(1))])
        response = EvalResponse(
            success=True,
            value=LuaValue.object_ref("table: 0x1"),
            objects={"table: 0x1": obj},
        )

        assert response.resolve() is obj
        assert response.resolve(LuaValue.number(1)) is None

    def test_dict_round_trip(self) -> None:
        obj = LuaObject([(LuaValue.string("self"), LuaValue.object_ref("table: 0x1"))])
        response = EvalResponse(
            success=True,
            value=LuaValue.object_ref("table: 0x1"),
            objects={"table: 0x1": obj},
        )

        data = json.loads(json.dumps(response.to_dict()))

        assert EvalResponse.from_dict(data) == response
