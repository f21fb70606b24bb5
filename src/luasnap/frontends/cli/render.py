"""Render EvalResponse objects for people (rich tree) or programs (JSON)."""

from __future__ import annotations

import json
import math

from rich.console import RenderableType
from rich.text import Text
from rich.tree import Tree

from luasnap.core.types import EvalResponse, LuaValue, ValueKind


def format_value(value: LuaValue) -> str:
    """One-line Lua-flavoured text for a value."""
    kind = value.kind
    if kind is ValueKind.NIL:
        return "nil"
    if kind is ValueKind.BOOLEAN:
        return "true" if value.data else "false"
    if kind is ValueKind.NUMBER:
        number = float(value.data)  # type: ignore[arg-type]
        if math.isnan(number):
            return "nan"
        if math.isinf(number):
            return "inf" if number > 0 else "-inf"
        return format(number, ".14g")
    if kind is ValueKind.STRING:
        return json.dumps(value.data, ensure_ascii=False)
    if kind is ValueKind.OPAQUE:
        return f"<{value.data}>"
    return str(value.data)


def _style(value: LuaValue) -> str:
    return {
        ValueKind.NIL: "dim",
        ValueKind.BOOLEAN: "magenta",
        ValueKind.NUMBER: "cyan",
        ValueKind.STRING: "green",
        ValueKind.OBJECT_REF: "bold blue",
        ValueKind.OPAQUE: "yellow",
    }[value.kind]


def _label(value: LuaValue) -> Text:
    return Text(format_value(value), style=_style(value))


def render_response(response: EvalResponse) -> RenderableType:
    """Build a rich renderable for a response.

    Tables are expanded from the top-level value downward, depth first. A
    table that was already expanded earlier in that order (including by its
    own ancestors) is shown as a reference marked "(seen)".
    """
    if not response.success:
        message = Text("error", style="bold red")
        if response.error:
            message.append(f": {response.error}", style="red")
        return message

    if not response.value.is_ref:
        return _label(response.value)

    tree = Tree(_label(response.value))
    expanded: set[str] = set()
    _expand(response, response.value, tree, expanded)
    return tree


def _expand(response: EvalResponse, ref: LuaValue, node: Tree, expanded: set[str]) -> None:
    # Explicit stack: snapshots may be deeper than the recursion limit
    stack = [(ref, node)]
    while stack:
        current, branch = stack.pop()
        identity = current.data
        obj = response.resolve(current)
        if obj is None:
            continue
        if identity in expanded:
            branch.label.append("  (seen)", style="dim")  # type: ignore[union-attr]
            continue
        expanded.add(identity)  # type: ignore[arg-type]
        if not obj.members:
            branch.add(Text("(empty)", style="dim"))
            continue

        children = []
        for key, value in obj:
            label = Text("[")
            label.append_text(_label(key))
            label.append("] = ")
            label.append_text(_label(value))
            child = branch.add(label)
            if value.is_ref:
                children.append((value, child))
        # Reversed so members expand in their listed order
        stack.extend(reversed(children))


def response_to_json(response: EvalResponse, indent: int | None = 2) -> str:
    return json.dumps(response.to_dict(), indent=indent, ensure_ascii=False)
