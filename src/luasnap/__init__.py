"""luasnap - REPL-style Lua evaluation with structured results.

A Session keeps one Lua state alive on its own thread and evaluates
chunks against it. Every result comes back as an EvalResponse: a tagged
value plus a flattened, cycle-safe snapshot of every table reachable from
it, keyed by the table's identity.

Layers:
    core/       Sessions, the Lua wrapper, value model and snapshots
    frontends/  Command line REPL and renderer

Quick Start:
    >>> from luasnap import Session
    >>>
    >>> async with Session() as session:
    ...     response = await session.evaluate("t = {1, 2}; t.self = t; return t")
    ...     obj = response.resolve()
    ...     [key for key, _ in obj]
    [Number(1.0), Number(2.0), String('self')]
"""

from luasnap.__version__ import __version__
from luasnap.core import (
    NIL,
    EvalResponse,
    EvaluationFailure,
    LuaObject,
    LuaSnapError,
    LuaValue,
    Session,
    SessionClosed,
    SessionConfig,
    SessionStartError,
    UnsupportedValueKind,
    ValueKind,
)

__all__ = [
    "__version__",
    "NIL",
    "EvalResponse",
    "EvaluationFailure",
    "LuaObject",
    "LuaSnapError",
    "LuaValue",
    "Session",
    "SessionClosed",
    "SessionConfig",
    "SessionStartError",
    "UnsupportedValueKind",
    "ValueKind",
]
