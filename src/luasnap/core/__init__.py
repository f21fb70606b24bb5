"""Core - evaluation sessions and value snapshots.

This module contains no knowledge of terminals, rendering or any transport.

Architecture:
    types           Pure data types (LuaValue, LuaObject, EvalResponse)
    errors          Exception taxonomy
    config          SessionConfig
    interpreter     LuaInterpreter (single-thread wrapper around lupa)
    snapshot        Snapshotter (cycle-safe table flattening)
    session/        Session (worker thread bridge)
    logging_config  Logging setup for applications
"""

from luasnap.core.config import SessionConfig
from luasnap.core.errors import (
    EvaluationFailure,
    LuaSnapError,
    SessionClosed,
    SessionStartError,
    UnsupportedValueKind,
)
from luasnap.core.interpreter import LuaInterpreter
from luasnap.core.session import Session
from luasnap.core.snapshot import Snapshotter, build_response, snapshot_value
from luasnap.core.types import (
    NIL,
    EvalResponse,
    LuaObject,
    LuaValue,
    SessionState,
    ValueKind,
)

__all__ = [
    # Types
    "NIL",
    "EvalResponse",
    "LuaObject",
    "LuaValue",
    "SessionState",
    "ValueKind",
    # Errors
    "EvaluationFailure",
    "LuaSnapError",
    "SessionClosed",
    "SessionStartError",
    "UnsupportedValueKind",
    # Components
    "LuaInterpreter",
    "Session",
    "SessionConfig",
    "Snapshotter",
    "build_response",
    "snapshot_value",
]
