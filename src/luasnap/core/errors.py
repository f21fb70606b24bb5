"""luasnap error types.

Only SessionClosed and SessionStartError ever reach a caller of
Session.evaluate/start as exceptions. The other two are raised on the
worker thread and folded into a failed EvalResponse for the expression that
caused them.
"""

from __future__ import annotations


class LuaSnapError(Exception):
    """Base error for luasnap operations."""


class EvaluationFailure(LuaSnapError):
    """A chunk failed to compile or raised while running.

    The message is the interpreter's diagnostic text.
    """


class UnsupportedValueKind(LuaSnapError):
    """A result contained a value kind the snapshot model does not cover.

    Only raised when the session is configured with unsupported="error".
    The default policy represents such values as OPAQUE instead.
    """

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unsupported value kind: {kind}")
        self.kind = kind


class SessionClosed(LuaSnapError):
    """The session is not accepting expressions.

    Raised when:
    - evaluate() is called before start()
    - evaluate() is called after stop()
    - the worker thread died, failing every pending request
    """


class SessionStartError(LuaSnapError):
    """The interpreter could not be created on the worker thread."""
