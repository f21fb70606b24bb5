"""Session configuration.

Values resolve with priority: explicit argument > environment > default.

Environment Variables:
    LUASNAP_UNSUPPORTED: "opaque" or "error"
    LUASNAP_SANDBOX: Remove io/os/debug/package access ("1", "true", "yes")
    LUASNAP_EXPRESSION_FIRST: Try "return <chunk>" before the plain chunk
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

UnsupportedPolicy = Literal["opaque", "error"]

UNSUPPORTED_POLICIES = ("opaque", "error")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for one Session.

    Attributes:
        unsupported: What to do with functions, userdata, coroutines and host
            objects in a result. "opaque" keeps them as OPAQUE placeholders,
            "error" fails that one evaluation.
        sandbox: Strip file, process, debug and module loading access from
            the Lua globals when the interpreter is created.
        expression_first: Evaluate "1 + 1" as an expression before treating
            input as a statement block, the way an interactive prompt does.
    """

    unsupported: UnsupportedPolicy = "opaque"
    sandbox: bool = False
    expression_first: bool = True

    def __post_init__(self) -> None:
        if self.unsupported not in UNSUPPORTED_POLICIES:
            raise ValueError(
                f"unsupported must be one of {', '.join(UNSUPPORTED_POLICIES)}, "
                f"got {self.unsupported!r}"
            )

    @classmethod
    def from_env(
        cls,
        unsupported: str | None = None,
        sandbox: bool | None = None,
        expression_first: bool | None = None,
    ) -> SessionConfig:
        """Build a config from arguments, falling back to LUASNAP_* variables.

        Raises:
            ValueError: If a value (argument or environment) is invalid.
        """
        if unsupported is None:
            unsupported = os.environ.get("LUASNAP_UNSUPPORTED") or "opaque"

        if sandbox is None:
            env_sandbox = os.environ.get("LUASNAP_SANDBOX")
            sandbox = _parse_bool("LUASNAP_SANDBOX", env_sandbox) if env_sandbox else False

        if expression_first is None:
            env_first = os.environ.get("LUASNAP_EXPRESSION_FIRST")
            expression_first = (
                _parse_bool("LUASNAP_EXPRESSION_FIRST", env_first) if env_first else True
            )

        return cls(
            unsupported=unsupported.strip().lower(),  # type: ignore[arg-type]
            sandbox=sandbox,
            expression_first=expression_first,
        )
