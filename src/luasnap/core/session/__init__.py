"""Session - persistent Lua state behind an async request/response API.

Example:
    >>> from luasnap.core.session import Session
    >>>
    >>> session = await Session.create(name="my-session")
    >>> await session.evaluate("x = 1")
    >>> response = await session.evaluate("return x")
    >>> response.value
    Number(1.0)
    >>> await session.stop()
"""

from luasnap.core.session.session import Session

__all__ = ["Session"]
