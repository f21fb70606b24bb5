"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest
import pytest_asyncio

from luasnap.core.config import SessionConfig
from luasnap.core.interpreter import LuaInterpreter
from luasnap.core.session import Session


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep LUASNAP_* variables from the developer's shell out of tests."""
    for name in (
        "LUASNAP_UNSUPPORTED",
        "LUASNAP_SANDBOX",
        "LUASNAP_EXPRESSION_FIRST",
        "LUASNAP_LOG_LEVEL",
        "LUASNAP_LOG_FORMAT",
        "LUASNAP_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def interpreter() -> LuaInterpreter:
    """An interpreter owned by the test's thread."""
    return LuaInterpreter(SessionConfig())


@pytest_asyncio.fixture
async def session():
    """A started session, stopped after the test."""
    session = await Session.create(name="test", config=SessionConfig())
    yield session
    await session.stop()
