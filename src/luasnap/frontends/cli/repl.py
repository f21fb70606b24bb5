"""Line-oriented REPL: one line is one expression.

Interactive terminals get a prompt_toolkit prompt with history; piped input
is read line by line so scripts can be fed through stdin.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterator, Callable
from typing import TextIO

from rich.console import Console

from luasnap.core.config import SessionConfig
from luasnap.core.session import Session
from luasnap.core.types import EvalResponse
from luasnap.frontends.cli.render import render_response, response_to_json

EXIT_COMMANDS = frozenset({"exit", "quit"})


async def prompt_lines(prompt: str = "lua> ") -> AsyncIterator[str]:
    """Yield lines typed at an interactive prompt until EOF (Ctrl-D)."""
    from prompt_toolkit import PromptSession
    from prompt_toolkit.history import InMemoryHistory

    prompt_session: PromptSession[str] = PromptSession(history=InMemoryHistory())
    while True:
        try:
            yield await prompt_session.prompt_async(prompt)
        except KeyboardInterrupt:
            # Ctrl-C discards the current line only
            continue
        except EOFError:
            return


async def stream_lines(stream: TextIO) -> AsyncIterator[str]:
    """Yield lines from a (possibly blocking) text stream until EOF."""
    while True:
        line = await asyncio.to_thread(stream.readline)
        if not line:
            return
        yield line.rstrip("\r\n")


async def run_lines(
    session: Session,
    lines: AsyncIterator[str],
    emit: Callable[[EvalResponse], None],
) -> int:
    """Evaluate each line and pass its response to emit.

    Blank lines are skipped; "exit" or "quit" stops early.

    Returns:
        Number of failed evaluations.
    """
    failures = 0
    async for line in lines:
        expression = line.strip()
        if not expression:
            continue
        if expression in EXIT_COMMANDS:
            break
        response = await session.evaluate(expression)
        if not response.success:
            failures += 1
        emit(response)
    return failures


def make_emitter(console: Console, json_output: bool) -> Callable[[EvalResponse], None]:
    if json_output:
        return lambda response: console.print_json(response_to_json(response, indent=None))
    return lambda response: console.print(render_response(response))


async def run_interactive(
    config: SessionConfig | None = None,
    json_output: bool = False,
    stdin: TextIO | None = None,
    console: Console | None = None,
) -> int:
    """Run the REPL against a fresh session.

    Args:
        config: Session settings.
        json_output: Print responses as JSON instead of trees.
        stdin: Input stream. Defaults to sys.stdin.
        console: Output console.

    Returns:
        Number of failed evaluations.
    """
    stdin = stdin or sys.stdin
    console = console or Console()
    emit = make_emitter(console, json_output)
    interactive = stdin.isatty()

    async with Session(name="repl", config=config or SessionConfig.from_env()) as session:
        if interactive:
            console.print("[bold]luasnap[/] - Lua REPL. Ctrl-D or 'exit' to quit.", highlight=False)
            lines = prompt_lines()
        else:
            lines = stream_lines(stdin)
        return await run_lines(session, lines, emit)


async def run_expressions(
    expressions: list[str],
    config: SessionConfig | None = None,
    json_output: bool = False,
    console: Console | None = None,
) -> int:
    """Evaluate expressions in order in one session. Returns failure count."""
    console = console or Console()

    async def _lines() -> AsyncIterator[str]:
        for expression in expressions:
            yield expression

    async with Session(name="eval", config=config or SessionConfig.from_env()) as session:
        return await run_lines(session, _lines(), make_emitter(console, json_output))
