"""Session - one persistent Lua state behind an async API.

The Lua state is not thread-safe and its calls block, so it lives on a
dedicated worker thread for the whole life of the session. The event loop
side never touches it:

    caller --evaluate()--> request queue --> worker thread --> LuaInterpreter
    caller <--future------ call_soon_threadsafe <-- EvalResponse <--+

Requests are served strictly one at a time in submission order. Each
request carries its own future, so every caller gets the response to its
own expression even when several tasks submit concurrently.

Example:
    >>> from luasnap.core.session import Session
    >>>
    >>> async with Session(name="scratch") as session:
    ...     await session.evaluate("x = {}")
    ...     response = await session.evaluate("x.a = 1; return x")
    ...     response.resolve().get(LuaValue.string("a"))
    Number(1.0)

There is no timeout or cancellation: an expression that never finishes
blocks the session. Cancelling the awaiting task only drops the response.
"""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any

from luasnap.core.config import SessionConfig
from luasnap.core.errors import (
    EvaluationFailure,
    SessionClosed,
    SessionStartError,
    UnsupportedValueKind,
)
from luasnap.core.interpreter import LuaInterpreter
from luasnap.core.snapshot import build_response
from luasnap.core.types import EvalResponse, SessionState

logger = logging.getLogger(__name__)

# Queued behind in-flight work by stop()
_STOP = None


@dataclass
class _Request:
    expression: str
    future: asyncio.Future[EvalResponse]
    loop: asyncio.AbstractEventLoop


def _resolve(future: asyncio.Future[Any], result: Any) -> None:
    # The awaiting task may have been cancelled in the meantime
    if future.done():
        return
    if isinstance(result, BaseException):
        future.set_exception(result)
    else:
        future.set_result(result)


@dataclass
class Session:
    """Owns one Lua interpreter on a dedicated thread.

    Attributes:
        name: Session name, used for the worker thread name and in logs.
        config: Interpreter and snapshot settings.
        evaluations: Number of expressions completed so far.

    Example:
        >>> session = await Session.create(name="calc")
        >>> (await session.evaluate("1 + 1")).value
        Number(2.0)
        >>> await session.stop()
    """

    name: str = "default"
    config: SessionConfig = field(default_factory=SessionConfig.from_env)
    evaluations: int = field(default=0, init=False)

    _state: SessionState = field(default=SessionState.CREATED, init=False)
    _requests: queue.SimpleQueue[_Request | None] = field(
        default_factory=queue.SimpleQueue, init=False
    )
    _thread: threading.Thread | None = field(default=None, init=False)
    # Guards _state against the queue, so no request is enqueued after the
    # worker has drained it for the last time.
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    @classmethod
    async def create(cls, name: str = "default", config: SessionConfig | None = None) -> Session:
        """Create and start a session."""
        session = cls(name=name, config=config or SessionConfig.from_env())
        await session.start()
        return session

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SessionState.RUNNING

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start the worker thread and wait until its interpreter is ready.

        Raises:
            SessionClosed: If the session was already stopped.
            SessionStartError: If the interpreter could not be created.
        """
        if self._state is SessionState.RUNNING:
            return
        if self._state is SessionState.CLOSED:
            raise SessionClosed(f"Session '{self.name}' is closed and cannot be restarted")

        loop = asyncio.get_running_loop()
        ready: asyncio.Future[None] = loop.create_future()
        self._thread = threading.Thread(
            target=self._worker_main,
            args=(loop, ready),
            name=f"luasnap-{self.name}",
        )
        self._thread.start()

        try:
            await ready
        except Exception as e:
            await asyncio.to_thread(self._thread.join)
            self._thread = None
            self._state = SessionState.CLOSED
            raise SessionStartError(f"Failed to start session '{self.name}': {e}") from e

        with self._lock:
            self._state = SessionState.RUNNING
        logger.info("session_started: name=%s", self.name)

    async def stop(self) -> None:
        """Drain queued expressions, then stop and join the worker.

        Expressions submitted before stop() still run and their callers
        get responses. Safe to call more than once.
        """
        with self._lock:
            if self._state is SessionState.RUNNING:
                self._requests.put(_STOP)
            self._state = SessionState.CLOSED

        thread = self._thread
        if thread is None:
            return
        await asyncio.to_thread(thread.join)
        self._thread = None
        logger.info("session_stopped: name=%s evaluations=%d", self.name, self.evaluations)

    async def __aenter__(self) -> Session:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # =========================================================================
    # Evaluation
    # =========================================================================

    async def evaluate(self, expression: str) -> EvalResponse:
        """Evaluate a chunk against the session's persistent state.

        Does not block the event loop; suspends until this expression's
        response is ready. Compile errors, runtime errors and unsupported
        result kinds come back as a response with success=False.

        Args:
            expression: Lua source, passed through unvalidated.

        Returns:
            The response for this expression.

        Raises:
            SessionClosed: If the session is not running.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[EvalResponse] = loop.create_future()
        with self._lock:
            if self._state is not SessionState.RUNNING:
                raise SessionClosed(f"Session '{self.name}' is not running")
            self._requests.put(_Request(expression, future, loop))
        return await future

    # =========================================================================
    # Worker thread
    # =========================================================================

    def _worker_main(self, loop: asyncio.AbstractEventLoop, ready: asyncio.Future[None]) -> None:
        """Thread body. The interpreter never leaves this function."""
        try:
            interpreter = LuaInterpreter(self.config)
        except Exception as e:
            logger.exception("interpreter_start_failed: session=%s", self.name)
            loop.call_soon_threadsafe(_resolve, ready, e)
            return
        loop.call_soon_threadsafe(_resolve, ready, None)

        request: _Request | None = None
        try:
            while True:
                request = self._requests.get()
                if request is _STOP:
                    break
                response = self._evaluate_sync(interpreter, request.expression)
                self.evaluations += 1
                self._deliver(request, response)
                request = None
        except BaseException:
            logger.exception("worker_died: session=%s", self.name)
            if request is not None:
                self._deliver(request, SessionClosed(f"Session '{self.name}' worker died"))
            self._fail_pending()
            raise
        finally:
            del interpreter

    def _evaluate_sync(self, interpreter: LuaInterpreter, expression: str) -> EvalResponse:
        """Run one expression. Never raises for problems with the expression."""
        logger.debug("evaluation_start: session=%s expression=%r", self.name, expression)
        try:
            raw = interpreter.run(expression)
            response = build_response(interpreter, raw, self.config.unsupported)
        except (EvaluationFailure, UnsupportedValueKind) as e:
            response = EvalResponse.failure(str(e))
        except Exception as e:
            # Failures inside lupa or the snapshot code stay local to this expression
            logger.exception("evaluation_error: session=%s", self.name)
            response = EvalResponse.failure(f"{type(e).__name__}: {e}")
        logger.debug(
            "evaluation_done: session=%s success=%s objects=%d",
            self.name,
            response.success,
            len(response.objects),
        )
        return response

    def _deliver(self, request: _Request, result: EvalResponse | BaseException) -> None:
        try:
            request.loop.call_soon_threadsafe(_resolve, request.future, result)
        except RuntimeError:
            # Caller's event loop is closed; nobody is waiting for this
            logger.warning("response_dropped: session=%s loop closed", self.name)

    def _fail_pending(self) -> None:
        with self._lock:
            self._state = SessionState.CLOSED
            while True:
                try:
                    request = self._requests.get_nowait()
                except queue.Empty:
                    break
                if request is not _STOP:
                    self._deliver(request, SessionClosed(f"Session '{self.name}' worker died"))
