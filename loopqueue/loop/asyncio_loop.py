"""Host loop adapter for :code:`asyncio` event loops"""

import asyncio
from asyncio import AbstractEventLoop

from loopqueue.abc.host_loop import HostLoop, LoopCallback
from loopqueue.framework.exceptions import NotOnLoopError


class AsyncioHostLoop(HostLoop):
    """Runs worker queue transitions on an asyncio event loop.

    The loop's own thread is the thread on which :code:`loop` is currently running.
    Exceptions raised by deferred callbacks are reported by the loop's exception handler.
    """

    def __init__(self, loop: AbstractEventLoop) -> None:
        self._loop = loop

    @classmethod
    def current(cls) -> "AsyncioHostLoop":
        """Bind to the event loop running in the current thread."""
        try:
            return cls(asyncio.get_running_loop())
        except RuntimeError as error:
            raise NotOnLoopError("AsyncioHostLoop.current") from error

    @property
    def loop(self) -> AbstractEventLoop:
        """the wrapped event loop"""
        return self._loop

    def defer_next(self, callback: LoopCallback) -> None:
        self._loop.call_soon(callback)

    def on_own_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def call_threadsafe(self, callback: LoopCallback) -> None:
        self._loop.call_soon_threadsafe(callback)

    def add_timer(self, delay: float, callback: LoopCallback) -> asyncio.TimerHandle:
        return self._loop.call_later(delay, callback)

    def __repr__(self) -> str:
        return f"AsyncioHostLoop({self._loop!r})"
