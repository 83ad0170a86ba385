"""
Host loop interface
===================

A worker queue never owns a thread. It runs inside a single threaded cooperative
scheduler and needs only a few primitives from it. Every implementation guarantees
that callbacks handed to :code:`defer_next` run one at a time and in the order they
were deferred.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable

LoopCallback = Callable[[], Any]


class HostLoop(ABC):
    """Interface a worker queue needs from its scheduler"""

    @abstractmethod
    def defer_next(self, callback: LoopCallback) -> None:
        """Run :code:`callback` once on a later tick, after everything deferred before it.

        Must be called from the loop's own thread.
        """

    @abstractmethod
    def on_own_thread(self) -> bool:
        """Return whether the calling code runs inside the loop's single worker context."""

    @abstractmethod
    def call_threadsafe(self, callback: LoopCallback) -> None:
        """Hand :code:`callback` to the loop from any thread."""

    @abstractmethod
    def add_timer(self, delay: float, callback: LoopCallback) -> Any:
        """Run :code:`callback` once after :code:`delay` seconds."""

    def schedule(self, callback: LoopCallback) -> None:
        """Run :code:`callback` now if already on the loop, otherwise hand it over to the loop.

        This is the way to reach a worker queue from a foreign thread, e.g.
        :code:`loop.schedule(queue.close)`.
        """
        if self.on_own_thread():
            callback()
        else:
            self.call_threadsafe(callback)
