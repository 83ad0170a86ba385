"""
Manual host loop
================

A deterministic host loop driven by the caller. It keeps a virtual clock, so timers
fire without real sleeping, and it makes the tick structure explicit:

..  code-block:: python

    loop = ManualHostLoop()
    queue = WorkerQueue(handler, on_done, loop=loop)
    queue.push(1)
    loop.run_until_idle()

Callbacks deferred while a tick runs are executed in the next tick. Exceptions raised
by callbacks are not caught, they propagate out of :code:`run_once`.
"""

import heapq
import itertools
import logging
import threading
from collections import deque
from queue import Empty, SimpleQueue

from loopqueue.abc.host_loop import HostLoop, LoopCallback

logger = logging.getLogger("ManualHostLoop")


class ManualHostLoop(HostLoop):
    """Deterministic single threaded scheduler with a virtual clock"""

    def __init__(self) -> None:
        self._owner = threading.get_ident()
        self._ready: deque[LoopCallback] = deque()
        self._timers: list[tuple[float, int, LoopCallback]] = []
        self._sequence = itertools.count()
        self._foreign: SimpleQueue[LoopCallback] = SimpleQueue()
        self.time = 0.0
        """virtual time in seconds"""
        self.ticks = 0
        """number of ticks run so far"""

    def defer_next(self, callback: LoopCallback) -> None:
        self._ready.append(callback)

    def on_own_thread(self) -> bool:
        return threading.get_ident() == self._owner

    def call_threadsafe(self, callback: LoopCallback) -> None:
        self._foreign.put(callback)

    def add_timer(self, delay: float, callback: LoopCallback) -> None:
        heapq.heappush(self._timers, (self.time + delay, next(self._sequence), callback))

    @property
    def idle(self) -> bool:
        """True if neither callbacks nor timers are waiting"""
        return not self._ready and not self._timers and self._foreign.empty()

    def run_once(self) -> int:
        """Run one tick and return the number of callbacks it executed.

        A tick first collects callbacks handed over from other threads and due timers,
        then runs every callback that was ready when the tick started.
        """
        self._collect_foreign()
        while self._timers and self._timers[0][0] <= self.time:
            _, _, callback = heapq.heappop(self._timers)
            self._ready.append(callback)
        count = len(self._ready)
        for _ in range(count):
            callback = self._ready.popleft()
            callback()
        self.ticks += 1
        return count

    def advance(self, seconds: float) -> None:
        """Move the virtual clock forward without running anything."""
        self.time += seconds

    def run_until_idle(self, max_ticks: int = 100_000) -> int:
        """Tick until nothing is left, jumping the clock to the next timer when idle.

        Returns the number of ticks run. Raises :code:`RuntimeError` if the loop does
        not settle within :code:`max_ticks`.
        """
        start = self.ticks
        while not self.idle:
            if self.ticks - start >= max_ticks:
                raise RuntimeError(f"ManualHostLoop did not settle within {max_ticks} ticks")
            if not self._ready and self._foreign.empty() and self._timers:
                self.time = max(self.time, self._timers[0][0])
            self.run_once()
        logger.debug("idle after %d ticks at %.6f", self.ticks - start, self.time)
        return self.ticks - start

    def _collect_foreign(self) -> None:
        while True:
            try:
                self._ready.append(self._foreign.get_nowait())
            except Empty:
                return
