"""
Worker queue
============

A :code:`WorkerQueue` hands every pushed value, wrapped in a :code:`Task`, to a handler
while keeping at most :code:`concurrency` handlers in flight. The handler signals the
end of its work by calling :code:`task.signal_done()`, possibly ticks or timers later.

..  code-block:: python
    :caption: Summing values with four handlers in flight

    total = 0

    def add(value, task):
        nonlocal total
        total += value
        task.signal_done()

    queue = WorkerQueue(add, lambda: print(total), concurrency=4)
    for value in range(100):
        queue.push(value)
    queue.close()

Instead of pushing, a producer can be asked for values whenever a slot is idle and
nothing is buffered. The pull callback either pushes new values or closes the queue:

..  code-block:: python
    :caption: Pulling values from an iterator

    values = iter(range(100))

    @queue.register_pull_callback
    def produce(queue):
        value = next(values, None)
        if value is None:
            queue.close()
        else:
            queue.push(value)

All state is owned by the host loop. Public methods with side effects have to be called
on the loop's own thread and raise :code:`NotOnLoopError` otherwise. Other threads reach
the queue through :code:`HostLoop.schedule`.

Dispatch policy
---------------

:code:`push` reserves a free slot synchronously if nothing is buffered, the handler itself
always runs on the next tick. Every other change (a task signaling completion, a raised
limit, :code:`close`, :code:`run` or a new pull callback) requests one evaluation of the
queue on the next tick. An evaluation performs at most one step, either dispatching the
oldest buffered value, inviting the producer once, or firing the completion callback, and
requests another evaluation if more progress is possible. Requests are coalesced, so at
most one evaluation is waiting at any time.

Exceptions raised by the handler, the completion callback or the pull callback are not
caught. They propagate to the host loop's own error handling.
"""

import logging
from collections import deque
from functools import partial
from typing import Any, Callable

from attrs import define, field, validators
from prometheus_client import CollectorRegistry

from loopqueue.abc.component import Component
from loopqueue.abc.host_loop import HostLoop
from loopqueue.framework.exceptions import (
    InvalidArgumentError,
    NotOnLoopError,
    QueueClosedError,
)
from loopqueue.framework.task import Task
from loopqueue.loop.asyncio_loop import AsyncioHostLoop
from loopqueue.metrics.metrics import CounterMetric, GaugeMetric, HistogramMetric
from loopqueue.util.callback import Callback
from loopqueue.util.defaults import DEFAULT_CONCURRENCY, DEFAULT_QUEUE_NAME

logger = logging.getLogger("WorkerQueue")

Handler = Callable[[Any, Task], Any]


def validate_concurrency(value: Any) -> int:
    """Return :code:`value` if it is a positive integer.

    Raises
    ------
    InvalidArgumentError
        For anything else, booleans included.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidArgumentError(f"concurrency has to be a positive integer, got {value!r}")
    return value


class WorkerQueue(Component):
    """Bounded concurrency dispatcher running on a host loop

    Parameters
    ----------
    handler : Callable[[Any, Task], Any]
        Called once per dispatched value with the value and its task.
    on_done : Callable, optional
        Called once the queue is closed and every task is done. Takes no arguments or
        the queue.
    concurrency : int
        Initial number of handlers allowed in flight, by default 1.
    on_empty : Callable, optional
        Pull callback, see :code:`register_pull_callback`.
    loop : HostLoop, optional
        The host loop, by default the running asyncio event loop.
    name : str
        Name used in logs and metric labels.
    registry : CollectorRegistry, optional
        Prometheus registry the queue metrics are registered in, by default none.

    Raises
    ------
    InvalidArgumentError
        If the handler is missing or not callable, a callback has an unsupported
        signature or the concurrency is not a positive integer.
    NotOnLoopError
        If no loop is given and no asyncio event loop is running.
    """

    @define(kw_only=True, frozen=True)
    class Config:
        """Worker queue configuration

        .. code-block:: yaml

            queue:
              name: downloads
              concurrency: 4
        """

        name: str = field(validator=validators.instance_of(str), default=DEFAULT_QUEUE_NAME)
        """Name of the queue, used in logs and as metric label"""

        concurrency: int = field(
            validator=lambda _, __, value: validate_concurrency(value),
            default=DEFAULT_CONCURRENCY,
        )
        """Initial number of handlers allowed in flight. Defaults to :code:`1`."""

    @define(kw_only=True)
    class Metrics(Component.Metrics):
        """Tracks statistics about this queue"""

        number_of_dispatched_tasks: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of values handed to the handler",
                name="number_of_dispatched_tasks",
            )
        )
        """Number of values handed to the handler"""

        number_of_completed_tasks: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of tasks that signaled completion",
                name="number_of_completed_tasks",
            )
        )
        """Number of tasks that signaled completion"""

        number_of_pull_invitations: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of times the pull callback was invited to produce",
                name="number_of_pull_invitations",
            )
        )
        """Number of times the pull callback was invited to produce"""

        number_of_pending_tasks: GaugeMetric = field(
            factory=lambda: GaugeMetric(
                description="Number of dispatched tasks that are not done yet",
                name="number_of_pending_tasks",
            )
        )
        """Number of dispatched tasks that are not done yet"""

        backlog_size: GaugeMetric = field(
            factory=lambda: GaugeMetric(
                description="Number of values waiting for a free slot",
                name="backlog_size",
            )
        )
        """Number of values waiting for a free slot"""

        concurrency_limit: GaugeMetric = field(
            factory=lambda: GaugeMetric(
                description="Current maximum number of tasks in flight",
                name="concurrency_limit",
            )
        )
        """Current maximum number of tasks in flight"""

        task_processing_time: HistogramMetric = field(
            factory=lambda: HistogramMetric(
                description="Time in seconds between dispatch and completion of a task",
                name="task_processing_time",
            )
        )
        """Time in seconds between dispatch and completion of a task"""

    _config: Config
    _loop: HostLoop

    def __init__(
        self,
        handler: Handler | None = None,
        on_done: Callable | None = None,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        on_empty: Callable | None = None,
        loop: HostLoop | None = None,
        name: str = DEFAULT_QUEUE_NAME,
        registry: CollectorRegistry | None = None,
    ) -> None:
        if handler is None:
            raise InvalidArgumentError("WorkerQueue requires a handler")
        if not callable(handler):
            raise InvalidArgumentError(f"handler {handler!r} is not callable")
        try:
            self._config = self.Config(name=name, concurrency=concurrency)
        except TypeError as error:
            raise InvalidArgumentError(str(error)) from error
        super().__init__(name=self._config.name, registry=registry)
        self._loop = loop if loop is not None else AsyncioHostLoop.current()
        self._handler = handler
        self._on_done = Callback.from_callable(on_done) if on_done is not None else None
        self._on_empty = Callback.from_callable(on_empty) if on_empty is not None else None
        self._concurrency = self._config.concurrency
        self._backlog: deque = deque()
        self._pending = 0
        self._invitations = 0
        self._invitation_epoch = 0
        self._closed = False
        self._finished = False
        self._evaluation_requested = False
        self.metrics.concurrency_limit += self._concurrency
        if self._on_empty is not None:
            self._loop.schedule(self._request_evaluation)

    @classmethod
    def from_config(
        cls,
        config: "WorkerQueue.Config",
        handler: Handler,
        on_done: Callable | None = None,
        **kwargs,
    ) -> "WorkerQueue":
        """Create a queue from a :code:`WorkerQueue.Config`.

        Remaining keyword arguments (:code:`on_empty`, :code:`loop`, :code:`registry`) are
        passed to the constructor.
        """
        return cls(handler, on_done, concurrency=config.concurrency, name=config.name, **kwargs)

    @property
    def loop(self) -> HostLoop:
        """the host loop the queue runs on"""
        return self._loop

    @property
    def concurrency(self) -> int:
        """Maximum number of handlers in flight. Assigning calls :code:`set_concurrency`."""
        return self._concurrency

    @concurrency.setter
    def concurrency(self, limit: int) -> None:
        self.set_concurrency(limit)

    @property
    def pending(self) -> int:
        """Number of dispatched tasks that did not signal completion yet"""
        return self._pending

    @property
    def backlog_size(self) -> int:
        """Number of buffered values waiting for a free slot"""
        return len(self._backlog)

    @property
    def closed(self) -> bool:
        """True after :code:`close` until the queue is reopened with :code:`run`"""
        return self._closed

    stopped = closed
    """Alias of :code:`closed`, matching :code:`stop` as the alias of :code:`close`"""

    @property
    def finished(self) -> bool:
        """True once the completion of the current close-and-drain lifecycle was fired"""
        return self._finished

    def is_closed(self) -> bool:
        """Return whether pushes are rejected."""
        return self._closed

    def push(self, value: Any) -> None:
        """Hand :code:`value` to the handler as soon as a slot is free.

        Values are dispatched in push order. A value only bypasses the backlog if the
        backlog is empty and a slot is free.

        Raises
        ------
        NotOnLoopError
            If called outside of the host loop's own thread.
        QueueClosedError
            If the queue is closed.
        """
        self._ensure_on_loop("WorkerQueue.push")
        if self._closed:
            raise QueueClosedError(self.name)
        if self._invitations:
            self._invitations -= 1
        if self._pending < self._concurrency and not self._backlog:
            self._pending += 1
            self._dispatch(value)
        else:
            self._backlog.append(value)
            if self._pending < self._concurrency:
                self._request_evaluation()
        self._update_gauges()

    def set_concurrency(self, limit: int) -> int:
        """Change the number of handlers allowed in flight.

        Raising the limit uses the freed capacity starting with the next tick. Lowering it
        never interrupts running handlers, it only holds back further dispatches.
        """
        self._ensure_on_loop("WorkerQueue.set_concurrency")
        validate_concurrency(limit)
        previous, self._concurrency = self._concurrency, limit
        self.metrics.concurrency_limit += limit
        logger.debug("%s concurrency changed from %d to %d", self.describe(), previous, limit)
        if limit > previous:
            self._request_evaluation()
        return limit

    def register_pull_callback(self, callback: Callable) -> Callable:
        """Install the callback invited to produce values while slots are idle.

        The callback is called without arguments or with this queue, depending on its
        signature. It should eventually push a value or close the queue. Installing a
        callback replaces the previous one and forgets its outstanding invitations.
        Returns :code:`callback` so this method can be used as a decorator.
        """
        self._ensure_on_loop("WorkerQueue.register_pull_callback")
        self._on_empty = Callback.from_callable(callback)
        self._invitations = 0
        self._invitation_epoch += 1
        self._request_evaluation()
        return callback

    def close(self) -> None:
        """Reject further pushes and fire the completion callback once everything is done."""
        self._ensure_on_loop("WorkerQueue.close")
        if not self._closed:
            logger.debug(
                "%s closed with %d pending and %d buffered values",
                self.describe(),
                self._pending,
                len(self._backlog),
            )
        self._closed = True
        self._invitation_epoch += 1
        self._request_evaluation()

    stop = close

    def run(self) -> None:
        """Reopen the queue for a new close-and-drain lifecycle."""
        self._ensure_on_loop("WorkerQueue.run")
        if self._closed:
            logger.debug("%s reopened", self.describe())
        self._closed = False
        self._finished = False
        self._invitations = 0
        self._invitation_epoch += 1
        self._request_evaluation()

    def _ensure_on_loop(self, operation: str) -> None:
        if not self._loop.on_own_thread():
            raise NotOnLoopError(operation)

    def _dispatch(self, value: Any) -> None:
        """Defer the handler call for a value whose slot is already reserved."""
        self.metrics.number_of_dispatched_tasks += 1
        self._loop.defer_next(Task(self, value, self._handler))

    def _request_evaluation(self) -> None:
        if self._evaluation_requested:
            return
        self._evaluation_requested = True
        self._loop.defer_next(self._evaluate)

    def _may_invite(self) -> bool:
        return (
            self._on_empty is not None
            and not self._closed
            and not self._backlog
            and self._pending + self._invitations < self._concurrency
        )

    def _evaluate(self) -> None:
        """Perform one step of the dispatch state machine."""
        self._evaluation_requested = False
        if self._pending < self._concurrency and self._backlog:
            self._pending += 1
            self._dispatch(self._backlog.popleft())
            if (self._pending < self._concurrency and self._backlog) or self._may_invite():
                self._request_evaluation()
        elif self._may_invite():
            self._invitations += 1
            self.metrics.number_of_pull_invitations += 1
            self._loop.defer_next(
                partial(self._invite, self._on_empty, self._invitation_epoch)
            )
            if self._may_invite():
                self._request_evaluation()
        elif self._closed and self._pending == 0 and not self._finished:
            self._finished = True
            logger.debug("%s drained", self.describe())
            if self._on_done is not None:
                self._loop.defer_next(partial(self._on_done, self))
        self._update_gauges()

    def _invite(self, callback: Callback, epoch: int) -> None:
        # close, run and register_pull_callback void invitations that did not run yet
        if epoch != self._invitation_epoch:
            return
        callback(self)

    def _return_task(self, duration: float) -> None:
        """Called by a task that signaled completion, possibly from a foreign thread."""
        self._loop.schedule(partial(self._release_slot, duration))

    def _release_slot(self, duration: float) -> None:
        self._pending -= 1
        self.metrics.number_of_completed_tasks += 1
        self.metrics.task_processing_time += duration
        self._update_gauges()
        self._request_evaluation()

    def _update_gauges(self) -> None:
        self.metrics.number_of_pending_tasks += self._pending
        self.metrics.backlog_size += len(self._backlog)
