"""One-shot completion tokens handed to worker queue handlers"""

import time
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Callable

from loopqueue.framework.exceptions import AlreadyDoneError

if TYPE_CHECKING:  # pragma: no cover
    from loopqueue.framework.worker_queue import WorkerQueue


class TaskState(StrEnum):
    """Lifecycle of a task"""

    ACTIVE = "active"
    """The value was dispatched and its handler did not signal completion yet."""

    DONE = "done"
    """The handler signaled completion, the task released its value and queue."""


class Task:
    """Carries one value to a handler and returns the occupied slot to its queue.

    A task is created by the queue when a value is dispatched. The handler must call
    :code:`signal_done` exactly once, possibly from a later tick or timer. A second call
    raises :code:`AlreadyDoneError` and leaves the queue untouched.
    """

    __slots__ = ("_master", "_value", "_handler", "_state", "_started")

    def __init__(self, master: "WorkerQueue", value: Any, handler: Callable[[Any, "Task"], Any]):
        self._master: "WorkerQueue | None" = master
        self._value = value
        self._handler = handler
        self._state = TaskState.ACTIVE
        self._started: float | None = None

    @property
    def value(self) -> Any:
        """The carried value, :code:`None` once the task is done"""
        return self._value

    @property
    def state(self) -> TaskState:
        """the current state"""
        return self._state

    @property
    def is_done(self) -> bool:
        """True after :code:`signal_done` was called"""
        return self._state is TaskState.DONE

    def __call__(self) -> Any:
        """Hand the value to the handler. Exceptions of the handler are not caught."""
        self._started = time.perf_counter()
        return self._handler(self._value, self)

    def signal_done(self) -> None:
        """Mark the task as done and give its slot back to the queue.

        Raises
        ------
        AlreadyDoneError
            If the task was already done.
        """
        if self._state is TaskState.DONE:
            raise AlreadyDoneError()
        master = self._master
        duration = time.perf_counter() - self._started if self._started is not None else 0.0
        self._state = TaskState.DONE
        self._master = self._value = self._handler = None
        master._return_task(duration)  # pylint: disable=protected-access

    def __repr__(self) -> str:
        return f"<Task: {self._state}>"
