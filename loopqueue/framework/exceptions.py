"""This module contains exceptions raised at the worker queue boundary."""

from loopqueue.abc.exceptions import LoopqueueException


class QueueClosedError(LoopqueueException):
    """Raise if a value is pushed into a closed queue."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Not allowed to push into the closed queue '{name}'")


class AlreadyDoneError(LoopqueueException):
    """Raise if a task signals its completion a second time."""

    def __init__(self) -> None:
        super().__init__("Task already done")


class NotOnLoopError(LoopqueueException):
    """Raise if a side-effecting call happens outside of the host loop's own thread."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"{operation} has to be called inside the host loop (use HostLoop.schedule)"
        )


class InvalidArgumentError(LoopqueueException, ValueError):
    """Raise if a queue is created or reconfigured with invalid arguments."""
