"""Bounded concurrency worker queues for single threaded event loops"""

from loopqueue._version import __version__
from loopqueue.abc.host_loop import HostLoop
from loopqueue.framework.exceptions import (
    AlreadyDoneError,
    InvalidArgumentError,
    NotOnLoopError,
    QueueClosedError,
)
from loopqueue.framework.task import Task, TaskState
from loopqueue.framework.worker_queue import WorkerQueue
from loopqueue.loop.asyncio_loop import AsyncioHostLoop
from loopqueue.loop.manual import ManualHostLoop

__all__ = [
    "AlreadyDoneError",
    "AsyncioHostLoop",
    "HostLoop",
    "InvalidArgumentError",
    "ManualHostLoop",
    "NotOnLoopError",
    "QueueClosedError",
    "Task",
    "TaskState",
    "WorkerQueue",
    "__version__",
]
