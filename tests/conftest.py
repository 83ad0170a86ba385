"""Global configuration and fixtures for all pytest-based tests"""

import threading
from functools import partial

import pytest

from loopqueue.loop.manual import ManualHostLoop


class ConcurrencyDetector:
    """Handler recording dispatch order and the highest number of tasks in flight.

    Every task is completed by a host loop timer after :code:`delay` seconds.
    """

    def __init__(self, loop, delay: float = 0.001):
        self.loop = loop
        self.delay = delay
        self.max = 0
        self.workers = 0
        self.seen = []

    def for_each(self, value, task):
        self.workers += 1
        self.max = max(self.max, self.workers)
        self.seen.append(value)
        self.loop.add_timer(self.delay, partial(self._finish, task))

    def _finish(self, task):
        self.workers -= 1
        task.signal_done()


class TaskHolder:
    """Handler keeping every task until the test completes it"""

    def __init__(self):
        self.tasks = []
        self.received = []

    def __call__(self, value, task):
        self.received.append(value)
        self.tasks.append(task)

    def complete_all(self):
        for task in self.tasks:
            if not task.is_done:
                task.signal_done()


@pytest.fixture(name="manual_loop")
def get_manual_loop():
    return ManualHostLoop()


@pytest.fixture(name="detector")
def get_detector(manual_loop):
    return ConcurrencyDetector(manual_loop)


@pytest.fixture(name="holder")
def get_holder():
    return TaskHolder()


@pytest.fixture(name="in_foreign_thread")
def get_in_foreign_thread():
    """Runs a function in a separate thread and returns the raised exceptions."""

    def run(function, *args):
        errors = []

        def target():
            try:
                function(*args)
            except Exception as error:  # pylint: disable=broad-except
                errors.append(error)

        thread = threading.Thread(target=target)
        thread.start()
        thread.join()
        return errors

    return run
