# pylint: disable=missing-docstring
# pylint: disable=protected-access
from unittest import mock

import pytest

from loopqueue.framework.exceptions import AlreadyDoneError
from loopqueue.framework.task import Task, TaskState


class TestTask:
    def setup_method(self):
        self.master = mock.MagicMock()
        self.handler = mock.MagicMock()
        self.task = Task(self.master, "value", self.handler)

    def test_new_task_is_active(self):
        assert self.task.state is TaskState.ACTIVE
        assert not self.task.is_done
        assert self.task.value == "value"

    def test_call_hands_value_and_task_to_handler(self):
        self.task()
        self.handler.assert_called_once_with("value", self.task)

    def test_call_does_not_catch_handler_exceptions(self):
        self.handler.side_effect = KeyError("missing")
        with pytest.raises(KeyError):
            self.task()

    def test_signal_done_returns_slot_to_master(self):
        self.task()
        self.task.signal_done()
        self.master._return_task.assert_called_once()
        (duration,) = self.master._return_task.call_args.args
        assert duration >= 0

    def test_signal_done_without_call_reports_zero_duration(self):
        self.task.signal_done()
        self.master._return_task.assert_called_once_with(0.0)

    def test_signal_done_releases_references(self):
        self.task.signal_done()
        assert self.task.is_done
        assert self.task.state == "done"
        assert self.task.value is None
        assert self.task._master is None
        assert self.task._handler is None

    def test_second_signal_raises_without_touching_master(self):
        self.task.signal_done()
        with pytest.raises(AlreadyDoneError, match="Task already done"):
            self.task.signal_done()
        self.master._return_task.assert_called_once()

    def test_repr_shows_state(self):
        assert repr(self.task) == "<Task: active>"
        self.task.signal_done()
        assert repr(self.task) == "<Task: done>"

    def test_has_no_instance_dict(self):
        with pytest.raises(AttributeError):
            self.task.unknown = 1  # pylint: disable=attribute-defined-outside-init
