# pylint: disable=missing-docstring
# pylint: disable=attribute-defined-outside-init
import pytest

from loopqueue.framework.exceptions import (
    AlreadyDoneError,
    InvalidArgumentError,
    NotOnLoopError,
    QueueClosedError,
)
from loopqueue.util.configuration import (
    ConfigGetterException,
    InvalidConfigurationError,
    InvalidConfigurationErrors,
)
from tests.unit.exceptions.base import ExceptionBaseTest


class TestQueueClosedError(ExceptionBaseTest):
    exception = QueueClosedError
    error_message = r"Not allowed to push into the closed queue 'downloads'"
    exception_args = ("downloads",)


class TestAlreadyDoneError(ExceptionBaseTest):
    exception = AlreadyDoneError
    error_message = r"Task already done"


class TestNotOnLoopError(ExceptionBaseTest):
    exception = NotOnLoopError
    error_message = (
        r"WorkerQueue.push has to be called inside the host loop \(use HostLoop.schedule\)"
    )
    exception_args = ("WorkerQueue.push",)


class TestInvalidArgumentError(ExceptionBaseTest):
    exception = InvalidArgumentError
    error_message = r"concurrency has to be a positive integer"
    exception_args = ("concurrency has to be a positive integer, got 0",)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            raise self.exception(*self.exception_args)


class TestInvalidConfigurationError(ExceptionBaseTest):
    exception = InvalidConfigurationError
    error_message = r"Invalid configuration file: bench.yml"
    exception_args = ("Invalid configuration file: bench.yml",)


class TestConfigGetterException(ExceptionBaseTest):
    exception = ConfigGetterException
    error_message = r"does not exist: bench.yml"
    exception_args = ("One or more of the given config file(s) does not exist: bench.yml",)


class TestInvalidConfigurationErrors(ExceptionBaseTest):
    exception = InvalidConfigurationErrors
    error_message = r"first\nsecond"
    exception_args = ([ValueError("first"), InvalidConfigurationError("second")],)

    def test_deduplicates_errors(self):
        error = self.exception([ValueError("first"), ValueError("first")])
        assert len(error.errors) == 1
        assert all(isinstance(item, InvalidConfigurationError) for item in error.errors)
