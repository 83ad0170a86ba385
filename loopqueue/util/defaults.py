"""Default values for loopqueue."""

from enum import IntEnum


class EXITCODES(IntEnum):
    """Exit codes for loopqueue."""

    SUCCESS = 0
    """Successful execution."""
    ERROR = 1
    """General unspecified error."""
    CONFIGURATION_ERROR = 2
    """An error in the configuration."""


DEFAULT_CONCURRENCY = 1
DEFAULT_QUEUE_NAME = "worker_queue"
DEFAULT_WORKLOAD_ITEMS = 100
DEFAULT_WORKLOAD_DELAY = 0.001
DEFAULT_METRICS_PORT = 8000
DEFAULT_LOG_FORMAT = "%(asctime)-15s %(process)-6s %(name)-10s %(levelname)-8s: %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# dictconfig as described in
# https://docs.python.org/3/library/logging.config.html#configuration-dictionary-schema
DEFAULT_LOG_CONFIG: dict = {
    "version": 1,
    "formatters": {
        "loopqueue": {
            "class": "loopqueue.util.logging.LoopqueueFormatter",
            "format": DEFAULT_LOG_FORMAT,
            "datefmt": DEFAULT_LOG_DATE_FORMAT,
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "loopqueue",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "root": {"level": "INFO", "handlers": ["console"]},
        "asyncio": {"level": "WARNING"},
    },
    "filters": {},
    "disable_existing_loggers": False,
}
