"""
Configuration is done via YAML or JSON files. The :code:`loopqueue run` command takes
any number of configuration files. If more than one file is given, later files
override the values of earlier files that differ from the defaults.

..  code-block:: bash
    :caption: Valid Run Examples

    loopqueue run
    loopqueue run /path/to/bench.yml
    loopqueue run /path/to/bench.yml /path/to/override.yml

Configuration File Structure
----------------------------

..  code-block:: yaml
    :caption: Example of a complete configuration file

    version: bench-1
    logger:
        level: INFO
        loggers:
            WorkerQueue: {"level": "DEBUG"}
    queue:
        name: bench
        concurrency: 1
    workload:
        items: 100
        delay: 0.001
        pull: false
        raise_concurrency_to: 4
        raise_after: 0.005
    metrics:
        enabled: false
        port: 8000
"""

import json
import logging
from copy import deepcopy
from io import StringIO
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from attrs import asdict, define, field, fields, validators
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from loopqueue.abc.exceptions import LoopqueueException
from loopqueue.framework.worker_queue import WorkerQueue, validate_concurrency
from loopqueue.util.defaults import (
    DEFAULT_LOG_CONFIG,
    DEFAULT_METRICS_PORT,
    DEFAULT_WORKLOAD_DELAY,
    DEFAULT_WORKLOAD_ITEMS,
)

logger = logging.getLogger("Config")


class MyYAML(YAML):
    """helper class to dump yaml with ruamel.yaml"""

    def dump(self, data: Any, stream: Any | None = None, **kw: Any) -> Any:
        inefficient = False
        if stream is None:
            inefficient = True
            stream = StringIO()
        YAML.dump(self, data, stream, **kw)
        if inefficient:
            return stream.getvalue()


yaml = MyYAML(typ="safe", pure=True)


class InvalidConfigurationError(LoopqueueException):
    """Base class for Configuration related exceptions."""


class InvalidConfigurationErrors(InvalidConfigurationError):
    """Raise for multiple Configuration related exceptions."""

    errors: List[InvalidConfigurationError]

    def __init__(self, errors: List[Exception]) -> None:
        unique_errors = []
        for error in errors:
            if not isinstance(error, InvalidConfigurationError):
                error = InvalidConfigurationError(*error.args)
            if error not in unique_errors:
                unique_errors.append(error)
        self.errors = unique_errors
        super().__init__("\n".join([str(error) for error in self.errors]))


class ConfigGetterException(InvalidConfigurationError):
    """Raise if a configuration source can not be read."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


def _optional_concurrency(_, __, value: Optional[int]) -> None:
    if value is not None:
        validate_concurrency(value)


@define(kw_only=True, frozen=True)
class MetricsConfig:
    """the metrics config class used in Configuration"""

    enabled: bool = field(validator=validators.instance_of(bool), default=False)
    port: int = field(validator=validators.instance_of(int), default=DEFAULT_METRICS_PORT)


@define(kw_only=True, frozen=True)
class WorkloadConfig:
    """The synthetic workload run by :code:`loopqueue run`"""

    items: int = field(
        validator=(validators.instance_of(int), validators.ge(0)), default=DEFAULT_WORKLOAD_ITEMS
    )
    """Number of values to process. Defaults to :code:`100`."""
    delay: float = field(
        validator=(validators.instance_of(float), validators.ge(0)),
        converter=float,
        default=DEFAULT_WORKLOAD_DELAY,
    )
    """Seconds each handler waits before it signals completion. Defaults to :code:`0.001`."""
    pull: bool = field(validator=validators.instance_of(bool), default=False)
    """If :code:`true` values are produced by a pull callback instead of being pushed
    upfront. Defaults to :code:`false`."""
    raise_concurrency_to: Optional[int] = field(validator=_optional_concurrency, default=None)
    """Concurrency limit to switch to while the workload runs. Defaults to :code:`None`."""
    raise_after: float = field(
        validator=(validators.instance_of(float), validators.ge(0)),
        converter=float,
        default=0.0,
    )
    """Seconds after start at which :code:`raise_concurrency_to` is applied."""


@define(kw_only=True)
class LoggerConfig:
    """The logger config class used in Configuration.
    The schema for this class is derived from the python logging module:
    https://docs.python.org/3/library/logging.config.html#dictionary-schema-details
    """

    _LOG_LEVELS = (
        logging.NOTSET,  # 0
        logging.DEBUG,  # 10
        logging.INFO,  # 20
        logging.WARNING,  # 30
        logging.ERROR,  # 40
        logging.CRITICAL,  # 50
    )

    version: int = field(validator=validators.instance_of(int), default=1)
    formatters: dict = field(validator=validators.instance_of(dict), factory=dict)
    filters: dict = field(validator=validators.instance_of(dict), factory=dict)
    handlers: dict = field(validator=validators.instance_of(dict), factory=dict)
    disable_existing_loggers: bool = field(validator=validators.instance_of(bool), default=False)
    level: str = field(
        default="INFO",
        validator=[
            validators.instance_of(str),
            validators.in_([logging.getLevelName(level) for level in _LOG_LEVELS]),
        ],
        eq=False,
    )
    """The log level of the root logger. Defaults to :code:`INFO`."""
    format: str = field(default="", validator=(validators.instance_of(str)), eq=False)
    """The format of the log message as supported by the :code:`LoopqueueFormatter`.
    Defaults to :code:`"%(asctime)-15s %(process)-6s %(name)-10s %(levelname)-8s: %(message)s"`.
    """
    datefmt: str = field(default="", validator=(validators.instance_of(str)), eq=False)
    """The date format of the log message. Defaults to :code:`"%Y-%m-%d %H:%M:%S"`."""
    loggers: dict = field(validator=validators.instance_of(dict), factory=dict)
    """The loggers loglevel configuration. Loggers are named after the classes using them,
    e.g. :code:`WorkerQueue`, :code:`Runner` or :code:`Config`.

    .. code-block:: yaml
        :caption: Example of a custom logger configuration

        logger:
            level: ERROR
            format: "%(asctime)-15s %(hostname)-5s %(name)-10s %(levelname)-8s: %(message)s"
            datefmt: "%Y-%m-%d %H:%M:%S"
            loggers:
                "WorkerQueue": {"level": "DEBUG"}
    """

    def __attrs_post_init__(self) -> None:
        defaults = deepcopy(DEFAULT_LOG_CONFIG)
        self.version = defaults["version"]
        self.formatters = defaults["formatters"]
        self.filters = defaults["filters"]
        self.handlers = defaults["handlers"]
        self.disable_existing_loggers = defaults["disable_existing_loggers"]
        formatter = self.formatters["loopqueue"]
        formatter["format"] = self.format or formatter["format"]
        formatter["datefmt"] = self.datefmt or formatter["datefmt"]
        loggers = defaults["loggers"]
        for logger_name, logger_config in self.loggers.items():
            loggers.setdefault(logger_name, {})
            if "level" in logger_config:
                loggers[logger_name]["level"] = logger_config["level"]
        loggers["root"]["level"] = self.level
        self.loggers = loggers

    def setup_logging(self) -> None:
        """Setup the logging configuration, called by the :code:`loopqueue run` command."""
        dictConfig(asdict(self))


@define(kw_only=True)
class Configuration:
    """the configuration class"""

    version: str = field(
        validator=validators.instance_of(str), converter=str, default="unset", eq=True
    )
    """Optional version of the configuration, printed by :code:`loopqueue run --version`.
    Defaults to :code:`unset`."""
    logger: LoggerConfig = field(
        validator=validators.instance_of(LoggerConfig),
        factory=LoggerConfig,
        eq=False,
        converter=lambda x: LoggerConfig(**x) if isinstance(x, dict) else x,
    )
    """Logger configuration.

    .. autoclass:: loopqueue.util.configuration.LoggerConfig
       :no-index:
       :members: level, format, datefmt, loggers
    """
    queue: WorkerQueue.Config = field(
        validator=validators.instance_of(WorkerQueue.Config),
        factory=WorkerQueue.Config,
        converter=lambda x: WorkerQueue.Config(**x) if isinstance(x, dict) else x,
    )
    """Worker queue configuration. Defaults to :code:`{"name": "worker_queue", "concurrency": 1}`.
    """
    workload: WorkloadConfig = field(
        validator=validators.instance_of(WorkloadConfig),
        factory=WorkloadConfig,
        converter=lambda x: WorkloadConfig(**x) if isinstance(x, dict) else x,
    )
    """Workload configuration, see :code:`WorkloadConfig`."""
    metrics: MetricsConfig = field(
        validator=validators.instance_of(MetricsConfig),
        factory=MetricsConfig,
        converter=lambda x: MetricsConfig(**x) if isinstance(x, dict) else x,
        eq=False,
    )
    """Metrics configuration. Defaults to :code:`{"enabled": False, "port": 8000}`."""

    _config_paths: tuple = field(factory=tuple, eq=False, repr=False)

    @property
    def config_paths(self) -> list[str]:
        """Paths of the sources the configuration was created from"""
        return list(self._config_paths)

    @classmethod
    def from_source(cls, config_path: str) -> "Configuration":
        """Create configuration from a file.

        Parameters
        ----------
        config_path : str
            path of the YAML or JSON file to create the configuration from.

        Returns
        -------
        config : Configuration
            Configuration object attrs class.

        """
        content = Path(config_path).read_text(encoding="utf8")
        try:
            config_dict = json.loads(content)
        except json.JSONDecodeError:
            config_dict = yaml.load(content)
        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise InvalidConfigurationError(
                f"Invalid configuration file: {config_path} does not contain a mapping"
            )
        try:
            return Configuration(**(config_dict | {"config_paths": (config_path,)}))
        except TypeError as error:
            raise InvalidConfigurationError(
                f"Invalid configuration file: {config_path} {error.args[0]}"
            ) from error
        except ValueError as error:
            raise InvalidConfigurationError(
                f"Invalid configuration file: {config_path} {str(error)}"
            ) from error

    @classmethod
    def from_sources(cls, config_paths: Iterable[str] | None = None) -> "Configuration":
        """Creates configuration from a list of configuration sources.

        Parameters
        ----------
        config_paths : list[str]
            List of configuration files to create configuration from. Without any
            path the defaults are used.

        Returns
        -------
        config : Configuration
            resulting configuration object.

        """
        if not config_paths:
            return Configuration()
        errors = []
        configs: List[Configuration] = []
        for config_path in config_paths:
            try:
                configs.append(Configuration.from_source(config_path))
            except FileNotFoundError as error:
                raise ConfigGetterException(
                    f"One or more of the given config file(s) does not exist: {error.filename}\n",
                ) from error
            except YAMLError as error:
                raise ConfigGetterException(
                    f"Invalid yaml or json file: {config_path} {error}\n"
                ) from error
            except InvalidConfigurationError as error:
                errors.append(error)
        if errors:
            raise InvalidConfigurationErrors(errors)
        logger.debug("Merging configuration from %s", ", ".join(config_paths))
        attributes = {
            attribute.name: cls._get_last_non_default_value(configs, attribute.name)
            for attribute in fields(Configuration)
            if attribute.name != "_config_paths"
        }
        return Configuration(**attributes, config_paths=tuple(config_paths))

    def as_dict(self) -> dict:
        """Return the configuration as dict."""
        return asdict(
            self,
            filter=lambda attribute, _: attribute.name != "_config_paths",
            recurse=True,
        )

    def as_yaml(self) -> str:
        """Return the configuration as yaml string."""
        return yaml.dump(self.as_dict())

    @staticmethod
    def _get_last_non_default_value(configs: Sequence["Configuration"], attribute: str) -> Any:
        attrs_attribute = [attr for attr in fields(Configuration) if attr.name == attribute][0]
        default_for_attribute = (
            attrs_attribute.default.factory()
            if hasattr(attrs_attribute.default, "factory")
            else attrs_attribute.default
        )
        values = [getattr(config, attribute) for config in configs]
        for value in reversed(values):
            if value != default_for_attribute:
                return value
        return values[-1]
