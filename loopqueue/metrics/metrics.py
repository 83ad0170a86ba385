"""
loopqueue exposes prometheus metrics about every worker queue, e.g.
:code:`loopqueue_number_of_dispatched_tasks_total` or
:code:`loopqueue_task_processing_time_sum`. All metrics of a queue carry the labels
:code:`component` and :code:`name` (the queue name).

Configuration
=============

..  code-block:: yaml
    :linenos:

    metrics:
      enabled: true
      port: 8000

enabled
-------

Use :code:`true` or :code:`false` to activate or deactivate the metrics exporter of the
:code:`loopqueue run` command. Defaults to :code:`false`.

port
----

Specifies the port which should be used for the prometheus exporter endpoint. Defaults to
:code:`8000`.

Metrics Overview
================

.. autoclass:: loopqueue.framework.worker_queue.WorkerQueue.Metrics
   :members:
   :undoc-members:
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from attrs import define, field, validators
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram
from prometheus_client.metrics import MetricWrapperBase

PREFIX = "loopqueue_"

PROCESSING_TIME_BUCKETS = (0.0001, 0.001, 0.01, 0.1, 1, 10)


@define(kw_only=True, slots=False)
class Metric(ABC):
    """Labelled prometheus collector of one component.

    The collector is created by :code:`init_tracker`. Components sharing a registry share
    the collector of a metric name and differ only in their label values.
    """

    collector_type: ClassVar[type[MetricWrapperBase]]

    name: str = field(validator=validators.instance_of(str))
    description: str = field(validator=validators.instance_of(str))
    labels: dict = field(
        validator=validators.deep_mapping(
            key_validator=validators.instance_of(str),
            value_validator=validators.instance_of(str),
            mapping_validator=validators.instance_of(dict),
        ),
        factory=dict,
    )
    _registry: CollectorRegistry | None = field(default=None)
    tracker: MetricWrapperBase | None = field(init=False, default=None)

    @property
    def fullname(self) -> str:
        """name of the collector, prefixed with :code:`loopqueue_`"""
        return f"{PREFIX}{self.name}"

    def _collector_options(self) -> dict:
        return {}

    def init_tracker(self) -> None:
        """Create the collector, or reuse the one already registered under this name."""
        try:
            self.tracker = self.collector_type(
                name=self.fullname,
                documentation=self.description,
                labelnames=tuple(self.labels),
                registry=self._registry,
                **self._collector_options(),
            )
        except ValueError as error:
            # pylint: disable=protected-access
            self.tracker = self._registry._names_to_collectors.get(self.fullname)
            # pylint: enable=protected-access
            if not isinstance(self.tracker, self.collector_type):
                raise ValueError(
                    f"Metric {self.fullname} already exists with different type"
                ) from error
        self.tracker.labels(**self.labels)

    @property
    def _child(self) -> Any:
        return self.tracker.labels(**self.labels)

    @abstractmethod
    def __add__(self, other):
        """Record :code:`other`, used as :code:`metrics.name += value`"""


@define(kw_only=True)
class CounterMetric(Metric):
    """Counter, adding increments it"""

    collector_type = Counter

    def __add__(self, other: float) -> "CounterMetric":
        self._child.inc(other)
        return self


@define(kw_only=True)
class HistogramMetric(Metric):
    """Histogram of durations in seconds, adding observes a value"""

    collector_type = Histogram

    def _collector_options(self) -> dict:
        return {"buckets": PROCESSING_TIME_BUCKETS}

    def __add__(self, other: float) -> "HistogramMetric":
        self._child.observe(other)
        return self


@define(kw_only=True)
class GaugeMetric(Metric):
    """Gauge, adding sets the current value"""

    collector_type = Gauge

    def __add__(self, other: float) -> "GaugeMetric":
        self._child.set(other)
        return self
