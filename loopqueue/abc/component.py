"""abstract module for components"""

from abc import ABC
from functools import cached_property

from attrs import asdict, define, field
from prometheus_client import CollectorRegistry

from loopqueue.metrics.metrics import Metric
from loopqueue.util.helper import camel_to_snake


class Component(ABC):
    """Abstract Component Class to define the Interface"""

    @define(kw_only=True)
    class Metrics:
        """Base Metric class to track and expose statistics about loopqueue"""

        _labels: dict
        _registry: CollectorRegistry | None = field(default=None)

        def __attrs_post_init__(self):
            for attribute in asdict(self, recurse=False):
                attribute = getattr(self, attribute)
                if isinstance(attribute, Metric):
                    attribute.labels = self._labels
                    # pylint: disable=protected-access
                    attribute._registry = self._registry
                    # pylint: enable=protected-access
                    attribute.init_tracker()

    name: str
    _registry: CollectorRegistry | None

    def __init__(self, name: str, registry: CollectorRegistry | None = None) -> None:
        self.name = name
        self._registry = registry

    @property
    def metric_labels(self) -> dict:
        """Labels for the metrics"""
        return {"component": camel_to_snake(self.__class__.__name__), "name": self.name}

    @cached_property
    def metrics(self):
        """create and return metrics object"""
        return self.Metrics(labels=self.metric_labels, registry=self._registry)

    def __repr__(self):
        return camel_to_snake(self.__class__.__name__)

    def describe(self) -> str:
        """Provide a brief name-like description of the component.

        Examples
        --------

        >>> WorkerQueue(handler, name="downloads").describe()
        'WorkerQueue (downloads)'

        """
        return f"{self.__class__.__name__} ({self.name})"
