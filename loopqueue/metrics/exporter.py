"""This module contains the exporter serving the prometheus metrics of loopqueue"""

import logging

from prometheus_client import REGISTRY, CollectorRegistry, start_http_server

from loopqueue.util.configuration import MetricsConfig

logger = logging.getLogger("Exporter")


class PrometheusExporter:
    """Used to control the prometheus exporter"""

    def __init__(self, configuration: MetricsConfig, registry: CollectorRegistry = REGISTRY):
        self.configuration = configuration
        self.registry = registry
        self.server = None
        self.thread = None

    @property
    def is_running(self) -> bool:
        """True if the http server was started"""
        return self.server is not None

    def run(self) -> None:
        """Starts the default prometheus http endpoint in a daemon thread"""
        if self.is_running:
            return
        port = self.configuration.port
        self.server, self.thread = start_http_server(port, registry=self.registry)
        logger.info("Prometheus Exporter started on port %s", port)

    def shut_down(self) -> None:
        """Stops the http endpoint"""
        if not self.is_running:
            return
        self.server.shutdown()
        self.thread.join()
        self.server = self.thread = None
        logger.info("Prometheus Exporter stopped")
