# pylint: disable=missing-docstring
# pylint: disable=attribute-defined-outside-init
from unittest import mock

from prometheus_client import REGISTRY, CollectorRegistry

from loopqueue.metrics.exporter import PrometheusExporter
from loopqueue.util.configuration import MetricsConfig


@mock.patch("loopqueue.metrics.exporter.start_http_server")
class TestPrometheusExporter:
    def setup_method(self):
        self.metrics_config = MetricsConfig(enabled=True, port=8000)

    def test_correct_setup(self, _):
        exporter = PrometheusExporter(self.metrics_config)
        assert exporter.configuration.port == self.metrics_config.port
        assert exporter.registry is REGISTRY
        assert not exporter.is_running

    def test_default_port_if_missing_in_config(self, _):
        exporter = PrometheusExporter(MetricsConfig(enabled=True))
        assert exporter.configuration.port == 8000

    def test_run_starts_http_server(self, mock_start_http_server):
        mock_start_http_server.return_value = (mock.MagicMock(), mock.MagicMock())
        registry = CollectorRegistry()
        exporter = PrometheusExporter(self.metrics_config, registry=registry)
        exporter.run()
        mock_start_http_server.assert_called_once_with(8000, registry=registry)
        assert exporter.is_running

    def test_run_twice_starts_server_once(self, mock_start_http_server):
        mock_start_http_server.return_value = (mock.MagicMock(), mock.MagicMock())
        exporter = PrometheusExporter(self.metrics_config)
        exporter.run()
        exporter.run()
        mock_start_http_server.assert_called_once()

    def test_shut_down_stops_server_and_joins_thread(self, mock_start_http_server):
        server, thread = mock.MagicMock(), mock.MagicMock()
        mock_start_http_server.return_value = (server, thread)
        exporter = PrometheusExporter(self.metrics_config)
        exporter.run()
        exporter.shut_down()
        server.shutdown.assert_called_once()
        thread.join.assert_called_once()
        assert not exporter.is_running

    def test_shut_down_without_run_does_nothing(self, mock_start_http_server):
        exporter = PrometheusExporter(self.metrics_config)
        exporter.shut_down()
        mock_start_http_server.assert_not_called()

    def test_run_logs_port(self, mock_start_http_server, caplog):
        mock_start_http_server.return_value = (mock.MagicMock(), mock.MagicMock())
        exporter = PrometheusExporter(self.metrics_config)
        with caplog.at_level("INFO"):
            exporter.run()
        assert "Prometheus Exporter started on port 8000" in caplog.text
