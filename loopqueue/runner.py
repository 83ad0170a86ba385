"""
Runner module
=============

Runs a synthetic workload through a :code:`WorkerQueue` on an asyncio event loop. Each
handler completes its task after :code:`workload.delay` seconds through a host loop
timer, which makes the runner usable to observe dispatch order, the concurrency bound
and the effect of raising the limit while the workload is in flight.
"""

import asyncio
import json
import logging
import time
from functools import partial
from typing import Any

from attrs import asdict, define, field
from prometheus_client import REGISTRY

from loopqueue.framework.task import Task
from loopqueue.framework.worker_queue import WorkerQueue
from loopqueue.loop.asyncio_loop import AsyncioHostLoop
from loopqueue.metrics.exporter import PrometheusExporter
from loopqueue.util.configuration import Configuration

logger = logging.getLogger("Runner")


@define(kw_only=True)
class RunSummary:
    """Observations of one workload run"""

    processed: list = field(factory=list)
    """values in the order the handler received them"""
    max_in_flight: int = 0
    """highest number of handlers in flight at the same time"""
    concurrency: int = 0
    """concurrency limit at the end of the run"""
    elapsed: float = 0.0
    """seconds from the first push until the completion callback"""

    @property
    def processed_count(self) -> int:
        """number of processed values"""
        return len(self.processed)

    def as_json(self) -> str:
        """Return the summary without the processed values as json string."""
        summary = asdict(self, filter=lambda attribute, _: attribute.name != "processed")
        return json.dumps(summary | {"processed_count": self.processed_count})


class Runner:
    """Runs the configured workload and exposes metrics if enabled."""

    def __init__(self, configuration: Configuration) -> None:
        self.configuration = configuration
        self._exporter: PrometheusExporter | None = None
        if configuration.metrics.enabled:
            self._exporter = PrometheusExporter(configuration.metrics)

    def setup_logging(self) -> None:
        """Apply the logger configuration."""
        self.configuration.logger.setup_logging()

    def run(self) -> RunSummary:
        """Run the workload on a fresh event loop and return what was observed."""
        if self._exporter is not None:
            self._exporter.run()
        summary = asyncio.run(self.run_workload())
        logger.info(
            "Processed %d values in %.3fs with at most %d handlers in flight",
            summary.processed_count,
            summary.elapsed,
            summary.max_in_flight,
        )
        return summary

    def stop(self) -> None:
        """Stop the metrics exporter."""
        if self._exporter is not None:
            self._exporter.shut_down()

    async def run_workload(self) -> RunSummary:
        """Run the workload on the running event loop."""
        workload = self.configuration.workload
        loop = AsyncioHostLoop.current()
        completed = loop.loop.create_future()
        summary = RunSummary()
        in_flight = 0

        def handle(value: Any, task: Task) -> None:
            nonlocal in_flight
            in_flight += 1
            summary.max_in_flight = max(summary.max_in_flight, in_flight)
            summary.processed.append(value)
            loop.add_timer(workload.delay, partial(complete, task))

        def complete(task: Task) -> None:
            nonlocal in_flight
            in_flight -= 1
            task.signal_done()

        queue = WorkerQueue.from_config(
            self.configuration.queue,
            handle,
            lambda: completed.set_result(None),
            loop=loop,
            registry=REGISTRY if self._exporter is not None else None,
        )
        start = time.perf_counter()
        if workload.raise_concurrency_to is not None:
            loop.add_timer(
                workload.raise_after,
                partial(queue.set_concurrency, workload.raise_concurrency_to),
            )
        if workload.pull:
            values = iter(range(workload.items))

            @queue.register_pull_callback
            def produce(pulling_queue: WorkerQueue) -> None:
                value = next(values, None)
                if value is None:
                    pulling_queue.close()
                else:
                    pulling_queue.push(value)

        else:
            for value in range(workload.items):
                queue.push(value)
            queue.close()
        await completed
        summary.elapsed = time.perf_counter() - start
        summary.concurrency = queue.concurrency
        return summary
