# src/sense_exporter/monitoring/exporter.py
"""Scrape-triggered Prometheus exposition for all configured Sense monitors."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterator, List, Sequence, Tuple

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    GCCollector,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from ..core import SenseClient
from .collector import CollectionResult, MonitorCollector
from .descriptors import DESCRIPTORS, SCRAPE_TIME, UP, Sample, describe

logger = logging.getLogger(__name__)

MONITOR_LABEL = "monitor"

INDEX_HTML = """<!DOCTYPE html>
<html>
<head><title>Sense Exporter</title></head>
<body>
<h1>Sense Exporter</h1>
<p><a href="/metrics">Metrics</a></p>
</body>
</html>
"""


class SenseCollector(Collector):
    """
    Exposes the samples gathered for one scrape.

    Samples from every monitor are merged into a single family per gauge
    and told apart by a ``monitor`` label.
    """

    def __init__(self, results: Sequence[CollectionResult]):
        self.results = list(results)

    def describe(self) -> List[GaugeMetricFamily]:
        return describe([MONITOR_LABEL])

    def collect(self) -> Iterator[GaugeMetricFamily]:
        families = {d.name: d.family([MONITOR_LABEL]) for d in DESCRIPTORS}
        for result in self.results:
            monitor = str(result.monitor_id)
            for sample in result.samples:
                families[sample.descriptor.name].add_metric(
                    [monitor, *sample.label_values],
                    sample.value,
                )

        for descriptor in DESCRIPTORS:
            family = families[descriptor.name]
            if family.samples:
                yield family


def failed_result(monitor_id: int, error: BaseException) -> CollectionResult:
    """Result for a collector that raised instead of reporting."""
    return CollectionResult(
        monitor_id=monitor_id,
        samples=[Sample(UP, (), 0.0), Sample(SCRAPE_TIME, (), 0.0)],
        success=False,
        duration_seconds=0.0,
        error=f"{type(error).__name__}: {error}",
    )


class ScrapeCoordinator:
    """Runs one collection per (client, monitor) pair for each scrape."""

    def __init__(self, clients: Sequence[SenseClient], timeout: float = 10.0):
        """
        Initialize coordinator.

        Args:
            clients: Authenticated Sense accounts, shared read-only across scrapes
            timeout: Per-monitor collection deadline in seconds, 0 for none
        """
        self.clients = list(clients)
        self.timeout = timeout

    def monitor_pairs(self) -> List[Tuple[SenseClient, int]]:
        """Enumerate monitors fresh so monitor sets may change between scrapes."""
        pairs = []
        for client in self.clients:
            for monitor in client.get_monitors():
                pairs.append((client, monitor.id))
        return pairs

    async def collect(self) -> List[CollectionResult]:
        """Collect from every monitor concurrently."""
        pairs = self.monitor_pairs()
        collectors = [MonitorCollector(client, monitor_id, self.timeout) for client, monitor_id in pairs]

        outcomes = await asyncio.gather(
            *(c.collect() for c in collectors),
            return_exceptions=True,
        )

        results: List[CollectionResult] = []
        for collector, outcome in zip(collectors, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.error(f"Collector for monitor {collector.monitor_id} raised: {outcome}")
                outcome = failed_result(collector.monitor_id, outcome)
            results.append(outcome)
        return results

    def build_registry(self, results: Sequence[CollectionResult]) -> CollectorRegistry:
        """Fresh registry holding runtime collectors and this scrape's samples."""
        registry = CollectorRegistry()
        ProcessCollector(registry=registry)
        PlatformCollector(registry=registry)
        GCCollector(registry=registry)
        if results:
            registry.register(SenseCollector(results))
        return registry

    async def scrape(self) -> bytes:
        """Collect and render the exposition text."""
        results = await self.collect()
        failed = [r.monitor_id for r in results if not r.success]
        if failed:
            logger.warning(f"Scrape finished with {len(failed)} failed monitor(s): {failed}")
        return generate_latest(self.build_registry(results))


class MetricsHandler:
    """aiohttp handlers for the exporter endpoints."""

    def __init__(self, coordinator: ScrapeCoordinator):
        self.coordinator = coordinator

    async def metrics(self, request: web.Request) -> web.Response:
        """
        GET /metrics

        Always 200: monitor failures are reported as sense_monitor_up 0.
        """
        body = await self.coordinator.scrape()
        return web.Response(
            body=body,
            status=200,
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )

    async def index(self, request: web.Request) -> web.Response:
        return web.Response(text=INDEX_HTML, content_type="text/html")


def create_app(coordinator: ScrapeCoordinator) -> web.Application:
    """Create the aiohttp application serving /metrics and an index page."""
    handler = MetricsHandler(coordinator)
    app = web.Application()
    app.router.add_get("/metrics", handler.metrics)
    app.router.add_get("/", handler.index)
    return app


def run_server(app: web.Application, host: str = "0.0.0.0", port: int = 9553) -> None:
    """Serve until interrupted."""
    logger.info(f"Listening on {host}:{port}")
    web.run_app(app, host=host, port=port, print=None)
