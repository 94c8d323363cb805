"""Unit tests for the scrape coordinator and HTTP handlers."""

import pytest
from aiohttp.test_utils import make_mocked_request
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.parser import text_string_to_metric_families

from sense_exporter.core import SenseAPIError
from sense_exporter.monitoring import (
    CollectionResult,
    ScrapeCoordinator,
    SenseCollector,
    create_app,
)
from sense_exporter.monitoring.descriptors import MONITOR_WATTS, SCRAPE_TIME, UP, Sample
from sense_exporter.monitoring.exporter import MetricsHandler, failed_result

from tests.mocks import FakeMonitor, FakeSenseClient


def parse(body):
    """Sense samples from an exposition body as (name, labels) -> value."""
    text = body.decode("utf-8") if isinstance(body, bytes) else body
    samples = {}
    for family in text_string_to_metric_families(text):
        for sample in family.samples:
            if sample.name.startswith("sense_"):
                key = (sample.name, tuple(sorted(sample.labels.items())))
                samples[key] = sample.value
    return samples


def result(monitor_id, up=1.0, watts=None):
    samples = []
    if watts is not None:
        samples.append(Sample(MONITOR_WATTS, (), watts))
    samples.append(Sample(UP, (), up))
    samples.append(Sample(SCRAPE_TIME, (), 0.25))
    return CollectionResult(monitor_id, samples, up == 1.0, 0.25)


@pytest.mark.unit
class TestSenseCollector:
    """Test merging of per-monitor samples."""

    def test_monitors_share_families(self):
        collector = SenseCollector([result(1, watts=100.0), result(2, up=0.0)])

        families = {f.name: f for f in collector.collect()}

        assert set(families) == {"sense_monitor_up", "sense_scrape_time_seconds", "sense_monitor_watts"}
        up = {s.labels["monitor"]: s.value for s in families["sense_monitor_up"].samples}
        assert up == {"1": 1.0, "2": 0.0}
        assert len(families["sense_monitor_watts"].samples) == 1

    def test_describe_lists_all_gauges(self):
        families = SenseCollector([]).describe()

        assert len(families) == 8

    def test_registers_in_registry(self):
        registry = CollectorRegistry()
        registry.register(SenseCollector([result(7, watts=12.5)]))

        samples = parse(generate_latest(registry))

        assert samples[("sense_monitor_watts", (("monitor", "7"),))] == 12.5
        assert samples[("sense_monitor_up", (("monitor", "7"),))] == 1.0

    def test_failed_result(self):
        failed = failed_result(3, RuntimeError("bad"))

        assert failed.success is False
        assert failed.error == "RuntimeError: bad"
        assert [(s.descriptor.name, s.value) for s in failed.samples] == [
            ("sense_monitor_up", 0.0),
            ("sense_scrape_time_seconds", 0.0),
        ]


@pytest.mark.unit
class TestScrapeCoordinator:
    """Test scrape fan-out and rendering."""

    @pytest.mark.asyncio
    async def test_zero_monitors(self):
        coordinator = ScrapeCoordinator([], timeout=1.0)

        body = await coordinator.scrape()

        assert b"sense_" not in body
        assert b"python_info" in body

    @pytest.mark.asyncio
    async def test_one_failing_monitor(self, two_devices, realtime_d1, states_d1_on_d2_off):
        client = FakeSenseClient(monitors={
            1: FakeMonitor(devices=two_devices, messages=[realtime_d1, states_d1_on_d2_off]),
            2: FakeMonitor(device_error=SenseAPIError(503)),
        })
        coordinator = ScrapeCoordinator([client], timeout=5.0)

        samples = parse(await coordinator.scrape())

        assert samples[("sense_monitor_up", (("monitor", "1"),))] == 1.0
        assert samples[("sense_monitor_up", (("monitor", "2"),))] == 0.0
        assert samples[("sense_monitor_watts", (("monitor", "1"),))] == 1500.0
        assert ("sense_monitor_watts", (("monitor", "2"),)) not in samples
        fridge = (
            ("device_id", "D1"), ("make", "LG"), ("model", "LFX"),
            ("monitor", "1"), ("name", "Fridge"), ("type", "Fridge"),
        )
        assert samples[("sense_device_watts", fridge)] == 25.5

    @pytest.mark.asyncio
    async def test_multiple_accounts(self, healthy_client):
        other = FakeSenseClient(monitors={9: FakeMonitor()}, user_id=1, account_id=2)
        coordinator = ScrapeCoordinator([healthy_client, other], timeout=5.0)

        results = await coordinator.collect()

        assert [r.monitor_id for r in results] == [1, 9]
        assert all(r.success for r in results)

    def test_monitors_enumerated_per_scrape(self, healthy_client):
        coordinator = ScrapeCoordinator([healthy_client], timeout=5.0)
        assert coordinator.monitor_pairs() == [(healthy_client, 1)]

        healthy_client.monitors[5] = FakeMonitor()

        assert [m for _, m in coordinator.monitor_pairs()] == [1, 5]

    @pytest.mark.asyncio
    async def test_unexpected_collector_error(self, healthy_client, monkeypatch):
        async def explode(self):
            raise RuntimeError("collector bug")

        monkeypatch.setattr("sense_exporter.monitoring.exporter.MonitorCollector.collect", explode)
        coordinator = ScrapeCoordinator([healthy_client], timeout=5.0)

        results = await coordinator.collect()

        assert len(results) == 1
        assert results[0].success is False
        assert "collector bug" in results[0].error

    def test_registry_skips_sense_collector_without_results(self):
        registry = ScrapeCoordinator([]).build_registry([])

        assert b"sense_" not in generate_latest(registry)


@pytest.mark.unit
class TestMetricsHandler:
    """Test the aiohttp handlers."""

    @pytest.mark.asyncio
    async def test_metrics_ok(self, healthy_client):
        handler = MetricsHandler(ScrapeCoordinator([healthy_client], timeout=5.0))

        response = await handler.metrics(make_mocked_request("GET", "/metrics"))

        assert response.status == 200
        assert response.headers["Content-Type"] == CONTENT_TYPE_LATEST
        assert b'sense_monitor_up{monitor="1"} 1.0' in response.body

    @pytest.mark.asyncio
    async def test_metrics_ok_when_everything_fails(self):
        client = FakeSenseClient(monitors={1: FakeMonitor(device_error=SenseAPIError(401))})
        handler = MetricsHandler(ScrapeCoordinator([client], timeout=5.0))

        response = await handler.metrics(make_mocked_request("GET", "/metrics"))

        assert response.status == 200
        assert b'sense_monitor_up{monitor="1"} 0.0' in response.body

    @pytest.mark.asyncio
    async def test_index(self):
        handler = MetricsHandler(ScrapeCoordinator([]))

        response = await handler.index(make_mocked_request("GET", "/"))

        assert response.status == 200
        assert response.content_type == "text/html"
        assert '<a href="/metrics">' in response.text

    def test_routes(self):
        app = create_app(ScrapeCoordinator([]))

        paths = {route.resource.canonical for route in app.router.routes()}

        assert {"/", "/metrics"} <= paths
