"""Monitor collection and Prometheus exposition components."""

from .descriptors import DESCRIPTORS, MetricDescriptor, Sample, describe
from .catalog import DeviceCatalog, DeviceCatalogFetcher
from .aggregator import AggregatorState, StreamAggregator
from .collector import CollectionResult, MonitorCollector
from .exporter import ScrapeCoordinator, SenseCollector, create_app, run_server

__all__ = [
    "DESCRIPTORS",
    "MetricDescriptor",
    "Sample",
    "describe",
    "DeviceCatalog",
    "DeviceCatalogFetcher",
    "AggregatorState",
    "StreamAggregator",
    "CollectionResult",
    "MonitorCollector",
    "ScrapeCoordinator",
    "SenseCollector",
    "create_app",
    "run_server",
]
