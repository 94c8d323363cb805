# src/sense_exporter/monitoring/descriptors.py
"""Fixed set of gauges exported for every Sense monitor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from prometheus_client.core import GaugeMetricFamily

DEVICE_LABELS = ("device_id", "name", "type", "make", "model")


@dataclass(frozen=True)
class MetricDescriptor:
    """Name, help text and label names of one gauge."""
    name: str
    documentation: str
    labels: Tuple[str, ...] = ()

    def family(self, extra_labels: Sequence[str] = ()) -> GaugeMetricFamily:
        """Create an empty gauge family, optionally with leading extra labels."""
        return GaugeMetricFamily(
            self.name,
            self.documentation,
            labels=list(extra_labels) + list(self.labels),
        )


@dataclass(frozen=True)
class Sample:
    """One gauge value with its label values, in descriptor label order."""
    descriptor: MetricDescriptor
    label_values: Tuple[str, ...]
    value: float

    def __post_init__(self):
        if len(self.label_values) != len(self.descriptor.labels):
            raise ValueError(
                f"{self.descriptor.name} expects {len(self.descriptor.labels)} label values, "
                f"got {len(self.label_values)}"
            )


UP = MetricDescriptor(
    "sense_monitor_up",
    "Whether a Sense monitor is online and accessible to us",
)
SCRAPE_TIME = MetricDescriptor(
    "sense_scrape_time_seconds",
    "Time spent scraping Sense",
)

# RealtimeUpdate
DEVICE_WATTS = MetricDescriptor(
    "sense_device_watts",
    "Current power usage of a device",
    DEVICE_LABELS,
)
MONITOR_VOLTS = MetricDescriptor(
    "sense_monitor_volts",
    "Current voltage detected by the Sense monitor",
    ("channel",),
)
MONITOR_WATTS = MetricDescriptor(
    "sense_monitor_watts",
    "Current power usage detected by the Sense monitor",
)
MONITOR_HZ = MetricDescriptor(
    "sense_monitor_hz",
    "Current frequency detected by the Sense monitor",
)

# DeviceStates
DEVICE_ACTIVE = MetricDescriptor(
    "sense_device_active",
    "Whether a Sense device is active",
    DEVICE_LABELS,
)
DEVICE_ONLINE = MetricDescriptor(
    "sense_device_online",
    "Whether a Sense device is online",
    DEVICE_LABELS,
)

DESCRIPTORS: Tuple[MetricDescriptor, ...] = (
    UP,
    SCRAPE_TIME,
    DEVICE_WATTS,
    MONITOR_VOLTS,
    MONITOR_WATTS,
    MONITOR_HZ,
    DEVICE_ACTIVE,
    DEVICE_ONLINE,
)

DESCRIPTORS_BY_NAME: Dict[str, MetricDescriptor] = {d.name: d for d in DESCRIPTORS}


def describe(extra_labels: Sequence[str] = ()) -> List[GaugeMetricFamily]:
    """Empty families for every descriptor; needs no client or collection."""
    return [d.family(extra_labels) for d in DESCRIPTORS]
