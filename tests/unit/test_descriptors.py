"""Unit tests for the metric descriptor set."""

import pytest

from sense_exporter.monitoring.descriptors import (
    DESCRIPTORS,
    DESCRIPTORS_BY_NAME,
    DEVICE_LABELS,
    DEVICE_WATTS,
    MONITOR_VOLTS,
    UP,
    Sample,
    describe,
)


@pytest.mark.unit
class TestDescriptors:
    """Test the fixed gauge catalog."""

    def test_eight_gauges(self):
        names = [d.name for d in DESCRIPTORS]
        assert names == [
            "sense_monitor_up",
            "sense_scrape_time_seconds",
            "sense_device_watts",
            "sense_monitor_volts",
            "sense_monitor_watts",
            "sense_monitor_hz",
            "sense_device_active",
            "sense_device_online",
        ]
        assert set(DESCRIPTORS_BY_NAME) == set(names)

    def test_labels(self):
        assert DESCRIPTORS_BY_NAME["sense_monitor_up"].labels == ()
        assert DESCRIPTORS_BY_NAME["sense_scrape_time_seconds"].labels == ()
        assert DESCRIPTORS_BY_NAME["sense_monitor_watts"].labels == ()
        assert DESCRIPTORS_BY_NAME["sense_monitor_hz"].labels == ()
        assert DESCRIPTORS_BY_NAME["sense_monitor_volts"].labels == ("channel",)
        for name in ["sense_device_watts", "sense_device_active", "sense_device_online"]:
            assert DESCRIPTORS_BY_NAME[name].labels == DEVICE_LABELS == ("device_id", "name", "type", "make", "model")

    def test_describe_needs_no_collection(self):
        families = describe()
        assert len(families) == 8
        assert all(f.type == "gauge" for f in families)
        assert all(f.samples == [] for f in families)

    def test_describe_with_monitor_label(self):
        family = DEVICE_WATTS.family(["monitor"])
        family.add_metric(["7", "D1", "Fridge", "", "", ""], 3.0)
        assert family.samples[0].labels == {
            "monitor": "7", "device_id": "D1", "name": "Fridge", "type": "", "make": "", "model": "",
        }

    def test_descriptors_are_immutable(self):
        with pytest.raises(AttributeError):
            UP.name = "other"

    def test_sample_label_count_checked(self):
        Sample(MONITOR_VOLTS, ("0",), 120.0)
        with pytest.raises(ValueError, match="expects 1 label values"):
            Sample(MONITOR_VOLTS, (), 120.0)
