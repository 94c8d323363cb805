# src/sense_exporter/core/models.py
"""Data models for Sense monitors, devices and realtime stream messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union


@dataclass(frozen=True)
class Monitor:
    """A Sense monitor owned by one account."""
    id: int
    serial_number: str = ""
    time_zone: str = ""


@dataclass(frozen=True)
class Device:
    """A device (appliance or circuit) tracked by a monitor."""
    id: str
    name: str = ""
    type: str = ""
    make: str = ""
    model: str = ""

    @classmethod
    def unknown(cls, device_id: str) -> Device:
        """Placeholder for a device id missing from the catalog."""
        return cls(id=device_id)

    def label_values(self) -> Tuple[str, str, str, str, str]:
        """Label values in descriptor order: device_id, name, type, make, model."""
        return (self.id, self.name, self.type, self.make, self.model)


@dataclass(frozen=True)
class DevicePower:
    """Instantaneous power reading for one device."""
    device_id: str
    watts: float


@dataclass(frozen=True)
class DeviceState:
    """Mode and connectivity state of one device."""
    device_id: str
    mode: str
    state: str

    @property
    def is_active(self) -> bool:
        return self.mode == "active"

    @property
    def is_online(self) -> bool:
        return self.state == "online"


@dataclass(frozen=True)
class RealtimeUpdate:
    """Realtime power, frequency and voltage snapshot for a monitor."""
    watts: float
    hz: float
    voltage: Tuple[float, ...] = field(default_factory=tuple)
    devices: Tuple[DevicePower, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DeviceStates:
    """Batch of device states for a monitor."""
    states: Tuple[DeviceState, ...] = field(default_factory=tuple)


# Closed set of messages the realtime stream can deliver to a callback.
StreamMessage = Union[RealtimeUpdate, DeviceStates]
STREAM_MESSAGE_TYPES = (RealtimeUpdate, DeviceStates)


class StreamControl(Enum):
    """Returned by a stream callback to keep reading or to stop."""
    CONTINUE = "continue"
    STOP = "stop"


class StreamOutcome(Enum):
    """How a stream ended when it ended without an error."""
    STOPPED = "stopped"  # callback requested stop
    CLOSED = "closed"    # server closed the feed normally
