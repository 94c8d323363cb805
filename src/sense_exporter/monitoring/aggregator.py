# src/sense_exporter/monitoring/aggregator.py
"""Folds realtime stream messages for one monitor into gauge samples."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Set

from typing_extensions import assert_never

from ..core import (
    DeviceStates,
    RealtimeUpdate,
    STREAM_MESSAGE_TYPES,
    StreamControl,
    StreamMessage,
)
from .catalog import DeviceCatalog
from .descriptors import (
    DEVICE_ACTIVE,
    DEVICE_ONLINE,
    DEVICE_WATTS,
    MONITOR_HZ,
    MONITOR_VOLTS,
    MONITOR_WATTS,
    Sample,
)

logger = logging.getLogger(__name__)


class AggregatorState(Enum):
    """Progress of a single collection."""
    NOT_STARTED = "not_started"
    COLLECTING = "collecting"
    DONE = "done"


class StreamAggregator:
    """
    Consumes the first realtime update and the first device-state batch.

    Samples are appended to ``sink`` as messages arrive, so anything emitted
    before a stream failure or deadline stays in the output. Later messages
    of a kind already seen are dropped.
    """

    def __init__(self, catalog: DeviceCatalog, sink: List[Sample]):
        self.catalog = catalog
        self.sink = sink
        self.got_realtime = False
        self.got_states = False
        self.seen_devices: Set[str] = set()

    @property
    def state(self) -> AggregatorState:
        if self.got_realtime and self.got_states:
            return AggregatorState.DONE
        if self.got_realtime or self.got_states:
            return AggregatorState.COLLECTING
        return AggregatorState.NOT_STARTED

    @property
    def done(self) -> bool:
        return self.state is AggregatorState.DONE

    def on_message(self, message: StreamMessage) -> StreamControl:
        """Stream callback; returns STOP once both message kinds were seen."""
        if isinstance(message, STREAM_MESSAGE_TYPES):
            self._dispatch(message)
        else:
            logger.debug(f"Ignoring unexpected stream message {type(message).__name__}")

        return StreamControl.STOP if self.done else StreamControl.CONTINUE

    def _dispatch(self, message: StreamMessage) -> None:
        if isinstance(message, RealtimeUpdate):
            if not self.got_realtime:
                self._handle_realtime(message)
                self.got_realtime = True
        elif isinstance(message, DeviceStates):
            if not self.got_states:
                self._handle_states(message)
                self.got_states = True
        else:
            assert_never(message)

    def _handle_realtime(self, update: RealtimeUpdate) -> None:
        for power in update.devices:
            if power.device_id in self.seen_devices:
                continue
            self.sink.append(Sample(DEVICE_WATTS, self.catalog.labels_for(power.device_id), float(power.watts)))
            self.seen_devices.add(power.device_id)

        for channel, volts in enumerate(update.voltage):
            self.sink.append(Sample(MONITOR_VOLTS, (str(channel),), float(volts)))

        self.sink.append(Sample(MONITOR_WATTS, (), float(update.watts)))
        self.sink.append(Sample(MONITOR_HZ, (), float(update.hz)))

    def _handle_states(self, batch: DeviceStates) -> None:
        reported: Set[str] = set()
        for state in batch.states:
            if state.device_id in reported:
                continue
            reported.add(state.device_id)
            labels = self.catalog.labels_for(state.device_id)
            self.sink.append(Sample(DEVICE_ACTIVE, labels, 1.0 if state.is_active else 0.0))
            self.sink.append(Sample(DEVICE_ONLINE, labels, 1.0 if state.is_online else 0.0))
