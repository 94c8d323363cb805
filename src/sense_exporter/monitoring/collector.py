# src/sense_exporter/monitoring/collector.py
"""Collects one snapshot of metrics from one Sense monitor."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, MutableMapping, Optional, Tuple

from ..core import SenseClient
from .aggregator import StreamAggregator
from .catalog import DeviceCatalog, DeviceCatalogFetcher
from .descriptors import DEVICE_WATTS, SCRAPE_TIME, UP, Sample

logger = logging.getLogger(__name__)


class CollectionLogAdapter(logging.LoggerAdapter):
    """Prefixes records with the account, user and monitor being collected."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs.setdefault("extra", {}).update(self.extra)
        return (
            f"[account={self.extra['sense_account']} user={self.extra['sense_user']} "
            f"monitor={self.extra['sense_monitor']}] {msg}",
            kwargs,
        )


@dataclass
class CollectionResult:
    """Samples and outcome of one monitor collection."""
    monitor_id: int
    samples: List[Sample]
    success: bool
    duration_seconds: float
    error: Optional[str] = None


@dataclass
class _CollectionState:
    catalog: Optional[DeviceCatalog] = None
    aggregator: Optional[StreamAggregator] = None
    samples: List[Sample] = field(default_factory=list)


class MonitorCollector:
    """
    Runs one collection for a (client, monitor) pair.

    Every call to ``collect`` emits exactly one ``sense_monitor_up`` and one
    ``sense_scrape_time_seconds`` sample, whatever happens upstream.
    """

    def __init__(self,
                 client: SenseClient,
                 monitor_id: int,
                 timeout: float = 0.0):
        """
        Initialize collector.

        Args:
            client: Authenticated Sense account owning the monitor
            monitor_id: Monitor to collect from
            timeout: Deadline in seconds for the whole collection, 0 for none
        """
        self.client = client
        self.monitor_id = monitor_id
        self.timeout = timeout
        self.log = CollectionLogAdapter(logger, {
            "sense_account": client.get_account_id(),
            "sense_user": client.get_user_id(),
            "sense_monitor": monitor_id,
        })

    async def collect(self) -> CollectionResult:
        """Collect from the monitor; upstream failures become up=0."""
        self.log.info(f"Collecting from monitor {self.monitor_id}")
        state = _CollectionState()
        start = time.monotonic()
        success = True
        error: Optional[str] = None

        try:
            if self.timeout > 0:
                await asyncio.wait_for(self._run(state), self.timeout)
            else:
                await self._run(state)
        except asyncio.TimeoutError:
            success = False
            error = f"collection timed out after {self.timeout}s"
            self.log.warning(error)
        except asyncio.CancelledError:
            success = False
            error = "collection cancelled"
            self.log.warning(error)
            raise
        except Exception as e:
            success = False
            error = f"{type(e).__name__}: {e}"
            self.log.error(f"Collection failed: {error}")
        finally:
            self._backfill_watts(state)

            duration = time.monotonic() - start
            state.samples.append(Sample(UP, (), 1.0 if success else 0.0))
            state.samples.append(Sample(SCRAPE_TIME, (), duration))
            self.log.info(f"collection for monitor {self.monitor_id} completed in {duration:.3f}s")

        return CollectionResult(
            monitor_id=self.monitor_id,
            samples=state.samples,
            success=success,
            duration_seconds=duration,
            error=error,
        )

    async def _run(self, state: _CollectionState) -> None:
        state.catalog = await DeviceCatalogFetcher(self.client).fetch(self.monitor_id)
        state.aggregator = StreamAggregator(state.catalog, state.samples)

        outcome = await self.client.stream(self.monitor_id, state.aggregator.on_message)
        self.log.debug(f"Stream ended: {outcome.value} (state={state.aggregator.state.value})")

    def _backfill_watts(self, state: _CollectionState) -> None:
        """Zero watts for catalog devices the realtime update did not report."""
        if state.catalog is None:
            return

        seen = state.aggregator.seen_devices if state.aggregator else set()
        for device in state.catalog:
            if device.id not in seen:
                state.samples.append(Sample(DEVICE_WATTS, device.label_values(), 0.0))
