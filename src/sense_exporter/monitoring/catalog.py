# src/sense_exporter/monitoring/catalog.py
"""Per-scrape device catalog for one monitor."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Tuple

from ..core import Device, SenseClient

logger = logging.getLogger(__name__)


class DeviceCatalog:
    """Devices known to a monitor, keyed by device id."""

    def __init__(self, devices: Iterable[Device] = ()):
        self._devices: List[Device] = []
        self._by_id: Dict[str, Device] = {}
        for device in devices:
            if device.id in self._by_id:
                continue
            self._devices.append(device)
            self._by_id[device.id] = device

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[Device]:
        return iter(self._devices)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._by_id

    def get(self, device_id: str) -> Device:
        """Return the device, or a blank record for an id the catalog lacks."""
        return self._by_id.get(device_id) or Device.unknown(device_id)

    def labels_for(self, device_id: str) -> Tuple[str, str, str, str, str]:
        return self.get(device_id).label_values()


class DeviceCatalogFetcher:
    """Loads the device catalog for a monitor through a SenseClient."""

    def __init__(self, client: SenseClient, include_merged: bool = False):
        self.client = client
        self.include_merged = include_merged

    async def fetch(self, monitor_id: int) -> DeviceCatalog:
        """
        Fetch the catalog.

        Upstream errors propagate. The call is cancelled with the awaiting
        task, so a collection deadline bounds it.
        """
        devices = await self.client.get_devices(monitor_id, self.include_merged)
        catalog = DeviceCatalog(devices)
        logger.debug(f"Fetched {len(catalog)} devices for monitor {monitor_id}")
        return catalog
