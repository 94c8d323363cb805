# src/sense_exporter/core/client.py
"""Capability interface the collectors use to talk to a Sense account."""

from __future__ import annotations

from typing import Callable, Protocol, Sequence, runtime_checkable

from .models import Device, Monitor, StreamControl, StreamMessage, StreamOutcome

MessageCallback = Callable[[StreamMessage], StreamControl]


@runtime_checkable
class SenseClient(Protocol):
    """
    Read-only view of one authenticated Sense account.

    Implementations are shared by concurrent scrapes and must not mutate
    state while collecting. Deadlines are applied by cancelling the awaiting
    task, so both coroutines must release their connections on cancellation.
    """

    def get_user_id(self) -> int:
        ...

    def get_account_id(self) -> int:
        ...

    def get_monitors(self) -> Sequence[Monitor]:
        ...

    async def get_devices(self, monitor_id: int, include_merged: bool = False) -> Sequence[Device]:
        """Return the device catalog for a monitor, raising on upstream errors."""
        ...

    async def stream(self, monitor_id: int, on_message: MessageCallback) -> StreamOutcome:
        """
        Feed realtime messages to ``on_message`` until it returns STOP.

        Returns:
            StreamOutcome.STOPPED when the callback asked to stop,
            StreamOutcome.CLOSED when the server ended the feed normally.

        Raises:
            SenseError (or a transport error) when the feed fails.
        """
        ...
