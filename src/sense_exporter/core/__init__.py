# src/sense_exporter/core/__init__.py
"""Core components: domain models, client interface, configuration."""

from .models import (
    Monitor,
    Device,
    DevicePower,
    DeviceState,
    RealtimeUpdate,
    DeviceStates,
    StreamMessage,
    STREAM_MESSAGE_TYPES,
    StreamControl,
    StreamOutcome,
)
from .errors import (
    SenseError,
    AuthenticationError,
    SenseAPIError,
    StreamError,
    ConfigurationError,
)
from .client import SenseClient, MessageCallback
from .config import (
    Config,
    ConfigValidator,
    ServerConfig,
    CollectionConfig,
    AccountConfig,
    LoggingConfig,
)

__all__ = [
    # Models
    "Monitor",
    "Device",
    "DevicePower",
    "DeviceState",
    "RealtimeUpdate",
    "DeviceStates",
    "StreamMessage",
    "STREAM_MESSAGE_TYPES",
    "StreamControl",
    "StreamOutcome",

    # Errors
    "SenseError",
    "AuthenticationError",
    "SenseAPIError",
    "StreamError",
    "ConfigurationError",

    # Client interface
    "SenseClient",
    "MessageCallback",

    # Configuration
    "Config",
    "ConfigValidator",
    "ServerConfig",
    "CollectionConfig",
    "AccountConfig",
    "LoggingConfig",
]
