# tests/conftest.py
"""Pytest configuration and shared fixtures."""

import pytest
import yaml

from sense_exporter.core import (
    Device,
    DevicePower,
    DeviceState,
    DeviceStates,
    RealtimeUpdate,
)

from tests.mocks import FakeMonitor, FakeSenseClient


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture(autouse=True)
def clean_sense_env(monkeypatch):
    """Keep the developer's SENSE_* environment out of config tests."""
    for name in [
        "SENSE_EMAIL", "SENSE_PASSWORD", "SENSE_PASSWORD_FILE", "SENSE_MFA_COMMAND",
        "SENSE_EXPORTER_HOST", "SENSE_EXPORTER_PORT", "SENSE_EXPORTER_TIMEOUT",
        "SENSE_EXPORTER_LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def two_devices():
    """Catalog with a fridge and a dryer."""
    return [
        Device(id="D1", name="Fridge", type="Fridge", make="LG", model="LFX"),
        Device(id="D2", name="Dryer", type="Dryer", make="Whirlpool", model="WED"),
    ]


@pytest.fixture
def realtime_d1():
    """Realtime update reporting only D1."""
    return RealtimeUpdate(
        watts=1500.0,
        hz=60.01,
        voltage=(120.5, 119.8),
        devices=(DevicePower(device_id="D1", watts=25.5),),
    )


@pytest.fixture
def states_d1_on_d2_off():
    """Device state batch: D1 active/online, D2 inactive/offline."""
    return DeviceStates(states=(
        DeviceState(device_id="D1", mode="active", state="online"),
        DeviceState(device_id="D2", mode="inactive", state="offline"),
    ))


@pytest.fixture
def healthy_client(two_devices, realtime_d1, states_d1_on_d2_off):
    """Client with one monitor whose stream delivers both message kinds."""
    return FakeSenseClient(monitors={
        1: FakeMonitor(
            devices=two_devices,
            messages=[realtime_d1, states_d1_on_d2_off],
            hang_stream=True,
        ),
    })


@pytest.fixture
def config_file(tmp_path):
    """Create a temporary configuration file."""
    config_path = tmp_path / "sense.yaml"

    password_file = tmp_path / "password.txt"
    password_file.write_text("from-file\n")

    config_data = {
        "server": {
            "host": "127.0.0.1",
            "port": 9999,
        },
        "collection": {
            "timeout": 5,
        },
        "logging": {
            "level": "debug",
        },
        "accounts": [
            {"email": "one@example.com", "password": "secret"},
            {"email": "two@example.com", "password_file": str(password_file), "mfa_command": "echo 123456"},
        ],
    }

    with open(config_path, 'w') as f:
        yaml.dump(config_data, f)

    return config_path
