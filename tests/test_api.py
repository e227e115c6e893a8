from __future__ import annotations

import pytest

from conftest import FakeServer, vibrator
from hapticctl.api import Client, ClientConfig, ConnectionState

_CONFIG = ClientConfig(
    server_url="ws://fake",
    connect_timeout_s=1.0,
    reply_timeout_s=1.0,
    ready_poll_interval_s=0.0,
    ready_poll_attempts=3,
)


def _rotator(index: int) -> dict:
    return {
        "DeviceIndex": index,
        "DeviceName": "Spinner",
        "DeviceMessages": {"RotateCmd": [{"StepCount": 10}]},
    }


@pytest.mark.asyncio
async def test_public_client_connects_and_lists_devices(server: FakeServer) -> None:
    async with Client(_CONFIG, connector=server.connect) as client:
        await client.connect()
        assert client.is_connected()
        assert client.state is ConnectionState.CONNECTED
        devices = client.get_devices()
        assert [(d.index, d.name) for d in devices] == [(0, "Test Vibe")]
        assert devices[0].capabilities.vibrate.motor_count == 3
    assert not client.is_connected()


@pytest.mark.asyncio
async def test_public_client_presence_follows_work_signal(server: FakeServer) -> None:
    client = Client(_CONFIG, connector=server.connect)
    await client.restore(active=False, device=0, strength=0.2)

    await client.on_work_signal(2)
    await client.on_work_signal(0)

    scalar, = server.commands("ScalarCmd")
    assert [s["Scalar"] for s in scalar["Scalars"]] == [0.2, 0.2, 0.2]
    assert len(server.commands("StopDeviceCmd")) == 1
    assert client.active is False
    await client.disconnect()


@pytest.mark.asyncio
async def test_public_client_start_survives_unreachable_server() -> None:
    unreachable = FakeServer()
    unreachable.connect_error = OSError("connection refused")
    client = Client(_CONFIG, connector=unreachable.connect)

    await client.start(0, 0.5)

    assert client.active is True
    assert client.since is not None
    assert client.status()["strength"] == 0.5


@pytest.mark.asyncio
async def test_send_haptic_targets_first_vibration_device() -> None:
    server = FakeServer(devices=[_rotator(0), vibrator(3, motors=1)])
    client = Client(_CONFIG, connector=server.connect)

    await client.send_haptic(0.6, duration_ms=1)

    start, end = server.commands("ScalarCmd")
    assert start["DeviceIndex"] == 3
    assert start["Scalars"][0]["Scalar"] == 0.6
    assert end["Scalars"][0]["Scalar"] == 0.0
    await client.disconnect()


@pytest.mark.asyncio
async def test_send_haptic_without_vibrator_sends_nothing() -> None:
    server = FakeServer(devices=[_rotator(0)])
    client = Client(_CONFIG, connector=server.connect)

    await client.send_haptic(0.6, duration_ms=1)

    assert server.commands("ScalarCmd") == []
    await client.disconnect()
