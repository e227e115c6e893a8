from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

_CLOSED = object()


def vibrator(index: int = 0, name: str = "Test Vibe", motors: int = 1, steps: int = 20) -> dict[str, Any]:
    return {
        "DeviceIndex": index,
        "DeviceName": name,
        "DeviceMessages": {
            "ScalarCmd": [
                {"StepCount": steps, "ActuatorType": "Vibrate", "FeatureDescriptor": f"m{i}"}
                for i in range(motors)
            ],
            "StopDeviceCmd": {},
        },
    }


class FakeSocket:
    def __init__(self, server: FakeServer) -> None:
        self._server = server
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()
        self.is_open = True

    async def send(self, text: str) -> None:
        ((name, body),) = json.loads(text)[0].items()
        self._server.sent.append((name, body))
        reply = self._server.reply_for(name, body)
        if reply is not None:
            self.push(reply)

    def push(self, *frames: dict[str, Any]) -> None:
        self._inbox.put_nowait(json.dumps(list(frames)))

    def push_raw(self, text: str) -> None:
        self._inbox.put_nowait(text)

    def fail(self, exc: Exception) -> None:
        self._inbox.put_nowait(exc)

    async def messages(self):
        while True:
            item = await self._inbox.get()
            if item is _CLOSED:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def close(self) -> None:
        if self.is_open:
            self.is_open = False
            self._inbox.put_nowait(_CLOSED)


class FakeServer:
    """In-memory stand-in for the hardware-control server."""

    def __init__(self, devices: list[dict[str, Any]] | None = None) -> None:
        self.devices = list(devices or [])
        self.battery: dict[int, float] = {}
        self.errors: dict[str, str] = {}
        self.silent: set[str] = set()
        self.connect_error: Exception | None = None
        self.connect_delay = 0.0
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.sockets: list[FakeSocket] = []

    @property
    def socket(self) -> FakeSocket:
        return self.sockets[-1]

    def commands(self, name: str) -> list[dict[str, Any]]:
        return [body for sent, body in self.sent if sent == name]

    async def connect(self, url: str) -> FakeSocket:
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.connect_error is not None:
            raise self.connect_error
        socket = FakeSocket(self)
        self.sockets.append(socket)
        return socket

    def reply_for(self, name: str, body: dict[str, Any]) -> dict[str, Any] | None:
        message_id = body["Id"]
        if name in self.silent:
            return None
        if name in self.errors:
            return {"Error": {"Id": message_id, "ErrorMessage": self.errors[name], "ErrorCode": 4}}
        if name == "RequestServerInfo":
            return {"ServerInfo": {"Id": message_id, "ServerName": "Fake", "MessageVersion": 3, "MaxPingTime": 0}}
        if name == "RequestDeviceList":
            return {"DeviceList": {"Id": message_id, "Devices": self.devices}}
        if name == "BatteryLevelCmd":
            index = body["DeviceIndex"]
            if index not in self.battery:
                return {"Error": {"Id": message_id, "ErrorMessage": "Battery not supported", "ErrorCode": 3}}
            return {"BatteryLevelReading": {"Id": message_id, "DeviceIndex": index, "BatteryLevel": self.battery[index]}}
        return {"Ok": {"Id": message_id}}


@pytest.fixture
def server() -> FakeServer:
    return FakeServer(devices=[vibrator(0, "Test Vibe", motors=3)])


@pytest.fixture
def fast_connection_kwargs(server: FakeServer) -> dict[str, Any]:
    return {
        "connector": server.connect,
        "connect_timeout_s": 1.0,
        "reply_timeout_s": 1.0,
        "ready_poll_interval_s": 0.0,
        "ready_poll_attempts": 3,
    }
