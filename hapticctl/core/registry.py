"""Device registry and device descriptor parsing."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from hapticctl.core.errors import DecodeError
from hapticctl.core.model import Capabilities, Device, MotorSpec


def _motor_spec(entries: Sequence[Mapping[str, Any]]) -> MotorSpec | None:
    if not entries:
        return None
    return MotorSpec(
        motor_count=len(entries),
        step_resolutions=tuple(int(entry.get("StepCount", 0)) for entry in entries),
    )


def _entries(messages: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    raw = messages.get(key) or []
    if not isinstance(raw, list) or not all(isinstance(entry, dict) for entry in raw):
        raise DecodeError(f"DeviceMessages.{key} must be a list of objects")
    return raw


def parse_device(raw: Mapping[str, Any]) -> Device:
    """Build a Device from a DeviceAdded / DeviceList entry.

    Only ScalarCmd entries with ActuatorType "Vibrate" count as vibration
    motors. Actuator groups with no entries are left unset.
    """
    try:
        index = raw["DeviceIndex"]
        name = raw.get("DeviceName", "")
        messages = raw.get("DeviceMessages") or {}
    except (AttributeError, KeyError, TypeError) as exc:
        raise DecodeError(f"Device descriptor missing field: {exc}") from exc
    if isinstance(index, bool) or not isinstance(index, int):
        raise DecodeError(f"DeviceIndex must be an integer, got {index!r}")
    if not isinstance(messages, dict):
        raise DecodeError("DeviceMessages must be an object")

    vibrate = [
        entry
        for entry in _entries(messages, "ScalarCmd")
        if entry.get("ActuatorType") == "Vibrate"
    ]
    try:
        capabilities = Capabilities(
            vibrate=_motor_spec(vibrate),
            rotate=_motor_spec(_entries(messages, "RotateCmd")),
            linear=_motor_spec(_entries(messages, "LinearCmd")),
        )
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Invalid StepCount in device {index}: {exc}") from exc

    return Device(index=index, name=str(name), capabilities=capabilities)


class DeviceRegistry:
    """Devices currently announced by the server, keyed by device index."""

    def __init__(self) -> None:
        self._devices: dict[int, Device] = {}

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, index: object) -> bool:
        return index in self._devices

    def __iter__(self) -> Iterator[Device]:
        return iter(list(self._devices.values()))

    def get(self, index: int) -> Device | None:
        return self._devices.get(index)

    def upsert(self, device: Device) -> None:
        self._devices[device.index] = device

    def remove(self, index: int) -> Device | None:
        return self._devices.pop(index, None)

    def clear(self) -> None:
        self._devices.clear()

    def first_with(self, capability: str) -> Device | None:
        for device in self._devices.values():
            if getattr(device.capabilities, capability) is not None:
                return device
        return None
