"""Actuation commands against a single device."""

from __future__ import annotations

import asyncio
import logging

from hapticctl.core.connection import ConnectionManager
from hapticctl.core.errors import CapabilityUnsupportedError, DeviceNotFoundError, HapticctlError
from hapticctl.core.model import Device, MotorSpec

LOGGER = logging.getLogger(__name__)

_CAPABILITY_VERBS = {
    "vibrate": "vibration",
    "rotate": "rotation",
    "linear": "linear movement",
}


def clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def motor_levels(spec: MotorSpec, level: float, motor: int | None = None) -> list[float]:
    """Per-motor values for a full-array command.

    With `motor` set, only that motor gets `level`; the rest are sent 0 so they
    are silenced rather than left at their previous value.
    """
    return [level if motor is None or motor == index else 0.0 for index in range(spec.motor_count)]


class Actuator:
    def __init__(self, connection: ConnectionManager) -> None:
        self.connection = connection

    async def vibrate(self, device_index: int, strength: float, motor: int | None = None) -> None:
        await self.connection.ensure_connected()
        spec = self._motor_spec(device_index, "vibrate", motor)
        scalars = [
            {"Index": index, "Scalar": level, "ActuatorType": "Vibrate"}
            for index, level in enumerate(motor_levels(spec, clamp(strength), motor))
        ]
        await self.connection.send("ScalarCmd", {"DeviceIndex": device_index, "Scalars": scalars})

    async def rotate(
        self,
        device_index: int,
        speed: float,
        clockwise: bool = True,
        motor: int | None = None,
    ) -> None:
        await self.connection.ensure_connected()
        spec = self._motor_spec(device_index, "rotate", motor)
        rotations = [
            {"Index": index, "Speed": level, "Clockwise": clockwise}
            for index, level in enumerate(motor_levels(spec, clamp(speed), motor))
        ]
        await self.connection.send("RotateCmd", {"DeviceIndex": device_index, "Rotations": rotations})

    async def linear(
        self,
        device_index: int,
        position: float,
        duration_ms: int,
        motor: int | None = None,
    ) -> None:
        await self.connection.ensure_connected()
        spec = self._motor_spec(device_index, "linear", motor)
        duration = max(0, int(duration_ms))
        vectors = [
            {"Index": index, "Duration": duration, "Position": level}
            for index, level in enumerate(motor_levels(spec, clamp(position), motor))
        ]
        await self.connection.send("LinearCmd", {"DeviceIndex": device_index, "Vectors": vectors})

    async def stop(self, device_index: int) -> None:
        await self.connection.ensure_connected()
        self._require_device(device_index)
        await self.connection.send("StopDeviceCmd", {"DeviceIndex": device_index})

    async def stop_all(self) -> None:
        # Advisory: usually called on shutdown paths where there may be no connection.
        if not self.connection.is_connected():
            LOGGER.debug("stop_all skipped: not connected")
            return
        await self.connection.send("StopAllDevices")

    async def get_battery(self, device_index: int) -> float | None:
        try:
            await self.connection.ensure_connected()
            self._require_device(device_index)
            reply = await self.connection.send("BatteryLevelCmd", {"DeviceIndex": device_index})
            return float(reply["BatteryLevel"])
        except (HapticctlError, KeyError, TypeError, ValueError) as exc:
            LOGGER.debug("Battery level unavailable for device %s: %s", device_index, exc)
            return None

    async def vibrate_for_duration(self, device_index: int, strength: float, duration_ms: int) -> None:
        await self.vibrate(device_index, strength)
        await asyncio.sleep(max(0, duration_ms) / 1000)
        await self.vibrate(device_index, 0.0)

    def _require_device(self, device_index: int) -> Device:
        device = self.connection.registry.get(device_index)
        if device is None:
            raise DeviceNotFoundError(f"Device {device_index} not found")
        return device

    def _motor_spec(self, device_index: int, capability: str, motor: int | None) -> MotorSpec:
        device = self._require_device(device_index)
        spec: MotorSpec | None = getattr(device.capabilities, capability)
        if spec is None:
            raise CapabilityUnsupportedError(
                f"Device {device_index} does not support {_CAPABILITY_VERBS[capability]}"
            )
        if motor is not None and not 0 <= motor < spec.motor_count:
            raise CapabilityUnsupportedError(
                f"Device {device_index} has no {capability} motor {motor} "
                f"(motors: 0-{spec.motor_count - 1})"
            )
        return spec
