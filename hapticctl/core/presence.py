"""Ambient presence state and the work-signal bridge."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from hapticctl.core.actuation import Actuator, clamp
from hapticctl.core.model import DEFAULT_STRENGTH, PresenceState

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PresenceController:
    """Keeps a device vibrating gently while work is happening.

    State is committed before any device command is sent, and device failures
    are logged, never raised: the presence state stays correct even when the
    hardware is unreachable.
    """

    def __init__(
        self,
        actuator: Actuator,
        *,
        default_strength: float = DEFAULT_STRENGTH,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.actuator = actuator
        self.default_strength = default_strength
        self.state = PresenceState(strength=default_strength)
        self._clock = clock or _utcnow

    @property
    def active(self) -> bool:
        return self.state.active

    @property
    def device(self) -> int:
        return self.state.device

    @property
    def strength(self) -> float:
        return self.state.strength

    @property
    def since(self) -> datetime | None:
        return self.state.since

    def status(self) -> dict[str, Any]:
        return {
            "active": self.state.active,
            "device": self.state.device,
            "strength": self.state.strength,
            "since": self.state.since.isoformat() if self.state.since else None,
        }

    async def set_state(self, active: bool, device: int = 0, strength: float | None = None) -> None:
        strength = clamp(self.default_strength if strength is None else strength)
        was_active = self.state.active
        is_changing = active != was_active

        self.state.active = active
        self.state.device = device
        self.state.strength = strength
        if not active:
            self.state.since = None
        elif not was_active:
            self.state.since = self._clock()

        if not is_changing:
            return
        try:
            if active:
                LOGGER.info(
                    "Starting work presence vibration (device=%s, strength=%s)", device, strength
                )
                await self.actuator.vibrate(device, strength)
            else:
                LOGGER.info("Stopping work presence vibration (device=%s)", device)
                await self.actuator.stop(device)
        except Exception as exc:
            LOGGER.warning("Failed to control device %s: %s", device, exc)

    async def start(self, device: int = 0, strength: float | None = None) -> None:
        await self.set_state(True, device, strength)

    async def stop(self, device: int = 0, strength: float | None = None) -> None:
        await self.set_state(False, device, strength)

    async def toggle(self, device: int = 0, strength: float | None = None) -> None:
        await self.set_state(not self.state.active, device, strength)

    async def restore(
        self,
        active: bool | None = None,
        device: int | None = None,
        strength: float | None = None,
    ) -> None:
        """Re-apply last-known presence, e.g. values loaded from an external store."""
        await self.set_state(
            self.state.active if active is None else active,
            self.state.device if device is None else device,
            self.state.strength if strength is None else strength,
        )

    async def on_work_signal(self, working: int) -> None:
        """Start or stop vibration when the working count crosses zero.

        Magnitude changes (3 -> 5) are ignored; only zero/non-zero edges act.
        """
        if working < 0:
            raise ValueError(f"Working count must be non-negative, got {working}")
        was_working = self.state.last_work_signal > 0
        is_working = working > 0
        self.state.last_work_signal = working
        if was_working == is_working:
            return

        device = self.state.device
        try:
            if is_working:
                LOGGER.info("Starting vibration")
                await self.actuator.vibrate(device, self.state.strength)
            else:
                LOGGER.info("Stopping vibration")
                await self.actuator.stop(device)
        except Exception as exc:
            LOGGER.warning("Failed to control device %s: %s", device, exc)

    async def send_haptic(self, strength: float, duration_ms: int = 2000) -> None:
        await self.actuator.connection.ensure_connected()
        device = self.actuator.connection.registry.first_with("vibrate")
        if device is None:
            LOGGER.warning("No vibration-capable device found")
            return
        await self.actuator.vibrate_for_duration(device.index, strength, duration_ms)
