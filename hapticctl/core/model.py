"""Core data models used across registry, actuation, and presence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

DEFAULT_STRENGTH = 0.15


@dataclass(frozen=True)
class MotorSpec:
    motor_count: int
    step_resolutions: tuple[int, ...]


@dataclass(frozen=True)
class Capabilities:
    vibrate: MotorSpec | None = None
    rotate: MotorSpec | None = None
    linear: MotorSpec | None = None

    def names(self) -> tuple[str, ...]:
        return tuple(
            name
            for name in ("vibrate", "rotate", "linear")
            if getattr(self, name) is not None
        )


@dataclass(frozen=True)
class Device:
    index: int
    name: str
    capabilities: Capabilities


@dataclass
class PresenceState:
    active: bool = False
    device: int = 0
    strength: float = DEFAULT_STRENGTH
    since: datetime | None = None
    last_work_signal: int = 0
