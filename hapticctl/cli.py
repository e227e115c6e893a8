"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

import typer

from hapticctl.api import Client
from hapticctl.core.config import load_config
from hapticctl.core.errors import HapticctlError

app = typer.Typer(help="Drive haptic devices through a local hardware-control server")

_options: dict[str, Any] = {"url": None, "config": None}


@app.callback()
def main(
    url: str | None = typer.Option(None, "--url", help="Server WebSocket URL"),
    config: Path | None = typer.Option(None, "--config", help="Path to config YAML"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log protocol activity"),
) -> None:
    _options["url"] = url
    _options["config"] = config
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


def _build_client() -> Client:
    config = load_config(_options["config"])
    if _options["url"]:
        config = replace(config, server_url=_options["url"])
    return Client(config)


def _run(action: Callable[[Client], Awaitable[None]]) -> None:
    async def _session() -> None:
        client = _build_client()
        try:
            await client.connect()
            await action(client)
        finally:
            await client.disconnect()

    try:
        asyncio.run(_session())
    except HapticctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("devices")
def list_devices() -> None:
    """List devices announced by the server and their actuators."""

    async def action(client: Client) -> None:
        devices = client.get_devices()
        if not devices:
            typer.echo("No devices found")
            return
        for device in devices:
            caps = device.capabilities
            parts = [
                f"{name}:{getattr(caps, name).motor_count}" for name in caps.names()
            ]
            typer.echo(f"{device.index}: {device.name} [{', '.join(parts) or 'no actuators'}]")

    _run(action)


@app.command("vibrate")
def vibrate(
    index: int,
    strength: float,
    motor: int | None = typer.Option(None, "--motor", help="Only drive this motor"),
    duration_ms: int = typer.Option(1000, "--duration-ms", help="Pulse length"),
) -> None:
    """Vibrate a device for a duration, then stop it."""

    async def action(client: Client) -> None:
        await client.vibrate(index, strength, motor)
        await asyncio.sleep(duration_ms / 1000)
        await client.vibrate(index, 0.0)
        typer.echo(f"Vibrated device {index} at {strength:g} for {duration_ms}ms")

    _run(action)


@app.command("rotate")
def rotate(
    index: int,
    speed: float,
    counter_clockwise: bool = typer.Option(False, "--counter-clockwise"),
    motor: int | None = typer.Option(None, "--motor", help="Only drive this motor"),
    duration_ms: int = typer.Option(1000, "--duration-ms", help="Rotation length"),
) -> None:
    """Rotate a device for a duration, then stop it."""

    async def action(client: Client) -> None:
        await client.rotate(index, speed, not counter_clockwise, motor)
        await asyncio.sleep(duration_ms / 1000)
        await client.stop(index)
        typer.echo(f"Rotated device {index} at {speed:g} for {duration_ms}ms")

    _run(action)


@app.command("linear")
def linear(
    index: int,
    position: float,
    duration_ms: int,
    motor: int | None = typer.Option(None, "--motor", help="Only drive this motor"),
) -> None:
    """Move a linear actuator to POSITION over DURATION_MS."""

    async def action(client: Client) -> None:
        await client.linear(index, position, duration_ms, motor)
        await asyncio.sleep(duration_ms / 1000)
        typer.echo(f"Moved device {index} to {position:g}")

    _run(action)


@app.command("stop")
def stop(index: int) -> None:
    """Stop one device."""

    async def action(client: Client) -> None:
        await client.stop(index)
        typer.echo(f"Stopped device {index}")

    _run(action)


@app.command("stop-all")
def stop_all() -> None:
    """Stop every device."""

    async def action(client: Client) -> None:
        await client.stop_all()
        typer.echo("Stopped all devices")

    _run(action)


@app.command("battery")
def battery(index: int) -> None:
    """Show a device's battery level."""

    async def action(client: Client) -> None:
        level = await client.get_battery(index)
        shown = f"{level * 100:.0f}%" if level is not None else "unknown"
        typer.echo(f"Device {index} battery: {shown}")

    _run(action)


@app.command("haptic")
def haptic(
    strength: float,
    duration_ms: int = typer.Option(2000, "--duration-ms", help="Pulse length"),
) -> None:
    """Send one pulse to the first vibration-capable device."""

    async def action(client: Client) -> None:
        await client.send_haptic(strength, duration_ms)
        typer.echo(f"Sent haptic pulse at {strength:g} for {duration_ms}ms")

    _run(action)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
