"""Async client for haptic devices behind a local hardware-control server."""
