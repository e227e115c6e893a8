"""Wire envelope encoding and frame decoding.

Every message on the wire is a JSON array of single-key objects. The key is the
message type and the value is the message body::

    [{"ScalarCmd": {"Id": 4, "DeviceIndex": 0, "Scalars": [...]}}]
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from hapticctl.core.errors import DecodeError


@dataclass(frozen=True)
class Frame:
    type: str
    content: dict[str, Any]
    id: int | None = None


def encode_message(name: str, message_id: int, payload: Mapping[str, Any] | None = None) -> str:
    body: dict[str, Any] = {"Id": message_id}
    if payload:
        body.update(payload)
    return json.dumps([{name: body}])


def decode_frames(text: str | bytes) -> list[Frame]:
    """Parse one wire message into frames.

    Raises DecodeError if the message is not a non-empty array of single-key
    objects; no partial result is returned.
    """
    try:
        loaded = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Frame is not valid JSON: {exc}") from exc

    if not isinstance(loaded, list) or not loaded:
        raise DecodeError("Frame must be a non-empty JSON array")

    frames: list[Frame] = []
    for position, entry in enumerate(loaded):
        if not isinstance(entry, dict) or len(entry) != 1:
            raise DecodeError(f"Entry {position} must be an object with exactly one key")
        ((frame_type, content),) = entry.items()
        if not isinstance(content, dict):
            raise DecodeError(f"Entry {position} ({frame_type}) must carry an object body")
        message_id = content.get("Id")
        if isinstance(message_id, bool) or not isinstance(message_id, int):
            message_id = None
        frames.append(Frame(type=frame_type, content=content, id=message_id))
    return frames
