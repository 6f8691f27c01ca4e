"""Snapshot serialization utilities."""

from __future__ import annotations

import dataclasses
import json
import math
from typing import Any


MAX_FRAME_BYTES = 10 * 1024 * 1024


def to_jsonable(value: Any) -> Any:
    """Convert snapshot dataclasses and tuples into plain JSON values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if hasattr(value, "tolist"):
        return value.tolist()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def serialize_state(state: Any) -> bytes:
    """Serialize a snapshot or message into deterministic JSON bytes."""
    payload = to_jsonable(state)
    data = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    if len(data) > MAX_FRAME_BYTES:
        raise ValueError(
            f"Serialized frame exceeds max size ({len(data)} bytes > {MAX_FRAME_BYTES})."
        )
    return data


def build_message(message_type: str, data: Any) -> bytes:
    """Wrap ``data`` in the ``{"type", "data"}`` envelope clients expect."""
    return serialize_state({"type": message_type, "data": data})
