"""Push event types emitted by the tool bridge.

Each event corresponds to a bridge callback dict, parsed into
a typed dataclass for safe consumption by the TUI.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class BridgeEvent:
    """Base event from the tool bridge."""
    event_type: str = ""
    tool: str = ""
    proc_id: str = ""


@dataclass
class SessionStarted(BridgeEvent):
    event_type: str = "session_started"


@dataclass
class StreamChunk(BridgeEvent):
    event_type: str = "stream_chunk"
    text: str = ""


@dataclass
class StreamEnd(BridgeEvent):
    event_type: str = "stream_end"


@dataclass
class SessionStopped(BridgeEvent):
    event_type: str = "session_stopped"
    count: int = 0


_EVENT_MAP: dict[str, type[BridgeEvent]] = {
    "session_started": SessionStarted,
    "stream_chunk": StreamChunk,
    "stream_end": StreamEnd,
    "session_stopped": SessionStopped,
}


def event_to_dict(event: BridgeEvent) -> dict[str, Any]:
    """Convert a typed event dataclass to a plain dict."""
    d: dict[str, Any] = {}
    for f in event.__dataclass_fields__:
        val = getattr(event, f)
        if val is not None:
            d[f] = val
    # Use "event" key instead of "event_type" for consistency with bridge callbacks
    if "event_type" in d:
        d["event"] = d.pop("event_type")
    return d


def dict_to_event(data: dict[str, Any]) -> BridgeEvent:
    """Convert a bridge callback dict to a typed event dataclass."""
    event_type = data.get("event", "")
    cls = _EVENT_MAP.get(event_type, BridgeEvent)
    # Filter dict keys to only those the dataclass accepts
    valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    if "event" in data and "event_type" not in filtered:
        filtered["event_type"] = data["event"]
    return cls(**filtered)
