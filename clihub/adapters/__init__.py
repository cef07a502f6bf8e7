"""Adapters package - Bridge between engine and UI frontends.

This package contains the tool bridge and event bus that connect
the engine to the TUI and the headless CLI.
"""
from __future__ import annotations

__all__ = [
    "ToolBridge",
    "EventBus",
]

from clihub.adapters.bridge import ToolBridge
from clihub.adapters.event_bus import EventBus
