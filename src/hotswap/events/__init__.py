"""Event system for observing the reloader."""

from hotswap.events.bus import EventBus
from hotswap.events.types import Event, EventType

__all__ = ["Event", "EventBus", "EventType"]
