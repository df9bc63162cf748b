"""Event type definitions for the event bus."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of events published by the reloader."""

    # Lifecycle events
    RELOADER_STARTED = "reloader.started"
    RELOADER_STOPPED = "reloader.stopped"

    # Check cycle events
    RELOADER_TICK = "reloader.tick"

    # Module events
    MODULE_RELOADED = "module.reloaded"
    MODULE_RELOAD_FAILED = "module.reload_failed"


class Event(BaseModel):
    """A published event."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    data: dict[str, Any] = Field(default_factory=dict)

