"""
Event utilities: the typed event bus and canonical mapping.

This package exposes the engine's EventEmitter and helpers to convert
internal engine events into a stable, public-facing JSON shape suitable
for logging and real-time UIs.
"""

from core.events.emitter import EventEmitter, EventType, GameEvent
from core.events.mapper import map_event, map_events

__all__ = [
    "EventEmitter",
    "EventType",
    "GameEvent",
    "map_event",
    "map_events",
]
