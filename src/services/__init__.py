"""
Application services layer.

Provides use-case oriented services that glue core logic with persistence.
"""

from .room_service import RoomService

__all__ = ["RoomService"]
