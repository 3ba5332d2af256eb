"""
RoomService persists engine state through the RoomRepository.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import DatabaseError, NotFoundError
from core.game.game import GameState
from data.repository import RoomRepository

logger = logging.getLogger(__name__)


class RoomService:
    """Use-case service for storing and restoring rooms."""

    def __init__(self, repo: RoomRepository):
        self.repo = repo

    async def create_room(self, room_id: str, game: GameState) -> None:
        """Store a freshly created room and its initial ledger."""
        state = game.to_dict()
        try:
            room = await self.repo.create_room(room_id, state, version=game.version)
            await self.repo.append_entries(room, state["transactions"])
        except SQLAlchemyError as exc:
            logger.exception(f"Failed to create room {room_id}")
            raise DatabaseError(f"Could not store room {room_id}") from exc

    async def save_room(self, room_id: str, game: GameState, expected_version: int) -> None:
        """
        Persist the room if nobody else saved since expected_version.

        Raises:
            ConcurrencyError: If the stored version moved on
            NotFoundError: If the room was never stored
            DatabaseError: On any driver failure
        """
        state = game.to_dict()
        try:
            await self.repo.save_state(room_id, state, expected_version, game.version)
            room = await self.repo.get_room(room_id)
            written = await self.repo.append_entries(room, state["transactions"])
        except SQLAlchemyError as exc:
            logger.exception(f"Failed to save room {room_id}")
            raise DatabaseError(f"Could not save room {room_id}") from exc
        logger.debug(f"Saved room {room_id} at version {game.version} ({written} new ledger entries)")

    async def load_room(self, room_id: str) -> GameState:
        try:
            room = await self.repo.get_room(room_id)
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Could not load room {room_id}") from exc
        if room is None:
            raise NotFoundError(f"Room {room_id} not found")
        game = GameState.from_dict(room.state)
        game.version = room.version
        return game

    async def list_rooms(self) -> List[str]:
        return await self.repo.list_room_ids()

    async def transactions(self, room_id: str) -> List[Dict[str, Any]]:
        """Stored ledger entries of a room, oldest first."""
        entries = await self.repo.get_entries(room_id)
        return [
            {
                "id": e.sequence_number,
                "sender_index": e.sender_index,
                "recipient_index": e.recipient_index,
                "amount": e.amount,
                "kind": e.kind,
                "description": e.description,
                "timestamp": e.timestamp.isoformat(),
            }
            for e in entries
        ]
