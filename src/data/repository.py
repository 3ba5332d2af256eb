"""
Repository pattern for room persistence.

Encapsulates all database queries for rooms and their ledger entries.
Room saves are optimistic: a write only applies when the stored version
still matches the version the caller read.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConcurrencyError, NotFoundError
from data.models import LedgerEntry, Room, utc_now

logger = logging.getLogger(__name__)


class RoomRepository:
    """Repository for room-related database operations."""

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Active async SQLAlchemy session
        """
        self.session = session

    # ---- Room Operations ----

    async def create_room(self, room_id: str, state: Dict[str, Any], version: int = 0) -> Room:
        room = Room(room_id=room_id, state=state, version=version)
        self.session.add(room)
        await self.session.flush()
        logger.info(f"Created room: {room_id} (UUID: {room.id})")
        return room

    async def get_room(self, room_id: str) -> Optional[Room]:
        stmt = select(Room).where(Room.room_id == room_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_room_ids(self) -> List[str]:
        result = await self.session.execute(select(Room.room_id).order_by(Room.created_at))
        return list(result.scalars().all())

    async def save_state(
        self,
        room_id: str,
        state: Dict[str, Any],
        expected_version: int,
        new_version: int,
    ) -> None:
        """
        Write a new room state if the stored version is still expected_version.

        Raises:
            NotFoundError: If the room does not exist
            ConcurrencyError: If another writer saved a newer version first
        """
        stmt = (
            update(Room)
            .where(Room.room_id == room_id, Room.version == expected_version)
            .values(state=state, version=new_version, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 1:
            return

        stored = await self.session.execute(select(Room.version).where(Room.room_id == room_id))
        current = stored.scalar_one_or_none()
        if current is None:
            raise NotFoundError(f"Room {room_id} not found")
        raise ConcurrencyError(
            f"Room {room_id} was modified concurrently: expected version {expected_version}, found {current}"
        )

    async def delete_room(self, room_id: str) -> bool:
        room = await self.get_room(room_id)
        if room is None:
            return False
        await self.session.execute(delete(LedgerEntry).where(LedgerEntry.room_uuid == room.id))
        await self.session.delete(room)
        await self.session.flush()
        return True

    # ---- Ledger Operations ----

    async def last_sequence_number(self, room: Room) -> int:
        stmt = select(func.max(LedgerEntry.sequence_number)).where(LedgerEntry.room_uuid == room.id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() or 0

    async def append_entries(self, room: Room, transactions: Sequence[Dict[str, Any]]) -> int:
        """
        Append serialized transactions not yet stored for this room.

        Returns:
            Number of entries written
        """
        last = await self.last_sequence_number(room)
        new = [tx for tx in transactions if tx["id"] > last]
        for tx in new:
            self.session.add(
                LedgerEntry(
                    room_uuid=room.id,
                    sequence_number=tx["id"],
                    sender_index=tx["sender_index"],
                    recipient_index=tx["recipient_index"],
                    amount=tx["amount"],
                    kind=tx["kind"],
                    description=tx["description"],
                )
            )
        if new:
            await self.session.flush()
        return len(new)

    async def get_entries(self, room_id: str) -> List[LedgerEntry]:
        stmt = (
            select(LedgerEntry)
            .join(Room, LedgerEntry.room_uuid == Room.id)
            .where(Room.room_id == room_id)
            .order_by(LedgerEntry.sequence_number)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
