"""
SQLAlchemy models for Energy Money rooms.

Architecture:
- Room: one row per room, full engine state as JSON plus an optimistic version
- LedgerEntry: append-only copy of the room's transaction history
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def utc_now() -> datetime:
    """Generate timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class Room(Base):
    """
    Room state table.

    The whole engine state (players, decks, transactions, turn, events) is
    stored in `state`. `version` increases by one on every accepted mutation.
    """

    __tablename__ = "rooms"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    room_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        comment="Room ID from RoomRegistry",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    state: Mapped[Dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
        comment="Serialized GameState",
    )

    entries: Mapped[List["LedgerEntry"]] = relationship(
        "LedgerEntry",
        back_populates="room",
        cascade="all, delete-orphan",
        lazy="noload",  # Entries loaded explicitly via repository
        order_by="LedgerEntry.sequence_number",
    )

    def __repr__(self) -> str:
        return f"<Room(room_id={self.room_id}, version={self.version})>"


class LedgerEntry(Base):
    """Append-only transaction history of a room."""

    __tablename__ = "ledger_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    room_uuid: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sequence_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Transaction id within the room (1, 2, 3, ...)",
    )
    sender_index: Mapped[int] = mapped_column(Integer, nullable=False)
    recipient_index: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    room: Mapped["Room"] = relationship("Room", back_populates="entries")

    __table_args__ = (
        UniqueConstraint("room_uuid", "sequence_number", name="uq_ledger_room_sequence"),
    )

    def __repr__(self) -> str:
        return f"<LedgerEntry(seq={self.sequence_number}, amount={self.amount}, kind={self.kind})>"
