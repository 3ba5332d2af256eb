from data.config import DatabaseSettings, get_settings
from data.models import Base, LedgerEntry, Room
from data.session import (
    close_db,
    create_tables,
    drop_tables,
    get_engine,
    init_db,
    session_scope,
)
from data.repository import RoomRepository

__all__ = [
    "DatabaseSettings",
    "get_settings",
    "Base",
    "LedgerEntry",
    "Room",
    "close_db",
    "create_tables",
    "drop_tables",
    "get_engine",
    "init_db",
    "session_scope",
    "RoomRepository",
]
