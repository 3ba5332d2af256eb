from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from core import GameConfig, GameState, Player, create_game
from core.exceptions import ConcurrencyError, GameError, NotFoundError
from core.snapshot import serialize_snapshot
from data import RoomRepository, session_scope
from services import RoomService

logger = logging.getLogger(__name__)

RoomAction = Callable[[GameState], Any]


class RoomHandle:
    """A live room and the lock that serializes its writers."""

    def __init__(self, room_id: str, game: GameState):
        self.room_id = room_id
        self.game = game
        self.lock = asyncio.Lock()


class RoomRegistry:
    """In-memory registry of live rooms, optionally backed by the database."""

    def __init__(self, persist: bool = False):
        self.persist = persist
        self._rooms: Dict[str, RoomHandle] = {}
        self._lock = asyncio.Lock()

    async def create_room(self, players: List[Player], config: GameConfig) -> Tuple[str, GameState]:
        room_id = uuid.uuid4().hex[:12]
        game = create_game(config, players)

        if self.persist:
            async with session_scope() as session:
                await RoomService(RoomRepository(session)).create_room(room_id, game)

        async with self._lock:
            self._rooms[room_id] = RoomHandle(room_id, game)
        logger.info(f"Room {room_id} created with {len(players)} players")
        return room_id, game

    async def get(self, room_id: str) -> RoomHandle:
        handle = self._rooms.get(room_id)
        if handle is not None:
            return handle
        if not self.persist:
            raise NotFoundError(f"Room {room_id} not found")

        async with self._lock:
            handle = self._rooms.get(room_id)
            if handle is None:
                async with session_scope() as session:
                    game = await RoomService(RoomRepository(session)).load_room(room_id)
                handle = RoomHandle(room_id, game)
                self._rooms[room_id] = handle
                logger.info(f"Room {room_id} restored at version {game.version}")
        return handle

    async def apply(
        self,
        room_id: str,
        action: RoomAction,
        expected_version: Optional[int] = None,
    ) -> Tuple[Any, Dict[str, Any]]:
        """
        Run one mutating operation against a room under its lock.

        The room version increases by one when the operation succeeds. If the
        operation or the save fails, the room is restored to its prior state.

        Returns:
            (operation result, public snapshot after the operation)
        """
        handle = await self.get(room_id)
        async with handle.lock:
            game = handle.game
            if expected_version is not None and expected_version != game.version:
                raise ConcurrencyError(
                    f"Room {room_id} is at version {game.version}, request expected {expected_version}"
                )

            backup = game.to_dict()
            try:
                result = action(game)
                game.version += 1
                if self.persist:
                    async with session_scope() as session:
                        await RoomService(RoomRepository(session)).save_room(room_id, game, backup["version"])
            except GameError:
                handle.game = GameState.from_dict(backup)
                raise
            return result, serialize_snapshot(handle.game)

    async def remove(self, room_id: str) -> bool:
        async with self._lock:
            return self._rooms.pop(room_id, None) is not None

    def room_ids(self) -> List[str]:
        return list(self._rooms)
