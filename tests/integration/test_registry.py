"""
Concurrent writers against one room through RoomRegistry.apply.
"""

import asyncio

import pytest

from core import ConcurrencyError, GameConfig, Player, ValidationError
from data import DatabaseSettings, RoomRepository, close_db, create_tables, drop_tables, init_db, session_scope
from server.registry import RoomRegistry
from services import RoomService

PLAYERS = [Player("alice", "Alice"), Player("bob", "Bob")]


def _total_cash(game) -> int:
    return sum(p.cash for p in game.players.values())


async def _race(registry: RoomRegistry, room_id: str):
    """Two transfers of alice's whole balance plus a credit draw, all at once."""
    return await asyncio.gather(
        registry.apply(room_id, lambda game: game.transfer("alice", "bob", 10000)),
        registry.apply(room_id, lambda game: game.transfer("alice", "bob", 10000)),
        registry.apply(room_id, lambda game: game.take_credit("alice", 1000)),
        return_exceptions=True,
    )


def _check_race(outcomes, game):
    transfers, credit = outcomes[:2], outcomes[2]
    failures = [o for o in transfers if isinstance(o, Exception)]

    assert len(failures) == 1
    assert isinstance(failures[0], ValidationError)
    assert not isinstance(credit, Exception)

    # one transfer and the credit were accepted
    assert game.version == 2
    assert game.get_player("alice").cash == 1000
    assert game.get_player("bob").cash == 20000
    assert _total_cash(game) == 20000 + game.get_player("alice").credit_amount
    assert [tx.kind for tx in game.ledger.history()].count("transfer") == 1


def test_concurrent_applies_in_memory():
    async def main():
        registry = RoomRegistry()
        room_id, _ = await registry.create_room(PLAYERS, GameConfig(seed=5))
        outcomes = await _race(registry, room_id)
        return outcomes, (await registry.get(room_id)).game

    outcomes, game = asyncio.run(main())
    _check_race(outcomes, game)


def test_concurrent_applies_persisted(tmp_path):
    async def main():
        await init_db(DatabaseSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'rooms.db'}"))
        try:
            await create_tables()
            registry = RoomRegistry(persist=True)
            room_id, _ = await registry.create_room(PLAYERS, GameConfig(seed=5))
            outcomes = await _race(registry, room_id)
            async with session_scope() as session:
                stored = await RoomService(RoomRepository(session)).load_room(room_id)
            return outcomes, (await registry.get(room_id)).game, stored
        finally:
            await drop_tables()
            await close_db()

    outcomes, game, stored = asyncio.run(main())
    _check_race(outcomes, game)
    assert stored.version == game.version
    assert stored.get_player("bob").cash == 20000


def test_only_one_writer_wins_a_pinned_version():
    async def main():
        registry = RoomRegistry()
        room_id, _ = await registry.create_room(PLAYERS, GameConfig(seed=5))
        outcomes = await asyncio.gather(
            *(
                registry.apply(room_id, lambda game: game.transfer("alice", "bob", 100), expected_version=0)
                for _ in range(3)
            ),
            return_exceptions=True,
        )
        return outcomes, (await registry.get(room_id)).game

    outcomes, game = asyncio.run(main())

    conflicts = [o for o in outcomes if isinstance(o, ConcurrencyError)]
    assert len(conflicts) == 2
    assert game.version == 1
    assert game.get_player("bob").cash == 10100
    assert _total_cash(game) == 20000


@pytest.mark.parametrize("attempts", [2, 5])
def test_version_counts_accepted_calls(attempts):
    async def main():
        registry = RoomRegistry()
        room_id, _ = await registry.create_room(PLAYERS, GameConfig(seed=5))
        await asyncio.gather(
            *(registry.apply(room_id, lambda game: game.take_credit("alice", 1000)) for _ in range(attempts))
        )
        return (await registry.get(room_id)).game

    game = asyncio.run(main())

    assert game.version == attempts
    assert game.get_player("alice").credit_amount == attempts * 1000
    assert _total_cash(game) == 20000 + attempts * 1000
