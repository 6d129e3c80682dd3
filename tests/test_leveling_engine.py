import asyncio
import random

import pytest

from conftest import T0, fixed_xp
from errors import PersistenceError, ValidationError
from level_system import LevelingEngine
from models import UserLevelRecord


async def test_first_message_creates_record(engine):
    result = await engine.record_activity("u1", "g1", now=T0)

    assert result == {
        'granted': True,
        'xp_gained': 20,
        'old_level': 0,
        'new_level': 0,
        'total_xp': 20,
        'leveled_up': False,
    }
    record = await engine.get_record("u1", "g1")
    assert record.xp == 20
    assert record.level == 0
    assert record.total_messages == 1
    assert record.last_xp_time == T0
    assert record.updated_at == T0


async def test_cooldown_gating(engine):
    await engine.record_activity("u1", "g1", now=T0)

    rejected = await engine.record_activity("u1", "g1", now=T0 + 59)
    assert rejected['granted'] is False
    assert rejected['xp_gained'] == 0
    record = await engine.get_record("u1", "g1")
    assert record.xp == 20
    assert record.total_messages == 1
    assert record.last_xp_time == T0

    accepted = await engine.record_activity("u1", "g1", now=T0 + 60)
    assert accepted['granted'] is True
    record = await engine.get_record("u1", "g1")
    assert record.xp == 40
    assert record.total_messages == 2
    assert record.last_xp_time == T0 + 60


async def test_end_to_end_scenario(store):
    engine = LevelingEngine(store, randint=random.Random(7).randint, cooldown=60, min_xp=15, max_xp=25)

    first = await engine.record_activity("u1", "g1", now=T0)
    record = await engine.get_record("u1", "g1")
    assert first['granted']
    assert 15 <= record.xp <= 25
    assert record.level == 0
    assert record.total_messages == 1
    xp_after_first = record.xp

    second = await engine.record_activity("u1", "g1", now=T0 + 10)
    assert not second['granted']
    assert await engine.get_record("u1", "g1") == record

    third = await engine.record_activity("u1", "g1", now=T0 + 61)
    record = await engine.get_record("u1", "g1")
    assert third['granted']
    assert 15 <= record.xp - xp_after_first <= 25
    assert record.total_messages == 2


async def test_level_up_flag(store):
    engine = LevelingEngine(store, randint=fixed_xp(25), cooldown=60, min_xp=15, max_xp=25)

    results = [await engine.record_activity("u1", "g1", now=T0 + i * 60) for i in range(4)]

    assert [r['leveled_up'] for r in results] == [False, False, False, True]
    assert results[-1]['old_level'] == 0
    assert results[-1]['new_level'] == 1
    assert results[-1]['total_xp'] == 100


async def test_guilds_are_independent(engine):
    await engine.record_activity("u1", "g1", now=T0)
    result = await engine.record_activity("u1", "g2", now=T0 + 1)

    assert result['granted']
    assert (await engine.get_record("u1", "g1")).xp == 20
    assert (await engine.get_record("u1", "g2")).xp == 20


async def test_default_clock_is_used(store):
    engine = LevelingEngine(store, randint=fixed_xp(15), clock=lambda: T0 + 0.9)
    await engine.record_activity("u1", "g1")

    record = await engine.get_record("u1", "g1")
    assert record.last_xp_time == T0


async def test_concurrent_events_for_same_user_grant_once(engine):
    results = await asyncio.gather(*[
        engine.record_activity("u1", "g1", now=T0) for _ in range(5)
    ])

    assert sum(1 for r in results if r['granted']) == 1
    record = await engine.get_record("u1", "g1")
    assert record.xp == 20
    assert record.total_messages == 1


async def test_user_locks_are_released(engine):
    await asyncio.gather(*[
        engine.record_activity(user_id, "g1", now=T0)
        for user_id in ("u1", "u1", "u2", "u3")
    ])
    await engine.reset("u1", "g1", now=T0)
    await engine.delete("u2", "g1")

    assert engine._locks == {}


async def _seed(store):
    await store.bulk_insert([
        UserLevelRecord("A", "g1", xp=100, level=1, total_messages=5, created_at=T0, updated_at=T0),
        UserLevelRecord("B", "g1", xp=100, level=1, total_messages=6, created_at=T0, updated_at=T0),
        UserLevelRecord("C", "g1", xp=50, level=0, total_messages=2, created_at=T0, updated_at=T0),
        UserLevelRecord("D", "g2", xp=9000, level=9, total_messages=99, created_at=T0, updated_at=T0),
    ])


async def test_rank_ties_share_rank(engine, store):
    await _seed(store)

    assert await engine.get_rank("A", "g1") == 1
    assert await engine.get_rank("B", "g1") == 1
    assert await engine.get_rank("C", "g1") == 3
    assert await engine.get_rank("D", "g2") == 1


async def test_rank_without_record_is_none(engine):
    assert await engine.get_rank("nobody", "g1") is None
    assert await engine.get_progress("nobody", "g1") is None


async def test_leaderboard_ordering(engine, store):
    await _seed(store)

    top_two = await engine.get_leaderboard("g1", 2)
    assert [r.user_id for r in top_two] == ["A", "B"]

    everyone = await engine.get_leaderboard("g1", 10)
    assert [r.user_id for r in everyone] == ["A", "B", "C"]

    second_page = await engine.get_leaderboard("g1", 2, offset=2)
    assert [r.user_id for r in second_page] == ["C"]


@pytest.mark.parametrize("limit", [0, -1])
async def test_leaderboard_non_positive_limit(engine, store, limit):
    await _seed(store)
    assert await engine.get_leaderboard("g1", limit) == []


async def test_total_users(engine, store):
    await _seed(store)
    assert await engine.get_total_users("g1") == 3
    assert await engine.get_total_users("g3") == 0


async def test_get_progress(engine, store):
    await store.bulk_insert([UserLevelRecord("u1", "g1", xp=3050, level=5, total_messages=120)])

    progress = await engine.get_progress("u1", "g1")
    assert progress['level'] == 5
    assert progress['xp'] == 3050
    assert progress['total_messages'] == 120
    assert progress['current'] == 550
    assert progress['needed'] == 1100
    assert progress['percentage'] == 50


async def test_reset_is_idempotent_and_clears_cooldown(engine):
    await engine.record_activity("u1", "g1", now=T0)

    assert await engine.reset("u1", "g1", now=T0 + 5) is True
    first = await engine.get_record("u1", "g1")
    assert await engine.reset("u1", "g1", now=T0 + 5) is True
    second = await engine.get_record("u1", "g1")

    assert first == second
    assert (second.xp, second.level, second.total_messages, second.last_xp_time) == (0, 0, 0, 0)

    result = await engine.record_activity("u1", "g1", now=T0 + 6)
    assert result['granted']
    assert (await engine.get_record("u1", "g1")).total_messages == 1


async def test_reset_unknown_user(engine):
    assert await engine.reset("nobody", "g1", now=T0) is False
    assert await engine.get_record("nobody", "g1") is None


async def test_delete(engine):
    await engine.record_activity("u1", "g1", now=T0)

    assert await engine.delete("u1", "g1") is True
    assert await engine.delete("u1", "g1") is False
    assert await engine.get_record("u1", "g1") is None


@pytest.mark.parametrize("user_id, guild_id", [("", "g1"), ("u1", ""), (None, "g1"), ("u1", "   ")])
async def test_invalid_ids_are_rejected(engine, user_id, guild_id):
    with pytest.raises(ValidationError):
        await engine.record_activity(user_id, guild_id, now=T0)
    with pytest.raises(ValueError):
        await engine.get_rank(user_id, guild_id)
    with pytest.raises(ValidationError):
        await engine.reset(user_id, guild_id)


async def test_integer_ids_are_normalized(engine):
    await engine.record_activity(123456789012345678, 987654321098765432, now=T0)

    record = await engine.get_record("123456789012345678", "987654321098765432")
    assert record is not None
    assert record.user_id == "123456789012345678"


def test_invalid_configuration(store):
    with pytest.raises(ValueError):
        LevelingEngine(store, min_xp=30, max_xp=20)
    with pytest.raises(ValueError):
        LevelingEngine(store, cooldown=-1)


class FailingStore:
    """save / count_where가 항상 실패하는 저장소"""

    def __init__(self, inner):
        self.inner = inner

    async def get_or_create(self, user_id, guild_id, now=None):
        return await self.inner.get_or_create(user_id, guild_id, now)

    async def find(self, user_id, guild_id):
        return await self.inner.find(user_id, guild_id)

    async def save(self, record):
        raise PersistenceError("disk full")

    async def count_where(self, guild_id, xp_greater_than):
        raise PersistenceError("disk full")


async def test_persistence_failure_drops_the_grant(store):
    engine = LevelingEngine(FailingStore(store), randint=fixed_xp(20))

    result = await engine.record_activity("u1", "g1", now=T0)

    assert result['granted'] is False
    assert result['leveled_up'] is False
    record = await store.find("u1", "g1")
    assert record.xp == 0
    assert record.last_xp_time == 0


async def test_persistence_failure_propagates_from_queries(store):
    engine = LevelingEngine(FailingStore(store), randint=fixed_xp(20))
    await store.create("u1", "g1", T0)

    with pytest.raises(PersistenceError):
        await engine.get_rank("u1", "g1")
