from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

import exp_ignore_manager
from database import LevelsDB
from json_store import JsonLevelsStore
from level_system import LevelingEngine

T0 = 1_700_000_000


def fixed_xp(value):
    """항상 같은 값을 돌려주는 randint 대체"""
    def randint(low, high):
        return value
    return randint


@pytest.fixture(autouse=True)
def ignore_file(tmp_path, monkeypatch):
    path = tmp_path / "xp_ignore.json"
    monkeypatch.setattr(exp_ignore_manager, "EXP_IGNORE_FILE", str(path))
    monkeypatch.setattr(exp_ignore_manager, "_cache", None)
    return path


@pytest.fixture(params=["sqlite", "json"])
async def store(request, tmp_path):
    if request.param == "sqlite":
        s = LevelsDB(":memory:")
    else:
        s = JsonLevelsStore(str(tmp_path / "levels.json"))
    await s.open()
    yield s
    await s.close()


@pytest.fixture
def engine(store):
    return LevelingEngine(store, randint=fixed_xp(20), cooldown=60, min_xp=15, max_xp=25)


def make_member(user_id=1, name="tester", is_bot=False):
    return SimpleNamespace(
        id=user_id,
        bot=is_bot,
        name=name,
        display_name=name,
        mention=f"<@{user_id}>",
        display_avatar=SimpleNamespace(url="https://cdn.example.com/avatar.png"),
    )


def make_guild(guild_id=99, members=None):
    members = members or {}
    return SimpleNamespace(id=guild_id, name="Test Guild", get_member=lambda uid: members.get(uid))


def make_message(content="hello", author=None, guild=None, channel_id=10, in_dm=False):
    return SimpleNamespace(
        content=content,
        author=author or make_member(),
        guild=None if in_dm else (guild or make_guild()),
        channel=SimpleNamespace(id=channel_id, send=AsyncMock()),
    )
