from types import SimpleNamespace

from commands.level_embeds import (
    format_leaderboard_lines, get_rank_emoji, render_leaderboard, render_rank,
)
from conftest import make_guild, make_member
from models import UserLevelRecord


def test_rank_emoji():
    assert [get_rank_emoji(i) for i in (1, 2, 3, 4)] == ["🥇", "🥈", "🥉", "📊"]


def test_leaderboard_lines_mark_departed_users():
    records = [
        UserLevelRecord("1", "g", xp=2500, level=5, total_messages=1200),
        UserLevelRecord("2", "g", xp=100, level=1, total_messages=7),
    ]
    names = {"1": "alice"}

    text = format_leaderboard_lines(records, 10, names.get)

    assert "📊 **#11** • alice" in text
    assert "**2,500** XP • 메시지 1,200개" in text
    assert "**#12** • *나간 사용자*" in text


async def test_render_rank_without_xp(engine):
    embed = await render_rank(engine, make_member(), 99)

    assert "아직 XP가 없습니다" in embed.description


async def test_render_rank_card(engine, store):
    await store.bulk_insert([
        UserLevelRecord("1", "99", xp=3050, level=5, total_messages=42),
        UserLevelRecord("2", "99", xp=9000, level=9, total_messages=400),
    ])

    embed = await render_rank(engine, make_member(1), 99)

    values = [field.value for field in embed.fields]
    assert values[0] == "**#2** / 2"
    assert values[1] == "**5**"
    assert values[2] == "**42**"
    assert "50%" in values[4]
    assert "**550** / **1,100** XP" in values[4]


async def test_render_leaderboard_empty(engine):
    embed = await render_leaderboard(engine, make_guild(), 1)

    assert "아직 XP를 얻은 사용자가 없습니다" in embed.description


async def test_render_leaderboard_page(engine, store):
    await store.bulk_insert([
        UserLevelRecord(str(i), "99", xp=1000 - i, level=3) for i in range(1, 13)
    ])
    guild = make_guild(99, {1: SimpleNamespace(display_name="top")})

    first = await render_leaderboard(engine, guild, 1)
    second = await render_leaderboard(engine, guild, 2)
    missing = await render_leaderboard(engine, guild, 3)

    assert "🥇 **#1** • top" in first.description
    assert "페이지 1/2" in first.footer.text
    assert "**#11**" in second.description
    assert "**#13**" not in second.description
    assert "3페이지는 없습니다" in missing.description
