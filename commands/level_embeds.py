# commands/level_embeds.py - 순위 카드 / 순위표 임베드

import math
from typing import Callable, List, Optional

import discord

from config import BRAND_TAGLINE, LEADERBOARD_MAX_ENTRIES, LEADERBOARD_PAGE_SIZE, PROGRESS_BAR_LENGTH
from errors import PersistenceError
from models import UserLevelRecord
from xp_tracker import create_progress_bar


def get_rank_emoji(position: int) -> str:
    """순위별 이모지"""
    return {1: "🥇", 2: "🥈", 3: "🥉"}.get(position, "📊")


def build_no_data_embed(description: str) -> discord.Embed:
    embed = discord.Embed(description=description, color=discord.Color.red())
    embed.set_footer(text=BRAND_TAGLINE)
    return embed


def build_error_embed() -> discord.Embed:
    return build_no_data_embed("❌ 레벨 데이터를 불러오지 못했습니다. 잠시 후 다시 시도해주세요.")


def build_rank_embed(member, progress: dict, rank: int, total_users: int) -> discord.Embed:
    """
    순위 카드
    progress: LevelingEngine.get_progress() 결과
    """
    bar = create_progress_bar(progress['percentage'], PROGRESS_BAR_LENGTH)

    embed = discord.Embed(color=discord.Color.blurple(), timestamp=discord.utils.utcnow())
    embed.set_author(name=f"{member.display_name}님의 순위", icon_url=member.display_avatar.url)

    embed.add_field(name="📊 순위", value=f"**#{rank}** / {total_users}", inline=True)
    embed.add_field(name="⭐ 레벨", value=f"**{progress['level']}**", inline=True)
    embed.add_field(name="💬 메시지", value=f"**{progress['total_messages']:,}**", inline=True)
    embed.add_field(name="✨ 총 XP", value=f"**{progress['xp']:,}** XP", inline=False)
    embed.add_field(
        name=f"📈 레벨 {progress['level'] + 1}까지",
        value=f"{bar}\n**{progress['current']:,}** / **{progress['needed']:,}** XP",
        inline=False
    )

    embed.set_thumbnail(url=member.display_avatar.url)
    embed.set_footer(text=BRAND_TAGLINE)
    return embed


def format_leaderboard_lines(records: List[UserLevelRecord], offset: int,
                             resolve_name: Callable[[str], Optional[str]]) -> str:
    """
    순위표 본문
    resolve_name: user_id → 표시 이름 (서버를 나간 사용자면 None)
    """
    lines = []
    for i, record in enumerate(records):
        position = offset + i + 1
        emoji = get_rank_emoji(position)
        name = resolve_name(record.user_id)

        if name is None:
            lines.append(f"{emoji} **#{position}** • *나간 사용자*")
            lines.append(f"└ 레벨 **{record.level}** • **{record.xp:,}** XP\n")
        else:
            lines.append(f"{emoji} **#{position}** • {name}")
            lines.append(
                f"└ 레벨 **{record.level}** • **{record.xp:,}** XP • 메시지 {record.total_messages:,}개\n"
            )
    return "\n".join(lines)


def build_leaderboard_embed(guild_name: str, lines: str, page: int, total_pages: int) -> discord.Embed:
    embed = discord.Embed(
        title=f"🏆 {guild_name} 순위표",
        description=lines or "데이터가 없습니다.",
        color=discord.Color.gold(),
        timestamp=discord.utils.utcnow()
    )
    embed.set_footer(text=f"{BRAND_TAGLINE} • 페이지 {page}/{total_pages}")
    return embed


def member_name_resolver(guild) -> Callable[[str], Optional[str]]:
    """guild 캐시에서 멤버 이름 조회"""
    def resolve(user_id: str) -> Optional[str]:
        member = guild.get_member(int(user_id))
        return member.display_name if member is not None else None
    return resolve


async def render_rank(engine, member, guild_id) -> discord.Embed:
    """순위 카드 생성 (기록이 없으면 안내 임베드)"""
    try:
        progress = await engine.get_progress(member.id, guild_id)
        if progress is None or progress['xp'] == 0:
            return build_no_data_embed(
                f"{member.mention}님은 아직 XP가 없습니다! 채팅을 시작해서 레벨을 올려보세요."
            )
        rank = await engine.get_rank(member.id, guild_id)
        total_users = await engine.get_total_users(guild_id)
    except PersistenceError:
        return build_error_embed()

    return build_rank_embed(member, progress, rank, total_users)


async def render_leaderboard(engine, guild, page: int = 1) -> discord.Embed:
    """순위표 페이지 생성 (상위 LEADERBOARD_MAX_ENTRIES명 중 page번째)"""
    page = max(page, 1)
    offset = (page - 1) * LEADERBOARD_PAGE_SIZE

    try:
        records = await engine.get_leaderboard(guild.id, LEADERBOARD_MAX_ENTRIES)
    except PersistenceError:
        return build_error_embed()

    total_pages = math.ceil(len(records) / LEADERBOARD_PAGE_SIZE)
    if page > total_pages > 0:
        return build_no_data_embed(f"❌ {page}페이지는 없습니다. 마지막 페이지: {total_pages}")

    page_records = records[offset:offset + LEADERBOARD_PAGE_SIZE]
    if not page_records:
        return build_no_data_embed("아직 XP를 얻은 사용자가 없습니다! 채팅을 시작해서 순위표에 올라보세요.")

    lines = format_leaderboard_lines(page_records, offset, member_name_resolver(guild))
    return build_leaderboard_embed(guild.name, lines, page, total_pages)
