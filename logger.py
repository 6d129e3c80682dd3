# logger.py - 디스코드 로그 채널 전송

import logging
from datetime import datetime

import discord

from config import LOG_CHANNEL_ID_ADMIN, LOG_CHANNEL_ID_LEVEL

log = logging.getLogger(__name__)


async def _send_to_log_channel(bot, channel_id, embed: discord.Embed, label: str):
    if channel_id is None:
        return

    channel = bot.get_channel(channel_id)
    if channel is None:
        log.warning("[Logger] %s 로그 채널을 찾을 수 없습니다. (ID: %s)", label, channel_id)
        return

    try:
        await channel.send(embed=embed)
    except discord.DiscordException as e:
        log.warning("[Logger] %s 로그 전송 실패: %s", label, e)


async def send_command_log(bot, executor: discord.Member, command: str, target_user=None, details: str = ""):
    """
    관리자 명령어 실행 로그 전송
    """
    embed = discord.Embed(
        title="📝 관리자 명령어 실행 로그",
        color=discord.Color.blue(),
        timestamp=datetime.now()
    )

    embed.add_field(
        name="실행자",
        value=f"{executor.display_name} ({executor.mention})\nID: {executor.id}",
        inline=False
    )

    embed.add_field(
        name="명령어",
        value=f"`{command}`",
        inline=False
    )

    if target_user is not None:
        embed.add_field(
            name="대상 사용자",
            value=f"{target_user.display_name} ({target_user.mention})\nID: {target_user.id}",
            inline=False
        )

    if details:
        embed.add_field(
            name="상세 정보",
            value=details,
            inline=False
        )

    await _send_to_log_channel(bot, LOG_CHANNEL_ID_ADMIN, embed, "ADMIN")


async def send_levelup_log(bot, user: discord.Member, old_level: int, new_level: int, total_xp: int, source: str = "채팅"):
    """
    레벨업 로그 전송
    """
    embed = discord.Embed(
        title="🎉 레벨업 로그",
        color=discord.Color.gold(),
        timestamp=datetime.now()
    )

    embed.add_field(
        name="사용자",
        value=f"{user.display_name} ({user.mention})\nID: {user.id}",
        inline=False
    )

    embed.add_field(
        name="레벨 변화",
        value=f"**{old_level}** → **{new_level}**",
        inline=True
    )

    embed.add_field(
        name="총 XP",
        value=f"**{total_xp:,}**",
        inline=True
    )

    embed.add_field(
        name="발생 경로",
        value=source,
        inline=False
    )

    await _send_to_log_channel(bot, LOG_CHANNEL_ID_LEVEL, embed, "LEVEL")
